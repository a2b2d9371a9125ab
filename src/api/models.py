"""
API request and response models.

Pydantic model for the JSON user payload, shared by both routes.
"""

from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from src.domain.user import User


class UserSchema(BaseModel):
    """
    JSON shape of a user: {"ID", "Name", "Email", "Birthday"}.

    Lower-case field names are accepted on input as well.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: UUID = Field(..., alias="ID")
    name: str = Field(..., alias="Name")
    email: str = Field(..., alias="Email")
    birthday: str = Field(..., alias="Birthday", description="Calendar date, YYYY-MM-DD")

    @classmethod
    def from_user(cls, user: User) -> "UserSchema":
        return cls(id=user.id, name=user.name, email=user.email, birthday=user.birthday)

    def to_user(self) -> User:
        return User(id=self.id, name=self.name, email=self.email, birthday=self.birthday)
