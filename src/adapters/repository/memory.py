"""
In-memory repository adapter - Implements UserRegistry protocol.

Keeps users in process memory. Enforces the same uniqueness rules and
raises the same domain errors as the PostgreSQL adapter, so the HTTP layer
can be exercised without a database.
"""

import logging
from uuid import UUID

from src.domain.exceptions import EmailAlreadyExists, IDAlreadyExists, UserNotFound
from src.domain.user import User

logger = logging.getLogger(__name__)


class InMemoryUserRegistry:
    """
    Implements UserRegistry protocol with a dictionary.

    Uses structural subtyping - no explicit inheritance from Protocol.
    Check-and-insert runs without awaiting, so it is atomic within one event loop.
    """

    def __init__(self, users: list[User] | None = None) -> None:
        self._by_email: dict[str, User] = {}
        self._ids: set[UUID] = set()
        for user in users or []:
            self._store(user)

    async def get_user(self, email: str) -> User:
        user = self._by_email.get(email)
        if user is None:
            raise UserNotFound()
        return user

    async def create_user(self, user: User) -> None:
        user.validate()
        self._store(user)

    def _store(self, user: User) -> None:
        if user.email in self._by_email:
            logger.warning("create user error, email already stored", extra={"email": user.email})
            raise EmailAlreadyExists()
        if user.id in self._ids:
            logger.warning("create user error, id already stored", extra={"id": str(user.id)})
            raise IDAlreadyExists()
        self._by_email[user.email] = user
        self._ids.add(user.id)

    def __len__(self) -> int:
        return len(self._by_email)

    def __contains__(self, email: object) -> bool:
        return email in self._by_email
