"""
User entity - the only record kept by the registry.

Validation is deliberately minimal: only the birthday is checked.
Email format and name content are accepted as given.
"""

import re
from dataclasses import dataclass
from datetime import date, datetime
from uuid import UUID

from .exceptions import MalformedBirthday

BIRTHDAY_FORMAT = "%Y-%m-%d"

# strptime alone accepts single-digit months and days
_BIRTHDAY_PATTERN = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")


def format_birthday(value: date) -> str:
    """Render a stored date in the canonical YYYY-MM-DD form."""
    # strftime("%Y") drops the zero padding of years below 1000 on glibc
    return value.isoformat()


@dataclass(frozen=True)
class User:
    """A registered user. Immutable once created."""

    id: UUID
    name: str
    email: str
    birthday: str

    def validate(self) -> None:
        """
        Check the user can be persisted.

        Raises:
            MalformedBirthday: If birthday is not a YYYY-MM-DD calendar date
        """
        self.birthday_date()

    def birthday_date(self) -> date:
        """Parse birthday into a date, raising MalformedBirthday on failure."""
        if not isinstance(self.birthday, str) or not _BIRTHDAY_PATTERN.fullmatch(self.birthday):
            raise MalformedBirthday()
        try:
            return datetime.strptime(self.birthday, BIRTHDAY_FORMAT).date()
        except ValueError:
            raise MalformedBirthday() from None
