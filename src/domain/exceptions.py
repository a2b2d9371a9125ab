"""
Domain exceptions - Semantic error types for the user registry.

This module defines domain-specific exceptions that communicate
business rule violations without leaking infrastructure details.
Each exception carries a fixed client-facing message; storage failures
keep the driver error as ``__cause__`` for diagnostics only.
"""


class UserRegistryError(Exception):
    """Base class for user registry domain errors."""

    message = "user registry error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.message)


class UserNotFound(UserRegistryError):
    """No stored user matches the requested email."""

    message = "user not found"


class UserConflict(UserRegistryError):
    """A uniqueness rule rejected the new user."""

    message = "user already exists"


class EmailAlreadyExists(UserConflict):
    """Another user is already stored with this email."""

    message = "user email already exists"


class IDAlreadyExists(UserConflict):
    """Another user is already stored with this id."""

    message = "user UUID already exists"


class MalformedInput(UserRegistryError):
    """Input rejected before reaching storage."""

    message = "malformed input"


class MalformedBirthday(MalformedInput):
    """Birthday is not a YYYY-MM-DD calendar date."""

    message = "user malformed birthday"


class StorageError(UserRegistryError):
    """Opaque failure from the persistence layer."""

    message = "database error"


class UniqueConstraintViolation(StorageError):
    """A unique constraint outside the known mapping fired."""

    message = "unique constraint violation"


class StorageTimeout(StorageError):
    """The storage call exceeded its deadline and was cancelled."""

    message = "database operation timed out"
