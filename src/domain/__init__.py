"""
Domain layer - Pure business logic with zero framework imports.

This package contains the User entity, its validation, the error taxonomy
and the registry port. Infrastructure adapters implement the port, keeping
the HTTP layer decoupled from any specific storage engine.
"""

from .exceptions import (
    EmailAlreadyExists,
    IDAlreadyExists,
    MalformedBirthday,
    MalformedInput,
    StorageError,
    StorageTimeout,
    UniqueConstraintViolation,
    UserConflict,
    UserNotFound,
    UserRegistryError,
)
from .ports import UserRegistry
from .user import BIRTHDAY_FORMAT, User, format_birthday

__all__ = [
    "BIRTHDAY_FORMAT",
    "EmailAlreadyExists",
    "IDAlreadyExists",
    "MalformedBirthday",
    "MalformedInput",
    "StorageError",
    "StorageTimeout",
    "UniqueConstraintViolation",
    "User",
    "UserConflict",
    "UserNotFound",
    "UserRegistry",
    "UserRegistryError",
    "format_birthday",
]
