"""
Port interfaces - Protocol definitions for infrastructure abstraction.

This module defines the interface (port) that the HTTP layer requires
from storage. Adapters implement this protocol.
"""

from typing import Protocol

from .user import User


class UserRegistry(Protocol):
    """
    Port interface for user lookup and creation.

    Implementations run inside the caller's asyncio task. Cancelling that
    task aborts the in-flight storage call and asyncio.CancelledError
    propagates; a cancelled call never reports success.
    """

    async def get_user(self, email: str) -> User:
        """
        Fetch the user registered under an email.

        Args:
            email: Lookup key, matched exactly

        Returns:
            The stored user

        Raises:
            UserNotFound: If no user has this email
            StorageError: On any other storage failure
        """
        ...

    async def create_user(self, user: User) -> None:
        """
        Store a new user.

        Args:
            user: User to persist; validated before any write

        Raises:
            MalformedBirthday: If the user does not validate
            EmailAlreadyExists: If the email is already stored
            IDAlreadyExists: If the id is already stored
            StorageError: On any other storage failure
        """
        ...
