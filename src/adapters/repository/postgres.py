"""
PostgreSQL repository adapter - Implements UserRegistry protocol.

This module provides the PostgreSQL implementation of the domain's
registry port using psycopg3 async connection pools with raw SQL.

Read/Write Split:
-----------------
Writes go to the primary pool. Reads go to the replica pool, which is the
same pool object when no replica is configured. Callers never see which
target served a request.

Uniqueness:
-----------
The ``users`` table carries two named unique constraints. Concurrent inserts
for the same email or id are resolved by PostgreSQL: exactly one commits and
the others fail with a unique violation, which is classified here through an
explicit constraint-name mapping. No in-process locking is used.

Cancellation:
-------------
Every query runs inside the caller's task. When that task is cancelled,
psycopg cancels the running statement on the server and the pool rolls the
connection back before reuse; asyncio.CancelledError propagates unchanged.
An optional per-operation deadline cancels the query the same way and
surfaces as StorageTimeout.
"""

import asyncio
import logging
from collections.abc import Awaitable
from pathlib import Path
from typing import Any, TypeVar

import psycopg
from psycopg import errors as pg_errors
from psycopg_pool import AsyncConnectionPool

from src.domain.exceptions import (
    EmailAlreadyExists,
    IDAlreadyExists,
    StorageError,
    StorageTimeout,
    UniqueConstraintViolation,
    UserNotFound,
    UserRegistryError,
)
from src.domain.user import User, format_birthday

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Constraint names created by migrations/001_create_users.sql
UNIQUE_CONSTRAINT_ERRORS: dict[str, type[UserRegistryError]] = {
    "users_email_key": EmailAlreadyExists,
    "users_id_key": IDAlreadyExists,
}


def classify_unique_violation(constraint_name: str | None) -> UserRegistryError:
    """
    Map the constraint that fired to a domain error.

    Names outside UNIQUE_CONSTRAINT_ERRORS become a generic
    UniqueConstraintViolation instead of being guessed.
    """
    error_class = UNIQUE_CONSTRAINT_ERRORS.get(constraint_name or "")
    if error_class is None:
        return UniqueConstraintViolation()
    return error_class()


class PostgresUserRegistry:
    """
    Implements UserRegistry protocol via psycopg3.

    Uses structural subtyping - no explicit inheritance from Protocol.
    All SQL uses parameterized queries for security.
    """

    def __init__(
        self,
        primary: AsyncConnectionPool,
        replica: AsyncConnectionPool | None = None,
        query_timeout: float | None = None,
    ) -> None:
        """
        Initialize registry with connection pools.

        Args:
            primary: Pool used for writes
            replica: Pool used for reads; defaults to the primary pool
            query_timeout: Seconds before a storage call is cancelled, None for no limit
        """
        self.primary = primary
        self.replica = replica if replica is not None else primary
        self._query_timeout = query_timeout

    @classmethod
    async def connect(
        cls,
        primary_url: str,
        replica_url: str | None = None,
        *,
        min_size: int = 2,
        max_size: int = 10,
        query_timeout: float | None = None,
    ) -> "PostgresUserRegistry":
        """
        Open the connection pools and build a registry on top of them.

        The primary pool is closed again if the replica cannot be opened.
        """
        primary = AsyncConnectionPool(
            conninfo=primary_url, min_size=min_size, max_size=max_size, open=False
        )
        try:
            await primary.open(wait=True)
        except psycopg.Error:
            logger.error("Failed to connect to primary db")
            await primary.close()
            raise

        replica = None
        if replica_url:
            replica = AsyncConnectionPool(
                conninfo=replica_url, min_size=min_size, max_size=max_size, open=False
            )
            try:
                await replica.open(wait=True)
            except psycopg.Error:
                logger.error("Failed to connect to replica db")
                await replica.close()
                await primary.close()
                raise

        return cls(primary, replica, query_timeout=query_timeout)

    async def close(self) -> None:
        """Close the pools, closing an aliased replica only once."""
        await self.primary.close()
        if self.replica is not self.primary:
            await self.replica.close()

    async def get_user(self, email: str) -> User:
        """
        Fetch a user by email from the replica pool.

        Raises:
            UserNotFound: If no row matches
            StorageError: On any driver or pool failure
        """
        sql = "SELECT id, name, birthday FROM users WHERE email = %s"

        try:
            row = await self._with_deadline(self._fetch_one(sql, (email,)), email=email)
        except psycopg.Error as e:
            logger.error("Error to fetch user", extra={"email": email}, exc_info=True)
            raise StorageError() from e

        if row is None:
            raise UserNotFound()

        user_id, name, birthday = row
        return User(id=user_id, name=name, email=email, birthday=format_birthday(birthday))

    async def create_user(self, user: User) -> None:
        """
        Insert a new user through the primary pool.

        Raises:
            MalformedBirthday: If the user does not validate
            EmailAlreadyExists: If users_email_key fired
            IDAlreadyExists: If users_id_key fired
            UniqueConstraintViolation: If any other unique constraint fired
            StorageError: On any other database failure
        """
        birthday = user.birthday_date()
        sql = "INSERT INTO users (id, name, email, birthday) VALUES (%s, %s, %s, %s)"

        try:
            await self._with_deadline(
                self._execute(sql, (user.id, user.name, user.email, birthday)),
                user=user,
            )
        except pg_errors.UniqueViolation as e:
            logger.warning(
                "create user error, uniq key violation",
                extra={"user": user, "constraint": e.diag.constraint_name},
            )
            raise classify_unique_violation(e.diag.constraint_name) from e
        except psycopg.Error as e:
            logger.error("create user error", extra={"user": user}, exc_info=True)
            raise StorageError() from e

    async def _fetch_one(self, sql: str, params: tuple) -> tuple | None:
        async with self.replica.connection() as conn, conn.cursor() as cursor:
            await cursor.execute(sql, params)
            return await cursor.fetchone()

    async def _execute(self, sql: str, params: tuple) -> None:
        # The pool commits on clean exit and rolls back on error or cancellation
        async with self.primary.connection() as conn:
            await conn.execute(sql, params)

    async def _with_deadline(self, operation: Awaitable[T], **context: Any) -> T:
        try:
            return await asyncio.wait_for(operation, self._query_timeout)
        except asyncio.TimeoutError as e:
            logger.error(
                "storage call exceeded deadline",
                extra={"timeout": self._query_timeout, **context},
            )
            raise StorageTimeout() from e


async def run_migrations(pool: AsyncConnectionPool, migrations_dir: Path | None = None) -> None:
    """
    Execute all SQL migration files from the migrations directory.

    Migrations are executed in sorted order (alphabetically by filename).
    Each migration should be idempotent (use IF NOT EXISTS, etc.).

    Args:
        pool: psycopg3 AsyncConnectionPool instance
        migrations_dir: Directory holding *.sql files, defaults to <repo>/migrations
    """
    # Structure: src/adapters/repository/postgres.py -> migrations/
    if migrations_dir is None:
        migrations_dir = Path(__file__).parent.parent.parent.parent / "migrations"

    if not migrations_dir.exists():
        logger.warning(f"Migrations directory not found: {migrations_dir}")
        return

    sql_files = sorted(migrations_dir.glob("*.sql"))

    if not sql_files:
        logger.info("No migration files found")
        return

    logger.info(f"Running {len(sql_files)} migration(s)")

    for sql_file in sql_files:
        logger.debug(f"Executing migration: {sql_file.name}")
        try:
            sql_content = sql_file.read_text()

            async with pool.connection() as conn:
                await conn.execute(sql_content)

            logger.info(f"Migration complete: {sql_file.name}")
        except psycopg.Error as e:
            logger.error(f"Migration failed: {sql_file.name} - {e}")
            raise RuntimeError(f"Database migration failed: {sql_file.name}") from e
