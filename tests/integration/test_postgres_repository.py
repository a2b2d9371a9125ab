"""
Integration tests for PostgresUserRegistry.

Tests registry operations against a real PostgreSQL database.
Requires PostgreSQL to be running (DATABASE_URL).
"""

import asyncio
from uuid import uuid4

import pytest

from src.adapters.repository.postgres import PostgresUserRegistry, run_migrations
from src.domain.exceptions import (
    EmailAlreadyExists,
    IDAlreadyExists,
    StorageTimeout,
    UserNotFound,
)
from src.domain.user import User

pytestmark = pytest.mark.integration


def make_user(email: str = "alice@example.com", **overrides) -> User:
    fields = {"id": uuid4(), "name": "Alice", "email": email, "birthday": "1999-12-31"}
    fields.update(overrides)
    return User(**fields)


async def count_users(registry: PostgresUserRegistry, email: str) -> int:
    async with registry.primary.connection() as conn, conn.cursor() as cursor:
        await cursor.execute("SELECT COUNT(*) FROM users WHERE email = %s", (email,))
        row = await cursor.fetchone()
    return row[0]


class TestGetUser:
    """Tests for get_user."""

    def test_unknown_email_raises_not_found(self, run_with_registry) -> None:
        async def scenario(registry: PostgresUserRegistry) -> None:
            with pytest.raises(UserNotFound):
                await registry.get_user("nobody@example.com")

        run_with_registry(scenario)

    def test_round_trip(self, run_with_registry) -> None:
        """Created user comes back with equal id, name, email and birthday string."""
        user = make_user(name="Alice Liddell", birthday="2024-01-05")

        async def scenario(registry: PostgresUserRegistry) -> User:
            await registry.create_user(user)
            return await registry.get_user(user.email)

        assert run_with_registry(scenario) == user


class TestCreateUser:
    """Tests for create_user uniqueness handling."""

    def test_duplicate_email_keeps_first(self, run_with_registry) -> None:
        first = make_user(name="First")
        second = make_user(name="Second")

        async def scenario(registry: PostgresUserRegistry) -> User:
            await registry.create_user(first)
            with pytest.raises(EmailAlreadyExists):
                await registry.create_user(second)
            assert await count_users(registry, first.email) == 1
            return await registry.get_user(first.email)

        assert run_with_registry(scenario) == first

    def test_duplicate_id(self, run_with_registry) -> None:
        shared_id = uuid4()

        async def scenario(registry: PostgresUserRegistry) -> None:
            await registry.create_user(make_user("a@example.com", id=shared_id))
            with pytest.raises(IDAlreadyExists):
                await registry.create_user(make_user("b@example.com", id=shared_id))
            with pytest.raises(UserNotFound):
                await registry.get_user("b@example.com")

        run_with_registry(scenario)

    def test_registry_usable_after_conflict(self, run_with_registry) -> None:
        """A failed insert does not poison the pooled connection."""

        async def scenario(registry: PostgresUserRegistry) -> None:
            await registry.create_user(make_user("a@example.com"))
            with pytest.raises(EmailAlreadyExists):
                await registry.create_user(make_user("a@example.com"))
            await registry.create_user(make_user("b@example.com"))
            assert (await registry.get_user("b@example.com")).email == "b@example.com"

        run_with_registry(scenario)


class TestConcurrentCreates:
    """Concurrent creates are resolved by the database constraint."""

    def test_concurrent_creates_exactly_one_succeeds(self, run_with_registry) -> None:
        attempts = 5

        async def scenario(registry: PostgresUserRegistry) -> list:
            users = [make_user("race@example.com", name=f"Racer {i}") for i in range(attempts)]
            results = await asyncio.gather(
                *(registry.create_user(u) for u in users), return_exceptions=True
            )
            assert await count_users(registry, "race@example.com") == 1
            return results

        results = run_with_registry(scenario, max_size=attempts)

        assert results.count(None) == 1
        assert sum(isinstance(r, EmailAlreadyExists) for r in results) == attempts - 1


class TestDeadline:
    """Queries past the deadline are cancelled server-side."""

    def test_slow_query_times_out_and_pool_recovers(self, run_with_registry) -> None:
        async def scenario(registry: PostgresUserRegistry) -> None:
            async def slow() -> None:
                async with registry.replica.connection() as conn:
                    await conn.execute("SELECT pg_sleep(5)")

            with pytest.raises(StorageTimeout):
                await registry._with_deadline(slow())

            with pytest.raises(UserNotFound):
                await registry.get_user("after-timeout@example.com")

        run_with_registry(scenario, query_timeout=0.2)


class TestReplicaSplit:
    """Reads through a separate replica pool."""

    def test_separate_replica_pool(self, run_with_registry, database_url: str) -> None:
        user = make_user()

        async def scenario(registry: PostgresUserRegistry) -> User:
            split = await PostgresUserRegistry.connect(database_url, database_url, min_size=1)
            try:
                assert split.replica is not split.primary
                await split.create_user(user)
                return await split.get_user(user.email)
            finally:
                await split.close()

        assert run_with_registry(scenario) == user


class TestMigrations:
    """Tests for run_migrations against PostgreSQL."""

    def test_migrations_are_idempotent(self, run_with_registry) -> None:
        async def scenario(registry: PostgresUserRegistry) -> list:
            await run_migrations(registry.primary)
            async with registry.primary.connection() as conn, conn.cursor() as cursor:
                await cursor.execute(
                    "SELECT conname FROM pg_constraint "
                    "WHERE conrelid = 'users'::regclass AND contype = 'u' ORDER BY conname"
                )
                return [row[0] for row in await cursor.fetchall()]

        assert run_with_registry(scenario) == ["users_email_key", "users_id_key"]
