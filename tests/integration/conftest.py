"""
Shared fixtures for integration tests.

Integration tests run against a real PostgreSQL reachable at
settings.database_url and are skipped when it is not reachable.
Each test opens its own pools inside the event loop it runs in.
"""

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any

import psycopg
import pytest

from src.adapters.repository.postgres import PostgresUserRegistry, run_migrations
from src.config.settings import get_settings


@pytest.fixture(scope="session")
def database_url() -> str:
    """Database URL from settings; skips the test when PostgreSQL is down."""
    url = get_settings().database_url
    try:
        with psycopg.connect(url, connect_timeout=3):
            pass
    except psycopg.OperationalError as e:
        pytest.skip(f"PostgreSQL not reachable: {e}")
    return url


@pytest.fixture
def run_with_registry(database_url: str) -> Callable[..., Any]:
    """
    Run an async scenario against a migrated, empty users table.

    The scenario receives an open PostgresUserRegistry; extra keyword
    arguments are passed to PostgresUserRegistry.connect.
    """

    def run(scenario: Callable[[PostgresUserRegistry], Awaitable[Any]], **connect_kwargs: Any) -> Any:
        async def main() -> Any:
            connect_kwargs.setdefault("min_size", 1)
            registry = await PostgresUserRegistry.connect(database_url, **connect_kwargs)
            try:
                await run_migrations(registry.primary)
                async with registry.primary.connection() as conn:
                    await conn.execute("DELETE FROM users")
                return await scenario(registry)
            finally:
                await registry.close()

        return asyncio.run(main())

    return run
