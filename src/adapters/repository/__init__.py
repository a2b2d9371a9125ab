"""Repository adapters - UserRegistry implementations."""

from .memory import InMemoryUserRegistry
from .postgres import PostgresUserRegistry, classify_unique_violation, run_migrations

__all__ = [
    "InMemoryUserRegistry",
    "PostgresUserRegistry",
    "classify_unique_violation",
    "run_migrations",
]
