"""Repository adapters - Database and in-memory implementations."""

from .memory import InMemoryPendingAccountStore, InMemorySessionStore
from .postgres import PostgresPendingAccountStore, PostgresSessionStore, run_migrations

__all__ = [
    "InMemoryPendingAccountStore",
    "InMemorySessionStore",
    "PostgresPendingAccountStore",
    "PostgresSessionStore",
    "run_migrations",
]
