"""Mindify persistence layer."""

from mindify.db.connection import Database
from mindify.db.migrations import MIGRATIONS, initialize, run_migrations
from mindify.db.repository import ItemNotFoundError, Repository, StorageFullError

__all__ = [
    "Database",
    "initialize",
    "run_migrations",
    "MIGRATIONS",
    "Repository",
    "ItemNotFoundError",
    "StorageFullError",
]
