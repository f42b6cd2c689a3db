"""Search index storage layer."""

from omakure.db.connection import Database
from omakure.db.migrations import MIGRATIONS, run_migrations
from omakure.db.repository import SearchRepository

__all__ = [
    "Database",
    "run_migrations",
    "MIGRATIONS",
    "SearchRepository",
]
