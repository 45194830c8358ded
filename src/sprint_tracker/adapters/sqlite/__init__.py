"""SQLite adapter module - relational storage implementation."""

from sprint_tracker.adapters.sqlite.connection import open_connection, resolve_db_path
from sprint_tracker.adapters.sqlite.storage import SqliteStorageAdapter

__all__ = [
    "SqliteStorageAdapter",
    "open_connection",
    "resolve_db_path",
]
