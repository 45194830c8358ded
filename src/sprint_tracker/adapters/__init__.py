"""Adapters module - StorageAdapter implementations for different backends.

This package contains concrete implementations (adapters) of the storage contract:
- sqlite: Relational SQLite database storage
- objectstore: Embedded indexed object store in a single JSON file

The in-memory test backend lives in ``sprint_tracker.testing``.
"""

from .objectstore import ObjectStoreStorageAdapter
from .sqlite import SqliteStorageAdapter

__all__ = [
    "SqliteStorageAdapter",
    "ObjectStoreStorageAdapter",
]
