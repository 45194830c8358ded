"""Embedded object store adapter - single-file indexed storage implementation."""

from sprint_tracker.adapters.objectstore.storage import (
    SCHEMA_VERSION,
    STORES,
    ObjectStoreStorageAdapter,
)
from sprint_tracker.adapters.objectstore.store import (
    ConstraintError,
    ObjectDatabase,
    ObjectStore,
)

__all__ = [
    "ObjectStoreStorageAdapter",
    "ObjectDatabase",
    "ObjectStore",
    "ConstraintError",
    "SCHEMA_VERSION",
    "STORES",
]
