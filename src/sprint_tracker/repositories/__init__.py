"""Storage interface for Sprint Tracker.

This package contains the abstract base class (ABC) that defines the contract
for data persistence. It is the "Port" in the Hexagonal Architecture.

Implementations (Adapters) are in:
- sprint_tracker.adapters.sqlite (relational storage)
- sprint_tracker.adapters.objectstore (embedded indexed object store)
- sprint_tracker.testing.memory_storage (in-memory, for tests)
"""

from .repository import StorageAdapter

__all__ = ["StorageAdapter"]
