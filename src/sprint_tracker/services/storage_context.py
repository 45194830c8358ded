"""Storage context: one adapter plus the services built on it.

The backend is chosen once, when the context is created, and injected into
every service. Services never know which backend they are using.

Usage:
    async with open_storage("sqlite") as storage:
        sprint = await storage.sprints.create()
        await storage.goals.create(sprint_id=sprint.id, ...)
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from contextvars import ContextVar
from pathlib import Path

from sprint_tracker.config import BackendName, get_settings
from sprint_tracker.repositories import StorageAdapter
from sprint_tracker.services.criterion_service import CriterionService
from sprint_tracker.services.export_service import ExportService
from sprint_tracker.services.goal_service import GoalService
from sprint_tracker.services.sprint_service import SprintService

logger = logging.getLogger(__name__)


def create_adapter(backend: BackendName | None = None, path: str | Path | None = None) -> StorageAdapter:
    """Instantiate the adapter for a backend (not yet initialized).

    Args:
        backend: ``sqlite``, ``objectstore`` or ``memory``; None uses settings
        path: Storage file; None uses the configured default for the backend
    """
    settings = get_settings()
    backend = backend or settings.backend

    # Import here to keep backends independent of each other
    if backend == "sqlite":
        from sprint_tracker.adapters.sqlite import SqliteStorageAdapter

        return SqliteStorageAdapter(path or settings.sqlite_path)
    if backend == "objectstore":
        from sprint_tracker.adapters.objectstore import ObjectStoreStorageAdapter

        return ObjectStoreStorageAdapter(path or settings.objectstore_path)
    if backend == "memory":
        from sprint_tracker.testing import InMemoryStorageAdapter

        return InMemoryStorageAdapter()
    raise ValueError(f"Unknown storage backend: {backend}")


class StorageContext:
    """Single access point to the services for one storage adapter.

    The context owns the adapter's lifecycle: ``async with`` initializes it
    and closes it again.
    """

    def __init__(self, adapter: StorageAdapter):
        """Initialize storage context.

        Args:
            adapter: Storage adapter every service will use
        """
        self.adapter = adapter
        self.sprints = SprintService(adapter)
        self.goals = GoalService(adapter)
        self.criteria = CriterionService(adapter)
        self.exports = ExportService(adapter)

    @property
    def storage_type(self) -> str:
        """Get storage type (for logging/debugging only)."""
        return self.adapter.storage_type

    async def open(self) -> StorageContext:
        await self.adapter.initialize()
        logger.debug("storage context opened (%s)", self.storage_type)
        return self

    async def close(self) -> None:
        await self.adapter.close()

    async def __aenter__(self) -> StorageContext:
        return await self.open()

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()


def open_storage(backend: BackendName | None = None, path: str | Path | None = None) -> StorageContext:
    """Build a storage context for the selected backend.

    Use as ``async with open_storage(...) as storage:``.
    """
    return StorageContext(create_adapter(backend, path))


# Storage of the command currently running, set by ``use_storage``
_current_storage: ContextVar[StorageContext | None] = ContextVar("current_storage", default=None)
_backend_override: BackendName | None = None


def set_backend_override(backend: BackendName | None) -> None:
    """Select the backend for subsequent commands (None: use settings)."""
    global _backend_override
    _backend_override = backend


def get_backend_override() -> BackendName | None:
    return _backend_override


@asynccontextmanager
async def use_storage(path: str | Path | None = None) -> AsyncIterator[StorageContext]:
    """Open the selected storage and make it the current one while the block runs."""
    async with open_storage(_backend_override, path) as storage:
        token = _current_storage.set(storage)
        try:
            yield storage
        finally:
            _current_storage.reset(token)


def get_storage_context() -> StorageContext:
    """Get the storage context of the running command.

    Raises:
        RuntimeError: If called outside ``use_storage``
    """
    storage = _current_storage.get()
    if storage is None:
        raise RuntimeError("No storage is open")
    return storage
