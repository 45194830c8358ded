"""Shared test fixtures and configuration.

Provides infrastructure to isolate tests from the real data directory and log
files, plus storage fixtures parametrized over every backend.
"""

from __future__ import annotations

import asyncio
from unittest.mock import patch

import pytest
import pytest_asyncio

from sprint_tracker.adapters.objectstore import ObjectStoreStorageAdapter
from sprint_tracker.adapters.sqlite import SqliteStorageAdapter
from sprint_tracker.config import get_settings
from sprint_tracker.services import StorageContext, open_storage
from sprint_tracker.services.storage_context import set_backend_override
from sprint_tracker.testing import InMemoryStorageAdapter

BACKENDS = ["sqlite-memory", "sqlite-file", "objectstore", "memory"]


# ---------------------------------------------------------------------------
# Environment isolation
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    """Point the data directory and the log directory at *tmp_path*.

    Also clears the settings cache and the CLI backend override so each test
    starts from the environment it sets up.
    """
    monkeypatch.setenv("SPRINT_TRACKER_DATA_DIR", str(tmp_path / "data"))
    monkeypatch.delenv("SPRINT_TRACKER_BACKEND", raising=False)
    get_settings.cache_clear()
    with patch("sprint_tracker.utils.logger.user_log_dir", return_value=str(tmp_path / "logs")):
        yield
    get_settings.cache_clear()
    set_backend_override(None)


# ---------------------------------------------------------------------------
# Storage fixtures
# ---------------------------------------------------------------------------


def make_adapter(kind: str, tmp_path):
    """Build an uninitialized adapter of the given kind."""
    if kind == "sqlite-memory":
        return SqliteStorageAdapter(":memory:")
    if kind == "sqlite-file":
        return SqliteStorageAdapter(tmp_path / "test.db")
    if kind == "objectstore":
        return ObjectStoreStorageAdapter(tmp_path / "test.json")
    if kind == "memory":
        return InMemoryStorageAdapter()
    raise ValueError(kind)


@pytest_asyncio.fixture(params=BACKENDS)
async def adapter(request, tmp_path):
    """An initialized adapter, once per backend."""
    adapter = make_adapter(request.param, tmp_path)
    await adapter.initialize()
    yield adapter
    await adapter.close()


@pytest_asyncio.fixture
async def storage(adapter):
    """Services bound to the parametrized adapter."""
    return StorageContext(adapter)


@pytest_asyncio.fixture
async def memory_storage():
    """Services over the in-memory adapter only."""
    adapter = InMemoryStorageAdapter()
    await adapter.initialize()
    yield StorageContext(adapter)
    await adapter.close()



@pytest.fixture
def on_disk():
    """Run ``func(storage)`` against the storage the CLI uses by default.

    Lets command tests seed data before invoking the app and inspect it after.
    """

    def run(func):
        async def go():
            async with open_storage() as storage:
                return await func(storage)

        return asyncio.run(go())

    return run
