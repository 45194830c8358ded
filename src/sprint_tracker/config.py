"""Configuration management for Sprint Tracker.

Settings come from the environment:

- ``SPRINT_TRACKER_DATA_DIR``: directory holding the data files
  (default: ``./data`` relative to the working directory)
- ``SPRINT_TRACKER_BACKEND``: ``sqlite`` (default), ``objectstore`` or ``memory``
"""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field

DATA_DIR_ENV = "SPRINT_TRACKER_DATA_DIR"
BACKEND_ENV = "SPRINT_TRACKER_BACKEND"

DEFAULT_DATA_DIR = "data"
SQLITE_FILENAME = "sprint-tracker.db"
OBJECTSTORE_FILENAME = "sprint-tracker.json"

BackendName = Literal["sqlite", "objectstore", "memory"]


class Settings(BaseModel):
    """Process-wide settings."""

    data_dir: Path = Field(default_factory=lambda: Path.cwd() / DEFAULT_DATA_DIR)
    backend: BackendName = Field(default="sqlite")

    @classmethod
    def from_env(cls) -> Settings:
        """Build settings from environment variables, falling back to defaults."""
        values: dict[str, object] = {}
        data_dir = os.environ.get(DATA_DIR_ENV)
        if data_dir:
            values["data_dir"] = Path(data_dir).expanduser()
        backend = os.environ.get(BACKEND_ENV)
        if backend:
            values["backend"] = backend.strip().lower()
        return cls(**values)

    @property
    def sqlite_path(self) -> Path:
        return self.data_dir / SQLITE_FILENAME

    @property
    def objectstore_path(self) -> Path:
        return self.data_dir / OBJECTSTORE_FILENAME

    def storage_path(self, backend: BackendName | None = None) -> Path | None:
        """Default file for a backend; None for the in-memory backend."""
        backend = backend or self.backend
        if backend == "sqlite":
            return self.sqlite_path
        if backend == "objectstore":
            return self.objectstore_path
        return None


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the cached settings instance."""
    return Settings.from_env()
