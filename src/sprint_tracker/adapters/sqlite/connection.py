"""Database connection management for the SQLite backend.

Each adapter owns its connection; there is no process-wide singleton, so
several databases (and ``:memory:`` databases in tests) can be open at once.
"""

from __future__ import annotations

import logging
import os
import sqlite3
from pathlib import Path

from sprint_tracker.adapters.sqlite.migrations import ALL_MIGRATIONS, MigrationRunner
from sprint_tracker.config import get_settings

logger = logging.getLogger(__name__)

MEMORY_DATABASE = ":memory:"


def resolve_db_path(db_path: str | Path | None = None) -> str:
    """Resolve the database location.

    Args:
        db_path: Explicit path, ``":memory:"``, or None for the configured
            default (``$SPRINT_TRACKER_DATA_DIR/sprint-tracker.db``)

    Returns:
        Path string suitable for ``sqlite3.connect``
    """
    if db_path is None:
        db_path = get_settings().sqlite_path
    if str(db_path) == MEMORY_DATABASE:
        return MEMORY_DATABASE
    return str(Path(db_path).expanduser())


def open_connection(db_path: str | Path | None = None) -> sqlite3.Connection:
    """Open and configure a connection, then bring the schema up to date.

    The connection runs in autocommit mode (``isolation_level=None``) so that
    transactions are only ever opened explicitly by the adapter.

    Args:
        db_path: See :func:`resolve_db_path`

    Returns:
        Configured sqlite3.Connection
    """
    path = resolve_db_path(db_path)
    is_new_database = False

    if path != MEMORY_DATABASE:
        file_path = Path(path)
        # Create data directory if it doesn't exist
        file_path.parent.mkdir(parents=True, exist_ok=True)
        is_new_database = not file_path.exists()

    connection = sqlite3.connect(
        path,
        timeout=30.0,  # Wait up to 30s for locks
        isolation_level=None,
    )

    # Configure connection
    connection.row_factory = sqlite3.Row  # Enable dict-like access
    connection.execute("PRAGMA foreign_keys = ON")  # Enforce foreign keys
    if path != MEMORY_DATABASE:
        connection.execute("PRAGMA journal_mode = WAL")  # Write-Ahead Logging

    # Set file permissions (owner read/write only)
    if is_new_database:
        os.chmod(path, 0o600)

    try:
        applied = MigrationRunner(connection).run_migrations(ALL_MIGRATIONS)
    except Exception:
        connection.close()
        raise

    if applied:
        logger.info("database %s migrated (%d migration(s) applied)", path, applied)
    return connection
