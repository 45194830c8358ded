"""Migration framework for SQLite database schema evolution.

This module provides a simple migration system with:
- Sequential version-based migrations
- Forward-only, additive migrations
- Migration tracking in the schema_version table
- Automatic execution when the adapter is initialised

The connection is expected to run in autocommit mode
(``isolation_level=None``); every migration runs inside its own explicit
transaction together with its schema_version record.
"""

from __future__ import annotations

import logging
import sqlite3
from abc import ABC, abstractmethod
from datetime import UTC, datetime

from sprint_tracker.exceptions import MigrationError

logger = logging.getLogger(__name__)


class Migration(ABC):
    """Base class for database migrations."""

    @property
    @abstractmethod
    def version(self) -> int:
        """Migration version number (sequential)."""

    @property
    @abstractmethod
    def description(self) -> str:
        """Human-readable description of the migration."""

    @abstractmethod
    def up(self, connection: sqlite3.Connection) -> None:
        """Execute forward migration.

        Args:
            connection: Database connection, inside an open transaction
        """


class MigrationRunner:
    """Manages and executes database migrations."""

    def __init__(self, connection: sqlite3.Connection):
        """Initialize migration runner.

        Args:
            connection: Database connection in autocommit mode
        """
        self.connection = connection
        self._ensure_version_table()

    def _ensure_version_table(self) -> None:
        """Create schema_version table if it doesn't exist."""
        self.connection.execute("""
            CREATE TABLE IF NOT EXISTS schema_version (
                version INTEGER PRIMARY KEY,
                description TEXT NOT NULL,
                applied_at TEXT NOT NULL
            )
        """)

    def get_current_version(self) -> int:
        """Get current database schema version.

        Returns:
            Current version number (0 if no migrations applied)
        """
        cursor = self.connection.execute("SELECT MAX(version) FROM schema_version")
        result = cursor.fetchone()[0]
        return result if result is not None else 0

    def run_migration(self, migration: Migration) -> None:
        """Run a single migration.

        Args:
            migration: Migration to execute

        Raises:
            ValueError: If migration version is not greater than current version
            MigrationError: If the migration fails; nothing of it is kept
        """
        current_version = self.get_current_version()

        if migration.version <= current_version:
            raise ValueError(
                f"Migration version {migration.version} is not greater than "
                f"current version {current_version}"
            )

        self.connection.execute("BEGIN IMMEDIATE")
        try:
            migration.up(self.connection)

            now = datetime.now(UTC).isoformat()
            self.connection.execute(
                """
                INSERT INTO schema_version (version, description, applied_at)
                VALUES (?, ?, ?)
                """,
                (migration.version, migration.description, now),
            )

            self.connection.execute("COMMIT")
        except Exception as e:
            self.connection.execute("ROLLBACK")
            raise MigrationError(f"Migration {migration.version} failed: {str(e)}") from e

        logger.info("applied migration %d: %s", migration.version, migration.description)

    def run_migrations(self, migrations: list[Migration]) -> int:
        """Run all pending migrations.

        Args:
            migrations: List of migrations to potentially run

        Returns:
            Number of migrations applied
        """
        current_version = self.get_current_version()

        sorted_migrations = sorted(migrations, key=lambda m: m.version)
        pending = [m for m in sorted_migrations if m.version > current_version]

        for migration in pending:
            self.run_migration(migration)

        return len(pending)


def get_current_version(connection: sqlite3.Connection) -> int:
    """Helper function to get current schema version."""
    runner = MigrationRunner(connection)
    return runner.get_current_version()


def run_migrations(connection: sqlite3.Connection, migrations: list[Migration]) -> int:
    """Helper function to run migrations.

    Args:
        connection: Database connection
        migrations: List of migrations

    Returns:
        Number of migrations applied
    """
    runner = MigrationRunner(connection)
    return runner.run_migrations(migrations)
