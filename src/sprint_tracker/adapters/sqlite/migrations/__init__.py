"""Database migration system for the SQLite backend."""

from .m001_initial_schema import initial_migration
from .m002_query_indexes import query_indexes_migration
from .runner import (
    Migration,
    MigrationRunner,
    get_current_version,
    run_migrations,
)

# All migrations in order
ALL_MIGRATIONS: list[Migration] = [
    initial_migration,
    query_indexes_migration,
]

__all__ = [
    "ALL_MIGRATIONS",
    "Migration",
    "MigrationRunner",
    "get_current_version",
    "run_migrations",
    "initial_migration",
    "query_indexes_migration",
]
