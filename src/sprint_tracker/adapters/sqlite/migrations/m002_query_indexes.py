"""Migration 002: Add indexes for owner, creation-time and date-range queries."""

from __future__ import annotations

import sqlite3

from sprint_tracker.adapters.sqlite import schema
from sprint_tracker.adapters.sqlite.migrations.runner import Migration


class QueryIndexesMigration(Migration):
    """Add secondary indexes used by goal listing and current-sprint lookup."""

    @property
    def version(self) -> int:
        return 2

    @property
    def description(self) -> str:
        return "Add goal owner/creation and sprint date indexes"

    def up(self, connection: sqlite3.Connection) -> None:
        for index_sql in schema.QUERY_INDEXES:
            connection.execute(index_sql)


query_indexes_migration = QueryIndexesMigration()
