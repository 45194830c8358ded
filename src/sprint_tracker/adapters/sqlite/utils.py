"""Utility functions for SQLite adapter."""

from __future__ import annotations

import sqlite3
from typing import Any

from sprint_tracker.models import Goal, Sprint, SuccessCriterion

# Columns stored as INTEGER 0/1 (NULL allowed for behaald)
BOOLEAN_COLUMNS = frozenset({"behaald", "voltooid"})


def row_to_dict(row: Any) -> dict[str, Any]:
    """Convert sqlite3.Row to dictionary.

    Args:
        row: sqlite3.Row object

    Returns:
        Dictionary with column names as keys
    """
    if row is None:
        return {}
    return dict(row)


def to_db_value(column: str, value: Any) -> Any:
    """Convert a model value to its column representation."""
    if column in BOOLEAN_COLUMNS and value is not None:
        return 1 if value else 0
    return value


def from_db_value(column: str, value: Any) -> Any:
    """Convert a column value back to its model representation."""
    if column in BOOLEAN_COLUMNS and value is not None:
        return bool(value)
    return value


def _decode(row: sqlite3.Row) -> dict[str, Any]:
    return {key: from_db_value(key, value) for key, value in row_to_dict(row).items()}


def row_to_sprint(row: sqlite3.Row) -> Sprint:
    return Sprint.model_validate(_decode(row))


def row_to_goal(row: sqlite3.Row) -> Goal:
    return Goal.model_validate(_decode(row))


def row_to_criterion(row: sqlite3.Row) -> SuccessCriterion:
    return SuccessCriterion.model_validate(_decode(row))


def build_insert(table: str, record: dict[str, Any]) -> tuple[str, list[Any]]:
    """Build an INSERT statement for a record keyed by column name.

    Args:
        table: Target table
        record: Column names to values

    Returns:
        Tuple of (SQL string, parameters list)
    """
    columns = list(record)
    placeholders = ", ".join("?" for _ in columns)
    sql = f"INSERT INTO {table} ({', '.join(columns)}) VALUES ({placeholders})"
    return sql, [to_db_value(column, record[column]) for column in columns]


def build_update_clause(updates: dict[str, Any]) -> tuple[str, list[Any]]:
    """Build SQL UPDATE SET clause from updates dictionary.

    Unlike a filter, None is a real value here: it clears a nullable column.
    Callers pass only the fields that were explicitly set.

    Args:
        updates: Dictionary of column names to new values

    Returns:
        Tuple of (SET clause string, parameters list)
    """
    set_parts = []
    params = []

    for key, value in updates.items():
        set_parts.append(f"{key} = ?")
        params.append(to_db_value(key, value))

    set_clause = ", ".join(set_parts)
    return set_clause, params
