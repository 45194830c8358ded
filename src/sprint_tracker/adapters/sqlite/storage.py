"""SQLite implementation of StorageAdapter."""

from __future__ import annotations

import logging
import sqlite3
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, TypeVar

from sprint_tracker.adapters.sqlite.connection import open_connection, resolve_db_path
from sprint_tracker.adapters.sqlite.utils import (
    build_insert,
    build_update_clause,
    row_to_criterion,
    row_to_goal,
    row_to_sprint,
)
from sprint_tracker.exceptions import StorageError
from sprint_tracker.models import (
    CriterionUpdate,
    Goal,
    GoalUpdate,
    Sprint,
    SprintUpdate,
    SuccessCriterion,
)
from sprint_tracker.repositories import StorageAdapter

logger = logging.getLogger(__name__)

T = TypeVar("T")

GOAL_ORDER = "ORDER BY aangemaakt_op, rowid"


class SqliteStorageAdapter(StorageAdapter):
    """SQLite implementation of the storage contract.

    The connection runs in autocommit mode; every multi-statement operation
    opens an explicit ``BEGIN IMMEDIATE`` transaction (or a ``SAVEPOINT``
    when one is already open), awaits its work and only then commits.
    """

    def __init__(self, db_path: str | Path | None = None):
        """Initialize SQLite storage adapter.

        Args:
            db_path: Database file path, ``":memory:"``, or None for the
                configured default location.
        """
        self.db_path = resolve_db_path(db_path)
        self._connection: sqlite3.Connection | None = None
        self._depth = 0

    @property
    def storage_type(self) -> str:
        return "sqlite"

    @property
    def connection(self) -> sqlite3.Connection:
        """Get the open database connection."""
        if self._connection is None:
            raise StorageError("SQLite storage is not initialized")
        return self._connection

    async def initialize(self) -> None:
        if self._connection is not None:
            return
        self._connection = open_connection(self.db_path)
        logger.debug("opened sqlite storage at %s", self.db_path)

    async def close(self) -> None:
        if self._connection is None:
            return
        self._connection.close()
        self._connection = None
        self._depth = 0
        logger.debug("closed sqlite storage at %s", self.db_path)

    # ------------------------------------------------------------------
    # Statement helpers
    # ------------------------------------------------------------------

    def _execute(self, sql: str, params: list[Any] | tuple = ()) -> sqlite3.Cursor:
        try:
            return self.connection.execute(sql, params)
        except sqlite3.IntegrityError as e:
            raise StorageError(f"Constraint violation: {e}") from e
        except OverflowError as e:
            raise StorageError(f"Value out of range: {e}") from e

    def _fetch_one(self, sql: str, params: list[Any] | tuple = ()) -> sqlite3.Row | None:
        return self._execute(sql, params).fetchone()

    def _fetch_all(self, sql: str, params: list[Any] | tuple = ()) -> list[sqlite3.Row]:
        return self._execute(sql, params).fetchall()

    def _insert(self, table: str, record: dict[str, Any]) -> None:
        sql, params = build_insert(table, record)
        self._execute(sql, params)

    def _update(self, table: str, entity_id: str, updates: dict[str, Any]) -> None:
        if not updates:
            return
        set_clause, params = build_update_clause(updates)
        params.append(entity_id)
        self._execute(f"UPDATE {table} SET {set_clause} WHERE id = ?", params)

    @asynccontextmanager
    async def _atomic(self) -> AsyncIterator[None]:
        """Open a transaction, or a savepoint inside an open one."""
        savepoint = f"sp_{self._depth}" if self._depth else None
        if savepoint:
            self._execute(f"SAVEPOINT {savepoint}")
        else:
            self._execute("BEGIN IMMEDIATE")
        self._depth += 1
        try:
            yield
        except BaseException:
            self._depth -= 1
            if savepoint:
                self._execute(f"ROLLBACK TO SAVEPOINT {savepoint}")
                self._execute(f"RELEASE SAVEPOINT {savepoint}")
            else:
                self._execute("ROLLBACK")
                logger.warning("sqlite transaction rolled back")
            raise
        self._depth -= 1
        if savepoint:
            self._execute(f"RELEASE SAVEPOINT {savepoint}")
        else:
            self._execute("COMMIT")

    # ------------------------------------------------------------------
    # Sprints
    # ------------------------------------------------------------------

    async def create_sprint(self, sprint: Sprint) -> None:
        self._insert("sprint", sprint.to_record())

    async def get_sprint_by_id(self, sprint_id: str) -> Sprint | None:
        row = self._fetch_one("SELECT * FROM sprint WHERE id = ?", (sprint_id,))
        return row_to_sprint(row) if row else None

    async def get_sprint_by_number(self, number: int) -> Sprint | None:
        row = self._fetch_one("SELECT * FROM sprint WHERE volgnummer = ?", (number,))
        return row_to_sprint(row) if row else None

    async def get_all_sprints(self) -> list[Sprint]:
        rows = self._fetch_all("SELECT * FROM sprint ORDER BY volgnummer")
        return [row_to_sprint(row) for row in rows]

    async def update_sprint(self, sprint_id: str, updates: SprintUpdate) -> None:
        self._update("sprint", sprint_id, updates.model_dump(by_alias=True, exclude_unset=True))

    async def delete_sprint(self, sprint_id: str) -> bool:
        async with self._atomic():
            if not await self.sprint_exists(sprint_id):
                return False
            self._execute(
                """
                DELETE FROM success_criterion
                WHERE goal_id IN (SELECT id FROM goal WHERE sprint_id = ?)
                """,
                (sprint_id,),
            )
            goals = self._execute("DELETE FROM goal WHERE sprint_id = ?", (sprint_id,)).rowcount
            self._execute("DELETE FROM sprint WHERE id = ?", (sprint_id,))
        logger.info("deleted sprint %s with %d goal(s)", sprint_id, goals)
        return True

    async def get_max_sprint_number(self) -> int | None:
        row = self._fetch_one("SELECT MAX(volgnummer) AS max_number FROM sprint")
        return row["max_number"] if row else None

    async def get_current_sprint(self, today: str) -> Sprint | None:
        row = self._fetch_one(
            """
            SELECT * FROM sprint
            WHERE startdatum <= ? AND einddatum >= ?
            ORDER BY volgnummer DESC
            LIMIT 1
            """,
            (today, today),
        )
        return row_to_sprint(row) if row else None

    async def get_latest_sprint(self) -> Sprint | None:
        row = self._fetch_one("SELECT * FROM sprint ORDER BY volgnummer DESC LIMIT 1")
        return row_to_sprint(row) if row else None

    async def sprint_exists(self, sprint_id: str) -> bool:
        return self._fetch_one("SELECT 1 FROM sprint WHERE id = ?", (sprint_id,)) is not None

    # ------------------------------------------------------------------
    # Goals
    # ------------------------------------------------------------------

    async def create_goal(self, goal: Goal) -> None:
        self._insert("goal", goal.to_record())

    async def get_goal_by_id(self, goal_id: str) -> Goal | None:
        row = self._fetch_one("SELECT * FROM goal WHERE id = ?", (goal_id,))
        return row_to_goal(row) if row else None

    async def get_goals_by_sprint_id(self, sprint_id: str) -> list[Goal]:
        rows = self._fetch_all(f"SELECT * FROM goal WHERE sprint_id = ? {GOAL_ORDER}", (sprint_id,))
        return [row_to_goal(row) for row in rows]

    async def get_goals_by_owner(self, owner: str) -> list[Goal]:
        rows = self._fetch_all(f"SELECT * FROM goal WHERE eigenaar = ? {GOAL_ORDER}", (owner,))
        return [row_to_goal(row) for row in rows]

    async def get_all_goals(self) -> list[Goal]:
        rows = self._fetch_all(f"SELECT * FROM goal {GOAL_ORDER}")
        return [row_to_goal(row) for row in rows]

    async def update_goal(self, goal_id: str, updates: GoalUpdate) -> None:
        self._update("goal", goal_id, updates.model_dump(by_alias=True, exclude_unset=True))

    async def delete_goal(self, goal_id: str) -> bool:
        async with self._atomic():
            if not await self.goal_exists(goal_id):
                return False
            self._execute("DELETE FROM success_criterion WHERE goal_id = ?", (goal_id,))
            self._execute("DELETE FROM goal WHERE id = ?", (goal_id,))
        return True

    async def goal_exists(self, goal_id: str) -> bool:
        return self._fetch_one("SELECT 1 FROM goal WHERE id = ?", (goal_id,)) is not None

    # ------------------------------------------------------------------
    # Success criteria
    # ------------------------------------------------------------------

    async def create_criterion(self, criterion: SuccessCriterion) -> None:
        self._insert("success_criterion", criterion.to_record())

    async def get_criterion_by_id(self, criterion_id: str) -> SuccessCriterion | None:
        row = self._fetch_one("SELECT * FROM success_criterion WHERE id = ?", (criterion_id,))
        return row_to_criterion(row) if row else None

    async def get_criteria_by_goal_id(self, goal_id: str) -> list[SuccessCriterion]:
        rows = self._fetch_all(
            "SELECT * FROM success_criterion WHERE goal_id = ? ORDER BY rowid", (goal_id,)
        )
        return [row_to_criterion(row) for row in rows]

    async def update_criterion(self, criterion_id: str, updates: CriterionUpdate) -> None:
        self._update(
            "success_criterion",
            criterion_id,
            updates.model_dump(by_alias=True, exclude_unset=True),
        )

    async def delete_criterion(self, criterion_id: str) -> bool:
        cursor = self._execute("DELETE FROM success_criterion WHERE id = ?", (criterion_id,))
        return cursor.rowcount > 0

    async def criterion_exists(self, criterion_id: str) -> bool:
        row = self._fetch_one("SELECT 1 FROM success_criterion WHERE id = ?", (criterion_id,))
        return row is not None

    # ------------------------------------------------------------------
    # Bulk and transactions
    # ------------------------------------------------------------------

    async def clear_all(self) -> None:
        async with self._atomic():
            self._execute("DELETE FROM success_criterion")
            self._execute("DELETE FROM goal")
            self._execute("DELETE FROM sprint")
        logger.info("cleared all sqlite data")

    async def transaction(self, work: Callable[[], Awaitable[T]]) -> T:
        async with self._atomic():
            return await work()
