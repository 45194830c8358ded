"""Object store implementation of StorageAdapter."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import TypeVar

from sprint_tracker.adapters.objectstore.store import ObjectDatabase
from sprint_tracker.config import get_settings
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

# Bump whenever a store or index below changes. Version 1 had a non-unique
# volgnummer index.
SCHEMA_VERSION = 2

SPRINTS = "sprints"
GOALS = "goals"
CRITERIA = "criteria"

STORES = {
    SPRINTS: "id, &volgnummer, startdatum, einddatum",
    GOALS: "id, sprint_id, eigenaar, aangemaakt_op",
    CRITERIA: "id, goal_id",
}

MEMORY_PATH = ":memory:"


def _goal_order(records: list[dict]) -> list[dict]:
    # Stable: ties keep insertion order
    return sorted(records, key=lambda record: record["aangemaakt_op"])


class ObjectStoreStorageAdapter(StorageAdapter):
    """Storage adapter backed by the embedded indexed object store."""

    def __init__(self, path: str | Path | None = None):
        """Initialize object store adapter.

        Args:
            path: JSON file to persist to, ``":memory:"`` for a non-persistent
                store, or None for the configured default location.
        """
        if path is None:
            path = get_settings().objectstore_path
        self.path = None if str(path) == MEMORY_PATH else Path(path).expanduser()
        self._db: ObjectDatabase | None = None

    @property
    def storage_type(self) -> str:
        return "objectstore"

    @property
    def db(self) -> ObjectDatabase:
        if self._db is None:
            raise StorageError("Object store is not initialized")
        return self._db

    async def initialize(self) -> None:
        if self._db is not None:
            return
        db = ObjectDatabase(self.path, SCHEMA_VERSION, STORES)
        db.open()
        self._db = db
        logger.debug("opened object store at %s", self.path or MEMORY_PATH)

    async def close(self) -> None:
        if self._db is None:
            return
        self._db.close()
        self._db = None
        logger.debug("closed object store at %s", self.path or MEMORY_PATH)

    # ------------------------------------------------------------------
    # Sprints
    # ------------------------------------------------------------------

    async def create_sprint(self, sprint: Sprint) -> None:
        self.db.table(SPRINTS).add(sprint.to_record())

    async def get_sprint_by_id(self, sprint_id: str) -> Sprint | None:
        record = self.db.table(SPRINTS).get(sprint_id)
        return Sprint.model_validate(record) if record else None

    async def get_sprint_by_number(self, number: int) -> Sprint | None:
        records = self.db.table(SPRINTS).where("volgnummer").equals(number)
        return Sprint.model_validate(records[0]) if records else None

    async def get_all_sprints(self) -> list[Sprint]:
        records = self.db.table(SPRINTS).order_by("volgnummer")
        return [Sprint.model_validate(record) for record in records]

    async def update_sprint(self, sprint_id: str, updates: SprintUpdate) -> None:
        changes = updates.model_dump(by_alias=True, exclude_unset=True)
        if changes:
            self.db.table(SPRINTS).update(sprint_id, changes)

    async def delete_sprint(self, sprint_id: str) -> bool:
        async with self.db.transaction(SPRINTS, GOALS, CRITERIA):
            sprints = self.db.table(SPRINTS)
            if sprints.get(sprint_id) is None:
                return False
            goals = self.db.table(GOALS)
            criteria = self.db.table(CRITERIA)
            goal_ids = [goal["id"] for goal in goals.where("sprint_id").equals(sprint_id)]
            for goal_id in goal_ids:
                criteria.bulk_delete(c["id"] for c in criteria.where("goal_id").equals(goal_id))
            goals.bulk_delete(goal_ids)
            sprints.delete(sprint_id)
        logger.info("deleted sprint %s with %d goal(s)", sprint_id, len(goal_ids))
        return True

    async def get_max_sprint_number(self) -> int | None:
        latest = await self.get_latest_sprint()
        return latest.number if latest else None

    async def get_current_sprint(self, today: str) -> Sprint | None:
        # Index scan on the start date, then filter on the end date in memory
        started = self.db.table(SPRINTS).where("startdatum").below_or_equal(today)
        running = [record for record in started if record["einddatum"] >= today]
        if not running:
            return None
        return Sprint.model_validate(max(running, key=lambda record: record["volgnummer"]))

    async def get_latest_sprint(self) -> Sprint | None:
        records = self.db.table(SPRINTS).order_by("volgnummer", reverse=True)
        return Sprint.model_validate(records[0]) if records else None

    async def sprint_exists(self, sprint_id: str) -> bool:
        return self.db.table(SPRINTS).get(sprint_id) is not None

    # ------------------------------------------------------------------
    # Goals
    # ------------------------------------------------------------------

    async def create_goal(self, goal: Goal) -> None:
        if self.db.table(SPRINTS).get(goal.sprint_id) is None:
            raise StorageError(f"Sprint {goal.sprint_id} does not exist")
        self.db.table(GOALS).add(goal.to_record())

    async def get_goal_by_id(self, goal_id: str) -> Goal | None:
        record = self.db.table(GOALS).get(goal_id)
        return Goal.model_validate(record) if record else None

    async def get_goals_by_sprint_id(self, sprint_id: str) -> list[Goal]:
        records = self.db.table(GOALS).where("sprint_id").equals(sprint_id)
        return [Goal.model_validate(record) for record in _goal_order(records)]

    async def get_goals_by_owner(self, owner: str) -> list[Goal]:
        records = self.db.table(GOALS).where("eigenaar").equals(owner)
        return [Goal.model_validate(record) for record in _goal_order(records)]

    async def get_all_goals(self) -> list[Goal]:
        records = self.db.table(GOALS).order_by("aangemaakt_op")
        return [Goal.model_validate(record) for record in records]

    async def update_goal(self, goal_id: str, updates: GoalUpdate) -> None:
        changes = updates.model_dump(by_alias=True, exclude_unset=True)
        if changes:
            self.db.table(GOALS).update(goal_id, changes)

    async def delete_goal(self, goal_id: str) -> bool:
        async with self.db.transaction(GOALS, CRITERIA):
            goals = self.db.table(GOALS)
            if goals.get(goal_id) is None:
                return False
            criteria = self.db.table(CRITERIA)
            criteria.bulk_delete(c["id"] for c in criteria.where("goal_id").equals(goal_id))
            goals.delete(goal_id)
        return True

    async def goal_exists(self, goal_id: str) -> bool:
        return self.db.table(GOALS).get(goal_id) is not None

    # ------------------------------------------------------------------
    # Success criteria
    # ------------------------------------------------------------------

    async def create_criterion(self, criterion: SuccessCriterion) -> None:
        if self.db.table(GOALS).get(criterion.goal_id) is None:
            raise StorageError(f"Goal {criterion.goal_id} does not exist")
        self.db.table(CRITERIA).add(criterion.to_record())

    async def get_criterion_by_id(self, criterion_id: str) -> SuccessCriterion | None:
        record = self.db.table(CRITERIA).get(criterion_id)
        return SuccessCriterion.model_validate(record) if record else None

    async def get_criteria_by_goal_id(self, goal_id: str) -> list[SuccessCriterion]:
        records = self.db.table(CRITERIA).where("goal_id").equals(goal_id)
        return [SuccessCriterion.model_validate(record) for record in records]

    async def update_criterion(self, criterion_id: str, updates: CriterionUpdate) -> None:
        changes = updates.model_dump(by_alias=True, exclude_unset=True)
        if changes:
            self.db.table(CRITERIA).update(criterion_id, changes)

    async def delete_criterion(self, criterion_id: str) -> bool:
        return self.db.table(CRITERIA).delete(criterion_id)

    async def criterion_exists(self, criterion_id: str) -> bool:
        return self.db.table(CRITERIA).get(criterion_id) is not None

    # ------------------------------------------------------------------
    # Bulk and transactions
    # ------------------------------------------------------------------

    async def clear_all(self) -> None:
        async with self.db.transaction(SPRINTS, GOALS, CRITERIA):
            self.db.table(CRITERIA).clear()
            self.db.table(GOALS).clear()
            self.db.table(SPRINTS).clear()
        logger.info("cleared all object store data")

    async def transaction(self, work: Callable[[], Awaitable[T]]) -> T:
        async with self.db.transaction(SPRINTS, GOALS, CRITERIA):
            return await work()
