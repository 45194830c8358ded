"""In-memory StorageAdapter for tests.

Dict-backed, no persistence. Behaves like the real backends on everything the
services can observe: ordering, cascades, key/uniqueness failures and
transaction rollback.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import TypeVar

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

T = TypeVar("T")


class InMemoryStorageAdapter(StorageAdapter):
    """Storage adapter that keeps every entity in plain dicts.

    Stored models are never mutated in place (updates store a copy), so a
    shallow copy of the dicts is a complete snapshot for rollback.
    """

    def __init__(self):
        self.sprints: dict[str, Sprint] = {}
        self.goals: dict[str, Goal] = {}
        self.criteria: dict[str, SuccessCriterion] = {}
        self.initialized = False

    @property
    def storage_type(self) -> str:
        return "memory"

    async def initialize(self) -> None:
        self.initialized = True

    async def close(self) -> None:
        self.initialized = False

    def _snapshot(self) -> tuple[dict, dict, dict]:
        return dict(self.sprints), dict(self.goals), dict(self.criteria)

    def _restore(self, snapshot: tuple[dict, dict, dict]) -> None:
        self.sprints, self.goals, self.criteria = snapshot

    # ------------------------------------------------------------------
    # Sprints
    # ------------------------------------------------------------------

    async def create_sprint(self, sprint: Sprint) -> None:
        if sprint.id in self.sprints:
            raise StorageError(f"Sprint {sprint.id} already exists")
        if any(s.number == sprint.number for s in self.sprints.values()):
            raise StorageError(f"Sprint number {sprint.number} already exists")
        self.sprints[sprint.id] = sprint.model_copy()

    async def get_sprint_by_id(self, sprint_id: str) -> Sprint | None:
        sprint = self.sprints.get(sprint_id)
        return sprint.model_copy() if sprint else None

    async def get_sprint_by_number(self, number: int) -> Sprint | None:
        for sprint in self.sprints.values():
            if sprint.number == number:
                return sprint.model_copy()
        return None

    async def get_all_sprints(self) -> list[Sprint]:
        return [s.model_copy() for s in sorted(self.sprints.values(), key=lambda s: s.number)]

    async def update_sprint(self, sprint_id: str, updates: SprintUpdate) -> None:
        sprint = self.sprints.get(sprint_id)
        if sprint is None:
            return
        changes = updates.model_dump(exclude_unset=True)
        number = changes.get("number")
        if number is not None and any(
            s.number == number and s.id != sprint_id for s in self.sprints.values()
        ):
            raise StorageError(f"Sprint number {number} already exists")
        self.sprints[sprint_id] = sprint.model_copy(update=changes)

    async def delete_sprint(self, sprint_id: str) -> bool:
        if sprint_id not in self.sprints:
            return False
        goal_ids = [g.id for g in self.goals.values() if g.sprint_id == sprint_id]
        self.criteria = {k: c for k, c in self.criteria.items() if c.goal_id not in goal_ids}
        for goal_id in goal_ids:
            del self.goals[goal_id]
        del self.sprints[sprint_id]
        return True

    async def get_max_sprint_number(self) -> int | None:
        return max((s.number for s in self.sprints.values()), default=None)

    async def get_current_sprint(self, today: str) -> Sprint | None:
        running = [s for s in self.sprints.values() if s.start_date <= today <= s.end_date]
        if not running:
            return None
        return max(running, key=lambda s: s.number).model_copy()

    async def get_latest_sprint(self) -> Sprint | None:
        if not self.sprints:
            return None
        return max(self.sprints.values(), key=lambda s: s.number).model_copy()

    async def sprint_exists(self, sprint_id: str) -> bool:
        return sprint_id in self.sprints

    # ------------------------------------------------------------------
    # Goals
    # ------------------------------------------------------------------

    def _goals_where(self, predicate: Callable[[Goal], bool]) -> list[Goal]:
        matching = [g for g in self.goals.values() if predicate(g)]
        return [g.model_copy() for g in sorted(matching, key=lambda g: g.created_at)]

    async def create_goal(self, goal: Goal) -> None:
        if goal.id in self.goals:
            raise StorageError(f"Goal {goal.id} already exists")
        if goal.sprint_id not in self.sprints:
            raise StorageError(f"Sprint {goal.sprint_id} does not exist")
        self.goals[goal.id] = goal.model_copy()

    async def get_goal_by_id(self, goal_id: str) -> Goal | None:
        goal = self.goals.get(goal_id)
        return goal.model_copy() if goal else None

    async def get_goals_by_sprint_id(self, sprint_id: str) -> list[Goal]:
        return self._goals_where(lambda g: g.sprint_id == sprint_id)

    async def get_goals_by_owner(self, owner: str) -> list[Goal]:
        return self._goals_where(lambda g: g.owner == owner)

    async def get_all_goals(self) -> list[Goal]:
        return self._goals_where(lambda g: True)

    async def update_goal(self, goal_id: str, updates: GoalUpdate) -> None:
        goal = self.goals.get(goal_id)
        if goal is None:
            return
        self.goals[goal_id] = goal.model_copy(update=updates.model_dump(exclude_unset=True))

    async def delete_goal(self, goal_id: str) -> bool:
        if goal_id not in self.goals:
            return False
        self.criteria = {k: c for k, c in self.criteria.items() if c.goal_id != goal_id}
        del self.goals[goal_id]
        return True

    async def goal_exists(self, goal_id: str) -> bool:
        return goal_id in self.goals

    # ------------------------------------------------------------------
    # Success criteria
    # ------------------------------------------------------------------

    async def create_criterion(self, criterion: SuccessCriterion) -> None:
        if criterion.id in self.criteria:
            raise StorageError(f"Criterion {criterion.id} already exists")
        if criterion.goal_id not in self.goals:
            raise StorageError(f"Goal {criterion.goal_id} does not exist")
        self.criteria[criterion.id] = criterion.model_copy()

    async def get_criterion_by_id(self, criterion_id: str) -> SuccessCriterion | None:
        criterion = self.criteria.get(criterion_id)
        return criterion.model_copy() if criterion else None

    async def get_criteria_by_goal_id(self, goal_id: str) -> list[SuccessCriterion]:
        return [c.model_copy() for c in self.criteria.values() if c.goal_id == goal_id]

    async def update_criterion(self, criterion_id: str, updates: CriterionUpdate) -> None:
        criterion = self.criteria.get(criterion_id)
        if criterion is None:
            return
        changes = updates.model_dump(exclude_unset=True)
        self.criteria[criterion_id] = criterion.model_copy(update=changes)

    async def delete_criterion(self, criterion_id: str) -> bool:
        return self.criteria.pop(criterion_id, None) is not None

    async def criterion_exists(self, criterion_id: str) -> bool:
        return criterion_id in self.criteria

    # ------------------------------------------------------------------
    # Bulk and transactions
    # ------------------------------------------------------------------

    async def clear_all(self) -> None:
        self.sprints, self.goals, self.criteria = {}, {}, {}

    async def transaction(self, work: Callable[[], Awaitable[T]]) -> T:
        snapshot = self._snapshot()
        try:
            return await work()
        except BaseException:
            self._restore(snapshot)
            raise
