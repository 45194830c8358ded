"""Goal service - Business logic for goal operations."""

from __future__ import annotations

import logging
from typing import Any

from sprint_tracker.exceptions import NotFoundError, ValidationError
from sprint_tracker.models import Goal, GoalUpdate, SprintStats
from sprint_tracker.repositories import StorageAdapter
from sprint_tracker.services.common import raise_for_result, require_valid_id, to_wire_changes
from sprint_tracker.utils.ids import generate_uuid, now_iso
from sprint_tracker.validation import validate_create_goal, validate_update_goal

logger = logging.getLogger(__name__)


class GoalService:
    """Service for goal business logic.

    Every mutation, the convenience ones included, re-stamps ``updated_at``.
    """

    def __init__(self, storage: StorageAdapter):
        """Initialize the goal service.

        Args:
            storage: StorageAdapter implementation for data access
        """
        self.storage = storage

    async def create(
        self,
        *,
        sprint_id: str,
        title: str,
        owner: str,
        estimated_hours: float,
        description: str = "",
    ) -> Goal:
        """Create a new goal in an existing sprint.

        Args:
            sprint_id: Owning sprint
            title: Title (1-200 chars)
            owner: Person responsible (1-50 chars)
            estimated_hours: Estimate in 0.25 hour steps
            description: Optional description (max 2000 chars)

        Returns:
            The created Goal, not yet evaluated and without logged hours

        Raises:
            ValidationError: If any field is invalid
            NotFoundError: If the sprint does not exist
        """
        data = {
            "sprint_id": sprint_id,
            "titel": title,
            "beschrijving": description,
            "eigenaar": owner,
            "geschatte_uren": estimated_hours,
        }
        raise_for_result(validate_create_goal(data))

        if not await self.storage.sprint_exists(sprint_id):
            raise NotFoundError("sprint", sprint_id)

        now = now_iso()
        goal = Goal(
            id=generate_uuid(),
            actual_hours=None,
            achieved=None,
            note=None,
            lessons_learned=None,
            created_at=now,
            updated_at=now,
            **data,
        )
        await self.storage.create_goal(goal)
        logger.info("created goal %s in sprint %s", goal.id, sprint_id)
        return goal

    async def get_by_id(self, goal_id: str) -> Goal | None:
        require_valid_id("goal", goal_id)
        return await self.storage.get_goal_by_id(goal_id)

    async def get_by_sprint_id(self, sprint_id: str) -> list[Goal]:
        """Get all goals of a sprint, oldest first."""
        require_valid_id("sprint", sprint_id)
        return await self.storage.get_goals_by_sprint_id(sprint_id)

    async def get_by_owner(self, owner: str) -> list[Goal]:
        return await self.storage.get_goals_by_owner(owner)

    async def get_all(self) -> list[Goal]:
        return await self.storage.get_all_goals()

    async def update(self, goal_id: str, **changes: Any) -> Goal:
        """Update a goal.

        Args:
            goal_id: Goal to update
            **changes: Any of ``title``, ``description``, ``owner``,
                ``estimated_hours``, ``actual_hours``, ``achieved``, ``note``,
                ``lessons_learned``. None clears a nullable field.

        Returns:
            The updated Goal

        Raises:
            InvalidIdentifierError: If ``goal_id`` is not a UUID
            ValidationError: If a value is invalid or a field is unknown
            NotFoundError: If the goal does not exist
        """
        require_valid_id("goal", goal_id)
        wire = to_wire_changes(GoalUpdate, changes)
        if "gewijzigd_op" in wire:
            raise ValidationError(["gewijzigd_op is not an updatable field"])
        raise_for_result(validate_update_goal(wire))

        if not await self.storage.goal_exists(goal_id):
            raise NotFoundError("goal", goal_id)

        wire["gewijzigd_op"] = now_iso()
        await self.storage.update_goal(goal_id, GoalUpdate(**wire))
        updated = await self.storage.get_goal_by_id(goal_id)
        assert updated is not None
        return updated

    async def mark_achieved(
        self,
        goal_id: str,
        achieved: bool | None,
        note: str | None = None,
        lessons: str | None = None,
    ) -> Goal:
        """Record the outcome of a goal.

        The notes are replaced, not merged: omitting one clears it.
        """
        return await self.update(goal_id, achieved=achieved, note=note, lessons_learned=lessons)

    async def log_hours(self, goal_id: str, hours: float | None) -> Goal:
        """Set the actual hours spent (None clears them)."""
        return await self.update(goal_id, actual_hours=hours)

    async def delete(self, goal_id: str) -> bool:
        """Delete a goal (cascades to criteria).

        Returns:
            False if the goal did not exist
        """
        require_valid_id("goal", goal_id)
        return await self.storage.delete_goal(goal_id)

    async def get_sprint_stats(self, sprint_id: str) -> SprintStats:
        """Aggregate the goals of a sprint; unlogged hours count as zero."""
        goals = await self.get_by_sprint_id(sprint_id)
        return SprintStats(
            total_goals=len(goals),
            completed_goals=sum(1 for goal in goals if goal.achieved is True),
            estimated_hours=sum(goal.estimated_hours for goal in goals),
            actual_hours=sum(goal.actual_hours or 0 for goal in goals),
        )
