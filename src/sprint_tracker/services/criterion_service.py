"""Success criterion service - Business logic for checklist items."""

from __future__ import annotations

import logging
import math
from typing import Any

from sprint_tracker.exceptions import NotFoundError, ValidationError
from sprint_tracker.models import CriterionUpdate, GoalProgress, GoalUpdate, SuccessCriterion
from sprint_tracker.repositories import StorageAdapter
from sprint_tracker.services.common import raise_for_result, require_valid_id, to_wire_changes
from sprint_tracker.utils.ids import generate_uuid, now_iso
from sprint_tracker.validation import validate_create_criterion, validate_update_criterion

logger = logging.getLogger(__name__)


class CriterionService:
    """Service for success criterion business logic.

    A criterion has no timestamp of its own; every change to one re-stamps
    the ``updated_at`` of the goal it belongs to.
    """

    def __init__(self, storage: StorageAdapter):
        """Initialize the criterion service.

        Args:
            storage: StorageAdapter implementation for data access
        """
        self.storage = storage

    async def _touch_goal(self, goal_id: str) -> None:
        await self.storage.update_goal(goal_id, GoalUpdate(updated_at=now_iso()))

    async def _require_goal(self, goal_id: str) -> None:
        if not await self.storage.goal_exists(goal_id):
            raise NotFoundError("goal", goal_id)

    async def create(self, *, goal_id: str, description: str) -> SuccessCriterion:
        """Create a new, not yet completed criterion.

        Raises:
            ValidationError: If a field is invalid
            NotFoundError: If the goal does not exist
        """
        data = {"goal_id": goal_id, "beschrijving": description}
        raise_for_result(validate_create_criterion(data))
        await self._require_goal(goal_id)

        criterion = SuccessCriterion(id=generate_uuid(), completed=False, **data)

        async def work() -> None:
            await self.storage.create_criterion(criterion)
            await self._touch_goal(goal_id)

        await self.storage.transaction(work)
        return criterion

    async def create_many(self, goal_id: str, descriptions: list[str]) -> list[SuccessCriterion]:
        """Create several criteria for one goal, all or nothing.

        Every description is validated before anything is written; the writes
        themselves share one transaction.

        Raises:
            InvalidIdentifierError: If ``goal_id`` is not a UUID
            NotFoundError: If the goal does not exist
            ValidationError: If any description is invalid (nothing is created)
        """
        require_valid_id("goal", goal_id)
        await self._require_goal(goal_id)

        errors: list[str] = []
        for description in descriptions:
            result = validate_create_criterion({"goal_id": goal_id, "beschrijving": description})
            errors.extend(result.errors)
        if errors:
            raise ValidationError(errors, prefix="Validation failed for criterion")

        criteria = [
            SuccessCriterion(id=generate_uuid(), goal_id=goal_id, description=text, completed=False)
            for text in descriptions
        ]

        async def work() -> list[SuccessCriterion]:
            for criterion in criteria:
                await self.storage.create_criterion(criterion)
            if criteria:
                await self._touch_goal(goal_id)
            return criteria

        created = await self.storage.transaction(work)
        logger.info("created %d criteria for goal %s", len(created), goal_id)
        return created

    async def get_by_id(self, criterion_id: str) -> SuccessCriterion | None:
        require_valid_id("criterion", criterion_id)
        return await self.storage.get_criterion_by_id(criterion_id)

    async def get_by_goal_id(self, goal_id: str) -> list[SuccessCriterion]:
        require_valid_id("goal", goal_id)
        return await self.storage.get_criteria_by_goal_id(goal_id)

    async def update(self, criterion_id: str, **changes: Any) -> SuccessCriterion:
        """Update a criterion.

        Args:
            criterion_id: Criterion to update
            **changes: ``description`` and/or ``completed``

        Raises:
            InvalidIdentifierError: If ``criterion_id`` is not a UUID
            ValidationError: If a value is invalid or a field is unknown
            NotFoundError: If the criterion does not exist
        """
        require_valid_id("criterion", criterion_id)
        wire = to_wire_changes(CriterionUpdate, changes)
        raise_for_result(validate_update_criterion(wire))

        existing = await self.storage.get_criterion_by_id(criterion_id)
        if existing is None:
            raise NotFoundError("criterion", criterion_id)

        async def work() -> None:
            if wire:
                await self.storage.update_criterion(criterion_id, CriterionUpdate(**wire))
            await self._touch_goal(existing.goal_id)

        await self.storage.transaction(work)
        updated = await self.storage.get_criterion_by_id(criterion_id)
        assert updated is not None
        return updated

    async def toggle(self, criterion_id: str) -> SuccessCriterion:
        """Flip the completed flag."""
        existing = await self.get_by_id(criterion_id)
        if existing is None:
            raise NotFoundError("criterion", criterion_id)
        return await self.update(criterion_id, completed=not existing.completed)

    async def complete(self, criterion_id: str) -> SuccessCriterion:
        return await self.update(criterion_id, completed=True)

    async def uncomplete(self, criterion_id: str) -> SuccessCriterion:
        return await self.update(criterion_id, completed=False)

    async def delete(self, criterion_id: str) -> bool:
        """Delete a criterion.

        Returns:
            False if the criterion did not exist
        """
        require_valid_id("criterion", criterion_id)
        existing = await self.storage.get_criterion_by_id(criterion_id)
        if existing is None:
            return False

        async def work() -> bool:
            deleted = await self.storage.delete_criterion(criterion_id)
            await self._touch_goal(existing.goal_id)
            return deleted

        return await self.storage.transaction(work)

    async def get_progress(self, goal_id: str) -> GoalProgress:
        """Completion of a goal's criteria; 0% when it has none."""
        criteria = await self.get_by_goal_id(goal_id)
        total = len(criteria)
        completed = sum(1 for criterion in criteria if criterion.completed)
        # Halves round up
        percentage = math.floor(completed / total * 100 + 0.5) if total else 0
        return GoalProgress(completed=completed, total=total, percentage=percentage)
