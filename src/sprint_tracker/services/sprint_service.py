"""Sprint service - Business logic for sprint operations.

This service layer sits between callers (CLI commands, the export service)
and the storage adapter: it validates input, generates identifiers and
computes sequence numbers, the current sprint and suggested dates.
"""

from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Any

from sprint_tracker.exceptions import NotFoundError, ValidationError
from sprint_tracker.models import Sprint, SprintUpdate, SuggestedDates
from sprint_tracker.repositories import StorageAdapter
from sprint_tracker.services.common import (
    as_iso_date,
    raise_for_result,
    require_valid_id,
    to_wire_changes,
)
from sprint_tracker.utils.ids import generate_uuid
from sprint_tracker.validation import validate_create_sprint, validate_update_sprint

logger = logging.getLogger(__name__)

# A sprint spans 14 calendar days, first and last day included
SPRINT_LENGTH_DAYS = 14


class SprintService:
    """Service for sprint business logic."""

    def __init__(self, storage: StorageAdapter):
        """Initialize the sprint service.

        Args:
            storage: StorageAdapter implementation for data access
        """
        self.storage = storage

    async def create(
        self,
        *,
        number: int | None = None,
        start_date: str | None = None,
        end_date: str | None = None,
    ) -> Sprint:
        """Create a new sprint.

        Omitted values are filled in: the next free sequence number, and the
        suggested dates for the next sprint.

        Args:
            number: Sequence number (positive, unique)
            start_date: First day (YYYY-MM-DD)
            end_date: Last day (YYYY-MM-DD), after ``start_date``

        Returns:
            The created Sprint

        Raises:
            ValidationError: If any field is invalid or the number is taken
        """
        if number is None:
            number = await self.get_next_number()
        if start_date is None or end_date is None:
            suggested = await self.get_suggested_next_dates()
            start_date = start_date or suggested.start_date
            end_date = end_date or suggested.end_date

        data = {"volgnummer": number, "startdatum": start_date, "einddatum": end_date}
        raise_for_result(validate_create_sprint(data))
        await self._ensure_number_free(number)

        sprint = Sprint(id=generate_uuid(), **data)
        await self.storage.create_sprint(sprint)
        logger.info("created sprint #%d (%s)", sprint.number, sprint.id)
        return sprint

    async def get_by_id(self, sprint_id: str) -> Sprint | None:
        """Get a sprint by ID.

        Raises:
            InvalidIdentifierError: If ``sprint_id`` is not a UUID
        """
        require_valid_id("sprint", sprint_id)
        return await self.storage.get_sprint_by_id(sprint_id)

    async def get_by_number(self, number: int) -> Sprint | None:
        return await self.storage.get_sprint_by_number(number)

    async def get_all(self) -> list[Sprint]:
        """Get all sprints ordered by sequence number."""
        return await self.storage.get_all_sprints()

    async def get_current(self, today: date | str | None = None) -> Sprint | None:
        """Get the sprint running on ``today`` (default: the local date)."""
        return await self.storage.get_current_sprint(as_iso_date(today, date.today()))

    async def get_latest(self) -> Sprint | None:
        return await self.storage.get_latest_sprint()

    async def update(self, sprint_id: str, **changes: Any) -> Sprint:
        """Update a sprint.

        Args:
            sprint_id: Sprint to update
            **changes: Any of ``number``, ``start_date``, ``end_date``

        Returns:
            The updated Sprint

        Raises:
            InvalidIdentifierError: If ``sprint_id`` is not a UUID
            ValidationError: If a value is invalid, the number is taken or the
                resulting end date is not after the start date
            NotFoundError: If the sprint does not exist
        """
        require_valid_id("sprint", sprint_id)
        wire = to_wire_changes(SprintUpdate, changes)
        raise_for_result(validate_update_sprint(wire))

        existing = await self.storage.get_sprint_by_id(sprint_id)
        if existing is None:
            raise NotFoundError("sprint", sprint_id)

        start = wire.get("startdatum", existing.start_date)
        end = wire.get("einddatum", existing.end_date)
        if end <= start:
            raise ValidationError(["einddatum must be after startdatum"])
        if "volgnummer" in wire and wire["volgnummer"] != existing.number:
            await self._ensure_number_free(wire["volgnummer"])

        if wire:
            await self.storage.update_sprint(sprint_id, SprintUpdate(**wire))
        updated = await self.storage.get_sprint_by_id(sprint_id)
        assert updated is not None
        return updated

    async def delete(self, sprint_id: str) -> bool:
        """Delete a sprint (cascades to goals and criteria).

        Returns:
            False if the sprint did not exist
        """
        require_valid_id("sprint", sprint_id)
        return await self.storage.delete_sprint(sprint_id)

    async def get_next_number(self) -> int:
        """Get the next available sequence number."""
        current = await self.storage.get_max_sprint_number()
        return (current or 0) + 1

    async def get_suggested_next_dates(self, today: date | str | None = None) -> SuggestedDates:
        """Suggest the dates of the next two-week sprint.

        Starts the day after the latest sprint ends. Without any sprint it
        starts today, moved to Monday when today falls in a weekend.
        """
        latest = await self.get_latest()
        if latest is not None:
            start = date.fromisoformat(latest.end_date) + timedelta(days=1)
        else:
            start = date.fromisoformat(as_iso_date(today, date.today()))
            weekday = start.weekday()
            if weekday == 6:  # Sunday
                start += timedelta(days=1)
            elif weekday == 5:  # Saturday
                start += timedelta(days=2)

        end = start + timedelta(days=SPRINT_LENGTH_DAYS - 1)
        return SuggestedDates(start_date=start.isoformat(), end_date=end.isoformat())

    async def _ensure_number_free(self, number: int) -> None:
        if await self.storage.get_sprint_by_number(number) is not None:
            raise ValidationError([f"volgnummer {number} is already in use"])
