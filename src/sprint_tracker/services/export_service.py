"""Export/import service - Portable JSON document for the whole entity tree.

Export walks every sprint, its goals and their criteria into one nested
document. Import takes an untrusted document, validates all of it first and
only then writes it, in a single transaction, keeping identifiers and
timestamps exactly as given.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from sprint_tracker.models import (
    ExportData,
    Goal,
    GoalWithCriteria,
    ImportResult,
    Sprint,
    SprintWithGoals,
    SuccessCriterion,
)
from sprint_tracker.repositories import StorageAdapter
from sprint_tracker.services.common import require_valid_id
from sprint_tracker.utils.ids import now_iso
from sprint_tracker.validation import (
    CRITERION_MAX_LENGTH,
    DESCRIPTION_MAX_LENGTH,
    MAX_HOURS,
    MAX_SEQUENCE_NUMBER,
    NOTE_MAX_LENGTH,
    OWNER_MAX_LENGTH,
    TITLE_MAX_LENGTH,
    ValidationResult,
    is_number,
    is_positive_integer,
    is_valid_date,
    is_valid_datetime,
    is_valid_hours_precision,
    is_valid_uuid,
)

logger = logging.getLogger(__name__)

EXPORT_VERSION = "1.0"


def _is_text(value: Any, min_length: int, max_length: int) -> bool:
    return isinstance(value, str) and min_length <= len(value) <= max_length


def _check_hours(errors: list[str], prefix: str, name: str, value: Any, nullable: bool) -> None:
    if value is None and nullable:
        return
    if not is_number(value) or value < 0:
        suffix = " or null" if nullable else ""
        errors.append(f"{prefix}.{name}: must be a non-negative number{suffix}")
    elif value > MAX_HOURS:
        errors.append(f"{prefix}.{name}: must not exceed {MAX_HOURS} hours")
    elif not is_valid_hours_precision(value):
        errors.append(f"{prefix}.{name}: must be in 0.25 hour increments")


def _check_children(errors: list[str], prefix: str, parent: dict, key: str) -> list[Any]:
    children = parent.get(key, [])
    if not isinstance(children, list):
        errors.append(f"{prefix}.{key}: must be an array")
        return []
    return children


def _validate_criterion(data: Any, prefix: str, goal_id: Any) -> list[str]:
    if not isinstance(data, dict):
        return [f"{prefix}: must be an object"]

    errors: list[str] = []
    if not is_valid_uuid(data.get("id")):
        errors.append(f"{prefix}.id: must be a valid UUID")
    if not is_valid_uuid(data.get("goal_id")):
        errors.append(f"{prefix}.goal_id: must be a valid UUID")
    elif data["goal_id"] != goal_id:
        errors.append(f"{prefix}.goal_id: must match the id of its goal")
    if not _is_text(data.get("beschrijving"), 1, CRITERION_MAX_LENGTH):
        errors.append(f"{prefix}.beschrijving: must be a string (1-{CRITERION_MAX_LENGTH} chars)")
    if not isinstance(data.get("voltooid"), bool):
        errors.append(f"{prefix}.voltooid: must be a boolean")
    return errors


def _validate_goal(data: Any, prefix: str, sprint_id: Any) -> list[str]:
    if not isinstance(data, dict):
        return [f"{prefix}: must be an object"]

    errors: list[str] = []
    if not is_valid_uuid(data.get("id")):
        errors.append(f"{prefix}.id: must be a valid UUID")
    if not is_valid_uuid(data.get("sprint_id")):
        errors.append(f"{prefix}.sprint_id: must be a valid UUID")
    elif data["sprint_id"] != sprint_id:
        errors.append(f"{prefix}.sprint_id: must match the id of its sprint")
    if not _is_text(data.get("titel"), 1, TITLE_MAX_LENGTH):
        errors.append(f"{prefix}.titel: must be a string (1-{TITLE_MAX_LENGTH} chars)")
    if not _is_text(data.get("beschrijving"), 0, DESCRIPTION_MAX_LENGTH):
        errors.append(f"{prefix}.beschrijving: must be a string (max {DESCRIPTION_MAX_LENGTH} chars)")
    if not _is_text(data.get("eigenaar"), 1, OWNER_MAX_LENGTH):
        errors.append(f"{prefix}.eigenaar: must be a string (1-{OWNER_MAX_LENGTH} chars)")
    _check_hours(errors, prefix, "geschatte_uren", data.get("geschatte_uren"), nullable=False)
    _check_hours(errors, prefix, "werkelijke_uren", data.get("werkelijke_uren"), nullable=True)

    behaald = data.get("behaald")
    if behaald is not None and not isinstance(behaald, bool):
        errors.append(f"{prefix}.behaald: must be a boolean or null")
    for name in ("toelichting", "geleerde_lessen"):
        value = data.get(name)
        if value is not None and not _is_text(value, 0, NOTE_MAX_LENGTH):
            errors.append(f"{prefix}.{name}: must be a string (max {NOTE_MAX_LENGTH} chars) or null")
    for name in ("aangemaakt_op", "gewijzigd_op"):
        if not is_valid_datetime(data.get(name)):
            errors.append(f"{prefix}.{name}: must be a valid ISO datetime")

    for i, criterion in enumerate(_check_children(errors, prefix, data, "success_criteria")):
        errors.extend(
            _validate_criterion(criterion, f"{prefix}.success_criteria[{i}]", data.get("id"))
        )
    return errors


def _validate_sprint(data: Any, index: int) -> list[str]:
    prefix = f"Sprint[{index}]"
    if not isinstance(data, dict):
        return [f"{prefix}: must be an object"]

    errors: list[str] = []
    if not is_valid_uuid(data.get("id")):
        errors.append(f"{prefix}.id: must be a valid UUID")
    if not is_positive_integer(data.get("volgnummer")):
        errors.append(f"{prefix}.volgnummer: must be a positive integer")
    elif data["volgnummer"] > MAX_SEQUENCE_NUMBER:
        errors.append(f"{prefix}.volgnummer: must not exceed {MAX_SEQUENCE_NUMBER}")

    start, end = data.get("startdatum"), data.get("einddatum")
    if not is_valid_date(start):
        errors.append(f"{prefix}.startdatum: must be a valid date (YYYY-MM-DD)")
    if not is_valid_date(end):
        errors.append(f"{prefix}.einddatum: must be a valid date (YYYY-MM-DD)")
    elif is_valid_date(start) and end <= start:
        errors.append(f"{prefix}.einddatum: must be after startdatum")

    for i, goal in enumerate(_check_children(errors, prefix, data, "goals")):
        errors.extend(_validate_goal(goal, f"{prefix}.goals[{i}]", data.get("id")))
    return errors


class ExportService:
    """Service for exporting and importing the full sprint/goal/criterion tree."""

    def __init__(self, storage: StorageAdapter):
        """Initialize the export service.

        Args:
            storage: StorageAdapter implementation for data access
        """
        self.storage = storage

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------

    async def _with_goals(self, sprint: Sprint) -> SprintWithGoals:
        goals: list[GoalWithCriteria] = []
        for goal in await self.storage.get_goals_by_sprint_id(sprint.id):
            criteria = await self.storage.get_criteria_by_goal_id(goal.id)
            goals.append(GoalWithCriteria(**goal.model_dump(), success_criteria=criteria))
        return SprintWithGoals(**sprint.model_dump(), goals=goals)

    async def export_all(self) -> ExportData:
        """Export every sprint with its goals and criteria."""
        sprints = [await self._with_goals(s) for s in await self.storage.get_all_sprints()]
        return ExportData(version=EXPORT_VERSION, exported_at=now_iso(), sprints=sprints)

    async def export_sprint(self, sprint_id: str) -> SprintWithGoals | None:
        """Export one sprint, or None if it does not exist."""
        require_valid_id("sprint", sprint_id)
        sprint = await self.storage.get_sprint_by_id(sprint_id)
        if sprint is None:
            return None
        return await self._with_goals(sprint)

    async def export_sprints_document(self, sprint_id: str | None = None) -> ExportData:
        """Export document for everything, or for a single sprint.

        A missing sprint yields a document without sprints.
        """
        if sprint_id is None:
            return await self.export_all()
        sprint = await self.export_sprint(sprint_id)
        return ExportData(
            version=EXPORT_VERSION,
            exported_at=now_iso(),
            sprints=[sprint] if sprint is not None else [],
        )

    async def export_to_file(self, path: str | Path, sprint_id: str | None = None) -> Path:
        """Write an export document as JSON.

        Returns:
            The path written
        """
        document = await self.export_sprints_document(sprint_id)
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(document.to_record(), f, indent=2, ensure_ascii=False)
        logger.info("exported %d sprint(s) to %s", len(document.sprints), path)
        return path

    # ------------------------------------------------------------------
    # Import
    # ------------------------------------------------------------------

    def validate_import_data(self, data: Any) -> ValidationResult:
        """Check an untrusted document, collecting every problem.

        Messages are prefixed with the path of the offending value, e.g.
        ``Sprint[2].goals[0].titel: must be a string (1-200 chars)``.
        """
        if not isinstance(data, dict):
            return ValidationResult(["Data must be an object"])

        errors: list[str] = []
        if not isinstance(data.get("version"), str):
            errors.append("Missing or invalid version field")
        sprints = data.get("sprints")
        if not isinstance(sprints, list):
            errors.append("Missing or invalid sprints array")
            return ValidationResult(errors)

        seen: dict[str, int] = {}
        for i, sprint in enumerate(sprints):
            errors.extend(_validate_sprint(sprint, i))
            sprint_id = sprint.get("id") if isinstance(sprint, dict) else None
            if not is_valid_uuid(sprint_id):
                continue
            if sprint_id in seen:
                errors.append(f"Sprint[{i}].id: duplicates the id of Sprint[{seen[sprint_id]}]")
            else:
                seen[sprint_id] = i
        return ValidationResult(errors)

    async def import_data(self, data: Any, overwrite: bool = False) -> ImportResult:
        """Import a document produced by :meth:`export_all`.

        Nothing is written unless the whole document is valid. A sprint whose
        id already exists is replaced when ``overwrite`` is set and skipped
        otherwise, together with its goals and criteria; so is a sprint whose
        sequence number belongs to a different existing sprint.

        Never raises for bad input: problems end up in ``errors``.
        """
        result = ImportResult()
        validation = self.validate_import_data(data)
        if not validation.valid:
            result.errors = validation.errors
            return result

        async def work() -> None:
            for sprint_data in data["sprints"]:
                await self._import_sprint(sprint_data, overwrite, result)

        try:
            await self.storage.transaction(work)
        except Exception as e:
            logger.exception("import aborted")
            return ImportResult(errors=[f"Import failed: {e}"])

        logger.info(
            "imported %d sprint(s), %d goal(s), %d criteria; %d skipped",
            result.sprints,
            result.goals,
            result.criteria,
            result.skipped,
        )
        return result

    async def _import_sprint(self, data: dict, overwrite: bool, result: ImportResult) -> None:
        sprint = Sprint.model_validate(data)
        label = f"Sprint {sprint.number} already exists"

        holder = await self.storage.get_sprint_by_number(sprint.number)
        if holder is not None and holder.id != sprint.id:
            result.skipped += 1
            result.errors.append(f"{label} (ID: {holder.id})")
            return

        if await self.storage.sprint_exists(sprint.id):
            if not overwrite:
                result.skipped += 1
                result.errors.append(f"{label} (ID: {sprint.id})")
                return
            await self.storage.delete_sprint(sprint.id)

        await self.storage.create_sprint(sprint)
        result.sprints += 1

        for goal_data in data.get("goals", []):
            await self.storage.create_goal(Goal.model_validate(goal_data))
            result.goals += 1
            for criterion_data in goal_data.get("success_criteria", []):
                await self.storage.create_criterion(SuccessCriterion.model_validate(criterion_data))
                result.criteria += 1

    async def import_from_file(self, path: str | Path, overwrite: bool = False) -> ImportResult:
        """Read a JSON export file and import it.

        A missing or unreadable file is reported in ``errors``.
        """
        path = Path(path)
        if not path.exists():
            return ImportResult(errors=[f"File not found: {path}"])
        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            return ImportResult(errors=[f"Failed to parse file: {e}"])
        return await self.import_data(data, overwrite=overwrite)
