"""UUID resolution for command arguments.

List output shows the first 8 characters of an identifier, so commands
accept either a full UUID or a unique prefix of at least that length.
Sprints can also be addressed by their sequence number.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from typing import TYPE_CHECKING

from sprint_tracker.exceptions import InvalidIdentifierError, NotFoundError, ValidationError
from sprint_tracker.models import Goal, Sprint, SuccessCriterion
from sprint_tracker.utils.ids import shorten_uuid
from sprint_tracker.validation import MAX_SEQUENCE_NUMBER, is_valid_uuid

if TYPE_CHECKING:
    from sprint_tracker.services.storage_context import StorageContext

MIN_PREFIX_LENGTH = 8

_UUID_PREFIX_RE = re.compile(r"^[0-9a-f\-]+$", re.IGNORECASE)


def _match_prefix(entity: str, value: str, candidates: Iterable[str]) -> str:
    """Pick the single candidate starting with ``value``.

    Raises:
        InvalidIdentifierError: If ``value`` cannot be a UUID prefix
        NotFoundError: If nothing matches
        ValidationError: If more than one candidate matches
    """
    if len(value) < MIN_PREFIX_LENGTH or not _UUID_PREFIX_RE.match(value):
        raise InvalidIdentifierError(entity, value)

    prefix = value.lower()
    matches = [c for c in candidates if c.lower().startswith(prefix)]
    if not matches:
        raise NotFoundError(entity, value)
    if len(matches) > 1:
        shown = ", ".join(shorten_uuid(m) for m in matches[:5])
        if len(matches) > 5:
            shown += f", ... ({len(matches)} total)"
        raise ValidationError(
            [f"'{value}' matches {len(matches)} {entity}s: {shown}"], prefix="Ambiguous ID"
        )
    return matches[0]


async def resolve_sprint(identifier: str, storage: StorageContext) -> Sprint:
    """Resolve a sequence number, full UUID or UUID prefix to a sprint.

    An all-digit value of prefix length that is not a sequence number is
    retried as a UUID prefix, unless it was written as ``#<number>``.
    """
    raw = identifier.strip()
    value = raw.lstrip("#")
    if value.isdigit():
        number = int(value)
        sprint = None
        if number <= MAX_SEQUENCE_NUMBER:
            sprint = await storage.sprints.get_by_number(number)
        if sprint is not None:
            return sprint
        if raw.startswith("#") or len(value) < MIN_PREFIX_LENGTH:
            raise NotFoundError("sprint", number, field="number")

    if is_valid_uuid(value):
        sprint = await storage.sprints.get_by_id(value)
        if sprint is None:
            raise NotFoundError("sprint", value)
        return sprint

    sprints = {s.id: s for s in await storage.sprints.get_all()}
    return sprints[_match_prefix("sprint", value, sprints)]


async def resolve_goal(identifier: str, storage: StorageContext) -> Goal:
    """Resolve a full UUID or UUID prefix to a goal."""
    value = identifier.strip()
    if is_valid_uuid(value):
        goal = await storage.goals.get_by_id(value)
        if goal is None:
            raise NotFoundError("goal", value)
        return goal

    goals = {g.id: g for g in await storage.goals.get_all()}
    return goals[_match_prefix("goal", value, goals)]


async def resolve_criterion(identifier: str, storage: StorageContext) -> SuccessCriterion:
    """Resolve a full UUID or UUID prefix to a success criterion.

    Prefix lookups walk the criteria of every goal.
    """
    value = identifier.strip()
    if is_valid_uuid(value):
        criterion = await storage.criteria.get_by_id(value)
        if criterion is None:
            raise NotFoundError("criterion", value)
        return criterion

    criteria: dict[str, SuccessCriterion] = {}
    for goal in await storage.goals.get_all():
        for criterion in await storage.criteria.get_by_goal_id(goal.id):
            criteria[criterion.id] = criterion
    return criteria[_match_prefix("criterion", value, criteria)]
