"""Helpers shared by the entity services."""

from __future__ import annotations

from datetime import date
from typing import Any

from pydantic import BaseModel

from sprint_tracker.exceptions import InvalidIdentifierError, ValidationError
from sprint_tracker.validation import ValidationResult, is_valid_date, is_valid_uuid


def require_valid_id(entity: str, identifier: Any) -> str:
    """Reject a malformed identifier before any storage access.

    Raises:
        InvalidIdentifierError: If ``identifier`` is not a UUID string
    """
    if not is_valid_uuid(identifier):
        raise InvalidIdentifierError(entity, identifier)
    return identifier


def raise_for_result(result: ValidationResult) -> None:
    """Raise a ValidationError carrying every violated rule."""
    if not result.valid:
        raise ValidationError(result.errors)


def to_wire_changes(model: type[BaseModel], changes: dict[str, Any]) -> dict[str, Any]:
    """Map attribute (or alias) names to the persisted alias names.

    Args:
        model: Update model whose fields are allowed
        changes: Field name to new value, as passed by the caller

    Returns:
        The same changes keyed by alias

    Raises:
        ValidationError: If a field is not part of ``model``
    """
    by_name = {name: field.alias or name for name, field in model.model_fields.items()}
    aliases = set(by_name.values())
    wire: dict[str, Any] = {}
    unknown: list[str] = []
    for key, value in changes.items():
        if key in by_name:
            wire[by_name[key]] = value
        elif key in aliases:
            wire[key] = value
        else:
            unknown.append(f"{key} is not an updatable field")
    if unknown:
        raise ValidationError(unknown)
    return wire


def as_iso_date(value: date | str | None, default: date) -> str:
    """Normalise an optional date argument to YYYY-MM-DD.

    Raises:
        ValidationError: If a string is not a calendar date in YYYY-MM-DD form
    """
    if value is None:
        return default.isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if not is_valid_date(value):
        raise ValidationError([f"date must be a valid date in YYYY-MM-DD format, got {value!r}"])
    return value
