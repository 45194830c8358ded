"""Input validation rules shared by the services and the importer.

All validators are pure functions. They take a mapping keyed by the stored
(wire) field names and return a ValidationResult listing every violated
rule, so callers can report all problems at once.
"""

from __future__ import annotations

import math
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any

# RFC 4122 UUID, versions 1-5
UUID_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[1-5][0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$",
    re.IGNORECASE,
)
DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")

TITLE_MAX_LENGTH = 200
DESCRIPTION_MAX_LENGTH = 2000
OWNER_MAX_LENGTH = 50
NOTE_MAX_LENGTH = 2000
CRITERION_MAX_LENGTH = 500

# Largest value a signed 64-bit SQLite INTEGER column can hold
MAX_SEQUENCE_NUMBER = 2**63 - 1
MAX_HOURS = 10_000


@dataclass
class ValidationResult:
    """Outcome of a validation pass."""

    errors: list[str] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.errors


def is_valid_uuid(value: Any) -> bool:
    """Check if a value is a UUID string in RFC 4122 format."""
    if not isinstance(value, str):
        return False
    return UUID_PATTERN.match(value) is not None


def is_valid_date(value: Any) -> bool:
    """Check if a value is a real calendar date in YYYY-MM-DD format."""
    if not isinstance(value, str) or not DATE_PATTERN.match(value):
        return False
    try:
        date.fromisoformat(value)
    except ValueError:
        return False
    return True


def is_valid_datetime(value: Any) -> bool:
    """Check if a value is a parseable ISO-8601 timestamp."""
    if not isinstance(value, str) or not value:
        return False
    try:
        datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return False
    return True


def is_number(value: Any) -> bool:
    """True for finite ints and floats; booleans are not numbers here."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def is_positive_integer(value: Any) -> bool:
    if not is_number(value):
        return False
    if isinstance(value, float) and not value.is_integer():
        return False
    return value >= 1


def is_valid_hours_precision(value: float) -> bool:
    """Hours must be non-negative and a multiple of 0.25."""
    return value >= 0 and (value * 4) % 1 == 0


def _check_text(
    errors: list[str],
    name: str,
    value: Any,
    *,
    max_length: int,
    required: bool,
    nullable: bool = False,
) -> None:
    if value is None and nullable:
        return
    if not isinstance(value, str):
        if nullable:
            errors.append(f"{name} must be a string or null")
        elif required:
            errors.append(f"{name} is required")
        else:
            errors.append(f"{name} must be a string")
        return
    if required and not value:
        errors.append(f"{name} is required")
    elif len(value) > max_length:
        errors.append(f"{name} must not exceed {max_length} characters")


def _check_hours(errors: list[str], name: str, value: Any, *, nullable: bool) -> None:
    if value is None and nullable:
        return
    if not is_number(value) or value < 0:
        suffix = " or null" if nullable else ""
        errors.append(f"{name} must be a non-negative number{suffix}")
    elif value > MAX_HOURS:
        errors.append(f"{name} must not exceed {MAX_HOURS} hours")
    elif not is_valid_hours_precision(value):
        errors.append(f"{name} must be in 0.25 hour increments")


def _check_sequence_number(errors: list[str], value: Any) -> None:
    if not is_positive_integer(value):
        errors.append("volgnummer must be a positive integer")
    elif value > MAX_SEQUENCE_NUMBER:
        errors.append(f"volgnummer must not exceed {MAX_SEQUENCE_NUMBER}")


def validate_create_sprint(data: Mapping[str, Any]) -> ValidationResult:
    """Validate the fields of a new sprint."""
    errors: list[str] = []

    _check_sequence_number(errors, data.get("volgnummer"))

    start, end = data.get("startdatum"), data.get("einddatum")
    if not is_valid_date(start):
        errors.append("startdatum must be a valid date in YYYY-MM-DD format")
    if not is_valid_date(end):
        errors.append("einddatum must be a valid date in YYYY-MM-DD format")
    if is_valid_date(start) and is_valid_date(end) and end <= start:
        errors.append("einddatum must be after startdatum")

    return ValidationResult(errors)


def validate_update_sprint(data: Mapping[str, Any]) -> ValidationResult:
    """Validate the supplied fields of a sprint update."""
    errors: list[str] = []

    if "volgnummer" in data:
        _check_sequence_number(errors, data["volgnummer"])
    if "startdatum" in data and not is_valid_date(data["startdatum"]):
        errors.append("startdatum must be a valid date in YYYY-MM-DD format")
    if "einddatum" in data and not is_valid_date(data["einddatum"]):
        errors.append("einddatum must be a valid date in YYYY-MM-DD format")

    start, end = data.get("startdatum"), data.get("einddatum")
    if is_valid_date(start) and is_valid_date(end) and end <= start:
        errors.append("einddatum must be after startdatum")

    return ValidationResult(errors)


def validate_create_goal(data: Mapping[str, Any]) -> ValidationResult:
    """Validate the fields of a new goal."""
    errors: list[str] = []

    if not is_valid_uuid(data.get("sprint_id")):
        errors.append("sprint_id must be a valid UUID")
    _check_text(errors, "titel", data.get("titel"), max_length=TITLE_MAX_LENGTH, required=True)
    _check_text(
        errors,
        "beschrijving",
        data.get("beschrijving"),
        max_length=DESCRIPTION_MAX_LENGTH,
        required=False,
    )
    _check_text(errors, "eigenaar", data.get("eigenaar"), max_length=OWNER_MAX_LENGTH, required=True)
    _check_hours(errors, "geschatte_uren", data.get("geschatte_uren"), nullable=False)

    return ValidationResult(errors)


def validate_update_goal(data: Mapping[str, Any]) -> ValidationResult:
    """Validate the supplied fields of a goal update."""
    errors: list[str] = []

    if "titel" in data:
        _check_text(errors, "titel", data["titel"], max_length=TITLE_MAX_LENGTH, required=True)
    if "beschrijving" in data:
        _check_text(
            errors,
            "beschrijving",
            data["beschrijving"],
            max_length=DESCRIPTION_MAX_LENGTH,
            required=False,
        )
    if "eigenaar" in data:
        _check_text(errors, "eigenaar", data["eigenaar"], max_length=OWNER_MAX_LENGTH, required=True)
    if "geschatte_uren" in data:
        _check_hours(errors, "geschatte_uren", data["geschatte_uren"], nullable=False)
    if "werkelijke_uren" in data:
        _check_hours(errors, "werkelijke_uren", data["werkelijke_uren"], nullable=True)
    if "behaald" in data and data["behaald"] is not None and not isinstance(data["behaald"], bool):
        errors.append("behaald must be a boolean or null")
    for name in ("toelichting", "geleerde_lessen"):
        if name in data:
            _check_text(
                errors, name, data[name], max_length=NOTE_MAX_LENGTH, required=False, nullable=True
            )

    return ValidationResult(errors)


def validate_create_criterion(data: Mapping[str, Any]) -> ValidationResult:
    """Validate the fields of a new success criterion."""
    errors: list[str] = []

    if not is_valid_uuid(data.get("goal_id")):
        errors.append("goal_id must be a valid UUID")
    _check_text(
        errors,
        "beschrijving",
        data.get("beschrijving"),
        max_length=CRITERION_MAX_LENGTH,
        required=True,
    )

    return ValidationResult(errors)


def validate_update_criterion(data: Mapping[str, Any]) -> ValidationResult:
    """Validate the supplied fields of a success criterion update."""
    errors: list[str] = []

    if "beschrijving" in data:
        _check_text(
            errors,
            "beschrijving",
            data["beschrijving"],
            max_length=CRITERION_MAX_LENGTH,
            required=True,
        )
    if "voltooid" in data and not isinstance(data["voltooid"], bool):
        errors.append("voltooid must be a boolean")

    return ValidationResult(errors)
