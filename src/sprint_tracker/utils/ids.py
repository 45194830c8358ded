"""Identifier and timestamp helpers."""

from __future__ import annotations

import uuid
from datetime import UTC, datetime


def generate_uuid() -> str:
    """Generate a new UUID as string.

    Returns:
        UUID string (e.g., "123e4567-e89b-42d3-a456-426614174000")
    """
    return str(uuid.uuid4())


def now_iso() -> str:
    """Current UTC time as an ISO-8601 string with millisecond precision.

    Returns:
        e.g. "2026-01-13T09:00:00.000Z"
    """
    return datetime.now(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def shorten_uuid(value: str, length: int = 8) -> str:
    """First ``length`` characters of a UUID, for display."""
    return value[:length]
