"""Custom exceptions for Sprint Tracker."""

from __future__ import annotations


class SprintTrackerError(Exception):
    """Base exception for all Sprint Tracker errors."""


class ValidationError(SprintTrackerError):
    """Raised when input violates one or more format/range rules.

    Carries every violated rule in ``errors``, not just the first one.
    """

    def __init__(self, errors: list[str], prefix: str = "Validation failed"):
        self.errors = list(errors)
        super().__init__(f"{prefix}: {', '.join(self.errors)}")


class NotFoundError(SprintTrackerError):
    """Raised when a referenced or targeted entity does not exist."""

    def __init__(self, entity: str, identifier: object, field: str = "ID"):
        self.entity = entity
        self.identifier = identifier
        super().__init__(f"{entity.capitalize()} with {field} {identifier} not found")


class InvalidIdentifierError(SprintTrackerError):
    """Raised when an identifier is not a well-formed UUID."""

    def __init__(self, entity: str, identifier: object):
        self.entity = entity
        self.identifier = identifier
        super().__init__(f"Invalid {entity} ID format")


class StorageError(SprintTrackerError):
    """Raised when a backend rejects a write (constraint or integrity violation)."""


class MigrationError(StorageError):
    """Raised when a schema migration cannot be applied."""
