"""Test doubles and entity builders shipped with the package."""

from sprint_tracker.testing.factories import make_criterion, make_goal, make_sprint
from sprint_tracker.testing.memory_storage import InMemoryStorageAdapter

__all__ = ["InMemoryStorageAdapter", "make_sprint", "make_goal", "make_criterion"]
