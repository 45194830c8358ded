"""Storage abstraction layer for Sprint Tracker.

This module defines the abstract base class (interface) every storage backend
implements, following the hexagonal architecture (Ports & Adapters) pattern.

The services depend only on this contract, so the SQLite backend, the embedded
object store and the in-memory test backend are interchangeable: a caller must
observe the same behaviour whichever adapter is injected.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from typing import TypeVar

from sprint_tracker.models import (
    CriterionUpdate,
    Goal,
    GoalUpdate,
    Sprint,
    SprintUpdate,
    SuccessCriterion,
)

T = TypeVar("T")


class StorageAdapter(ABC):
    """Abstract base class for sprint/goal/criterion persistence.

    Entities are written exactly as given (identifiers and timestamps are
    generated by the services, not here). Deletes cascade: a sprint takes its
    goals and their criteria with it, a goal takes its criteria.

    Delete on a missing identifier returns False. Update on a missing
    identifier is a no-op at this level; services check existence first.
    """

    @property
    @abstractmethod
    def storage_type(self) -> str:
        """Storage type identifier (for logging/debugging)."""

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @abstractmethod
    async def initialize(self) -> None:
        """Open the backing store and bring its schema up to date.

        Idempotent: calling it on an already initialised store is safe.
        """
        raise NotImplementedError("StorageAdapter.initialize() must be implemented by adapter")

    @abstractmethod
    async def close(self) -> None:
        """Release the backing store."""
        raise NotImplementedError("StorageAdapter.close() must be implemented by adapter")

    async def __aenter__(self) -> StorageAdapter:
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    # ------------------------------------------------------------------
    # Sprints
    # ------------------------------------------------------------------

    @abstractmethod
    async def create_sprint(self, sprint: Sprint) -> None:
        """Persist a new sprint.

        Raises:
            StorageError: If the id or sequence number is already taken
        """
        raise NotImplementedError("StorageAdapter.create_sprint() must be implemented by adapter")

    @abstractmethod
    async def get_sprint_by_id(self, sprint_id: str) -> Sprint | None:
        raise NotImplementedError("StorageAdapter.get_sprint_by_id() must be implemented by adapter")

    @abstractmethod
    async def get_sprint_by_number(self, number: int) -> Sprint | None:
        raise NotImplementedError(
            "StorageAdapter.get_sprint_by_number() must be implemented by adapter"
        )

    @abstractmethod
    async def get_all_sprints(self) -> list[Sprint]:
        """List all sprints ordered by sequence number."""
        raise NotImplementedError("StorageAdapter.get_all_sprints() must be implemented by adapter")

    @abstractmethod
    async def update_sprint(self, sprint_id: str, updates: SprintUpdate) -> None:
        """Apply the explicitly set fields of ``updates``."""
        raise NotImplementedError("StorageAdapter.update_sprint() must be implemented by adapter")

    @abstractmethod
    async def delete_sprint(self, sprint_id: str) -> bool:
        """Delete a sprint with all its goals and their criteria.

        Criteria go first, then goals, then the sprint, in one transaction.

        Returns:
            True if the sprint existed and was deleted
        """
        raise NotImplementedError("StorageAdapter.delete_sprint() must be implemented by adapter")

    @abstractmethod
    async def get_max_sprint_number(self) -> int | None:
        """Highest sequence number in use, or None when there are no sprints."""
        raise NotImplementedError(
            "StorageAdapter.get_max_sprint_number() must be implemented by adapter"
        )

    @abstractmethod
    async def get_current_sprint(self, today: str) -> Sprint | None:
        """Sprint whose range contains ``today`` (YYYY-MM-DD), inclusive.

        If more than one qualifies, the highest sequence number wins.
        """
        raise NotImplementedError("StorageAdapter.get_current_sprint() must be implemented by adapter")

    @abstractmethod
    async def get_latest_sprint(self) -> Sprint | None:
        """Sprint with the highest sequence number."""
        raise NotImplementedError("StorageAdapter.get_latest_sprint() must be implemented by adapter")

    @abstractmethod
    async def sprint_exists(self, sprint_id: str) -> bool:
        raise NotImplementedError("StorageAdapter.sprint_exists() must be implemented by adapter")

    # ------------------------------------------------------------------
    # Goals
    # ------------------------------------------------------------------

    @abstractmethod
    async def create_goal(self, goal: Goal) -> None:
        """Persist a new goal.

        Raises:
            StorageError: If the id is already taken
        """
        raise NotImplementedError("StorageAdapter.create_goal() must be implemented by adapter")

    @abstractmethod
    async def get_goal_by_id(self, goal_id: str) -> Goal | None:
        raise NotImplementedError("StorageAdapter.get_goal_by_id() must be implemented by adapter")

    @abstractmethod
    async def get_goals_by_sprint_id(self, sprint_id: str) -> list[Goal]:
        """Goals of one sprint ordered by creation time."""
        raise NotImplementedError(
            "StorageAdapter.get_goals_by_sprint_id() must be implemented by adapter"
        )

    @abstractmethod
    async def get_goals_by_owner(self, owner: str) -> list[Goal]:
        """Goals with an exact owner match ordered by creation time."""
        raise NotImplementedError("StorageAdapter.get_goals_by_owner() must be implemented by adapter")

    @abstractmethod
    async def get_all_goals(self) -> list[Goal]:
        raise NotImplementedError("StorageAdapter.get_all_goals() must be implemented by adapter")

    @abstractmethod
    async def update_goal(self, goal_id: str, updates: GoalUpdate) -> None:
        """Apply the explicitly set fields of ``updates``."""
        raise NotImplementedError("StorageAdapter.update_goal() must be implemented by adapter")

    @abstractmethod
    async def delete_goal(self, goal_id: str) -> bool:
        """Delete a goal and its criteria in one transaction."""
        raise NotImplementedError("StorageAdapter.delete_goal() must be implemented by adapter")

    @abstractmethod
    async def goal_exists(self, goal_id: str) -> bool:
        raise NotImplementedError("StorageAdapter.goal_exists() must be implemented by adapter")

    # ------------------------------------------------------------------
    # Success criteria
    # ------------------------------------------------------------------

    @abstractmethod
    async def create_criterion(self, criterion: SuccessCriterion) -> None:
        raise NotImplementedError("StorageAdapter.create_criterion() must be implemented by adapter")

    @abstractmethod
    async def get_criterion_by_id(self, criterion_id: str) -> SuccessCriterion | None:
        raise NotImplementedError(
            "StorageAdapter.get_criterion_by_id() must be implemented by adapter"
        )

    @abstractmethod
    async def get_criteria_by_goal_id(self, goal_id: str) -> list[SuccessCriterion]:
        """Criteria of one goal in insertion order."""
        raise NotImplementedError(
            "StorageAdapter.get_criteria_by_goal_id() must be implemented by adapter"
        )

    @abstractmethod
    async def update_criterion(self, criterion_id: str, updates: CriterionUpdate) -> None:
        raise NotImplementedError("StorageAdapter.update_criterion() must be implemented by adapter")

    @abstractmethod
    async def delete_criterion(self, criterion_id: str) -> bool:
        raise NotImplementedError("StorageAdapter.delete_criterion() must be implemented by adapter")

    @abstractmethod
    async def criterion_exists(self, criterion_id: str) -> bool:
        raise NotImplementedError("StorageAdapter.criterion_exists() must be implemented by adapter")

    # ------------------------------------------------------------------
    # Bulk and transactions
    # ------------------------------------------------------------------

    @abstractmethod
    async def clear_all(self) -> None:
        """Delete every criterion, goal and sprint in one transaction."""
        raise NotImplementedError("StorageAdapter.clear_all() must be implemented by adapter")

    @abstractmethod
    async def transaction(self, work: Callable[[], Awaitable[T]]) -> T:
        """Run ``work`` atomically.

        ``work`` is awaited to completion inside the transactional boundary and
        the commit happens only afterwards, so every write it issues is either
        committed together or rolled back together. The exception that aborted
        the transaction is re-raised to the caller.

        Nested calls join the enclosing transaction as a savepoint: if the
        caller catches an inner failure only the inner work is undone.

        ``work`` must only use this adapter and must not leave tasks running
        after it returns.

        Returns:
            Whatever ``work`` returns
        """
        raise NotImplementedError("StorageAdapter.transaction() must be implemented by adapter")
