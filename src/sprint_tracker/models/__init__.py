"""Sprint Tracker domain models.

This package contains Pydantic models that represent the core domain entities
of the application. They are shared by the services, both storage backends
and the export format.
"""

from .core import (
    CriterionUpdate,
    ExportData,
    Goal,
    GoalProgress,
    GoalUpdate,
    GoalWithCriteria,
    ImportResult,
    Sprint,
    SprintStats,
    SprintUpdate,
    SprintWithGoals,
    SuccessCriterion,
    SuggestedDates,
    WireModel,
)

__all__ = [
    # Sprint models
    "Sprint",
    "SprintUpdate",
    "SprintStats",
    "SuggestedDates",
    # Goal models
    "Goal",
    "GoalUpdate",
    # Criterion models
    "SuccessCriterion",
    "CriterionUpdate",
    "GoalProgress",
    # Export models
    "GoalWithCriteria",
    "SprintWithGoals",
    "ExportData",
    "ImportResult",
    "WireModel",
]
