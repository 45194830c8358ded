"""Sprint, goal and success criterion data models.

Attributes use English names in code. The Dutch names of the export format
are the field aliases, and both storage backends persist records under the
alias names, so a stored row validates straight into a model.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class WireModel(BaseModel):
    """Base model that accepts either attribute or alias names."""

    model_config = ConfigDict(populate_by_name=True)

    def to_record(self) -> dict[str, Any]:
        """Dump using the persisted (alias) field names."""
        return self.model_dump(by_alias=True)


class Sprint(WireModel):
    """Sprint model representing a two-week work cycle.

    Attributes:
        id: Unique identifier (UUID)
        number: Sequence number, unique across sprints
        start_date: First day of the sprint (YYYY-MM-DD)
        end_date: Last day of the sprint (YYYY-MM-DD)
    """

    id: str
    number: int = Field(alias="volgnummer")
    start_date: str = Field(alias="startdatum")
    end_date: str = Field(alias="einddatum")


class SprintUpdate(WireModel):
    """Model for updating an existing sprint.

    Only fields that were explicitly set are applied.
    """

    number: int | None = Field(default=None, alias="volgnummer")
    start_date: str | None = Field(default=None, alias="startdatum")
    end_date: str | None = Field(default=None, alias="einddatum")


class Goal(WireModel):
    """Goal model representing an objective within a sprint.

    Attributes:
        id: Unique identifier (UUID)
        sprint_id: Owning sprint
        title: Short title (1-200 chars)
        description: Longer description (max 2000 chars)
        owner: Person responsible (1-50 chars)
        estimated_hours: Estimate in quarter-hour steps
        actual_hours: Logged hours in quarter-hour steps, None when not logged
        achieved: True/False once evaluated, None while open
        note: Completion note
        lessons_learned: Lessons learned note
        created_at: ISO-8601 creation timestamp
        updated_at: ISO-8601 last modification timestamp
    """

    id: str
    sprint_id: str
    title: str = Field(alias="titel")
    description: str = Field(alias="beschrijving")
    owner: str = Field(alias="eigenaar")
    estimated_hours: float = Field(alias="geschatte_uren")
    actual_hours: float | None = Field(default=None, alias="werkelijke_uren")
    achieved: bool | None = Field(default=None, alias="behaald")
    note: str | None = Field(default=None, alias="toelichting")
    lessons_learned: str | None = Field(default=None, alias="geleerde_lessen")
    created_at: str = Field(alias="aangemaakt_op")
    updated_at: str = Field(alias="gewijzigd_op")


class GoalUpdate(WireModel):
    """Model for updating an existing goal.

    Only fields that were explicitly set are applied, so passing None for a
    nullable field clears it.
    """

    title: str | None = Field(default=None, alias="titel")
    description: str | None = Field(default=None, alias="beschrijving")
    owner: str | None = Field(default=None, alias="eigenaar")
    estimated_hours: float | None = Field(default=None, alias="geschatte_uren")
    actual_hours: float | None = Field(default=None, alias="werkelijke_uren")
    achieved: bool | None = Field(default=None, alias="behaald")
    note: str | None = Field(default=None, alias="toelichting")
    lessons_learned: str | None = Field(default=None, alias="geleerde_lessen")
    updated_at: str | None = Field(default=None, alias="gewijzigd_op")


class SuccessCriterion(WireModel):
    """Checklist item that defines success for a goal."""

    id: str
    goal_id: str
    description: str = Field(alias="beschrijving")
    completed: bool = Field(default=False, alias="voltooid")


class CriterionUpdate(WireModel):
    """Model for updating a success criterion."""

    description: str | None = Field(default=None, alias="beschrijving")
    completed: bool | None = Field(default=None, alias="voltooid")


class GoalWithCriteria(Goal):
    """Goal with its success criteria nested, as exported."""

    success_criteria: list[SuccessCriterion] = Field(default_factory=list)


class SprintWithGoals(Sprint):
    """Sprint with its goals nested, as exported."""

    goals: list[GoalWithCriteria] = Field(default_factory=list)


class ExportData(WireModel):
    """Top-level export document."""

    version: str
    exported_at: str
    sprints: list[SprintWithGoals] = Field(default_factory=list)


class ImportResult(BaseModel):
    """Summary of an import run.

    Attributes:
        sprints: Number of sprints written
        goals: Number of goals written
        criteria: Number of criteria written
        skipped: Number of sprints skipped (already present)
        errors: Human-readable warnings and errors
    """

    sprints: int = 0
    goals: int = 0
    criteria: int = 0
    skipped: int = 0
    errors: list[str] = Field(default_factory=list)


class SprintStats(BaseModel):
    """Aggregate statistics for the goals of one sprint."""

    total_goals: int = 0
    completed_goals: int = 0
    estimated_hours: float = 0.0
    actual_hours: float = 0.0


class GoalProgress(BaseModel):
    """Completion progress of a goal's success criteria."""

    completed: int = 0
    total: int = 0
    percentage: int = 0


class SuggestedDates(BaseModel):
    """Suggested date range for the next sprint."""

    start_date: str
    end_date: str
