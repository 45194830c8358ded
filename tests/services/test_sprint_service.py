"""Tests for SprintService."""

from __future__ import annotations

from datetime import date

import pytest

from sprint_tracker.exceptions import InvalidIdentifierError, NotFoundError, ValidationError


@pytest.mark.asyncio
async def test_create_with_explicit_values(storage):
    sprint = await storage.sprints.create(number=7, start_date="2026-03-02", end_date="2026-03-15")

    assert sprint.number == 7
    assert await storage.sprints.get_by_id(sprint.id) == sprint


@pytest.mark.asyncio
async def test_create_fills_in_number_and_dates(storage):
    first = await storage.sprints.create(start_date="2026-01-05", end_date="2026-01-18")
    second = await storage.sprints.create()

    assert first.number == 1
    assert second.number == 2
    assert second.start_date == "2026-01-19"
    assert second.end_date == "2026-02-01"


@pytest.mark.asyncio
async def test_create_rejects_taken_number(storage):
    await storage.sprints.create(number=1, start_date="2026-01-05", end_date="2026-01-18")

    with pytest.raises(ValidationError) as exc_info:
        await storage.sprints.create(number=1, start_date="2026-01-19", end_date="2026-02-01")

    assert exc_info.value.errors == ["volgnummer 1 is already in use"]


@pytest.mark.asyncio
async def test_create_reports_every_invalid_field(storage):
    with pytest.raises(ValidationError) as exc_info:
        await storage.sprints.create(number=0, start_date="2026-01-18", end_date="2026-01-05")

    assert exc_info.value.errors == [
        "volgnummer must be a positive integer",
        "einddatum must be after startdatum",
    ]
    assert str(exc_info.value).startswith("Validation failed: ")
    assert await storage.sprints.get_all() == []


@pytest.mark.asyncio
async def test_malformed_id_rejected_before_storage(storage):
    with pytest.raises(InvalidIdentifierError, match="Invalid sprint ID format"):
        await storage.sprints.get_by_id("not-a-uuid")
    with pytest.raises(InvalidIdentifierError):
        await storage.sprints.delete("not-a-uuid")


@pytest.mark.asyncio
async def test_get_current_and_latest(storage):
    first = await storage.sprints.create(start_date="2026-01-05", end_date="2026-01-18")
    second = await storage.sprints.create()

    assert await storage.sprints.get_current(date(2026, 1, 10)) == first
    assert await storage.sprints.get_current("2026-01-19") == second
    assert await storage.sprints.get_current("2027-01-01") is None
    assert await storage.sprints.get_latest() == second


@pytest.mark.asyncio
async def test_update_dates(storage):
    sprint = await storage.sprints.create(start_date="2026-01-05", end_date="2026-01-18")

    updated = await storage.sprints.update(sprint.id, end_date="2026-01-16")

    assert updated.end_date == "2026-01-16"
    assert updated.start_date == "2026-01-05"


@pytest.mark.asyncio
async def test_update_checks_merged_dates(storage):
    sprint = await storage.sprints.create(start_date="2026-01-05", end_date="2026-01-18")

    with pytest.raises(ValidationError, match="einddatum must be after startdatum"):
        await storage.sprints.update(sprint.id, start_date="2026-01-20")


@pytest.mark.asyncio
async def test_update_rejects_number_of_other_sprint(storage):
    first = await storage.sprints.create(start_date="2026-01-05", end_date="2026-01-18")
    await storage.sprints.create()

    with pytest.raises(ValidationError, match="volgnummer 2 is already in use"):
        await storage.sprints.update(first.id, number=2)

    # Keeping its own number is fine
    assert (await storage.sprints.update(first.id, number=1)).number == 1


@pytest.mark.asyncio
async def test_update_missing_sprint(storage):
    with pytest.raises(NotFoundError):
        await storage.sprints.update("3f2b8c1e-9a4d-4c6e-8b7a-1d2e3f4a5b6c", number=3)


@pytest.mark.asyncio
async def test_update_unknown_field(storage):
    sprint = await storage.sprints.create(start_date="2026-01-05", end_date="2026-01-18")

    with pytest.raises(ValidationError, match="colour is not an updatable field"):
        await storage.sprints.update(sprint.id, colour="red")


@pytest.mark.asyncio
async def test_delete(storage):
    sprint = await storage.sprints.create(start_date="2026-01-05", end_date="2026-01-18")
    goal = await storage.goals.create(
        sprint_id=sprint.id, title="Goal", owner="alice", estimated_hours=2
    )

    assert await storage.sprints.delete(sprint.id) is True
    assert await storage.sprints.delete(sprint.id) is False
    assert await storage.goals.get_by_id(goal.id) is None


@pytest.mark.asyncio
async def test_next_number(storage):
    assert await storage.sprints.get_next_number() == 1
    await storage.sprints.create(number=4, start_date="2026-01-05", end_date="2026-01-18")
    assert await storage.sprints.get_next_number() == 5


@pytest.mark.parametrize(
    ("today", "start", "end"),
    [
        ("2026-01-07", "2026-01-07", "2026-01-20"),  # Wednesday
        ("2026-01-03", "2026-01-05", "2026-01-18"),  # Saturday
        ("2026-01-04", "2026-01-05", "2026-01-18"),  # Sunday
    ],
)
@pytest.mark.asyncio
async def test_suggested_dates_without_sprints(memory_storage, today, start, end):
    suggested = await memory_storage.sprints.get_suggested_next_dates(today)

    assert (suggested.start_date, suggested.end_date) == (start, end)


@pytest.mark.asyncio
async def test_suggested_dates_follow_latest_sprint(memory_storage):
    await memory_storage.sprints.create(start_date="2026-01-05", end_date="2026-01-18")

    suggested = await memory_storage.sprints.get_suggested_next_dates("2026-06-01")

    assert (suggested.start_date, suggested.end_date) == ("2026-01-19", "2026-02-01")


@pytest.mark.asyncio
@pytest.mark.parametrize("number", [2**63, 10**30, 1e20])
async def test_create_rejects_number_beyond_integer_range(storage, number):
    with pytest.raises(ValidationError) as exc_info:
        await storage.sprints.create(number=number, start_date="2026-01-05", end_date="2026-01-18")

    assert exc_info.value.errors == ["volgnummer must not exceed 9223372036854775807"]
    assert await storage.sprints.get_all() == []


@pytest.mark.asyncio
async def test_create_accepts_largest_number(storage):
    sprint = await storage.sprints.create(
        number=2**63 - 1, start_date="2026-01-05", end_date="2026-01-18"
    )

    assert (await storage.sprints.get_by_id(sprint.id)).number == 2**63 - 1


@pytest.mark.asyncio
@pytest.mark.parametrize("today", ["2026-1-5", "05-01-2026", "2026-02-30", "today"])
async def test_get_current_rejects_malformed_date(storage, today):
    await storage.sprints.create(number=1, start_date="2026-01-05", end_date="2026-01-18")

    with pytest.raises(ValidationError):
        await storage.sprints.get_current(today)
