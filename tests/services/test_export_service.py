"""Tests for ExportService."""

from __future__ import annotations

import json

import pytest
import pytest_asyncio

from sprint_tracker.services.export_service import EXPORT_VERSION

SPRINT_ID = "11111111-1111-4111-8111-111111111111"
GOAL_ID = "22222222-2222-4222-8222-222222222222"
CRITERION_ID = "33333333-3333-4333-8333-333333333333"


def _document(**goal_overrides):
    goal = {
        "id": GOAL_ID,
        "sprint_id": SPRINT_ID,
        "titel": "Imported goal",
        "beschrijving": "",
        "eigenaar": "alice",
        "geschatte_uren": 4,
        "werkelijke_uren": None,
        "behaald": None,
        "toelichting": None,
        "geleerde_lessen": None,
        "aangemaakt_op": "2026-01-05T09:00:00.000Z",
        "gewijzigd_op": "2026-01-06T09:00:00.000Z",
        "success_criteria": [
            {"id": CRITERION_ID, "goal_id": GOAL_ID, "beschrijving": "Done", "voltooid": True}
        ],
    }
    goal.update(goal_overrides)
    return {
        "version": "1.0",
        "exported_at": "2026-01-20T10:00:00.000Z",
        "sprints": [
            {
                "id": SPRINT_ID,
                "volgnummer": 1,
                "startdatum": "2026-01-05",
                "einddatum": "2026-01-18",
                "goals": [goal],
            }
        ],
    }


@pytest_asyncio.fixture
async def populated(storage):
    sprint = await storage.sprints.create(start_date="2026-01-05", end_date="2026-01-18")
    goal = await storage.goals.create(
        sprint_id=sprint.id, title="Ship it", owner="alice", estimated_hours=4
    )
    await storage.criteria.create_many(goal.id, ["Tests pass", "Docs updated"])
    await storage.goals.mark_achieved(goal.id, True, "Went well")
    await storage.sprints.create()
    return storage


@pytest.mark.asyncio
async def test_export_all_nests_entities(populated):
    document = await populated.exports.export_all()
    record = document.to_record()

    assert record["version"] == EXPORT_VERSION
    assert [s["volgnummer"] for s in record["sprints"]] == [1, 2]
    goal = record["sprints"][0]["goals"][0]
    assert goal["titel"] == "Ship it"
    assert goal["behaald"] is True
    assert goal["toelichting"] == "Went well"
    assert [c["beschrijving"] for c in goal["success_criteria"]] == ["Tests pass", "Docs updated"]
    assert record["sprints"][1]["goals"] == []


@pytest.mark.asyncio
async def test_round_trip_into_empty_storage(populated, memory_storage):
    exported = (await populated.exports.export_all()).to_record()

    result = await memory_storage.exports.import_data(exported)

    assert (result.sprints, result.goals, result.criteria, result.skipped) == (2, 1, 2, 0)
    assert result.errors == []
    reexported = (await memory_storage.exports.export_all()).to_record()
    assert reexported["sprints"] == exported["sprints"]


@pytest.mark.asyncio
async def test_import_keeps_ids_and_timestamps(storage):
    result = await storage.exports.import_data(_document())

    assert result.errors == []
    goal = await storage.goals.get_by_id(GOAL_ID)
    assert goal.created_at == "2026-01-05T09:00:00.000Z"
    assert goal.updated_at == "2026-01-06T09:00:00.000Z"
    assert (await storage.criteria.get_by_id(CRITERION_ID)).completed is True


@pytest.mark.asyncio
async def test_existing_sprint_skipped_without_overwrite(storage):
    await storage.exports.import_data(_document())

    result = await storage.exports.import_data(_document(titel="Changed"))

    assert result.sprints == 0
    assert result.skipped == 1
    assert result.errors == [f"Sprint 1 already exists (ID: {SPRINT_ID})"]
    assert (await storage.goals.get_by_id(GOAL_ID)).title == "Imported goal"


@pytest.mark.asyncio
async def test_overwrite_replaces_sprint_tree(storage):
    await storage.exports.import_data(_document())
    document = _document(titel="Changed", success_criteria=[])

    result = await storage.exports.import_data(document, overwrite=True)

    assert (result.sprints, result.goals, result.criteria) == (1, 1, 0)
    assert (await storage.goals.get_by_id(GOAL_ID)).title == "Changed"
    assert await storage.criteria.get_by_id(CRITERION_ID) is None


@pytest.mark.asyncio
async def test_number_held_by_other_sprint_is_skipped(storage):
    holder = await storage.sprints.create(number=1, start_date="2026-01-05", end_date="2026-01-18")

    result = await storage.exports.import_data(_document(), overwrite=True)

    assert result.sprints == 0
    assert result.skipped == 1
    assert result.errors == [f"Sprint 1 already exists (ID: {holder.id})"]
    assert await storage.goals.get_by_id(GOAL_ID) is None


@pytest.mark.asyncio
async def test_invalid_document_writes_nothing(storage):
    result = await storage.exports.import_data(_document(geschatte_uren=8.1))

    assert result.sprints == 0
    assert result.errors == ["Sprint[0].goals[0].geschatte_uren: must be in 0.25 hour increments"]
    assert await storage.sprints.get_all() == []


@pytest.mark.asyncio
async def test_validation_collects_every_problem(storage):
    document = _document(titel="", sprint_id=CRITERION_ID)
    document["sprints"][0]["einddatum"] = "2026-01-01"
    document["sprints"].append("not a sprint")

    result = storage.exports.validate_import_data(document)

    assert not result.valid
    assert result.errors == [
        "Sprint[0].einddatum: must be after startdatum",
        "Sprint[0].goals[0].sprint_id: must match the id of its sprint",
        "Sprint[0].goals[0].titel: must be a string (1-200 chars)",
        "Sprint[1]: must be an object",
    ]


@pytest.mark.asyncio
async def test_repeated_sprint_id_rejected(storage):
    document = _document()
    document["sprints"].append(dict(document["sprints"][0], volgnummer=2, goals=[]))

    result = await storage.exports.import_data(document, overwrite=True)

    assert (result.sprints, result.goals, result.criteria) == (0, 0, 0)
    assert result.errors == ["Sprint[1].id: duplicates the id of Sprint[0]"]
    assert await storage.sprints.get_all() == []


@pytest.mark.asyncio
async def test_out_of_range_values_rejected(storage):
    document = _document(geschatte_uren=1e20)
    document["sprints"][0]["volgnummer"] = 2**63

    result = await storage.exports.import_data(document)

    assert result.errors == [
        "Sprint[0].volgnummer: must not exceed 9223372036854775807",
        "Sprint[0].goals[0].geschatte_uren: must not exceed 10000 hours",
    ]
    assert await storage.sprints.get_all() == []


@pytest.mark.parametrize(
    ("data", "errors"),
    [
        ([], ["Data must be an object"]),
        ({"sprints": []}, ["Missing or invalid version field"]),
        ({"version": "1.0"}, ["Missing or invalid sprints array"]),
    ],
)
def test_document_shape(memory_storage, data, errors):
    assert memory_storage.exports.validate_import_data(data).errors == errors


@pytest.mark.asyncio
async def test_storage_failure_aborts_whole_import(storage):
    document = _document()
    duplicate = dict(document["sprints"][0], id="44444444-4444-4444-8444-444444444444", volgnummer=2)
    # Same goal id twice: the second insert fails
    duplicate["goals"] = [dict(duplicate["goals"][0], sprint_id=duplicate["id"])]
    duplicate["goals"][0]["success_criteria"] = []
    document["sprints"].append(duplicate)

    result = await storage.exports.import_data(document)

    assert len(result.errors) == 1
    assert result.errors[0].startswith("Import failed: ")
    assert await storage.sprints.get_all() == []


@pytest.mark.asyncio
async def test_export_single_sprint(populated):
    sprint = await populated.sprints.get_by_number(1)

    document = await populated.exports.export_sprints_document(sprint.id)

    assert [s.id for s in document.sprints] == [sprint.id]
    assert await populated.exports.export_sprint("3f2b8c1e-9a4d-4c6e-8b7a-1d2e3f4a5b6c") is None


@pytest.mark.asyncio
async def test_file_round_trip(populated, memory_storage, tmp_path):
    path = await populated.exports.export_to_file(tmp_path / "out" / "export.json")

    with open(path, encoding="utf-8") as f:
        assert json.load(f)["version"] == EXPORT_VERSION

    result = await memory_storage.exports.import_from_file(path)
    assert (result.sprints, result.goals, result.criteria) == (2, 1, 2)


@pytest.mark.asyncio
async def test_import_missing_file(memory_storage, tmp_path):
    result = await memory_storage.exports.import_from_file(tmp_path / "nope.json")

    assert result.errors == [f"File not found: {tmp_path / 'nope.json'}"]


@pytest.mark.asyncio
async def test_import_malformed_file(memory_storage, tmp_path):
    path = tmp_path / "broken.json"
    path.write_text("{broken", encoding="utf-8")

    result = await memory_storage.exports.import_from_file(path)

    assert len(result.errors) == 1
    assert result.errors[0].startswith("Failed to parse file: ")
