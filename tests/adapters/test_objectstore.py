"""Tests for the embedded object store and its StorageAdapter."""

from __future__ import annotations

import json

import pytest

from sprint_tracker.adapters.objectstore import ObjectStoreStorageAdapter
from sprint_tracker.adapters.objectstore.storage import SCHEMA_VERSION
from sprint_tracker.adapters.objectstore.store import (
    ConstraintError,
    ObjectDatabase,
    ObjectStore,
    parse_schema,
)
from sprint_tracker.exceptions import MigrationError, StorageError
from sprint_tracker.testing import make_goal, make_sprint


def _read(path):
    with open(path, encoding="utf-8") as f:
        return json.load(f)


class TestSchema:
    def test_parse_schema(self):
        primary, indexes = parse_schema("id, &volgnummer, startdatum")

        assert primary == "id"
        assert [(i.field, i.unique) for i in indexes] == [
            ("volgnummer", True),
            ("startdatum", False),
        ]


class TestObjectStore:
    @pytest.fixture
    def db(self):
        db = ObjectDatabase(None, 1, {"items": "id, &code, group"})
        db.open()
        return db

    def test_unique_index(self, db):
        items = db.table("items")
        items.add({"id": "a", "code": 1})

        with pytest.raises(ConstraintError):
            items.add({"id": "b", "code": 1})
        with pytest.raises(ConstraintError):
            items.add({"id": "a", "code": 2})

    def test_unique_index_allows_update_of_same_record(self, db):
        items = db.table("items")
        items.add({"id": "a", "code": 1, "group": "x"})

        assert items.update("a", {"code": 1, "group": "y"}) is True
        assert items.get("a")["group"] == "y"

    def test_index_queries(self, db):
        items = db.table("items")
        items.add({"id": "a", "code": 3, "group": "x"})
        items.add({"id": "b", "code": 1, "group": "y"})
        items.add({"id": "c", "code": 2, "group": "x"})

        assert [r["id"] for r in items.where("group").equals("x")] == ["a", "c"]
        assert [r["id"] for r in items.where("code").below_or_equal(2)] == ["b", "c"]
        assert [r["id"] for r in items.where("code").above_or_equal(2)] == ["c", "a"]
        assert [r["id"] for r in items.order_by("code", reverse=True)] == ["a", "c", "b"]

    def test_returned_records_are_copies(self, db):
        items = db.table("items")
        items.add({"id": "a", "code": 1})

        items.get("a")["code"] = 99

        assert items.get("a")["code"] == 1

    def test_write_requires_open_database(self):
        db = ObjectDatabase(None, 1, {"items": "id"})
        with pytest.raises(StorageError):
            db.table("items").add({"id": "a"})

    def test_unknown_store(self, db):
        with pytest.raises(StorageError):
            db.table("missing")

    def test_standalone_load_rejects_duplicates(self):
        store = ObjectStore("items", "id, &code", lambda store: None)
        with pytest.raises(ConstraintError):
            store.load([{"id": "a", "code": 1}, {"id": "b", "code": 1}])


class TestTransactions:
    @pytest.mark.asyncio
    async def test_file_written_only_on_outer_commit(self, tmp_path):
        path = tmp_path / "db.json"
        db = ObjectDatabase(path, 1, {"items": "id"})
        db.open()

        async with db.transaction("items"):
            db.table("items").add({"id": "a"})
            async with db.transaction("items"):
                db.table("items").add({"id": "b"})
            assert _read(path)["stores"]["items"] == []

        assert [r["id"] for r in _read(path)["stores"]["items"]] == ["a", "b"]

    @pytest.mark.asyncio
    async def test_rollback_restores_records_and_indexes(self, tmp_path):
        db = ObjectDatabase(tmp_path / "db.json", 1, {"items": "id, &code"})
        db.open()
        db.table("items").add({"id": "a", "code": 1})

        with pytest.raises(RuntimeError):
            async with db.transaction("items"):
                db.table("items").delete("a")
                db.table("items").add({"id": "b", "code": 1})
                raise RuntimeError("boom")

        items = db.table("items")
        assert items.get("a") == {"id": "a", "code": 1}
        assert items.get("b") is None
        assert [r["id"] for r in items.where("code").equals(1)] == ["a"]

    @pytest.mark.asyncio
    async def test_write_outside_scope_rejected(self):
        db = ObjectDatabase(None, 1, {"items": "id", "other": "id"})
        db.open()

        with pytest.raises(StorageError):
            async with db.transaction("items"):
                db.table("other").add({"id": "a"})

    @pytest.mark.asyncio
    async def test_nested_scope_must_be_subset(self):
        db = ObjectDatabase(None, 1, {"items": "id", "other": "id"})
        db.open()

        with pytest.raises(StorageError):
            async with db.transaction("items"):
                async with db.transaction("other"):
                    pass


class TestPersistence:
    @pytest.mark.asyncio
    async def test_data_survives_reopen(self, tmp_path):
        path = tmp_path / "tracker.json"
        sprint = make_sprint(1)
        goal = make_goal(sprint.id)

        async with ObjectStoreStorageAdapter(path) as adapter:
            await adapter.create_sprint(sprint)
            await adapter.create_goal(goal)

        data = _read(path)
        assert data["version"] == SCHEMA_VERSION
        assert data["stores"]["sprints"][0]["volgnummer"] == 1

        async with ObjectStoreStorageAdapter(path) as adapter:
            assert await adapter.get_sprint_by_number(1) == sprint
            assert await adapter.get_goals_by_sprint_id(sprint.id) == [goal]

    @pytest.mark.asyncio
    async def test_memory_path_writes_nothing(self, tmp_path):
        async with ObjectStoreStorageAdapter(":memory:") as adapter:
            await adapter.create_sprint(make_sprint(1))

        assert list(tmp_path.iterdir()) == []

    @pytest.mark.asyncio
    async def test_no_temp_files_left_behind(self, tmp_path):
        async with ObjectStoreStorageAdapter(tmp_path / "tracker.json") as adapter:
            await adapter.create_sprint(make_sprint(1))

        assert [p.name for p in tmp_path.iterdir()] == ["tracker.json"]

    @pytest.mark.asyncio
    async def test_older_version_is_upgraded(self, tmp_path):
        path = tmp_path / "tracker.json"
        sprint = make_sprint(1)
        path.write_text(
            json.dumps({"version": 1, "stores": {"sprints": [sprint.to_record()]}}),
            encoding="utf-8",
        )

        async with ObjectStoreStorageAdapter(path) as adapter:
            assert await adapter.get_sprint_by_number(1) == sprint

        assert _read(path)["version"] == SCHEMA_VERSION

    @pytest.mark.asyncio
    async def test_upgrade_fails_on_duplicate_numbers(self, tmp_path):
        path = tmp_path / "tracker.json"
        records = [
            make_sprint(1).to_record(),
            make_sprint(1, "2026-02-02", "2026-02-15").to_record(),
        ]
        path.write_text(
            json.dumps({"version": 1, "stores": {"sprints": records}}), encoding="utf-8"
        )

        with pytest.raises(MigrationError):
            await ObjectStoreStorageAdapter(path).initialize()

    @pytest.mark.asyncio
    async def test_newer_version_refused(self, tmp_path):
        path = tmp_path / "tracker.json"
        path.write_text(
            json.dumps({"version": SCHEMA_VERSION + 1, "stores": {}}), encoding="utf-8"
        )

        with pytest.raises(MigrationError):
            await ObjectStoreStorageAdapter(path).initialize()

    @pytest.mark.asyncio
    async def test_corrupt_file(self, tmp_path):
        path = tmp_path / "tracker.json"
        path.write_text("{not json", encoding="utf-8")

        with pytest.raises(StorageError):
            await ObjectStoreStorageAdapter(path).initialize()
