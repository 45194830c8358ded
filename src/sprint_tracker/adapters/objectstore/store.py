"""Embedded indexed object store persisted to a single JSON file.

A database is a set of named stores. Each store is declared with a schema
string listing its primary key followed by its secondary indexes, e.g.
``"id, &volgnummer, startdatum"``; a ``&`` prefix marks a unique index.

Indexes only answer single-key questions (equality and one-sided ranges on
one field). Anything compound is a scan over one index followed by an
in-memory filter in the caller.

Writes go to memory immediately. Outside a transaction every write is
flushed to disk straight away; inside one, the file is rewritten once when
the outermost transaction commits. Files are replaced atomically (temp file
plus ``os.replace``), so a crash leaves either the old or the new content.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from collections.abc import AsyncIterator, Callable, Iterable, Iterator
from contextlib import AbstractContextManager, asynccontextmanager, contextmanager
from dataclasses import dataclass
from itertools import count
from pathlib import Path
from typing import Any

from sprint_tracker.exceptions import MigrationError, StorageError

logger = logging.getLogger(__name__)

Record = dict[str, Any]


class ConstraintError(StorageError):
    """Raised when a write violates a primary key or unique index."""


@dataclass(frozen=True)
class IndexSpec:
    """A secondary index declaration."""

    field: str
    unique: bool = False

    @classmethod
    def parse(cls, token: str) -> IndexSpec:
        token = token.strip()
        if token.startswith("&"):
            return cls(field=token[1:], unique=True)
        return cls(field=token)


def parse_schema(schema: str) -> tuple[str, list[IndexSpec]]:
    """Split a store schema string into its primary key and index specs.

    Args:
        schema: e.g. ``"id, &volgnummer, startdatum"``

    Returns:
        Tuple of (primary key field, secondary indexes)
    """
    tokens = [token.strip() for token in schema.split(",") if token.strip()]
    if not tokens:
        raise ValueError("Store schema must declare a primary key")
    return tokens[0], [IndexSpec.parse(token) for token in tokens[1:]]


class IndexQuery:
    """Lookups over one index of one store."""

    def __init__(self, store: ObjectStore, field: str):
        if field != store.primary_key and field not in store.indexes:
            raise StorageError(f"Store '{store.name}' has no index on '{field}'")
        self.store = store
        self.field = field

    def _keys(self, predicate: Callable[[Any], bool]) -> list[Any]:
        if self.field == self.store.primary_key:
            return [key for key in self.store.records if predicate(key)]
        index = self.store.indexes[self.field]
        keys: list[Any] = []
        for value in sorted(index):
            if predicate(value):
                keys.extend(self.store._in_position_order(index[value]))
        return keys

    def equals(self, value: Any) -> list[Record]:
        """Records whose indexed field equals ``value``, in insertion order."""
        if self.field == self.store.primary_key:
            record = self.store.get(value)
            return [record] if record is not None else []
        keys = self.store.indexes[self.field].get(value, set())
        return self.store._collect(self.store._in_position_order(keys))

    def below_or_equal(self, value: Any) -> list[Record]:
        """Records whose indexed field is <= ``value``, ordered by that field."""
        return self.store._collect(self._keys(lambda v: v <= value))

    def above_or_equal(self, value: Any) -> list[Record]:
        """Records whose indexed field is >= ``value``, ordered by that field."""
        return self.store._collect(self._keys(lambda v: v >= value))


class ObjectStore:
    """One named store: records keyed by primary key, plus secondary indexes."""

    def __init__(
        self,
        name: str,
        schema: str,
        writing: Callable[[ObjectStore], AbstractContextManager[None]],
    ):
        self.name = name
        self.schema = schema
        self.primary_key, self.index_specs = parse_schema(schema)
        self.records: dict[Any, Record] = {}
        # index field -> indexed value -> primary keys
        self.indexes: dict[str, dict[Any, set[Any]]] = {
            spec.field: {} for spec in self.index_specs
        }
        self._position: dict[Any, int] = {}
        self._counter = count()
        self._writing = writing

    # -- internal index maintenance ------------------------------------

    def _index_add(self, key: Any, record: Record) -> None:
        for spec in self.index_specs:
            value = record.get(spec.field)
            if value is None:
                continue
            self.indexes[spec.field].setdefault(value, set()).add(key)

    def _index_remove(self, key: Any, record: Record) -> None:
        for spec in self.index_specs:
            value = record.get(spec.field)
            if value is None:
                continue
            keys = self.indexes[spec.field].get(value)
            if keys is not None:
                keys.discard(key)
                if not keys:
                    del self.indexes[spec.field][value]

    def _check_unique(self, key: Any, record: Record) -> None:
        for spec in self.index_specs:
            if not spec.unique:
                continue
            value = record.get(spec.field)
            if value is None:
                continue
            holders = self.indexes[spec.field].get(value, set()) - {key}
            if holders:
                raise ConstraintError(
                    f"Unique constraint failed: {self.name}.{spec.field} = {value!r}"
                )

    def _collect(self, keys: Iterable[Any]) -> list[Record]:
        return [dict(self.records[key]) for key in keys]

    def _in_position_order(self, keys: Iterable[Any]) -> list[Any]:
        return sorted(keys, key=self._position.__getitem__)

    def _store(self, key: Any, record: Record) -> None:
        if key not in self._position:
            self._position[key] = next(self._counter)
        self.records[key] = record
        self._index_add(key, record)

    # -- reads ----------------------------------------------------------

    def get(self, key: Any) -> Record | None:
        record = self.records.get(key)
        return dict(record) if record is not None else None

    def where(self, field: str) -> IndexQuery:
        return IndexQuery(self, field)

    def order_by(self, field: str, reverse: bool = False) -> list[Record]:
        """All records that have ``field`` set, ordered by it."""
        if field == self.primary_key:
            keys = sorted(self.records, reverse=reverse)
        else:
            keys = []
            for value in sorted(self.indexes[field], reverse=reverse):
                keys.extend(self._in_position_order(self.indexes[field][value]))
        return self._collect(keys)

    def to_list(self) -> list[Record]:
        """All records in insertion order."""
        return [dict(record) for record in self.records.values()]

    def count(self) -> int:
        return len(self.records)

    # -- writes ---------------------------------------------------------

    def add(self, record: Record) -> Any:
        """Insert a new record.

        Raises:
            ConstraintError: If the primary key or a unique index value is taken
        """
        record = dict(record)
        key = record.get(self.primary_key)
        if key is None:
            raise ConstraintError(f"Record for '{self.name}' has no '{self.primary_key}'")
        if key in self.records:
            raise ConstraintError(f"Key already exists in '{self.name}': {key!r}")
        self._check_unique(key, record)
        with self._writing(self):
            self._store(key, record)
        return key

    def put(self, record: Record) -> Any:
        """Insert or replace a record, keeping its original position."""
        record = dict(record)
        key = record.get(self.primary_key)
        if key is None:
            raise ConstraintError(f"Record for '{self.name}' has no '{self.primary_key}'")
        self._check_unique(key, record)
        with self._writing(self):
            existing = self.records.get(key)
            if existing is not None:
                self._index_remove(key, existing)
            self._store(key, record)
        return key

    def update(self, key: Any, changes: Record) -> bool:
        """Merge ``changes`` into an existing record.

        Returns:
            False if no record has that key
        """
        existing = self.records.get(key)
        if existing is None:
            return False
        merged = {**existing, **changes, self.primary_key: key}
        self._check_unique(key, merged)
        with self._writing(self):
            self._index_remove(key, existing)
            self._store(key, merged)
        return True

    def delete(self, key: Any) -> bool:
        existing = self.records.get(key)
        if existing is None:
            return False
        with self._writing(self):
            self._index_remove(key, existing)
            del self.records[key]
            del self._position[key]
        return True

    def bulk_delete(self, keys: Iterable[Any]) -> int:
        return sum(1 for key in list(keys) if self.delete(key))

    def clear(self) -> None:
        with self._writing(self):
            self._reset()

    # -- snapshots and loading ------------------------------------------

    def _reset(self) -> None:
        self.records = {}
        self.indexes = {spec.field: {} for spec in self.index_specs}
        self._position = {}

    def snapshot(self) -> list[Record]:
        return self.to_list()

    def load(self, records: Iterable[Record]) -> None:
        """Replace the content with ``records``, rebuilding every index.

        Raises:
            ConstraintError: If the records violate a key or unique index
        """
        self._reset()
        for record in records:
            record = dict(record)
            key = record.get(self.primary_key)
            if key is None or key in self.records:
                raise ConstraintError(f"Invalid or duplicate key in '{self.name}': {key!r}")
            self._check_unique(key, record)
            self._store(key, record)

    restore = load


class ObjectDatabase:
    """A versioned collection of object stores backed by one JSON file.

    Args:
        path: File to persist to, or None to keep everything in memory
        version: Schema version of the store declarations
        stores: Store name to schema string
    """

    def __init__(self, path: str | Path | None, version: int, stores: dict[str, str]):
        self.path = Path(path) if path is not None else None
        self.version = version
        self.stores: dict[str, ObjectStore] = {
            name: ObjectStore(name, schema, self._writing) for name, schema in stores.items()
        }
        self._depth = 0
        self._scope: frozenset[str] = frozenset()
        self._dirty = False
        self._opened = False

    @property
    def is_open(self) -> bool:
        return self._opened

    def table(self, name: str) -> ObjectStore:
        try:
            return self.stores[name]
        except KeyError:
            raise StorageError(f"Unknown object store '{name}'") from None

    def open(self) -> None:
        """Load the file, upgrading an older schema version in place.

        Raises:
            MigrationError: If the file was written by a newer schema version,
                or its records cannot be indexed under the current schema
        """
        if self._opened:
            return
        if self.path is None or not self.path.exists():
            self._opened = True
            if self.path is not None:
                self._flush()
            return

        with open(self.path, encoding="utf-8") as f:
            try:
                data = json.load(f)
            except json.JSONDecodeError as e:
                raise StorageError(f"Object store file {self.path} is corrupt: {e}") from e

        stored_version = data.get("version", 0)
        if stored_version > self.version:
            raise MigrationError(
                f"Object store file {self.path} has schema version {stored_version}, "
                f"newer than supported version {self.version}"
            )

        stored = data.get("stores", {})
        try:
            for name, store in self.stores.items():
                store.load(stored.get(name, []))
        except ConstraintError as e:
            raise MigrationError(
                f"Cannot upgrade object store from version {stored_version}: {e}"
            ) from e

        dropped = sorted(set(stored) - set(self.stores))
        if dropped:
            logger.info("dropping undeclared object stores: %s", ", ".join(dropped))

        self._opened = True
        if stored_version < self.version or dropped:
            logger.info(
                "upgraded object store %s from version %s to %s",
                self.path,
                stored_version,
                self.version,
            )
            self._flush()

    def close(self) -> None:
        if self._dirty:
            self._flush()
        self._opened = False

    @contextmanager
    def _writing(self, store: ObjectStore) -> Iterator[None]:
        """Guard one store mutation; flushes it when no transaction is open."""
        if not self._opened:
            raise StorageError("Object store database is not open")
        if self._depth and store.name not in self._scope:
            raise StorageError(f"Store '{store.name}' is not part of the current transaction")
        self._dirty = True
        yield
        self._after_write()

    def _after_write(self) -> None:
        if self._depth == 0 and self._dirty:
            self._flush()

    def _flush(self) -> None:
        if self.path is None:
            self._dirty = False
            return
        payload = {
            "version": self.version,
            "stores": {name: store.to_list() for name, store in self.stores.items()},
        }
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(payload, f, indent=2, ensure_ascii=False)
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        self._dirty = False

    @asynccontextmanager
    async def transaction(self, *store_names: str) -> AsyncIterator[None]:
        """Read-write transaction over the named stores.

        On an exception every scoped store is restored to its state at the
        start of this (possibly nested) transaction. The file is written only
        when the outermost transaction commits.
        """
        names = frozenset(store_names)
        for name in names:
            self.table(name)
        if self._depth and not names <= self._scope:
            raise StorageError("Nested transaction must stay within the enclosing stores")

        snapshots = {name: self.stores[name].snapshot() for name in names}
        was_dirty = self._dirty
        outer_scope = self._scope
        if not self._depth:
            self._scope = names
        self._depth += 1
        try:
            yield
        except BaseException:
            for name, records in snapshots.items():
                self.stores[name].restore(records)
            self._depth -= 1
            self._scope = outer_scope
            self._dirty = was_dirty
            if not self._depth:
                logger.warning("object store transaction rolled back")
            raise
        self._depth -= 1
        self._scope = outer_scope
        self._after_write()
