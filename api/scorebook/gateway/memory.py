"""In-process entity gateway.

Used for local development (``STORE_BACKEND=memory``) and tests. Records get
the same column defaults the SQL models declare, so callers see identical
shapes from either backend.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Iterable, Mapping

from ..utils.datetime_utils import now_utc
from .base import (
    ENTITY_MODELS,
    EntityCollection,
    EntityGateway,
    Record,
    check_fields,
    column_names,
    parse_sort,
)
from .errors import EntityNotFoundError

logger = logging.getLogger(__name__)


def _column_defaults(entity: str) -> dict[str, Any]:
    defaults: dict[str, Any] = {}
    for column in ENTITY_MODELS[entity].__table__.columns:
        if column.primary_key:
            continue
        default = column.default
        if default is not None and default.is_scalar:
            defaults[column.key] = default.arg
        elif column.nullable:
            defaults[column.key] = None
    return defaults


def _sort_key(field_name: str):
    def key(row: Record) -> tuple[bool, Any]:
        value = row.get(field_name)
        return (value is not None, value)

    return key


class _Store:
    """Tables plus id sequences, shared by a gateway and its collections."""

    def __init__(self) -> None:
        self.tables: dict[str, dict[int, Record]] = {name: {} for name in ENTITY_MODELS}
        self.next_ids: dict[str, int] = {name: 1 for name in ENTITY_MODELS}


_CREATED = object()


class _Journal:
    """Prior values of what one unit of work wrote.

    Rollback puts back only those values, so writes made outside the unit
    (a clock tick landing on the same game row) survive it. Ids handed out
    inside the unit are not reused, as with a database sequence.
    """

    def __init__(self) -> None:
        self._entries: dict[tuple[str, int], Any] = {}
        self._deleted: set[tuple[str, int]] = set()

    def created(self, entity: str, record_id: int) -> None:
        self._entries.setdefault((entity, record_id), _CREATED)

    def changed(self, entity: str, row: Record, fields: Iterable[str]) -> None:
        entry = self._entries.setdefault((entity, row["id"]), {})
        if entry is _CREATED:
            return
        for field_name in fields:
            entry.setdefault(field_name, row.get(field_name))

    def deleted(self, entity: str, row: Record) -> None:
        self.changed(entity, row, row.keys())
        self._deleted.add((entity, row["id"]))

    def rollback(self, store: _Store) -> None:
        for (entity, record_id), entry in self._entries.items():
            rows = store.tables[entity]
            if entry is _CREATED:
                rows.pop(record_id, None)
            elif (entity, record_id) in self._deleted:
                rows[record_id] = dict(entry)
            elif record_id in rows:
                rows[record_id].update(entry)
        self._entries.clear()
        self._deleted.clear()


class MemoryEntityCollection(EntityCollection):
    def __init__(self, name: str, store: _Store, journal: _Journal | None = None) -> None:
        super().__init__(name)
        self._store = store
        self._journal = journal
        self._defaults = _column_defaults(name)
        self._columns = column_names(name)

    @property
    def _rows(self) -> dict[int, Record]:
        return self._store.tables[self.name]

    def _require(self, record_id: int) -> Record:
        row = self._rows.get(record_id)
        if row is None:
            raise EntityNotFoundError(self.name, record_id)
        return row

    async def list(self, sort: str | None = None, limit: int | None = None) -> list[Record]:
        return await self.filter({}, sort=sort, limit=limit)

    async def filter(
        self,
        criteria: Mapping[str, Any],
        sort: str | None = None,
        limit: int | None = None,
    ) -> list[Record]:
        check_fields(self.name, criteria)
        rows = [
            row
            for row in self._rows.values()
            if all(row.get(key) == value for key, value in criteria.items())
        ]
        order = parse_sort(sort)
        if order is not None:
            field_name, descending = order
            check_fields(self.name, [field_name])
            # Ties fall back to id in the same direction.
            rows.sort(key=lambda row: row["id"], reverse=descending)
            rows.sort(key=_sort_key(field_name), reverse=descending)
        if limit is not None:
            rows = rows[:limit]
        return [dict(row) for row in rows]

    async def get(self, record_id: int) -> Record:
        return dict(self._require(record_id))

    async def create(self, record: Mapping[str, Any]) -> Record:
        created = await self.bulk_create([record])
        return created[0]

    async def bulk_create(self, records: Iterable[Mapping[str, Any]]) -> list[Record]:
        rows = [dict(record) for record in records]
        for row in rows:
            check_fields(self.name, row)

        created: list[Record] = []
        timestamp = now_utc()
        for row in rows:
            record_id = self._store.next_ids[self.name]
            self._store.next_ids[self.name] += 1
            stored = {**self._defaults, **row, "id": record_id}
            for stamp in ("created_at", "updated_at"):
                if stamp in self._columns:
                    stored[stamp] = timestamp
            self._rows[record_id] = stored
            if self._journal is not None:
                self._journal.created(self.name, record_id)
            created.append(dict(stored))
        return created

    async def update(self, record_id: int, changes: Mapping[str, Any]) -> Record:
        check_fields(self.name, changes)
        row = self._require(record_id)
        stamped = "updated_at" in self._columns
        if self._journal is not None:
            self._journal.changed(
                self.name, row, [*changes, "updated_at"] if stamped else list(changes)
            )
        row.update(changes)
        if stamped:
            row["updated_at"] = now_utc()
        return dict(row)

    async def delete(self, record_id: int) -> None:
        row = self._require(record_id)
        if self._journal is not None:
            self._journal.deleted(self.name, row)
        del self._rows[record_id]


class MemoryEntityGateway(EntityGateway):
    def __init__(self, store: _Store | None = None, *, journal: _Journal | None = None) -> None:
        self._store = store or _Store()
        self._journal = journal
        self._lock = asyncio.Lock()
        self._collections: dict[str, MemoryEntityCollection] = {}

    def collection(self, name: str) -> MemoryEntityCollection:
        if name not in ENTITY_MODELS:
            raise KeyError(f"Unknown entity: {name}")
        if name not in self._collections:
            self._collections[name] = MemoryEntityCollection(name, self._store, self._journal)
        return self._collections[name]

    @asynccontextmanager
    async def unit_of_work(self) -> AsyncIterator["MemoryEntityGateway"]:
        if self._journal is not None:
            yield self
            return

        async with self._lock:
            journal = _Journal()
            try:
                yield MemoryEntityGateway(self._store, journal=journal)
            except Exception:
                journal.rollback(self._store)
                logger.warning("unit_of_work_rolled_back", extra={"backend": "memory"})
                raise
