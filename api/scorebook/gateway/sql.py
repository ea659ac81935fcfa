"""SQLAlchemy-backed entity gateway.

Outside a unit of work every call opens its own session and commits on
success. Inside ``unit_of_work()`` all calls share one session and one
transaction; an ``asyncio.Lock`` serializes them because an ``AsyncSession``
cannot run statements concurrently.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Iterable, Mapping

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..db.base import Base
from .base import (
    ENTITY_MODELS,
    EntityCollection,
    EntityGateway,
    Record,
    check_fields,
    parse_sort,
)
from .errors import EntityNotFoundError, GatewayError

logger = logging.getLogger(__name__)


def to_record(obj: Base) -> Record:
    """Copy mapped column values off an ORM instance."""
    return {column.key: getattr(obj, column.key) for column in obj.__table__.columns}


class _PerCallScope:
    """One short-lived session per gateway call."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        async with self._session_factory() as session:
            try:
                yield session
                await session.commit()
            except SQLAlchemyError as exc:
                await session.rollback()
                raise GatewayError(str(exc)) from exc
            except Exception:
                await session.rollback()
                raise


class _BoundScope:
    """Shared session owned by an open unit of work."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session
        self._lock = asyncio.Lock()

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        async with self._lock:
            try:
                yield self._session
            except SQLAlchemyError as exc:
                raise GatewayError(str(exc)) from exc


class SqlEntityCollection(EntityCollection):
    def __init__(self, name: str, scope: _PerCallScope | _BoundScope) -> None:
        super().__init__(name)
        self._model = ENTITY_MODELS[name]
        self._scope = scope

    def _select(
        self,
        criteria: Mapping[str, Any] | None,
        sort: str | None,
        limit: int | None,
    ):
        stmt = select(self._model)
        if criteria:
            check_fields(self.name, criteria)
            for field_name, value in criteria.items():
                stmt = stmt.where(getattr(self._model, field_name) == value)
        order = parse_sort(sort)
        if order is not None:
            field_name, descending = order
            check_fields(self.name, [field_name])
            column = getattr(self._model, field_name)
            if descending:
                stmt = stmt.order_by(column.desc(), self._model.id.desc())
            else:
                stmt = stmt.order_by(column.asc(), self._model.id.asc())
        else:
            stmt = stmt.order_by(self._model.id.asc())
        if limit is not None:
            stmt = stmt.limit(limit)
        return stmt

    async def _fetch(self, session: AsyncSession, record_id: int) -> Base:
        obj = await session.get(self._model, record_id)
        if obj is None:
            raise EntityNotFoundError(self.name, record_id)
        return obj

    async def list(self, sort: str | None = None, limit: int | None = None) -> list[Record]:
        return await self.filter({}, sort=sort, limit=limit)

    async def filter(
        self,
        criteria: Mapping[str, Any],
        sort: str | None = None,
        limit: int | None = None,
    ) -> list[Record]:
        stmt = self._select(criteria, sort, limit)
        async with self._scope.session() as session:
            result = await session.execute(stmt)
            return [to_record(obj) for obj in result.scalars().all()]

    async def get(self, record_id: int) -> Record:
        async with self._scope.session() as session:
            return to_record(await self._fetch(session, record_id))

    async def create(self, record: Mapping[str, Any]) -> Record:
        created = await self.bulk_create([record])
        return created[0]

    async def bulk_create(self, records: Iterable[Mapping[str, Any]]) -> list[Record]:
        rows = [dict(record) for record in records]
        for row in rows:
            check_fields(self.name, row)
        if not rows:
            return []
        async with self._scope.session() as session:
            objs = [self._model(**row) for row in rows]
            session.add_all(objs)
            await session.flush()
            for obj in objs:
                await session.refresh(obj)
            return [to_record(obj) for obj in objs]

    async def update(self, record_id: int, changes: Mapping[str, Any]) -> Record:
        check_fields(self.name, changes)
        async with self._scope.session() as session:
            obj = await self._fetch(session, record_id)
            for field_name, value in changes.items():
                setattr(obj, field_name, value)
            await session.flush()
            await session.refresh(obj)
            return to_record(obj)

    async def delete(self, record_id: int) -> None:
        async with self._scope.session() as session:
            obj = await self._fetch(session, record_id)
            await session.delete(obj)
            await session.flush()


class SqlEntityGateway(EntityGateway):
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        scope: _PerCallScope | _BoundScope | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._scope = scope or _PerCallScope(session_factory)
        self._collections: dict[str, SqlEntityCollection] = {}

    def collection(self, name: str) -> SqlEntityCollection:
        if name not in ENTITY_MODELS:
            raise KeyError(f"Unknown entity: {name}")
        if name not in self._collections:
            self._collections[name] = SqlEntityCollection(name, self._scope)
        return self._collections[name]

    @asynccontextmanager
    async def unit_of_work(self) -> AsyncIterator["SqlEntityGateway"]:
        if isinstance(self._scope, _BoundScope):
            # Already inside a unit of work: join it.
            yield self
            return

        async with self._session_factory() as session:
            bound = SqlEntityGateway(self._session_factory, _BoundScope(session))
            try:
                yield bound
                await session.commit()
            except SQLAlchemyError as exc:
                await session.rollback()
                logger.warning("unit_of_work_rolled_back", extra={"error": str(exc)})
                raise GatewayError(str(exc)) from exc
            except Exception:
                await session.rollback()
                logger.warning("unit_of_work_rolled_back")
                raise
