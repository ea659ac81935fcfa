"""Entity gateway contract.

Every collection speaks plain ``dict`` records so callers never hold ORM
instances across awaits. ``sort`` is a field name, optionally prefixed with
``-`` for descending order (``"-created_at"``).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, AsyncContextManager, Iterable, Mapping

from ..db.base import Base
from ..db.live import Game, GameEvent, Player

Record = dict[str, Any]

PLAYER = "Player"
GAME = "Game"
GAME_EVENT = "GameEvent"

ENTITY_MODELS: dict[str, type[Base]] = {
    PLAYER: Player,
    GAME: Game,
    GAME_EVENT: GameEvent,
}


def parse_sort(sort: str | None) -> tuple[str, bool] | None:
    """Split ``"-field"`` into ``("field", True)``; ``None`` means store order."""
    if not sort:
        return None
    descending = sort.startswith("-")
    return sort.lstrip("-"), descending


def column_names(entity: str) -> set[str]:
    return {column.key for column in ENTITY_MODELS[entity].__table__.columns}


def check_fields(entity: str, fields: Iterable[str]) -> None:
    """Reject field names the entity does not have."""
    unknown = sorted(set(fields) - column_names(entity))
    if unknown:
        raise ValueError(f"Unknown {entity} field(s): {', '.join(unknown)}")


class EntityCollection(ABC):
    """CRUD over one named collection."""

    def __init__(self, name: str) -> None:
        self.name = name

    @abstractmethod
    async def list(self, sort: str | None = None, limit: int | None = None) -> list[Record]:
        ...

    @abstractmethod
    async def filter(
        self,
        criteria: Mapping[str, Any],
        sort: str | None = None,
        limit: int | None = None,
    ) -> list[Record]:
        ...

    @abstractmethod
    async def get(self, record_id: int) -> Record:
        ...

    @abstractmethod
    async def create(self, record: Mapping[str, Any]) -> Record:
        ...

    @abstractmethod
    async def bulk_create(self, records: Iterable[Mapping[str, Any]]) -> list[Record]:
        ...

    @abstractmethod
    async def update(self, record_id: int, changes: Mapping[str, Any]) -> Record:
        ...

    @abstractmethod
    async def delete(self, record_id: int) -> None:
        ...


class EntityGateway(ABC):
    """Access point for every collection plus unit-of-work support."""

    @abstractmethod
    def collection(self, name: str) -> EntityCollection:
        ...

    @abstractmethod
    def unit_of_work(self) -> AsyncContextManager["EntityGateway"]:
        """Group writes so they persist together or not at all.

        The yielded gateway must be used for every write that belongs to the
        unit. Leaving the block normally makes the writes durable; leaving it
        with an exception discards all of them.
        """

    async def close(self) -> None:
        return None

    @property
    def players(self) -> EntityCollection:
        return self.collection(PLAYER)

    @property
    def games(self) -> EntityCollection:
        return self.collection(GAME)

    @property
    def events(self) -> EntityCollection:
        return self.collection(GAME_EVENT)
