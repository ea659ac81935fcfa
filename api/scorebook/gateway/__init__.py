"""Persistence gateway: generic entity store used by the live stats core.

Usage:
    from scorebook.gateway import build_gateway

    gateway = build_gateway(settings)
    player = await gateway.players.get(player_id)
    async with gateway.unit_of_work() as uow:
        await uow.events.bulk_create(rows)
"""

from __future__ import annotations

from ..config import Settings
from .base import (
    GAME,
    GAME_EVENT,
    PLAYER,
    EntityCollection,
    EntityGateway,
    Record,
)
from .errors import EntityNotFoundError, GatewayError
from .memory import MemoryEntityGateway
from .sql import SqlEntityGateway


def build_gateway(settings: Settings) -> EntityGateway:
    """Pick the backend named by ``STORE_BACKEND``."""
    if settings.store_backend == "memory":
        return MemoryEntityGateway()
    if settings.store_backend == "sql":
        from ..db import get_session_factory

        return SqlEntityGateway(get_session_factory())
    raise ValueError(f"Unsupported STORE_BACKEND: {settings.store_backend}")


__all__ = [
    "GAME",
    "GAME_EVENT",
    "PLAYER",
    "EntityCollection",
    "EntityGateway",
    "EntityNotFoundError",
    "GatewayError",
    "MemoryEntityGateway",
    "Record",
    "SqlEntityGateway",
    "build_gateway",
]
