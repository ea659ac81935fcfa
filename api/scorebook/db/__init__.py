"""Database models and session management.

Import models from their module:
    from scorebook.db.live import Game, Player, GameEvent

Session management:
    from scorebook.db import AsyncSession, get_session_factory
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from .base import Base

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncEngine

from ..config import settings

# Lazy-loaded engine and session factory to avoid initialization at import time.
# This allows tests to import modules without triggering database connection.
_engine: "AsyncEngine | None" = None
_AsyncSessionLocal: async_sessionmaker[AsyncSession] | None = None


def _get_engine() -> "AsyncEngine":
    """Get or create the database engine (lazy initialization)."""
    global _engine
    if _engine is None:
        _engine = create_async_engine(
            settings.database_url, echo=settings.sql_echo, future=True
        )
    return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Get or create the session factory (lazy initialization)."""
    global _AsyncSessionLocal
    if _AsyncSessionLocal is None:
        _AsyncSessionLocal = async_sessionmaker(
            _get_engine(),
            class_=AsyncSession,
            expire_on_commit=False,
            autocommit=False,
            autoflush=False,
        )
    return _AsyncSessionLocal


async def init_db() -> None:
    """Create tables if they don't exist (dev only; migrations preferred)."""
    if settings.environment in {"production", "staging"}:
        raise RuntimeError(
            "init_db is disabled in production/staging. Run Alembic migrations instead."
        )
    # Register models on the metadata before create_all.
    from . import live  # noqa: F401

    async with _get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db() -> None:
    """Close the database connection."""
    global _engine, _AsyncSessionLocal
    if _engine is not None:
        await _engine.dispose()
        _engine = None
        _AsyncSessionLocal = None


__all__ = [
    "Base",
    "AsyncSession",
    "get_session_factory",
    "init_db",
    "close_db",
]
