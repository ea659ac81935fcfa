"""Stat-entry session: one scorekeeper working one player's sheet.

Lifecycle::

    session = await StatEntrySession.open(gateway, player_id, game_id)
    session.record(StatCategory.two_pointer, ShotOutcome.made)
    session.add_free_throw(ShotOutcome.made)
    result = await session.confirm()   # derive + commit, buffer resets
    session.close()

Confirm re-reads the player and game once, so events are stamped with the
quarter and clock at the moment of confirmation. Confirms on the same
session are serialized; there is no coordination with other sessions, so
the last confirm to write a row wins.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from typing import Any

from ...gateway import EntityGateway, EntityNotFoundError
from ...logging_config import log_context
from .buffer import PendingStatBuffer
from .commit import CommitPipeline, CommitResult
from .derivation import Derivation, derive
from .types import GameSnapshot, PlayerSnapshot, ShotOutcome, StatCategory

logger = logging.getLogger(__name__)


class SessionClosedError(RuntimeError):
    """The session was closed and can no longer record or confirm."""


class SessionNotFoundError(LookupError):
    """No open session has the requested id."""


class StatEntrySession:
    def __init__(
        self,
        gateway: EntityGateway,
        player: PlayerSnapshot,
        game: GameSnapshot,
        session_id: str | None = None,
        pipeline: CommitPipeline | None = None,
    ) -> None:
        self.id = session_id or uuid.uuid4().hex
        self.player = player
        self.game = game
        self.buffer = PendingStatBuffer()
        self.last_derivation: Derivation | None = None
        self._gateway = gateway
        self._pipeline = pipeline or CommitPipeline(gateway)
        self._confirm_lock = asyncio.Lock()
        self._closed = False

    @classmethod
    async def open(
        cls,
        gateway: EntityGateway,
        player_id: int,
        game_id: int,
        **kwargs: Any,
    ) -> "StatEntrySession":
        """Load the player and game; a missing entity means no session."""
        player, game = await cls._read_snapshots(gateway, player_id, game_id)
        session = cls(gateway, player, game, **kwargs)
        logger.info(
            "stat_session_opened",
            extra={"session_id": session.id, "player_id": player_id, "game_id": game_id},
        )
        return session

    @staticmethod
    async def _read_snapshots(
        gateway: EntityGateway, player_id: int, game_id: int
    ) -> tuple[PlayerSnapshot, GameSnapshot]:
        player_record, game_record = await asyncio.gather(
            gateway.players.get(player_id),
            gateway.games.get(game_id),
        )
        if player_record.get("game_id") != game_id:
            raise EntityNotFoundError("Player", player_id)
        return PlayerSnapshot.from_record(player_record), GameSnapshot.from_record(game_record)

    @property
    def is_closed(self) -> bool:
        return self._closed

    def _check_open(self) -> None:
        if self._closed:
            raise SessionClosedError(f"Session {self.id} is closed")

    def record(self, category: StatCategory, value: Any = 1) -> bool:
        self._check_open()
        return self.buffer.record(category, value)

    def add_free_throw(self, outcome: ShotOutcome) -> bool:
        self._check_open()
        return self.buffer.add_free_throw(outcome)

    def undo_last_free_throw(self) -> ShotOutcome | None:
        self._check_open()
        return self.buffer.undo_last_free_throw()

    def has_pending(self) -> bool:
        return self.buffer.has_pending()

    async def confirm(self) -> CommitResult | None:
        """Derive and commit the buffer. An empty buffer commits nothing.

        Confirms on one session run one at a time; a second confirm that was
        waiting on the first finds the buffer already reset and returns None.
        """
        self._check_open()
        async with self._confirm_lock:
            self._check_open()
            if not self.buffer.has_pending():
                return None

            with log_context(game_id=self.game.id, session_id=self.id):
                player, game = await self._read_snapshots(
                    self._gateway, self.player.id, self.game.id
                )
                derivation = derive(self.buffer, player, game)
                result = await self._pipeline.commit(derivation, player, game)

            self.last_derivation = derivation
            self.buffer.reset()
            if result is not None:
                self.player = PlayerSnapshot.from_record(result.player)
                self.game = GameSnapshot.from_record(result.game)
            return result

    def close(self) -> None:
        if not self._closed:
            self.buffer.reset()
            self._closed = True
            logger.info("stat_session_closed", extra={"session_id": self.id})

    def to_dict(self) -> dict[str, Any]:
        """Serialize for JSON."""
        return {
            "session_id": self.id,
            "player_id": self.player.id,
            "game_id": self.game.id,
            "player_name": self.player.name,
            "team": self.player.team,
            "has_pending": self.buffer.has_pending(),
            "buffer": self.buffer.to_dict(),
            "closed": self._closed,
        }


class SessionRegistry:
    """Open stat-entry sessions by id."""

    def __init__(self, gateway: EntityGateway) -> None:
        self._gateway = gateway
        self._sessions: dict[str, StatEntrySession] = {}

    async def open(self, player_id: int, game_id: int) -> StatEntrySession:
        session = await StatEntrySession.open(self._gateway, player_id, game_id)
        self._sessions[session.id] = session
        return session

    def get(self, session_id: str) -> StatEntrySession:
        session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFoundError(f"Session {session_id} not found")
        return session

    def close(self, session_id: str) -> None:
        session = self._sessions.pop(session_id, None)
        if session is None:
            raise SessionNotFoundError(f"Session {session_id} not found")
        session.close()

    def close_all(self) -> None:
        for session_id in list(self._sessions):
            self.close(session_id)

    def __len__(self) -> int:
        return len(self._sessions)
