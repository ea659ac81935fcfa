"""Commit pipeline: persist one derivation as a single unit.

Three writes go out together inside one gateway unit of work:
- bulk insert of the derived events (skipped when there are none)
- absolute update of the player row (snapshot + delta)
- absolute update of the game row (snapshot + delta)

The writes are issued concurrently and joined. If any of them fails the
whole unit is rolled back and ``CommitError`` is raised, so a retry never
double-counts.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from dataclasses import dataclass
from typing import Any

from ...gateway import EntityGateway, GatewayError, Record
from ...logging_config import log_context
from .derivation import Derivation
from .types import GameSnapshot, PlayerSnapshot

logger = logging.getLogger(__name__)

_WRITE_NAMES = ("events", "player", "game")


class CommitError(GatewayError):
    """One or more writes of a confirm failed; nothing was persisted."""

    def __init__(self, message: str, failures: dict[str, BaseException]) -> None:
        super().__init__(message)
        self.failures = failures


@dataclass(frozen=True, slots=True)
class CommitResult:
    batch_id: str
    events: list[Record]
    player: Record
    game: Record

    def to_dict(self) -> dict[str, Any]:
        return {
            "batch_id": self.batch_id,
            "events": self.events,
            "player": self.player,
            "game": self.game,
        }


class CommitPipeline:
    def __init__(self, gateway: EntityGateway, shot_clock_seconds: int | None = None) -> None:
        self._gateway = gateway
        self._shot_clock_seconds = shot_clock_seconds

    async def commit(
        self,
        derivation: Derivation,
        player: PlayerSnapshot,
        game: GameSnapshot,
    ) -> CommitResult | None:
        """Persist a derivation; empty derivations are not committed."""
        if derivation.is_empty:
            return None

        batch_id = str(uuid.uuid4())
        event_rows = [event.to_record(batch_id) for event in derivation.events]
        player_updates = derivation.player_delta.apply_to(player)
        game_updates = derivation.game_delta.apply_to(game, self._shot_clock_seconds)

        with log_context(game_id=game.id, batch_id=batch_id):
            try:
                async with self._gateway.unit_of_work() as uow:
                    results = await asyncio.gather(
                        uow.events.bulk_create(event_rows),
                        uow.players.update(player.id, player_updates),
                        uow.games.update(game.id, game_updates),
                        return_exceptions=True,
                    )
                    failures = {
                        name: result
                        for name, result in zip(_WRITE_NAMES, results)
                        if isinstance(result, BaseException)
                    }
                    if failures:
                        logger.error(
                            "stat_commit_failed",
                            extra={
                                "player_id": player.id,
                                "failed_writes": sorted(failures),
                                "errors": {name: str(exc) for name, exc in failures.items()},
                            },
                        )
                        raise CommitError(
                            f"Commit failed for {', '.join(sorted(failures))}", failures
                        )
            except CommitError:
                raise
            except GatewayError as exc:
                logger.error("stat_commit_failed", extra={"player_id": player.id})
                raise CommitError("Commit failed while finalizing", {"commit": exc}) from exc

            created_events, updated_player, updated_game = results
            logger.info(
                "stats_committed",
                extra={
                    "player_id": player.id,
                    "event_count": len(created_events),
                    "points": derivation.player_delta.points,
                },
            )
        return CommitResult(
            batch_id=batch_id,
            events=created_events,
            player=updated_player,
            game=updated_game,
        )
