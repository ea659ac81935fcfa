"""Bench and timeout actions: substitutions and team timeouts.

Both read the latest game row first so the event carries the quarter and
clock at the moment of the action, then write their row changes and the
event together in one unit of work.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from ...config import settings
from ...db.live import TeamSide
from ...gateway import EntityGateway, EntityNotFoundError, Record
from .types import EventType

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class SubstitutionResult:
    event: Record
    player_out: Record
    player_in: Record


@dataclass(frozen=True, slots=True)
class TimeoutResult:
    event: Record
    game: Record


def _label(player: Record) -> str:
    jersey = player.get("jersey_number")
    return player["name"] if jersey is None else f"{player['name']} ({jersey})"


async def _game_player(gateway: EntityGateway, game_id: int, player_id: int) -> Record:
    player = await gateway.players.get(player_id)
    if player.get("game_id") != game_id:
        raise EntityNotFoundError("Player", player_id)
    return player


async def substitute(
    gateway: EntityGateway,
    game_id: int,
    player_out_id: int,
    player_in_id: int,
) -> SubstitutionResult:
    """Swap a bench player onto the court for a teammate.

    The event is attributed to the incoming player and their team.
    """
    if player_out_id == player_in_id:
        raise ValueError("A player cannot substitute for themselves")

    async with gateway.unit_of_work() as uow:
        game = await uow.games.get(game_id)
        player_out = await _game_player(uow, game_id, player_out_id)
        player_in = await _game_player(uow, game_id, player_in_id)
        if player_out["team"] != player_in["team"]:
            raise ValueError("Substitutions must stay on one team")
        if not player_out.get("on_court"):
            raise ValueError(f"{player_out['name']} is not on the court")
        if player_in.get("on_court"):
            raise ValueError(f"{player_in['name']} is already on the court")

        updated_out = await uow.players.update(player_out_id, {"on_court": False})
        updated_in = await uow.players.update(player_in_id, {"on_court": True})
        event = await uow.events.create(
            {
                "game_id": game_id,
                "player_id": player_in_id,
                "team": player_in["team"],
                "event_type": EventType.substitution.value,
                "quarter": game["quarter"],
                "game_clock_seconds": game["game_clock_seconds"],
                "points": 0,
                "description": f"{_label(player_in)} in for {_label(player_out)}",
            }
        )

    logger.info(
        "substitution_recorded",
        extra={"game_id": game_id, "player_in_id": player_in_id, "player_out_id": player_out_id},
    )
    return SubstitutionResult(event=event, player_out=updated_out, player_in=updated_in)


async def call_timeout(
    gateway: EntityGateway,
    game_id: int,
    team: TeamSide | str,
    duration_seconds: int,
) -> TimeoutResult:
    """Charge one timeout to ``team`` ("home" | "away") and log it."""
    team = TeamSide(team).value
    if duration_seconds not in settings.timeout_durations:
        raise ValueError(
            f"Timeout duration must be one of {settings.timeout_durations}, got {duration_seconds}"
        )

    field_name = f"{team}_timeouts"
    async with gateway.unit_of_work() as uow:
        game = await uow.games.get(game_id)
        remaining = game[field_name]
        team_name = game[f"{team}_team_name"]
        if remaining <= 0:
            raise ValueError(f"{team_name} has no timeouts left")

        event = await uow.events.create(
            {
                "game_id": game_id,
                "player_id": None,
                "team": team,
                "event_type": EventType.timeout.value,
                "quarter": game["quarter"],
                "game_clock_seconds": game["game_clock_seconds"],
                "points": 0,
                "description": f"{team_name} timeout ({duration_seconds}s)",
            }
        )
        updated_game = await uow.games.update(game_id, {field_name: remaining - 1})

    logger.info(
        "timeout_called",
        extra={
            "game_id": game_id,
            "team": team,
            "duration_seconds": duration_seconds,
            "remaining": remaining - 1,
        },
    )
    return TimeoutResult(event=event, game=updated_game)
