"""
Event Derivation: turn a pending stat buffer into events and deltas.

This module is PURE: no I/O, no clocks, no randomness. Given the same buffer
and snapshots it always returns the same derivation.

OUTPUT:
- events: one DerivedEvent per discrete action, in fixed category order
  (2PT makes, 2PT misses, 3PT makes, 3PT misses, free throws as recorded,
  assists, steals, blocks, turnovers, offensive rebounds, defensive rebounds,
  fouls as recorded)
- player_delta: per-field increments for the player row
- game_delta: points for the player's side, plus whether the shot clock resets

TIMESTAMPS:
- Every event in a batch carries the SAME quarter and game clock: the
  snapshot taken at confirmation, not the moment of each tap.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any

from ...config import settings
from .buffer import PendingStatBuffer
from .types import (
    EventType,
    FoulKind,
    GameSnapshot,
    PlayerSnapshot,
    ShotOutcome,
    score_field,
)

POINTS_BY_EVENT: dict[EventType, int] = {
    EventType.two_pt_make: 2,
    EventType.three_pt_make: 3,
    EventType.ft_make: 1,
}

_DESCRIPTIONS: dict[EventType, str] = {
    EventType.two_pt_make: "made 2PT",
    EventType.two_pt_miss: "missed 2PT",
    EventType.three_pt_make: "made 3PT",
    EventType.three_pt_miss: "missed 3PT",
    EventType.ft_make: "made FT",
    EventType.ft_miss: "missed FT",
    EventType.assist: "assist",
    EventType.steal: "steal",
    EventType.block: "block",
    EventType.turnover: "turnover",
    EventType.rebound_off: "offensive rebound",
    EventType.rebound_def: "defensive rebound",
}


# ============================================================================
# DATA STRUCTURES
# ============================================================================


@dataclass(frozen=True, slots=True)
class DerivedEvent:
    """One discrete game event, ready to persist."""

    game_id: int
    player_id: int
    team: str
    event_type: EventType
    quarter: int
    game_clock_seconds: int
    points: int
    description: str

    def to_record(self, batch_id: str | None = None) -> dict[str, Any]:
        return {
            "game_id": self.game_id,
            "player_id": self.player_id,
            "team": self.team,
            "event_type": self.event_type.value,
            "quarter": self.quarter,
            "game_clock_seconds": self.game_clock_seconds,
            "points": self.points,
            "description": self.description,
            "batch_id": batch_id,
        }


@dataclass(frozen=True, slots=True)
class PlayerDelta:
    """Increments to add to a player's cumulative stats."""

    points: int = 0
    fgm: int = 0
    fga: int = 0
    three_pm: int = 0
    three_pa: int = 0
    ftm: int = 0
    fta: int = 0
    rebounds_off: int = 0
    rebounds_def: int = 0
    assists: int = 0
    steals: int = 0
    blocks: int = 0
    turnovers: int = 0
    personal_fouls: int = 0

    def to_dict(self) -> dict[str, int]:
        return {f.name: getattr(self, f.name) for f in fields(self)}

    @property
    def is_zero(self) -> bool:
        return not any(self.to_dict().values())

    def apply_to(self, player: PlayerSnapshot) -> dict[str, int]:
        """Absolute values for an update: current snapshot + delta."""
        return {name: player.stat(name) + value for name, value in self.to_dict().items()}


@dataclass(frozen=True, slots=True)
class GameDelta:
    """Score change for one side, plus the shot-clock reset flag."""

    team: str
    points: int = 0
    shot_clock_reset: bool = False

    @property
    def is_zero(self) -> bool:
        return self.points == 0 and not self.shot_clock_reset

    def apply_to(
        self,
        game: GameSnapshot,
        shot_clock_seconds: int | None = None,
    ) -> dict[str, int]:
        """Absolute values for an update: current snapshot + delta."""
        field_name = score_field(self.team)
        updates = {field_name: game.score_for(self.team) + self.points}
        if self.shot_clock_reset:
            updates["shot_clock_seconds"] = (
                settings.shot_clock_seconds if shot_clock_seconds is None else shot_clock_seconds
            )
        return updates

    def to_dict(self) -> dict[str, Any]:
        return {
            "team": self.team,
            "points": self.points,
            "shot_clock_reset": self.shot_clock_reset,
        }


@dataclass(frozen=True, slots=True)
class Derivation:
    """Everything one confirm produces."""

    events: tuple[DerivedEvent, ...]
    player_delta: PlayerDelta
    game_delta: GameDelta
    player_id: int
    game_id: int

    @property
    def is_empty(self) -> bool:
        return not self.events

    def to_dict(self) -> dict[str, Any]:
        """Serialize for JSON."""
        return {
            "player_id": self.player_id,
            "game_id": self.game_id,
            "events": [event.to_record() for event in self.events],
            "player_delta": self.player_delta.to_dict(),
            "game_delta": self.game_delta.to_dict(),
        }


# ============================================================================
# EVENT EXPANSION
# ============================================================================


def _describe(player_name: str, event_type: EventType, foul: FoulKind | None = None) -> str:
    if foul is not None:
        return f"{player_name} {foul.value} foul"
    return f"{player_name} {_DESCRIPTIONS[event_type]}"


def _event_sequence(buffer: PendingStatBuffer) -> list[tuple[EventType, FoulKind | None]]:
    """Expand buffer counts into (event_type, foul_kind) pairs in category order."""
    sequence: list[tuple[EventType, FoulKind | None]] = []

    def repeat(event_type: EventType, count: int) -> None:
        sequence.extend((event_type, None) for _ in range(count))

    repeat(EventType.two_pt_make, buffer.two_pointers.made)
    repeat(EventType.two_pt_miss, buffer.two_pointers.missed)
    repeat(EventType.three_pt_make, buffer.three_pointers.made)
    repeat(EventType.three_pt_miss, buffer.three_pointers.missed)
    for outcome in buffer.free_throws:
        event_type = EventType.ft_make if outcome is ShotOutcome.made else EventType.ft_miss
        sequence.append((event_type, None))
    repeat(EventType.assist, buffer.assists)
    repeat(EventType.steal, buffer.steals)
    repeat(EventType.block, buffer.blocks)
    repeat(EventType.turnover, buffer.turnovers)
    repeat(EventType.rebound_off, buffer.rebounds_off)
    repeat(EventType.rebound_def, buffer.rebounds_def)
    for kind in buffer.fouls:
        sequence.append((EventType.for_foul(kind), kind))
    return sequence


def derive_events(
    buffer: PendingStatBuffer,
    player: PlayerSnapshot,
    game: GameSnapshot,
) -> tuple[DerivedEvent, ...]:
    return tuple(
        DerivedEvent(
            game_id=game.id,
            player_id=player.id,
            team=player.team,
            event_type=event_type,
            quarter=game.quarter,
            game_clock_seconds=game.game_clock_seconds,
            points=POINTS_BY_EVENT.get(event_type, 0),
            description=_describe(player.name, event_type, foul),
        )
        for event_type, foul in _event_sequence(buffer)
    )


# ============================================================================
# DELTAS
# ============================================================================


def compute_player_delta(buffer: PendingStatBuffer) -> PlayerDelta:
    twos = buffer.two_pointers
    threes = buffer.three_pointers
    ft_made = sum(1 for outcome in buffer.free_throws if outcome is ShotOutcome.made)

    return PlayerDelta(
        points=2 * twos.made + 3 * threes.made + ft_made,
        fgm=twos.made + threes.made,
        fga=twos.attempts + threes.attempts,
        three_pm=threes.made,
        three_pa=threes.attempts,
        ftm=ft_made,
        fta=len(buffer.free_throws),
        rebounds_off=buffer.rebounds_off,
        rebounds_def=buffer.rebounds_def,
        assists=buffer.assists,
        steals=buffer.steals,
        blocks=buffer.blocks,
        turnovers=buffer.turnovers,
        # Every foul kind counts; the kind survives only on the event.
        personal_fouls=len(buffer.fouls),
    )


def compute_game_delta(buffer: PendingStatBuffer, player: PlayerSnapshot) -> GameDelta:
    player_delta = compute_player_delta(buffer)
    return GameDelta(
        team=player.team,
        points=player_delta.points,
        shot_clock_reset=buffer.two_pointers.made > 0 or buffer.three_pointers.made > 0,
    )


def derive(
    buffer: PendingStatBuffer,
    player: PlayerSnapshot,
    game: GameSnapshot,
) -> Derivation:
    """Derive events and deltas from a buffer and the current snapshots.

    An empty buffer yields an empty derivation (no events, zero deltas).
    """
    if not buffer.has_pending():
        return Derivation(
            events=(),
            player_delta=PlayerDelta(),
            game_delta=GameDelta(team=player.team),
            player_id=player.id,
            game_id=game.id,
        )

    return Derivation(
        events=derive_events(buffer, player, game),
        player_delta=compute_player_delta(buffer),
        game_delta=compute_game_delta(buffer, player),
        player_id=player.id,
        game_id=game.id,
    )
