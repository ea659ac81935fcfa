"""
Live Stat Types: categories, event vocabulary, and entity snapshots.

CATEGORY MODEL:
- StatCategory is the closed set of buttons a scorekeeper can press
- Shot categories (2PT, 3PT, FT) carry a ShotOutcome
- FOUL carries a FoulKind; every kind counts toward personal_fouls
- All other categories are plain counters

EVENT VOCABULARY:
- EventType values are the persisted event_type strings ("2pt_make", ...)
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping


class StatCategory(str, Enum):
    two_pointer = "two_pointer"
    three_pointer = "three_pointer"
    free_throw = "free_throw"
    assist = "assist"
    steal = "steal"
    block = "block"
    turnover = "turnover"
    rebound_off = "rebound_off"
    rebound_def = "rebound_def"
    foul = "foul"


class ShotOutcome(str, Enum):
    made = "made"
    missed = "missed"


class FoulKind(str, Enum):
    personal = "personal"
    offensive = "offensive"
    technical = "technical"
    unsportsmanlike = "unsportsmanlike"


class EventType(str, Enum):
    """Persisted event_type values."""

    two_pt_make = "2pt_make"
    two_pt_miss = "2pt_miss"
    three_pt_make = "3pt_make"
    three_pt_miss = "3pt_miss"
    ft_make = "ft_make"
    ft_miss = "ft_miss"
    assist = "assist"
    steal = "steal"
    block = "block"
    turnover = "turnover"
    rebound_off = "rebound_off"
    rebound_def = "rebound_def"
    foul_personal = "foul_personal"
    foul_offensive = "foul_offensive"
    foul_technical = "foul_technical"
    foul_unsportsmanlike = "foul_unsportsmanlike"
    substitution = "substitution"
    timeout = "timeout"

    @classmethod
    def for_foul(cls, kind: FoulKind) -> "EventType":
        return cls(f"foul_{kind.value}")


# Counting stats carried on a player row, in box-score order.
PLAYER_STAT_FIELDS: tuple[str, ...] = (
    "points",
    "fgm",
    "fga",
    "three_pm",
    "three_pa",
    "ftm",
    "fta",
    "rebounds_off",
    "rebounds_def",
    "assists",
    "steals",
    "blocks",
    "turnovers",
    "personal_fouls",
)

HOME = "home"
AWAY = "away"


@dataclass(frozen=True, slots=True)
class PlayerSnapshot:
    """A player's row as read at one instant."""

    id: int
    game_id: int
    name: str
    team: str
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

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "PlayerSnapshot":
        stats = {name: int(record.get(name) or 0) for name in PLAYER_STAT_FIELDS}
        return cls(
            id=record["id"],
            game_id=record["game_id"],
            name=record["name"],
            team=record["team"],
            **stats,
        )

    def stat(self, name: str) -> int:
        return getattr(self, name)


@dataclass(frozen=True, slots=True)
class GameSnapshot:
    """A game's scoreboard and clocks as read at one instant."""

    id: int
    quarter: int
    game_clock_seconds: int
    shot_clock_seconds: int
    home_score: int = 0
    away_score: int = 0
    quarter_length_minutes: int = 8

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "GameSnapshot":
        return cls(
            id=record["id"],
            quarter=int(record.get("quarter") or 1),
            game_clock_seconds=int(record.get("game_clock_seconds") or 0),
            shot_clock_seconds=int(record.get("shot_clock_seconds") or 0),
            home_score=int(record.get("home_score") or 0),
            away_score=int(record.get("away_score") or 0),
            quarter_length_minutes=int(record.get("quarter_length_minutes") or 8),
        )

    def score_for(self, team: str) -> int:
        return self.home_score if team == HOME else self.away_score


def score_field(team: str) -> str:
    """Game column that holds the given side's score."""
    if team == HOME:
        return "home_score"
    if team == AWAY:
        return "away_score"
    raise ValueError(f"Unknown team side: {team!r}")
