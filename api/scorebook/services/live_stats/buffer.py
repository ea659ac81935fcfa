"""Pending stat buffer: one player's not-yet-committed taps.

The buffer only ever grows (apart from undoing the last free throw), so the
counts it hands to derivation are never negative. A free-throw trip holds at
most ``free_throw_cap`` attempts; extra attempts are ignored, not rejected.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from ...config import settings
from .types import FoulKind, ShotOutcome, StatCategory

# Plain counters: category -> buffer attribute.
_COUNTER_FIELDS: dict[StatCategory, str] = {
    StatCategory.assist: "assists",
    StatCategory.steal: "steals",
    StatCategory.block: "blocks",
    StatCategory.turnover: "turnovers",
    StatCategory.rebound_off: "rebounds_off",
    StatCategory.rebound_def: "rebounds_def",
}


@dataclass
class ShotCounts:
    made: int = 0
    missed: int = 0

    @property
    def attempts(self) -> int:
        return self.made + self.missed

    def add(self, outcome: ShotOutcome) -> None:
        if outcome is ShotOutcome.made:
            self.made += 1
        else:
            self.missed += 1


def _as_outcome(value: Any) -> ShotOutcome:
    try:
        return ShotOutcome(value)
    except ValueError:
        raise ValueError(f"Expected a shot outcome (made/missed), got {value!r}") from None


def _as_foul_kind(value: Any) -> FoulKind:
    try:
        return FoulKind(value)
    except ValueError:
        kinds = ", ".join(kind.value for kind in FoulKind)
        raise ValueError(f"Expected a foul kind ({kinds}), got {value!r}") from None


def _as_amount(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ValueError(f"Counter increments must be positive integers, got {value!r}")
    return value


@dataclass
class PendingStatBuffer:
    two_pointers: ShotCounts = field(default_factory=ShotCounts)
    three_pointers: ShotCounts = field(default_factory=ShotCounts)
    free_throws: list[ShotOutcome] = field(default_factory=list)
    assists: int = 0
    steals: int = 0
    blocks: int = 0
    turnovers: int = 0
    rebounds_off: int = 0
    rebounds_def: int = 0
    fouls: list[FoulKind] = field(default_factory=list)
    free_throw_cap: int = field(default_factory=lambda: settings.free_throw_trip_cap)

    def record(self, category: StatCategory, value: Any = 1) -> bool:
        """Apply one button press.

        ``value`` is a ShotOutcome for 2PT/3PT/FT, a FoulKind for FOUL, and a
        positive increment for every other category. Returns False only when a
        free throw is dropped by the trip cap.
        """
        category = StatCategory(category)
        if category is StatCategory.two_pointer:
            self.two_pointers.add(_as_outcome(value))
            return True
        if category is StatCategory.three_pointer:
            self.three_pointers.add(_as_outcome(value))
            return True
        if category is StatCategory.free_throw:
            return self.add_free_throw(_as_outcome(value))
        if category is StatCategory.foul:
            self.fouls.append(_as_foul_kind(value))
            return True
        if category in _COUNTER_FIELDS:
            attr = _COUNTER_FIELDS[category]
            setattr(self, attr, getattr(self, attr) + _as_amount(value))
            return True
        raise ValueError(f"Unhandled stat category: {category!r}")

    def add_free_throw(self, outcome: ShotOutcome) -> bool:
        if len(self.free_throws) >= self.free_throw_cap:
            return False
        self.free_throws.append(_as_outcome(outcome))
        return True

    def undo_last_free_throw(self) -> ShotOutcome | None:
        if not self.free_throws:
            return None
        return self.free_throws.pop()

    def has_pending(self) -> bool:
        return bool(
            self.two_pointers.attempts
            or self.three_pointers.attempts
            or self.free_throws
            or self.assists
            or self.steals
            or self.blocks
            or self.turnovers
            or self.rebounds_off
            or self.rebounds_def
            or self.fouls
        )

    def reset(self) -> None:
        self.two_pointers = ShotCounts()
        self.three_pointers = ShotCounts()
        self.free_throws = []
        self.assists = 0
        self.steals = 0
        self.blocks = 0
        self.turnovers = 0
        self.rebounds_off = 0
        self.rebounds_def = 0
        self.fouls = []

    def to_dict(self) -> dict[str, Any]:
        """Serialize for JSON."""
        return {
            "two_pointers": {"made": self.two_pointers.made, "missed": self.two_pointers.missed},
            "three_pointers": {
                "made": self.three_pointers.made,
                "missed": self.three_pointers.missed,
            },
            "free_throws": [outcome.value for outcome in self.free_throws],
            "assists": self.assists,
            "steals": self.steals,
            "blocks": self.blocks,
            "turnovers": self.turnovers,
            "rebounds_off": self.rebounds_off,
            "rebounds_def": self.rebounds_def,
            "fouls": [kind.value for kind in self.fouls],
        }
