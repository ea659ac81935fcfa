"""Live stat entry: pending buffer, event derivation, commit, and game clock.

Usage:
    from scorebook.services.live_stats import StatEntrySession, StatCategory, ShotOutcome

    session = await StatEntrySession.open(gateway, player_id, game_id)
    session.record(StatCategory.two_pointer, ShotOutcome.made)
    result = await session.confirm()
"""

from .buffer import PendingStatBuffer, ShotCounts
from .clock import ClockRegistry, GameClockTicker, RunningFlagStore
from .commit import CommitError, CommitPipeline, CommitResult
from .derivation import (
    Derivation,
    DerivedEvent,
    GameDelta,
    PlayerDelta,
    compute_game_delta,
    compute_player_delta,
    derive,
    derive_events,
)
from .game_actions import SubstitutionResult, TimeoutResult, call_timeout, substitute
from .session import (
    SessionClosedError,
    SessionNotFoundError,
    SessionRegistry,
    StatEntrySession,
)
from .types import (
    EventType,
    FoulKind,
    GameSnapshot,
    PlayerSnapshot,
    ShotOutcome,
    StatCategory,
)

__all__ = [
    "PendingStatBuffer",
    "ShotCounts",
    "ClockRegistry",
    "GameClockTicker",
    "RunningFlagStore",
    "CommitError",
    "CommitPipeline",
    "CommitResult",
    "Derivation",
    "DerivedEvent",
    "GameDelta",
    "PlayerDelta",
    "compute_game_delta",
    "compute_player_delta",
    "derive",
    "derive_events",
    "SubstitutionResult",
    "TimeoutResult",
    "call_timeout",
    "substitute",
    "SessionClosedError",
    "SessionNotFoundError",
    "SessionRegistry",
    "StatEntrySession",
    "EventType",
    "FoulKind",
    "GameSnapshot",
    "PlayerSnapshot",
    "ShotOutcome",
    "StatCategory",
]
