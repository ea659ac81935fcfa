"""Pydantic schemas for live stat-entry endpoints (camelCase output)."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ...db.live import TeamSide
from ...services.live_stats import FoulKind, ShotOutcome, StatCategory


class GameCreateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    home_team_name: str = Field("Home", alias="homeTeamName", min_length=1, max_length=200)
    away_team_name: str = Field("Away", alias="awayTeamName", min_length=1, max_length=200)
    home_team_color: str = Field("#3B82F6", alias="homeTeamColor", pattern=r"^#[0-9A-Fa-f]{6}$")
    away_team_color: str = Field("#F97316", alias="awayTeamColor", pattern=r"^#[0-9A-Fa-f]{6}$")
    quarter_length_minutes: int | None = Field(None, alias="quarterLengthMinutes", ge=1, le=20)
    timeouts_per_team: int | None = Field(None, alias="timeoutsPerTeam", ge=0, le=10)


class GameResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: int
    home_team_name: str = Field(..., alias="homeTeamName")
    away_team_name: str = Field(..., alias="awayTeamName")
    home_team_color: str = Field(..., alias="homeTeamColor")
    away_team_color: str = Field(..., alias="awayTeamColor")
    home_score: int = Field(..., alias="homeScore")
    away_score: int = Field(..., alias="awayScore")
    quarter: int
    quarter_length_minutes: int = Field(..., alias="quarterLengthMinutes")
    game_clock_seconds: int = Field(..., alias="gameClockSeconds")
    shot_clock_seconds: int = Field(..., alias="shotClockSeconds")
    home_timeouts: int = Field(0, alias="homeTimeouts")
    away_timeouts: int = Field(0, alias="awayTimeouts")
    status: str
    updated_at: datetime | None = Field(None, alias="updatedAt")


class PlayerCreateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(..., min_length=1, max_length=200)
    team: TeamSide
    jersey_number: int | None = Field(None, alias="jerseyNumber", ge=0, le=99)
    position: str | None = Field(None, max_length=10)
    on_court: bool = Field(False, alias="onCourt")


class PlayerResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: int
    game_id: int = Field(..., alias="gameId")
    name: str
    team: str
    jersey_number: int | None = Field(None, alias="jerseyNumber")
    position: str | None = None
    on_court: bool = Field(False, alias="onCourt")
    points: int = 0
    fgm: int = 0
    fga: int = 0
    three_pm: int = Field(0, alias="threePm")
    three_pa: int = Field(0, alias="threePa")
    ftm: int = 0
    fta: int = 0
    rebounds_off: int = Field(0, alias="reboundsOff")
    rebounds_def: int = Field(0, alias="reboundsDef")
    assists: int = 0
    steals: int = 0
    blocks: int = 0
    turnovers: int = 0
    personal_fouls: int = Field(0, alias="personalFouls")


class EventResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: int
    game_id: int = Field(..., alias="gameId")
    player_id: int | None = Field(None, alias="playerId")
    team: str
    event_type: str = Field(..., alias="eventType")
    quarter: int
    game_clock_seconds: int = Field(..., alias="gameClockSeconds")
    points: int
    description: str | None = None
    batch_id: str | None = Field(None, alias="batchId")
    created_at: datetime | None = Field(None, alias="createdAt")


class SessionOpenRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    player_id: int = Field(..., alias="playerId")
    game_id: int = Field(..., alias="gameId")


class SessionResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    session_id: str = Field(..., alias="sessionId")
    player_id: int = Field(..., alias="playerId")
    game_id: int = Field(..., alias="gameId")
    player_name: str = Field(..., alias="playerName")
    team: str
    has_pending: bool = Field(..., alias="hasPending")
    buffer: dict[str, Any]
    closed: bool = False


_SHOT_CATEGORIES = frozenset(
    {StatCategory.two_pointer, StatCategory.three_pointer, StatCategory.free_throw}
)


class StatRecordRequest(BaseModel):
    """One stat button press.

    ``outcome`` is required for 2PT/3PT/FT, ``foulKind`` for fouls, and
    ``amount`` applies to the plain counters.
    """

    model_config = ConfigDict(populate_by_name=True)

    category: StatCategory
    outcome: ShotOutcome | None = None
    foul_kind: FoulKind | None = Field(None, alias="foulKind")
    amount: int = Field(1, ge=1, le=20)

    @model_validator(mode="after")
    def _check_value(self) -> "StatRecordRequest":
        if self.category in _SHOT_CATEGORIES and self.outcome is None:
            raise ValueError(f"outcome is required for {self.category.value}")
        if self.category is StatCategory.foul and self.foul_kind is None:
            raise ValueError("foulKind is required for foul")
        return self

    def value(self) -> Any:
        """The value the pending buffer expects for this category."""
        if self.category in _SHOT_CATEGORIES:
            return self.outcome
        if self.category is StatCategory.foul:
            return self.foul_kind
        return self.amount


class FreeThrowRequest(BaseModel):
    outcome: ShotOutcome


class RecordResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    accepted: bool
    session: SessionResponse


class ConfirmResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    committed: bool
    batch_id: str | None = Field(None, alias="batchId")
    events: list[EventResponse] = Field(default_factory=list)
    player_delta: dict[str, int] = Field(default_factory=dict, alias="playerDelta")
    game_delta: dict[str, Any] = Field(default_factory=dict, alias="gameDelta")
    player: PlayerResponse | None = None
    game: GameResponse | None = None


class ClockResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    game_id: int = Field(..., alias="gameId")
    running: bool
    quarter: int
    game_clock_seconds: int = Field(..., alias="gameClockSeconds")
    shot_clock_seconds: int = Field(..., alias="shotClockSeconds")
    game_clock_display: str = Field(..., alias="gameClockDisplay")


class ClockAdjustRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    game_clock_seconds: int | None = Field(None, alias="gameClockSeconds", ge=0, le=3600)
    shot_clock_seconds: int | None = Field(None, alias="shotClockSeconds", ge=0, le=60)

    @model_validator(mode="after")
    def _check_any(self) -> "ClockAdjustRequest":
        if self.game_clock_seconds is None and self.shot_clock_seconds is None:
            raise ValueError("gameClockSeconds or shotClockSeconds is required")
        return self


class SubstitutionRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    player_out_id: int = Field(..., alias="playerOutId")
    player_in_id: int = Field(..., alias="playerInId")


class SubstitutionResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    event: EventResponse
    player_out: PlayerResponse = Field(..., alias="playerOut")
    player_in: PlayerResponse = Field(..., alias="playerIn")


class TimeoutRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    team: TeamSide
    duration_seconds: int = Field(..., alias="durationSeconds")


class TimeoutResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    event: EventResponse
    game: GameResponse
