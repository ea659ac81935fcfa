"""Live game models: games, per-game players, and the append-only event log.

Key Rules:
1. game_events rows are immutable once created (no updates, no deletes)
2. Every confirm writes its events with a shared batch_id
3. players.team is the side ("home" | "away"), not a team reference
4. Counting stats on players are cumulative for the game
5. Team events (timeouts) carry no player_id
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base


class GameStatus(str, Enum):
    """Game status lifecycle: scheduled -> live -> final."""

    scheduled = "scheduled"
    live = "live"
    final = "final"


class TeamSide(str, Enum):
    home = "home"
    away = "away"


class Game(Base):
    """A single game with its scoreboard and clocks."""

    __tablename__ = "games"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    home_team_name: Mapped[str] = mapped_column(String(200), nullable=False, default="Home")
    away_team_name: Mapped[str] = mapped_column(String(200), nullable=False, default="Away")
    home_team_color: Mapped[str] = mapped_column(String(7), nullable=False, default="#3B82F6")
    away_team_color: Mapped[str] = mapped_column(String(7), nullable=False, default="#F97316")
    home_score: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    away_score: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    quarter: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    quarter_length_minutes: Mapped[int] = mapped_column(Integer, nullable=False, default=8)
    game_clock_seconds: Mapped[int] = mapped_column(Integer, nullable=False, default=480)
    shot_clock_seconds: Mapped[int] = mapped_column(Integer, nullable=False, default=24)
    home_timeouts: Mapped[int] = mapped_column(Integer, nullable=False, default=5)
    away_timeouts: Mapped[int] = mapped_column(Integer, nullable=False, default=5)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=GameStatus.live.value, index=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    players: Mapped[list["Player"]] = relationship(
        "Player", back_populates="game", cascade="all, delete-orphan"
    )
    events: Mapped[list["GameEvent"]] = relationship(
        "GameEvent", back_populates="game", cascade="all, delete-orphan"
    )


class Player(Base):
    """A player's line for one game, with cumulative counting stats."""

    __tablename__ = "players"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    game_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("games.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    jersey_number: Mapped[int | None] = mapped_column(Integer, nullable=True)
    position: Mapped[str | None] = mapped_column(String(10), nullable=True)
    team: Mapped[str] = mapped_column(String(10), nullable=False)
    on_court: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    points: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    fgm: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    fga: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    three_pm: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    three_pa: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    ftm: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    fta: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    rebounds_off: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    rebounds_def: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    assists: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    steals: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    blocks: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    turnovers: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    personal_fouls: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    game: Mapped[Game] = relationship("Game", back_populates="players")

    __table_args__ = (Index("idx_players_game_team", "game_id", "team"),)


class GameEvent(Base):
    """One discrete occurrence in a game (shot, foul, substitution, timeout, ...)."""

    __tablename__ = "game_events"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    game_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("games.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    player_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("players.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )
    team: Mapped[str] = mapped_column(String(10), nullable=False)
    event_type: Mapped[str] = mapped_column(String(40), nullable=False, index=True)
    quarter: Mapped[int] = mapped_column(Integer, nullable=False)
    game_clock_seconds: Mapped[int] = mapped_column(Integer, nullable=False)
    points: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    batch_id: Mapped[str | None] = mapped_column(String(36), nullable=True, index=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    game: Mapped[Game] = relationship("Game", back_populates="events")

    __table_args__ = (Index("idx_game_events_game_created", "game_id", "created_at"),)
