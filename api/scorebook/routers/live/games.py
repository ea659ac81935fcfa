"""Game, roster, event feed and box score endpoints."""

from __future__ import annotations

import asyncio

from fastapi import APIRouter, Depends, Query, status

from ...config import settings
from ...gateway import EntityGateway
from ...dependencies.live import get_gateway
from ...services.box_score import build_box_score
from ...services.live_stats import call_timeout, substitute
from .common import translate_errors
from .schemas import (
    EventResponse,
    GameCreateRequest,
    GameResponse,
    PlayerCreateRequest,
    PlayerResponse,
    SubstitutionRequest,
    SubstitutionResponse,
    TimeoutRequest,
    TimeoutResponse,
)

router = APIRouter(tags=["live-games"])


@router.post("/games", response_model=GameResponse, status_code=status.HTTP_201_CREATED)
async def create_game(
    payload: GameCreateRequest,
    gateway: EntityGateway = Depends(get_gateway),
) -> GameResponse:
    """Create a game with the clock set to a full period."""
    quarter_length = payload.quarter_length_minutes or settings.default_quarter_length_minutes
    timeouts = (
        settings.timeouts_per_team if payload.timeouts_per_team is None else payload.timeouts_per_team
    )
    with translate_errors():
        record = await gateway.games.create(
            {
                "home_team_name": payload.home_team_name,
                "away_team_name": payload.away_team_name,
                "home_team_color": payload.home_team_color,
                "away_team_color": payload.away_team_color,
                "quarter_length_minutes": quarter_length,
                "game_clock_seconds": quarter_length * 60,
                "shot_clock_seconds": settings.shot_clock_seconds,
                "home_timeouts": timeouts,
                "away_timeouts": timeouts,
            }
        )
    return GameResponse.model_validate(record)


@router.get("/games", response_model=list[GameResponse])
async def list_games(
    limit: int = Query(50, ge=1, le=500),
    gateway: EntityGateway = Depends(get_gateway),
) -> list[GameResponse]:
    with translate_errors():
        records = await gateway.games.list(sort="-created_at", limit=limit)
    return [GameResponse.model_validate(record) for record in records]


@router.get("/games/{game_id}", response_model=GameResponse)
async def get_game(
    game_id: int,
    gateway: EntityGateway = Depends(get_gateway),
) -> GameResponse:
    with translate_errors():
        record = await gateway.games.get(game_id)
    return GameResponse.model_validate(record)


@router.post(
    "/games/{game_id}/players",
    response_model=PlayerResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_player(
    game_id: int,
    payload: PlayerCreateRequest,
    gateway: EntityGateway = Depends(get_gateway),
) -> PlayerResponse:
    with translate_errors():
        await gateway.games.get(game_id)
        record = await gateway.players.create(
            {
                "game_id": game_id,
                "name": payload.name,
                "team": payload.team.value,
                "jersey_number": payload.jersey_number,
                "position": payload.position,
                "on_court": payload.on_court,
            }
        )
    return PlayerResponse.model_validate(record)


@router.get("/games/{game_id}/players", response_model=list[PlayerResponse])
async def list_players(
    game_id: int,
    team: str | None = Query(None, pattern=r"^(home|away)$"),
    gateway: EntityGateway = Depends(get_gateway),
) -> list[PlayerResponse]:
    criteria: dict[str, object] = {"game_id": game_id}
    if team:
        criteria["team"] = team
    with translate_errors():
        records = await gateway.players.filter(criteria, sort="jersey_number")
    return [PlayerResponse.model_validate(record) for record in records]


@router.get("/games/{game_id}/events", response_model=list[EventResponse])
async def list_events(
    game_id: int,
    limit: int | None = Query(None, ge=1, le=1000),
    gateway: EntityGateway = Depends(get_gateway),
) -> list[EventResponse]:
    """Most recent events first."""
    with translate_errors():
        records = await gateway.events.filter(
            {"game_id": game_id},
            sort="-created_at",
            limit=limit or settings.event_feed_limit,
        )
    return [EventResponse.model_validate(record) for record in records]


@router.get("/games/{game_id}/box-score")
async def get_box_score(
    game_id: int,
    gateway: EntityGateway = Depends(get_gateway),
) -> dict:
    with translate_errors():
        game, players, events = await asyncio.gather(
            gateway.games.get(game_id),
            gateway.players.filter({"game_id": game_id}, sort="jersey_number"),
            gateway.events.filter({"game_id": game_id}),
        )
    return build_box_score(game, players, events)


@router.post(
    "/games/{game_id}/substitutions",
    response_model=SubstitutionResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_substitution(
    game_id: int,
    payload: SubstitutionRequest,
    gateway: EntityGateway = Depends(get_gateway),
) -> SubstitutionResponse:
    """Swap a bench player in for an on-court teammate and log the substitution."""
    with translate_errors():
        result = await substitute(gateway, game_id, payload.player_out_id, payload.player_in_id)
    return SubstitutionResponse(
        event=EventResponse.model_validate(result.event),
        player_out=PlayerResponse.model_validate(result.player_out),
        player_in=PlayerResponse.model_validate(result.player_in),
    )


@router.post(
    "/games/{game_id}/timeouts",
    response_model=TimeoutResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_timeout(
    game_id: int,
    payload: TimeoutRequest,
    gateway: EntityGateway = Depends(get_gateway),
) -> TimeoutResponse:
    """Charge a timeout to one side; 422 once the side has none left."""
    with translate_errors():
        result = await call_timeout(gateway, game_id, payload.team, payload.duration_seconds)
    return TimeoutResponse(
        event=EventResponse.model_validate(result.event),
        game=GameResponse.model_validate(result.game),
    )
