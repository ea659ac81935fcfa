"""Game clock endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from ...dependencies.live import get_clocks
from ...services.live_stats import ClockRegistry
from .common import translate_errors
from .schemas import ClockAdjustRequest, ClockResponse

router = APIRouter(tags=["live-clock"])


@router.get("/games/{game_id}/clock", response_model=ClockResponse)
async def get_clock(
    game_id: int,
    clocks: ClockRegistry = Depends(get_clocks),
) -> ClockResponse:
    with translate_errors():
        ticker = await clocks.get(game_id)
    return ClockResponse.model_validate(ticker.state())


@router.post("/games/{game_id}/clock/start", response_model=ClockResponse)
async def start_clock(
    game_id: int,
    clocks: ClockRegistry = Depends(get_clocks),
) -> ClockResponse:
    with translate_errors():
        ticker = await clocks.get(game_id)
        await ticker.start()
    return ClockResponse.model_validate(ticker.state())


@router.post("/games/{game_id}/clock/pause", response_model=ClockResponse)
async def pause_clock(
    game_id: int,
    clocks: ClockRegistry = Depends(get_clocks),
) -> ClockResponse:
    with translate_errors():
        ticker = await clocks.get(game_id)
        await ticker.pause()
    return ClockResponse.model_validate(ticker.state())


@router.post("/games/{game_id}/clock/tick", response_model=ClockResponse)
async def tick_clock(
    game_id: int,
    clocks: ClockRegistry = Depends(get_clocks),
) -> ClockResponse:
    """Advance one second by hand; a paused clock does not move."""
    with translate_errors():
        ticker = await clocks.get(game_id)
        await ticker.tick()
    return ClockResponse.model_validate(ticker.state())


@router.post("/games/{game_id}/clock/reset-shot-clock", response_model=ClockResponse)
async def reset_shot_clock(
    game_id: int,
    clocks: ClockRegistry = Depends(get_clocks),
) -> ClockResponse:
    with translate_errors():
        ticker = await clocks.get(game_id)
        await ticker.reset_shot_clock()
    return ClockResponse.model_validate(ticker.state())


@router.post("/games/{game_id}/clock/reset-game-clock", response_model=ClockResponse)
async def reset_game_clock(
    game_id: int,
    clocks: ClockRegistry = Depends(get_clocks),
) -> ClockResponse:
    with translate_errors():
        ticker = await clocks.get(game_id)
        await ticker.reset_game_clock()
    return ClockResponse.model_validate(ticker.state())


@router.post("/games/{game_id}/clock/next-period", response_model=ClockResponse)
async def next_period(
    game_id: int,
    clocks: ClockRegistry = Depends(get_clocks),
) -> ClockResponse:
    with translate_errors():
        ticker = await clocks.get(game_id)
        await ticker.advance_period()
    return ClockResponse.model_validate(ticker.state())


@router.post("/games/{game_id}/clock/adjust", response_model=ClockResponse)
async def adjust_clock(
    game_id: int,
    payload: ClockAdjustRequest,
    clocks: ClockRegistry = Depends(get_clocks),
) -> ClockResponse:
    """Set the game and/or shot clock to exact values."""
    with translate_errors():
        ticker = await clocks.get(game_id)
        await ticker.set_clocks(payload.game_clock_seconds, payload.shot_clock_seconds)
    return ClockResponse.model_validate(ticker.state())
