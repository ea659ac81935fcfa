"""Stat-entry session endpoints: open, record, confirm, close."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from ...dependencies.live import get_clocks, get_sessions
from ...services.live_stats import ClockRegistry, SessionRegistry, StatEntrySession
from .common import translate_errors
from .schemas import (
    ConfirmResponse,
    EventResponse,
    FreeThrowRequest,
    GameResponse,
    PlayerResponse,
    RecordResponse,
    SessionOpenRequest,
    SessionResponse,
    StatRecordRequest,
)

router = APIRouter(tags=["live-sessions"])


def _session_response(session: StatEntrySession) -> SessionResponse:
    return SessionResponse.model_validate(session.to_dict())


@router.post("/sessions", response_model=SessionResponse, status_code=status.HTTP_201_CREATED)
async def open_session(
    payload: SessionOpenRequest,
    sessions: SessionRegistry = Depends(get_sessions),
) -> SessionResponse:
    with translate_errors():
        session = await sessions.open(payload.player_id, payload.game_id)
    return _session_response(session)


@router.get("/sessions/{session_id}", response_model=SessionResponse)
async def get_session(
    session_id: str,
    sessions: SessionRegistry = Depends(get_sessions),
) -> SessionResponse:
    with translate_errors():
        session = sessions.get(session_id)
    return _session_response(session)


@router.post("/sessions/{session_id}/stats", response_model=RecordResponse)
async def record_stat(
    session_id: str,
    payload: StatRecordRequest,
    sessions: SessionRegistry = Depends(get_sessions),
) -> RecordResponse:
    with translate_errors():
        session = sessions.get(session_id)
        accepted = session.record(payload.category, payload.value())
    return RecordResponse(accepted=accepted, session=_session_response(session))


@router.post("/sessions/{session_id}/free-throws", response_model=RecordResponse)
async def add_free_throw(
    session_id: str,
    payload: FreeThrowRequest,
    sessions: SessionRegistry = Depends(get_sessions),
) -> RecordResponse:
    """Add one attempt to the free-throw trip; ``accepted`` is False past the cap."""
    with translate_errors():
        session = sessions.get(session_id)
        accepted = session.add_free_throw(payload.outcome)
    return RecordResponse(accepted=accepted, session=_session_response(session))


@router.delete("/sessions/{session_id}/free-throws/last", response_model=SessionResponse)
async def undo_last_free_throw(
    session_id: str,
    sessions: SessionRegistry = Depends(get_sessions),
) -> SessionResponse:
    with translate_errors():
        session = sessions.get(session_id)
        session.undo_last_free_throw()
    return _session_response(session)


@router.post("/sessions/{session_id}/confirm", response_model=ConfirmResponse)
async def confirm_session(
    session_id: str,
    sessions: SessionRegistry = Depends(get_sessions),
    clocks: ClockRegistry = Depends(get_clocks),
) -> ConfirmResponse:
    """Derive and commit the pending buffer.

    An empty buffer returns ``committed: false`` and writes nothing. A
    failed commit returns 502 and leaves the buffer intact for a retry.
    """
    with translate_errors():
        session = sessions.get(session_id)
        result = await session.confirm()

    if result is None:
        return ConfirmResponse(committed=False)

    derivation = session.last_derivation
    if derivation is not None and derivation.game_delta.shot_clock_reset:
        clocks.sync_shot_clock(session.game.id, session.game.shot_clock_seconds)

    return ConfirmResponse(
        committed=True,
        batch_id=result.batch_id,
        events=[EventResponse.model_validate(event) for event in result.events],
        player_delta=derivation.player_delta.to_dict() if derivation else {},
        game_delta=derivation.game_delta.to_dict() if derivation else {},
        player=PlayerResponse.model_validate(result.player),
        game=GameResponse.model_validate(result.game),
    )


@router.delete("/sessions/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
async def close_session(
    session_id: str,
    sessions: SessionRegistry = Depends(get_sessions),
) -> None:
    with translate_errors():
        sessions.close(session_id)
