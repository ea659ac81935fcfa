"""Live stat-entry API, mounted under ``/api/live``."""

from fastapi import APIRouter, Depends

from ...dependencies.auth import verify_api_key
from . import clock, games, sessions

router = APIRouter(prefix="/api/live", dependencies=[Depends(verify_api_key)])
router.include_router(games.router)
router.include_router(sessions.router)
router.include_router(clock.router)

__all__ = ["router"]
