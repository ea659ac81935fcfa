"""Request-scoped access to the live services held on ``app.state``."""

from __future__ import annotations

from fastapi import Request

from ..gateway import EntityGateway
from ..services.live_stats import ClockRegistry, SessionRegistry


def get_gateway(request: Request) -> EntityGateway:
    return request.app.state.gateway


def get_sessions(request: Request) -> SessionRegistry:
    return request.app.state.sessions


def get_clocks(request: Request) -> ClockRegistry:
    return request.app.state.clocks
