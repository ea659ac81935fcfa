"""FastAPI application factory for the live stat-entry service."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import settings
from .db import close_db, init_db
from .gateway import EntityGateway, build_gateway
from .logging_config import configure_logging
from .middleware.logging import StructuredLoggingMiddleware
from .routers import live
from .services.live_stats import ClockRegistry, SessionRegistry
from .validate_env import validate_env

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    validate_env()
    configure_logging("scorebook-api", settings.environment, settings.log_level)
    if settings.store_backend == "sql" and settings.environment == "development":
        await init_db()
    logger.info(
        "scorebook_started",
        extra={"environment": settings.environment, "store_backend": settings.store_backend},
    )
    try:
        yield
    finally:
        await app.state.clocks.shutdown()
        app.state.sessions.close_all()
        await app.state.gateway.close()
        await close_db()
        logger.info("scorebook_stopped")


def create_app(gateway: EntityGateway | None = None) -> FastAPI:
    """Build the app around a gateway (``STORE_BACKEND`` picks one by default)."""
    app = FastAPI(title="scorebook", version="1.0.0", lifespan=lifespan)

    gateway = gateway or build_gateway(settings)
    app.state.gateway = gateway
    app.state.sessions = SessionRegistry(gateway)
    app.state.clocks = ClockRegistry(gateway)

    app.add_middleware(StructuredLoggingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(live.router)

    @app.get("/healthz")
    async def healthcheck() -> dict[str, str]:
        return {"status": "ok"}

    return app
