"""Shared helpers for the live stat-entry routers."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator

from fastapi import HTTPException, status

from ...gateway import EntityNotFoundError, GatewayError
from ...services.live_stats import CommitError, SessionClosedError, SessionNotFoundError

logger = logging.getLogger(__name__)


@contextmanager
def translate_errors() -> Iterator[None]:
    """Map domain errors raised inside a handler onto HTTP errors."""
    try:
        yield
    except (EntityNotFoundError, SessionNotFoundError) as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except SessionClosedError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except CommitError as exc:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail={"message": "Failed to save stats", "failedWrites": sorted(exc.failures)},
        ) from exc
    except GatewayError as exc:
        logger.warning("gateway_request_failed", extra={"error": str(exc)})
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY, detail="Storage request failed"
        ) from exc
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)
        ) from exc
