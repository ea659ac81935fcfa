"""API key authentication dependency."""

from __future__ import annotations

import logging
import secrets

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import APIKeyHeader

from ..config import settings

logger = logging.getLogger(__name__)

API_KEY_HEADER = APIKeyHeader(name="X-API-Key", auto_error=False)


def _client_context(request: Request) -> dict[str, str]:
    return {
        "client_ip": request.client.host if request.client else "unknown",
        "path": request.url.path,
    }


async def verify_api_key(
    request: Request,
    api_key: str | None = Depends(API_KEY_HEADER),
) -> str:
    """Validate the X-API-Key header against the configured key.

    Uses constant-time comparison. When no key is configured (local
    development) every request is let through; production refuses to boot
    without one.

    Raises:
        HTTPException: 401 if the key is missing or wrong.
    """
    if not settings.api_key:
        logger.warning("api_key_not_configured", extra={"path": request.url.path})
        return ""

    if not api_key:
        logger.warning("api_key_missing", extra=_client_context(request))
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing API key",
            headers={"WWW-Authenticate": "ApiKey"},
        )

    if not secrets.compare_digest(api_key, settings.api_key):
        logger.warning("api_key_invalid", extra=_client_context(request))
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid API key",
            headers={"WWW-Authenticate": "ApiKey"},
        )

    return api_key
