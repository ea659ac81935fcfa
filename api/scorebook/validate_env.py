"""Fail-fast environment validation for the scorebook API."""

from __future__ import annotations

import os
from functools import lru_cache
from urllib.parse import urlparse


ALLOWED_ENVIRONMENTS = {"development", "staging", "production"}
ALLOWED_STORE_BACKENDS = {"sql", "memory"}


def _require_env(name: str) -> str:
    value = os.getenv(name)
    if value is None or not value.strip():
        raise RuntimeError(f"{name} is required and must be set before startup.")
    return value.strip()


def _validate_environment_value(environment: str) -> None:
    if environment not in ALLOWED_ENVIRONMENTS:
        allowed = ", ".join(sorted(ALLOWED_ENVIRONMENTS))
        raise RuntimeError(f"ENVIRONMENT must be one of: {allowed}.")


def _validate_store_backend(backend: str) -> None:
    if backend not in ALLOWED_STORE_BACKENDS:
        allowed = ", ".join(sorted(ALLOWED_STORE_BACKENDS))
        raise RuntimeError(f"STORE_BACKEND must be one of: {allowed}.")


def _validate_non_local_url(name: str, value: str) -> None:
    parsed = urlparse(value)
    host = parsed.hostname
    if not host:
        raise RuntimeError(f"{name} must be a valid URL (missing hostname).")
    if host in {"localhost", "127.0.0.1"}:
        raise RuntimeError(f"{name} must not point to localhost in production.")


def _validate_database_credentials(value: str) -> None:
    parsed = urlparse(value)
    if parsed.username == "postgres" and parsed.password == "postgres":
        raise RuntimeError("DATABASE_URL must not use default postgres credentials in production.")


@lru_cache(maxsize=1)
def validate_env() -> None:
    """Validate required environment variables before the API starts."""
    environment = _require_env("ENVIRONMENT")
    _validate_environment_value(environment)

    backend = os.getenv("STORE_BACKEND", "sql").strip() or "sql"
    _validate_store_backend(backend)

    if backend == "sql":
        database_url = _require_env("DATABASE_URL")
    else:
        database_url = None

    if environment == "production":
        if backend != "sql":
            raise RuntimeError("STORE_BACKEND=memory is not allowed in production.")
        _validate_non_local_url("DATABASE_URL", database_url)
        _validate_database_credentials(database_url)
        api_key = _require_env("API_KEY")
        if len(api_key) < 32:
            raise RuntimeError("API_KEY must be at least 32 characters in production.")
