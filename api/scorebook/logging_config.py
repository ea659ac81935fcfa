"""Structured JSON logs with game/session/batch correlation.

Handlers attach ``GameContextFilter`` so every record carries the ids bound
by ``log_context``::

    with log_context(game_id=7, session_id=session.id):
        logger.info("stats_committed", extra={"event_count": 3})

The formatter lifts those ids to the top of the payload; anything else in
``extra`` is merged after them.
"""

from __future__ import annotations

import json
import logging
import sys
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Iterator

from .utils.datetime_utils import now_utc

CONTEXT_FIELDS = ("game_id", "session_id", "batch_id")

_context: ContextVar[dict[str, Any]] = ContextVar("scorebook_log_context", default={})

# Attributes every LogRecord has; whatever else is on a record came from ``extra``.
_RECORD_ATTRIBUTES = frozenset(
    logging.LogRecord("", logging.NOTSET, "", 0, "", None, None).__dict__
) | {"message", "asctime", "taskName"}


@contextmanager
def log_context(**fields: Any) -> Iterator[dict[str, Any]]:
    """Bind correlation ids for records logged inside the block.

    Only ``CONTEXT_FIELDS`` are accepted. ``None`` values are skipped so callers
    can pass optional ids straight through. Nested blocks inherit outer ids.
    """
    unknown = set(fields) - set(CONTEXT_FIELDS)
    if unknown:
        raise ValueError(f"Unknown log context fields: {sorted(unknown)}")
    merged = {**_context.get(), **{k: v for k, v in fields.items() if v is not None}}
    token = _context.set(merged)
    try:
        yield merged
    finally:
        _context.reset(token)


def current_log_context() -> dict[str, Any]:
    return dict(_context.get())


class GameContextFilter(logging.Filter):
    """Copy the bound correlation ids onto each record.

    An id passed explicitly through ``extra`` wins over the bound one.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        for key, value in _context.get().items():
            if not hasattr(record, key):
                setattr(record, key, value)
        return True


class JSONFormatter(logging.Formatter):
    def __init__(self, service: str, environment: str) -> None:
        super().__init__()
        self._service = service
        self._environment = environment

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": now_utc().isoformat(),
            "level": record.levelname.lower(),
            "logger": record.name,
            "service": self._service,
            "environment": self._environment,
            "message": record.getMessage(),
        }
        for key in CONTEXT_FIELDS:
            value = getattr(record, key, None)
            if value is not None:
                payload[key] = value
        for key, value in record.__dict__.items():
            if key in _RECORD_ATTRIBUTES or key in payload:
                continue
            payload[key] = value
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


def resolve_log_level(level: str | None, environment: str) -> int:
    """Explicit level wins; otherwise production logs INFO and the rest DEBUG."""
    if level:
        normalized = level.strip().upper()
    else:
        normalized = "INFO" if environment.lower() == "production" else "DEBUG"
    return logging._nameToLevel.get(normalized, logging.INFO)


def configure_logging(service: str, environment: str, log_level: str | None = None) -> None:
    handler = logging.StreamHandler(stream=sys.stdout)
    handler.addFilter(GameContextFilter())
    handler.setFormatter(JSONFormatter(service=service, environment=environment))
    root_logger = logging.getLogger()
    root_logger.handlers = [handler]
    root_logger.setLevel(resolve_log_level(log_level, environment))
