"""Datetime and game-clock helpers.

All datetime fields in responses are UTC (ISO 8601). Game clocks are stored
as whole seconds remaining and rendered as ``M:SS`` for display.
"""

from datetime import datetime, timezone


def now_utc() -> datetime:
    """Get the current time in UTC, timezone-aware."""
    return datetime.now(timezone.utc)


def format_clock(seconds: int | None) -> str:
    """Render seconds remaining as ``M:SS`` (e.g. 75 -> "1:15").

    Negative or missing values render as "0:00".
    """
    if not seconds or seconds < 0:
        return "0:00"
    minutes, secs = divmod(int(seconds), 60)
    return f"{minutes}:{secs:02d}"
