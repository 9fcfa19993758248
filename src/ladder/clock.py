"""UTC clock helpers.

Every date-sensitive operation takes an optional ``now``; the HTTP layer
resolves it through the ``get_clock`` dependency so tests can pin time.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import date, datetime, timezone

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def as_utc(dt: datetime) -> datetime:
    """Normalize a datetime to aware UTC (naive values are assumed to be UTC)."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def utc_day(now: datetime) -> date:
    """Calendar day of ``now`` on the UTC day boundary."""
    return as_utc(now).date()
