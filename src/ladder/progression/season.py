"""Season clock.

Seasons are six calendar months long and counted from the first season
start (2026-01-01 UTC). Boundaries are month-aligned: the day of month is
ignored when computing the current season.
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone

FIRST_SEASON_START = date(2026, 1, 1)
SEASON_MONTHS = 6


def _month_index(d: date | datetime) -> int:
    return d.year * 12 + (d.month - 1)


def _add_months(d: date, months: int) -> date:
    """First day of the month ``months`` after the month containing ``d``."""
    index = _month_index(d) + months
    return date(index // 12, index % 12 + 1, 1)


def current_season(now: datetime | None = None) -> int:
    """Season number (1-based) for ``now``.

    >>> current_season(datetime(2026, 1, 15, tzinfo=timezone.utc))
    1
    >>> current_season(datetime(2026, 7, 15, tzinfo=timezone.utc))
    2
    """
    if now is None:
        now = datetime.now(timezone.utc)
    if now.tzinfo is not None:
        now = now.astimezone(timezone.utc)
    months = _month_index(now) - _month_index(FIRST_SEASON_START)
    return max(1, months // SEASON_MONTHS + 1)


def season_date_range(season: int) -> tuple[datetime, datetime]:
    """Get (first day 00:00:00, last day 23:59:59.999) UTC for a season."""
    start_day = _add_months(FIRST_SEASON_START, (season - 1) * SEASON_MONTHS)
    end_day = _add_months(start_day, SEASON_MONTHS) - timedelta(days=1)
    start = datetime.combine(start_day, time.min, tzinfo=timezone.utc)
    end = datetime.combine(end_day, time(23, 59, 59, 999000), tzinfo=timezone.utc)
    return start, end


def is_in_season(dt: datetime, season: int) -> bool:
    """Check whether ``dt`` falls inside the season's date range."""
    start, end = season_date_range(season)
    return start <= dt <= end
