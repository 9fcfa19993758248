"""Pure badge condition evaluation against a progression snapshot."""

from __future__ import annotations

from dataclasses import dataclass

from ladder.badges.catalog import BadgeCondition

_THRESHOLD_FIELDS = (
    "consecutive_check_in_days",
    "total_check_in_days",
    "consecutive_login_days",
    "total_login_days",
    "level",
    "rank_level",
)


@dataclass(frozen=True)
class ProgressSnapshot:
    """Values a badge condition can test, captured at the start of an evaluation pass."""

    consecutive_check_in_days: int = 0
    total_check_in_days: int = 0
    consecutive_login_days: int = 0
    total_login_days: int = 0
    level: int = 1
    rank_level: int | None = None
    rank_name: str | None = None


def check_condition(snapshot: ProgressSnapshot, condition: BadgeCondition) -> bool:
    """True when every threshold present is met and ``rank_name`` (if set) matches exactly.

    ``first_time`` is not tested here; it depends on the user's holdings.
    """
    for name in _THRESHOLD_FIELDS:
        required = getattr(condition, name)
        if required is None:
            continue
        actual = getattr(snapshot, name)
        if actual is None or actual < required:
            return False
    if condition.rank_name is not None and snapshot.rank_name != condition.rank_name:
        return False
    return True


def first_time_allowed(condition: BadgeCondition, held_of_type: int) -> bool:
    """First-time badges are only obtainable while the user holds no badge of that type."""
    if not condition.first_time:
        return True
    return held_of_type == 0
