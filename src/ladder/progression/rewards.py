"""Points and experience awarded per check-in."""

from __future__ import annotations

BASE_CHECK_IN_POINTS = 5
MAX_STREAK_POINT_BONUS = 10
BASE_CHECK_IN_EXP = 10


def check_in_points(consecutive_days: int) -> int:
    """5 base points plus one per streak day, bonus capped at 10.

    check_in_points(1) == 6, check_in_points(10) == 15, check_in_points(20) == 15
    """
    return BASE_CHECK_IN_POINTS + min(consecutive_days, MAX_STREAK_POINT_BONUS)


def check_in_experience(consecutive_login_days: int, consecutive_check_in_days: int) -> int:
    """10 base experience, +1 per login streak day, +2 per check-in streak day.

    Neither bonus is capped.
    """
    return BASE_CHECK_IN_EXP + consecutive_login_days + 2 * consecutive_check_in_days
