"""Level curve and computation.

Experience is cumulative and never reset on level-up. A user is level L
while ``required_exp_for_level(L - 1) <= exp < required_exp_for_level(L)``,
with ``required_exp_for_level(0) == 0``.
"""

from __future__ import annotations

import math
from dataclasses import dataclass


@dataclass(frozen=True)
class LevelInfo:
    level: int
    next_level_exp: int


def required_exp_for_level(level: int) -> int:
    """Cumulative experience needed to leave ``level``: floor(100 * level^1.5)."""
    if level <= 0:
        return 0
    return math.floor(100 * level**1.5)


def level_for_exp(total_exp: int, start_level: int = 1) -> LevelInfo:
    """Compute the level for ``total_exp``, never going below ``start_level``.

    Finds the smallest level >= start_level with total_exp < required_exp_for_level(level).
    The search doubles its step until the threshold is passed and then bisects,
    so a large experience delta can jump several levels in one call.
    """
    low = max(1, start_level)
    if total_exp < required_exp_for_level(low):
        return LevelInfo(level=low, next_level_exp=required_exp_for_level(low))

    # Invariant: total_exp >= required(low); find high with total_exp < required(high)
    step = 1
    high = low + step
    while total_exp >= required_exp_for_level(high):
        low = high
        step *= 2
        high = low + step

    while high - low > 1:
        mid = (low + high) // 2
        if total_exp >= required_exp_for_level(mid):
            low = mid
        else:
            high = mid

    return LevelInfo(level=high, next_level_exp=required_exp_for_level(high))


def level_progress(total_exp: int, level: int) -> dict:
    """Progress within the current level, for profile display."""
    floor_exp = required_exp_for_level(level - 1)
    next_exp = required_exp_for_level(level)
    span = max(1, next_exp - floor_exp)
    into = total_exp - floor_exp
    return {
        "level": level,
        "exp_into_level": into,
        "exp_for_level": span,
        "next_level_exp": next_exp,
        "percent": round(min(100.0, max(0.0, into / span * 100)), 2),
    }
