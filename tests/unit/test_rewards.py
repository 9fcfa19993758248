"""Check-in reward formula tests."""

import pytest

from ladder.progression.rewards import check_in_experience, check_in_points


class TestCheckInPoints:
    """5 base + streak bonus capped at 10."""

    @pytest.mark.parametrize(
        ("days", "expected"),
        [(0, 5), (1, 6), (5, 10), (10, 15), (11, 15), (20, 15), (365, 15)],
    )
    def test_points(self, days, expected):
        assert check_in_points(days) == expected

    def test_monotonic(self):
        values = [check_in_points(d) for d in range(0, 30)]
        assert values == sorted(values)


class TestCheckInExperience:
    """10 base + login streak + 2x check-in streak, uncapped."""

    def test_examples(self):
        assert check_in_experience(1, 1) == 13
        assert check_in_experience(10, 10) == 40
        assert check_in_experience(0, 1) == 12

    def test_no_cap_on_long_streaks(self):
        assert check_in_experience(365, 365) == 10 + 365 + 730
