"""
Tests for the shared physiological formulas.
"""

import math
from datetime import date, datetime

import pytest

from services.race_prediction.physiology import (
    clamp_vdot,
    days_between,
    exponential_decay,
    hr_reserve_pct,
    linear_regression,
    pct_vo2max_from_hrr,
    vo2_from_velocity,
    weighted_mean,
)


class TestOxygenCost:

    def test_daniels_equation(self):
        # 250 m/min: -4.60 + 45.5645 + 6.5
        assert vo2_from_velocity(250) == pytest.approx(47.4645)

    def test_increases_with_speed(self):
        assert vo2_from_velocity(300) > vo2_from_velocity(200)


class TestSwainLonderee:

    def test_linear_fit(self):
        assert pct_vo2max_from_hrr(0.7) == pytest.approx(1.4854 * 0.7 - 0.3702)

    @pytest.mark.parametrize("hrr", [0.3, 0.1, 1.0, 1.2])
    def test_outside_valid_band(self, hrr):
        """Result must land in (0.2, 1.0]."""
        assert pct_vo2max_from_hrr(hrr) is None

    def test_hr_reserve(self):
        assert hr_reserve_pct(148, 50, 190) == pytest.approx(0.7)

    def test_hr_reserve_degenerate_range(self):
        assert hr_reserve_pct(150, 190, 190) is None
        assert hr_reserve_pct(150, 190, 180) is None


class TestClamp:

    @pytest.mark.parametrize("value,expected", [(10, 15), (15, 15), (50, 50), (85, 85), (99, 85)])
    def test_clamp_vdot(self, value, expected):
        assert clamp_vdot(value) == expected


class TestRecency:

    def test_whole_days(self):
        assert days_between(date(2024, 5, 1), date(2024, 6, 1)) == 31

    def test_future_counts_as_today(self):
        assert days_between(date(2024, 6, 5), date(2024, 6, 1)) == 0

    def test_accepts_datetimes(self):
        assert days_between(datetime(2024, 5, 31, 23, 0), date(2024, 6, 1)) == 1

    def test_half_life(self):
        assert exponential_decay(60, 60) == pytest.approx(0.5, abs=0.001)
        assert exponential_decay(0, 60) == 1.0

    def test_two_half_lives_quarter_weight(self):
        assert exponential_decay(120, 60) == pytest.approx(math.exp(-0.693 * 2))
        assert exponential_decay(120, 60) == pytest.approx(0.25, abs=0.001)


class TestRegression:

    def test_perfect_line(self):
        slope, intercept, r2 = linear_regression([0, 1, 2, 3], [1, 3, 5, 7])

        assert slope == pytest.approx(2)
        assert intercept == pytest.approx(1)
        assert r2 == pytest.approx(1)

    def test_noisy_line_r_squared_below_one(self):
        _, _, r2 = linear_regression([0, 1, 2, 3, 4], [1, 3, 2, 5, 4])
        assert 0 < r2 < 1

    def test_flat_y_has_zero_r_squared(self):
        slope, _, r2 = linear_regression([0, 1, 2], [4, 4, 4])
        assert slope == 0
        assert r2 == 0.0

    def test_no_x_spread(self):
        assert linear_regression([5, 5, 5], [1, 2, 3]) is None

    def test_too_few_points(self):
        assert linear_regression([1], [1]) is None
        assert linear_regression([1, 2], [1]) is None


class TestWeightedMean:

    def test_weights_respected(self):
        assert weighted_mean([(40, 1), (50, 3)]) == pytest.approx(47.5)

    def test_zero_weight(self):
        assert weighted_mean([(40, 0)]) is None
        assert weighted_mean([]) is None
