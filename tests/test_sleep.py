"""Tests for healthtiers.analytics.sleep -- sleep performance."""

import pytest

from healthtiers.analytics.consistency import INSUFFICIENT
from healthtiers.analytics.sleep import (
    SleepPerformanceCategory,
    cumulative_sleep_debt,
    estimate_hours_needed,
    is_debt_recoverable,
    score_from_consistency,
    score_sleep_performance,
)


class TestScoreSleepPerformance:
    def test_mixed(self):
        # 1.2*0.4 + 0.9*0.3 + (1 - 2/4)*0.3
        perf = score_sleep_performance(9.0, 0.9, 3600.0, 3600.0, 7.5)
        assert perf.score == 90
        assert perf.consistency == pytest.approx(0.5)
        assert perf.category == SleepPerformanceCategory.OPTIMAL

    def test_perfect_night(self):
        assert score_sleep_performance(7.5, 1.0).score == 100

    def test_oversleep_capped(self):
        perf = score_sleep_performance(15.0, 1.0)
        assert perf.score == 100
        assert perf.hours_vs_need == pytest.approx(2.0)

    def test_efficiency_clamped(self):
        assert score_sleep_performance(7.5, 1.4).efficiency == 1.0

    def test_short_night(self):
        perf = score_sleep_performance(3.0, 0.8, 7200.0, 7200.0)
        # 0.4*0.4 + 0.8*0.3 + 0
        assert perf.score == 40
        assert perf.category == SleepPerformanceCategory.POOR
        assert perf.recommended_action == "Improve sleep environment to increase efficiency"

    def test_insufficient_consistency_counts_as_perfect(self):
        assert score_from_consistency(7.5, 1.0, INSUFFICIENT).score == 100

    def test_insight_bands(self):
        assert "Excellent" in score_sleep_performance(7.5, 1.0).insight
        assert "Poor" in score_sleep_performance(3.0, 0.8, 7200.0, 7200.0).insight


class TestHoursNeeded:
    @pytest.mark.parametrize("age,hours", [(16, 9.0), (20, 8.0), (30, 7.5), (70, 7.0)])
    def test_age_brackets(self, age, hours):
        assert estimate_hours_needed(age) == hours

    def test_high_strain_extra(self):
        assert estimate_hours_needed(30, 2) == pytest.approx(8.0)

    def test_extra_capped(self):
        assert estimate_hours_needed(30, 10) == pytest.approx(8.5)


class TestDebt:
    def test_cumulative(self):
        assert cumulative_sleep_debt([(7.0, 8.0), (9.0, 8.0)]) == 0.0
        assert cumulative_sleep_debt([(6.0, 8.0), (7.0, 8.0)]) == pytest.approx(3.0)

    def test_recoverable(self):
        assert is_debt_recoverable(2.0)
        assert not is_debt_recoverable(2.5)
