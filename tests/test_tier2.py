"""Tests for healthtiers.analytics.tier2 -- load, sleep debt, deviations."""

from datetime import timedelta

import pytest

from healthtiers.analytics.baseline import Baseline, build_baseline
from healthtiers.analytics.tier1 import SleepTiming, build_factual_summary
from healthtiers.analytics.tier2 import (
    HRVDeviationInterpretation,
    LoadRatioInterpretation,
    RHRDeviationInterpretation,
    SleepDebt,
    SleepDebtStatus,
    acute_load,
    autonomic_balance,
    chronic_load,
    compute_tier2,
    cumulative_sleep_debt,
    daily_load,
    interpret_hrv_deviation,
    interpret_load_ratio,
    interpret_rhr_deviation,
    load_ratio,
    sleep_timing_consistency,
    weighted_load,
)

from tests.conftest import DAY, at, make_history, make_raw_day, make_workout


class TestLoad:
    def test_daily_load_components(self):
        summary = build_factual_summary(make_raw_day())
        # 8000 steps + 400 kcal
        assert daily_load(summary) == pytest.approx(1.6)

    def test_daily_load_with_workout(self):
        summary = build_factual_summary(make_raw_day(workouts=[make_workout()]))
        # workout strain: 45 min * 1.3 * 150/120
        assert daily_load(summary) == pytest.approx(1.6 + 73.125 / 100)

    def test_empty_day_zero(self):
        summary = build_factual_summary(make_raw_day(steps=None, active_energy=None))
        assert daily_load(summary) == 0.0

    def test_constant_series(self):
        assert acute_load([2.0] * 10) == pytest.approx(2.0)
        assert chronic_load([2.0] * 40) == pytest.approx(2.0)

    def test_newest_weighted_highest(self):
        assert weighted_load([0.0, 10.0], 2, 0.5) == pytest.approx(10.0 / 1.5)
        assert weighted_load([10.0, 0.0], 2, 0.5) == pytest.approx(5.0 / 1.5)

    def test_short_series_uses_available(self):
        assert weighted_load([0.0, 10.0], 7, 0.85) == pytest.approx(10.0 / 1.85)

    def test_empty(self):
        assert weighted_load([], 7, 0.85) == 0.0

    def test_ratio(self):
        assert load_ratio(3.0, 2.0) == pytest.approx(1.5)
        assert load_ratio(1.0, 0.0) == 1.0

    @pytest.mark.parametrize(
        "ratio,expected",
        [
            (0.7, LoadRatioInterpretation.UNDER_TRAINING),
            (1.0, LoadRatioInterpretation.OPTIMAL),
            (1.3, LoadRatioInterpretation.OPTIMAL),
            (1.4, LoadRatioInterpretation.CAUTION),
            (1.5, LoadRatioInterpretation.HIGH_RISK),
        ],
    )
    def test_interpretation(self, ratio, expected):
        assert interpret_load_ratio(ratio) == expected


class TestSleepDebt:
    def test_significant(self):
        debt = SleepDebt(actual_hours=6.0, baseline_hours=8.0)
        assert debt.debt_hours == 2.0
        assert debt.ratio == pytest.approx(0.75)
        assert debt.status == SleepDebtStatus.SIGNIFICANT

    def test_bands(self):
        assert SleepDebt(7.0, 8.0).status == SleepDebtStatus.MODERATE
        assert SleepDebt(7.8, 8.0).status == SleepDebtStatus.BALANCED
        assert SleepDebt(9.0, 8.0).status == SleepDebtStatus.SURPLUS

    def test_cumulative_surplus_pays_back(self):
        assert cumulative_sleep_debt([7.0, 8.0, 6.5]) == pytest.approx(1.0)


class TestDeviations:
    def test_hrv_bands(self):
        assert interpret_hrv_deviation(-2.0) == HRVDeviationInterpretation.SIGNIFICANTLY_LOW
        assert interpret_hrv_deviation(0.0) == HRVDeviationInterpretation.NORMAL
        assert interpret_hrv_deviation(1.0) == HRVDeviationInterpretation.ABOVE_BASELINE

    def test_rhr_bands(self):
        assert interpret_rhr_deviation(6.0) == RHRDeviationInterpretation.SIGNIFICANTLY_ELEVATED
        assert interpret_rhr_deviation(-3.0) == RHRDeviationInterpretation.SLIGHTLY_LOWER
        assert interpret_rhr_deviation(0.0) == RHRDeviationInterpretation.NORMAL

    def test_autonomic_balance(self):
        baseline = Baseline(as_of=DAY, window_days=7, avg_hrv=50.0, avg_resting_hr=50.0)
        balance = autonomic_balance(55.0, 45.0, baseline)
        assert balance.hrv_deviation_pct == pytest.approx(10.0)
        assert balance.rhr_deviation_pct == pytest.approx(-10.0)
        assert balance.hrv_trend == "elevated"
        assert balance.rhr_trend == "lower"

    def test_autonomic_balance_needs_baseline(self):
        assert autonomic_balance(55.0, 45.0, Baseline(as_of=DAY, window_days=7)) is None
        baseline = Baseline(as_of=DAY, window_days=7, avg_hrv=50.0, avg_resting_hr=50.0)
        assert autonomic_balance(None, 45.0, baseline) is None


class TestTimingConsistency:
    def test_no_nights(self):
        assert sleep_timing_consistency([]) is None

    def test_single_night_default(self):
        assert sleep_timing_consistency([SleepTiming(at(DAY, 0), at(DAY, 7))]) == 50.0

    def test_identical_nights(self):
        timings = [SleepTiming(at(DAY, 0), at(DAY, 7))] * 4
        assert sleep_timing_consistency(timings) == pytest.approx(100.0)

    def test_erratic_nights(self):
        timings = [
            SleepTiming(at(DAY, 0), at(DAY, 6)),
            SleepTiming(at(DAY, 4), at(DAY, 11)),
            SleepTiming(at(DAY, 0), at(DAY, 6)),
            SleepTiming(at(DAY, 4), at(DAY, 11)),
        ]
        assert sleep_timing_consistency(timings) == pytest.approx(0.0)


class TestComputeTier2:
    def test_steady_history(self):
        history = make_history(7)
        today = DAY + timedelta(days=7)
        summary = build_factual_summary(make_raw_day(today))
        t2 = compute_tier2(summary, history, build_baseline(history, today))
        assert t2.load_ratio == pytest.approx(1.0)
        assert t2.hrv_deviation == 0.0
        assert t2.rhr_deviation == pytest.approx(0.0)
        assert t2.sleep_debt.status == SleepDebtStatus.BALANCED
        assert t2.sleep_timing_consistency == pytest.approx(100.0)
        assert t2.autonomic_balance.hrv_deviation_pct == pytest.approx(0.0)
        assert t2.load_interpretation == LoadRatioInterpretation.OPTIMAL

    def test_first_day(self):
        summary = build_factual_summary(make_raw_day())
        t2 = compute_tier2(summary, [], build_baseline([], DAY))
        assert t2.acute_load == pytest.approx(1.6)
        assert t2.hrv_deviation is None
        assert t2.sleep_debt is None
        assert t2.autonomic_balance is None
        assert t2.sleep_timing_consistency is None

    def test_later_days_ignored(self):
        history = make_history(7)
        today = DAY + timedelta(days=3)
        summary = build_factual_summary(make_raw_day(today))
        baseline = build_baseline(history, today)
        with_future = compute_tier2(summary, history, baseline)
        without = compute_tier2(summary, [m for m in history if m.day < today], baseline)
        assert with_future == without
