"""Tier 2: deterministic metrics derived from Tier-1 data and baselines.

Closed-form arithmetic only:

  - Daily activity load and its acute (7-point, decay 0.85) and chronic
    (28-point, decay 0.95) exponentially weighted averages
  - Sleep debt against the 7-day baseline
  - HRV deviation as a z-score, RHR deviation as a raw bpm delta
  - Percentage deviations of HRV / RHR (autonomic balance)
  - Sleep-timing consistency over the trailing week
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from enum import Enum
from typing import TYPE_CHECKING, Sequence

from healthtiers.analytics import stats
from healthtiers.analytics.baseline import Baseline
from healthtiers.analytics.tier1 import DailyFactualSummary, SleepTiming

if TYPE_CHECKING:
    from healthtiers.analytics.summary import DailyMetrics


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

ACUTE_WINDOW = 7
CHRONIC_WINDOW = 28
ACUTE_DECAY = 0.85
CHRONIC_DECAY = 0.95

STEPS_PER_LOAD_UNIT = 10000.0
STRAIN_PER_LOAD_UNIT = 100.0
ENERGY_PER_LOAD_UNIT = 500.0

LOAD_RATIO_LOW = 0.8
LOAD_RATIO_OPTIMAL_MAX = 1.3
LOAD_RATIO_HIGH_RISK = 1.5

# Std-dev (minutes) mapped onto an inverted 0-100 timing score
TIMING_STD_RANGE = (30.0, 120.0)
TIMING_WINDOW_DAYS = 7
TIMING_DEFAULT_SCORE = 50.0

DEFAULT_SLEEP_TARGET_HOURS = 7.5


# ---------------------------------------------------------------------------
# Load
# ---------------------------------------------------------------------------


def daily_load(summary: DailyFactualSummary) -> float:
    """steps/10000 + workout strain contribution/100 + active energy/500.

    Missing domains add nothing to the day's load.
    """
    load = 0.0
    if summary.activity is not None:
        if summary.activity.steps is not None:
            load += summary.activity.steps / STEPS_PER_LOAD_UNIT
        if summary.activity.active_energy_kcal is not None:
            load += summary.activity.active_energy_kcal / ENERGY_PER_LOAD_UNIT
    if summary.workouts is not None:
        load += summary.workouts.strain_contribution / STRAIN_PER_LOAD_UNIT
    return load


def weighted_load(loads: Sequence[float], window: int, decay: float) -> float:
    """Decay-weighted mean of the last *window* loads, newest weighted highest.

    Shorter series use what is available: the i-th value of the suffix gets
    weight ``decay ** (window - 1 - i)``.  Empty input gives 0.
    """
    recent = list(loads)[-window:]
    if not recent:
        return 0.0
    weights = [decay ** (window - 1 - i) for i in range(len(recent))]
    return sum(v * w for v, w in zip(recent, weights)) / sum(weights)


def acute_load(loads: Sequence[float]) -> float:
    return weighted_load(loads, ACUTE_WINDOW, ACUTE_DECAY)


def chronic_load(loads: Sequence[float]) -> float:
    return weighted_load(loads, CHRONIC_WINDOW, CHRONIC_DECAY)


def load_ratio(acute: float, chronic: float) -> float:
    if chronic <= 0:
        return 1.0
    return acute / chronic


class LoadRatioInterpretation(str, Enum):
    UNDER_TRAINING = "under_training"
    OPTIMAL = "optimal"
    CAUTION = "caution"
    HIGH_RISK = "high_risk"

    @property
    def description(self) -> str:
        return {
            LoadRatioInterpretation.UNDER_TRAINING: (
                "Training load is below your recent baseline. Consider increasing intensity."
            ),
            LoadRatioInterpretation.OPTIMAL: "Training load is well balanced with your recent baseline.",
            LoadRatioInterpretation.CAUTION: "Training load is elevated. Monitor recovery closely.",
            LoadRatioInterpretation.HIGH_RISK: "Training load spike detected. High injury/illness risk.",
        }[self]


def interpret_load_ratio(ratio: float) -> LoadRatioInterpretation:
    if ratio < LOAD_RATIO_LOW:
        return LoadRatioInterpretation.UNDER_TRAINING
    if ratio <= LOAD_RATIO_OPTIMAL_MAX:
        return LoadRatioInterpretation.OPTIMAL
    if ratio < LOAD_RATIO_HIGH_RISK:
        return LoadRatioInterpretation.CAUTION
    return LoadRatioInterpretation.HIGH_RISK


# ---------------------------------------------------------------------------
# Sleep debt
# ---------------------------------------------------------------------------


class SleepDebtStatus(str, Enum):
    SIGNIFICANT = "significant"
    MODERATE = "moderate"
    BALANCED = "balanced"
    SURPLUS = "surplus"


@dataclass
class SleepDebt:
    actual_hours: float
    baseline_hours: float

    @property
    def debt_hours(self) -> float:
        return self.baseline_hours - self.actual_hours

    @property
    def ratio(self) -> float:
        if self.baseline_hours <= 0:
            return 1.0
        return self.actual_hours / self.baseline_hours

    @property
    def status(self) -> SleepDebtStatus:
        r = self.ratio
        if r < 0.80:
            return SleepDebtStatus.SIGNIFICANT
        if r < 0.95:
            return SleepDebtStatus.MODERATE
        if r < 1.05:
            return SleepDebtStatus.BALANCED
        return SleepDebtStatus.SURPLUS


def sleep_debt(actual_hours: float, baseline: Baseline) -> SleepDebt | None:
    if baseline.avg_sleep_hours is None:
        return None
    return SleepDebt(actual_hours=actual_hours, baseline_hours=baseline.avg_sleep_hours)


def cumulative_sleep_debt(daily_hours: Sequence[float], target_hours: float = DEFAULT_SLEEP_TARGET_HOURS) -> float:
    """Sum of (target - actual) over the nights; surplus nights pay debt back."""
    return sum(target_hours - h for h in daily_hours)


# ---------------------------------------------------------------------------
# HRV / RHR deviation
# ---------------------------------------------------------------------------


class HRVDeviationInterpretation(str, Enum):
    SIGNIFICANTLY_LOW = "significantly_low"
    BELOW_BASELINE = "below_baseline"
    NORMAL = "normal"
    ABOVE_BASELINE = "above_baseline"
    SIGNIFICANTLY_HIGH = "significantly_high"


def interpret_hrv_deviation(z: float) -> HRVDeviationInterpretation:
    if z < -1.5:
        return HRVDeviationInterpretation.SIGNIFICANTLY_LOW
    if z < -0.5:
        return HRVDeviationInterpretation.BELOW_BASELINE
    if z <= 0.5:
        return HRVDeviationInterpretation.NORMAL
    if z < 1.5:
        return HRVDeviationInterpretation.ABOVE_BASELINE
    return HRVDeviationInterpretation.SIGNIFICANTLY_HIGH


class RHRDeviationInterpretation(str, Enum):
    SIGNIFICANTLY_LOWER = "significantly_lower"
    SLIGHTLY_LOWER = "slightly_lower"
    NORMAL = "normal"
    SLIGHTLY_ELEVATED = "slightly_elevated"
    SIGNIFICANTLY_ELEVATED = "significantly_elevated"


def interpret_rhr_deviation(delta_bpm: float) -> RHRDeviationInterpretation:
    if delta_bpm < -5:
        return RHRDeviationInterpretation.SIGNIFICANTLY_LOWER
    if delta_bpm < -2:
        return RHRDeviationInterpretation.SLIGHTLY_LOWER
    if delta_bpm <= 2:
        return RHRDeviationInterpretation.NORMAL
    if delta_bpm < 5:
        return RHRDeviationInterpretation.SLIGHTLY_ELEVATED
    return RHRDeviationInterpretation.SIGNIFICANTLY_ELEVATED


@dataclass
class AutonomicBalance:
    """HRV and RHR as percentage deviations from the 7-day baseline."""

    hrv: float
    hrv_deviation_pct: float
    rhr: float
    rhr_deviation_pct: float

    @property
    def hrv_trend(self) -> str:
        if self.hrv_deviation_pct >= 10:
            return "elevated"
        if self.hrv_deviation_pct <= -10:
            return "suppressed"
        return "normal"

    @property
    def rhr_trend(self) -> str:
        if self.rhr_deviation_pct >= 10:
            return "elevated"
        if self.rhr_deviation_pct <= -10:
            return "lower"
        return "normal"


def autonomic_balance(hrv: float | None, rhr: float | None, baseline: Baseline) -> AutonomicBalance | None:
    """None unless both values and both baseline averages are present."""
    if hrv is None or rhr is None:
        return None
    if not baseline.avg_hrv or not baseline.avg_resting_hr:
        return None
    return AutonomicBalance(
        hrv=hrv,
        hrv_deviation_pct=(hrv - baseline.avg_hrv) / baseline.avg_hrv * 100.0,
        rhr=rhr,
        rhr_deviation_pct=(rhr - baseline.avg_resting_hr) / baseline.avg_resting_hr * 100.0,
    )


# ---------------------------------------------------------------------------
# Sleep timing consistency
# ---------------------------------------------------------------------------


def sleep_timing_consistency(timings: Sequence[SleepTiming]) -> float | None:
    """0-100 score from bedtime and wake-time spread.

    None without timings; a single night (no std-dev) scores 50.
    """
    if len(timings) == 0:
        return None
    bed_std = stats.standard_deviation([float(t.bedtime_minutes) for t in timings])
    wake_std = stats.standard_deviation([float(t.wake_minutes) for t in timings])
    if bed_std is None or wake_std is None:
        return TIMING_DEFAULT_SCORE

    bed_score = 100.0 - stats.normalize_to_scale(bed_std, TIMING_STD_RANGE)
    wake_score = 100.0 - stats.normalize_to_scale(wake_std, TIMING_STD_RANGE)
    return (bed_score + wake_score) / 2.0


# ---------------------------------------------------------------------------
# All Tier-2 metrics for a day
# ---------------------------------------------------------------------------


@dataclass
class Tier2Metrics:
    acute_load: float = 0.0
    chronic_load: float = 0.0
    load_ratio: float = 1.0
    sleep_debt: SleepDebt | None = None
    hrv_deviation: float | None = None  # z-score
    rhr_deviation: float | None = None  # bpm
    autonomic_balance: AutonomicBalance | None = None
    sleep_timing_consistency: float | None = None

    @property
    def load_interpretation(self) -> LoadRatioInterpretation:
        return interpret_load_ratio(self.load_ratio)


def prior_history(history: Sequence[DailyMetrics], day: date) -> list[DailyMetrics]:
    """History strictly before *day*, in date order."""
    return sorted((m for m in history if m.day < day), key=lambda m: m.day)


def compute_tier2(
    summary: DailyFactualSummary,
    history: Sequence[DailyMetrics],
    baseline_7: Baseline,
) -> Tier2Metrics:
    """Tier-2 metrics for *summary*'s day from strictly earlier history."""
    prior = prior_history(history, summary.day)
    loads = [daily_load(m.summary) for m in prior] + [daily_load(summary)]
    acute = acute_load(loads)
    chronic = chronic_load(loads)

    debt = None
    if summary.sleep is not None:
        debt = sleep_debt(summary.sleep.total_sleep_hours, baseline_7)

    hrv = summary.hrv.value if summary.hrv is not None else None
    rhr = summary.heart_rate.resting_bpm if summary.heart_rate is not None else None

    week_start = summary.day - timedelta(days=TIMING_WINDOW_DAYS)
    timings = [
        m.sleep.timing
        for m in prior
        if m.day >= week_start and m.sleep is not None and m.sleep.timing is not None
    ]

    return Tier2Metrics(
        acute_load=acute,
        chronic_load=chronic,
        load_ratio=load_ratio(acute, chronic),
        sleep_debt=debt,
        hrv_deviation=baseline_7.hrv_z_score(hrv) if hrv is not None else None,
        rhr_deviation=baseline_7.rhr_deviation(rhr) if rhr is not None else None,
        autonomic_balance=autonomic_balance(hrv, rhr, baseline_7),
        sleep_timing_consistency=sleep_timing_consistency(timings),
    )
