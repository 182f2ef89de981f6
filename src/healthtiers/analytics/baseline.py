"""Rolling personal baselines and multi-day trend detection.

A Baseline is computed "as of" a date from the history window
``[as_of - window_days, as_of)``: the evaluation day itself never
contributes to its own reference.  Every mean is None until the window
holds at least one sample for that domain.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, timedelta
from enum import Enum
from typing import TYPE_CHECKING, Sequence

from healthtiers.analytics import stats
from healthtiers.analytics.codec import JsonMixin
from healthtiers.analytics.components import Confidence, TrendDirection
from healthtiers.analytics.quality import validate_hrv, validate_rhr

if TYPE_CHECKING:
    from healthtiers.analytics.summary import DailyMetrics

logger = logging.getLogger(__name__)


SHORT_WINDOW = 7
LONG_WINDOW = 28
VALID_WINDOWS = (SHORT_WINDOW, LONG_WINDOW)

# Minimum sample-days per domain for a "sufficient" baseline
MIN_DAYS = {SHORT_WINDOW: 4, LONG_WINDOW: 14}

# Slope must exceed this fraction of the series mean to count as a trend
TREND_THRESHOLD_FRACTION = 0.02
MIN_TREND_VALUES = 3


@dataclass
class Baseline(JsonMixin):
    as_of: date
    window_days: int

    avg_resting_hr: float | None = None
    resting_hr_std: float | None = None
    avg_hrv: float | None = None
    hrv_std: float | None = None

    avg_sleep_hours: float | None = None
    sleep_hours_std: float | None = None
    avg_bedtime_min: float | None = None  # minutes from midnight, evening negative
    bedtime_std: float | None = None
    avg_wake_time_min: float | None = None
    wake_time_std: float | None = None
    avg_sleep_efficiency: float | None = None

    avg_active_energy: float | None = None
    active_energy_std: float | None = None
    avg_steps: float | None = None
    steps_std: float | None = None

    avg_workout_minutes: float | None = None
    workout_minutes_std: float | None = None
    avg_workouts_per_week: float | None = None

    avg_daily_load: float | None = None
    load_std: float | None = None

    heart_rate_days: int = 0
    hrv_days: int = 0
    sleep_days: int = 0
    activity_days: int = 0

    def __post_init__(self):
        if self.window_days not in VALID_WINDOWS:
            raise ValueError(f"window_days must be one of {VALID_WINDOWS}, got {self.window_days}")

    # -- deviations ---------------------------------------------------------

    def hrv_z_score(self, value: float) -> float | None:
        """z-score against the window; 0 when the window has no spread."""
        if self.avg_hrv is None or self.hrv_std is None:
            return None
        return stats.z_score(value, self.avg_hrv, self.hrv_std)

    def rhr_deviation(self, value: float) -> float | None:
        if self.avg_resting_hr is None:
            return None
        return value - self.avg_resting_hr

    def sleep_duration_ratio(self, hours: float) -> float | None:
        if self.avg_sleep_hours is None or self.avg_sleep_hours <= 0:
            return None
        return hours / self.avg_sleep_hours

    def active_energy_ratio(self, energy: float) -> float | None:
        if self.avg_active_energy is None or self.avg_active_energy <= 0:
            return None
        return energy / self.avg_active_energy

    def bedtime_deviation(self, minutes: float) -> float | None:
        if self.avg_bedtime_min is None:
            return None
        return minutes - self.avg_bedtime_min

    def wake_time_deviation(self, minutes: float) -> float | None:
        if self.avg_wake_time_min is None:
            return None
        return minutes - self.avg_wake_time_min

    @property
    def confidence(self) -> Confidence:
        """Available sample-days over the four domains vs. the maximum possible."""
        total = self.heart_rate_days + self.hrv_days + self.sleep_days + self.activity_days
        ratio = total / (self.window_days * 4)
        if ratio < 0.5:
            return Confidence.LOW
        if ratio < 0.75:
            return Confidence.MEDIUM
        return Confidence.HIGH

    def __repr__(self) -> str:
        def fmt(v: float | None) -> str:
            return "-" if v is None else f"{v:.1f}"

        return (
            f"Baseline({self.window_days}d as of {self.as_of}: "
            f"rhr={fmt(self.avg_resting_hr)}, hrv={fmt(self.avg_hrv)}, "
            f"sleep={fmt(self.avg_sleep_hours)}h, {self.confidence.value})"
        )


# ---------------------------------------------------------------------------
# Building
# ---------------------------------------------------------------------------


def window_metrics(history: Sequence[DailyMetrics], as_of: date, window_days: int) -> list[DailyMetrics]:
    """History entries with ``as_of - window_days <= day < as_of``."""
    start = as_of - timedelta(days=window_days)
    return [m for m in history if start <= m.day < as_of]


def build_baseline(history: Sequence[DailyMetrics], as_of: date, window_days: int = SHORT_WINDOW) -> Baseline:
    """Windowed mean / std-dev of every tracked metric.

    Raises:
        ValueError: if *window_days* is not 7 or 28.
    """
    if window_days not in VALID_WINDOWS:
        raise ValueError(f"window_days must be one of {VALID_WINDOWS}, got {window_days}")

    window = window_metrics(history, as_of, window_days)

    rhr = [m.resting_hr for m in window if m.resting_hr is not None and validate_rhr(m.resting_hr).is_valid]
    hrv = [m.hrv_value for m in window if m.hrv_value is not None and validate_hrv(m.hrv_value).is_valid]

    sleeps = [m.sleep for m in window if m.sleep is not None]
    sleep_hours = [s.total_sleep_hours for s in sleeps]
    timings = [s.timing for s in sleeps if s.timing is not None]
    bedtimes = [float(t.bedtime_minutes) for t in timings]
    wakes = [float(t.wake_minutes) for t in timings]
    efficiencies = [s.average_efficiency for s in sleeps]

    activities = [m.activity for m in window if m.activity is not None]
    energies = [a.active_energy_kcal for a in activities if a.active_energy_kcal is not None]
    steps = [float(a.steps) for a in activities if a.steps is not None]

    workout_days = [m.workouts for m in window if m.workouts is not None]
    workout_minutes = [float(w.total_duration_min) for w in workout_days]
    workouts_per_week = None
    if window:
        workouts_per_week = sum(w.total_workouts for w in workout_days) / window_days * 7.0

    loads = [m.acute_load for m in window if m.acute_load is not None]

    return Baseline(
        as_of=as_of,
        window_days=window_days,
        avg_resting_hr=stats.mean(rhr),
        resting_hr_std=stats.standard_deviation(rhr),
        avg_hrv=stats.mean(hrv),
        hrv_std=stats.standard_deviation(hrv),
        avg_sleep_hours=stats.mean(sleep_hours),
        sleep_hours_std=stats.standard_deviation(sleep_hours),
        avg_bedtime_min=stats.mean(bedtimes),
        bedtime_std=stats.standard_deviation(bedtimes),
        avg_wake_time_min=stats.mean(wakes),
        wake_time_std=stats.standard_deviation(wakes),
        avg_sleep_efficiency=stats.mean(efficiencies),
        avg_active_energy=stats.mean(energies),
        active_energy_std=stats.standard_deviation(energies),
        avg_steps=stats.mean(steps),
        steps_std=stats.standard_deviation(steps),
        avg_workout_minutes=stats.mean(workout_minutes),
        workout_minutes_std=stats.standard_deviation(workout_minutes),
        avg_workouts_per_week=workouts_per_week,
        avg_daily_load=stats.mean(loads),
        load_std=stats.standard_deviation(loads),
        heart_rate_days=sum(1 for m in window if m.heart_rate is not None),
        hrv_days=sum(1 for m in window if m.hrv is not None),
        sleep_days=len(sleeps),
        activity_days=len(activities),
    )


def calculate_baselines(history: Sequence[DailyMetrics], as_of: date) -> tuple[Baseline, Baseline]:
    """The (7-day, 28-day) baseline pair."""
    return build_baseline(history, as_of, SHORT_WINDOW), build_baseline(history, as_of, LONG_WINDOW)


class BaselineQuality(str, Enum):
    INSUFFICIENT = "insufficient"
    LIMITED = "limited"
    SUFFICIENT = "sufficient"

    @property
    def description(self) -> str:
        return {
            BaselineQuality.INSUFFICIENT: "Not enough data for reliable baseline. Continue wearing your device.",
            BaselineQuality.LIMITED: "Limited data available. Baseline accuracy will improve over time.",
            BaselineQuality.SUFFICIENT: "Baseline is reliable based on available data.",
        }[self]


def assess_baseline_quality(baseline: Baseline) -> BaselineQuality:
    """Grade by the weakest domain's sample-day count."""
    min_days = MIN_DAYS[baseline.window_days]
    weakest = min(baseline.heart_rate_days, baseline.hrv_days, baseline.sleep_days, baseline.activity_days)
    if weakest >= min_days:
        return BaselineQuality.SUFFICIENT
    if weakest >= min_days // 2:
        return BaselineQuality.LIMITED
    return BaselineQuality.INSUFFICIENT


# ---------------------------------------------------------------------------
# Trends
# ---------------------------------------------------------------------------


@dataclass
class Trend:
    direction: TrendDirection
    slope: float
    confidence: float = 1.0  # share of the window that had data


def detect_trend(values: Sequence[float], window_days: int = SHORT_WINDOW) -> Trend | None:
    """Regression trend over the last *window_days* values.

    The slope threshold is 2% of the magnitude of the recent mean.  Needs
    at least 3 values.
    """
    if len(values) < MIN_TREND_VALUES:
        return None
    recent = list(values)[-window_days:]
    fit = stats.linear_regression(recent)
    avg = stats.mean(recent)
    if fit is None or avg is None:
        return None
    threshold = abs(avg) * TREND_THRESHOLD_FRACTION
    return Trend(direction=stats.trend_direction(fit.slope, threshold), slope=fit.slope)


def _metric_trend(values: list[float], window_days: int, lower_is_better: bool = False) -> Trend | None:
    if len(values) < MIN_TREND_VALUES:
        return None
    trend = detect_trend(values, window_days)
    if trend is None:
        return None
    direction = trend.direction.inverted() if lower_is_better else trend.direction
    return Trend(direction=direction, slope=trend.slope, confidence=len(values) / window_days)


def hrv_trend(history: Sequence[DailyMetrics], window_days: int = SHORT_WINDOW) -> Trend | None:
    values = [m.hrv_value for m in history[-window_days:] if m.hrv_value is not None]
    return _metric_trend(values, window_days)


def rhr_trend(history: Sequence[DailyMetrics], window_days: int = SHORT_WINDOW) -> Trend | None:
    """Resting-HR trend; a falling RHR is reported as improving."""
    values = [m.resting_hr for m in history[-window_days:] if m.resting_hr is not None]
    return _metric_trend(values, window_days, lower_is_better=True)


def sleep_trend(history: Sequence[DailyMetrics], window_days: int = SHORT_WINDOW) -> Trend | None:
    values = [m.sleep.total_sleep_hours for m in history[-window_days:] if m.sleep is not None]
    return _metric_trend(values, window_days)


# ---------------------------------------------------------------------------
# Comparison
# ---------------------------------------------------------------------------


class ComparisonStatus(str, Enum):
    SIGNIFICANTLY_BETTER = "significantly_better"
    SLIGHTLY_BETTER = "slightly_better"
    SIMILAR = "similar"
    SLIGHTLY_WORSE = "slightly_worse"
    SIGNIFICANTLY_WORSE = "significantly_worse"

    @property
    def is_positive(self) -> bool:
        return self in (ComparisonStatus.SIGNIFICANTLY_BETTER, ComparisonStatus.SLIGHTLY_BETTER)

    @property
    def is_negative(self) -> bool:
        return self in (ComparisonStatus.SIGNIFICANTLY_WORSE, ComparisonStatus.SLIGHTLY_WORSE)


@dataclass
class BaselineComparison:
    current: float
    baseline: float
    difference: float
    percent_change: float
    status: ComparisonStatus


def _band(value: float, inner: float, outer: float) -> ComparisonStatus:
    if value < -outer:
        return ComparisonStatus.SIGNIFICANTLY_WORSE
    if value < -inner:
        return ComparisonStatus.SLIGHTLY_WORSE
    if value <= inner:
        return ComparisonStatus.SIMILAR
    if value < outer:
        return ComparisonStatus.SLIGHTLY_BETTER
    return ComparisonStatus.SIGNIFICANTLY_BETTER


def compare_to_baseline(
    current: float,
    baseline_avg: float | None,
    baseline_std: float | None = None,
    higher_is_better: bool = True,
) -> BaselineComparison | None:
    """Interpret *current* against a baseline.

    Uses z-score bands (0.5 / 1.5) when a positive std-dev is known,
    otherwise percent-change bands (5% / 15%).
    """
    if baseline_avg is None:
        return None

    diff = current - baseline_avg
    pct = diff / baseline_avg * 100.0 if baseline_avg != 0 else 0.0
    sign = 1.0 if higher_is_better else -1.0

    if baseline_std is not None and baseline_std > 0:
        status = _band(sign * diff / baseline_std, 0.5, 1.5)
    else:
        status = _band(sign * pct, 5.0, 15.0)

    return BaselineComparison(
        current=current,
        baseline=baseline_avg,
        difference=diff,
        percent_change=pct,
        status=status,
    )
