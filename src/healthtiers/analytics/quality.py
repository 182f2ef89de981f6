"""Data-quality grading and physiological validation.

Two separate concerns live here:

  - ``DataQualityIndicator``: per-domain completeness ratios for one day,
    measured against fixed minimum-sample thresholds.
  - The validators: hard-invalid (physiologically impossible) values are
    rejected, unusual-but-possible values are kept and flagged as soft
    anomalies with a user-facing message.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Sequence

import numpy as np

if TYPE_CHECKING:
    from healthtiers.analytics.summary import DailyMetrics

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

MIN_HR_SAMPLES = 100
MIN_HRV_SAMPLES = 3
MIN_SLEEP_HOURS = 4.0

RHR_HARD_RANGE = (25.0, 150.0)
RHR_SOFT_RANGE = (30.0, 120.0)
HRV_HARD_RANGE = (5.0, 300.0)
HRV_SOFT_RANGE = (10.0, 200.0)
SLEEP_HARD_RANGE = (0.0, 24.0)
SLEEP_SOFT_MAX = 14.0

HR_SPIKE_PERCENT = 50.0
IQR_MULTIPLIER = 1.5


class DataQuality(str, Enum):
    POOR = "poor"
    FAIR = "fair"
    GOOD = "good"
    EXCELLENT = "excellent"


# ---------------------------------------------------------------------------
# Per-day completeness
# ---------------------------------------------------------------------------


@dataclass
class DataQualityIndicator:
    heart_rate_completeness: float = 0.0  # 0-1
    hrv_completeness: float = 0.0
    sleep_completeness: float = 0.0
    activity_completeness: float = 0.0

    @property
    def overall_completeness(self) -> float:
        return (
            self.heart_rate_completeness
            + self.hrv_completeness
            + self.sleep_completeness
            + self.activity_completeness
        ) / 4.0

    @property
    def overall_quality(self) -> DataQuality:
        c = self.overall_completeness
        if c < 0.5:
            return DataQuality.POOR
        if c < 0.75:
            return DataQuality.FAIR
        if c < 0.9:
            return DataQuality.GOOD
        return DataQuality.EXCELLENT

    @property
    def has_gaps(self) -> bool:
        return self.overall_completeness < 0.9

    @property
    def gap_descriptions(self) -> list[str]:
        gaps = []
        if self.heart_rate_completeness < 0.5:
            gaps.append("Heart rate data sparse")
        if self.hrv_completeness < 0.5:
            gaps.append("HRV data limited")
        if self.sleep_completeness < 0.5:
            gaps.append("Sleep data incomplete")
        if self.activity_completeness < 0.5:
            gaps.append("Activity data missing")
        return gaps


def assess_completeness(
    hr_samples: int,
    hrv_samples: int,
    sleep_hours: float | None,
    has_activity: bool,
) -> DataQualityIndicator:
    """Completeness ratios from a day's sample counts.

    Sleep is 1.0 at or above MIN_SLEEP_HOURS, 0.5 when recorded but short,
    0 when absent.
    """
    if sleep_hours is None:
        sleep = 0.0
    elif sleep_hours >= MIN_SLEEP_HOURS:
        sleep = 1.0
    else:
        sleep = 0.5

    return DataQualityIndicator(
        heart_rate_completeness=min(hr_samples / MIN_HR_SAMPLES, 1.0),
        hrv_completeness=min(hrv_samples / MIN_HRV_SAMPLES, 1.0),
        sleep_completeness=sleep,
        activity_completeness=1.0 if has_activity else 0.0,
    )


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


class AnomalyType(str, Enum):
    RHR_OUT_OF_RANGE = "rhr_out_of_range"
    HRV_OUT_OF_RANGE = "hrv_out_of_range"
    SENSOR_ANOMALY = "sensor_anomaly"
    SLEEP_DURATION_ANOMALY = "sleep_duration_anomaly"
    HEART_RATE_SPIKE = "heart_rate_spike"
    DATA_GAP = "data_gap"

    @property
    def user_message(self) -> str:
        return _ANOMALY_MESSAGES[self]


_ANOMALY_MESSAGES = {
    AnomalyType.RHR_OUT_OF_RANGE: "Resting heart rate reading appears unusual. Check watch fit.",
    AnomalyType.HRV_OUT_OF_RANGE: "HRV reading appears unusual. Ensure watch is snug during sleep.",
    AnomalyType.SENSOR_ANOMALY: "Sensor data anomaly detected. Check watch fit.",
    AnomalyType.SLEEP_DURATION_ANOMALY: "Sleep data may be incomplete. Ensure watch is worn to bed.",
    AnomalyType.HEART_RATE_SPIKE: "Unusual heart rate pattern detected.",
    AnomalyType.DATA_GAP: "Data gap detected. Some metrics may be incomplete.",
}


@dataclass(frozen=True)
class ValidationResult:
    is_valid: bool
    anomaly_type: AnomalyType | None = None
    message: str | None = None

    @property
    def is_anomaly(self) -> bool:
        return self.anomaly_type is not None


VALID = ValidationResult(is_valid=True)


def validate_rhr(rhr: float) -> ValidationResult:
    """Hard-invalid outside 25-150 bpm; soft anomaly below 30 or above 120."""
    if not RHR_HARD_RANGE[0] <= rhr <= RHR_HARD_RANGE[1]:
        return ValidationResult(False, AnomalyType.RHR_OUT_OF_RANGE, "Sensor data anomaly detected. Check watch fit.")
    if rhr < RHR_SOFT_RANGE[0] or rhr > RHR_SOFT_RANGE[1]:
        return ValidationResult(
            True,
            AnomalyType.RHR_OUT_OF_RANGE,
            f"Resting heart rate ({int(rhr)} bpm) is outside typical range.",
        )
    return VALID


def validate_hrv(hrv: float) -> ValidationResult:
    """Hard-invalid outside 5-300 ms; soft anomaly below 10 or above 200."""
    if not HRV_HARD_RANGE[0] <= hrv <= HRV_HARD_RANGE[1]:
        return ValidationResult(False, AnomalyType.HRV_OUT_OF_RANGE, "Sensor data anomaly detected. Check watch fit.")
    if hrv < HRV_SOFT_RANGE[0] or hrv > HRV_SOFT_RANGE[1]:
        return ValidationResult(
            True,
            AnomalyType.HRV_OUT_OF_RANGE,
            f"HRV ({int(hrv)} ms) is outside typical range.",
        )
    return VALID


def validate_sleep_duration(hours: float) -> ValidationResult:
    if not SLEEP_HARD_RANGE[0] <= hours <= SLEEP_HARD_RANGE[1]:
        return ValidationResult(False, AnomalyType.SLEEP_DURATION_ANOMALY, "Invalid sleep duration recorded.")
    if hours > SLEEP_SOFT_MAX:
        return ValidationResult(
            True,
            AnomalyType.SLEEP_DURATION_ANOMALY,
            f"Unusually long sleep duration ({hours:.1f} hours).",
        )
    return VALID


def detect_heart_rate_spike(
    previous: float,
    current: float,
    threshold_pct: float = HR_SPIKE_PERCENT,
) -> ValidationResult:
    """Flag a change of more than *threshold_pct* percent between readings."""
    if previous <= 0:
        return VALID
    change = abs(current - previous) / previous * 100.0
    if change > threshold_pct:
        return ValidationResult(
            True,
            AnomalyType.HEART_RATE_SPIKE,
            f"Significant heart rate change detected ({int(change)}%).",
        )
    return VALID


def check_data_completeness(samples: int, expected_minimum: int, metric_name: str) -> ValidationResult:
    if samples < expected_minimum:
        return ValidationResult(
            True,
            AnomalyType.DATA_GAP,
            f"{metric_name} data may be incomplete ({samples}/{expected_minimum} samples).",
        )
    return VALID


# ---------------------------------------------------------------------------
# Outliers
# ---------------------------------------------------------------------------


def filter_outliers_iqr(values: Sequence[float], multiplier: float = IQR_MULTIPLIER) -> list[float]:
    """Drop values outside [q1 - k*IQR, q3 + k*IQR].

    Quartiles are taken as order statistics at n//4 and 3n//4; fewer than
    four values are returned unchanged.
    """
    if len(values) < 4:
        return list(values)
    ordered = sorted(values)
    n = len(ordered)
    q1 = ordered[n // 4]
    q3 = ordered[(n * 3) // 4]
    iqr = q3 - q1
    lo, hi = q1 - multiplier * iqr, q3 + multiplier * iqr
    return [v for v in values if lo <= v <= hi]


def robust_median(values: Sequence[float]) -> float | None:
    """Median after IQR outlier removal; None for empty input."""
    if len(values) == 0:
        return None
    filtered = filter_outliers_iqr(values)
    if not filtered:
        return float(np.mean(values))
    return float(np.median(filtered))


# ---------------------------------------------------------------------------
# Day-level validation summary
# ---------------------------------------------------------------------------


def validate_daily_metrics(metrics: DailyMetrics) -> list[ValidationResult]:
    """Invalid or anomalous results for RHR, HRV and sleep of one day."""
    results = []
    if metrics.resting_hr is not None:
        results.append(validate_rhr(metrics.resting_hr))
    if metrics.summary.hrv is not None:
        results.append(validate_hrv(metrics.summary.hrv.avg_sdnn))
    if metrics.summary.sleep is not None:
        results.append(validate_sleep_duration(metrics.summary.sleep.total_sleep_hours))
    return [r for r in results if not r.is_valid or r.is_anomaly]


@dataclass
class DataQualitySummary:
    overall_quality: DataQuality
    issues: list[ValidationResult] = field(default_factory=list)
    recommendations: list[str] = field(default_factory=list)

    @classmethod
    def assess(cls, results: Sequence[ValidationResult]) -> DataQualitySummary:
        invalid = sum(1 for r in results if not r.is_valid)
        anomalies = [r for r in results if r.is_anomaly]

        if invalid > 0:
            quality = DataQuality.POOR
        elif len(anomalies) > 2:
            quality = DataQuality.FAIR
        elif anomalies:
            quality = DataQuality.GOOD
        else:
            quality = DataQuality.EXCELLENT

        # dict preserves first-seen order
        recommendations = list(dict.fromkeys(r.anomaly_type.user_message for r in anomalies))
        return cls(overall_quality=quality, issues=anomalies, recommendations=recommendations)
