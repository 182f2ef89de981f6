"""Five-metric daily health check.

HRV and resting HR are checked against the personal baseline (within
1.5 standard deviations of the mean), recovery must be above 33, strain
at most 18 on the 0-21 scale and sleep at least 6 hours.  Without a
baseline, HRV and RHR fall back to fixed population ranges.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from healthtiers.analytics.strain import to_native_scale

if TYPE_CHECKING:
    from healthtiers.analytics.baseline import Baseline
    from healthtiers.analytics.summary import DailyMetrics

TOTAL_METRICS = 5
BASELINE_STD_BAND = 1.5
MIN_RECOVERY = 33  # exclusive
MAX_NATIVE_STRAIN = 18.0
MIN_SLEEP_HOURS = 6.0

DEFAULT_HRV_RANGE = (20.0, 100.0)  # ms
DEFAULT_RHR_RANGE = (40.0, 80.0)  # bpm


@dataclass
class HealthMonitorResult:
    metrics_in_range: int
    total_metrics: int = TOTAL_METRICS
    flagged: list[str] = field(default_factory=list)

    @property
    def all_good(self) -> bool:
        return self.metrics_in_range == self.total_metrics

    def __repr__(self) -> str:
        flagged = ", ".join(self.flagged) if self.flagged else "none flagged"
        return f"HealthMonitorResult({self.metrics_in_range}/{self.total_metrics}, {flagged})"


def _band(mean: float | None, std: float | None) -> tuple[float, float] | None:
    if mean is None or std is None:
        return None
    return mean - BASELINE_STD_BAND * std, mean + BASELINE_STD_BAND * std


def _check(
    metrics: DailyMetrics,
    hrv_range: tuple[float, float] | None,
    rhr_range: tuple[float, float] | None,
) -> HealthMonitorResult:
    # (name, in range) for every metric with data
    checks = []

    hrv = metrics.hrv_value
    if hrv is not None and hrv_range is not None:
        checks.append(("HRV", hrv_range[0] <= hrv <= hrv_range[1]))

    rhr = metrics.resting_hr
    if rhr is not None and rhr_range is not None:
        checks.append(("RHR", rhr_range[0] <= rhr <= rhr_range[1]))

    if metrics.recovery is not None:
        checks.append(("Recovery", metrics.recovery.score > MIN_RECOVERY))
    if metrics.strain is not None:
        checks.append(("Strain", to_native_scale(metrics.strain.score) <= MAX_NATIVE_STRAIN))
    if metrics.sleep is not None:
        checks.append(("Sleep", metrics.sleep.total_sleep_hours >= MIN_SLEEP_HOURS))

    # unchecked metrics still count towards the total
    return HealthMonitorResult(
        metrics_in_range=sum(1 for _, ok in checks if ok),
        total_metrics=max(len(checks), TOTAL_METRICS),
        flagged=[name for name, ok in checks if not ok],
    )


def evaluate_health(metrics: DailyMetrics, baseline: Baseline) -> HealthMonitorResult:
    """Check one day against its baseline.

    HRV and RHR are only checked when the baseline has both a mean and a
    standard deviation for them.
    """
    return _check(
        metrics,
        _band(baseline.avg_hrv, baseline.hrv_std),
        _band(baseline.avg_resting_hr, baseline.resting_hr_std),
    )


def evaluate_with_defaults(metrics: DailyMetrics) -> HealthMonitorResult:
    """Check one day against fixed healthy ranges (HRV 20-100 ms, RHR 40-80 bpm)."""
    return _check(metrics, DEFAULT_HRV_RANGE, DEFAULT_RHR_RANGE)
