"""Plain-language insights for one day of metrics."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from healthtiers.analytics.baseline import Baseline
    from healthtiers.analytics.summary import DailyMetrics

HRV_HIGH_PCT = 10.0
HRV_LOW_PCT = -15.0
PEAK_RECOVERY = 85
LOW_RECOVERY = 33
SLEEP_DEFICIT_HOURS = 6.0
GREAT_SLEEP_HOURS = 8.0
HIGH_STRAIN = 80
RHR_SHIFT_BPM = 5.0


class InsightKind(str, Enum):
    ELEVATED_HRV = "elevated_hrv"
    LOW_HRV = "low_hrv"
    PEAK_RECOVERY = "peak_recovery"
    LOW_RECOVERY = "low_recovery"
    SLEEP_DEFICIT = "sleep_deficit"
    GREAT_SLEEP = "great_sleep"
    HIGH_STRAIN = "high_strain"
    ELEVATED_RHR = "elevated_rhr"
    LOW_RHR = "low_rhr"


# Shown first when present, in this order.
PRIMARY_ORDER = (
    InsightKind.PEAK_RECOVERY,
    InsightKind.LOW_RECOVERY,
    InsightKind.LOW_HRV,
    InsightKind.HIGH_STRAIN,
)


@dataclass(frozen=True)
class Insight:
    kind: InsightKind
    headline: str
    detail: str

    def __str__(self) -> str:
        return f"{self.headline}: {self.detail}"


def _hrv_insight(metrics: DailyMetrics, baseline: Baseline) -> Insight | None:
    hrv = metrics.hrv_value
    if hrv is None or not baseline.avg_hrv:
        return None
    dev = (hrv - baseline.avg_hrv) / baseline.avg_hrv * 100.0
    if dev > HRV_HIGH_PCT:
        return Insight(
            InsightKind.ELEVATED_HRV,
            "Elevated HRV",
            f"HRV is {int(dev)}% above baseline. Good day for intensity.",
        )
    if dev < HRV_LOW_PCT:
        return Insight(
            InsightKind.LOW_HRV,
            "Low HRV",
            f"HRV is {int(abs(dev))}% below baseline. Consider lighter activity.",
        )
    return None


def _rhr_insight(metrics: DailyMetrics, baseline: Baseline) -> Insight | None:
    rhr = metrics.resting_hr
    if rhr is None or baseline.avg_resting_hr is None:
        return None
    delta = rhr - baseline.avg_resting_hr
    if delta > RHR_SHIFT_BPM:
        return Insight(
            InsightKind.ELEVATED_RHR,
            "Elevated Resting HR",
            f"RHR is {int(delta)} bpm above baseline. May indicate stress or incomplete recovery.",
        )
    if delta < -RHR_SHIFT_BPM:
        return Insight(
            InsightKind.LOW_RHR,
            "Low Resting HR",
            f"RHR is {int(abs(delta))} bpm below baseline. Good sign of fitness adaptation.",
        )
    return None


def generate_insights(metrics: DailyMetrics, baseline: Baseline | None = None) -> list[Insight]:
    """Insights for *metrics*, HRV first and resting HR last.

    HRV and resting-HR insights need a baseline; recovery, sleep and
    strain insights only need the day's own scores.
    """
    insights: list[Insight | None] = []

    if baseline is not None:
        insights.append(_hrv_insight(metrics, baseline))

    if metrics.recovery is not None:
        if metrics.recovery.score >= PEAK_RECOVERY:
            insights.append(Insight(
                InsightKind.PEAK_RECOVERY, "Peak Recovery", "Your body is primed for peak performance."
            ))
        elif metrics.recovery.score < LOW_RECOVERY:
            insights.append(Insight(
                InsightKind.LOW_RECOVERY, "Low Recovery", "Consider rest or light activity today."
            ))

    if metrics.sleep is not None:
        hours = metrics.sleep.total_sleep_hours
        if hours < SLEEP_DEFICIT_HOURS:
            insights.append(Insight(
                InsightKind.SLEEP_DEFICIT, "Sleep Deficit", f"You got {hours:.1f}h of sleep. Aim for 7-9 hours."
            ))
        elif hours >= GREAT_SLEEP_HOURS:
            insights.append(Insight(
                InsightKind.GREAT_SLEEP, "Great Sleep", f"You got {hours:.1f}h of quality rest."
            ))

    if metrics.strain is not None and metrics.strain.score >= HIGH_STRAIN:
        insights.append(Insight(
            InsightKind.HIGH_STRAIN,
            "High Strain Day",
            "You've accumulated significant cardiovascular load today.",
        ))

    if baseline is not None:
        insights.append(_rhr_insight(metrics, baseline))

    return [i for i in insights if i is not None]


def primary_insight(metrics: DailyMetrics, baseline: Baseline | None = None) -> Insight | None:
    """The single most important insight, or None when there are none."""
    insights = generate_insights(metrics, baseline)
    for kind in PRIMARY_ORDER:
        for insight in insights:
            if insight.kind == kind:
                return insight
    return insights[0] if insights else None
