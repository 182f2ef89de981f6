"""Data-gap detection and aggregate data-quality assessment.

Gaps are recorded per day (missing or sparse domains) and over a date
range (days with no record at all).  They feed ``adjust_confidence`` so a
score computed from patchy data is never reported with high confidence.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, timedelta
from enum import Enum
from typing import TYPE_CHECKING, Sequence

from healthtiers.analytics.components import Confidence
from healthtiers.analytics.quality import (
    MIN_HR_SAMPLES,
    MIN_HRV_SAMPLES,
    MIN_SLEEP_HOURS,
    DataQuality,
)

if TYPE_CHECKING:
    from healthtiers.analytics.summary import DailyMetrics


# Coverage weights for the aggregate score
COVERAGE_WEIGHTS = {"hrv": 0.35, "sleep": 0.35, "heart_rate": 0.20, "activity": 0.10}


class GapType(str, Enum):
    MISSING_DAY = "missing_day"
    MISSING_HRV = "missing_hrv"
    SPARSE_HRV = "sparse_hrv"
    MISSING_SLEEP = "missing_sleep"
    SHORT_SLEEP = "short_sleep"
    MISSING_SLEEP_STAGES = "missing_sleep_stages"
    MISSING_HR = "missing_hr"
    SPARSE_HR = "sparse_hr"
    MISSING_RHR = "missing_rhr"
    MISSING_ACTIVITY = "missing_activity"


class GapSeverity(str, Enum):
    MINOR = "minor"
    MODERATE = "moderate"
    SEVERE = "severe"


@dataclass(frozen=True)
class DataGap:
    day: date
    type: GapType
    severity: GapSeverity
    description: str


def detect_day_gaps(metrics: DailyMetrics) -> list[DataGap]:
    """Missing or sparse domains within one day's metrics."""
    day = metrics.day
    gaps = []

    hrv = metrics.hrv
    if hrv is None:
        gaps.append(DataGap(day, GapType.MISSING_HRV, GapSeverity.MODERATE, "No HRV data. Wear watch during sleep."))
    elif hrv.sample_count < MIN_HRV_SAMPLES:
        gaps.append(
            DataGap(day, GapType.SPARSE_HRV, GapSeverity.MINOR, f"Limited HRV samples ({hrv.sample_count} recorded)")
        )

    sleep = metrics.sleep
    if sleep is None:
        gaps.append(DataGap(day, GapType.MISSING_SLEEP, GapSeverity.MODERATE, "No sleep data recorded"))
    else:
        if sleep.total_sleep_hours < MIN_SLEEP_HOURS:
            gaps.append(
                DataGap(day, GapType.SHORT_SLEEP, GapSeverity.MINOR, "Short sleep duration may affect accuracy")
            )
        stages = sleep.combined_stage_breakdown
        if stages.deep_min == 0 and stages.rem_min == 0 and stages.core_min == 0:
            gaps.append(
                DataGap(day, GapType.MISSING_SLEEP_STAGES, GapSeverity.MINOR, "Sleep stage breakdown unavailable")
            )

    hr = metrics.heart_rate
    if hr is None:
        gaps.append(DataGap(day, GapType.MISSING_HR, GapSeverity.MODERATE, "No heart rate data recorded"))
    else:
        if hr.sample_count < MIN_HR_SAMPLES:
            gaps.append(DataGap(day, GapType.SPARSE_HR, GapSeverity.MINOR, "Limited heart rate samples"))
        if hr.resting_bpm is None:
            gaps.append(DataGap(day, GapType.MISSING_RHR, GapSeverity.MINOR, "Resting heart rate not available"))

    if metrics.activity is None:
        gaps.append(DataGap(day, GapType.MISSING_ACTIVITY, GapSeverity.MINOR, "No activity data recorded"))

    return gaps


def detect_gaps(metrics: Sequence[DailyMetrics], start: date, end: date) -> list[DataGap]:
    """Gaps over the inclusive range [start, end], newest first.

    Every calendar day without a record becomes a MISSING_DAY gap; recorded
    days contribute their own per-day gaps.
    """
    recorded = {m.day for m in metrics}
    gaps = []

    day = start
    while day <= end:
        if day not in recorded:
            gaps.append(DataGap(day, GapType.MISSING_DAY, GapSeverity.MODERATE, "No data recorded for this day"))
        day += timedelta(days=1)

    for m in metrics:
        if start <= m.day <= end:
            gaps.extend(detect_day_gaps(m))

    return sorted(gaps, key=lambda g: g.day, reverse=True)


# ---------------------------------------------------------------------------
# Aggregate quality
# ---------------------------------------------------------------------------


@dataclass
class OverallDataQuality:
    score: float  # 0-100
    grade: DataQuality
    hrv_coverage: float = 0.0
    sleep_coverage: float = 0.0
    heart_rate_coverage: float = 0.0
    activity_coverage: float = 0.0
    recommendations: list[str] = field(default_factory=list)

    def __repr__(self) -> str:
        return (
            f"OverallDataQuality({self.score:.0f} {self.grade.value}: "
            f"hrv={self.hrv_coverage:.0%}, sleep={self.sleep_coverage:.0%}, "
            f"hr={self.heart_rate_coverage:.0%}, activity={self.activity_coverage:.0%})"
        )


def assess_overall_quality(metrics: Sequence[DailyMetrics]) -> OverallDataQuality:
    """Weighted domain coverage across a history (HRV and sleep 35% each)."""
    if len(metrics) == 0:
        return OverallDataQuality(
            score=0.0,
            grade=DataQuality.POOR,
            recommendations=["Start wearing your watch to collect health data"],
        )

    total = len(metrics)
    hrv = sum(1 for m in metrics if m.hrv is not None) / total
    sleep = sum(1 for m in metrics if m.sleep is not None) / total
    hr = sum(1 for m in metrics if m.heart_rate is not None) / total
    activity = sum(1 for m in metrics if m.activity is not None) / total

    score = (
        hrv * COVERAGE_WEIGHTS["hrv"]
        + sleep * COVERAGE_WEIGHTS["sleep"]
        + hr * COVERAGE_WEIGHTS["heart_rate"]
        + activity * COVERAGE_WEIGHTS["activity"]
    ) * 100.0

    if score >= 90:
        grade = DataQuality.EXCELLENT
    elif score >= 75:
        grade = DataQuality.GOOD
    elif score >= 50:
        grade = DataQuality.FAIR
    else:
        grade = DataQuality.POOR

    recommendations = []
    if hrv < 0.7:
        recommendations.append("Wear your watch during sleep for better HRV tracking")
    if sleep < 0.7:
        recommendations.append("Enable sleep tracking on your device")
    if hr < 0.8:
        recommendations.append("Ensure your watch fits snugly for heart rate accuracy")
    if activity < 0.8:
        recommendations.append("Wear your watch throughout the day for activity tracking")

    return OverallDataQuality(
        score=score,
        grade=grade,
        hrv_coverage=hrv,
        sleep_coverage=sleep,
        heart_rate_coverage=hr,
        activity_coverage=activity,
        recommendations=recommendations,
    )


def adjust_confidence(base: Confidence, gaps: Sequence[DataGap]) -> Confidence:
    """Downgrade *base* for severe or moderate gaps.

    Any severe gap forces LOW.  Two or more moderate gaps drop HIGH to
    MEDIUM and anything else to LOW; a single moderate gap only lowers HIGH.
    """
    severe = sum(1 for g in gaps if g.severity == GapSeverity.SEVERE)
    moderate = sum(1 for g in gaps if g.severity == GapSeverity.MODERATE)

    if severe > 0:
        return Confidence.LOW
    if moderate >= 2:
        return Confidence.MEDIUM if base == Confidence.HIGH else Confidence.LOW
    if moderate == 1 and base == Confidence.HIGH:
        return Confidence.MEDIUM
    return base


def gap_summary(gaps: Sequence[DataGap]) -> str:
    if not gaps:
        return "Data quality is excellent with no significant gaps."

    counts = {s: sum(1 for g in gaps if g.severity == s) for s in GapSeverity}
    lines = ["Data Quality Summary:"]
    if counts[GapSeverity.SEVERE]:
        lines.append(f"- {counts[GapSeverity.SEVERE]} critical gap(s) affecting accuracy")
    if counts[GapSeverity.MODERATE]:
        lines.append(f"- {counts[GapSeverity.MODERATE]} moderate gap(s)")
    if counts[GapSeverity.MINOR]:
        lines.append(f"- {counts[GapSeverity.MINOR]} minor gap(s)")

    top = list(dict.fromkeys(g.description for g in gaps))[:3]
    lines.append("")
    lines.append("Recommendations:")
    lines.extend(f"- {d}" for d in top)
    return "\n".join(lines)
