"""Sleep-schedule consistency.

Bedtime and wake-time spread (population std-dev, in seconds) over a
window of nights, combined into a 0-1 score: zero spread scores 1.0 and
four hours of combined spread scores 0.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Sequence

import numpy as np

from healthtiers.analytics.components import TrendDirection
from healthtiers.analytics.tier1 import SleepSummary, SleepTiming, signed_bedtime_minutes

MIN_NIGHTS = 3
MAX_TOTAL_VARIANCE_HOURS = 4.0
TREND_CHANGE = 0.1


@dataclass
class ConsistencyMetrics:
    bedtime_variance_sec: float  # std-dev
    wake_time_variance_sec: float
    score: float  # 0-1
    insufficient_data: bool = False

    @property
    def bedtime_variance_hours(self) -> float:
        return self.bedtime_variance_sec / 3600.0

    @property
    def wake_time_variance_hours(self) -> float:
        return self.wake_time_variance_sec / 3600.0

    @property
    def total_variance_hours(self) -> float:
        return self.bedtime_variance_hours + self.wake_time_variance_hours

    @property
    def category(self) -> ConsistencyCategory:
        return consistency_category(self.score)


INSUFFICIENT = ConsistencyMetrics(0.0, 0.0, 1.0, insufficient_data=True)


def _bedtime_seconds(t: datetime) -> float:
    return float(signed_bedtime_minutes(t) * 60)


def _wake_seconds(t: datetime) -> float:
    return float(t.hour * 3600 + t.minute * 60)


def calculate_consistency(timings: Sequence[SleepTiming]) -> ConsistencyMetrics:
    """Consistency over the given nights; fewer than 3 is flagged insufficient."""
    if len(timings) < MIN_NIGHTS:
        return INSUFFICIENT

    bed = np.asarray([_bedtime_seconds(t.bedtime) for t in timings], dtype=np.float64)
    wake = np.asarray([_wake_seconds(t.wake_time) for t in timings], dtype=np.float64)

    bed_std = float(np.std(bed))
    wake_std = float(np.std(wake))
    total_hours = (bed_std + wake_std) / 3600.0
    score = max(0.0, min(1.0, 1.0 - total_hours / MAX_TOTAL_VARIANCE_HOURS))

    return ConsistencyMetrics(
        bedtime_variance_sec=bed_std,
        wake_time_variance_sec=wake_std,
        score=score,
    )


def consistency_from_summaries(summaries: Sequence[SleepSummary]) -> ConsistencyMetrics:
    timings = [s.timing for s in summaries if s.timing is not None]
    return calculate_consistency(timings)


class ConsistencyCategory(str, Enum):
    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"

    @property
    def recommendation(self) -> str:
        return {
            ConsistencyCategory.EXCELLENT: "Maintain your current sleep schedule.",
            ConsistencyCategory.GOOD: "Try to be more consistent on weekends.",
            ConsistencyCategory.FAIR: "Set a fixed bedtime and stick to it.",
            ConsistencyCategory.POOR: "Prioritize a regular sleep schedule for better recovery.",
        }[self]


def consistency_category(score: float) -> ConsistencyCategory:
    if score >= 0.8:
        return ConsistencyCategory.EXCELLENT
    if score >= 0.6:
        return ConsistencyCategory.GOOD
    if score >= 0.4:
        return ConsistencyCategory.FAIR
    return ConsistencyCategory.POOR


@dataclass
class ConsistencyTrend:
    direction: TrendDirection
    change: float
    insight: str


def consistency_trend(weekly_scores: Sequence[float]) -> ConsistencyTrend:
    """Compare the last two weekly consistency scores."""
    if len(weekly_scores) < 2:
        return ConsistencyTrend(TrendDirection.STABLE, 0.0, "Not enough data for trend analysis")

    change = weekly_scores[-1] - weekly_scores[-2]
    if change > TREND_CHANGE:
        return ConsistencyTrend(
            TrendDirection.IMPROVING, change, "Your sleep schedule is becoming more consistent. Keep it up!"
        )
    if change < -TREND_CHANGE:
        return ConsistencyTrend(
            TrendDirection.DECLINING,
            change,
            "Your sleep schedule has been less consistent. Try setting a fixed bedtime.",
        )
    return ConsistencyTrend(TrendDirection.STABLE, change, "Your sleep consistency has been stable.")
