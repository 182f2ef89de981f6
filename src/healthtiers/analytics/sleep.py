"""Sleep performance scoring.

Sleep performance = 0.4 * hours/need + 0.3 * efficiency + 0.3 * consistency,
scaled to 0-100.  The hours ratio is capped at 1.5 so oversleeping cannot
buy more than a limited bonus; consistency is ``1 - total_variance_h / 4``.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Sequence

from healthtiers.analytics import stats
from healthtiers.analytics.consistency import ConsistencyMetrics

W_HOURS = 0.4
W_EFFICIENCY = 0.3
W_CONSISTENCY = 0.3

MAX_HOURS_RATIO = 1.5
MAX_TOTAL_VARIANCE_HOURS = 4.0

DEFAULT_HOURS_NEEDED = 7.5
HIGH_STRAIN_EXTRA_HOURS = 0.25
MAX_EXTRA_HOURS = 1.0

RECOVERABLE_DEBT_HOURS = 2.0


class SleepPerformanceCategory(str, Enum):
    OPTIMAL = "optimal"
    ADEQUATE = "adequate"
    POOR = "poor"


@dataclass
class SleepPerformance:
    score: int  # 0-100
    hours_vs_need: float  # ratio, uncapped
    efficiency: float  # 0-1
    consistency: float  # 0-1
    hours_needed: float = DEFAULT_HOURS_NEEDED

    @property
    def category(self) -> SleepPerformanceCategory:
        if self.score >= 80:
            return SleepPerformanceCategory.OPTIMAL
        if self.score >= 60:
            return SleepPerformanceCategory.ADEQUATE
        return SleepPerformanceCategory.POOR

    @property
    def insight(self) -> str:
        if self.score >= 90:
            return "Excellent sleep. Your body is well-rested and ready for high performance."
        if self.score >= 80:
            return "Great sleep quality. You should feel refreshed and recovered."
        if self.score >= 70:
            return "Adequate sleep. Consider improving consistency or duration."
        if self.score >= 60:
            return "Sleep could be better. Focus on getting to bed earlier."
        return "Poor sleep quality detected. Prioritize rest today."

    @property
    def recommended_action(self) -> str:
        if self.efficiency < 0.85:
            return "Improve sleep environment to increase efficiency"
        if self.consistency < 0.7:
            return "Maintain consistent bed and wake times"
        if self.hours_vs_need < 0.9:
            return "Aim for 30 more minutes of sleep"
        return "Maintain current sleep habits"

    def __repr__(self) -> str:
        return (
            f"SleepPerformance(score={self.score} {self.category.value}, "
            f"hours={self.hours_vs_need:.0%} of {self.hours_needed:.2g}h, "
            f"eff={self.efficiency:.0%}, consistency={self.consistency:.0%})"
        )


def score_sleep_performance(
    hours_slept: float,
    efficiency: float,
    bedtime_std_sec: float = 0.0,
    wake_std_sec: float = 0.0,
    hours_needed: float = DEFAULT_HOURS_NEEDED,
) -> SleepPerformance:
    """Compute sleep performance.

    Args:
        hours_slept: Asleep hours for the night.
        efficiency: Sleep efficiency as a 0-1 fraction (clamped).
        bedtime_std_sec: Bedtime std-dev over the past week, seconds.
        wake_std_sec: Wake-time std-dev over the past week, seconds.
        hours_needed: Personal sleep need in hours.

    Returns:
        SleepPerformance with a 0-100 score.
    """
    need = max(hours_needed, 1.0)
    hours_ratio = min(hours_slept / need, MAX_HOURS_RATIO)
    eff = stats.clamp(efficiency, 0.0, 1.0)
    total_var_h = (bedtime_std_sec + wake_std_sec) / 3600.0
    consistency = max(0.0, 1.0 - total_var_h / MAX_TOTAL_VARIANCE_HOURS)

    performance = (hours_ratio * W_HOURS + eff * W_EFFICIENCY + consistency * W_CONSISTENCY) * 100.0

    return SleepPerformance(
        score=int(stats.clamp(stats.round_half_away(performance), 0, 100)),
        hours_vs_need=hours_slept / need,
        efficiency=eff,
        consistency=consistency,
        hours_needed=hours_needed,
    )


def score_from_consistency(
    hours_slept: float,
    efficiency: float,
    consistency: ConsistencyMetrics,
    hours_needed: float = DEFAULT_HOURS_NEEDED,
) -> SleepPerformance:
    return score_sleep_performance(
        hours_slept,
        efficiency,
        consistency.bedtime_variance_sec,
        consistency.wake_time_variance_sec,
        hours_needed,
    )


def estimate_hours_needed(age: int, high_strain_days: int = 0) -> float:
    """Age-bracket sleep need plus 0.25 h per recent high-strain day (max +1 h)."""
    if age < 18:
        base = 9.0
    elif age < 26:
        base = 8.0
    elif age < 65:
        base = 7.5
    else:
        base = 7.0
    return base + min(high_strain_days * HIGH_STRAIN_EXTRA_HOURS, MAX_EXTRA_HOURS)


def cumulative_sleep_debt(nights: Sequence[tuple[float, float]]) -> float:
    """Sum of (needed - slept) over (hours_slept, hours_needed) pairs."""
    return sum(needed - slept for slept, needed in nights)


def is_debt_recoverable(debt_hours: float) -> bool:
    """Up to two hours can be made up in one night."""
    return debt_hours <= RECOVERABLE_DEBT_HOURS
