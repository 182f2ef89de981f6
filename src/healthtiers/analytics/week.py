"""Calendar-week rollups and week-over-week comparison.

Weeks are calendar weeks starting on Monday, not rolling 7-day windows.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Sequence

from healthtiers.analytics import stats
from healthtiers.analytics.consistency import ConsistencyMetrics, consistency_from_summaries
from healthtiers.analytics.summary import DailyMetrics

RECOVERY_CHANGE = 5.0
STRAIN_CHANGE = 2.0
SLEEP_HOURS_CHANGE = 3.5
CONSISTENCY_CHANGE = 0.1


@dataclass
class WeekSummary:
    start: date
    days: list[DailyMetrics] = field(default_factory=list)
    avg_recovery: float | None = None
    avg_strain: float | None = None
    total_sleep_hours: float = 0.0
    consistency: ConsistencyMetrics | None = None

    @property
    def days_with_data(self) -> int:
        return len(self.days)

    @property
    def end(self) -> date:
        return self.start + timedelta(days=6)

    def __repr__(self) -> str:
        def fmt(v: float | None) -> str:
            return "-" if v is None else f"{v:.0f}"

        return (
            f"WeekSummary({format_week_range(self.start)}: {self.days_with_data} days, "
            f"recovery={fmt(self.avg_recovery)}, strain={fmt(self.avg_strain)}, "
            f"sleep={self.total_sleep_hours:.1f}h)"
        )


def week_start(day: date) -> date:
    """Monday of the week containing *day*."""
    return day - timedelta(days=day.weekday())


def previous_week_start(start: date) -> date:
    return start - timedelta(weeks=1)


def next_week_start(start: date) -> date:
    return start + timedelta(weeks=1)


def is_future_week(start: date, today: date | None = None) -> bool:
    return start > week_start(today or date.today())


def aggregate_week(metrics: Sequence[DailyMetrics], start: date) -> WeekSummary:
    """Roll up the 7 days beginning at *start*."""
    by_day = {m.day: m for m in metrics}
    days = [by_day[d] for d in (start + timedelta(days=i) for i in range(7)) if d in by_day]

    recoveries = [float(m.recovery.score) for m in days if m.recovery is not None]
    strains = [float(m.strain.score) for m in days if m.strain is not None]
    sleep_hours = [m.sleep.total_sleep_hours for m in days if m.sleep is not None]

    return WeekSummary(
        start=start,
        days=days,
        avg_recovery=stats.mean(recoveries),
        avg_strain=stats.mean(strains),
        total_sleep_hours=sum(sleep_hours),
        consistency=consistency_from_summaries([m.sleep for m in days if m.sleep is not None]),
    )


@dataclass
class WeekComparison:
    recovery_change: float | None
    strain_change: float | None
    sleep_hours_change: float
    consistency_change: float

    @property
    def recovery_trend(self) -> str:
        if self.recovery_change is None:
            return "n/a"
        if self.recovery_change > RECOVERY_CHANGE:
            return "improved"
        if self.recovery_change < -RECOVERY_CHANGE:
            return "declined"
        return "stable"

    @property
    def strain_trend(self) -> str:
        if self.strain_change is None:
            return "n/a"
        if self.strain_change > STRAIN_CHANGE:
            return "higher"
        if self.strain_change < -STRAIN_CHANGE:
            return "lower"
        return "similar"

    @property
    def sleep_trend(self) -> str:
        if self.sleep_hours_change > SLEEP_HOURS_CHANGE:
            return "more sleep"
        if self.sleep_hours_change < -SLEEP_HOURS_CHANGE:
            return "less sleep"
        return "similar"

    @property
    def consistency_trend(self) -> str:
        if self.consistency_change > CONSISTENCY_CHANGE:
            return "more consistent"
        if self.consistency_change < -CONSISTENCY_CHANGE:
            return "less consistent"
        return "stable"

    @property
    def overall_insight(self) -> str:
        insights = []
        if self.recovery_change is not None:
            if self.recovery_change > RECOVERY_CHANGE:
                insights.append("Recovery improved this week")
            elif self.recovery_change < -RECOVERY_CHANGE:
                insights.append("Recovery declined this week")
        if self.sleep_hours_change < -SLEEP_HOURS_CHANGE:
            insights.append("Consider getting more sleep")
        if self.consistency_change < -CONSISTENCY_CHANGE:
            insights.append("Try to maintain a more consistent sleep schedule")

        if not insights:
            return "Your metrics are stable week-over-week."
        return ". ".join(insights) + "."


def compare_weeks(current: WeekSummary, previous: WeekSummary) -> WeekComparison:
    def delta(a: float | None, b: float | None) -> float | None:
        return None if a is None or b is None else a - b

    cur_consistency = current.consistency.score if current.consistency else 1.0
    prev_consistency = previous.consistency.score if previous.consistency else 1.0

    return WeekComparison(
        recovery_change=delta(current.avg_recovery, previous.avg_recovery),
        strain_change=delta(current.avg_strain, previous.avg_strain),
        sleep_hours_change=current.total_sleep_hours - previous.total_sleep_hours,
        consistency_change=cur_consistency - prev_consistency,
    )


def format_week_range(start: date) -> str:
    """Display range, e.g. 'Jan 15-21' or 'Jan 29 - Feb 4' across months."""
    end = start + timedelta(days=6)
    if start.month == end.month:
        return f"{start:%b} {start.day}-{end.day}"
    return f"{start:%b} {start.day} - {end:%b} {end.day}"
