"""Daily metrics aggregate.

Pulls the Tier-1 summary, data-quality indicator, Tier-2 metrics and the
Tier-3 scores into a single DailyMetrics that is JSON-serializable and
round-trips through ``to_json`` / ``from_json`` unchanged.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date

from healthtiers.analytics.codec import JsonMixin
from healthtiers.analytics.quality import DataQualityIndicator
from healthtiers.analytics.recovery import RecoveryScore
from healthtiers.analytics.sleep import SleepPerformance
from healthtiers.analytics.strain import StrainScore
from healthtiers.analytics.tier1 import (
    ActivitySummary,
    DailyFactualSummary,
    HeartRateSummary,
    HRRecovery,
    HRVSummary,
    SleepSummary,
    WorkoutSummary,
    ZoneDistribution,
)
from healthtiers.analytics.tier2 import AutonomicBalance, SleepDebt, Tier2Metrics


@dataclass
class DailyMetrics(JsonMixin):
    """One calendar day: Tier 1 facts, Tier 2 derivations, Tier 3 scores.

    Tier-1 fields are written once from raw samples; ``derived`` and the
    scores are replaced wholesale when the day is rescored.
    """

    day: date
    summary: DailyFactualSummary
    quality: DataQualityIndicator = field(default_factory=DataQualityIndicator)
    derived: Tier2Metrics = field(default_factory=Tier2Metrics)
    recovery: RecoveryScore | None = None
    strain: StrainScore | None = None
    sleep_performance: SleepPerformance | None = None

    # -- Tier 1 ---------------------------------------------------------------

    @property
    def heart_rate(self) -> HeartRateSummary | None:
        return self.summary.heart_rate

    @property
    def hrv(self) -> HRVSummary | None:
        return self.summary.hrv

    @property
    def sleep(self) -> SleepSummary | None:
        return self.summary.sleep

    @property
    def workouts(self) -> WorkoutSummary | None:
        return self.summary.workouts

    @property
    def activity(self) -> ActivitySummary | None:
        return self.summary.activity

    @property
    def zones(self) -> ZoneDistribution | None:
        return self.summary.zones

    @property
    def hr_recovery(self) -> HRRecovery | None:
        return self.summary.hr_recovery

    @property
    def resting_hr(self) -> float | None:
        return self.heart_rate.resting_bpm if self.heart_rate else None

    @property
    def hrv_value(self) -> float | None:
        """Nightly HRV when available, else the daily average."""
        return self.hrv.value if self.hrv else None

    @property
    def has_workout_data(self) -> bool:
        return self.workouts is not None and self.workouts.total_workouts > 0

    # -- Tier 2 ---------------------------------------------------------------

    @property
    def acute_load(self) -> float:
        return self.derived.acute_load

    @property
    def chronic_load(self) -> float:
        return self.derived.chronic_load

    @property
    def load_ratio(self) -> float:
        return self.derived.load_ratio

    @property
    def sleep_debt(self) -> SleepDebt | None:
        return self.derived.sleep_debt

    @property
    def hrv_deviation(self) -> float | None:
        return self.derived.hrv_deviation

    @property
    def rhr_deviation(self) -> float | None:
        return self.derived.rhr_deviation

    @property
    def autonomic_balance(self) -> AutonomicBalance | None:
        return self.derived.autonomic_balance

    @property
    def sleep_timing_consistency(self) -> float | None:
        return self.derived.sleep_timing_consistency

    # -- display --------------------------------------------------------------

    @property
    def headline(self) -> str:
        parts = []
        if self.recovery is not None:
            parts.append(f"Recovery: {self.recovery.score}")
        if self.strain is not None:
            parts.append(f"Strain: {self.strain.score}")
        if self.sleep is not None:
            parts.append(f"Sleep: {self.sleep.total_sleep_hours:.1f}h")
        return " | ".join(parts)

    def __repr__(self) -> str:
        return f"DailyMetrics({self.day}: {self.headline or 'no scores'})"
