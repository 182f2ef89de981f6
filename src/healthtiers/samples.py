"""Raw per-day sample types consumed by the Tier-1 aggregator.

These mirror what a device health-data provider hands over for one
calendar day.  Timestamps are naive local datetimes; the engine never
converts time zones.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum


class DataSource(str, Enum):
    """Where a sample came from."""

    WATCH = "watch"
    PHONE = "phone"
    THIRD_PARTY = "third_party"
    MANUAL = "manual"
    UNKNOWN = "unknown"


# ---------------------------------------------------------------------------
# Heart rate / HRV
# ---------------------------------------------------------------------------


@dataclass
class HeartRateSample:
    timestamp: datetime
    bpm: float
    source: DataSource = DataSource.UNKNOWN


@dataclass
class RestingHeartRateSample:
    timestamp: datetime
    bpm: float
    source: DataSource = DataSource.UNKNOWN


@dataclass
class HRVSample:
    timestamp: datetime
    sdnn: float  # ms
    source: DataSource = DataSource.UNKNOWN


# ---------------------------------------------------------------------------
# Sleep
# ---------------------------------------------------------------------------


class SleepStage(str, Enum):
    AWAKE = "awake"
    REM = "rem"
    CORE = "core"
    DEEP = "deep"
    UNSPECIFIED = "asleep"
    IN_BED = "in_bed"

    @property
    def is_asleep(self) -> bool:
        return self in (SleepStage.REM, SleepStage.CORE, SleepStage.DEEP, SleepStage.UNSPECIFIED)


@dataclass
class SleepSample:
    start: datetime
    end: datetime
    stage: SleepStage
    source: DataSource = DataSource.UNKNOWN

    @property
    def duration_sec(self) -> float:
        return (self.end - self.start).total_seconds()

    @property
    def duration_min(self) -> int:
        return int(self.duration_sec / 60)


# ---------------------------------------------------------------------------
# Workouts
# ---------------------------------------------------------------------------


class WorkoutActivityType(str, Enum):
    RUNNING = "running"
    CYCLING = "cycling"
    SWIMMING = "swimming"
    WALKING = "walking"
    HIKING = "hiking"
    YOGA = "yoga"
    STRENGTH = "strength"
    HIIT = "hiit"
    ROWING = "rowing"
    ELLIPTICAL = "elliptical"
    CROSS_TRAINING = "cross_training"
    OTHER = "other"

    @property
    def intensity_multiplier(self) -> float:
        return _INTENSITY_MULTIPLIERS[self]


_INTENSITY_MULTIPLIERS = {
    WorkoutActivityType.HIIT: 1.5,
    WorkoutActivityType.RUNNING: 1.3,
    WorkoutActivityType.CYCLING: 1.2,
    WorkoutActivityType.SWIMMING: 1.25,
    WorkoutActivityType.ROWING: 1.2,
    WorkoutActivityType.CROSS_TRAINING: 1.2,
    WorkoutActivityType.STRENGTH: 1.0,
    WorkoutActivityType.HIKING: 1.0,
    WorkoutActivityType.ELLIPTICAL: 1.1,
    WorkoutActivityType.WALKING: 0.7,
    WorkoutActivityType.YOGA: 0.5,
    WorkoutActivityType.OTHER: 1.0,
}


@dataclass
class WorkoutSession:
    activity_type: WorkoutActivityType
    start: datetime
    end: datetime
    energy_kcal: float | None = None
    distance_km: float | None = None
    avg_heart_rate: float | None = None
    max_heart_rate: float | None = None
    source: DataSource = DataSource.UNKNOWN

    @property
    def duration_sec(self) -> float:
        return (self.end - self.start).total_seconds()

    @property
    def duration_min(self) -> int:
        return int(self.duration_sec / 60)

    @property
    def pace_min_per_km(self) -> float | None:
        if not self.distance_km or self.duration_sec <= 0:
            return None
        return self.duration_sec / 60.0 / self.distance_km


# ---------------------------------------------------------------------------
# Day bundle
# ---------------------------------------------------------------------------


@dataclass
class RawDailySamples:
    """Everything recorded for one calendar day.

    Activity totals are None when the provider reported nothing, which is
    different from a reported 0.
    """

    day: date
    heart_rate: list[HeartRateSample] = field(default_factory=list)
    resting_heart_rate: list[RestingHeartRateSample] = field(default_factory=list)
    hrv: list[HRVSample] = field(default_factory=list)
    sleep: list[SleepSample] = field(default_factory=list)
    workouts: list[WorkoutSession] = field(default_factory=list)
    steps: int | None = None
    distance_km: float | None = None
    active_energy_kcal: float | None = None
    basal_energy_kcal: float | None = None

    @property
    def has_activity(self) -> bool:
        return self.steps is not None or self.active_energy_kcal is not None

    def __repr__(self) -> str:
        return (
            f"RawDailySamples({self.day}: hr={len(self.heart_rate)}, "
            f"hrv={len(self.hrv)}, sleep={len(self.sleep)}, "
            f"workouts={len(self.workouts)}, steps={self.steps})"
        )
