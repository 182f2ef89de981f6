"""Tier 1: factual daily aggregates built directly from raw samples.

Nothing here estimates or infers.  Each sub-summary is plain arithmetic
or grouping over one day's samples and is None when that domain had no
(valid) samples:

  - Heart rate summary (avg / min / max, latest valid resting HR)
  - HRV summary with a separate nightly average over the sleep window
  - Sleep session segmentation, stage breakdown, efficiency
  - Workout and activity totals
  - HR-zone time distribution from the median sampling interval
  - Post-workout heart-rate recovery at 1 / 2 / 3 minutes
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from enum import Enum, IntEnum
from typing import Sequence

import numpy as np

from healthtiers.analytics.quality import validate_hrv, validate_rhr, validate_sleep_duration
from healthtiers.samples import (
    HeartRateSample,
    HRVSample,
    RawDailySamples,
    RestingHeartRateSample,
    SleepSample,
    SleepStage,
    WorkoutActivityType,
    WorkoutSession,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

# Consecutive sleep samples further apart than this start a new session
SLEEP_SESSION_GAP_SEC = 7200.0

# Nightly HRV window relative to local midnight of the target day
SLEEP_WINDOW_BEFORE = timedelta(hours=6)
SLEEP_WINDOW_AFTER = timedelta(hours=12)

# HR zone lower bounds (fraction of max HR) for zones 2-5
ZONE_BOUNDARIES = [0.60, 0.70, 0.80, 0.90]

DEFAULT_MAX_HR = 185.0

# Post-workout HR recovery sampling
RECOVERY_MINUTES = (1, 2, 3)
RECOVERY_TOLERANCE_SEC = 30.0


# ---------------------------------------------------------------------------
# Heart rate / HRV
# ---------------------------------------------------------------------------


@dataclass
class HeartRateSummary:
    avg_bpm: float
    min_bpm: float
    max_bpm: float
    resting_bpm: float | None
    sample_count: int


@dataclass
class HRVSummary:
    avg_sdnn: float
    min_sdnn: float
    max_sdnn: float
    nightly_sdnn: float | None  # average over the sleep window
    sample_count: int

    @property
    def value(self) -> float:
        """Nightly HRV when available, otherwise the all-day average."""
        return self.nightly_sdnn if self.nightly_sdnn is not None else self.avg_sdnn


def sleep_window(day: date) -> tuple[datetime, datetime]:
    """Sleep window for *day*: 18:00 the previous evening to 12:00 on *day*."""
    midnight = datetime.combine(day, time.min)
    return midnight - SLEEP_WINDOW_BEFORE, midnight + SLEEP_WINDOW_AFTER


def summarize_heart_rate(
    samples: Sequence[HeartRateSample],
    resting: Sequence[RestingHeartRateSample] = (),
) -> HeartRateSummary | None:
    """Daily HR summary; the resting value is the latest physiologically valid reading."""
    if len(samples) == 0:
        return None

    bpm = np.asarray([s.bpm for s in samples], dtype=np.float64)

    resting_bpm = None
    for r in sorted(resting, key=lambda r: r.timestamp):
        if validate_rhr(r.bpm).is_valid:
            resting_bpm = r.bpm
        else:
            logger.warning("Rejected resting HR %.1f bpm at %s", r.bpm, r.timestamp)

    return HeartRateSummary(
        avg_bpm=float(np.mean(bpm)),
        min_bpm=float(np.min(bpm)),
        max_bpm=float(np.max(bpm)),
        resting_bpm=resting_bpm,
        sample_count=len(samples),
    )


def summarize_hrv(samples: Sequence[HRVSample], day: date) -> HRVSummary | None:
    """Daily HRV summary with the nightly (sleep-window) average kept separately.

    Hard-invalid SDNN values are dropped before averaging.
    """
    valid = []
    for s in samples:
        if validate_hrv(s.sdnn).is_valid:
            valid.append(s)
        else:
            logger.warning("Rejected HRV %.1f ms at %s", s.sdnn, s.timestamp)
    if not valid:
        return None

    sdnn = np.asarray([s.sdnn for s in valid], dtype=np.float64)
    start, end = sleep_window(day)
    nightly = [s.sdnn for s in valid if start <= s.timestamp <= end]

    return HRVSummary(
        avg_sdnn=float(np.mean(sdnn)),
        min_sdnn=float(np.min(sdnn)),
        max_sdnn=float(np.max(sdnn)),
        nightly_sdnn=float(np.mean(nightly)) if nightly else None,
        sample_count=len(valid),
    )


# ---------------------------------------------------------------------------
# Sleep
# ---------------------------------------------------------------------------


@dataclass
class SleepStageBreakdown:
    deep_min: int = 0
    core_min: int = 0
    rem_min: int = 0
    awake_min: int = 0
    unspecified_min: int = 0

    @property
    def total_asleep_min(self) -> int:
        return self.deep_min + self.core_min + self.rem_min + self.unspecified_min

    @property
    def total_min(self) -> int:
        return self.total_asleep_min + self.awake_min

    def _pct(self, minutes: int) -> float:
        if self.total_asleep_min <= 0:
            return 0.0
        return minutes / self.total_asleep_min * 100.0

    @property
    def deep_pct(self) -> float:
        return self._pct(self.deep_min)

    @property
    def core_pct(self) -> float:
        return self._pct(self.core_min)

    @property
    def rem_pct(self) -> float:
        return self._pct(self.rem_min)

    def add(self, other: SleepStageBreakdown) -> SleepStageBreakdown:
        return SleepStageBreakdown(
            deep_min=self.deep_min + other.deep_min,
            core_min=self.core_min + other.core_min,
            rem_min=self.rem_min + other.rem_min,
            awake_min=self.awake_min + other.awake_min,
            unspecified_min=self.unspecified_min + other.unspecified_min,
        )


_STAGE_FIELDS = {
    SleepStage.DEEP: "deep_min",
    SleepStage.CORE: "core_min",
    SleepStage.REM: "rem_min",
    SleepStage.AWAKE: "awake_min",
    SleepStage.UNSPECIFIED: "unspecified_min",
}


@dataclass
class SleepSession:
    """A consolidated sleep period made of contiguous samples."""

    start: datetime
    end: datetime
    samples: list[SleepSample] = field(default_factory=list)

    @property
    def total_duration_sec(self) -> float:
        return (self.end - self.start).total_seconds()

    @property
    def asleep_duration_sec(self) -> float:
        return sum(s.duration_sec for s in self.samples if s.stage.is_asleep)

    @property
    def asleep_hours(self) -> float:
        return self.asleep_duration_sec / 3600.0

    @property
    def efficiency(self) -> float:
        """Asleep time / total time * 100."""
        total = self.total_duration_sec
        if total <= 0:
            return 0.0
        return self.asleep_duration_sec / total * 100.0

    @property
    def stage_breakdown(self) -> SleepStageBreakdown:
        breakdown = SleepStageBreakdown()
        for s in self.samples:
            name = _STAGE_FIELDS.get(s.stage)
            if name is not None:  # in-bed time is not counted
                setattr(breakdown, name, getattr(breakdown, name) + s.duration_min)
        return breakdown

    @property
    def interruption_count(self) -> int:
        """Number of awake samples that directly follow an asleep sample."""
        count = 0
        was_asleep = False
        for s in sorted(self.samples, key=lambda s: s.start):
            if s.stage == SleepStage.AWAKE and was_asleep:
                count += 1
            was_asleep = s.stage.is_asleep
        return count


def signed_bedtime_minutes(t: datetime) -> int:
    """Minutes from midnight; evening bedtimes (hour >= 12) are negative."""
    if t.hour >= 12:
        return (t.hour - 24) * 60 + t.minute
    return t.hour * 60 + t.minute


@dataclass
class SleepTiming:
    bedtime: datetime
    wake_time: datetime

    @property
    def bedtime_minutes(self) -> int:
        return signed_bedtime_minutes(self.bedtime)

    @property
    def wake_minutes(self) -> int:
        return self.wake_time.hour * 60 + self.wake_time.minute


@dataclass
class SleepSummary:
    day: date
    sessions: list[SleepSession] = field(default_factory=list)

    @property
    def primary_session(self) -> SleepSession | None:
        """The longest session (main sleep)."""
        if not self.sessions:
            return None
        return max(self.sessions, key=lambda s: s.total_duration_sec)

    @property
    def total_sleep_hours(self) -> float:
        return sum(s.asleep_duration_sec for s in self.sessions) / 3600.0

    @property
    def average_efficiency(self) -> float:
        if not self.sessions:
            return 0.0
        return sum(s.efficiency for s in self.sessions) / len(self.sessions)

    @property
    def bedtime(self) -> datetime | None:
        primary = self.primary_session
        return primary.start if primary else None

    @property
    def wake_time(self) -> datetime | None:
        primary = self.primary_session
        return primary.end if primary else None

    @property
    def timing(self) -> SleepTiming | None:
        primary = self.primary_session
        if primary is None:
            return None
        return SleepTiming(bedtime=primary.start, wake_time=primary.end)

    @property
    def combined_stage_breakdown(self) -> SleepStageBreakdown:
        combined = SleepStageBreakdown()
        for s in self.sessions:
            combined = combined.add(s.stage_breakdown)
        return combined

    @property
    def total_interruptions(self) -> int:
        return sum(s.interruption_count for s in self.sessions)


def segment_sleep(samples: Sequence[SleepSample]) -> list[SleepSession]:
    """Group sleep samples into sessions split at gaps > SLEEP_SESSION_GAP_SEC."""
    sessions: list[SleepSession] = []
    current: list[SleepSample] = []

    for s in sorted(samples, key=lambda s: s.start):
        if current and (s.start - current[-1].end).total_seconds() > SLEEP_SESSION_GAP_SEC:
            sessions.append(SleepSession(start=current[0].start, end=current[-1].end, samples=current))
            current = []
        current.append(s)

    if current:
        sessions.append(SleepSession(start=current[0].start, end=current[-1].end, samples=current))
    return sessions


def summarize_sleep(samples: Sequence[SleepSample], day: date) -> SleepSummary | None:
    if len(samples) == 0:
        return None
    summary = SleepSummary(day=day, sessions=segment_sleep(samples))
    if not validate_sleep_duration(summary.total_sleep_hours).is_valid:
        logger.warning("Rejected sleep of %.1f h on %s", summary.total_sleep_hours, day)
        return None
    return summary


# ---------------------------------------------------------------------------
# Workouts / activity
# ---------------------------------------------------------------------------


@dataclass
class WorkoutSummary:
    day: date
    workouts: list[WorkoutSession] = field(default_factory=list)

    @property
    def total_workouts(self) -> int:
        return len(self.workouts)

    @property
    def total_duration_min(self) -> int:
        return sum(w.duration_min for w in self.workouts)

    @property
    def total_energy_kcal(self) -> float:
        return sum(w.energy_kcal for w in self.workouts if w.energy_kcal is not None)

    @property
    def total_distance_km(self) -> float:
        return sum(w.distance_km for w in self.workouts if w.distance_km is not None)

    @property
    def avg_heart_rate(self) -> float | None:
        values = [w.avg_heart_rate for w in self.workouts if w.avg_heart_rate is not None]
        if not values:
            return None
        return sum(values) / len(values)

    @property
    def max_heart_rate(self) -> float | None:
        values = [w.max_heart_rate for w in self.workouts if w.max_heart_rate is not None]
        return max(values) if values else None

    @property
    def primary_activity(self) -> WorkoutActivityType | None:
        """Activity type with the most accumulated duration."""
        by_type: dict[WorkoutActivityType, float] = {}
        for w in self.workouts:
            by_type[w.activity_type] = by_type.get(w.activity_type, 0.0) + w.duration_sec
        if not by_type:
            return None
        return max(by_type, key=by_type.get)

    @property
    def strain_contribution(self) -> float:
        """Sum of minutes * type multiplier * HR factor (avgHR/120, capped 1.5)."""
        total = 0.0
        for w in self.workouts:
            hr_factor = 1.0
            if w.avg_heart_rate is not None:
                hr_factor = min(w.avg_heart_rate / 120.0, 1.5)
            total += w.duration_min * w.activity_type.intensity_multiplier * hr_factor
        return total


def summarize_workouts(workouts: Sequence[WorkoutSession], day: date) -> WorkoutSummary | None:
    if len(workouts) == 0:
        return None
    return WorkoutSummary(day=day, workouts=sorted(workouts, key=lambda w: w.start))


class ActivityIntensity(str, Enum):
    SEDENTARY = "sedentary"
    LIGHT = "light"
    MODERATE = "moderate"
    ACTIVE = "active"
    VERY_ACTIVE = "very_active"


@dataclass
class ActivitySummary:
    day: date
    steps: int | None = None
    distance_km: float | None = None
    active_energy_kcal: float | None = None
    basal_energy_kcal: float | None = None

    @property
    def total_energy_kcal(self) -> float | None:
        if self.active_energy_kcal is None or self.basal_energy_kcal is None:
            return None
        return self.active_energy_kcal + self.basal_energy_kcal

    @property
    def steps_goal_progress(self) -> float | None:
        """Fraction of a 10k-step day."""
        if self.steps is None:
            return None
        return self.steps / 10000.0

    @property
    def intensity(self) -> ActivityIntensity | None:
        """Band of active energy as a share of total energy."""
        total = self.total_energy_kcal
        if total is None:
            return None
        ratio = self.active_energy_kcal / max(total, 1.0)
        if ratio < 0.15:
            return ActivityIntensity.SEDENTARY
        if ratio < 0.25:
            return ActivityIntensity.LIGHT
        if ratio < 0.35:
            return ActivityIntensity.MODERATE
        if ratio < 0.45:
            return ActivityIntensity.ACTIVE
        return ActivityIntensity.VERY_ACTIVE


def summarize_activity(raw: RawDailySamples) -> ActivitySummary | None:
    if not raw.has_activity:
        return None
    return ActivitySummary(
        day=raw.day,
        steps=raw.steps,
        distance_km=raw.distance_km,
        active_energy_kcal=raw.active_energy_kcal,
        basal_energy_kcal=raw.basal_energy_kcal,
    )


# ---------------------------------------------------------------------------
# HR zones
# ---------------------------------------------------------------------------


class HRZone(IntEnum):
    ZONE_1 = 1  # < 60% max HR (recovery)
    ZONE_2 = 2  # 60-70% (fat burn)
    ZONE_3 = 3  # 70-80% (aerobic)
    ZONE_4 = 4  # 80-90% (anaerobic)
    ZONE_5 = 5  # >= 90% (max effort)

    @property
    def label(self) -> str:
        return ["Recovery", "Fat Burn", "Aerobic", "Anaerobic", "Max Effort"][self - 1]

    @property
    def strain_weight(self) -> float:
        return ZONE_STRAIN_WEIGHTS[self - 1]


ZONE_STRAIN_WEIGHTS = [0.1, 0.3, 0.6, 1.0, 1.5]


def classify_zone(bpm: float, max_hr: float) -> HRZone:
    """Zone 1-5 from the fraction of max HR (boundaries 60/70/80/90%)."""
    pct = bpm / max_hr if max_hr > 0 else 0.0
    for zone, boundary in enumerate(ZONE_BOUNDARIES, start=1):
        if pct < boundary:
            return HRZone(zone)
    return HRZone.ZONE_5


@dataclass
class ZoneDistribution:
    zone1_min: int = 0
    zone2_min: int = 0
    zone3_min: int = 0
    zone4_min: int = 0
    zone5_min: int = 0

    def minutes(self, zone: HRZone) -> int:
        return getattr(self, f"zone{int(zone)}_min")

    @property
    def total_min(self) -> int:
        return sum(self.minutes(z) for z in HRZone)

    def percentage(self, zone: HRZone) -> float:
        total = self.total_min
        if total <= 0:
            return 0.0
        return self.minutes(zone) / total * 100.0

    @property
    def weighted_strain_minutes(self) -> float:
        return sum(self.minutes(z) * z.strain_weight for z in HRZone)


def median_sample_interval_min(samples: Sequence[HeartRateSample]) -> float:
    """Median gap between consecutive samples in minutes (1.0 below 2 samples)."""
    if len(samples) < 2:
        return 1.0
    ts = np.asarray(sorted(s.timestamp.timestamp() for s in samples), dtype=np.float64)
    return float(np.median(np.diff(ts))) / 60.0


def zone_distribution(
    samples: Sequence[HeartRateSample],
    max_hr: float = DEFAULT_MAX_HR,
) -> ZoneDistribution | None:
    """Minutes per HR zone.

    Sample counts are converted to minutes with the day's median sampling
    interval so dense workout sampling does not inflate zone time.
    """
    if len(samples) == 0:
        return None

    counts = {z: 0 for z in HRZone}
    for s in samples:
        counts[classify_zone(s.bpm, max_hr)] += 1

    interval = median_sample_interval_min(samples)
    return ZoneDistribution(
        **{f"zone{int(z)}_min": int(counts[z] * interval) for z in HRZone}
    )


# ---------------------------------------------------------------------------
# Post-workout HR recovery
# ---------------------------------------------------------------------------


class RecoveryQuality(str, Enum):
    EXCELLENT = "excellent"
    GOOD = "good"
    AVERAGE = "average"
    BELOW_AVERAGE = "below_average"
    UNKNOWN = "unknown"


@dataclass
class HRRecovery:
    workout_end: datetime
    peak_hr: float
    hr_1min: float | None = None
    hr_2min: float | None = None
    hr_3min: float | None = None

    def _drop(self, hr: float | None) -> float | None:
        return None if hr is None else self.peak_hr - hr

    @property
    def drop_1min(self) -> float | None:
        return self._drop(self.hr_1min)

    @property
    def drop_2min(self) -> float | None:
        return self._drop(self.hr_2min)

    @property
    def drop_3min(self) -> float | None:
        return self._drop(self.hr_3min)

    @property
    def quality(self) -> RecoveryQuality:
        drop = self.drop_1min
        if drop is None:
            return RecoveryQuality.UNKNOWN
        if drop < 12:
            return RecoveryQuality.BELOW_AVERAGE
        if drop < 20:
            return RecoveryQuality.AVERAGE
        if drop < 30:
            return RecoveryQuality.GOOD
        return RecoveryQuality.EXCELLENT


def _hr_near(samples: Sequence[HeartRateSample], target: datetime) -> float | None:
    """BPM of the sample nearest *target* within the tolerance, else None."""
    best = None
    best_dt = RECOVERY_TOLERANCE_SEC
    for s in samples:
        dt = abs((s.timestamp - target).total_seconds())
        if dt <= best_dt and (best is None or dt < best_dt):
            best, best_dt = s, dt
    return best.bpm if best is not None else None


def hr_recovery(
    workout: WorkoutSession,
    samples: Sequence[HeartRateSample],
) -> HRRecovery | None:
    """HR at 1/2/3 minutes after *workout* ends, relative to its peak HR.

    The peak is the workout's reported max HR, or the highest sample during
    the workout when none is reported.
    """
    peak = workout.max_heart_rate
    if peak is None:
        during = [s.bpm for s in samples if workout.start <= s.timestamp <= workout.end]
        if not during:
            return None
        peak = max(during)

    readings = [_hr_near(samples, workout.end + timedelta(minutes=m)) for m in RECOVERY_MINUTES]
    if all(r is None for r in readings):
        return None

    return HRRecovery(
        workout_end=workout.end,
        peak_hr=peak,
        hr_1min=readings[0],
        hr_2min=readings[1],
        hr_3min=readings[2],
    )


# ---------------------------------------------------------------------------
# Day aggregate
# ---------------------------------------------------------------------------


@dataclass
class DailyFactualSummary:
    """All Tier-1 sub-summaries for one day."""

    day: date
    heart_rate: HeartRateSummary | None = None
    hrv: HRVSummary | None = None
    sleep: SleepSummary | None = None
    workouts: WorkoutSummary | None = None
    activity: ActivitySummary | None = None
    zones: ZoneDistribution | None = None
    hr_recovery: HRRecovery | None = None


def build_factual_summary(
    raw: RawDailySamples,
    max_hr: float = DEFAULT_MAX_HR,
) -> DailyFactualSummary:
    """Run every Tier-1 aggregation over one day of raw samples."""
    recovery = None
    if raw.workouts:
        last_workout = max(raw.workouts, key=lambda w: w.end)
        recovery = hr_recovery(last_workout, raw.heart_rate)

    return DailyFactualSummary(
        day=raw.day,
        heart_rate=summarize_heart_rate(raw.heart_rate, raw.resting_heart_rate),
        hrv=summarize_hrv(raw.hrv, raw.day),
        sleep=summarize_sleep(raw.sleep, raw.day),
        workouts=summarize_workouts(raw.workouts, raw.day),
        activity=summarize_activity(raw),
        zones=zone_distribution(raw.heart_rate, max_hr),
        hr_recovery=recovery,
    )
