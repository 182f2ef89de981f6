"""Shared builders for the healthtiers test suite."""

from __future__ import annotations

import json
from datetime import date, datetime, time, timedelta
from pathlib import Path
from typing import Any, Sequence

from healthtiers.analytics.codec import encode
from healthtiers.analytics.components import Confidence
from healthtiers.analytics.pipeline import quality_for
from healthtiers.analytics.recovery import RecoveryScore
from healthtiers.analytics.strain import StrainScore
from healthtiers.analytics.summary import DailyMetrics
from healthtiers.analytics.tier1 import build_factual_summary
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

# A Monday
DAY = date(2024, 1, 15)


# ---------------------------------------------------------------------------
# Time helpers
# ---------------------------------------------------------------------------


def at(day: date, hour: int, minute: int = 0, second: int = 0) -> datetime:
    return datetime.combine(day, time(hour, minute, second))


def bedtime_for(day: date, hour: int, minute: int = 0) -> datetime:
    """Bedtime of the night ending on *day*; evening hours fall on the day before."""
    if hour >= 12:
        return at(day - timedelta(days=1), hour, minute)
    return at(day, hour, minute)


def days_from(start: date, count: int) -> list[date]:
    return [start + timedelta(days=i) for i in range(count)]


# ---------------------------------------------------------------------------
# Raw sample builders
# ---------------------------------------------------------------------------


def make_hr_samples(
    day: date = DAY,
    bpm: float = 70.0,
    count: int = 120,
    start_hour: int = 9,
    interval_sec: float = 60.0,
) -> list[HeartRateSample]:
    start = at(day, start_hour)
    return [HeartRateSample(start + timedelta(seconds=i * interval_sec), bpm) for i in range(count)]


def make_hrv_samples(day: date = DAY, sdnn: float = 45.0, count: int = 3) -> list[HRVSample]:
    """Nightly readings from 02:00, one per hour."""
    return [HRVSample(at(day, 2 + i), sdnn) for i in range(count)]


def make_sleep_samples(
    day: date = DAY,
    hours: float = 8.0,
    bedtime: tuple[int, int] = (23, 0),
    awakenings: int = 0,
    stage: SleepStage = SleepStage.CORE,
) -> list[SleepSample]:
    """One night of *hours* asleep, split by 5-minute awakenings."""
    start = bedtime_for(day, *bedtime)
    chunk = timedelta(hours=hours) / (awakenings + 1)
    samples = []
    t = start
    for i in range(awakenings + 1):
        samples.append(SleepSample(t, t + chunk, stage))
        t += chunk
        if i < awakenings:
            samples.append(SleepSample(t, t + timedelta(minutes=5), SleepStage.AWAKE))
            t += timedelta(minutes=5)
    return samples


def make_workout(
    day: date = DAY,
    start_hour: int = 17,
    minutes: int = 45,
    activity: WorkoutActivityType = WorkoutActivityType.RUNNING,
    avg_hr: float | None = 150.0,
    max_hr: float | None = 175.0,
    energy: float | None = 450.0,
) -> WorkoutSession:
    start = at(day, start_hour)
    return WorkoutSession(
        activity_type=activity,
        start=start,
        end=start + timedelta(minutes=minutes),
        energy_kcal=energy,
        avg_heart_rate=avg_hr,
        max_heart_rate=max_hr,
    )


def make_raw_day(
    day: date = DAY,
    rhr: float | None = 50.0,
    hrv: float | None = 45.0,
    sleep_hours: float | None = 8.0,
    bedtime: tuple[int, int] = (23, 0),
    awakenings: int = 0,
    steps: int | None = 8000,
    active_energy: float | None = 400.0,
    hr_count: int = 120,
    workouts: Sequence[WorkoutSession] = (),
) -> RawDailySamples:
    """A complete day by default; pass None to leave a domain out."""
    return RawDailySamples(
        day=day,
        heart_rate=make_hr_samples(day, count=hr_count) if hr_count else [],
        resting_heart_rate=[RestingHeartRateSample(at(day, 7), rhr)] if rhr is not None else [],
        hrv=make_hrv_samples(day, hrv) if hrv is not None else [],
        sleep=make_sleep_samples(day, sleep_hours, bedtime, awakenings) if sleep_hours is not None else [],
        workouts=list(workouts),
        steps=steps,
        active_energy_kcal=active_energy,
        basal_energy_kcal=1600.0 if active_energy is not None else None,
    )


# ---------------------------------------------------------------------------
# Metrics builders
# ---------------------------------------------------------------------------


def make_metrics(
    day: date = DAY,
    recovery: int | None = None,
    strain: int | None = None,
    **raw_kwargs: Any,
) -> DailyMetrics:
    """Tier-1 metrics for a synthetic day with optional fixed scores."""
    summary = build_factual_summary(make_raw_day(day, **raw_kwargs))
    return DailyMetrics(
        day=day,
        summary=summary,
        quality=quality_for(summary),
        recovery=RecoveryScore(recovery, Confidence.HIGH) if recovery is not None else None,
        strain=StrainScore(strain, Confidence.HIGH) if strain is not None else None,
    )


def make_history(days: int = 7, start: date = DAY, **kwargs: Any) -> list[DailyMetrics]:
    return [make_metrics(d, **kwargs) for d in days_from(start, days)]


# ---------------------------------------------------------------------------
# JSONL helpers
# ---------------------------------------------------------------------------


def write_jsonl(path: Path, records: Sequence[Any]) -> Path:
    """Write dataclass records (or plain dicts) as JSONL."""
    with open(path, "w") as f:
        for record in records:
            f.write(json.dumps(encode(record)) + "\n")
    return path
