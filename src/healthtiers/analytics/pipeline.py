"""Analytics pipeline: raw daily samples -> fully scored DailyMetrics.

Per day the stages run in a fixed order:

    Tier 1 summary -> data quality -> baselines (strictly earlier days)
    -> Tier 2 -> strain / sleep performance / recovery -> confidence
       adjustment for gaps and anomalies

Tier-1 summaries share no state and are fanned out over a thread pool.
Everything after Tier 1 depends on earlier days, so it runs in calendar
order against a snapshot of the history finalized so far.
"""

from __future__ import annotations

import dataclasses
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Iterable, Sequence

from healthtiers.analytics.baseline import (
    Baseline,
    Trend,
    calculate_baselines,
    hrv_trend,
    rhr_trend,
    sleep_trend,
)
from healthtiers.analytics.components import Confidence
from healthtiers.analytics.consistency import consistency_from_summaries
from healthtiers.analytics.gaps import (
    DataGap,
    OverallDataQuality,
    adjust_confidence,
    assess_overall_quality,
    detect_day_gaps,
    detect_gaps,
)
from healthtiers.analytics.patterns import DetectedPattern, detect_patterns
from healthtiers.analytics.quality import (
    DataQualityIndicator,
    assess_completeness,
    validate_daily_metrics,
)
from healthtiers.analytics.recovery import (
    RecoveryFormula,
    RecoveryScore,
    score_recovery,
    score_recovery_percent,
)
from healthtiers.analytics.sleep import SleepPerformance, estimate_hours_needed, score_from_consistency
from healthtiers.analytics.strain import StrainCategory, StrainScore, score_strain, weekly_strain
from healthtiers.analytics.summary import DailyMetrics
from healthtiers.analytics.tier1 import DEFAULT_MAX_HR, DailyFactualSummary, build_factual_summary
from healthtiers.analytics.tier2 import Tier2Metrics, compute_tier2, prior_history
from healthtiers.samples import RawDailySamples

logger = logging.getLogger(__name__)


WEEK = timedelta(days=7)


@dataclass
class EngineConfig:
    """Per-user settings passed through the pipeline."""

    age: int | None = 30
    max_heart_rate: float | None = None  # overrides the age estimate
    recovery_formula: RecoveryFormula = RecoveryFormula.AUTO
    hours_needed: float | None = None  # overrides the age / strain estimate
    max_workers: int = 4

    @property
    def max_hr(self) -> float:
        if self.max_heart_rate is not None:
            return self.max_heart_rate
        if self.age is not None:
            return float(220 - self.age)
        return DEFAULT_MAX_HR


# ---------------------------------------------------------------------------
# Single day
# ---------------------------------------------------------------------------


def quality_for(summary: DailyFactualSummary) -> DataQualityIndicator:
    return assess_completeness(
        hr_samples=summary.heart_rate.sample_count if summary.heart_rate else 0,
        hrv_samples=summary.hrv.sample_count if summary.hrv else 0,
        sleep_hours=summary.sleep.total_sleep_hours if summary.sleep else None,
        has_activity=summary.activity is not None,
    )


def _strain(
    summary: DailyFactualSummary,
    quality: DataQualityIndicator,
    prior: Sequence[DailyMetrics],
    baseline_7: Baseline,
) -> StrainScore | None:
    if summary.zones is None and summary.workouts is None and summary.activity is None:
        return None

    workout_min = summary.workouts.total_duration_min if summary.workouts else 0
    energy = summary.activity.active_energy_kcal if summary.activity else None
    strain = score_strain(summary.zones, workout_min, energy, baseline_7.avg_active_energy, quality)

    week_start = summary.day - timedelta(days=6)
    recent = [m.strain.score for m in prior if m.day >= week_start and m.strain is not None]
    return dataclasses.replace(strain, weekly_accumulation=float(weekly_strain(recent + [strain.score])))


def _sleep_performance(
    summary: DailyFactualSummary,
    prior: Sequence[DailyMetrics],
    config: EngineConfig,
) -> SleepPerformance | None:
    if summary.sleep is None:
        return None

    week = [m for m in prior if m.day >= summary.day - WEEK]
    hours_needed = config.hours_needed
    if hours_needed is None:
        high_days = sum(1 for m in week if m.strain is not None and m.strain.category == StrainCategory.HIGH)
        hours_needed = estimate_hours_needed(config.age if config.age is not None else 30, high_days)

    nights = [m.sleep for m in week if m.sleep is not None] + [summary.sleep]
    return score_from_consistency(
        summary.sleep.total_sleep_hours,
        summary.sleep.average_efficiency / 100.0,
        consistency_from_summaries(nights),
        hours_needed,
    )


def _recovery(
    summary: DailyFactualSummary,
    quality: DataQualityIndicator,
    derived: Tier2Metrics,
    baseline_7: Baseline,
    sleep_perf: SleepPerformance | None,
    formula: RecoveryFormula,
) -> RecoveryScore | None:
    if formula == RecoveryFormula.AUTO:
        formula = RecoveryFormula.BASELINE_PERCENT if derived.autonomic_balance else RecoveryFormula.COMPONENT

    if formula == RecoveryFormula.BASELINE_PERCENT:
        balance = derived.autonomic_balance
        if balance is not None:
            return score_recovery_percent(
                balance.hrv_deviation_pct,
                balance.rhr_deviation_pct,
                sleep_perf.score if sleep_perf else None,
                quality,
            )
        logger.debug("No baseline percent deviations on %s, using component formula", summary.day)

    sleep_ratio = None
    interruptions = None
    if summary.sleep is not None:
        sleep_ratio = baseline_7.sleep_duration_ratio(summary.sleep.total_sleep_hours)
        interruptions = summary.sleep.total_interruptions
    return score_recovery(derived.hrv_deviation, derived.rhr_deviation, sleep_ratio, interruptions, quality)


def _adjusted(confidence: Confidence, gaps: list[DataGap], has_anomaly: bool) -> Confidence:
    confidence = adjust_confidence(confidence, gaps)
    return confidence.downgraded() if has_anomaly else confidence


def score_day(
    summary: DailyFactualSummary,
    quality: DataQualityIndicator,
    history: Sequence[DailyMetrics],
    config: EngineConfig | None = None,
) -> DailyMetrics:
    """Tier 2 and Tier 3 for one day, from history strictly before it."""
    config = config or EngineConfig()
    prior = prior_history(history, summary.day)
    baseline_7, _ = calculate_baselines(prior, summary.day)

    derived = compute_tier2(summary, prior, baseline_7)
    strain = _strain(summary, quality, prior, baseline_7)
    sleep_perf = _sleep_performance(summary, prior, config)
    recovery = _recovery(summary, quality, derived, baseline_7, sleep_perf, config.recovery_formula)

    metrics = DailyMetrics(
        day=summary.day,
        summary=summary,
        quality=quality,
        derived=derived,
        sleep_performance=sleep_perf,
    )

    gaps = detect_day_gaps(metrics)
    has_anomaly = any(r.is_anomaly for r in validate_daily_metrics(metrics))
    if recovery is not None:
        recovery = dataclasses.replace(recovery, confidence=_adjusted(recovery.confidence, gaps, has_anomaly))
    if strain is not None:
        strain = dataclasses.replace(strain, confidence=_adjusted(strain.confidence, gaps, has_anomaly))

    return dataclasses.replace(metrics, recovery=recovery, strain=strain)


def process_day(
    raw: RawDailySamples,
    history: Sequence[DailyMetrics] = (),
    config: EngineConfig | None = None,
) -> DailyMetrics:
    """Run the full pipeline for one day of raw samples."""
    config = config or EngineConfig()
    summary = build_factual_summary(raw, config.max_hr)
    return score_day(summary, quality_for(summary), history, config)


def rescore_day(
    metrics: DailyMetrics,
    history: Sequence[DailyMetrics],
    config: EngineConfig | None = None,
) -> DailyMetrics:
    """Recompute Tier 2 / Tier 3 from the stored Tier-1 summary.

    Tier-1 data is left as is; the same history gives the same result.
    """
    return score_day(metrics.summary, metrics.quality, history, config)


# ---------------------------------------------------------------------------
# Multi-day
# ---------------------------------------------------------------------------


def _upsert(history: list[DailyMetrics], metrics: DailyMetrics) -> None:
    history[:] = [m for m in history if m.day != metrics.day]
    history.append(metrics)


def process_history(
    raw_days: Iterable[RawDailySamples],
    history: Sequence[DailyMetrics] = (),
    config: EngineConfig | None = None,
) -> list[DailyMetrics]:
    """Process many days, oldest first.

    Tier-1 summaries are built concurrently; scoring runs in date order so
    each day sees only days finalized before it.  Returns the merged
    history sorted by date (new days replace stored days with the same date).
    """
    config = config or EngineConfig()
    raw_days = sorted(raw_days, key=lambda r: r.day)

    with ThreadPoolExecutor(max_workers=config.max_workers) as pool:
        summaries = list(pool.map(lambda r: build_factual_summary(r, config.max_hr), raw_days))

    merged = list(history)
    for summary in summaries:
        metrics = score_day(summary, quality_for(summary), merged, config)
        _upsert(merged, metrics)
        logger.debug("Scored %r", metrics)

    logger.info("Processed %d day(s), history now %d day(s)", len(summaries), len(merged))
    return sorted(merged, key=lambda m: m.day)


def rescore_history(
    history: Sequence[DailyMetrics],
    config: EngineConfig | None = None,
    start: date | None = None,
) -> list[DailyMetrics]:
    """Rescore every day on or after *start* in date order (backfill)."""
    merged = sorted(history, key=lambda m: m.day)
    for i, metrics in enumerate(merged):
        if start is not None and metrics.day < start:
            continue
        merged[i] = rescore_day(metrics, merged[:i], config)
    return merged


# ---------------------------------------------------------------------------
# Report
# ---------------------------------------------------------------------------


@dataclass
class HealthReport:
    as_of: date
    baseline_7: Baseline
    baseline_28: Baseline
    hrv_trend: Trend | None = None
    rhr_trend: Trend | None = None
    sleep_trend: Trend | None = None
    patterns: list[DetectedPattern] = field(default_factory=list)
    data_quality: OverallDataQuality | None = None
    gaps: list[DataGap] = field(default_factory=list)


def build_report(history: Sequence[DailyMetrics], as_of: date | None = None) -> HealthReport:
    """Baselines, trends, patterns and data quality as of *as_of*.

    Defaults to the day after the latest metrics so the whole history
    falls inside the baseline windows.
    """
    ordered = sorted(history, key=lambda m: m.day)
    if as_of is None:
        as_of = ordered[-1].day + timedelta(days=1) if ordered else date.today()
    ordered = [m for m in ordered if m.day < as_of]

    baseline_7, baseline_28 = calculate_baselines(ordered, as_of)
    gaps = detect_gaps(ordered, ordered[0].day, ordered[-1].day) if ordered else []

    return HealthReport(
        as_of=as_of,
        baseline_7=baseline_7,
        baseline_28=baseline_28,
        hrv_trend=hrv_trend(ordered),
        rhr_trend=rhr_trend(ordered),
        sleep_trend=sleep_trend(ordered),
        patterns=detect_patterns(ordered) if ordered else [],
        data_quality=assess_overall_quality(ordered),
        gaps=gaps,
    )
