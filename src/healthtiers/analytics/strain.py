"""Strain scoring (HR-zone weighted, log-scaled).

Three transparency components are reported with every score:

  - HR zone time (50%): zone-weighted minutes, 100 weighted minutes = 100
  - Workout duration (30%): 60+ minutes = 100
  - Active energy (20%): today vs. the 7-day baseline, 50% -> 0,
    100% -> 50, 200%+ -> 100

The score itself is the log-scaled raw strain
``ln(1 + weighted_zone_minutes) * max(energy_ratio, 0.5) * 10`` mapped so
that a raw strain of 40 reaches 100.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Sequence

from healthtiers.analytics import stats
from healthtiers.analytics.baseline import detect_trend
from healthtiers.analytics.components import Confidence, ScoreComponent, TrendDirection
from healthtiers.analytics.quality import DataQualityIndicator
from healthtiers.analytics.tier1 import HRZone, ZoneDistribution


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

W_ZONES = 0.50
W_DURATION = 0.30
W_ENERGY = 0.20

ZONE_COMPONENT = "HR Zone Time"
DURATION_COMPONENT = "Workout Duration"
ENERGY_COMPONENT = "Active Energy"

ZONE_MINUTES_CAP = 100.0
DURATION_FULL_MIN = 60.0

# Energy as % of baseline: low end, midpoint (scores 50), high end
ENERGY_RATIO_RANGE = (50.0, 100.0, 200.0)
DEFAULT_BASELINE_ENERGY = 500.0

LOG_SCALE_FACTOR = 10.0
MIN_ENERGY_FACTOR = 0.5
RAW_STRAIN_FULL = 40.0

WEEKLY_STRAIN_CAP = 700
NATIVE_SCALE_MAX = 21.0


class StrainCategory(str, Enum):
    LIGHT = "light"
    MODERATE = "moderate"
    HIGH = "high"

    @property
    def description(self) -> str:
        return {
            StrainCategory.LIGHT: "Low cardiovascular load",
            StrainCategory.MODERATE: "Balanced training load",
            StrainCategory.HIGH: "Significant cardiovascular demand",
        }[self]


@dataclass
class StrainScore:
    score: int  # 0-100
    confidence: Confidence
    components: list[ScoreComponent] = field(default_factory=list)
    weekly_accumulation: float | None = None

    @property
    def category(self) -> StrainCategory:
        if self.score < 33:
            return StrainCategory.LIGHT
        if self.score < 67:
            return StrainCategory.MODERATE
        return StrainCategory.HIGH

    @property
    def native_score(self) -> float:
        """Score on the 0-21 scale."""
        return to_native_scale(self.score)

    def component(self, name: str) -> ScoreComponent | None:
        for c in self.components:
            if c.name == name:
                return c
        return None

    def __repr__(self) -> str:
        return (
            f"StrainScore(score={self.score} {self.category.value}, "
            f"{self.native_score:.1f}/21, confidence={self.confidence.value})"
        )


# ---------------------------------------------------------------------------
# Components
# ---------------------------------------------------------------------------


def _zone_component(zones: ZoneDistribution | None) -> ScoreComponent:
    if zones is None:
        return ScoreComponent.build(ZONE_COMPONENT, 0.0, 0.0, W_ZONES)
    weighted = zones.weighted_strain_minutes
    return ScoreComponent.build(ZONE_COMPONENT, weighted, min(weighted, ZONE_MINUTES_CAP), W_ZONES)


def _duration_component(minutes: int) -> ScoreComponent:
    normalized = min(minutes / DURATION_FULL_MIN * 100.0, 100.0)
    return ScoreComponent.build(DURATION_COMPONENT, float(minutes), normalized, W_DURATION)


def normalize_energy_ratio(ratio_pct: float) -> float:
    """Piecewise map of energy-vs-baseline percent onto 0-100.

    50% or less scores 0, exactly the baseline scores 50, 200% or more
    scores 100; each half is linear.
    """
    lo, mid, hi = ENERGY_RATIO_RANGE
    if ratio_pct <= mid:
        return stats.normalize_to_scale(ratio_pct, (lo, mid), (0.0, 50.0))
    return stats.normalize_to_scale(ratio_pct, (mid, hi), (50.0, 100.0))


def _energy_component(energy: float | None, baseline_energy: float | None) -> ScoreComponent:
    if energy is None:
        return ScoreComponent.build(ENERGY_COMPONENT, 0.0, 0.0, W_ENERGY)
    reference = baseline_energy if baseline_energy is not None else DEFAULT_BASELINE_ENERGY
    ratio = energy / max(reference, 1.0) * 100.0
    return ScoreComponent.build(ENERGY_COMPONENT, ratio, normalize_energy_ratio(ratio), W_ENERGY)


def raw_strain(weighted_zone_minutes: float, energy_factor: float) -> float:
    return math.log1p(weighted_zone_minutes) * max(energy_factor, MIN_ENERGY_FACTOR) * LOG_SCALE_FACTOR


def _confidence(has_zones: bool, has_workout: bool, quality: DataQualityIndicator) -> Confidence:
    points = 0
    if has_zones:
        points += 3
    if has_workout:
        points += 2
    if quality.heart_rate_completeness > 0.5:
        points += 2
    if quality.activity_completeness > 0.5:
        points += 1

    if points <= 2:
        return Confidence.LOW
    if points <= 5:
        return Confidence.MEDIUM
    return Confidence.HIGH


# ---------------------------------------------------------------------------
# Scoring
# ---------------------------------------------------------------------------


def score_strain(
    zones: ZoneDistribution | None,
    workout_minutes: int,
    active_energy: float | None,
    baseline_energy: float | None,
    quality: DataQualityIndicator,
) -> StrainScore:
    """Compute the 0-100 strain score with its component breakdown.

    Args:
        zones: Today's HR-zone minutes (None without HR samples).
        workout_minutes: Total workout duration today.
        active_energy: Today's active energy in kcal (None if unreported).
        baseline_energy: 7-day baseline active energy; 500 kcal when unknown.
        quality: Today's completeness indicator, used for confidence.

    Returns:
        StrainScore clamped to [0, 100].
    """
    zone_c = _zone_component(zones)
    duration_c = _duration_component(workout_minutes)
    energy_c = _energy_component(active_energy, baseline_energy)

    raw = raw_strain(zone_c.raw_value, energy_c.raw_value / 100.0)
    scaled = stats.round_half_away(min(raw / RAW_STRAIN_FULL * 100.0, 100.0))

    return StrainScore(
        score=int(stats.clamp(scaled, 0, 100)),
        confidence=_confidence(zones is not None, workout_minutes > 0, quality),
        components=[zone_c, duration_c, energy_c],
    )


def to_native_scale(score: float) -> float:
    """Rescale a 0-100 strain score onto 0-21."""
    return score / 100.0 * NATIVE_SCALE_MAX


def weekly_strain(daily_scores: Sequence[int]) -> int:
    """Sum of the last 7 daily scores, capped at 700."""
    return min(sum(list(daily_scores)[-7:]), WEEKLY_STRAIN_CAP)


def strain_trend(daily_scores: Sequence[int], window_days: int = 7) -> TrendDirection | None:
    values = [float(s) for s in list(daily_scores)[-window_days:]]
    trend = detect_trend(values, window_days)
    return trend.direction if trend else None


# ---------------------------------------------------------------------------
# Strain vs. recovery
# ---------------------------------------------------------------------------


class BalanceStatus(str, Enum):
    UNDER_LOADED = "under_loaded"
    BALANCED = "balanced"
    OPTIMAL = "optimal"
    PUSHING = "pushing"
    OVERREACHING = "overreaching"

    @property
    def description(self) -> str:
        return {
            BalanceStatus.UNDER_LOADED: "Low strain relative to recovery. Room for more intensity.",
            BalanceStatus.BALANCED: "Good balance between strain and recovery.",
            BalanceStatus.OPTIMAL: "Optimal training load matching your recovery capacity.",
            BalanceStatus.PUSHING: "Pushing beyond recovery. Monitor for fatigue.",
            BalanceStatus.OVERREACHING: "Strain significantly exceeds recovery. Rest recommended.",
        }[self]


def strain_recovery_balance(strain: int, recovery: int) -> BalanceStatus:
    ratio = strain / max(recovery, 1)
    if ratio < 0.5:
        return BalanceStatus.UNDER_LOADED
    if ratio < 0.8:
        return BalanceStatus.BALANCED
    if ratio < 1.2:
        return BalanceStatus.OPTIMAL
    if ratio < 1.5:
        return BalanceStatus.PUSHING
    return BalanceStatus.OVERREACHING


# ---------------------------------------------------------------------------
# Zone analysis
# ---------------------------------------------------------------------------


class IntensityLevel(str, Enum):
    NONE = "none"
    MINIMAL = "minimal"
    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"


@dataclass
class ZoneAnalysis:
    dominant_zone: HRZone | None
    intensity: IntensityLevel
    description: str


def analyze_zones(zones: ZoneDistribution) -> ZoneAnalysis:
    """Dominant zone and intensity level from the share of zone 4-5 time."""
    total = zones.total_min
    if total <= 0:
        return ZoneAnalysis(None, IntensityLevel.NONE, "No HR zone data recorded")

    # ties go to the lower zone
    dominant = max(HRZone, key=lambda z: (zones.minutes(z), -int(z)))
    high_ratio = (zones.zone4_min + zones.zone5_min) / total

    if high_ratio > 0.3:
        level = IntensityLevel.HIGH
        text = f"High intensity session with {total} min total, primarily in {dominant.label}"
    elif high_ratio > 0.1:
        level = IntensityLevel.MODERATE
        text = f"Moderate intensity with {total} min, mostly {dominant.label}"
    elif total > 30:
        level = IntensityLevel.LOW
        text = f"Low intensity activity: {total} min in {dominant.label}"
    else:
        level = IntensityLevel.MINIMAL
        text = f"Minimal cardio load: {total} min recorded"

    return ZoneAnalysis(dominant_zone=dominant, intensity=level, description=text)
