"""Recovery scoring.

Two formulas are supported, selected with RecoveryFormula:

COMPONENT (four weighted components):
    HRV z-score         40%   [-2, 2]     -> [0, 100]
    RHR delta inverted  20%   [-10, 10]   -> [0, 100]  (lower RHR is better)
    Sleep ratio         25%   [0.5, 1.5]  -> [0, 100]
    Interruptions       15%   [0, 5]      -> [100, 0]

    Missing inputs score a neutral 50 (75 for interruptions) so the weights
    always sum to 1.0.

BASELINE_PERCENT (percentage deviations from the personal baseline):
    HRV % deviation     50%   [-30%, 30%] -> [0, 100]
    RHR % inverted      30%   [-20%, 20%] -> [0, 100]
    Sleep performance   20%   score used directly
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from healthtiers.analytics import stats
from healthtiers.analytics.components import Confidence, ScoreComponent
from healthtiers.analytics.quality import DataQualityIndicator


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

W_HRV = 0.40
W_RHR = 0.20
W_SLEEP = 0.25
W_INTERRUPTIONS = 0.15

HRV_Z_RANGE = (-2.0, 2.0)
RHR_DELTA_RANGE = (-10.0, 10.0)
SLEEP_RATIO_RANGE = (0.5, 1.5)
MAX_INTERRUPTIONS = 5

NEUTRAL = 50.0
NEUTRAL_INTERRUPTIONS = 75.0

W_HRV_PCT = 0.50
W_RHR_PCT = 0.30
W_SLEEP_PERF = 0.20

HRV_PCT_RANGE = (-30.0, 30.0)
RHR_PCT_RANGE = (-20.0, 20.0)

HRV_COMPONENT = "HRV Deviation"
RHR_COMPONENT = "Resting HR Deviation"
SLEEP_DURATION_COMPONENT = "Sleep Duration"
INTERRUPTION_COMPONENT = "Sleep Interruptions"
SLEEP_PERFORMANCE_COMPONENT = "Sleep Performance"


class RecoveryFormula(str, Enum):
    AUTO = "auto"
    COMPONENT = "component"
    BASELINE_PERCENT = "baseline_percent"


class RecoveryCategory(str, Enum):
    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"

    @property
    def description(self) -> str:
        return {
            RecoveryCategory.LOW: "Your body may need more rest",
            RecoveryCategory.MODERATE: "Ready for moderate activity",
            RecoveryCategory.HIGH: "Well recovered, ready for high intensity",
        }[self]


@dataclass
class RecoveryScore:
    score: int  # 0-100
    confidence: Confidence
    components: list[ScoreComponent] = field(default_factory=list)
    formula: RecoveryFormula = RecoveryFormula.COMPONENT

    @property
    def category(self) -> RecoveryCategory:
        if self.score < 33:
            return RecoveryCategory.LOW
        if self.score < 67:
            return RecoveryCategory.MODERATE
        return RecoveryCategory.HIGH

    @property
    def readiness(self) -> str:
        """Peak / Moderate / Low readiness bands (70 and 34)."""
        if self.score >= 70:
            return "peak"
        if self.score >= 34:
            return "moderate"
        return "low"

    def component(self, name: str) -> ScoreComponent | None:
        for c in self.components:
            if c.name == name:
                return c
        return None

    def __repr__(self) -> str:
        return (
            f"RecoveryScore(score={self.score} {self.category.value}, "
            f"confidence={self.confidence.value}, formula={self.formula.value})"
        )


# ---------------------------------------------------------------------------
# Component formula
# ---------------------------------------------------------------------------


def _hrv_component(z: float | None) -> ScoreComponent:
    if z is None:
        return ScoreComponent.build(HRV_COMPONENT, 0.0, NEUTRAL, W_HRV)
    return ScoreComponent.build(HRV_COMPONENT, z, stats.normalize_to_scale(z, HRV_Z_RANGE), W_HRV)


def _rhr_component(delta: float | None) -> ScoreComponent:
    if delta is None:
        return ScoreComponent.build(RHR_COMPONENT, 0.0, NEUTRAL, W_RHR)
    return ScoreComponent.build(RHR_COMPONENT, delta, stats.normalize_to_scale(-delta, RHR_DELTA_RANGE), W_RHR)


def _sleep_duration_component(ratio: float | None) -> ScoreComponent:
    if ratio is None:
        return ScoreComponent.build(SLEEP_DURATION_COMPONENT, 0.0, NEUTRAL, W_SLEEP)
    # raw value shown as a percentage of baseline
    return ScoreComponent.build(
        SLEEP_DURATION_COMPONENT, ratio * 100.0, stats.normalize_to_scale(ratio, SLEEP_RATIO_RANGE), W_SLEEP
    )


def _interruption_component(count: int | None) -> ScoreComponent:
    if count is None:
        return ScoreComponent.build(INTERRUPTION_COMPONENT, 0.0, NEUTRAL_INTERRUPTIONS, W_INTERRUPTIONS)
    clamped = int(stats.clamp(count, 0, MAX_INTERRUPTIONS))
    normalized = (MAX_INTERRUPTIONS - clamped) / MAX_INTERRUPTIONS * 100.0
    return ScoreComponent.build(INTERRUPTION_COMPONENT, float(count), normalized, W_INTERRUPTIONS)


def _confidence(hrv: bool, rhr: bool, sleep: bool, quality: DataQualityIndicator) -> Confidence:
    points = 0
    if hrv:
        points += 3
    if rhr:
        points += 2
    if sleep:
        points += 2
    if quality.hrv_completeness > 0.5:
        points += 1
    if quality.sleep_completeness > 0.5:
        points += 1

    if points <= 3:
        return Confidence.LOW
    if points <= 6:
        return Confidence.MEDIUM
    return Confidence.HIGH


def _total(components: list[ScoreComponent]) -> int:
    total = sum(c.contribution for c in components)
    return int(stats.clamp(stats.round_half_away(total), 0, 100))


def score_recovery(
    hrv_z: float | None,
    rhr_delta: float | None,
    sleep_ratio: float | None,
    interruptions: int | None,
    quality: DataQualityIndicator,
) -> RecoveryScore | None:
    """Four-component recovery score.

    Args:
        hrv_z: HRV z-score against the 7-day baseline.
        rhr_delta: Resting HR minus its baseline, bpm.
        sleep_ratio: Sleep hours / baseline sleep hours.
        interruptions: Awakenings during sleep.
        quality: Today's completeness indicator, used for confidence.

    Returns:
        RecoveryScore, or None when HRV, RHR and sleep are all missing.
    """
    if hrv_z is None and rhr_delta is None and sleep_ratio is None:
        return None

    components = [
        _hrv_component(hrv_z),
        _rhr_component(rhr_delta),
        _sleep_duration_component(sleep_ratio),
        _interruption_component(interruptions),
    ]
    return RecoveryScore(
        score=_total(components),
        confidence=_confidence(hrv_z is not None, rhr_delta is not None, sleep_ratio is not None, quality),
        components=components,
        formula=RecoveryFormula.COMPONENT,
    )


# ---------------------------------------------------------------------------
# Baseline-percent formula
# ---------------------------------------------------------------------------


def score_recovery_percent(
    hrv_deviation_pct: float,
    rhr_deviation_pct: float,
    sleep_performance: int | None,
    quality: DataQualityIndicator,
) -> RecoveryScore:
    """Recovery from percentage deviations and sleep performance.

    A missing sleep performance score counts as a neutral 50.
    """
    hrv_norm = stats.normalize_to_scale(hrv_deviation_pct, HRV_PCT_RANGE)
    rhr_norm = stats.normalize_to_scale(-rhr_deviation_pct, RHR_PCT_RANGE)

    if sleep_performance is None:
        sleep_c = ScoreComponent.build(SLEEP_PERFORMANCE_COMPONENT, 0.0, NEUTRAL, W_SLEEP_PERF)
    else:
        sleep_c = ScoreComponent.build(
            SLEEP_PERFORMANCE_COMPONENT, float(sleep_performance), float(sleep_performance), W_SLEEP_PERF
        )

    components = [
        ScoreComponent.build(HRV_COMPONENT, hrv_deviation_pct, hrv_norm, W_HRV_PCT),
        ScoreComponent.build(RHR_COMPONENT, rhr_deviation_pct, rhr_norm, W_RHR_PCT),
        sleep_c,
    ]
    return RecoveryScore(
        score=_total(components),
        confidence=_confidence(True, True, sleep_performance is not None, quality),
        components=components,
        formula=RecoveryFormula.BASELINE_PERCENT,
    )


# ---------------------------------------------------------------------------
# Recommendations
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RecoveryRecommendation:
    kind: str  # rest / moderate / train / hrv / rhr / sleep
    title: str
    description: str


_CATEGORY_RECOMMENDATIONS = {
    RecoveryCategory.LOW: RecoveryRecommendation(
        "rest", "Prioritize Rest", "Your body shows signs of incomplete recovery. Consider light activity only."
    ),
    RecoveryCategory.MODERATE: RecoveryRecommendation(
        "moderate",
        "Moderate Activity OK",
        "You're partially recovered. Moderate intensity training is appropriate.",
    ),
    RecoveryCategory.HIGH: RecoveryRecommendation(
        "train", "Ready for Training", "Good recovery indicators. Your body can handle high intensity."
    ),
}


def recommendations(score: RecoveryScore) -> list[RecoveryRecommendation]:
    recs = [_CATEGORY_RECOMMENDATIONS[score.category]]

    hrv = score.component(HRV_COMPONENT)
    if hrv is not None and hrv.normalized_value < 40:
        recs.append(
            RecoveryRecommendation(
                "hrv", "HRV Below Baseline", "Consider stress reduction techniques and ensure adequate sleep."
            )
        )

    rhr = score.component(RHR_COMPONENT)
    if rhr is not None and rhr.normalized_value < 40:
        recs.append(
            RecoveryRecommendation(
                "rhr",
                "Elevated Resting HR",
                "Your resting heart rate is elevated. Monitor for signs of overtraining.",
            )
        )

    sleep = score.component(SLEEP_DURATION_COMPONENT) or score.component(SLEEP_PERFORMANCE_COMPONENT)
    if sleep is not None and sleep.normalized_value < 50:
        recs.append(
            RecoveryRecommendation(
                "sleep", "Sleep Deficit", "You're not meeting your sleep baseline. Prioritize more sleep tonight."
            )
        )

    return recs
