"""Behavioral pattern detection over a scored history.

Four hypotheses are tested, each pairing a behavioral input with a
physiological output and computing a Pearson correlation:

  sleep_timing      bedtime                  -> next-day recovery
  rest_day          rest day (strain < 30)   -> next-day HRV
  workout_recovery  workout load             -> next-day recovery
  consistency       22:00-23:59 bedtime      -> same-day recovery

A pattern is emitted only when both the correlation magnitude and the
effect size (difference of group means) clear their minimums; anything
weaker is dropped rather than reported with low confidence.
"""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from enum import Enum
from typing import TYPE_CHECKING, Callable, Sequence

from healthtiers.analytics import stats
from healthtiers.analytics.codec import JsonMixin
from healthtiers.analytics.components import Confidence
from healthtiers.analytics.tier1 import signed_bedtime_minutes

if TYPE_CHECKING:
    from healthtiers.analytics.summary import DailyMetrics

logger = logging.getLogger(__name__)


MIN_SAMPLE_SIZE = 7
MIN_CONSISTENCY_HISTORY = 14

# (min |r|, min |impact|) per hypothesis
SLEEP_TIMING_GATE = (0.25, 5.0)
REST_DAY_GATE = (0.2, 3.0)
WORKOUT_RECOVERY_GATE = (0.2, 5.0)
CONSISTENCY_GATE = (0.3, 5.0)

REST_DAY_STRAIN = 30
EARLY_BEDTIME_MIN = -60  # 23:00, evening bedtimes are negative
CONSISTENT_HOURS = (22, 23)
MIN_GROUP_SIZE = 3
DEFAULT_WORKOUT_STRAIN = 50.0


class PatternType(str, Enum):
    SLEEP_TIMING = "sleep_timing"
    REST_DAY = "rest_day"
    WORKOUT_RECOVERY = "workout_recovery"
    CONSISTENCY = "consistency"
    HRV_CORRELATION = "hrv_correlation"

    @property
    def display_name(self) -> str:
        return {
            PatternType.SLEEP_TIMING: "Sleep Timing",
            PatternType.REST_DAY: "Rest Days",
            PatternType.WORKOUT_RECOVERY: "Workout Recovery",
            PatternType.CONSISTENCY: "Consistency",
            PatternType.HRV_CORRELATION: "HRV Patterns",
        }[self]


@dataclass(frozen=True)
class DetectedPattern(JsonMixin):
    pattern_type: PatternType
    input_metric: str
    output_metric: str
    correlation: float  # -1..1
    sample_size: int
    impact: float  # difference of group means
    description: str
    recommendation: str
    detected_on: date
    is_active: bool = True

    def __post_init__(self):
        if not isinstance(self.pattern_type, PatternType):
            try:
                object.__setattr__(self, "pattern_type", PatternType(self.pattern_type))
            except ValueError:
                raise ValueError(f"Unknown pattern type: {self.pattern_type!r}") from None
        if not -1.0 <= self.correlation <= 1.0:
            raise ValueError(f"Correlation must be within [-1, 1], got {self.correlation}")

    @property
    def confidence(self) -> Confidence:
        return pattern_confidence(self.sample_size, self.correlation)

    @property
    def is_positive(self) -> bool:
        return self.correlation > 0

    @property
    def correlation_strength(self) -> str:
        r = abs(self.correlation)
        if r >= 0.7:
            return "strong"
        if r >= 0.4:
            return "moderate"
        if r >= 0.2:
            return "weak"
        return "very weak"

    @property
    def impact_description(self) -> str:
        sign = "+" if self.impact >= 0 else ""
        unit = "%" if self.output_metric in ("recovery", "hrv") else ""
        return f"{sign}{int(self.impact)}{unit} {self.output_metric}"

    def deactivated(self) -> DetectedPattern:
        """A dismissed copy; the original is left untouched."""
        return dataclasses.replace(self, is_active=False)


def pattern_confidence(sample_size: int, correlation: float) -> Confidence:
    r = abs(correlation)
    if sample_size >= 14 and r >= 0.5:
        return Confidence.HIGH
    if sample_size >= 7 and r >= 0.3:
        return Confidence.MEDIUM
    return Confidence.LOW


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _bedtime(m: DailyMetrics) -> datetime | None:
    return m.sleep.bedtime if m.sleep is not None else None


def _next_day_pairs(
    history: Sequence[DailyMetrics],
    x_of: Callable[[DailyMetrics], float | None],
    y_of: Callable[[DailyMetrics], float | None],
) -> list[tuple[float, float]]:
    """(x on day d, y on day d+1) for every calendar-adjacent pair with both values."""
    by_day = {m.day: m for m in history}
    pairs = []
    for m in sorted(history, key=lambda m: m.day):
        nxt = by_day.get(m.day + timedelta(days=1))
        if nxt is None:
            continue
        x, y = x_of(m), y_of(nxt)
        if x is not None and y is not None:
            pairs.append((float(x), float(y)))
    return pairs


def _recovery(m: DailyMetrics) -> float | None:
    return m.recovery.score if m.recovery is not None else None


def _passes(name: str, r: float | None, impact: float, gate: tuple[float, float]) -> bool:
    min_r, min_impact = gate
    if r is None or abs(r) < min_r:
        logger.debug("Suppressed %s pattern: correlation %s below %.2f", name, r, min_r)
        return False
    if abs(impact) < min_impact:
        logger.debug("Suppressed %s pattern: impact %.1f below %.1f", name, impact, min_impact)
        return False
    return True


def _group_mean(values: list[float]) -> float:
    return sum(values) / len(values)


# ---------------------------------------------------------------------------
# Hypotheses
# ---------------------------------------------------------------------------


def detect_sleep_timing(history: Sequence[DailyMetrics], detected_on: date) -> DetectedPattern | None:
    pairs = _next_day_pairs(
        history,
        lambda m: signed_bedtime_minutes(_bedtime(m)) if _bedtime(m) else None,
        _recovery,
    )
    if len(pairs) < MIN_SAMPLE_SIZE:
        return None

    r = stats.pearson_correlation([p[0] for p in pairs], [p[1] for p in pairs])
    early = [y for x, y in pairs if x < EARLY_BEDTIME_MIN]
    late = [y for x, y in pairs if x >= EARLY_BEDTIME_MIN]
    if not early or not late:
        return None
    impact = _group_mean(early) - _group_mean(late)
    if not _passes("sleep_timing", r, impact, SLEEP_TIMING_GATE):
        return None

    if impact > 0:
        description = f"Sleeping before 11pm correlates with {int(impact)}% higher recovery"
        recommendation = "Try to get to bed before 11pm to optimize recovery"
    else:
        description = "Later bedtimes don't seem to hurt your recovery"
        recommendation = "Your recovery is consistent regardless of bedtime"

    return DetectedPattern(
        pattern_type=PatternType.SLEEP_TIMING,
        input_metric="bedtime",
        output_metric="recovery",
        correlation=r,
        sample_size=len(pairs),
        impact=impact,
        description=description,
        recommendation=recommendation,
        detected_on=detected_on,
    )


def detect_rest_day(history: Sequence[DailyMetrics], detected_on: date) -> DetectedPattern | None:
    pairs = _next_day_pairs(
        history,
        lambda m: (1.0 if m.strain.score < REST_DAY_STRAIN else 0.0) if m.strain else None,
        lambda m: m.hrv_value,
    )
    if len(pairs) < MIN_SAMPLE_SIZE:
        return None

    rest = [y for x, y in pairs if x == 1.0]
    active = [y for x, y in pairs if x == 0.0]
    if len(rest) < MIN_GROUP_SIZE or len(active) < MIN_GROUP_SIZE:
        return None
    impact = _group_mean(rest) - _group_mean(active)
    r = stats.pearson_correlation([p[0] for p in pairs], [p[1] for p in pairs])
    if not _passes("rest_day", r, impact, REST_DAY_GATE):
        return None

    if impact > 0:
        description = f"Rest days (strain < 30) correlate with +{int(impact)}ms HRV the next day"
        recommendation = "Consider scheduling rest days after high-strain workouts"
    else:
        description = "High activity days don't seem to hurt your HRV"
        recommendation = "Your body recovers well from activity"

    return DetectedPattern(
        pattern_type=PatternType.REST_DAY,
        input_metric="strain",
        output_metric="hrv",
        correlation=r,
        sample_size=len(pairs),
        impact=impact,
        description=description,
        recommendation=recommendation,
        detected_on=detected_on,
    )


def _workout_load(m: DailyMetrics) -> float | None:
    if not m.has_workout_data:
        return None
    strain = float(m.strain.score) if m.strain is not None else DEFAULT_WORKOUT_STRAIN
    return m.workouts.total_duration_min * strain / 50.0


def detect_workout_recovery(history: Sequence[DailyMetrics], detected_on: date) -> DetectedPattern | None:
    pairs = _next_day_pairs(history, _workout_load, _recovery)
    if len(pairs) < MIN_SAMPLE_SIZE:
        return None

    r = stats.pearson_correlation([p[0] for p in pairs], [p[1] for p in pairs])
    ordered = sorted(pairs, key=lambda p: p[0])
    third = len(ordered) // 3
    low = [y for _, y in ordered[:third]]
    high = [y for _, y in ordered[len(ordered) - third:]]
    if not low or not high:
        return None
    impact = _group_mean(low) - _group_mean(high)
    if not _passes("workout_recovery", r, impact, WORKOUT_RECOVERY_GATE):
        return None

    if r < -WORKOUT_RECOVERY_GATE[0]:
        description = f"High-intensity workouts correlate with {int(abs(impact))}% lower next-day recovery"
        recommendation = "Plan recovery days after intense sessions"
    else:
        description = "Your recovery handles workout intensity well"
        recommendation = "Keep training consistently - your body adapts well"

    return DetectedPattern(
        pattern_type=PatternType.WORKOUT_RECOVERY,
        input_metric="workout_intensity",
        output_metric="recovery",
        correlation=r,
        sample_size=len(pairs),
        impact=impact,
        description=description,
        recommendation=recommendation,
        detected_on=detected_on,
    )


def detect_consistency(history: Sequence[DailyMetrics], detected_on: date) -> DetectedPattern | None:
    """Recovery on days with a 22:00-23:59 bedtime vs. all other bedtimes."""
    if len(history) < MIN_CONSISTENCY_HISTORY:
        return None
    if sum(1 for m in history if _bedtime(m) is not None) < MIN_SAMPLE_SIZE:
        return None

    lo, hi = CONSISTENT_HOURS
    pairs = []
    for m in history:
        bedtime = _bedtime(m)
        if bedtime is None or m.recovery is None:
            continue
        pairs.append((1.0 if lo <= bedtime.hour <= hi else 0.0, float(m.recovery.score)))

    consistent = [y for x, y in pairs if x == 1.0]
    other = [y for x, y in pairs if x == 0.0]
    if len(consistent) < MIN_GROUP_SIZE or len(other) < MIN_GROUP_SIZE:
        return None
    impact = _group_mean(consistent) - _group_mean(other)
    # point-biserial correlation
    r = stats.pearson_correlation([p[0] for p in pairs], [p[1] for p in pairs])
    if not _passes("consistency", r, impact, CONSISTENCY_GATE):
        return None

    if impact > 0:
        description = f"Consistent bedtime (10-11:59pm) correlates with {int(impact)}% better recovery"
        recommendation = "Try to maintain a consistent sleep schedule"
    else:
        description = "Your recovery doesn't depend much on bedtime consistency"
        recommendation = "Focus on sleep quality over timing"

    return DetectedPattern(
        pattern_type=PatternType.CONSISTENCY,
        input_metric="sleep_consistency",
        output_metric="recovery",
        correlation=r,
        sample_size=len(pairs),
        impact=impact,
        description=description,
        recommendation=recommendation,
        detected_on=detected_on,
    )


_DETECTORS = {
    PatternType.SLEEP_TIMING: detect_sleep_timing,
    PatternType.REST_DAY: detect_rest_day,
    PatternType.WORKOUT_RECOVERY: detect_workout_recovery,
    PatternType.CONSISTENCY: detect_consistency,
}


def detect_patterns(
    history: Sequence[DailyMetrics],
    detected_on: date | None = None,
) -> list[DetectedPattern]:
    """Run every hypothesis over *history* (needs at least 7 days).

    Args:
        history: Fully scored daily metrics, any order.
        detected_on: Date stamped on emitted patterns; defaults to the
            latest day in *history*.
    """
    if len(history) < MIN_SAMPLE_SIZE:
        return []
    if detected_on is None:
        detected_on = max(m.day for m in history)

    found = []
    for kind, detector in _DETECTORS.items():
        pattern = detector(history, detected_on)
        if pattern is not None:
            logger.info("Detected %s pattern (r=%.2f, impact=%.1f)", kind.value, pattern.correlation, pattern.impact)
            found.append(pattern)
    return found
