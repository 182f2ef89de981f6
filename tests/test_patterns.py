"""Tests for healthtiers.analytics.patterns."""

from datetime import timedelta

import pytest

from healthtiers.analytics.components import Confidence
from healthtiers.analytics.patterns import (
    DetectedPattern,
    PatternType,
    detect_consistency,
    detect_patterns,
    detect_rest_day,
    detect_sleep_timing,
    detect_workout_recovery,
    pattern_confidence,
)

from tests.conftest import DAY, days_from, make_metrics, make_workout


def _by_type(patterns, kind):
    return next((p for p in patterns if p.pattern_type == kind), None)


def _bedtime_history(early_recovery=80, late_recovery=65, days=15):
    """Alternating 22:00 / 00:30 bedtimes; recovery follows the previous night."""
    history = []
    for i, d in enumerate(days_from(DAY, days)):
        bedtime = (22, 0) if i % 2 == 0 else (0, 30)
        if i == 0:
            recovery = 70
        else:
            recovery = early_recovery if (i - 1) % 2 == 0 else late_recovery
        history.append(make_metrics(d, recovery=recovery, bedtime=bedtime))
    return history


class TestSleepTiming:
    def test_early_bedtime_improves_recovery(self):
        patterns = detect_patterns(_bedtime_history())
        pattern = _by_type(patterns, PatternType.SLEEP_TIMING)
        assert pattern is not None
        assert pattern.correlation == pytest.approx(-1.0)
        assert pattern.impact == pytest.approx(15.0)
        assert pattern.sample_size == 14
        assert pattern.confidence == Confidence.HIGH
        assert "15% higher recovery" in pattern.description
        assert pattern.detected_on == DAY + timedelta(days=14)

    def test_small_effect_suppressed(self):
        history = _bedtime_history(early_recovery=70, late_recovery=68)
        assert detect_sleep_timing(history, DAY) is None

    def test_non_adjacent_days_not_paired(self):
        history = _bedtime_history()[::2]
        assert detect_sleep_timing(history, DAY) is None


class TestRestDay:
    def test_rest_days_raise_next_day_hrv(self):
        history = []
        for i, d in enumerate(days_from(DAY, 14)):
            hrv = 50.0 if i == 0 else (55.0 if (i - 1) % 2 == 0 else 45.0)
            history.append(make_metrics(d, strain=20 if i % 2 == 0 else 60, hrv=hrv))
        pattern = detect_rest_day(history, DAY)
        assert pattern is not None
        assert pattern.impact == pytest.approx(10.0)
        assert pattern.correlation == pytest.approx(1.0)
        assert "+10ms HRV" in pattern.description

    def test_needs_both_groups(self):
        history = [make_metrics(d, strain=60) for d in days_from(DAY, 14)]
        assert detect_rest_day(history, DAY) is None


class TestWorkoutRecovery:
    def test_long_workouts_lower_recovery(self):
        history = []
        for i, d in enumerate(days_from(DAY, 14)):
            minutes = 30 if i % 2 == 0 else 90
            recovery = 65 if i == 0 else (75 if (i - 1) % 2 == 0 else 55)
            history.append(
                make_metrics(d, recovery=recovery, strain=50, workouts=[make_workout(d, minutes=minutes)])
            )
        pattern = detect_workout_recovery(history, DAY)
        assert pattern is not None
        assert pattern.correlation == pytest.approx(-1.0)
        assert pattern.impact == pytest.approx(20.0)
        assert "20% lower next-day recovery" in pattern.description

    def test_no_workouts(self):
        history = [make_metrics(d, recovery=60) for d in days_from(DAY, 14)]
        assert detect_workout_recovery(history, DAY) is None


class TestConsistency:
    @staticmethod
    def _history(window_recovery=80, other_recovery=60, days=14):
        """Alternating 22:30 / 01:00 bedtimes; recovery scored the same day."""
        history = []
        for i, d in enumerate(days_from(DAY, days)):
            if i % 2 == 0:
                history.append(make_metrics(d, recovery=window_recovery, bedtime=(22, 30)))
            else:
                history.append(make_metrics(d, recovery=other_recovery, bedtime=(1, 0)))
        return history

    def test_window_bedtimes_improve_recovery(self):
        pattern = detect_consistency(self._history(), DAY)
        assert pattern is not None
        assert pattern.pattern_type == PatternType.CONSISTENCY
        assert pattern.correlation == pytest.approx(1.0)
        assert pattern.impact == pytest.approx(20.0)
        assert pattern.sample_size == 14
        assert pattern.confidence == Confidence.HIGH
        assert "20% better recovery" in pattern.description
        assert pattern.recommendation == "Try to maintain a consistent sleep schedule"

    def test_negative_impact_wording(self):
        pattern = detect_consistency(self._history(window_recovery=60, other_recovery=80), DAY)
        assert pattern is not None
        assert pattern.impact == pytest.approx(-20.0)
        assert pattern.description == "Your recovery doesn't depend much on bedtime consistency"
        assert pattern.recommendation == "Focus on sleep quality over timing"

    def test_needs_fourteen_days(self):
        assert detect_consistency(self._history(days=13), DAY) is None

    def test_needs_seven_bedtimes(self):
        history = [
            make_metrics(d, recovery=80 if i % 2 == 0 else 60, bedtime=(22, 30) if i % 2 == 0 else (1, 0),
                         sleep_hours=8.0 if i < 6 else None)
            for i, d in enumerate(days_from(DAY, 14))
        ]
        assert detect_consistency(history, DAY) is None

    def test_needs_three_per_group(self):
        history = [
            make_metrics(d, recovery=80 if i < 2 else 60, bedtime=(22, 30) if i < 2 else (1, 0))
            for i, d in enumerate(days_from(DAY, 14))
        ]
        assert detect_consistency(history, DAY) is None

    def test_small_impact_suppressed(self):
        assert detect_consistency(self._history(window_recovery=70, other_recovery=67), DAY) is None

    def test_weak_correlation_suppressed(self):
        # window nights average 65 against a flat 60, but swing widely
        window_scores = iter([95, 35, 95, 35, 95, 35, 65])
        history = []
        for i, d in enumerate(days_from(DAY, 14)):
            if i % 2 == 0:
                history.append(make_metrics(d, recovery=next(window_scores), bedtime=(22, 30)))
            else:
                history.append(make_metrics(d, recovery=60, bedtime=(1, 0)))
        assert detect_consistency(history, DAY) is None


class TestDetectPatterns:
    def test_short_history(self):
        assert detect_patterns(_bedtime_history(days=6)) == []

    def test_flat_history_nothing_found(self):
        history = [make_metrics(d, recovery=60, strain=40) for d in days_from(DAY, 14)]
        assert detect_patterns(history) == []


class TestDetectedPattern:
    def _pattern(self, **kw):
        fields = dict(
            pattern_type=PatternType.SLEEP_TIMING,
            input_metric="bedtime",
            output_metric="recovery",
            correlation=-0.6,
            sample_size=14,
            impact=15.4,
            description="d",
            recommendation="r",
            detected_on=DAY,
        )
        fields.update(kw)
        return DetectedPattern(**fields)

    def test_correlation_bounds(self):
        with pytest.raises(ValueError):
            self._pattern(correlation=1.5)

    def test_unknown_type(self):
        with pytest.raises(ValueError, match="Unknown pattern type"):
            self._pattern(pattern_type="bogus")

    def test_type_from_string(self):
        assert self._pattern(pattern_type="rest_day").pattern_type == PatternType.REST_DAY

    def test_deactivated_copy(self):
        pattern = self._pattern()
        dismissed = pattern.deactivated()
        assert not dismissed.is_active
        assert pattern.is_active

    def test_display(self):
        pattern = self._pattern()
        assert pattern.impact_description == "+15% recovery"
        assert pattern.correlation_strength == "moderate"
        assert not pattern.is_positive

    def test_round_trip(self):
        pattern = self._pattern()
        assert DetectedPattern.from_json(pattern.to_json()) == pattern

    @pytest.mark.parametrize(
        "n,r,confidence",
        [(14, 0.5, Confidence.HIGH), (14, 0.4, Confidence.MEDIUM), (7, 0.3, Confidence.MEDIUM), (6, 0.9, Confidence.LOW)],
    )
    def test_confidence(self, n, r, confidence):
        assert pattern_confidence(n, r) == confidence
