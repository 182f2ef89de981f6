"""Tests for healthtiers.analytics.strain."""

import math

import pytest

from healthtiers.analytics.components import Confidence, TrendDirection
from healthtiers.analytics.quality import DataQualityIndicator
from healthtiers.analytics.strain import (
    ENERGY_COMPONENT,
    BalanceStatus,
    IntensityLevel,
    StrainCategory,
    StrainScore,
    analyze_zones,
    normalize_energy_ratio,
    raw_strain,
    score_strain,
    strain_recovery_balance,
    strain_trend,
    to_native_scale,
    weekly_strain,
)
from healthtiers.analytics.tier1 import HRZone, ZoneDistribution

FULL = DataQualityIndicator(1.0, 1.0, 1.0, 1.0)


class TestScoreStrain:
    def test_log_scaled(self):
        # zone 2 weight 0.3 -> 30 weighted minutes; ln(31) * 10 = 34.34 of 40
        zones = ZoneDistribution(zone2_min=100)
        score = score_strain(zones, 60, 400.0, 400.0, FULL)
        assert score.score == 86
        assert score.category == StrainCategory.HIGH
        assert score.confidence == Confidence.HIGH

    def test_idle_day(self):
        score = score_strain(ZoneDistribution(), 0, None, None, FULL)
        assert score.score == 0
        assert score.category == StrainCategory.LIGHT

    def test_no_data_low_confidence(self):
        assert score_strain(None, 0, None, None, DataQualityIndicator()).confidence == Confidence.LOW

    def test_energy_at_baseline_scores_fifty(self):
        score = score_strain(None, 0, 400.0, 400.0, FULL)
        assert score.component(ENERGY_COMPONENT).normalized_value == pytest.approx(50.0)

    def test_default_baseline_energy(self):
        score = score_strain(None, 0, 500.0, None, FULL)
        assert score.component(ENERGY_COMPONENT).raw_value == pytest.approx(100.0)

    def test_low_energy_factor_floored(self):
        assert raw_strain(30.0, 0.1) == pytest.approx(math.log(31.0) * 5.0)

    def test_weights_and_range(self):
        score = score_strain(ZoneDistribution(zone5_min=300), 200, 3000.0, 400.0, FULL)
        assert score.score == 100
        assert sum(c.weight for c in score.components) == pytest.approx(1.0)
        assert all(0.0 <= c.normalized_value <= 100.0 for c in score.components)


class TestEnergyMapping:
    @pytest.mark.parametrize(
        "ratio,expected",
        [(30.0, 0.0), (50.0, 0.0), (75.0, 25.0), (100.0, 50.0), (150.0, 75.0), (200.0, 100.0), (300.0, 100.0)],
    )
    def test_piecewise(self, ratio, expected):
        assert normalize_energy_ratio(ratio) == pytest.approx(expected)


class TestAggregates:
    def test_native_scale(self):
        assert to_native_scale(100) == pytest.approx(21.0)
        assert StrainScore(50, Confidence.HIGH).native_score == pytest.approx(10.5)

    def test_weekly_cap(self):
        assert weekly_strain([100] * 8) == 700
        assert weekly_strain([50, 50, 50]) == 150

    def test_weekly_uses_last_seven(self):
        assert weekly_strain([90] + [10] * 7) == 70

    def test_trend(self):
        assert strain_trend([10, 20, 30, 40]) == TrendDirection.IMPROVING
        assert strain_trend([10, 20]) is None

    @pytest.mark.parametrize(
        "strain,recovery,status",
        [
            (20, 80, BalanceStatus.UNDER_LOADED),
            (50, 80, BalanceStatus.BALANCED),
            (100, 100, BalanceStatus.OPTIMAL),
            (65, 50, BalanceStatus.PUSHING),
            (150, 50, BalanceStatus.OVERREACHING),
        ],
    )
    def test_balance(self, strain, recovery, status):
        assert strain_recovery_balance(strain, recovery) == status


class TestZoneAnalysis:
    def test_tie_goes_to_lower_zone(self):
        analysis = analyze_zones(ZoneDistribution(zone1_min=10, zone2_min=10))
        assert analysis.dominant_zone == HRZone.ZONE_1
        assert analysis.intensity == IntensityLevel.MINIMAL

    def test_high_intensity(self):
        analysis = analyze_zones(ZoneDistribution(zone1_min=10, zone4_min=20))
        assert analysis.dominant_zone == HRZone.ZONE_4
        assert analysis.intensity == IntensityLevel.HIGH
        assert "Anaerobic" in analysis.description

    def test_low_intensity(self):
        assert analyze_zones(ZoneDistribution(zone2_min=60)).intensity == IntensityLevel.LOW

    def test_empty(self):
        analysis = analyze_zones(ZoneDistribution())
        assert analysis.dominant_zone is None
        assert analysis.intensity == IntensityLevel.NONE
