"""Tests for healthtiers.analytics.tier1 -- factual daily aggregates."""

import logging
from datetime import timedelta

import pytest

from healthtiers.analytics.tier1 import (
    SLEEP_SESSION_GAP_SEC,
    ActivityIntensity,
    ActivitySummary,
    HRZone,
    RecoveryQuality,
    SleepStageBreakdown,
    SleepTiming,
    WorkoutSummary,
    build_factual_summary,
    classify_zone,
    hr_recovery,
    segment_sleep,
    signed_bedtime_minutes,
    summarize_heart_rate,
    summarize_hrv,
    summarize_sleep,
    zone_distribution,
)
from healthtiers.samples import (
    HeartRateSample,
    HRVSample,
    RawDailySamples,
    RestingHeartRateSample,
    SleepSample,
    SleepStage,
    WorkoutActivityType,
)

from tests.conftest import DAY, at, make_hr_samples, make_raw_day, make_sleep_samples, make_workout


class TestHeartRate:
    def test_summary(self):
        samples = [HeartRateSample(at(DAY, 9, i), bpm) for i, bpm in enumerate([60.0, 70.0, 80.0])]
        hr = summarize_heart_rate(samples)
        assert hr.avg_bpm == 70.0
        assert hr.min_bpm == 60.0
        assert hr.max_bpm == 80.0
        assert hr.sample_count == 3
        assert hr.resting_bpm is None

    def test_latest_valid_resting(self, caplog):
        resting = [
            RestingHeartRateSample(at(DAY, 6), 52.0),
            RestingHeartRateSample(at(DAY, 7), 200.0),  # impossible
        ]
        with caplog.at_level(logging.WARNING):
            hr = summarize_heart_rate(make_hr_samples(), resting)
        assert hr.resting_bpm == 52.0
        assert "Rejected resting HR" in caplog.text

    def test_empty(self):
        assert summarize_heart_rate([]) is None


class TestHRV:
    def test_nightly_kept_separately(self):
        samples = [
            HRVSample(at(DAY, 2), 40.0),
            HRVSample(at(DAY, 4), 50.0),
            HRVSample(at(DAY, 15), 90.0),  # afternoon, outside the sleep window
        ]
        hrv = summarize_hrv(samples, DAY)
        assert hrv.avg_sdnn == pytest.approx(60.0)
        assert hrv.nightly_sdnn == pytest.approx(45.0)
        assert hrv.value == pytest.approx(45.0)

    def test_previous_evening_in_window(self):
        hrv = summarize_hrv([HRVSample(at(DAY - timedelta(days=1), 22), 48.0)], DAY)
        assert hrv.nightly_sdnn == 48.0

    def test_invalid_values_rejected(self):
        assert summarize_hrv([HRVSample(at(DAY, 3), 400.0)], DAY) is None

    def test_daytime_only_falls_back_to_average(self):
        hrv = summarize_hrv([HRVSample(at(DAY, 14), 60.0)], DAY)
        assert hrv.nightly_sdnn is None
        assert hrv.value == 60.0


class TestSleepSegmentation:
    def test_long_gap_splits_sessions(self):
        night = SleepSample(at(DAY, 0), at(DAY, 6), SleepStage.CORE)
        nap = SleepSample(at(DAY, 9), at(DAY, 10), SleepStage.CORE)  # 3 h later
        sessions = segment_sleep([nap, night])
        assert len(sessions) == 2
        assert sessions[0].start == at(DAY, 0)

    def test_short_gap_same_session(self):
        a = SleepSample(at(DAY, 0), at(DAY, 3), SleepStage.CORE)
        b = SleepSample(at(DAY, 4), at(DAY, 6), SleepStage.DEEP)
        assert len(segment_sleep([a, b])) == 1

    def test_gap_threshold_is_two_hours(self):
        assert SLEEP_SESSION_GAP_SEC == 7200.0
        a = SleepSample(at(DAY, 0), at(DAY, 1), SleepStage.CORE)
        b = SleepSample(at(DAY, 3), at(DAY, 4), SleepStage.CORE)  # exactly 2 h
        assert len(segment_sleep([a, b])) == 1


class TestSleepSummary:
    def test_totals_and_interruptions(self):
        sleep = summarize_sleep(make_sleep_samples(hours=8.0, awakenings=2), DAY)
        assert sleep.total_sleep_hours == pytest.approx(8.0)
        assert sleep.total_interruptions == 2
        assert sleep.average_efficiency == pytest.approx(480 / 490 * 100)

    def test_primary_session_timing(self):
        sleep = summarize_sleep(make_sleep_samples(bedtime=(23, 0), hours=8.0), DAY)
        assert sleep.bedtime == at(DAY - timedelta(days=1), 23)
        assert sleep.wake_time == at(DAY, 7)
        assert sleep.timing.bedtime_minutes == -60
        assert sleep.timing.wake_minutes == 420

    def test_after_midnight_bedtime_positive(self):
        timing = SleepTiming(bedtime=at(DAY, 1, 30), wake_time=at(DAY, 9))
        assert timing.bedtime_minutes == 90

    def test_afternoon_counts_as_evening(self):
        assert signed_bedtime_minutes(at(DAY, 15)) == -540
        assert signed_bedtime_minutes(at(DAY, 11, 59)) == 719

    def test_in_bed_not_counted(self):
        samples = [
            SleepSample(at(DAY, 0), at(DAY, 1), SleepStage.IN_BED),
            SleepSample(at(DAY, 1), at(DAY, 7), SleepStage.CORE),
        ]
        sleep = summarize_sleep(samples, DAY)
        assert sleep.total_sleep_hours == pytest.approx(6.0)
        assert sleep.combined_stage_breakdown.total_min == 360

    def test_over_24_hours_rejected(self):
        samples = [SleepSample(at(DAY, 0), at(DAY, 0) + timedelta(hours=25), SleepStage.CORE)]
        assert summarize_sleep(samples, DAY) is None

    def test_empty(self):
        assert summarize_sleep([], DAY) is None

    def test_stage_percentages(self):
        b = SleepStageBreakdown(deep_min=60, core_min=240, rem_min=120)
        assert b.deep_pct == pytest.approx(60 / 420 * 100)
        assert b.rem_pct == pytest.approx(120 / 420 * 100)
        assert SleepStageBreakdown().deep_pct == 0.0


class TestWorkouts:
    def test_strain_contribution(self):
        # 60 min * running 1.3 * (150 / 120)
        w = WorkoutSummary(DAY, [make_workout(minutes=60, avg_hr=150.0)])
        assert w.strain_contribution == pytest.approx(97.5)

    def test_hr_factor_capped(self):
        w = WorkoutSummary(DAY, [make_workout(minutes=60, avg_hr=200.0)])
        assert w.strain_contribution == pytest.approx(60 * 1.3 * 1.5)

    def test_no_heart_rate(self):
        w = WorkoutSummary(DAY, [make_workout(minutes=60, avg_hr=None)])
        assert w.strain_contribution == pytest.approx(78.0)

    def test_primary_activity(self):
        w = WorkoutSummary(
            DAY,
            [
                make_workout(minutes=20, activity=WorkoutActivityType.YOGA),
                make_workout(start_hour=18, minutes=50, activity=WorkoutActivityType.CYCLING),
            ],
        )
        assert w.primary_activity == WorkoutActivityType.CYCLING
        assert w.total_duration_min == 70
        assert w.total_workouts == 2


class TestActivity:
    def test_intensity_band(self):
        a = ActivitySummary(DAY, steps=9000, active_energy_kcal=500.0, basal_energy_kcal=1500.0)
        assert a.intensity == ActivityIntensity.MODERATE

    def test_intensity_needs_both_energies(self):
        assert ActivitySummary(DAY, active_energy_kcal=500.0).intensity is None


class TestZones:
    @pytest.mark.parametrize(
        "bpm,zone",
        [
            (100.0, HRZone.ZONE_1),
            (111.0, HRZone.ZONE_2),  # exactly 60%
            (120.0, HRZone.ZONE_2),
            (140.0, HRZone.ZONE_3),
            (160.0, HRZone.ZONE_4),
            (170.0, HRZone.ZONE_5),
        ],
    )
    def test_classify(self, bpm, zone):
        assert classify_zone(bpm, 185.0) == zone

    def test_distribution_per_minute(self):
        samples = make_hr_samples(bpm=100.0, count=30) + make_hr_samples(bpm=170.0, count=30, start_hour=10)
        zones = zone_distribution(samples, 185.0)
        assert zones.zone1_min == 30
        assert zones.zone5_min == 30
        assert zones.total_min == 60

    def test_dense_sampling_uses_median_interval(self):
        # 40 samples 30 s apart are 20 minutes, not 40
        zones = zone_distribution(make_hr_samples(bpm=150.0, count=40, interval_sec=30.0), 185.0)
        assert zones.zone4_min == 20

    def test_weighted_minutes(self):
        zones = zone_distribution(make_hr_samples(bpm=170.0, count=10), 185.0)
        assert zones.weighted_strain_minutes == pytest.approx(15.0)

    def test_no_samples(self):
        assert zone_distribution([], 185.0) is None


class TestHRRecovery:
    def test_drops_and_quality(self):
        workout = make_workout(start_hour=17, minutes=60, max_hr=170.0)
        samples = [
            HeartRateSample(at(DAY, 18, 1), 140.0),
            HeartRateSample(at(DAY, 18, 2, 10), 125.0),
            HeartRateSample(at(DAY, 18, 3), 115.0),
        ]
        rec = hr_recovery(workout, samples)
        assert rec.drop_1min == 30.0
        assert rec.drop_2min == 45.0
        assert rec.drop_3min == 55.0
        assert rec.quality == RecoveryQuality.EXCELLENT

    def test_peak_from_samples_without_reported_max(self):
        workout = make_workout(start_hour=17, minutes=60, max_hr=None)
        samples = [
            HeartRateSample(at(DAY, 17, 30), 165.0),
            HeartRateSample(at(DAY, 18, 1), 150.0),
        ]
        rec = hr_recovery(workout, samples)
        assert rec.peak_hr == 165.0
        assert rec.quality == RecoveryQuality.AVERAGE
        assert rec.hr_2min is None

    def test_no_post_workout_samples(self):
        workout = make_workout(start_hour=17, minutes=60)
        assert hr_recovery(workout, [HeartRateSample(at(DAY, 19), 90.0)]) is None


class TestBuildFactualSummary:
    def test_complete_day(self):
        summary = build_factual_summary(make_raw_day(workouts=[make_workout()]))
        assert summary.heart_rate.resting_bpm == 50.0
        assert summary.hrv.value == 45.0
        assert summary.sleep.total_sleep_hours == pytest.approx(8.0)
        assert summary.workouts.total_workouts == 1
        assert summary.activity.steps == 8000
        assert summary.zones.total_min == 120

    def test_empty_day(self):
        summary = build_factual_summary(RawDailySamples(day=DAY))
        assert summary.heart_rate is None
        assert summary.hrv is None
        assert summary.sleep is None
        assert summary.workouts is None
        assert summary.activity is None
        assert summary.zones is None
        assert summary.hr_recovery is None
