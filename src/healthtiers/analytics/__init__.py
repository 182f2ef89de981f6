"""Tiered metrics and scoring engine for daily health samples.

Modules:
    stats       -- Statistical primitives (mean, std-dev, regression, correlation)
    components  -- Confidence, trend direction and score components
    tier1       -- Tier 1: factual per-day aggregates from raw samples
    quality     -- Data completeness and physiological validation
    gaps        -- Gap detection and confidence downgrades
    baseline    -- Rolling 7 / 28-day baselines and trends
    tier2       -- Tier 2: load, sleep debt, baseline deviations
    consistency -- Sleep schedule consistency
    recovery    -- Recovery score (component and baseline-percent formulas)
    strain      -- Strain score
    sleep       -- Sleep performance score
    patterns    -- Correlation-based behavioral patterns
    week        -- Calendar-week rollups
    monitor     -- Five-metric daily health check
    insights    -- Plain-language daily insights
    summary     -- DailyMetrics aggregate
    pipeline    -- End-to-end daily processing
"""

from healthtiers.analytics.components import Confidence, ScoreComponent, TrendDirection
from healthtiers.analytics.tier1 import DailyFactualSummary, build_factual_summary
from healthtiers.analytics.quality import DataQualityIndicator, assess_completeness
from healthtiers.analytics.gaps import DataGap, OverallDataQuality, detect_gaps, assess_overall_quality
from healthtiers.analytics.baseline import Baseline, build_baseline, calculate_baselines
from healthtiers.analytics.tier2 import Tier2Metrics, compute_tier2
from healthtiers.analytics.consistency import ConsistencyMetrics, calculate_consistency
from healthtiers.analytics.recovery import RecoveryFormula, RecoveryScore, score_recovery, score_recovery_percent
from healthtiers.analytics.strain import StrainScore, score_strain
from healthtiers.analytics.sleep import SleepPerformance, score_sleep_performance
from healthtiers.analytics.patterns import DetectedPattern, PatternType, detect_patterns
from healthtiers.analytics.week import WeekSummary, aggregate_week, compare_weeks
from healthtiers.analytics.monitor import HealthMonitorResult, evaluate_health, evaluate_with_defaults
from healthtiers.analytics.insights import Insight, generate_insights, primary_insight
from healthtiers.analytics.summary import DailyMetrics
from healthtiers.analytics.pipeline import (
    EngineConfig,
    HealthReport,
    build_report,
    process_day,
    process_history,
    rescore_day,
    rescore_history,
)

__all__ = [
    # components
    "Confidence",
    "ScoreComponent",
    "TrendDirection",
    # tier1
    "DailyFactualSummary",
    "build_factual_summary",
    # quality
    "DataQualityIndicator",
    "assess_completeness",
    # gaps
    "DataGap",
    "OverallDataQuality",
    "detect_gaps",
    "assess_overall_quality",
    # baseline
    "Baseline",
    "build_baseline",
    "calculate_baselines",
    # tier2
    "Tier2Metrics",
    "compute_tier2",
    # consistency
    "ConsistencyMetrics",
    "calculate_consistency",
    # recovery
    "RecoveryFormula",
    "RecoveryScore",
    "score_recovery",
    "score_recovery_percent",
    # strain
    "StrainScore",
    "score_strain",
    # sleep
    "SleepPerformance",
    "score_sleep_performance",
    # patterns
    "DetectedPattern",
    "PatternType",
    "detect_patterns",
    # week
    "WeekSummary",
    "aggregate_week",
    "compare_weeks",
    # monitor
    "HealthMonitorResult",
    "evaluate_health",
    "evaluate_with_defaults",
    # insights
    "Insight",
    "generate_insights",
    "primary_insight",
    # summary
    "DailyMetrics",
    # pipeline
    "EngineConfig",
    "HealthReport",
    "build_report",
    "process_day",
    "process_history",
    "rescore_day",
    "rescore_history",
]
