"""Analytics engine for turning tracked activities into display metrics.

Modules:
    splits     -- Per-kilometer splits (distance, duration, pace, elevation, HR)
    pace       -- Distance-strided pace/speed series for charts
    zones      -- Heart-rate zone classification and time-in-zone
    summary    -- Per-activity analytics assembly
    statistics -- Daily roll-up, period statistics, weekly views, calendar
    goals      -- Daily goal progress with defaulted goals
    pipeline   -- Reconcile + analyze + roll up in one call
"""

from paceline.analytics.splits import build_splits, Split, PACE_UNAVAILABLE
from paceline.analytics.pace import iter_pace_samples, downsample, PaceSample
from paceline.analytics.zones import (
    classify,
    classify_heart_rate,
    HeartRateZone,
    ZoneDistribution,
    ZoneResult,
)
from paceline.analytics.summary import analyze_activity, ActivityAnalytics
from paceline.analytics.statistics import (
    calculate_points,
    daily_totals_from_activities,
    period_totals,
    compute_statistics,
    statistics_for_range,
    weekly_comparison,
    weekly_progress,
    calendar_month,
    ActivityTimeRange,
    ActivityStatistics,
    DailyTotals,
    PeriodTotals,
)
from paceline.analytics.goals import evaluate_goal, sanitize_goal, ActivityGoal, GoalProgress
from paceline.analytics.pipeline import run_pipeline, AnalyticsConfig, PipelineResult

__all__ = [
    # splits
    "build_splits",
    "Split",
    "PACE_UNAVAILABLE",
    # pace
    "iter_pace_samples",
    "downsample",
    "PaceSample",
    # zones
    "classify",
    "classify_heart_rate",
    "HeartRateZone",
    "ZoneDistribution",
    "ZoneResult",
    # summary
    "analyze_activity",
    "ActivityAnalytics",
    # statistics
    "calculate_points",
    "daily_totals_from_activities",
    "period_totals",
    "compute_statistics",
    "statistics_for_range",
    "weekly_comparison",
    "weekly_progress",
    "calendar_month",
    "ActivityTimeRange",
    "ActivityStatistics",
    "DailyTotals",
    "PeriodTotals",
    # goals
    "evaluate_goal",
    "sanitize_goal",
    "ActivityGoal",
    "GoalProgress",
    # pipeline
    "run_pipeline",
    "AnalyticsConfig",
    "PipelineResult",
]
