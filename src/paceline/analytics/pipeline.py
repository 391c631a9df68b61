"""Analytics pipeline: reconcile ingested activities and run the engine.

This module consumes the activity lists produced by the in-app tracker and
the external sync (or :func:`paceline.loader.load_activities`) and runs the
full analytics pipeline, producing a :class:`PipelineResult`.
"""

from __future__ import annotations

import json
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Iterable

from paceline.analytics.pace import MAX_CHART_SAMPLES, PACE_STRIDE_M
from paceline.analytics.statistics import (
    ActivityStatistics,
    DailyTotals,
    daily_totals_from_activities,
    statistics_for_range,
)
from paceline.analytics.summary import ActivityAnalytics, analyze_activity
from paceline.errors import InvalidReferenceError
from paceline.models import Activity
from paceline.reconcile import OVERLAP_THRESHOLD, ReconciledActivity, reconcile

logger = logging.getLogger(__name__)


DEFAULT_MAX_HR = 190
DEFAULT_PERIOD_DAYS = 7


@dataclass
class AnalyticsConfig:
    """Per-run settings for the pipeline."""

    max_heart_rate: float | None = DEFAULT_MAX_HR
    pace_stride_m: float = PACE_STRIDE_M
    max_chart_samples: int | None = MAX_CHART_SAMPLES
    overlap_threshold: float = OVERLAP_THRESHOLD
    period_days: int = DEFAULT_PERIOD_DAYS
    workers: int = 1


@dataclass
class PipelineResult:
    """Reconciled activities with their analytics and period statistics."""

    activities: list[ReconciledActivity] = field(default_factory=list)
    analytics: list[ActivityAnalytics] = field(default_factory=list)  # parallel to activities
    daily_totals: list[DailyTotals] = field(default_factory=list)
    statistics: ActivityStatistics | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "activities": [r.to_dict() for r in self.activities],
            "analytics": [a.to_dict() for a in self.analytics],
            "daily_totals": [d.to_dict() for d in self.daily_totals],
            "statistics": self.statistics.to_dict() if self.statistics else None,
        }

    def analytics_for(self, activity_id: str) -> list[ActivityAnalytics]:
        """Analytics of every reconciled activity carrying *activity_id*."""
        return [a for a in self.analytics if a.activity_id == activity_id]

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)


def analyze_with_fallback(activity: Activity, config: AnalyticsConfig) -> ActivityAnalytics:
    """Analyze one activity, skipping zones when the reference max HR is unusable."""
    try:
        return analyze_activity(
            activity,
            config.max_heart_rate,
            stride_m=config.pace_stride_m,
            max_chart_samples=config.max_chart_samples,
        )
    except InvalidReferenceError as exc:
        logger.warning("activity %s: skipping heart-rate zones (%s)", activity.id, exc)
        return analyze_activity(
            activity,
            None,
            stride_m=config.pace_stride_m,
            max_chart_samples=config.max_chart_samples,
            zones=False,
        )


def analyze_many(
    activities: Iterable[Activity],
    config: AnalyticsConfig | None = None,
) -> list[ActivityAnalytics]:
    """Analyze independent activities, optionally on a worker pool.

    Results are in input order, one per activity, so records sharing an
    id (e.g. one per source) keep separate analytics.
    """
    config = config or AnalyticsConfig()
    activities = list(activities)

    if config.workers > 1 and len(activities) > 1:
        with ThreadPoolExecutor(max_workers=config.workers) as executor:
            results = list(executor.map(lambda a: analyze_with_fallback(a, config), activities))
    else:
        results = [analyze_with_fallback(a, config) for a in activities]

    return results


def run_pipeline(
    app_activities: Iterable[Activity],
    external_activities: Iterable[Activity] = (),
    config: AnalyticsConfig | None = None,
    today: date | None = None,
) -> PipelineResult:
    """Run the full pipeline on two activity sources.

    Args:
        app_activities: Activities recorded by the in-app tracker.
        external_activities: Activities from the external health sync.
        config: Pipeline settings (defaults to AnalyticsConfig()).
        today: Reference day for period statistics (default: today).

    Returns:
        A populated PipelineResult.
    """
    config = config or AnalyticsConfig()

    # --- Dedup ---
    reconciled = reconcile(app_activities, external_activities, config.overlap_threshold)
    activities = [r.activity for r in reconciled]

    # --- Per-activity analytics ---
    analytics = analyze_many(activities, config)

    # --- Daily / period roll-up ---
    daily = daily_totals_from_activities(activities)
    if today is None:
        today = date.today()
    stats = statistics_for_range(daily, config.period_days, today)

    return PipelineResult(
        activities=reconciled,
        analytics=analytics,
        daily_totals=daily,
        statistics=stats,
    )
