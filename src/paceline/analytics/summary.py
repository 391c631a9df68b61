"""Per-activity analytics: splits, pace series and heart-rate zones.

Pulls the three independent builders together over one activity into a
single ActivityAnalytics that is JSON-serializable.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Sequence

import numpy as np

from paceline.analytics.pace import (
    MAX_CHART_SAMPLES,
    PACE_STRIDE_M,
    PaceSample,
    downsample,
    iter_pace_samples,
)
from paceline.analytics.splits import PACE_UNAVAILABLE, Split, build_splits
from paceline.analytics.zones import HeartRateZone, ZoneDistribution, classify_heart_rate
from paceline.models import Activity, ActivityWindow, HeartRateSample, format_pace

logger = logging.getLogger(__name__)


@dataclass
class ActivityAnalytics:
    """Everything derived from one activity's route and heart-rate stream."""

    activity_id: str
    splits: list[Split] = field(default_factory=list)
    pace_samples: list[PaceSample] = field(default_factory=list)
    heart_rate_samples: list[HeartRateSample] = field(default_factory=list)
    zone_distribution: ZoneDistribution = field(default_factory=ZoneDistribution)

    # Pace (seconds per km, PACE_UNAVAILABLE when no split has a pace)
    avg_pace_s_per_km: int = PACE_UNAVAILABLE
    best_pace_s_per_km: int = PACE_UNAVAILABLE
    worst_pace_s_per_km: int = PACE_UNAVAILABLE
    best_split_index: int | None = None
    worst_split_index: int | None = None

    # Observed heart rate (0 when no samples)
    avg_heart_rate: int = 0
    max_heart_rate: int = 0
    min_heart_rate: int = 0

    @property
    def distance_km(self) -> float:
        return sum(s.distance_m for s in self.splits) / 1000.0

    @property
    def formatted_avg_pace(self) -> str:
        return format_pace(self.avg_pace_s_per_km)

    def to_dict(self) -> dict[str, Any]:
        """Convert to a plain dict (JSON-friendly)."""
        return {
            "activity_id": self.activity_id,
            "distance_km": round(self.distance_km, 3),
            "splits": [s.to_dict() for s in self.splits],
            "pace_samples": [p.to_dict() for p in self.pace_samples],
            "heart_rate_samples": [
                {"bpm": s.bpm, "timestamp": s.timestamp.isoformat(), "distance_km": s.distance_km}
                for s in self.heart_rate_samples
            ],
            "zone_distribution": self.zone_distribution.to_dict(),
            "avg_pace_s_per_km": self.avg_pace_s_per_km,
            "best_pace_s_per_km": self.best_pace_s_per_km,
            "worst_pace_s_per_km": self.worst_pace_s_per_km,
            "best_split_index": self.best_split_index,
            "worst_split_index": self.worst_split_index,
            "avg_heart_rate": self.avg_heart_rate,
            "max_heart_rate": self.max_heart_rate,
            "min_heart_rate": self.min_heart_rate,
        }

    def to_json(self, indent: int = 2) -> str:
        """Serialize to JSON string."""
        return json.dumps(self.to_dict(), indent=indent)

    def __repr__(self) -> str:
        return (
            f"ActivityAnalytics({self.activity_id}: "
            f"{len(self.splits)} splits, avg={self.formatted_avg_pace}/km, "
            f"hr={self.avg_heart_rate}bpm)"
        )


def _pace_summary(splits: Sequence[Split]) -> dict[str, Any]:
    """Average / best / worst pace over splits that have one."""
    timed = [s for s in splits if s.pace_s_per_km != PACE_UNAVAILABLE]
    if not timed:
        return {}

    total_s = sum(s.duration_s for s in timed)
    total_km = sum(s.distance_m for s in timed) / 1000.0
    best = min(timed, key=lambda s: s.pace_s_per_km)
    worst = max(timed, key=lambda s: s.pace_s_per_km)

    return {
        "avg_pace_s_per_km": int(round(total_s / total_km)) if total_km > 0 else PACE_UNAVAILABLE,
        "best_pace_s_per_km": best.pace_s_per_km,
        "worst_pace_s_per_km": worst.pace_s_per_km,
        "best_split_index": best.index,
        "worst_split_index": worst.index,
    }


def session_heart_rate(activity: Activity) -> list[HeartRateSample]:
    """The activity's heart-rate samples inside its time window, time-ordered.

    Samples stamped outside ``[start_time, end_time]`` are dropped.
    """
    window = ActivityWindow.of(activity)
    if window.clamped:
        logger.warning(
            "activity %s ends before it starts (%s < %s); treating duration as 0",
            activity.id, activity.end_time.isoformat(), activity.start_time.isoformat(),
        )

    kept = [s for s in activity.heart_rate if window.contains(s.timestamp)]
    dropped = len(activity.heart_rate) - len(kept)
    if dropped:
        logger.warning(
            "activity %s: ignored %d heart-rate sample(s) outside the session window",
            activity.id, dropped,
        )
    return sorted(kept, key=lambda s: s.timestamp)


def analyze_activity(
    activity: Activity,
    max_heart_rate: float | None,
    stride_m: float = PACE_STRIDE_M,
    max_chart_samples: int | None = MAX_CHART_SAMPLES,
    zones: bool = True,
) -> ActivityAnalytics:
    """Compute splits, pace series and zone distribution for one activity.

    Args:
        activity: The (reconciled) activity.
        max_heart_rate: Reference maximum heart rate for zone classification.
        stride_m: Distance stride of the pace series.
        max_chart_samples: Downsample the pace series to this many points
            (None keeps every sample).
        zones: When False, zone classification is skipped and the
            distribution is left empty; *max_heart_rate* is not checked.

    Returns:
        A populated ActivityAnalytics.  Summary-only activities (no route)
        produce no splits and no pace samples.

    Raises:
        InvalidReferenceError: *zones* is True and *max_heart_rate* is unusable.
    """
    heart_rate = session_heart_rate(activity)

    splits = build_splits(activity.route, heart_rate)
    pace_samples = list(iter_pace_samples(activity.route, stride_m))
    if max_chart_samples is not None:
        pace_samples = downsample(pace_samples, max_chart_samples)

    result = ActivityAnalytics(
        activity_id=activity.id,
        splits=splits,
        pace_samples=pace_samples,
        heart_rate_samples=heart_rate,
        **_pace_summary(splits),
    )

    if zones:
        zone_result = classify_heart_rate(heart_rate, max_heart_rate)
        result.zone_distribution = zone_result.distribution
        result.avg_heart_rate = zone_result.avg_heart_rate
        result.max_heart_rate = zone_result.max_heart_rate
        result.min_heart_rate = zone_result.min_heart_rate
    elif heart_rate:
        bpm = np.asarray([s.bpm for s in heart_rate], dtype=np.float64)
        result.avg_heart_rate = int(round(float(np.mean(bpm))))
        result.max_heart_rate = int(np.max(bpm))
        result.min_heart_rate = int(np.min(bpm))

    return result


def dominant_zone(analytics: ActivityAnalytics) -> HeartRateZone | None:
    """Zone the activity spent most time in, if any."""
    return analytics.zone_distribution.dominant()
