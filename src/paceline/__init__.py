"""paceline: activity analytics for tracked walks, runs and commutes.

Modules:
    models     -- Activity, route and heart-rate value types
    errors     -- Exception hierarchy
    geo        -- Haversine distance and route timing
    reconcile  -- Cross-source deduplication
    loader     -- JSON activity ingest
    analytics  -- Splits, pace, zones, statistics, goals, pipeline
"""

from paceline.errors import PacelineError, InvalidReferenceError, ActivityFormatError
from paceline.models import (
    Activity,
    ActivitySource,
    ActivityType,
    CoordinateSample,
    HeartRateSample,
    format_pace,
    estimated_max_heart_rate,
)
from paceline.reconcile import reconcile, ReconciledActivity
from paceline.loader import load_activities

__version__ = "0.1.0"

__all__ = [
    # errors
    "PacelineError",
    "InvalidReferenceError",
    "ActivityFormatError",
    # models
    "Activity",
    "ActivitySource",
    "ActivityType",
    "CoordinateSample",
    "HeartRateSample",
    "format_pace",
    "estimated_max_heart_rate",
    # reconcile
    "reconcile",
    "ReconciledActivity",
    # loader
    "load_activities",
]
