"""Value types shared by the analytics engine.

Everything here is an immutable dataclass.  Inputs (routes, heart-rate
streams, activities) are built once by the tracker or the sync layer and
never mutated by the engine; derived results live in the analytics modules.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum


class ActivitySource(str, Enum):
    """Where an activity record came from."""

    APP = "app"
    EXTERNAL_HEALTH_SYNC = "external_health_sync"


class ActivityType(str, Enum):
    """Kind of tracked session."""

    WALK = "walk"
    RUN = "run"
    COMMUTE = "commute"


@dataclass(frozen=True)
class CoordinateSample:
    """A single GPS fix."""

    latitude: float
    longitude: float
    timestamp: datetime
    altitude: float | None = None


@dataclass(frozen=True)
class HeartRateSample:
    """A single heart-rate reading."""

    bpm: int
    timestamp: datetime
    distance_km: float | None = None


@dataclass(frozen=True)
class Activity:
    """One tracked walk / run / commute.

    ``route`` may be empty for summary-only records coming from an external
    sync.  ``heart_rate`` is the session's heart-rate stream when the source
    supplied one.
    """

    id: str
    source: ActivitySource
    activity_type: ActivityType
    start_time: datetime
    end_time: datetime
    distance_km: float = 0.0
    average_bpm: int = 0
    steps: int = 0
    calories: int = 0
    route: tuple[CoordinateSample, ...] = ()
    heart_rate: tuple[HeartRateSample, ...] = ()
    external_id: str | None = None
    remote_id: str | None = None
    name: str | None = None

    @property
    def duration_s(self) -> float:
        """Wall-clock duration in seconds, clamped at 0 for inverted windows."""
        return max((self.end_time - self.start_time).total_seconds(), 0.0)

    @property
    def has_route(self) -> bool:
        return len(self.route) > 0

    def with_remote_id(self, remote_id: str) -> Activity:
        """Return a copy carrying the id assigned by the persistence layer."""
        return replace(self, remote_id=remote_id)

    def __repr__(self) -> str:
        return (
            f"Activity({self.id}, {self.activity_type.value}/{self.source.value}, "
            f"{self.start_time.isoformat()}, {self.distance_km:.2f}km, "
            f"route={len(self.route)}pts)"
        )


def default_activity_name(activity_type: ActivityType, start_time: datetime) -> str:
    """Name a session after the time of day it started, e.g. "Morning Run"."""
    hour = start_time.hour
    if 5 <= hour < 12:
        time_of_day = "Morning"
    elif 12 <= hour < 17:
        time_of_day = "Afternoon"
    elif 17 <= hour < 21:
        time_of_day = "Evening"
    else:
        time_of_day = "Night"
    return f"{time_of_day} {activity_type.value.capitalize()}"


def format_pace(seconds_per_km: int) -> str:
    """Render a pace as ``m:ss``; the unavailable sentinel (0) renders as ``--:--``."""
    if seconds_per_km <= 0:
        return "--:--"
    minutes, seconds = divmod(int(seconds_per_km), 60)
    return f"{minutes}:{seconds:02d}"


def estimated_max_heart_rate(age: int) -> int:
    """Tanaka estimate of maximum heart rate: 208 - 0.7 * age, floored at 100."""
    return max(100, 208 - int(0.7 * age))


@dataclass(frozen=True)
class ActivityWindow:
    """Normalised ``[start, end]`` window of an activity (end clamped to start)."""

    start: datetime
    end: datetime
    clamped: bool = field(default=False, compare=False)

    @classmethod
    def of(cls, activity: Activity) -> ActivityWindow:
        if activity.end_time < activity.start_time:
            return cls(activity.start_time, activity.start_time, clamped=True)
        return cls(activity.start_time, activity.end_time)

    @property
    def duration_s(self) -> float:
        return (self.end - self.start).total_seconds()

    def contains(self, ts: datetime) -> bool:
        return self.start <= ts <= self.end
