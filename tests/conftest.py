"""Shared fixtures and helpers for the paceline test suite."""

from __future__ import annotations

import json
import math
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Callable

import pytest

from paceline.geo import EARTH_RADIUS_M
from paceline.models import (
    Activity,
    ActivitySource,
    ActivityType,
    CoordinateSample,
    HeartRateSample,
)


BASE_TIME = datetime(2026, 10, 18, 7, 0, 0, tzinfo=timezone.utc)

# Meters per degree of latitude on the haversine sphere
METERS_PER_DEG_LAT = EARTH_RADIUS_M * math.pi / 180.0


# ---------------------------------------------------------------------------
# Route / sample builders
# ---------------------------------------------------------------------------


def make_route(
    distance_km: float,
    pace_s_per_km: float = 360.0,
    step_m: float = 10.0,
    start: datetime = BASE_TIME,
    lat0: float = 52.0,
    lon0: float = 4.0,
    altitude: Callable[[int], float | None] | None = None,
) -> tuple[CoordinateSample, ...]:
    """A straight northbound route at constant pace.

    Fixes are *step_m* apart along a meridian, so the haversine distance
    between consecutive fixes is exactly *step_m*.
    """
    n_steps = int(round(distance_km * 1000.0 / step_m))
    step_deg = step_m / METERS_PER_DEG_LAT
    step_s = step_m * pace_s_per_km / 1000.0
    return tuple(
        CoordinateSample(
            latitude=lat0 + i * step_deg,
            longitude=lon0,
            timestamp=start + timedelta(seconds=i * step_s),
            altitude=altitude(i) if altitude else None,
        )
        for i in range(n_steps + 1)
    )


def make_point(offset_m: float, offset_s: float, start: datetime = BASE_TIME,
               altitude: float | None = None) -> CoordinateSample:
    """A fix *offset_m* north of the default origin, *offset_s* after *start*."""
    return CoordinateSample(
        latitude=52.0 + offset_m / METERS_PER_DEG_LAT,
        longitude=4.0,
        timestamp=start + timedelta(seconds=offset_s),
        altitude=altitude,
    )


def make_heart_rate(
    duration_s: float,
    bpm: int | Callable[[int], int] = 140,
    every_s: float = 5.0,
    start: datetime = BASE_TIME,
) -> tuple[HeartRateSample, ...]:
    """Heart-rate samples every *every_s* seconds over ``[0, duration_s]``."""
    n = int(duration_s // every_s)
    return tuple(
        HeartRateSample(
            bpm=bpm(i) if callable(bpm) else bpm,
            timestamp=start + timedelta(seconds=i * every_s),
        )
        for i in range(n + 1)
    )


def make_activity(
    id: str = "act-1",
    source: ActivitySource = ActivitySource.APP,
    activity_type: ActivityType = ActivityType.RUN,
    start: datetime = BASE_TIME,
    duration_s: float = 1800.0,
    **kwargs,
) -> Activity:
    """An Activity with sensible defaults; extra fields pass straight through."""
    return Activity(
        id=id,
        source=source,
        activity_type=activity_type,
        start_time=start,
        end_time=kwargs.pop("end_time", start + timedelta(seconds=duration_s)),
        **kwargs,
    )


def route_to_json(route: tuple[CoordinateSample, ...]) -> list[dict]:
    return [
        {"lat": c.latitude, "lng": c.longitude, "alt": c.altitude, "ts": c.timestamp.isoformat()}
        for c in route
    ]


def write_json(path: Path, payload) -> Path:
    """Write *payload* as JSON to *path*."""
    with open(path, "w") as f:
        json.dump(payload, f)
    return path


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def steady_run() -> Activity:
    """2.3 km at 6:00/km with a flat 140 bpm heart rate."""
    route = make_route(2.3, pace_s_per_km=360.0)
    duration = (route[-1].timestamp - route[0].timestamp).total_seconds()
    return make_activity(
        id="steady",
        duration_s=duration,
        distance_km=2.3,
        steps=2800,
        calories=160,
        route=route,
        heart_rate=make_heart_rate(duration, bpm=140),
    )
