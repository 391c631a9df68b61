"""Pace / speed time-series for charting.

The series is distance-strided: a sample is emitted each time at least
``stride_m`` meters have been covered since the previous sample, using the
average speed over that window.  It starts with an origin sample at 0 km
and ends with a sample for any trailing remainder, so the curve spans the
whole route.  Independent of split boundaries.
"""

from __future__ import annotations

from dataclasses import dataclass, asdict
from datetime import datetime, timedelta
from typing import Any, Iterator, Sequence

import numpy as np

from paceline.geo import DISTANCE_EPSILON_M, elapsed_seconds, segment_distances
from paceline.models import CoordinateSample, format_pace


PACE_STRIDE_M = 100.0

# Pace reported when there is no measurable movement (or no elapsed time)
PACE_NO_MOVEMENT = 0

# Cap for the materialised chart series
MAX_CHART_SAMPLES = 100


@dataclass
class PaceSample:
    """Instantaneous pace at a point along the route."""

    cumulative_distance_km: float
    pace_s_per_km: int
    timestamp: datetime
    speed_kmh: float

    @property
    def formatted_pace(self) -> str:
        return format_pace(self.pace_s_per_km)

    def to_dict(self) -> dict[str, Any]:
        d = asdict(self)
        d["timestamp"] = self.timestamp.isoformat()
        return d


def speed_and_pace(distance_m: float, duration_s: float) -> tuple[float, int]:
    """Return ``(speed_kmh, pace_s_per_km)`` for a window.

    Zero distance or zero elapsed time gives ``(0.0, PACE_NO_MOVEMENT)``.
    """
    if distance_m <= 0 or duration_s <= 0:
        return 0.0, PACE_NO_MOVEMENT
    speed_kmh = (distance_m / duration_s) * 3.6
    return speed_kmh, int(round(3600.0 / speed_kmh))


def iter_pace_samples(
    route: Sequence[CoordinateSample],
    stride_m: float = PACE_STRIDE_M,
) -> Iterator[PaceSample]:
    """Yield pace samples along *route* in increasing distance order.

    Args:
        route: Fixes ordered by timestamp.
        stride_m: Minimum distance between consecutive samples.

    Yields nothing for fewer than two fixes.
    """
    if len(route) < 2:
        return
    if stride_m <= 0:
        raise ValueError("stride_m must be positive")

    seg = segment_distances(route)
    t = elapsed_seconds(route)
    t0 = route[0].timestamp

    yield PaceSample(
        cumulative_distance_km=0.0,
        pace_s_per_km=PACE_NO_MOVEMENT,
        timestamp=t0,
        speed_kmh=0.0,
    )

    cumulative = 0.0
    window_dist = 0.0
    window_start = float(t[0])

    for i, d in enumerate(seg):
        cumulative += float(d)
        window_dist += float(d)
        if window_dist >= stride_m - DISTANCE_EPSILON_M:
            now = float(t[i + 1])
            speed, pace = speed_and_pace(window_dist, now - window_start)
            yield PaceSample(
                cumulative_distance_km=cumulative / 1000.0,
                pace_s_per_km=pace,
                timestamp=t0 + timedelta(seconds=now),
                speed_kmh=round(speed, 2),
            )
            window_dist = 0.0
            window_start = now

    if window_dist > DISTANCE_EPSILON_M:
        now = float(t[-1])
        speed, pace = speed_and_pace(window_dist, now - window_start)
        yield PaceSample(
            cumulative_distance_km=cumulative / 1000.0,
            pace_s_per_km=pace,
            timestamp=t0 + timedelta(seconds=now),
            speed_kmh=round(speed, 2),
        )


def downsample(samples: Sequence[PaceSample], target: int = MAX_CHART_SAMPLES) -> list[PaceSample]:
    """Thin *samples* to at most *target* points, keeping the first and last."""
    n = len(samples)
    if n <= target or target < 2:
        return list(samples)
    idx = np.unique(np.linspace(0, n - 1, target).round().astype(int))
    return [samples[int(i)] for i in idx]
