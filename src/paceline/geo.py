"""Route geometry shared by the split and pace builders.

Provides:
  - Great-circle (haversine) distance between two fixes
  - Vectorised per-segment distances for a whole route
  - Per-fix elapsed time with backwards timestamps clamped
"""

from __future__ import annotations

import logging
import math
from typing import Sequence

import numpy as np

from paceline.models import CoordinateSample

logger = logging.getLogger(__name__)

EARTH_RADIUS_M = 6_371_000.0

# Distances closer than this to a boundary count as having reached it
DISTANCE_EPSILON_M = 1e-6


def haversine_m(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance in meters between two (lat, lon) points in degrees."""
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)
    a = (math.sin(d_phi / 2) ** 2
         + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2)
    a = min(max(a, 0.0), 1.0)
    return EARTH_RADIUS_M * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def segment_distances(route: Sequence[CoordinateSample]) -> np.ndarray:
    """Distance in meters of each consecutive segment of *route*.

    Returns an array of length ``len(route) - 1`` (empty for < 2 fixes).
    """
    if len(route) < 2:
        return np.zeros(0, dtype=np.float64)

    lat = np.radians(np.fromiter((c.latitude for c in route), dtype=np.float64, count=len(route)))
    lon = np.radians(np.fromiter((c.longitude for c in route), dtype=np.float64, count=len(route)))

    d_lat = np.diff(lat)
    d_lon = np.diff(lon)
    a = np.sin(d_lat / 2) ** 2 + np.cos(lat[:-1]) * np.cos(lat[1:]) * np.sin(d_lon / 2) ** 2
    a = np.clip(a, 0.0, 1.0)
    return EARTH_RADIUS_M * 2 * np.arctan2(np.sqrt(a), np.sqrt(1 - a))


def elapsed_seconds(route: Sequence[CoordinateSample]) -> np.ndarray:
    """Seconds since the first fix, for every fix of *route*.

    Timestamps that go backwards are clamped to the running maximum so
    every segment has a non-negative duration.
    """
    if len(route) == 0:
        return np.zeros(0, dtype=np.float64)

    t0 = route[0].timestamp
    raw = np.fromiter(
        ((c.timestamp - t0).total_seconds() for c in route),
        dtype=np.float64,
        count=len(route),
    )
    clamped = np.maximum.accumulate(raw)
    if np.any(clamped != raw):
        logger.warning(
            "route has %d fix(es) with backwards timestamps; clamped",
            int(np.count_nonzero(clamped != raw)),
        )
    return clamped


def altitudes(route: Sequence[CoordinateSample]) -> np.ndarray:
    """Altitude per fix, NaN where the fix has none."""
    return np.fromiter(
        (c.altitude if c.altitude is not None else np.nan for c in route),
        dtype=np.float64,
        count=len(route),
    )


def route_distance_m(route: Sequence[CoordinateSample]) -> float:
    """Total length of *route* in meters."""
    return float(np.sum(segment_distances(route)))
