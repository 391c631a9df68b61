"""Per-kilometer splits from a GPS route.

Walks the route accumulating haversine distance.  Each time the distance
since the last boundary reaches the split length, the boundary is placed
inside the crossing segment by linear interpolation (time and altitude),
so every full split is exactly ``split_distance_m`` long and a long GPS gap
can close several splits at once.  Whatever remains after the last
boundary is emitted as a trailing partial split.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, asdict
from datetime import datetime, timedelta
from typing import Any, Sequence

import numpy as np

from paceline.geo import DISTANCE_EPSILON_M, altitudes, elapsed_seconds, segment_distances
from paceline.models import CoordinateSample, HeartRateSample, format_pace

logger = logging.getLogger(__name__)


SPLIT_DISTANCE_M = 1000.0

# Sentinel pace for splits with no measurable duration
PACE_UNAVAILABLE = 0


@dataclass
class Split:
    """One (usually 1 km) segment of a route."""

    index: int  # 1-based
    distance_m: float
    duration_s: int
    pace_s_per_km: int  # PACE_UNAVAILABLE when duration is 0
    elevation_gain_m: float
    elevation_loss_m: float  # positive magnitude
    start_time: datetime
    end_time: datetime
    avg_heart_rate: int | None = None

    @property
    def is_partial(self) -> bool:
        return self.distance_m < SPLIT_DISTANCE_M - DISTANCE_EPSILON_M

    @property
    def formatted_pace(self) -> str:
        return format_pace(self.pace_s_per_km)

    def to_dict(self) -> dict[str, Any]:
        d = asdict(self)
        d["start_time"] = self.start_time.isoformat()
        d["end_time"] = self.end_time.isoformat()
        return d

    def __repr__(self) -> str:
        hr = f", hr={self.avg_heart_rate}" if self.avg_heart_rate is not None else ""
        return (
            f"Split(#{self.index}, {self.distance_m:.0f}m, "
            f"{self.duration_s}s, {self.formatted_pace}/km{hr})"
        )


def split_pace(duration_s: int, distance_m: float) -> int:
    """Seconds per km for a split, rounded; PACE_UNAVAILABLE if degenerate."""
    if duration_s <= 0 or distance_m <= 0:
        return PACE_UNAVAILABLE
    return int(round(duration_s / (distance_m / 1000.0)))


def _average_bpm(
    hr_offsets: np.ndarray,
    hr_bpm: np.ndarray,
    start_s: float,
    end_s: float,
    inclusive_end: bool,
) -> int | None:
    """Mean bpm of samples inside ``[start_s, end_s)`` (or ``]`` when inclusive)."""
    if len(hr_offsets) == 0:
        return None
    if inclusive_end:
        mask = (hr_offsets >= start_s) & (hr_offsets <= end_s)
    else:
        mask = (hr_offsets >= start_s) & (hr_offsets < end_s)
    if not np.any(mask):
        return None
    return int(round(float(np.mean(hr_bpm[mask]))))


def build_splits(
    route: Sequence[CoordinateSample],
    heart_rate: Sequence[HeartRateSample] = (),
    split_distance_m: float = SPLIT_DISTANCE_M,
) -> list[Split]:
    """Segment *route* into fixed-distance splits.

    Args:
        route: Fixes ordered by timestamp (ties allowed).
        heart_rate: Optional heart-rate samples; each split reports the mean
            of the samples falling inside its time window.
        split_distance_m: Split length in meters.

    Returns:
        Splits with contiguous 1-based indices.  Fewer than two fixes (or a
        route that never moves) yields an empty list.
    """
    if len(route) < 2:
        return []

    seg = segment_distances(route)
    t = elapsed_seconds(route)
    alt = altitudes(route)
    t0 = route[0].timestamp

    hr_offsets = np.asarray(
        [(s.timestamp - t0).total_seconds() for s in heart_rate], dtype=np.float64
    )
    hr_bpm = np.asarray([s.bpm for s in heart_rate], dtype=np.float64)

    # (start_s, end_s, distance_m, gain, loss) per closed split
    bounds: list[tuple[float, float, float, float, float]] = []

    split_start = float(t[0])
    split_dist = 0.0
    gain = 0.0
    loss = 0.0

    def climb(a0: float, a1: float, fraction: float) -> None:
        nonlocal gain, loss
        if np.isnan(a0) or np.isnan(a1) or fraction <= 0:
            return
        delta = (a1 - a0) * fraction
        if delta > 0:
            gain += delta
        else:
            loss -= delta

    for i, d in enumerate(seg):
        d = float(d)
        t_a, t_b = float(t[i]), float(t[i + 1])
        a0, a1 = float(alt[i]), float(alt[i + 1])

        if d <= 0:
            climb(a0, a1, 1.0)
            continue

        consumed = 0.0
        while split_dist + d * (1.0 - consumed) >= split_distance_m - DISTANCE_EPSILON_M:
            need = max(split_distance_m - split_dist, 0.0)
            cut = min(consumed + need / d, 1.0)
            t_cut = t_a + cut * (t_b - t_a)
            climb(a0, a1, cut - consumed)

            bounds.append((split_start, t_cut, split_distance_m, gain, loss))

            split_start = t_cut
            split_dist = 0.0
            gain = 0.0
            loss = 0.0
            consumed = cut

        climb(a0, a1, 1.0 - consumed)
        split_dist += d * (1.0 - consumed)

    if split_dist > DISTANCE_EPSILON_M:
        bounds.append((split_start, float(t[-1]), split_dist, gain, loss))

    splits: list[Split] = []
    for n, (start_s, end_s, dist, up, down) in enumerate(bounds, 1):
        duration = int(round(end_s - start_s))
        if duration <= 0:
            logger.debug("split %d covers %.0f m in no time; pace unavailable", n, dist)
        splits.append(Split(
            index=n,
            distance_m=dist,
            duration_s=duration,
            pace_s_per_km=split_pace(duration, dist),
            elevation_gain_m=round(up, 1),
            elevation_loss_m=round(down, 1),
            start_time=t0 + timedelta(seconds=start_s),
            end_time=t0 + timedelta(seconds=end_s),
            avg_heart_rate=_average_bpm(
                hr_offsets, hr_bpm, start_s, end_s, inclusive_end=(n == len(bounds))
            ),
        ))

    return splits
