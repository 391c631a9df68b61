"""Heart-rate zone classification and time-in-zone accumulation.

Each sample is classified by its bpm as a fraction of a reference maximum
heart rate.  Dwell time for a sample is the time elapsed since the
previous sample and is credited to the zone of the current sample; the
first sample has no "since" and contributes nothing.  No interpolation is
done between samples.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Sequence

import numpy as np

from paceline.errors import InvalidReferenceError
from paceline.models import HeartRateSample


class HeartRateZone(str, Enum):
    """Five intensity zones, lowest first."""

    RECOVERY = "recovery"
    FAT_BURN = "fat_burn"
    CARDIO = "cardio"
    PEAK = "peak"
    MAXIMUM = "maximum"

    @property
    def label(self) -> str:
        return ZONE_LABELS[self]


# Upper bound (fraction of max HR, exclusive) of each zone; Maximum is open-ended
ZONE_UPPER_BOUNDS = [
    (HeartRateZone.RECOVERY, 0.60),
    (HeartRateZone.FAT_BURN, 0.70),
    (HeartRateZone.CARDIO, 0.80),
    (HeartRateZone.PEAK, 0.90),
]

ZONE_LABELS = {
    HeartRateZone.RECOVERY: "Recovery",
    HeartRateZone.FAT_BURN: "Fat Burn",
    HeartRateZone.CARDIO: "Cardio",
    HeartRateZone.PEAK: "Peak",
    HeartRateZone.MAXIMUM: "Maximum",
}


def validate_max_heart_rate(max_heart_rate: Any) -> float:
    """Return *max_heart_rate* as a float or raise InvalidReferenceError."""
    if max_heart_rate is None or isinstance(max_heart_rate, bool):
        raise InvalidReferenceError(f"max heart rate must be a positive number, got {max_heart_rate!r}")
    try:
        value = float(max_heart_rate)
    except (TypeError, ValueError):
        raise InvalidReferenceError(
            f"max heart rate must be a positive number, got {max_heart_rate!r}"
        ) from None
    if not math.isfinite(value) or value <= 0:
        raise InvalidReferenceError(f"max heart rate must be a positive number, got {max_heart_rate!r}")
    return value


def zone_for_ratio(ratio: float) -> HeartRateZone:
    """Map a bpm / max-HR ratio onto a zone."""
    for zone, upper in ZONE_UPPER_BOUNDS:
        if ratio < upper:
            return zone
    return HeartRateZone.MAXIMUM


def classify(bpm: float, max_heart_rate: float) -> HeartRateZone:
    """Zone for a single heart-rate reading."""
    return zone_for_ratio(bpm / validate_max_heart_rate(max_heart_rate))


@dataclass
class ZoneDistribution:
    """Seconds spent in each zone."""

    seconds: dict[HeartRateZone, float] = field(
        default_factory=lambda: {zone: 0.0 for zone in HeartRateZone}
    )

    @property
    def total_s(self) -> float:
        return float(sum(self.seconds.values()))

    def time(self, zone: HeartRateZone) -> float:
        return self.seconds.get(zone, 0.0)

    def percentage(self, zone: HeartRateZone) -> float:
        """Share of total time spent in *zone*, 0-100 (0 when no time recorded)."""
        total = self.total_s
        if total <= 0:
            return 0.0
        return self.time(zone) / total * 100.0

    def add(self, zone: HeartRateZone, seconds: float) -> None:
        self.seconds[zone] = self.seconds.get(zone, 0.0) + seconds

    def dominant(self) -> HeartRateZone | None:
        """Zone with the most time, or None when nothing was recorded."""
        if self.total_s <= 0:
            return None
        return max(HeartRateZone, key=lambda z: self.time(z))

    def to_dict(self) -> dict[str, Any]:
        return {
            zone.value: {
                "seconds": round(self.time(zone), 1),
                "percentage": round(self.percentage(zone), 1),
            }
            for zone in HeartRateZone
        }

    def __repr__(self) -> str:
        parts = ", ".join(f"{z.value}={self.time(z):.0f}s" for z in HeartRateZone)
        return f"ZoneDistribution({parts})"


@dataclass
class ZoneResult:
    """Time-in-zone plus observed heart-rate summary."""

    distribution: ZoneDistribution
    zones: list[HeartRateZone]  # per input sample, in time order
    avg_heart_rate: int
    max_heart_rate: int
    min_heart_rate: int

    def __repr__(self) -> str:
        return (
            f"ZoneResult(avg={self.avg_heart_rate}bpm, "
            f"max={self.max_heart_rate}bpm, min={self.min_heart_rate}bpm, "
            f"total={self.distribution.total_s:.0f}s)"
        )


def classify_heart_rate(
    samples: Sequence[HeartRateSample],
    max_heart_rate: float,
) -> ZoneResult:
    """Classify a heart-rate stream into zones and accumulate dwell time.

    Args:
        samples: Heart-rate samples; sorted by timestamp before processing.
        max_heart_rate: Reference maximum (e.g. age-derived), must be > 0.

    Returns:
        ZoneResult; an empty stream yields an all-zero result.

    Raises:
        InvalidReferenceError: *max_heart_rate* is missing or not positive.
    """
    ref = validate_max_heart_rate(max_heart_rate)
    distribution = ZoneDistribution()

    if len(samples) == 0:
        return ZoneResult(distribution, [], 0, 0, 0)

    ordered = sorted(samples, key=lambda s: s.timestamp)
    bpm = np.asarray([s.bpm for s in ordered], dtype=np.float64)
    zones = [zone_for_ratio(v / ref) for v in bpm]

    for prev, cur, zone in zip(ordered, ordered[1:], zones[1:]):
        dwell = (cur.timestamp - prev.timestamp).total_seconds()
        distribution.add(zone, max(dwell, 0.0))

    return ZoneResult(
        distribution=distribution,
        zones=zones,
        avg_heart_rate=int(round(float(np.mean(bpm)))),
        max_heart_rate=int(np.max(bpm)),
        min_heart_rate=int(np.min(bpm)),
    )
