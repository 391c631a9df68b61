"""Load activity records from JSON for offline analysis.

A file holds either a JSON array of activity records or an object with an
``"activities"`` array.  Timestamps are ISO-8601 strings.  Example record::

    {
      "id": "run-1",
      "source": "app",
      "type": "run",
      "start_time": "2026-10-18T07:00:00+00:00",
      "end_time": "2026-10-18T07:30:00+00:00",
      "distance_km": 5.0,
      "steps": 6000,
      "calories": 350,
      "external_id": "hk-123",
      "route": [{"lat": 52.0, "lng": 4.0, "alt": 3.5, "ts": "..."}],
      "heart_rate": [{"bpm": 140, "ts": "..."}]
    }
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from paceline.errors import ActivityFormatError
from paceline.models import (
    Activity,
    ActivitySource,
    ActivityType,
    CoordinateSample,
    HeartRateSample,
    default_activity_name,
)

logger = logging.getLogger(__name__)


# Accepted spellings for the source field
SOURCE_ALIASES = {
    "app": ActivitySource.APP,
    "external_health_sync": ActivitySource.EXTERNAL_HEALTH_SYNC,
    "external": ActivitySource.EXTERNAL_HEALTH_SYNC,
    "apple_health": ActivitySource.EXTERNAL_HEALTH_SYNC,
    "health_connect": ActivitySource.EXTERNAL_HEALTH_SYNC,
}


def parse_timestamp(value: Any) -> datetime:
    """Parse an ISO-8601 string (``Z`` suffix allowed); naive values are taken as UTC."""
    if isinstance(value, datetime):
        ts = value
    elif isinstance(value, str):
        try:
            ts = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            raise ActivityFormatError(f"invalid timestamp: {value!r}") from None
    else:
        raise ActivityFormatError(f"invalid timestamp: {value!r}")
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts


def _parse_source(value: Any) -> ActivitySource:
    key = str(value or "app").strip().lower()
    try:
        return SOURCE_ALIASES[key]
    except KeyError:
        raise ActivityFormatError(f"unknown activity source: {value!r}") from None


def _parse_type(value: Any) -> ActivityType:
    try:
        return ActivityType(str(value or "walk").strip().lower())
    except ValueError:
        raise ActivityFormatError(f"unknown activity type: {value!r}") from None


def _optional_float(value: Any) -> float | None:
    return float(value) if value is not None else None


def _parse_route(points: list[dict]) -> tuple[CoordinateSample, ...]:
    route = []
    for p in points:
        ts = p.get("ts", p.get("timestamp"))
        if ts is None:
            # Fixes without a time cannot be placed on the timeline
            logger.debug("skipping route point without timestamp: %r", p)
            continue
        route.append(CoordinateSample(
            latitude=float(p.get("lat", p.get("latitude"))),
            longitude=float(p.get("lng", p.get("longitude"))),
            timestamp=parse_timestamp(ts),
            altitude=_optional_float(p.get("alt", p.get("altitude"))),
        ))
    return tuple(route)


def _parse_heart_rate(samples: list[dict]) -> tuple[HeartRateSample, ...]:
    return tuple(
        HeartRateSample(
            bpm=int(s["bpm"]),
            timestamp=parse_timestamp(s.get("ts", s.get("timestamp"))),
            distance_km=_optional_float(s.get("distance_km")),
        )
        for s in samples
    )


def activity_from_dict(record: dict[str, Any], default_source: ActivitySource | None = None) -> Activity:
    """Build an Activity from a decoded JSON record.

    Raises:
        ActivityFormatError: The record is missing required fields or
            carries an unparseable value.
    """
    if not isinstance(record, dict):
        raise ActivityFormatError(f"activity record must be an object, got {type(record).__name__}")
    if "id" not in record or "start_time" not in record:
        raise ActivityFormatError(f"activity record needs 'id' and 'start_time': {record!r}")

    start = parse_timestamp(record["start_time"])
    end = parse_timestamp(record.get("end_time", record["start_time"]))
    kind = _parse_type(record.get("type", record.get("activity_type")))
    if "source" in record or default_source is None:
        source = _parse_source(record.get("source"))
    else:
        source = default_source

    try:
        return Activity(
            id=str(record["id"]),
            source=source,
            activity_type=kind,
            start_time=start,
            end_time=end,
            distance_km=max(float(record.get("distance_km", 0.0) or 0.0), 0.0),
            average_bpm=int(record.get("average_bpm", 0) or 0),
            steps=int(record.get("steps", 0) or 0),
            calories=int(record.get("calories", 0) or 0),
            route=_parse_route(record.get("route") or []),
            heart_rate=_parse_heart_rate(record.get("heart_rate") or []),
            external_id=record.get("external_id") or None,
            remote_id=record.get("remote_id") or None,
            name=record.get("name") or default_activity_name(kind, start),
        )
    except (KeyError, TypeError, ValueError) as exc:
        if isinstance(exc, ActivityFormatError):
            raise
        raise ActivityFormatError(f"activity {record.get('id')!r}: {exc}") from exc


def load_activities(path: str | Path, default_source: ActivitySource | None = None) -> list[Activity]:
    """Read every activity record from a JSON file.

    Args:
        path: JSON file path.
        default_source: Source for records that do not name one.

    Returns:
        Activities in file order.
    """
    path = Path(path)
    with open(path) as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as exc:
            raise ActivityFormatError(f"{path.name}: invalid JSON ({exc})") from exc

    records = data.get("activities", []) if isinstance(data, dict) else data
    if not isinstance(records, list):
        raise ActivityFormatError(f"{path.name}: expected a list of activities")

    activities = [activity_from_dict(r, default_source) for r in records]
    logger.info("loaded %d activities from %s", len(activities), path.name)
    return activities


def main() -> None:
    if len(sys.argv) < 2:
        print("Usage: python -m paceline.loader <activities.json>")
        sys.exit(1)

    for act in load_activities(sys.argv[1]):
        print(f"  {act!r}")


if __name__ == "__main__":
    main()
