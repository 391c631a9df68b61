"""Cross-source deduplication of activities.

Activities arrive from the in-app tracker and from an external health
sync, and the same session can show up in both.  Each activity gets a set
of match keys:

  - ``ExternalIdKey``      the source-native id, when the record has one
  - ``TimeWindowKey``      its ``[start, end]`` window, type and source

Two activities describe the same session when both carry an external id
and the ids are equal, or, when at least one of them has no id, their
sources differ, their types match and their windows overlap by at least
``overlap_threshold`` of the shorter window.

Records sharing an external id are grouped first.  A record without an id
then joins only its best-overlapping partner, and a join is refused when
the group would end up holding two different external ids.  Each group is
reduced to one activity by a pure "pick winner" step, so the result does
not depend on input order.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any, Iterable, Sequence

from paceline.models import Activity, ActivitySource, ActivityType, ActivityWindow

logger = logging.getLogger(__name__)


OVERLAP_THRESHOLD = 0.8


# ---------------------------------------------------------------------------
# Match keys
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ExternalIdKey:
    """Identity assigned by the source system."""

    external_id: str


@dataclass(frozen=True)
class TimeWindowKey:
    """Fallback identity: when the session happened and what it was."""

    start: datetime
    end: datetime
    kind: ActivityType
    source: ActivitySource

    @property
    def duration_s(self) -> float:
        return (self.end - self.start).total_seconds()


MatchKeys = tuple[ExternalIdKey | None, TimeWindowKey]


def match_keys(activity: Activity) -> MatchKeys:
    """Compute the external-id key (if any) and the time-window key."""
    window = ActivityWindow.of(activity)
    if window.clamped:
        logger.warning(
            "activity %s ends before it starts; matching on a zero-length window",
            activity.id,
        )
    external = activity.external_id.strip() if activity.external_id else ""
    id_key = ExternalIdKey(external) if external else None
    return id_key, TimeWindowKey(window.start, window.end, activity.activity_type, activity.source)


def overlap_ratio(a: TimeWindowKey, b: TimeWindowKey) -> float:
    """Overlap of two windows as a fraction of the shorter one (0-1).

    A zero-length window counts as fully overlapped when its instant lies
    inside the other window.
    """
    shorter, longer = (a, b) if a.duration_s <= b.duration_s else (b, a)
    if shorter.duration_s <= 0:
        return 1.0 if longer.start <= shorter.start <= longer.end else 0.0
    overlap = (min(a.end, b.end) - max(a.start, b.start)).total_seconds()
    return max(overlap, 0.0) / shorter.duration_s


def keys_match(
    a: MatchKeys,
    b: MatchKeys,
    overlap_threshold: float = OVERLAP_THRESHOLD,
) -> bool:
    """Decide whether two key sets describe the same real-world session."""
    id_a, win_a = a
    id_b, win_b = b

    if id_a is not None and id_b is not None:
        return id_a == id_b

    if win_a.source == win_b.source or win_a.kind != win_b.kind:
        return False
    return overlap_ratio(win_a, win_b) >= overlap_threshold


# ---------------------------------------------------------------------------
# Winner selection
# ---------------------------------------------------------------------------


def _rank(activity: Activity) -> tuple:
    """Sort key: smaller is better.

    Route present, then more route fixes, then App source; the remaining
    fields only make the order total so ties resolve deterministically.
    """
    return (
        0 if activity.has_route else 1,
        -len(activity.route),
        0 if activity.source == ActivitySource.APP else 1,
        activity.start_time,
        activity.id,
    )


def pick_winner(group: Sequence[Activity]) -> Activity:
    """The record whose route and splits should represent the session."""
    return min(group, key=_rank)


def merge_group(group: Sequence[Activity]) -> Activity:
    """Reduce a group of duplicates to one activity.

    The winner keeps its own data.  Summary fields it lacks (zero steps,
    calories, average bpm or distance, no heart-rate stream, no external
    id) are filled from the other records in rank order.
    """
    ranked = sorted(group, key=_rank)
    winner = ranked[0]
    if len(ranked) == 1:
        return winner

    fills: dict[str, Any] = {}
    for other in ranked[1:]:
        for name in ("steps", "calories", "average_bpm", "distance_km"):
            if name not in fills and not getattr(winner, name) and getattr(other, name):
                fills[name] = getattr(other, name)
        if "heart_rate" not in fills and not winner.heart_rate and other.heart_rate:
            fills["heart_rate"] = other.heart_rate
        if "external_id" not in fills and not winner.external_id and other.external_id:
            fills["external_id"] = other.external_id
        if "remote_id" not in fills and not winner.remote_id and other.remote_id:
            fills["remote_id"] = other.remote_id

    return replace(winner, **fills) if fills else winner


# ---------------------------------------------------------------------------
# Reconciliation
# ---------------------------------------------------------------------------


@dataclass
class ReconciledActivity:
    """A deduplicated activity and the records that were folded into it."""

    activity: Activity
    sources: frozenset[ActivitySource]
    merged_ids: tuple[str, ...]

    @property
    def is_merged(self) -> bool:
        return len(self.merged_ids) > 1

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.activity.id,
            "external_id": self.activity.external_id,
            "sources": sorted(s.value for s in self.sources),
            "merged_ids": list(self.merged_ids),
        }

    def __repr__(self) -> str:
        srcs = "+".join(sorted(s.value for s in self.sources))
        return f"ReconciledActivity({self.activity.id}, sources={srcs}, merged={len(self.merged_ids)})"


def _group(activities: Sequence[Activity], overlap_threshold: float) -> list[list[int]]:
    """Group *activities* (already in rank order) into sessions (union-find).

    Equal external ids are joined first.  Each record without an id is then
    joined to the matching partner it overlaps most (ties go to the better
    ranked partner).  No group ever holds two different external ids.
    """
    n = len(activities)
    parent = list(range(n))
    keys = [match_keys(a) for a in activities]
    ids: dict[int, set[str]] = {
        i: {keys[i][0].external_id} if keys[i][0] is not None else set() for i in range(n)
    }

    def find(i: int) -> int:
        while parent[i] != i:
            parent[i] = parent[parent[i]]
            i = parent[i]
        return i

    def union(i: int, j: int) -> bool:
        ri, rj = find(i), find(j)
        if ri == rj:
            return True
        combined = ids[ri] | ids[rj]
        if len(combined) > 1:
            logger.debug(
                "not joining %s and %s: external ids %s conflict",
                activities[i].id, activities[j].id, ", ".join(sorted(combined)),
            )
            return False
        root, child = min(ri, rj), max(ri, rj)
        parent[child] = root
        ids[root] = combined
        return True

    for i in range(n):
        for j in range(i + 1, n):
            if keys[i][0] is not None and keys[i][0] == keys[j][0]:
                logger.debug("matched %s <-> %s by external id", activities[i].id, activities[j].id)
                union(i, j)

    for i in range(n):
        if keys[i][0] is not None:
            continue
        partners = [
            (overlap_ratio(keys[i][1], keys[j][1]), j)
            for j in range(n)
            if j != i and keys_match(keys[i], keys[j], overlap_threshold)
        ]
        partners.sort(key=lambda p: (-p[0], p[1]))
        for ratio, j in partners:
            if union(i, j):
                logger.debug(
                    "matched %s <-> %s by time window (%.2f)",
                    activities[i].id, activities[j].id, ratio,
                )
                break

    groups: dict[int, list[int]] = {}
    for i in range(len(activities)):
        groups.setdefault(find(i), []).append(i)
    return list(groups.values())


def reconcile(
    app_activities: Iterable[Activity],
    external_activities: Iterable[Activity],
    overlap_threshold: float = OVERLAP_THRESHOLD,
) -> list[ReconciledActivity]:
    """Deduplicate locally tracked and externally synced activities.

    Args:
        app_activities: Activities recorded by the in-app tracker.
        external_activities: Activities from the external health sync.
        overlap_threshold: Minimum overlap (fraction of the shorter window)
            for the time-window fallback match.

    Returns:
        One ReconciledActivity per real-world session, ordered by start
        time then id.  Activities with inverted time windows are kept.
    """
    pool = sorted(
        [*app_activities, *external_activities],
        key=lambda a: (_rank(a), a.source.value),
    )
    if not pool:
        return []

    results: list[ReconciledActivity] = []
    for members in _group(pool, overlap_threshold):
        group = [pool[i] for i in members]
        merged = merge_group(group)
        if len(group) > 1:
            logger.debug(
                "merged %d records into %s (%s)",
                len(group), merged.id, ", ".join(sorted(a.id for a in group)),
            )
        results.append(ReconciledActivity(
            activity=merged,
            sources=frozenset(a.source for a in group),
            merged_ids=tuple(a.id for a in sorted(group, key=_rank)),
        ))

    results.sort(key=lambda r: (r.activity.start_time, r.activity.id, r.activity.source.value))
    return results
