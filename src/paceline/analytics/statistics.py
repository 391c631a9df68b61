"""Multi-day aggregate statistics.

Folds activities into per-day totals, rolls daily totals up over a period
and compares the period with the immediately preceding period of the same
length.  Also builds the weekly comparison, weekly progress and monthly
calendar views.  Every function here is a pure fold over its inputs.
"""

from __future__ import annotations

import calendar
import json
from dataclasses import dataclass, field, asdict
from datetime import date, timedelta
from enum import Enum
from typing import Any, Iterable, Sequence

from paceline.models import Activity


POINTS_PER_THOUSAND_STEPS = 10
POINTS_PER_KM = 20
POINTS_PER_CALORIE = 0.1

DEFAULT_WEEKLY_DISTANCE_GOAL_KM = 50.0

# Calendar intensity: (upper bound km exclusive, level)
INTENSITY_LEVELS = [(2.0, 1), (5.0, 2), (8.0, 3), (12.0, 4)]


class ActivityTimeRange(int, Enum):
    """Period lengths offered for statistics, in days."""

    ONE_WEEK = 7
    TWO_WEEKS = 14
    THREE_WEEKS = 21
    ONE_MONTH = 30

    @property
    def days(self) -> int:
        return int(self.value)


def calculate_points(steps: int, distance_km: float, calories: int) -> int:
    """Activity points: 10 per 1000 steps, 20 per km, 0.1 per kcal."""
    return int(round(
        steps / 1000.0 * POINTS_PER_THOUSAND_STEPS
        + distance_km * POINTS_PER_KM
        + calories * POINTS_PER_CALORIE
    ))


@dataclass
class DailyTotals:
    """Totals for one calendar day."""

    date: date
    steps: int = 0
    distance_km: float = 0.0
    calories: int = 0
    points: int = 0
    activity_count: int = 0
    duration_s: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        d = asdict(self)
        d["date"] = self.date.isoformat()
        return d


def daily_totals_from_activities(activities: Iterable[Activity]) -> list[DailyTotals]:
    """Fold activities into one DailyTotals per start date, oldest first."""
    days: dict[date, DailyTotals] = {}
    for act in activities:
        day = act.start_time.date()
        totals = days.setdefault(day, DailyTotals(date=day))
        totals.steps += act.steps
        totals.distance_km += max(act.distance_km, 0.0)
        totals.calories += act.calories
        totals.points += calculate_points(act.steps, max(act.distance_km, 0.0), act.calories)
        totals.activity_count += 1
        totals.duration_s += act.duration_s
    return [days[d] for d in sorted(days)]


# ---------------------------------------------------------------------------
# Period roll-up
# ---------------------------------------------------------------------------


@dataclass
class PeriodTotals:
    """Summed daily totals over a period of ``days`` days."""

    total_steps: int = 0
    total_distance_km: float = 0.0
    total_calories: int = 0
    total_points: int = 0
    days: int = 0

    @property
    def average_steps_per_day(self) -> int:
        return int(round(self.total_steps / max(self.days, 1)))

    @property
    def average_distance_per_day(self) -> float:
        return self.total_distance_km / max(self.days, 1)

    @property
    def average_calories_per_day(self) -> float:
        return self.total_calories / max(self.days, 1)

    @property
    def average_points_per_day(self) -> float:
        return self.total_points / max(self.days, 1)

    def to_dict(self) -> dict[str, Any]:
        d = asdict(self)
        d["total_distance_km"] = round(self.total_distance_km, 3)
        d["average_steps_per_day"] = self.average_steps_per_day
        d["average_distance_per_day"] = round(self.average_distance_per_day, 3)
        return d


def period_totals(daily: Iterable[DailyTotals], days: int | None = None) -> PeriodTotals:
    """Sum *daily* into a PeriodTotals.

    Args:
        daily: Daily totals inside the period.
        days: Period length; defaults to the number of daily records.
    """
    totals = PeriodTotals()
    count = 0
    for day in daily:
        totals.total_steps += day.steps
        totals.total_distance_km += day.distance_km
        totals.total_calories += day.calories
        totals.total_points += day.points
        count += 1
    totals.days = count if days is None else max(days, 0)
    return totals


def percentage_change(current: float, previous: float) -> float:
    """Percent change from *previous* to *current*; 0 when *previous* is 0."""
    if previous <= 0:
        return 0.0
    return (current - previous) / previous * 100.0


@dataclass
class ActivityStatistics:
    """Period totals plus comparison with the preceding period."""

    period: PeriodTotals
    previous_period: PeriodTotals
    percentage_change: float = 0.0  # of average daily distance
    yesterday_distance_km: float = 0.0

    @property
    def is_increased(self) -> bool:
        return self.percentage_change >= 0

    @property
    def formatted_percentage_change(self) -> str:
        direction = "Increase" if self.is_increased else "Decrease"
        return f"Distance {direction} {int(abs(self.percentage_change))}%"

    def to_dict(self) -> dict[str, Any]:
        return {
            "period": self.period.to_dict(),
            "previous_period": self.previous_period.to_dict(),
            "percentage_change": self.percentage_change,
            "yesterday_distance_km": round(self.yesterday_distance_km, 3),
        }

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)

    def __repr__(self) -> str:
        return (
            f"ActivityStatistics({self.period.days}d: "
            f"{self.period.total_distance_km:.2f}km, "
            f"{self.period.total_steps} steps, "
            f"change={self.percentage_change:+.1f}%)"
        )


def compute_statistics(
    current: Sequence[DailyTotals],
    previous: Sequence[DailyTotals],
    today: date,
    days: int | None = None,
) -> ActivityStatistics:
    """Roll up the current and previous periods and compare them.

    Args:
        current: Daily totals of the requested period.
        previous: Daily totals of the preceding period of equal length.
        today: Reference day; yesterday's distance is looked up from the
            daily totals for ``today - 1``.
        days: Length of each period in days; defaults to the number of
            daily records in *current*.

    Returns:
        ActivityStatistics.  The percentage change compares average daily
        distance and is 0 when the previous average is 0.
    """
    period_days = len(current) if days is None else days
    cur = period_totals(current, period_days)
    prev = period_totals(previous, period_days)

    change = percentage_change(cur.average_distance_per_day, prev.average_distance_per_day)

    yesterday = today - timedelta(days=1)
    yesterday_km = next(
        (d.distance_km for d in (*current, *previous) if d.date == yesterday), 0.0
    )

    return ActivityStatistics(
        period=cur,
        previous_period=prev,
        percentage_change=round(change, 1),
        yesterday_distance_km=yesterday_km,
    )


def period_bounds(today: date, days: int) -> tuple[tuple[date, date], tuple[date, date]]:
    """``((cur_start, cur_end), (prev_start, prev_end))`` inclusive date ranges."""
    cur_start = today - timedelta(days=days - 1)
    prev_end = cur_start - timedelta(days=1)
    prev_start = prev_end - timedelta(days=days - 1)
    return (cur_start, today), (prev_start, prev_end)


def statistics_for_range(
    daily: Iterable[DailyTotals],
    days: int | ActivityTimeRange,
    today: date,
) -> ActivityStatistics:
    """Split a flat list of daily totals into the two periods and compare."""
    n = days.days if isinstance(days, ActivityTimeRange) else int(days)
    if n <= 0:
        return ActivityStatistics(PeriodTotals(), PeriodTotals())

    (cur_start, cur_end), (prev_start, prev_end) = period_bounds(today, n)
    daily = list(daily)
    current = [d for d in daily if cur_start <= d.date <= cur_end]
    previous = [d for d in daily if prev_start <= d.date <= prev_end]
    return compute_statistics(current, previous, today, days=n)


# ---------------------------------------------------------------------------
# Weekly comparison / progress
# ---------------------------------------------------------------------------


@dataclass
class WeeklyComparison:
    """Average daily distance of two consecutive weeks."""

    current_week_average: float  # km/day
    previous_week_average: float  # km/day
    current_week_start: date | None = None
    previous_week_start: date | None = None

    @property
    def improvement(self) -> float:
        return percentage_change(self.current_week_average, self.previous_week_average)

    @property
    def insight_text(self) -> str:
        if self.current_week_average > self.previous_week_average:
            return ("On average, your walking and running distance last week "
                    "was more than the week before")
        if self.current_week_average < self.previous_week_average:
            return ("On average, your walking and running distance last week "
                    "was less than the week before")
        return ("Your walking and running distance remained consistent "
                "compared to last week")


def weekly_comparison(daily: Iterable[DailyTotals], week_start: date) -> WeeklyComparison:
    """Compare the 7 days from *week_start* with the 7 days before it."""
    daily = list(daily)
    prev_start = week_start - timedelta(days=7)
    cur = [d for d in daily if week_start <= d.date < week_start + timedelta(days=7)]
    prev = [d for d in daily if prev_start <= d.date < week_start]
    return WeeklyComparison(
        current_week_average=period_totals(cur, 7).average_distance_per_day,
        previous_week_average=period_totals(prev, 7).average_distance_per_day,
        current_week_start=week_start,
        previous_week_start=prev_start,
    )


@dataclass
class DailyDistance:
    date: date
    distance_km: float
    activity_count: int


@dataclass
class WeeklyProgress:
    """Seven days of distance against a weekly goal."""

    week_start: date
    daily_distances: list[DailyDistance] = field(default_factory=list)
    total_distance_km: float = 0.0
    total_activities: int = 0
    avg_daily_distance_km: float = 0.0
    goal_distance_km: float = DEFAULT_WEEKLY_DISTANCE_GOAL_KM
    goal_progress: float = 0.0  # 0-1


def weekly_progress(
    daily: Iterable[DailyTotals],
    week_start: date,
    goal_distance_km: float = DEFAULT_WEEKLY_DISTANCE_GOAL_KM,
) -> WeeklyProgress:
    """Per-day distance for the week starting *week_start* and goal progress."""
    by_date = {d.date: d for d in daily}
    progress = WeeklyProgress(week_start=week_start, goal_distance_km=goal_distance_km)

    for offset in range(7):
        day = week_start + timedelta(days=offset)
        totals = by_date.get(day)
        distance = totals.distance_km if totals else 0.0
        count = totals.activity_count if totals else 0
        progress.daily_distances.append(DailyDistance(day, distance, count))
        progress.total_distance_km += distance
        progress.total_activities += count

    progress.avg_daily_distance_km = progress.total_distance_km / 7.0
    if goal_distance_km > 0:
        progress.goal_progress = min(progress.total_distance_km / goal_distance_km, 1.0)
    return progress


# ---------------------------------------------------------------------------
# Calendar
# ---------------------------------------------------------------------------


def intensity_level(distance_km: float) -> int:
    """0 for no distance, then 1-5 by distance band."""
    if distance_km <= 0:
        return 0
    for upper, level in INTENSITY_LEVELS:
        if distance_km < upper:
            return level
    return 5


@dataclass
class CalendarDay:
    date: date
    total_distance_km: float = 0.0
    total_duration_s: float = 0.0
    activity_count: int = 0
    activity_ids: list[str] = field(default_factory=list)

    @property
    def has_activity(self) -> bool:
        return self.activity_count > 0

    @property
    def intensity_level(self) -> int:
        return intensity_level(self.total_distance_km)


def calendar_month(activities: Iterable[Activity], year: int, month: int) -> list[CalendarDay]:
    """One CalendarDay per day of the given month."""
    n_days = calendar.monthrange(year, month)[1]
    days = [CalendarDay(date=date(year, month, d)) for d in range(1, n_days + 1)]

    for act in activities:
        start = act.start_time.date()
        if start.year != year or start.month != month:
            continue
        day = days[start.day - 1]
        day.total_distance_km += max(act.distance_km, 0.0)
        day.total_duration_s += act.duration_s
        day.activity_count += 1
        day.activity_ids.append(act.id)

    return days
