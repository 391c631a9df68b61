"""Tests for paceline.analytics.statistics -- daily roll-up and period stats."""

import json
from datetime import date, datetime, timedelta, timezone

import pytest

from paceline.analytics.statistics import (
    ActivityTimeRange,
    DailyTotals,
    calculate_points,
    calendar_month,
    compute_statistics,
    daily_totals_from_activities,
    intensity_level,
    percentage_change,
    period_bounds,
    period_totals,
    statistics_for_range,
    weekly_comparison,
    weekly_progress,
)
from tests.conftest import BASE_TIME, make_activity

TODAY = date(2026, 10, 18)


def _day(d, distance_km=0.0, steps=0, calories=0, points=0, count=1):
    return DailyTotals(
        date=d, steps=steps, distance_km=distance_km, calories=calories,
        points=points, activity_count=count,
    )


def _week(start, km_per_day):
    return [_day(start + timedelta(days=i), km_per_day) for i in range(7)]


class TestPoints:
    def test_formula(self):
        assert calculate_points(10000, 5.0, 300) == 230

    def test_zero(self):
        assert calculate_points(0, 0.0, 0) == 0

    def test_rounded(self):
        assert calculate_points(1234, 1.01, 7) == 33  # 12.34 + 20.2 + 0.7


class TestTimeRange:
    def test_days(self):
        assert [r.days for r in ActivityTimeRange] == [7, 14, 21, 30]


class TestDailyTotals:
    def test_fold_by_day(self):
        acts = [
            make_activity(id="a", steps=4000, distance_km=3.0, calories=200),
            make_activity(id="b", start=BASE_TIME + timedelta(hours=6), steps=1000,
                          distance_km=1.0, calories=50, duration_s=600),
            make_activity(id="c", start=BASE_TIME - timedelta(days=1), distance_km=2.5),
        ]
        daily = daily_totals_from_activities(acts)
        assert [d.date for d in daily] == [date(2026, 10, 17), date(2026, 10, 18)]
        today = daily[1]
        assert today.steps == 5000
        assert today.distance_km == pytest.approx(4.0)
        assert today.calories == 250
        assert today.activity_count == 2
        assert today.duration_s == 2400.0
        assert today.points == calculate_points(4000, 3.0, 200) + calculate_points(1000, 1.0, 50)

    def test_empty(self):
        assert daily_totals_from_activities([]) == []


class TestPeriodTotals:
    def test_averages(self):
        totals = period_totals(_week(TODAY, 3.0), 7)
        assert totals.total_distance_km == pytest.approx(21.0)
        assert totals.average_distance_per_day == pytest.approx(3.0)

    def test_missing_days_count_in_average(self):
        totals = period_totals([_day(TODAY, 14.0)], 7)
        assert totals.average_distance_per_day == pytest.approx(2.0)

    def test_empty_period(self):
        totals = period_totals([], 7)
        assert totals.average_distance_per_day == 0.0
        assert totals.average_steps_per_day == 0


class TestPercentageChange:
    def test_previous_zero(self):
        assert percentage_change(3.0, 0.0) == 0.0

    def test_increase(self):
        assert percentage_change(4.5, 3.0) == pytest.approx(50.0)

    def test_decrease(self):
        assert percentage_change(1.5, 3.0) == pytest.approx(-50.0)


class TestComputeStatistics:
    def test_no_previous_activity(self):
        current = _week(TODAY - timedelta(days=6), 3.0)
        stats = compute_statistics(current, [], TODAY, days=7)
        assert stats.period.average_distance_per_day == pytest.approx(3.0)
        assert stats.percentage_change == 0.0
        assert stats.is_increased
        assert stats.formatted_percentage_change == "Distance Increase 0%"

    def test_fifty_percent(self):
        current = _week(TODAY - timedelta(days=6), 4.5)
        previous = _week(TODAY - timedelta(days=13), 3.0)
        stats = compute_statistics(current, previous, TODAY, days=7)
        assert stats.percentage_change == 50.0

    def test_decrease(self):
        current = _week(TODAY - timedelta(days=6), 2.0)
        previous = _week(TODAY - timedelta(days=13), 4.0)
        stats = compute_statistics(current, previous, TODAY, days=7)
        assert stats.percentage_change == -50.0
        assert not stats.is_increased
        assert stats.formatted_percentage_change == "Distance Decrease 50%"

    def test_yesterday(self):
        current = [_day(TODAY, 5.0), _day(TODAY - timedelta(days=1), 3.25)]
        stats = compute_statistics(current, [], TODAY, days=7)
        assert stats.yesterday_distance_km == 3.25

    def test_no_yesterday(self):
        stats = compute_statistics([_day(TODAY, 5.0)], [], TODAY, days=7)
        assert stats.yesterday_distance_km == 0.0

    def test_json(self):
        stats = compute_statistics(_week(TODAY - timedelta(days=6), 1.0), [], TODAY, days=7)
        data = json.loads(stats.to_json())
        assert data["period"]["days"] == 7
        assert data["percentage_change"] == 0.0


class TestStatisticsForRange:
    def test_bounds(self):
        (cur_start, cur_end), (prev_start, prev_end) = period_bounds(TODAY, 7)
        assert (cur_start, cur_end) == (date(2026, 10, 12), TODAY)
        assert (prev_start, prev_end) == (date(2026, 10, 5), date(2026, 10, 11))

    def test_splits_periods(self):
        daily = [
            _day(TODAY, 5.0),
            _day(date(2026, 10, 17), 3.0),
            _day(date(2026, 10, 10), 4.0),
            _day(date(2026, 9, 1), 99.0),  # outside both periods
        ]
        stats = statistics_for_range(daily, ActivityTimeRange.ONE_WEEK, TODAY)
        assert stats.period.total_distance_km == pytest.approx(8.0)
        assert stats.previous_period.total_distance_km == pytest.approx(4.0)
        assert stats.percentage_change == 100.0
        assert stats.yesterday_distance_km == 3.0

    def test_integer_days(self):
        daily = [_day(TODAY - timedelta(days=i), 1.0) for i in range(30)]
        stats = statistics_for_range(daily, 14, TODAY)
        assert stats.period.days == 14
        assert stats.period.total_distance_km == pytest.approx(14.0)
        assert stats.previous_period.total_distance_km == pytest.approx(14.0)
        assert stats.percentage_change == 0.0

    def test_non_positive_days(self):
        stats = statistics_for_range([_day(TODAY, 5.0)], 0, TODAY)
        assert stats.period.total_distance_km == 0.0
        assert stats.percentage_change == 0.0


class TestWeekly:
    def test_comparison_more(self):
        week_start = date(2026, 10, 12)
        daily = _week(week_start, 4.0) + _week(week_start - timedelta(days=7), 2.0)
        cmp = weekly_comparison(daily, week_start)
        assert cmp.current_week_average == pytest.approx(4.0)
        assert cmp.previous_week_average == pytest.approx(2.0)
        assert cmp.improvement == pytest.approx(100.0)
        assert "more than" in cmp.insight_text

    def test_comparison_consistent(self):
        cmp = weekly_comparison([], date(2026, 10, 12))
        assert cmp.improvement == 0.0
        assert "consistent" in cmp.insight_text

    def test_progress(self):
        week_start = date(2026, 10, 12)
        daily = [_day(week_start, 10.0, count=1), _day(week_start + timedelta(days=2), 15.0, count=2)]
        progress = weekly_progress(daily, week_start)
        assert len(progress.daily_distances) == 7
        assert progress.daily_distances[1].distance_km == 0.0
        assert progress.total_distance_km == pytest.approx(25.0)
        assert progress.total_activities == 3
        assert progress.goal_progress == pytest.approx(0.5)

    def test_progress_capped(self):
        week_start = date(2026, 10, 12)
        progress = weekly_progress(_week(week_start, 20.0), week_start)
        assert progress.goal_progress == 1.0


class TestCalendar:
    @pytest.mark.parametrize("km,level", [
        (0.0, 0), (1.5, 1), (2.0, 2), (7.9, 3), (10.0, 4), (12.0, 5), (30.0, 5),
    ])
    def test_intensity(self, km, level):
        assert intensity_level(km) == level

    def test_month(self):
        acts = [
            make_activity(id="a", distance_km=3.0),
            make_activity(id="b", start=BASE_TIME + timedelta(hours=3), distance_km=6.0),
            make_activity(id="c", start=datetime(2026, 11, 1, 8, tzinfo=timezone.utc), distance_km=4.0),
        ]
        days = calendar_month(acts, 2026, 10)
        assert len(days) == 31
        day = days[17]
        assert day.date == TODAY
        assert day.activity_ids == ["a", "b"]
        assert day.total_distance_km == pytest.approx(9.0)
        assert day.intensity_level == 4
        assert not days[0].has_activity
        assert all(d.activity_count == 0 for d in days if d.date != TODAY)
