"""Tests for paceline.analytics.splits -- per-kilometer splits."""

import logging
import math

import pytest

from paceline.analytics.splits import (
    PACE_UNAVAILABLE,
    SPLIT_DISTANCE_M,
    build_splits,
    split_pace,
)
from paceline.geo import route_distance_m
from tests.conftest import make_heart_rate, make_point, make_route


class TestSplitPace:
    def test_regular(self):
        assert split_pace(300, 1000.0) == 300
        assert split_pace(108, 300.0) == 360

    def test_degenerate(self):
        assert split_pace(0, 1000.0) == PACE_UNAVAILABLE
        assert split_pace(100, 0.0) == PACE_UNAVAILABLE


class TestBuildSplits:
    def test_constant_pace_with_partial(self):
        # 2.3 km at 6:00/km -> 1000 + 1000 + 300 m
        splits = build_splits(make_route(2.3, pace_s_per_km=360.0))
        assert len(splits) == 3
        assert [s.index for s in splits] == [1, 2, 3]
        assert [s.distance_m for s in splits] == pytest.approx([1000.0, 1000.0, 300.0])
        assert [s.duration_s for s in splits] == [360, 360, 108]
        assert [s.pace_s_per_km for s in splits] == [360, 360, 360]
        assert not splits[0].is_partial
        assert splits[2].is_partial
        assert splits[0].formatted_pace == "6:00"

    def test_exact_kilometers_have_no_partial(self):
        splits = build_splits(make_route(2.0))
        assert len(splits) == 2
        assert not any(s.is_partial for s in splits)

    def test_split_times_are_contiguous(self):
        splits = build_splits(make_route(3.5))
        for a, b in zip(splits, splits[1:]):
            assert a.end_time == b.start_time

    def test_irregular_spacing_covers_route(self):
        offsets = [0, 7, 250, 260, 900, 1500, 1510, 2750]
        route = [make_point(m, m * 0.3) for m in offsets]
        splits = build_splits(route)
        total = route_distance_m(route)
        assert sum(s.distance_m for s in splits) == pytest.approx(total)
        assert len(splits) == math.ceil(total / SPLIT_DISTANCE_M)
        assert [s.distance_m for s in splits] == pytest.approx([1000.0, 1000.0, 750.0])

    def test_gps_gap_closes_several_splits(self):
        route = [
            make_point(0, 0),
            make_point(10, 6),
            make_point(2510, 906),  # 2.5 km jump
            make_point(2520, 912),
        ]
        splits = build_splits(route)
        assert len(splits) == 3
        assert [s.distance_m for s in splits] == pytest.approx([1000.0, 1000.0, 520.0])
        assert [s.duration_s for s in splits] == [362, 360, 190]

    def test_zero_duration_has_unavailable_pace(self):
        route = [make_point(m, 0) for m in range(0, 1510, 10)]
        splits = build_splits(route)
        assert len(splits) == 2
        assert all(s.duration_s == 0 for s in splits)
        assert all(s.pace_s_per_km == PACE_UNAVAILABLE for s in splits)
        assert splits[0].formatted_pace == "--:--"

    def test_duplicate_timestamps(self):
        route = [make_point(0, 0), make_point(600, 200), make_point(700, 200), make_point(1200, 400)]
        splits = build_splits(route)
        assert [s.distance_m for s in splits] == pytest.approx([1000.0, 200.0])
        assert all(s.duration_s >= 0 for s in splits)

    def test_backwards_timestamps(self, caplog):
        route = [make_point(0, 0), make_point(500, 200), make_point(1000, 100), make_point(1500, 500)]
        with caplog.at_level(logging.WARNING):
            splits = build_splits(route)
        assert [s.duration_s for s in splits] == [200, 300]
        assert "backwards" in caplog.text

    def test_single_point(self):
        assert build_splits([make_point(0, 0)]) == []

    def test_empty(self):
        assert build_splits([]) == []

    def test_stationary_route(self):
        route = [make_point(0, t) for t in range(0, 100, 5)]
        assert build_splits(route) == []


class TestElevation:
    def test_gain_and_loss(self):
        # Climbs 20 m over the first km, descends 10 m over the next 500 m
        route = make_route(1.5, altitude=lambda i: 10.0 + 0.2 * min(i, 200 - i))
        splits = build_splits(route)
        assert splits[0].elevation_gain_m == pytest.approx(20.0)
        assert splits[0].elevation_loss_m == pytest.approx(0.0)
        assert splits[1].elevation_gain_m == pytest.approx(0.0)
        assert splits[1].elevation_loss_m == pytest.approx(10.0)

    def test_missing_altitude(self):
        splits = build_splits(make_route(1.2))
        assert all(s.elevation_gain_m == 0.0 and s.elevation_loss_m == 0.0 for s in splits)


class TestSplitHeartRate:
    def test_uniform(self):
        route = make_route(2.3)
        hr = make_heart_rate(828, bpm=140)
        splits = build_splits(route, hr)
        assert [s.avg_heart_rate for s in splits] == [140, 140, 140]

    def test_per_split_window(self):
        route = make_route(2.3)
        hr = make_heart_rate(828, bpm=lambda i: 120 if i * 5 < 400 else 160)
        splits = build_splits(route, hr)
        assert splits[0].avg_heart_rate == 120
        assert splits[1].avg_heart_rate == 156
        assert splits[2].avg_heart_rate == 160

    def test_no_heart_rate(self):
        splits = build_splits(make_route(1.5))
        assert all(s.avg_heart_rate is None for s in splits)

    def test_to_dict(self):
        d = build_splits(make_route(1.0), make_heart_rate(360))[0].to_dict()
        assert d["index"] == 1
        assert d["pace_s_per_km"] == 360
        assert isinstance(d["start_time"], str)
