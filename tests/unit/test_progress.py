"""
Unit tests for route progress and ETA calculations.
"""

from datetime import datetime

import pytest
from trailguide.models import Coordinate
from trailguide.progress import compute_eta, compute_progress, format_eta


@pytest.fixture
def line():
    return [Coordinate(0.0, 0.0), Coordinate(0.0, 0.001), Coordinate(0.0, 0.002)]


class TestComputeProgress:
    """Tests for progress along the route."""

    @pytest.mark.unit
    def test_start_and_end(self, line):
        start = compute_progress(line[0], line)
        end = compute_progress(line[-1], line)
        assert start.progress_percentage == pytest.approx(0.0)
        assert start.remaining_distance == pytest.approx(start.total_distance)
        assert end.progress_percentage == pytest.approx(100.0)
        assert end.remaining_distance == pytest.approx(0.0, abs=1e-6)

    @pytest.mark.unit
    def test_midpoint(self, line):
        result = compute_progress(Coordinate(0.0, 0.001), line)
        assert result.progress_percentage == pytest.approx(50.0, abs=0.01)
        assert result.distance_traveled + result.remaining_distance == pytest.approx(result.total_distance)

    @pytest.mark.unit
    def test_monotonic_along_route(self, line):
        """Walking forward along the route never decreases progress."""
        previous = -1.0
        for i in range(21):
            p = Coordinate(0.00002, 0.0001 * i)
            pct = compute_progress(p, line).progress_percentage
            assert pct >= previous
            previous = pct

    @pytest.mark.unit
    @pytest.mark.parametrize("position", [
        Coordinate(0.0, -0.01),   # before the start
        Coordinate(0.0, 0.05),    # past the end
        Coordinate(0.5, 0.001),   # far to the side
    ])
    def test_bounds(self, line, position):
        result = compute_progress(position, line)
        assert 0.0 <= result.progress_percentage <= 100.0
        assert result.remaining_distance >= 0.0

    @pytest.mark.unit
    def test_lengths_can_be_precomputed(self, line):
        p = Coordinate(0.0001, 0.0013)
        assert compute_progress(p, line, [111.0, 111.0]).total_distance == pytest.approx(222.0)
        assert compute_progress(p, line).progress_percentage == pytest.approx(65.0, abs=0.1)

    @pytest.mark.unit
    @pytest.mark.parametrize("geometry", [[], [Coordinate(1.0, 1.0)]])
    def test_short_geometry_reports_zero(self, geometry):
        result = compute_progress(Coordinate(1.0, 1.0), geometry)
        assert result.progress_percentage == 0.0
        assert result.distance_traveled == 0.0
        assert result.remaining_distance == 0.0
        assert result.projection is None

    @pytest.mark.unit
    def test_zero_length_geometry(self):
        p = Coordinate(1.0, 1.0)
        result = compute_progress(p, [p, p])
        assert result.progress_percentage == 0.0


class TestFormatEta:
    """Tests for ETA formatting."""

    @pytest.mark.unit
    @pytest.mark.parametrize("seconds,expected", [
        (0, "<1m"),
        (59.9, "<1m"),
        (60, "1m"),
        (714.3, "11m"),
        (3599, "59m"),
        (3600, "1h 0m"),
        (3725, "1h 2m"),
        (7 * 3600 + 59 * 60 + 59, "7h 59m"),
    ])
    def test_format(self, seconds, expected):
        assert format_eta(seconds) == expected


class TestComputeEta:
    """Tests for ETA estimation."""

    @pytest.mark.unit
    def test_uses_current_speed(self):
        eta = compute_eta(1000, 1.4, now=0)
        assert eta.eta_seconds == pytest.approx(714.2857, rel=1e-4)
        assert eta.formatted == "11m"
        assert eta.speed_used == 1.4

    @pytest.mark.unit
    @pytest.mark.parametrize("speed", [None, 0, -1])
    def test_unknown_speed_uses_fallback(self, speed):
        eta = compute_eta(1000, speed, fallback_speed=2.0, now=0)
        assert eta.speed_used == 2.0
        assert eta.eta_seconds == pytest.approx(500)
        assert eta.formatted == "8m"

    @pytest.mark.unit
    def test_timestamp_is_now_plus_eta(self):
        eta = compute_eta(140, 1.4, now=1_700_000_000)
        assert eta.eta_timestamp == datetime.fromtimestamp(1_700_000_100)

    @pytest.mark.unit
    def test_zero_remaining(self):
        eta = compute_eta(0, None, now=0)
        assert eta.eta_seconds == 0
        assert eta.formatted == "<1m"

    @pytest.mark.unit
    def test_crawling_speed_has_no_timestamp(self):
        eta = compute_eta(22.2, 1e-12, now=1_700_000_000)
        assert eta.eta_seconds == pytest.approx(2.22e13)
        assert eta.eta_timestamp is None
        assert eta.formatted.endswith("m")
        assert eta.speed_used == 1e-12

    @pytest.mark.unit
    def test_infinite_eta_formatted(self):
        assert compute_eta(100, 5e-324, now=0).formatted == "--"
