"""
Shared pytest fixtures for Trailguide tests.
"""

import os
import sys

import polyline
import pytest

# Add project root to path for imports
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, PROJECT_ROOT)

from trailguide.logger import Logger
from trailguide.models import Coordinate, PositionFix, RouteData, RouteStep, TurnSide
from trailguide.session import NavigationSession


class FakeClock:
    """Manually advanced clock for cooldown tests"""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


class QuietLogger(Logger):
    """Logger that keeps messages instead of printing them"""

    def __init__(self):
        super().__init__()
        self.messages = []

    def log(self, message, data=None):
        self.messages.append((message, data))


def build_step(index, trigger, end, side=TurnSide.STRAIGHT, instruction=None, distance_m=0.0):
    return RouteStep(
        index=index,
        instruction=instruction or f"Step {index}",
        maneuver={TurnSide.LEFT: "turn-left", TurnSide.RIGHT: "turn-right"}.get(side, "straight"),
        side=side,
        trigger_at=Coordinate(*trigger),
        end=Coordinate(*end),
        distance_m=distance_m,
    )


def build_route(points, steps, destination="Library", route_id="rte_test"):
    """RouteData whose polyline encodes points"""
    encoded = polyline.encode(points)
    return RouteData(
        route_id=route_id,
        origin_name="Station",
        destination_name=destination,
        distance_m=0,
        duration_s=0,
        eta="",
        polyline=encoded,
        steps=tuple(steps),
    )


def build_fix(lat, lon, speed=None, timestamp=None):
    return PositionFix(lat=lat, lon=lon, accuracy=5, speed=speed, timestamp=timestamp)


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def quiet_logger():
    return QuietLogger()


@pytest.fixture
def straight_points():
    """Straight line along the equator from (0, 0) to (0, 0.001), about 111 m"""
    return [(0.0, 0.0), (0.0, 0.001)]


@pytest.fixture
def straight_route(straight_points):
    """Two steps: the first triggers at the midpoint, the last at the end"""
    steps = [
        build_step(0, (0.0, 0.0005), (0.0, 0.001), TurnSide.STRAIGHT, "Continue east"),
        build_step(1, (0.0, 0.001), (0.0, 0.001), TurnSide.STRAIGHT, "Arrive"),
    ]
    return build_route(straight_points, steps)


@pytest.fixture
def l_shaped_route():
    """East about 222 m, then north about 222 m, with a left turn at the corner"""
    points = [(0.0, 0.0), (0.0, 0.002), (0.002, 0.002)]
    steps = [
        build_step(0, (0.0, 0.0), (0.0, 0.002), TurnSide.STRAIGHT, "Head east"),
        build_step(1, (0.0, 0.002), (0.002, 0.002), TurnSide.LEFT, "Turn left onto Main St"),
        build_step(2, (0.002, 0.002), (0.002, 0.002), TurnSide.STRAIGHT, "Arrive"),
    ]
    return build_route(points, steps, destination="Museum", route_id="rte_lshape")


@pytest.fixture
def session_factory(fake_clock, quiet_logger):
    """Build a session with a fake clock; window 1 disables smoothing unless overridden"""
    def build(**config):
        cfg = {"smoothing_window": 1}
        cfg.update(config)
        return NavigationSession(cfg, logger=quiet_logger, clock=fake_clock)
    return build


@pytest.fixture
def sample_payload():
    """Directions payload as produced by the route-building service"""
    return {
        "routeId": "rte_abc1234",
        "summary": {
            "originName": "Union Station",
            "destinationName": "City Hall",
            "distanceMeters": 650,
            "durationSeconds": 480,
            "eta": "2026-10-19T10:08:00Z",
        },
        "polyline": {"points": polyline.encode([(43.6452, -79.3806), (43.6465, -79.3810), (43.6525, -79.3832)])},
        "steps": [
            {
                "i": 0,
                "instructionHtml": "Head <b>north</b> on <b>Bay St</b>",
                "maneuver": "straight",
                "side": "B",
                "triggerAt": {"lat": 43.6452, "lng": -79.3806},
                "end": {"lat": 43.6465, "lng": -79.3810},
                "distanceMeters": 150,
            },
            {
                "i": 1,
                "instructionHtml": "Turn <b>left</b> onto <b>Queen St W</b>",
                "maneuver": "turn-left",
                "triggerAt": {"lat": 43.6465, "lng": -79.3810},
                "end": {"lat": 43.6525, "lng": -79.3832},
                "distanceMeters": 500,
            },
        ],
    }


@pytest.fixture
def make_step():
    return build_step


@pytest.fixture
def make_route():
    return build_route


@pytest.fixture
def make_fix():
    return build_fix
