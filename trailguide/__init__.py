"""Trailguide - Turn-by-turn route tracking for pedestrians."""

from .config import CONFIG, load_config
from .errors import NavigationError, RouteError, LocationError, ConfigError
from .models import (
    Coordinate,
    TurnSide,
    RouteStep,
    RouteData,
    PositionFix,
    NavigationState,
    EventType,
    NavigationEvent,
)
from .logger import Logger
from .geo import (
    haversine_distance,
    bearing_between,
    distance,
    bearing,
    point_to_segment_distance,
    project_onto_segment,
    segment_lengths,
    bearing_to_compass,
)
from .projector import Projection, project
from .progress import RouteProgress, EtaEstimate, compute_progress, compute_eta, format_eta
from .smoothing import GPSSmoother, smooth_position
from .offroute import RerouteGate, is_off_route
from .steps import StepTracker, StepUpdate
from .routes import route_from_payload, decode_geometry, maneuver_to_side
from .session import NavigationSession
from .gps import GPS, GPSRecorder, GPSPlayback
from .simulate import SimulatedGPS, simulate_walk
from .store import RouteStore
from .monitor import StateMonitor, WebSocketGPS
from .app import Navigator
from .__main__ import main

__all__ = [
    "CONFIG",
    "load_config",
    "NavigationError",
    "RouteError",
    "LocationError",
    "ConfigError",
    "Coordinate",
    "TurnSide",
    "RouteStep",
    "RouteData",
    "PositionFix",
    "NavigationState",
    "EventType",
    "NavigationEvent",
    "Logger",
    "haversine_distance",
    "bearing_between",
    "distance",
    "bearing",
    "point_to_segment_distance",
    "project_onto_segment",
    "segment_lengths",
    "bearing_to_compass",
    "Projection",
    "project",
    "RouteProgress",
    "EtaEstimate",
    "compute_progress",
    "compute_eta",
    "format_eta",
    "GPSSmoother",
    "smooth_position",
    "RerouteGate",
    "is_off_route",
    "StepTracker",
    "StepUpdate",
    "route_from_payload",
    "decode_geometry",
    "maneuver_to_side",
    "NavigationSession",
    "GPS",
    "GPSRecorder",
    "GPSPlayback",
    "SimulatedGPS",
    "simulate_walk",
    "RouteStore",
    "StateMonitor",
    "WebSocketGPS",
    "Navigator",
    "main",
]
