"""Data classes for Trailguide."""

import math
import numbers
from dataclasses import dataclass, field, fields, asdict
from enum import Enum
from typing import Optional

from .errors import LocationError


def _is_real(value) -> bool:
    return isinstance(value, numbers.Real) and not isinstance(value, bool)


@dataclass(frozen=True)
class Coordinate:
    """WGS-84 position in degrees"""
    lat: float
    lon: float

    def to_dict(self) -> dict:
        return {"lat": self.lat, "lon": self.lon}

    @classmethod
    def from_dict(cls, d: dict) -> "Coordinate":
        # Directions payloads use "lng"
        lon = d["lon"] if "lon" in d else d["lng"]
        return cls(lat=float(d["lat"]), lon=float(lon))


class TurnSide(Enum):
    LEFT = "L"
    RIGHT = "R"
    STRAIGHT = "B"

    @property
    def word(self) -> str:
        return {"L": "left", "R": "right", "B": "straight"}[self.value]


@dataclass(frozen=True)
class RouteStep:
    """One maneuver of a route, in traversal order"""
    index: int
    instruction: str  # plain text, HTML stripped
    maneuver: str
    side: TurnSide
    trigger_at: Coordinate  # where the instruction fires
    end: Coordinate
    distance_m: float
    instruction_html: str = ""


@dataclass(frozen=True)
class RouteData:
    """Read-only route produced by the directions service"""
    route_id: str
    origin_name: str
    destination_name: str
    distance_m: float
    duration_s: float
    eta: str  # ISO timestamp from the directions service
    polyline: str
    steps: tuple[RouteStep, ...]
    geometry: tuple[Coordinate, ...] = ()

    def to_dict(self) -> dict:
        return {
            "routeId": self.route_id,
            "summary": {
                "originName": self.origin_name,
                "destinationName": self.destination_name,
                "distanceMeters": self.distance_m,
                "durationSeconds": self.duration_s,
                "eta": self.eta,
            },
            "polyline": {"points": self.polyline},
            "steps": [
                {
                    "i": s.index,
                    "instructionHtml": s.instruction_html or s.instruction,
                    "maneuver": s.maneuver,
                    "side": s.side.value,
                    "triggerAt": {"lat": s.trigger_at.lat, "lng": s.trigger_at.lon},
                    "end": {"lat": s.end.lat, "lng": s.end.lon},
                    "distanceMeters": s.distance_m,
                }
                for s in self.steps
            ],
        }


@dataclass
class PositionFix:
    lat: float
    lon: float
    accuracy: Optional[float] = None  # meters
    speed: Optional[float] = None  # m/s, negative or None = unknown
    heading: Optional[float] = None
    timestamp: Optional[float] = None

    @property
    def coordinate(self) -> Coordinate:
        return Coordinate(self.lat, self.lon)

    def validate(self):
        """Raise LocationError if the fix cannot be used"""
        lat, lon = self.lat, self.lon
        if not (_is_real(lat) and _is_real(lon)):
            raise LocationError(f"non-numeric coordinates ({lat!r}, {lon!r})", "BAD_COORDINATES")
        if not (math.isfinite(lat) and math.isfinite(lon)):
            raise LocationError(f"non-finite coordinates ({lat}, {lon})", "BAD_COORDINATES")
        if not (-90 <= lat <= 90 and -180 <= lon <= 180):
            raise LocationError(f"coordinates out of range ({lat}, {lon})", "OUT_OF_RANGE")

    def known_speed(self) -> float:
        """Speed in m/s, 0 when the receiver did not report one"""
        if not _is_real(self.speed) or not math.isfinite(self.speed) or self.speed < 0:
            return 0.0
        return self.speed

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, d: dict) -> "PositionFix":
        """Build from a dict, ignoring keys other than the fix fields"""
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in d.items() if k in known})


@dataclass
class NavigationState:
    """Snapshot of an active session; owned and mutated only by NavigationSession"""
    is_navigating: bool = False
    arrived: bool = False
    current_location: Optional[PositionFix] = None
    smoothed_location: Optional[Coordinate] = None
    current_step_index: int = 0
    route_progress: float = 0.0  # fraction [0, 1]
    total_distance_remaining: float = 0.0
    current_speed: float = 0.0
    estimated_time_of_arrival: str = ""
    eta_seconds: float = 0.0
    distance_to_route: float = 0.0
    is_off_route: bool = False
    next_turn: Optional[RouteStep] = None
    distance_to_next_turn: float = 0.0
    fixes_processed: int = 0

    def to_dict(self) -> dict:
        d = {
            "is_navigating": self.is_navigating,
            "arrived": self.arrived,
            "current_step_index": self.current_step_index,
            "route_progress": round(self.route_progress, 4),
            "total_distance_remaining": round(self.total_distance_remaining, 1),
            "current_speed": self.current_speed,
            "estimated_time_of_arrival": self.estimated_time_of_arrival,
            "eta_seconds": round(self.eta_seconds, 1),
            "distance_to_route": round(self.distance_to_route, 1),
            "is_off_route": self.is_off_route,
            "distance_to_next_turn": round(self.distance_to_next_turn, 1),
            "fixes_processed": self.fixes_processed,
            "current_location": self.current_location.to_dict() if self.current_location else None,
            "smoothed_location": self.smoothed_location.to_dict() if self.smoothed_location else None,
            "next_turn": None,
        }
        if self.next_turn:
            d["next_turn"] = {
                "index": self.next_turn.index,
                "instruction": self.next_turn.instruction,
                "side": self.next_turn.side.word,
            }
        return d


class EventType(Enum):
    NAVIGATION_STARTED = "navigation_started"
    STEP_ARRIVED = "step_arrived"
    PREPARE_TO_TURN = "prepare_to_turn"
    OFF_ROUTE = "off_route"
    REROUTE_NEEDED = "reroute_needed"
    REROUTE_FAILED = "reroute_failed"
    ROUTE_REPLACED = "route_replaced"
    DESTINATION_REACHED = "destination_reached"
    NAVIGATION_STOPPED = "navigation_stopped"


@dataclass
class NavigationEvent:
    type: EventType
    title: str
    message: str
    data: dict = field(default_factory=dict)
    timestamp: Optional[float] = None

    def to_dict(self) -> dict:
        return {
            "type": self.type.value,
            "title": self.title,
            "message": self.message,
            "data": self.data,
            "timestamp": self.timestamp,
        }
