"""Route progress and arrival-time estimates."""

import math
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Sequence

from .geo import distance, segment_lengths
from .models import Coordinate
from .projector import Projection, project


@dataclass(frozen=True)
class RouteProgress:
    progress_percentage: float  # [0, 100]
    distance_traveled: float  # meters
    total_distance: float
    remaining_distance: float
    projection: Optional[Projection] = None


@dataclass(frozen=True)
class EtaEstimate:
    eta_seconds: float
    eta_timestamp: Optional[datetime]  # None when past the representable date range
    formatted: str
    speed_used: float


def compute_progress(position: Coordinate, geometry: Sequence[Coordinate],
                     lengths: Optional[Sequence[float]] = None) -> RouteProgress:
    """How far along the route the projection of position lies.

    lengths may carry precomputed segment_lengths(geometry) to skip the
    per-call recomputation. Geometries with fewer than two points, or of zero
    total length, report 0% progress.
    """
    if len(geometry) < 2:
        return RouteProgress(0.0, 0.0, 0.0, 0.0)

    if lengths is None:
        lengths = segment_lengths(geometry)
    total_distance = sum(lengths)

    projection = project(position, geometry)
    seg = projection.segment_index
    traveled = sum(lengths[:seg]) + distance(geometry[seg], projection.projected_point)

    if total_distance > 0:
        percentage = max(0.0, min(100.0, traveled / total_distance * 100))
    else:
        percentage = 0.0

    return RouteProgress(
        progress_percentage=percentage,
        distance_traveled=traveled,
        total_distance=total_distance,
        remaining_distance=max(0.0, total_distance - traveled),
        projection=projection,
    )


def format_eta(eta_seconds: float) -> str:
    """'<1m', '{m}m' or '{h}h {m}m', minutes rounded down"""
    if not math.isfinite(eta_seconds):
        return "--"
    hours = int(eta_seconds // 3600)
    minutes = int((eta_seconds % 3600) // 60)
    if hours > 0:
        return f"{hours}h {minutes}m"
    if minutes > 0:
        return f"{minutes}m"
    return "<1m"


def compute_eta(remaining_distance: float, current_speed: Optional[float],
                fallback_speed: float = 1.4, now: Optional[float] = None) -> EtaEstimate:
    """Time to cover remaining_distance at the current speed, or the fallback when unknown"""
    if current_speed is not None and current_speed > 0:
        speed = current_speed
    else:
        speed = fallback_speed
    eta_seconds = remaining_distance / speed

    if now is None:
        now = time.time()

    try:
        eta_timestamp = datetime.fromtimestamp(now + eta_seconds)
    except (OverflowError, ValueError, OSError):
        eta_timestamp = None

    return EtaEstimate(
        eta_seconds=eta_seconds,
        eta_timestamp=eta_timestamp,
        formatted=format_eta(eta_seconds),
        speed_used=speed,
    )
