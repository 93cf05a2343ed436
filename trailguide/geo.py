"""Geographic utility functions.

Segment projection treats small lat/lon differences as locally planar and
measures the resulting offsets with the haversine formula. Errors stay
negligible at pedestrian scale (below a few hundred meters).
"""

import math
from typing import Sequence

from .models import Coordinate

EARTH_RADIUS = 6371000  # meters


def haversine_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Calculate distance between two points in meters using Haversine formula"""
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    delta_phi = math.radians(lat2 - lat1)
    delta_lambda = math.radians(lon2 - lon1)

    a = (math.sin(delta_phi / 2) ** 2 +
         math.cos(phi1) * math.cos(phi2) * math.sin(delta_lambda / 2) ** 2)
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    return EARTH_RADIUS * c


def bearing_between(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Calculate bearing from point 1 to point 2 in degrees (0-360, 0=North)"""
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    delta_lambda = math.radians(lon2 - lon1)

    x = math.sin(delta_lambda) * math.cos(phi2)
    y = (math.cos(phi1) * math.sin(phi2) -
         math.sin(phi1) * math.cos(phi2) * math.cos(delta_lambda))

    bearing = math.degrees(math.atan2(x, y))
    return (bearing + 360) % 360


def distance(a: Coordinate, b: Coordinate) -> float:
    """Great-circle distance in meters between two coordinates"""
    return haversine_distance(a.lat, a.lon, b.lat, b.lon)


def bearing(a: Coordinate, b: Coordinate) -> float:
    """Initial bearing in degrees [0, 360) from a to b; 0 when a == b"""
    return bearing_between(a.lat, a.lon, b.lat, b.lon)


def project_onto_segment(p: Coordinate, seg_start: Coordinate,
                         seg_end: Coordinate) -> tuple[Coordinate, float]:
    """Closest point to p on the segment, and its parameter t in [0, 1].

    A zero-length segment projects everything onto its start (t = 0).
    """
    ab_lat = seg_end.lat - seg_start.lat
    ab_lon = seg_end.lon - seg_start.lon
    ab_squared = ab_lat * ab_lat + ab_lon * ab_lon

    if ab_squared == 0:
        return seg_start, 0.0

    ap_lat = p.lat - seg_start.lat
    ap_lon = p.lon - seg_start.lon
    t = max(0.0, min(1.0, (ap_lat * ab_lat + ap_lon * ab_lon) / ab_squared))

    projected = Coordinate(seg_start.lat + t * ab_lat, seg_start.lon + t * ab_lon)
    return projected, t


def point_to_segment_distance(p: Coordinate, seg_start: Coordinate,
                              seg_end: Coordinate) -> float:
    """Distance in meters from p to the nearest point of the segment (clamped to its ends)"""
    if seg_start == seg_end:
        return distance(p, seg_start)
    projected, _ = project_onto_segment(p, seg_start, seg_end)
    return distance(p, projected)


def segment_lengths(geometry: Sequence[Coordinate]) -> list[float]:
    """Length in meters of each consecutive segment (N-1 values for N points)"""
    return [distance(geometry[i], geometry[i + 1]) for i in range(len(geometry) - 1)]


def bearing_to_compass(bearing: float) -> str:
    """Convert bearing to compass direction"""
    directions = ["north", "northeast", "east", "southeast",
                  "south", "southwest", "west", "northwest"]
    index = round(bearing / 45) % 8
    return directions[index]
