"""Snap a position onto the route geometry."""

from dataclasses import dataclass
from typing import Sequence

from .geo import distance, project_onto_segment
from .models import Coordinate


@dataclass(frozen=True)
class Projection:
    segment_index: int  # segment i runs from geometry[i] to geometry[i + 1]
    distance_to_route: float  # meters
    projected_point: Coordinate


def project(position: Coordinate, geometry: Sequence[Coordinate]) -> Projection:
    """Find the closest point on the route to position.

    Scans every segment; the first segment reaching the minimum distance wins.
    A single-point geometry projects onto that point.
    """
    if not geometry:
        raise ValueError("cannot project onto an empty route geometry")

    if len(geometry) == 1:
        return Projection(0, distance(position, geometry[0]), geometry[0])

    best_index = 0
    best_distance = float("inf")
    best_point = geometry[0]

    for i in range(len(geometry) - 1):
        point, _ = project_onto_segment(position, geometry[i], geometry[i + 1])
        d = distance(position, point)
        if d < best_distance:
            best_distance = d
            best_index = i
            best_point = point

    return Projection(best_index, best_distance, best_point)
