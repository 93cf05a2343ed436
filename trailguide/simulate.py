"""Simulated walks along a route, for testing without GPS hardware."""

import json
import math
import random
from datetime import datetime
from typing import Optional, Sequence

from .config import CONFIG
from .geo import segment_lengths
from .models import Coordinate, PositionFix

METERS_PER_DEGREE = 111320


def point_at_distance(geometry: Sequence[Coordinate], lengths: Sequence[float],
                      along: float) -> Coordinate:
    """Point `along` meters from the start of the geometry, clamped to its ends"""
    if along <= 0:
        return geometry[0]
    for i, seg_len in enumerate(lengths):
        if along <= seg_len and seg_len > 0:
            f = along / seg_len
            a, b = geometry[i], geometry[i + 1]
            return Coordinate(a.lat + f * (b.lat - a.lat), a.lon + f * (b.lon - a.lon))
        along -= seg_len
    return geometry[-1]


def simulate_walk(geometry: Sequence[Coordinate], speed: float = 1.4,
                  interval: float = 1.0, noise: float = 0.0,
                  seed: Optional[int] = None, start_time: float = 0.0) -> list[PositionFix]:
    """Fixes for a walk along geometry at a constant speed.

    noise is the standard deviation of the jitter in meters. The last fix
    always lands on the final route point (plus jitter).
    """
    if len(geometry) < 2:
        raise ValueError("geometry needs at least 2 points")
    if speed <= 0 or interval <= 0:
        raise ValueError("speed and interval must be positive")

    rng = random.Random(seed)
    lengths = segment_lengths(geometry)
    total = sum(lengths)
    step = speed * interval

    count = int(math.ceil(total / step)) if total > 0 else 0
    fixes = []
    for n in range(count + 1):
        along = min(n * step, total)
        point = point_at_distance(geometry, lengths, along)
        lat, lon = point.lat, point.lon
        if noise > 0:
            lat += rng.gauss(0, noise) / METERS_PER_DEGREE
            lon += rng.gauss(0, noise) / (METERS_PER_DEGREE * max(math.cos(math.radians(lat)), 1e-6))
        fixes.append(PositionFix(
            lat=lat,
            lon=lon,
            accuracy=max(noise, 1.0),
            speed=speed,
            timestamp=start_time + n * interval,
        ))
    return fixes


def write_trace(fixes: Sequence[PositionFix], path: str, interval: float = 1.0):
    """Save fixes in the GPSPlayback trace format"""
    trace = [
        {"elapsed": n * interval, "timestamp": fix.timestamp,
         "location": fix.to_dict(), "status": "Simulated"}
        for n, fix in enumerate(fixes)
    ]
    with open(path, "w") as f:
        json.dump({"recorded_at": datetime.now().isoformat(), "trace": trace}, f, indent=2)


class SimulatedGPS:
    """Fix source that walks the route"""

    def __init__(self, geometry: Sequence[Coordinate], speed: float = 1.4,
                 interval: Optional[float] = None, noise: Optional[float] = None,
                 seed: Optional[int] = None):
        self.interval = interval if interval is not None else CONFIG["simulated_fix_interval"]
        noise = noise if noise is not None else CONFIG["simulated_noise"]
        self.fixes = simulate_walk(geometry, speed, self.interval, noise, seed)
        self.index = 0

    def get_location(self, timeout: int = 30) -> Optional[PositionFix]:
        if self.index >= len(self.fixes):
            return None
        fix = self.fixes[self.index]
        self.index += 1
        return fix

    def get_poll_interval(self) -> float:
        return self.interval

    def is_finished(self) -> bool:
        return self.index >= len(self.fixes)

    def get_status(self) -> str:
        return f"Simulated ({self.index}/{len(self.fixes)})"
