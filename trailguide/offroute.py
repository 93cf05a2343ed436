"""Off-route detection and reroute rate limiting."""

import time
from typing import Callable, Optional


def is_off_route(distance_to_route: float, threshold: float = 50) -> bool:
    """True when the position is strictly farther than threshold meters from the route.

    No hysteresis: every fix is judged on its own.
    """
    return distance_to_route > threshold


class RerouteGate:
    """Allows at most one reroute request per cooldown window.

    Requests inside the window are dropped, not queued.
    """

    def __init__(self, cooldown: float = 30, clock: Callable[[], float] = time.time):
        self.cooldown = cooldown
        self.clock = clock
        self.last_reroute: Optional[float] = None

    def try_acquire(self) -> bool:
        """Return True and start a new cooldown if a reroute may fire now"""
        now = self.clock()
        if self.last_reroute is not None and now - self.last_reroute <= self.cooldown:
            return False
        self.last_reroute = now
        return True

    def reset(self):
        self.last_reroute = None
