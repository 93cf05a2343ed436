"""Moving-average GPS smoothing."""

from collections import deque
from typing import Sequence

from .models import Coordinate


def smooth_position(new: Coordinate, history: Sequence[Coordinate],
                    window_size: int = 5) -> Coordinate:
    """Mean of the new position and the most recent history, window_size points in total.

    Unweighted; an empty history returns new unchanged.
    """
    window = (list(history) + [new])[-window_size:]
    if len(window) == 1:
        return new

    avg_lat = sum(c.lat for c in window) / len(window)
    avg_lon = sum(c.lon for c in window) / len(window)
    return Coordinate(avg_lat, avg_lon)


class GPSSmoother:
    """Sliding window of recent positions, oldest evicted first"""

    def __init__(self, window_size: int = 5):
        if window_size < 1:
            raise ValueError("window_size must be at least 1")
        self.window_size = window_size
        self.history: deque[Coordinate] = deque(maxlen=window_size)

    def smooth(self, position: Coordinate) -> Coordinate:
        """Add position to the window and return the window mean"""
        smoothed = smooth_position(position, self.history, self.window_size)
        self.history.append(position)
        return smoothed

    def clear(self):
        self.history.clear()

    def __len__(self) -> int:
        return len(self.history)
