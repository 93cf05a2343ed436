"""Configuration settings for Trailguide."""

import math
import os
from typing import Optional

from .errors import ConfigError

DEFAULTS = {
    "proximity_threshold": 30,  # meters - step is reached inside this radius of its trigger point
    "turn_warning_distance": 100,  # meters - "prepare to turn" inside this radius of the next step
    "off_route_threshold": 50,  # meters - perpendicular distance from the route centerline
    "reroute_cooldown": 30,  # seconds between reroute requests
    "smoothing_window": 5,  # fixes in the moving-average window
    "fallback_walking_speed": 1.4,  # m/s - used for ETA when the fix has no speed
    "gps_poll_interval": 1,  # seconds
    "log_interval": 10,  # seconds between STATE log entries
    "monitor_port": 8765,
    "route_db_path": "trailguide_routes.db",
    "simulated_fix_interval": 1,  # seconds between simulated fixes
    "simulated_noise": 3,  # meters - std deviation of simulated GPS jitter
}

# Environment variable -> (config key, type)
ENV_OVERRIDES = {
    "PROXIMITY_THRESHOLD": ("proximity_threshold", float),
    "TURN_WARNING_DISTANCE": ("turn_warning_distance", float),
    "OFF_ROUTE_THRESHOLD": ("off_route_threshold", float),
    "REROUTE_COOLDOWN": ("reroute_cooldown", float),
    "SMOOTHING_WINDOW": ("smoothing_window", int),
    "FALLBACK_WALKING_SPEED": ("fallback_walking_speed", float),
    "GPS_POLL_INTERVAL": ("gps_poll_interval", float),
}


def load_config(environ: Optional[dict] = None) -> dict:
    """Build a config dict from the defaults plus any environment overrides."""
    if environ is None:
        environ = os.environ

    config = dict(DEFAULTS)
    for var, (key, cast) in ENV_OVERRIDES.items():
        raw = environ.get(var)
        if raw is None or raw.strip() == "":
            continue
        try:
            value = cast(raw)
        except ValueError:
            raise ConfigError(f"{var} must be a {cast.__name__}, got {raw!r}") from None
        if not math.isfinite(value) or value <= 0:
            raise ConfigError(f"{var} must be a positive number, got {raw!r}")
        config[key] = value
    return config


CONFIG = load_config()
