"""Exception types for Trailguide."""

from typing import Optional


class NavigationError(Exception):
    """Base class for navigation failures"""

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.code = code


class RouteError(NavigationError):
    """Route data is missing or malformed; the session cannot start"""


class LocationError(NavigationError):
    """A position fix is unusable"""


class ConfigError(NavigationError):
    """A configuration value could not be parsed"""
