"""Build RouteData from a directions payload and decode its geometry."""

import re
import uuid
from dataclasses import replace

import polyline

from .errors import RouteError
from .models import Coordinate, RouteData, RouteStep, TurnSide

LEFT_MANEUVERS = frozenset({
    "turn-left", "turn-sharp-left", "turn-slight-left", "ramp-left",
    "fork-left", "keep-left", "roundabout-left", "uturn-left",
})
RIGHT_MANEUVERS = frozenset({
    "turn-right", "turn-sharp-right", "turn-slight-right", "ramp-right",
    "fork-right", "keep-right", "roundabout-right", "uturn-right",
})

_HTML_TAG = re.compile(r"<[^>]*>")


def maneuver_to_side(maneuver: str | None) -> TurnSide:
    """Map a directions-service maneuver string to a turn side"""
    if maneuver in LEFT_MANEUVERS:
        return TurnSide.LEFT
    if maneuver in RIGHT_MANEUVERS:
        return TurnSide.RIGHT
    return TurnSide.STRAIGHT


def strip_html(text: str) -> str:
    return _HTML_TAG.sub("", text)


def decode_geometry(encoded: str) -> tuple[Coordinate, ...]:
    """Decode an encoded polyline into route geometry"""
    if not encoded:
        raise RouteError("Route has no polyline", "BAD_POLYLINE")
    try:
        points = polyline.decode(encoded)
    except (ValueError, IndexError, TypeError) as e:
        raise RouteError(f"Could not decode route polyline: {e}", "BAD_POLYLINE") from e
    return tuple(Coordinate(lat, lon) for lat, lon in points)


def _parse_step(i: int, s: dict) -> RouteStep:
    maneuver = s.get("maneuver") or "straight"
    side_code = s.get("side")
    if side_code in ("L", "R", "B"):
        side = TurnSide(side_code)
    else:
        side = maneuver_to_side(maneuver)

    html = s.get("instructionHtml") or s.get("instruction") or ""
    return RouteStep(
        index=s.get("i", i),
        instruction=strip_html(html),
        maneuver=maneuver,
        side=side,
        trigger_at=Coordinate.from_dict(s["triggerAt"]),
        end=Coordinate.from_dict(s["end"]),
        distance_m=float(s.get("distanceMeters") or 0),
        instruction_html=html,
    )


def route_from_payload(payload: dict) -> RouteData:
    """Parse a directions payload into RouteData, decoding the geometry once.

    Raises RouteError for anything a navigation session could not run on.
    """
    if not isinstance(payload, dict):
        raise RouteError("Route payload must be a JSON object", "BAD_PAYLOAD")

    summary = payload.get("summary") or {}
    encoded = (payload.get("polyline") or {}).get("points", "")

    try:
        steps = tuple(_parse_step(i, s) for i, s in enumerate(payload.get("steps") or []))
    except (KeyError, TypeError, ValueError) as e:
        raise RouteError(f"Malformed route step: {e}", "BAD_PAYLOAD") from e

    route = RouteData(
        route_id=payload.get("routeId") or f"rte_{uuid.uuid4().hex[:7]}",
        origin_name=summary.get("originName", ""),
        destination_name=summary.get("destinationName", ""),
        distance_m=float(summary.get("distanceMeters") or 0),
        duration_s=float(summary.get("durationSeconds") or 0),
        eta=summary.get("eta", ""),
        polyline=encoded,
        steps=steps,
        geometry=decode_geometry(encoded) if encoded else (),
    )
    validate_route(route)
    return route


def validate_route(route: RouteData):
    """Fail fast on a route a session cannot track"""
    if not route.steps:
        raise RouteError("No route steps between the specified locations", "NO_STEPS")
    if not route.geometry and not route.polyline:
        raise RouteError("Route has no polyline", "BAD_POLYLINE")
    if len(route.geometry) < 2:
        raise RouteError(
            f"Route geometry needs at least 2 points, got {len(route.geometry)}",
            "SHORT_GEOMETRY",
        )


def with_geometry(route: RouteData) -> RouteData:
    """Return route with its geometry decoded, validating it"""
    if not route.geometry and route.polyline:
        route = replace(route, geometry=decode_geometry(route.polyline))
    validate_route(route)
    return route
