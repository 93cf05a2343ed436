"""Navigation session controller.

A NavigationSession tracks one route at a time. Each position fix runs
through a fixed pipeline:

    smoothing -> progress/ETA + off-route detection -> step state machine

after which the updated NavigationState is published to subscribers and any
events raised along the way are dispatched. Fixes are processed one at a
time on the caller's thread; nothing in the pipeline blocks on I/O.
"""

import time
from dataclasses import replace
from typing import Callable, Optional

from .config import CONFIG
from .errors import LocationError, NavigationError
from .geo import bearing, bearing_to_compass, segment_lengths
from .logger import Logger
from .models import (
    Coordinate, EventType, NavigationEvent, NavigationState, PositionFix,
    RouteData, RouteStep, TurnSide,
)
from .offroute import RerouteGate, is_off_route
from .progress import compute_eta, compute_progress, format_eta
from .routes import with_geometry
from .smoothing import GPSSmoother
from .steps import StepTracker

StateListener = Callable[[NavigationState], None]
EventListener = Callable[[NavigationEvent], None]


class NavigationSession:
    """Owns the NavigationState of a single navigation attempt"""

    def __init__(self, config: Optional[dict] = None, logger: Optional[Logger] = None,
                 clock: Callable[[], float] = time.time):
        self.config = dict(CONFIG)
        if config:
            self.config.update(config)
        self.logger = logger or Logger()
        self.clock = clock

        self.route: Optional[RouteData] = None
        self.geometry: tuple[Coordinate, ...] = ()
        self._lengths: list[float] = []

        self._state = NavigationState()
        self._smoother = GPSSmoother(int(self.config["smoothing_window"]))
        self._steps = StepTracker(
            [],
            proximity_threshold=self.config["proximity_threshold"],
            turn_warning_distance=self.config["turn_warning_distance"],
        )
        self._reroute_gate = RerouteGate(self.config["reroute_cooldown"], clock=clock)

        self._listeners: list[StateListener] = []
        self._event_listeners: list[EventListener] = []
        self.fixes_dropped = 0

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------

    def subscribe(self, callback: StateListener) -> Callable[[], None]:
        """Receive a state snapshot after every processed fix. Returns an unsubscribe function."""
        self._listeners.append(callback)

        def unsubscribe():
            if callback in self._listeners:
                self._listeners.remove(callback)
        return unsubscribe

    def on_event(self, callback: EventListener) -> Callable[[], None]:
        """Receive navigation events. Returns an unsubscribe function."""
        self._event_listeners.append(callback)

        def unsubscribe():
            if callback in self._event_listeners:
                self._event_listeners.remove(callback)
        return unsubscribe

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def state(self) -> NavigationState:
        """Copy of the current state"""
        return replace(self._state)

    @property
    def is_navigating(self) -> bool:
        return self._state.is_navigating

    @property
    def completed_steps(self) -> frozenset[int]:
        return frozenset(self._steps.completed)

    @property
    def history_size(self) -> int:
        return len(self._smoother)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self, route: RouteData):
        """Begin tracking route. Raises RouteError if the route is unusable."""
        route = with_geometry(route)

        if self._state.is_navigating:
            self.logger.log("Restarting navigation", {"previous_route": self.route.route_id})

        self._load_route(route)
        self._smoother.clear()
        self._reroute_gate.reset()
        self.fixes_dropped = 0
        self._state = NavigationState(
            is_navigating=True,
            total_distance_remaining=sum(self._lengths),
        )

        self.logger.log("Navigation started", {
            "route_id": route.route_id,
            "destination": route.destination_name,
            "steps": len(route.steps),
            "points": len(self.geometry),
            "length": round(sum(self._lengths), 1),
        })
        self._publish()
        self._dispatch([self._event(
            EventType.NAVIGATION_STARTED,
            "Navigation Started",
            f"Navigating to {route.destination_name}" if route.destination_name else "Navigating",
            {"route_id": route.route_id},
        )])

    def stop(self):
        """Stop tracking. Safe to call at any time, including from a listener."""
        if not self._state.is_navigating:
            return
        event = self._shutdown("stopped")
        self._dispatch([event])

    def _load_route(self, route: RouteData):
        self.route = route
        self.geometry = route.geometry
        self._lengths = segment_lengths(self.geometry)
        self._steps.reset(route.steps)

    def _shutdown(self, reason: str) -> NavigationEvent:
        state = self._state
        state.is_navigating = False
        state.is_off_route = False
        state.distance_to_route = 0.0
        self._steps.completed.clear()
        self._smoother.clear()
        self.logger.log("Navigation stopped", {
            "reason": reason,
            "step_index": state.current_step_index,
            "progress": round(state.route_progress, 3),
        })
        self._publish()
        return self._event(EventType.NAVIGATION_STOPPED, "Navigation Stopped",
                           f"Navigation {reason}", {"reason": reason})

    # ------------------------------------------------------------------
    # Fix processing
    # ------------------------------------------------------------------

    def process_fix(self, fix: PositionFix) -> Optional[NavigationState]:
        """Run one fix through the pipeline.

        Returns the new state snapshot, or None if the session is not
        navigating or the fix was dropped.
        """
        if not self._state.is_navigating:
            return None

        try:
            fix.validate()
        except LocationError as e:
            self.fixes_dropped += 1
            self.logger.log("Dropped position fix", {"reason": str(e), "code": e.code})
            return None

        state = self._state
        events: list[NavigationEvent] = []

        smoothed = self._smoother.smooth(fix.coordinate)
        state.current_location = fix
        state.smoothed_location = smoothed
        state.current_speed = fix.known_speed()
        state.fixes_processed += 1

        # Progress and ETA
        progress = compute_progress(smoothed, self.geometry, self._lengths)
        state.route_progress = progress.progress_percentage / 100
        state.total_distance_remaining = progress.remaining_distance
        eta = compute_eta(progress.remaining_distance, state.current_speed,
                          self.config["fallback_walking_speed"], now=self.clock())
        state.estimated_time_of_arrival = eta.formatted
        state.eta_seconds = eta.eta_seconds

        # Off-route detection
        events.extend(self._check_off_route(smoothed, progress.projection.distance_to_route))

        # Step state machine
        update = self._steps.update(smoothed)
        state.current_step_index = self._steps.current_index
        if update.completed_step:
            events.append(self._step_arrived_event(update.completed_step, smoothed))
        state.next_turn = update.next_step
        state.distance_to_next_turn = update.distance_to_next if update.next_step else 0.0
        if update.prepare_to_turn:
            events.append(self._prepare_event(update.next_step, update.distance_to_next))

        if update.finished:
            events.extend(self._complete())
        else:
            self._publish()

        snapshot = self.state
        # A state listener may have stopped the session; its NAVIGATION_STOPPED is final
        if update.finished or self._state.is_navigating:
            self._dispatch(events)
        return snapshot

    def _check_off_route(self, position: Coordinate, distance_to_route: float) -> list[NavigationEvent]:
        state = self._state
        events = []
        was_off_route = state.is_off_route
        state.distance_to_route = distance_to_route
        state.is_off_route = is_off_route(distance_to_route, self.config["off_route_threshold"])

        if state.is_off_route and not was_off_route:
            self.logger.log("Off route", {"distance_to_route": round(distance_to_route, 1)})
            events.append(self._event(
                EventType.OFF_ROUTE,
                "Off Route",
                f"You are {round(distance_to_route)}m from the route",
                {"distance_to_route": distance_to_route},
            ))

        if state.is_off_route and self._reroute_gate.try_acquire():
            destination = self.geometry[-1]
            self.logger.log("Reroute needed", {
                "from": position.to_dict(),
                "to": self.route.destination_name or destination.to_dict(),
            })
            events.append(self._event(
                EventType.REROUTE_NEEDED,
                "Recalculating Route",
                "You seem to be off route. Calculating a new path...",
                {"position": position.to_dict(), "destination": destination.to_dict(),
                 "route_id": self.route.route_id},
            ))
        return events

    def _complete(self) -> list[NavigationEvent]:
        state = self._state
        state.arrived = True
        state.route_progress = 1.0
        state.total_distance_remaining = 0.0
        state.eta_seconds = 0.0
        state.estimated_time_of_arrival = format_eta(0)
        state.next_turn = None
        state.distance_to_next_turn = 0.0

        name = self.route.destination_name
        self.logger.log("Destination reached", {"route_id": self.route.route_id})
        arrived = self._event(
            EventType.DESTINATION_REACHED,
            "Destination Reached",
            f"You have arrived at {name}" if name else "You have arrived",
            {"route_id": self.route.route_id},
        )
        return [arrived, self._shutdown("arrived")]

    # ------------------------------------------------------------------
    # Rerouting outcomes (reported by the caller)
    # ------------------------------------------------------------------

    def apply_reroute(self, route: RouteData):
        """Replace the tracked route after a successful reroute"""
        if not self._state.is_navigating:
            raise NavigationError("No active navigation to reroute", "NOT_NAVIGATING")
        route = with_geometry(route)
        self._load_route(route)

        state = self._state
        state.current_step_index = 0
        state.route_progress = 0.0
        state.total_distance_remaining = sum(self._lengths)
        state.is_off_route = False
        state.distance_to_route = 0.0
        state.next_turn = None
        state.distance_to_next_turn = 0.0

        self.logger.log("Route replaced", {"route_id": route.route_id, "steps": len(route.steps)})
        self._publish()
        self._dispatch([self._event(EventType.ROUTE_REPLACED, "Route Updated",
                                    f"New route with {len(route.steps)} steps",
                                    {"route_id": route.route_id})])

    def report_reroute_failure(self, reason: str = ""):
        """Surface a failed reroute; tracking continues on the current route"""
        self.logger.log("Rerouting failed", {"reason": reason})
        self._dispatch([self._event(
            EventType.REROUTE_FAILED,
            "Rerouting Failed",
            "Unable to calculate new route. Please return to the original path.",
            {"reason": reason},
        )])

    # ------------------------------------------------------------------
    # Notification helpers
    # ------------------------------------------------------------------

    def _event(self, event_type: EventType, title: str, message: str,
               data: Optional[dict] = None) -> NavigationEvent:
        return NavigationEvent(event_type, title, message, data or {}, timestamp=self.clock())

    def _step_arrived_event(self, step: RouteStep, position: Coordinate) -> NavigationEvent:
        heading = bearing(position, step.end)
        title = "Continue" if step.side == TurnSide.STRAIGHT else f"Turn {step.side.word}"
        self.logger.log("Step completed", {"step": step.index, "instruction": step.instruction})
        return self._event(
            EventType.STEP_ARRIVED,
            title,
            f"{step.instruction} (Bearing: {round(heading)}°)",
            {"step_index": step.index, "side": step.side.word, "bearing": heading,
             "heading": bearing_to_compass(heading)},
        )

    def _prepare_event(self, step: RouteStep, dist: float) -> NavigationEvent:
        return self._event(
            EventType.PREPARE_TO_TURN,
            f"Prepare to turn {step.side.word}",
            f"In {round(dist)}m, {step.instruction}",
            {"step_index": step.index, "side": step.side.word, "distance": dist},
        )

    def _publish(self):
        snapshot = self.state
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception as e:
                self.logger.log("State listener failed", {"error": repr(e)})

    def _dispatch(self, events: list[NavigationEvent]):
        for event in events:
            for listener in list(self._event_listeners):
                try:
                    listener(event)
                except Exception as e:
                    self.logger.log("Event listener failed", {"event": event.type.value, "error": repr(e)})
