"""Main Trailguide application."""

import queue
import threading
import time
from typing import Callable, Optional

from .config import CONFIG
from .errors import RouteError
from .gps import GPS, GPSRecorder, GPSPlayback
from .logger import Logger
from .models import Coordinate, EventType, NavigationEvent, RouteData
from .monitor import StateMonitor, WebSocketGPS
from .session import NavigationSession
from .simulate import SimulatedGPS
from .store import RouteStore

Rerouter = Callable[[Coordinate, RouteData], RouteData]


class Navigator:
    """Feeds a fix source into a NavigationSession until arrival or interruption"""

    def __init__(self, route: RouteData, log_path: Optional[str] = None,
                 db_path: Optional[str] = None, monitor: bool = False,
                 rerouter: Optional[Rerouter] = None, config: Optional[dict] = None,
                 quiet: bool = False):
        self.config = dict(CONFIG)
        if config:
            self.config.update(config)
        self.route = route
        self.rerouter = rerouter
        self.gps = GPS()
        self.store = RouteStore(db_path or self.config["route_db_path"])

        self.monitor: Optional[StateMonitor] = None
        if monitor:
            self.monitor = StateMonitor(self.config["monitor_port"])
            self.monitor.start()

        # Logger with optional callback for the monitor
        log_callback = self.monitor.send_log if self.monitor else None
        self.logger = Logger(log_path, callback=log_callback, quiet=quiet)

        self.session = NavigationSession(self.config, self.logger)
        self.session.on_event(self._announce)
        if self.monitor:
            self.session.subscribe(self.monitor.send_state)
            self.session.on_event(self.monitor.send_event)

        # Reroute outcomes arrive from worker threads and are applied on the loop thread
        self._reroute_results: queue.Queue = queue.Queue()
        self._reroute_in_flight = False

        self.session_id: Optional[int] = None
        self.last_log_update = 0
        self.start_time = 0

        # GPS source (can be swapped for recording/playback/simulation)
        self.gps_source = self.gps

    def set_gps_source(self, source):
        """Set fix source (GPS, GPSRecorder, GPSPlayback, SimulatedGPS or WebSocketGPS)"""
        self.gps_source = source

    def replay_source(self):
        """The source behind any recorder wrapping, which decides timing and exhaustion"""
        source = self.gps_source
        while isinstance(source, GPSRecorder):
            source = source.source
        return source

    def get_state(self) -> dict:
        """Get current state as dict for logging"""
        state = self.session.state.to_dict()
        state["gps_status"] = self.gps_source.get_status()
        state["fixes_dropped"] = self.session.fixes_dropped
        return state

    def periodic_update(self):
        """Log state every log_interval seconds"""
        now = time.time()
        if now - self.last_log_update >= self.config["log_interval"]:
            self.logger.log("STATE", self.get_state())
            self.last_log_update = now

    # ------------------------------------------------------------------
    # Notifications and rerouting
    # ------------------------------------------------------------------

    def _announce(self, event: NavigationEvent):
        """Print notifications; kick off rerouting when requested"""
        print(f"[{event.title}] {event.message}")
        if event.type == EventType.REROUTE_NEEDED:
            self._request_reroute(event)

    def _request_reroute(self, event: NavigationEvent):
        if not self.rerouter:
            self.logger.log("No rerouter configured, continuing on current route")
            return
        if self._reroute_in_flight:
            return

        position = Coordinate.from_dict(event.data["position"])
        route = self.session.route
        self._reroute_in_flight = True

        def worker():
            try:
                new_route = self.rerouter(position, route)
                self._reroute_results.put(("ok", new_route))
            except Exception as e:
                self._reroute_results.put(("error", repr(e)))

        threading.Thread(target=worker, daemon=True).start()

    def _drain_reroutes(self):
        """Apply finished reroutes on the loop thread"""
        while True:
            try:
                status, payload = self._reroute_results.get_nowait()
            except queue.Empty:
                return
            self._reroute_in_flight = False
            if not self.session.is_navigating:
                continue
            if status == "ok" and payload is not None:
                try:
                    self.session.apply_reroute(payload)
                    self.store.save_route(payload)
                except RouteError as e:
                    self.session.report_reroute_failure(str(e))
            else:
                self.session.report_reroute_failure(payload or "rerouter returned no route")

    # ------------------------------------------------------------------
    # Main loop
    # ------------------------------------------------------------------

    def update(self) -> bool:
        """One loop iteration - returns False when navigation is over"""
        self._drain_reroutes()
        self.periodic_update()

        fix = self.gps_source.get_location()
        if not fix:
            self.logger.log("GPS fix failed", {"status": self.gps_source.get_status()})
            return True  # Keep going even with GPS errors

        self.session.process_fix(fix)
        return self.session.is_navigating

    def get_poll_interval(self) -> float:
        """Get poll interval, respecting playback speed if applicable"""
        source = self.replay_source()
        if isinstance(source, (GPSPlayback, SimulatedGPS)):
            return source.get_poll_interval()
        if isinstance(source, WebSocketGPS):
            return 0  # get_location already blocks until a fix is pushed
        return self.config["gps_poll_interval"]

    def is_source_finished(self) -> bool:
        """Check if a recorded or simulated source has run out"""
        source = self.replay_source()
        if isinstance(source, (GPSPlayback, SimulatedGPS)):
            return source.is_finished()
        return False

    def run(self) -> bool:
        """Run a navigation session. Returns False if the route could not be started."""
        print("\n=== Trailguide ===")
        print(f"Route: {self.route.origin_name or '?'} -> {self.route.destination_name or '?'}")
        print(f"Steps: {len(self.route.steps)}")
        source = self.replay_source()
        if isinstance(source, GPSPlayback):
            print(f"Playback mode: {source.speed}x speed")
        print("Press Ctrl+C to stop")
        print()

        try:
            self.session.start(self.route)
        except RouteError as e:
            self.logger.log("Route rejected", {"error": str(e), "code": e.code})
            print(f"Cannot navigate this route: {e}")
            self._close()
            return False

        self.store.save_route(self.session.route)
        self.session_id = self.store.start_session(self.session.route.route_id)
        self.start_time = time.time()
        if self.monitor:
            self.monitor.send_route(self.session.route)

        try:
            while self.update():
                if self.is_source_finished():
                    print("\nFix source finished")
                    self.logger.log("Fix source finished")
                    break
                time.sleep(self.get_poll_interval())
        except KeyboardInterrupt:
            print("\nNavigation interrupted")
            self.logger.log("Navigation interrupted by user")
        finally:
            state = self.session.state
            self.session.stop()

            outcome = "arrived" if state.arrived else "stopped"
            self.store.end_session(self.session_id, outcome,
                                   state.current_step_index, state.route_progress)

            # Save GPS recording if applicable
            if isinstance(self.gps_source, GPSRecorder):
                self.gps_source.save()

            summary = {
                "outcome": outcome,
                "steps_completed": state.current_step_index,
                "progress": round(state.route_progress * 100, 1),
                "fixes": state.fixes_processed,
                "dropped": self.session.fixes_dropped,
                "duration": time.time() - self.start_time,
            }
            self.logger.log("Navigation summary", summary)

            print("\nNavigation summary:")
            print(f"  Outcome: {summary['outcome']}")
            print(f"  Steps: {summary['steps_completed']}/{len(self.session.route.steps)}")
            print(f"  Progress: {summary['progress']:.0f}%")
            print(f"  Duration: {summary['duration']/60:.1f} minutes")

            self._close()
        return True

    def _close(self):
        self.store.close()
        self.logger.close()
        if self.monitor:
            self.monitor.stop()
