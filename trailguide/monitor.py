"""WebSocket monitor: streams session state out, accepts pushed position fixes in."""

import asyncio
import json
import queue
import threading
import time
from typing import Optional

import websockets

from .models import NavigationEvent, NavigationState, PositionFix, RouteData


class StateMonitor:
    """WebSocket server broadcasting navigation state to connected clients.

    Runs its own event loop on a background thread. Broadcasts are scheduled
    onto that loop and never block the caller.
    """

    def __init__(self, ws_port: int = 8765, host: str = "localhost"):
        self.ws_port = ws_port
        self.host = host
        self.fix_queue: queue.Queue = queue.Queue()
        self.ws_thread = None
        self.ws_loop = None
        self.connected_clients: set = set()
        self._running = False

    def start(self):
        """Start the WebSocket server in a background thread"""
        self._running = True
        self.ws_thread = threading.Thread(target=self._run_ws_server, daemon=True)
        self.ws_thread.start()

        # Give the server time to start
        time.sleep(0.5)
        print(f"State monitor listening on ws://{self.host}:{self.ws_port}")

    def _run_ws_server(self):
        """Run the WebSocket server"""
        self.ws_loop = asyncio.new_event_loop()
        asyncio.set_event_loop(self.ws_loop)

        async def handler(websocket):
            self.connected_clients.add(websocket)
            try:
                async for message in websocket:
                    fix = self._parse_fix_message(message)
                    if fix:
                        self.fix_queue.put(fix)
            finally:
                self.connected_clients.discard(websocket)

        async def main():
            try:
                async with websockets.serve(handler, self.host, self.ws_port):
                    while self._running:
                        await asyncio.sleep(0.1)
            except OSError as e:
                print(f"WebSocket server error: {e}")

        self.ws_loop.run_until_complete(main())

    @staticmethod
    def _parse_fix_message(message) -> Optional[PositionFix]:
        """Turn a {"type": "fix", "data": {...}} message into a PositionFix"""
        try:
            data = json.loads(message)
        except json.JSONDecodeError:
            return None
        if not isinstance(data, dict) or data.get("type") != "fix":
            return None
        d = data.get("data") or {}
        try:
            return PositionFix(
                lat=float(d["lat"]),
                lon=float(d.get("lon", d.get("lng"))),
                accuracy=d.get("accuracy"),
                speed=d.get("speed"),
                heading=d.get("heading"),
                timestamp=d.get("timestamp") or time.time(),
            )
        except (KeyError, TypeError, ValueError):
            return None

    def _send_message(self, msg_type: str, data: dict):
        """Send a message to all connected WebSocket clients"""
        if not self.connected_clients or not self.ws_loop:
            return

        message = json.dumps({"type": msg_type, "data": data}, default=str)

        async def send_to_all():
            for client in list(self.connected_clients):
                try:
                    await client.send(message)
                except websockets.ConnectionClosed:
                    self.connected_clients.discard(client)

        asyncio.run_coroutine_threadsafe(send_to_all(), self.ws_loop)

    def send_route(self, route: RouteData):
        """Send route geometry and steps"""
        self._send_message("route", {
            "route_id": route.route_id,
            "destination": route.destination_name,
            "geometry": [[c.lat, c.lon] for c in route.geometry],
            "steps": [
                {"index": s.index, "instruction": s.instruction, "side": s.side.word,
                 "trigger_at": s.trigger_at.to_dict()}
                for s in route.steps
            ],
        })

    def send_state(self, state: NavigationState):
        """Session listener: broadcast a state snapshot"""
        self._send_message("state", state.to_dict())

    def send_event(self, event: NavigationEvent):
        """Session event listener: broadcast a notification"""
        self._send_message("event", event.to_dict())

    def send_log(self, message: str, data: Optional[dict] = None):
        """Logger callback: mirror log lines"""
        self._send_message("log", {"message": message, "data": data})

    def get_pushed_fix(self, timeout: float = 30) -> Optional[PositionFix]:
        """Block until a client pushes a fix"""
        try:
            return self.fix_queue.get(timeout=timeout)
        except queue.Empty:
            return None

    def stop(self):
        """Stop the server"""
        self._running = False


class WebSocketGPS:
    """Fix source fed by clients of a StateMonitor"""

    def __init__(self, monitor: StateMonitor):
        self.monitor = monitor
        self.last_location: Optional[PositionFix] = None
        self.consecutive_failures = 0

    def get_location(self, timeout: int = 30) -> Optional[PositionFix]:
        """Block until a fix is pushed"""
        fix = self.monitor.get_pushed_fix(timeout=timeout)
        if fix:
            self.last_location = fix
            self.consecutive_failures = 0
            return fix
        else:
            self.consecutive_failures += 1
            return None

    def get_status(self) -> str:
        if self.consecutive_failures:
            return f"Monitor: {self.consecutive_failures} timeouts waiting for fixes"
        return "Monitor (fixes pushed over WebSocket)"
