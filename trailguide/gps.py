"""GPS access and recording/playback.

Every fix source exposes get_location(timeout) -> Optional[PositionFix] and
get_status() -> str, so sources can be wrapped and swapped freely.
"""

import json
import subprocess
import time
from datetime import datetime
from typing import Optional

from .config import CONFIG
from .models import PositionFix


class GPS:
    """GPS access via Termux API"""

    def __init__(self, provider: str = "gps"):
        self.provider = provider  # "gps" or "network"
        self.last_location: Optional[PositionFix] = None
        self.consecutive_failures = 0
        self.last_error = ""

    @staticmethod
    def parse_termux(output: str) -> PositionFix:
        """PositionFix from termux-location JSON; raises KeyError/ValueError on bad output"""
        data = json.loads(output)
        return PositionFix(
            lat=data["latitude"],
            lon=data["longitude"],
            accuracy=data.get("accuracy"),
            speed=data.get("speed"),
            heading=data.get("bearing"),
            timestamp=time.time(),
        )

    def _fail(self, reason: str) -> None:
        self.consecutive_failures += 1
        self.last_error = reason
        return None

    def get_location(self, timeout: int = 30) -> Optional[PositionFix]:
        """Get current fix using termux-location"""
        try:
            result = subprocess.run(
                ["termux-location", "-p", self.provider, "-r", "once"],
                capture_output=True,
                text=True,
                timeout=timeout
            )
        except subprocess.TimeoutExpired:
            return self._fail("timeout")
        except FileNotFoundError:
            return self._fail("termux-location not installed")

        if result.returncode != 0:
            return self._fail((result.stderr or "").strip() or f"exit code {result.returncode}")
        if not result.stdout or not result.stdout.strip():
            return self._fail("no output")

        try:
            fix = self.parse_termux(result.stdout)
        except (json.JSONDecodeError, KeyError) as e:
            return self._fail(f"unreadable output ({e.__class__.__name__})")

        self.last_location = fix
        self.consecutive_failures = 0
        self.last_error = ""
        return fix

    def get_status(self) -> str:
        """Get GPS status string"""
        if self.consecutive_failures:
            return f"GPS: {self.consecutive_failures} consecutive failures ({self.last_error})"
        if self.last_location and self.last_location.accuracy:
            return f"GPS OK, accuracy {self.last_location.accuracy:.0f}m"
        return "GPS OK"


class GPSRecorder:
    """Wraps another fix source and keeps every attempt for a JSON trace"""

    def __init__(self, source, record_path: str):
        self.source = source
        self.record_path = record_path
        self.trace: list[dict] = []
        self.start_time = time.time()

    @property
    def fixes_recorded(self) -> int:
        return sum(1 for entry in self.trace if entry["location"])

    def get_location(self, timeout: int = 30) -> Optional[PositionFix]:
        fix = self.source.get_location(timeout)

        # Failed attempts are kept too, so playback reproduces the gaps
        now = time.time()
        self.trace.append({
            "elapsed": now - self.start_time,
            "timestamp": now,
            "location": fix.to_dict() if fix else None,
            "status": self.source.get_status(),
        })
        return fix

    def get_status(self) -> str:
        return self.source.get_status()

    def save(self) -> str:
        """Write the trace and return its path"""
        with open(self.record_path, "w") as f:
            json.dump({
                "recorded_at": datetime.now().isoformat(),
                "trace": self.trace
            }, f, indent=2)
        print(f"GPS trace saved to {self.record_path} "
              f"({len(self.trace)} entries, {self.fixes_recorded} fixes)")
        return self.record_path


class GPSPlayback:
    """Replays a recorded or simulated trace, one entry per poll"""

    MAX_INTERVAL = 5.0  # seconds - long recording gaps are shortened

    def __init__(self, playback_path: str, speed: float = 1.0):
        if speed <= 0:
            raise ValueError("playback speed must be positive")
        self.playback_path = playback_path
        self.speed = speed
        self.trace = self._load(playback_path)
        self.index = 0
        self.last_location: Optional[PositionFix] = None
        self.consecutive_failures = 0
        print(f"Loaded GPS trace from {playback_path} ({len(self.trace)} entries)")

    @staticmethod
    def _load(path: str) -> list[dict]:
        with open(path) as f:
            return json.load(f)["trace"]

    def get_location(self, timeout: int = 30) -> Optional[PositionFix]:
        """Next entry of the trace; None for recorded failures and once exhausted"""
        if self.is_finished():
            return None

        entry = self.trace[self.index]
        self.index += 1

        if not entry["location"]:
            self.consecutive_failures += 1
            return None

        try:
            fix = PositionFix.from_dict(entry["location"])
        except TypeError:  # entry lacks lat/lon
            self.consecutive_failures += 1
            return None
        self.last_location = fix
        self.consecutive_failures = 0
        return fix

    def get_poll_interval(self) -> float:
        """Recorded gap to the next entry, scaled by the playback speed"""
        if self.index <= 0 or self.is_finished():
            return CONFIG["gps_poll_interval"] / self.speed

        gap = self.trace[self.index].get("elapsed", 0) - self.trace[self.index - 1].get("elapsed", 0)
        return max(0.0, min(gap / self.speed, self.MAX_INTERVAL))

    def is_finished(self) -> bool:
        return self.index >= len(self.trace)

    def get_status(self) -> str:
        progress = f"{self.index}/{len(self.trace)}"
        if self.consecutive_failures:
            return f"Playback: {self.consecutive_failures} failures ({progress})"
        return f"Playback OK ({progress})"
