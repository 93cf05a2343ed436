"""Logging module for Trailguide."""

import json
from datetime import datetime
from typing import Optional, Callable


class Logger:
    """Writes timestamped lines to stdout and an optional append-mode file.

    Each line reads "[ISO timestamp] message | {json data}". A callback, if
    given, receives (message, data) for every line, e.g. to mirror the log
    to monitor clients. quiet=True keeps stdout clean.
    """

    def __init__(self, log_path: Optional[str] = None, callback: Optional[Callable] = None,
                 quiet: bool = False):
        self.log_path = log_path
        self.callback = callback
        self.quiet = quiet
        self.file = open(log_path, "a") if log_path else None
        if self.file:
            self._emit_to_file(f"\n{'=' * 60}\nTrailguide Log - {datetime.now().isoformat()}\n{'=' * 60}\n")

    def _emit_to_file(self, text: str):
        self.file.write(text + "\n")
        self.file.flush()

    @staticmethod
    def format_line(message: str, data: Optional[dict] = None) -> str:
        line = f"[{datetime.now().isoformat()}] {message}"
        if data:
            line += f" | {json.dumps(data, default=str)}"
        return line

    def log(self, message: str, data: Optional[dict] = None):
        """Log a message with optional structured data"""
        line = self.format_line(message, data)
        if not self.quiet:
            print(line)
        if self.file:
            self._emit_to_file(line)
        if self.callback:
            self.callback(message, data)

    def close(self):
        if self.file:
            self.file.close()
            self.file = None

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()
