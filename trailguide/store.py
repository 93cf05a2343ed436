"""Route document storage and navigation session history."""

import json
import sqlite3
from datetime import datetime
from typing import Optional

from .errors import RouteError
from .models import RouteData
from .routes import route_from_payload


class RouteStore:
    """SQLite database for saved routes and past sessions"""

    def __init__(self, db_path: str = "trailguide_routes.db"):
        self.conn = sqlite3.connect(db_path, check_same_thread=False)
        self._init_schema()

    def _init_schema(self):
        """Create database tables"""
        self.conn.execute("""
            CREATE TABLE IF NOT EXISTS routes (
                route_id TEXT PRIMARY KEY,
                destination_name TEXT,
                payload TEXT NOT NULL,
                saved_at TEXT NOT NULL
            )
        """)
        self.conn.execute("""
            CREATE TABLE IF NOT EXISTS sessions (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                route_id TEXT,
                started_at TEXT,
                ended_at TEXT,
                outcome TEXT,
                steps_completed INTEGER,
                progress REAL
            )
        """)
        self.conn.commit()

    def save_route(self, route: RouteData):
        """Store a route document, replacing any earlier copy"""
        now = datetime.now().isoformat()
        self.conn.execute("""
            INSERT INTO routes (route_id, destination_name, payload, saved_at)
            VALUES (?, ?, ?, ?)
            ON CONFLICT(route_id) DO UPDATE SET
                destination_name = excluded.destination_name,
                payload = excluded.payload,
                saved_at = excluded.saved_at
        """, (route.route_id, route.destination_name, json.dumps(route.to_dict()), now))
        self.conn.commit()

    def load_route(self, route_id: str) -> Optional[RouteData]:
        cursor = self.conn.execute(
            "SELECT payload FROM routes WHERE route_id = ?", (route_id,)
        )
        row = cursor.fetchone()
        return self._parse(row[0]) if row else None

    def load_latest_route(self) -> Optional[RouteData]:
        """Most recently saved route, or None"""
        cursor = self.conn.execute(
            "SELECT payload FROM routes ORDER BY saved_at DESC, rowid DESC LIMIT 1"
        )
        row = cursor.fetchone()
        return self._parse(row[0]) if row else None

    def _parse(self, payload: str) -> RouteData:
        try:
            return route_from_payload(json.loads(payload))
        except json.JSONDecodeError as e:
            raise RouteError(f"Stored route is corrupt: {e}", "BAD_PAYLOAD") from e

    def start_session(self, route_id: str) -> int:
        """Record a new navigation session, return its ID"""
        cursor = self.conn.execute(
            "INSERT INTO sessions (route_id, started_at) VALUES (?, ?)",
            (route_id, datetime.now().isoformat())
        )
        self.conn.commit()
        return cursor.lastrowid

    def end_session(self, session_id: int, outcome: str, steps_completed: int, progress: float):
        """Record session completion"""
        self.conn.execute("""
            UPDATE sessions SET ended_at = ?, outcome = ?, steps_completed = ?, progress = ?
            WHERE id = ?
        """, (datetime.now().isoformat(), outcome, steps_completed, progress, session_id))
        self.conn.commit()

    def get_session(self, session_id: int) -> Optional[dict]:
        cursor = self.conn.execute(
            "SELECT route_id, started_at, ended_at, outcome, steps_completed, progress "
            "FROM sessions WHERE id = ?", (session_id,)
        )
        row = cursor.fetchone()
        if not row:
            return None
        keys = ("route_id", "started_at", "ended_at", "outcome", "steps_completed", "progress")
        return dict(zip(keys, row))

    def get_stats(self) -> dict:
        """Get overall statistics"""
        cursor = self.conn.execute("SELECT COUNT(*) FROM routes")
        routes = cursor.fetchone()[0]

        cursor = self.conn.execute("""
            SELECT COUNT(*), COALESCE(SUM(CASE WHEN outcome = 'arrived' THEN 1 ELSE 0 END), 0)
            FROM sessions
        """)
        sessions, arrived = cursor.fetchone()

        return {
            "routes_saved": routes,
            "sessions": sessions,
            "sessions_arrived": arrived,
        }

    def close(self):
        self.conn.close()
