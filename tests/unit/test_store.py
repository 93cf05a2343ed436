"""
Unit tests for RouteStore (SQLite persistence of routes and sessions).
"""

import pytest
from trailguide.errors import RouteError
from trailguide.routes import route_from_payload
from trailguide.store import RouteStore


@pytest.fixture
def store(tmp_path):
    s = RouteStore(str(tmp_path / "routes.db"))
    yield s
    s.close()


class TestRoutes:
    """Saving and loading route documents."""

    @pytest.mark.unit
    def test_save_and_load(self, store, sample_payload):
        route = route_from_payload(sample_payload)
        store.save_route(route)
        loaded = store.load_route("rte_abc1234")
        assert loaded.destination_name == "City Hall"
        assert loaded.steps == route.steps
        assert loaded.geometry == route.geometry

    @pytest.mark.unit
    def test_missing_route(self, store):
        assert store.load_route("rte_nope") is None
        assert store.load_latest_route() is None

    @pytest.mark.unit
    def test_save_replaces(self, store, sample_payload):
        store.save_route(route_from_payload(sample_payload))
        sample_payload["summary"]["destinationName"] = "Old City Hall"
        store.save_route(route_from_payload(sample_payload))
        assert store.get_stats()["routes_saved"] == 1
        assert store.load_route("rte_abc1234").destination_name == "Old City Hall"

    @pytest.mark.unit
    def test_latest_route(self, store, sample_payload):
        store.save_route(route_from_payload(sample_payload))
        sample_payload["routeId"] = "rte_second"
        store.save_route(route_from_payload(sample_payload))
        assert store.load_latest_route().route_id == "rte_second"

    @pytest.mark.unit
    def test_corrupt_payload(self, store):
        store.conn.execute(
            "INSERT INTO routes (route_id, payload, saved_at) VALUES (?, ?, ?)",
            ("rte_bad", "{not json", "2026-01-01T00:00:00"),
        )
        with pytest.raises(RouteError):
            store.load_route("rte_bad")


class TestSessions:
    """Recording navigation sessions."""

    @pytest.mark.unit
    def test_session_lifecycle(self, store):
        session_id = store.start_session("rte_abc1234")
        record = store.get_session(session_id)
        assert record["route_id"] == "rte_abc1234"
        assert record["ended_at"] is None

        store.end_session(session_id, "arrived", 2, 1.0)
        record = store.get_session(session_id)
        assert record["outcome"] == "arrived"
        assert record["steps_completed"] == 2
        assert record["progress"] == 1.0
        assert record["ended_at"] is not None

    @pytest.mark.unit
    def test_unknown_session(self, store):
        assert store.get_session(42) is None

    @pytest.mark.unit
    def test_stats(self, store):
        assert store.get_stats() == {"routes_saved": 0, "sessions": 0, "sessions_arrived": 0}
        for outcome in ("arrived", "stopped", "arrived"):
            store.end_session(store.start_session("rte_x"), outcome, 1, 0.5)
        stats = store.get_stats()
        assert stats["sessions"] == 3
        assert stats["sessions_arrived"] == 2
