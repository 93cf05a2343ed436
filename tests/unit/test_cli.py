"""
Unit tests for the command line entry point.
"""

import json
import sys
from unittest.mock import patch

import pytest
from trailguide.__main__ import main
from trailguide.gps import GPSPlayback


def run_main(*argv):
    with patch.object(sys, "argv", ["trailguide", *argv]):
        main()


@pytest.fixture
def route_file(tmp_path, sample_payload):
    path = tmp_path / "route.json"
    path.write_text(json.dumps(sample_payload))
    return path


class TestCli:

    @pytest.mark.unit
    def test_stats_on_empty_db(self, tmp_path, capsys):
        run_main("--stats", "--db", str(tmp_path / "cli.db"))
        out = capsys.readouterr().out
        assert "routes_saved: 0" in out
        assert "sessions: 0" in out

    @pytest.mark.unit
    def test_write_simulated_trace(self, tmp_path, route_file, capsys):
        trace = tmp_path / "sim.json"
        run_main(str(route_file), "--simulate", "--trace", str(trace), "--seed", "1",
                 "--db", str(tmp_path / "cli.db"))
        assert "Simulated trace saved" in capsys.readouterr().out
        playback = GPSPlayback(str(trace))
        assert len(playback.trace) > 10

    @pytest.mark.unit
    def test_trace_requires_simulate(self, route_file):
        with pytest.raises(SystemExit) as exc:
            run_main(str(route_file), "--trace", "out.json")
        assert exc.value.code == 2

    @pytest.mark.unit
    def test_sources_are_exclusive(self, route_file):
        with pytest.raises(SystemExit) as exc:
            run_main(str(route_file), "--simulate", "--monitor")
        assert exc.value.code == 2

    @pytest.mark.unit
    def test_invalid_route_file(self, tmp_path, capsys):
        bad = tmp_path / "bad.json"
        bad.write_text("{not json")
        with pytest.raises(SystemExit) as exc:
            run_main(str(bad), "--db", str(tmp_path / "cli.db"))
        assert exc.value.code == 1
        assert "Invalid route" in capsys.readouterr().out

    @pytest.mark.unit
    def test_resume_without_saved_route(self, tmp_path, capsys):
        with pytest.raises(SystemExit) as exc:
            run_main("--resume", "--db", str(tmp_path / "cli.db"))
        assert exc.value.code == 1
        assert "No saved route" in capsys.readouterr().out

    @pytest.mark.unit
    def test_simulated_run(self, tmp_path, route_file, capsys):
        with patch("trailguide.app.time.sleep"):
            run_main(str(route_file), "--simulate", "--noise", "0", "--sim-speed", "20",
                     "--db", str(tmp_path / "cli.db"), "--log", str(tmp_path / "cli.log"))
        out = capsys.readouterr().out
        assert "Navigation summary" in out
        assert "Outcome: arrived" in out
