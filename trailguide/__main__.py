#!/usr/bin/env python3
"""
Trailguide - Turn-by-turn route tracking for pedestrians

Usage:
    python -m trailguide [ROUTE_JSON] [options]

Options:
    --resume          Navigate the most recently saved route instead of ROUTE_JSON
    --playback FILE   Playback GPS trace from JSON file
    --speed FACTOR    Playback speed multiplier (default: 1.0)
    --simulate        Walk the route with simulated GPS fixes
    --sim-speed MPS   Simulated walking speed in m/s (default: 1.4)
    --noise M         Simulated GPS jitter in meters
    --seed N          Random seed for the simulation
    --trace FILE      With --simulate, write the simulated fixes as a playback trace and exit
    --monitor         Serve state over WebSocket and take fixes pushed by clients
    --record FILE     Record GPS trace to JSON file for debugging
    --log FILE        Log file path (default: trailguide_TIMESTAMP.log)
    --db FILE         Route database path
    --stats           Print route/session statistics and exit
    --quiet           Keep log lines out of the console (file and monitor only)
"""

import argparse
import json
import sys
from datetime import datetime
from pathlib import Path

from .app import Navigator
from .config import CONFIG
from .errors import RouteError
from .gps import GPSRecorder, GPSPlayback
from .monitor import WebSocketGPS
from .routes import route_from_payload
from .simulate import SimulatedGPS, simulate_walk, write_trace
from .store import RouteStore


def _load_route(args, parser):
    """Route from --resume or a JSON file; exits on failure"""
    if args.resume:
        store = RouteStore(args.db)
        try:
            route = store.load_latest_route()
        finally:
            store.close()
        if not route:
            print("No saved route to resume")
            sys.exit(1)
        return route

    if not args.route:
        parser.error("a route file is required unless --resume is given")
    path = Path(args.route)
    if not path.exists():
        print(f"Route file not found: {path}")
        sys.exit(1)
    with open(path) as f:
        try:
            payload = json.load(f)
        except json.JSONDecodeError as e:
            raise RouteError(f"{path} is not valid JSON: {e}", "BAD_PAYLOAD") from e
    return route_from_payload(payload)


def main():
    parser = argparse.ArgumentParser(
        description="Trailguide - Turn-by-turn route tracking for pedestrians"
    )
    parser.add_argument("route", nargs="?", metavar="ROUTE_JSON",
                        help="Route document from the directions service")
    parser.add_argument("--resume", action="store_true",
                        help="Navigate the most recently saved route")
    parser.add_argument("--playback", metavar="FILE",
                        help="Playback GPS trace from JSON file")
    parser.add_argument("--speed", type=float, default=1.0,
                        help="Playback speed multiplier (default: 1.0)")
    parser.add_argument("--simulate", action="store_true",
                        help="Walk the route with simulated GPS fixes")
    parser.add_argument("--sim-speed", type=float, default=CONFIG["fallback_walking_speed"],
                        help="Simulated walking speed in m/s")
    parser.add_argument("--noise", type=float, default=CONFIG["simulated_noise"],
                        help="Simulated GPS jitter in meters")
    parser.add_argument("--seed", type=int, help="Random seed for the simulation")
    parser.add_argument("--trace", metavar="FILE",
                        help="With --simulate, write the fixes as a playback trace and exit")
    parser.add_argument("--monitor", action="store_true",
                        help="Serve state over WebSocket and take fixes pushed by clients")
    parser.add_argument("--record", metavar="FILE",
                        help="Record GPS trace to JSON file")
    parser.add_argument("--log", metavar="FILE",
                        help="Log file path (default: trailguide_TIMESTAMP.log)")
    parser.add_argument("--db", metavar="FILE", default=CONFIG["route_db_path"],
                        help="Route database path")
    parser.add_argument("--stats", action="store_true",
                        help="Print route/session statistics and exit")
    parser.add_argument("--quiet", action="store_true",
                        help="Keep log lines out of the console (file and monitor only)")

    args = parser.parse_args()

    sources = [bool(args.playback), args.simulate, args.monitor]
    if sum(sources) > 1:
        parser.error("--playback, --simulate and --monitor are mutually exclusive")
    if args.trace and not args.simulate:
        parser.error("--trace requires --simulate")

    # Stats: early exit
    if args.stats:
        store = RouteStore(args.db)
        for key, value in store.get_stats().items():
            print(f"{key}: {value}")
        store.close()
        return

    try:
        route = _load_route(args, parser)
    except RouteError as e:
        print(f"Invalid route: {e}")
        sys.exit(1)

    # Write a simulated trace: early exit
    if args.trace:
        fixes = simulate_walk(route.geometry, args.sim_speed, CONFIG["simulated_fix_interval"],
                              args.noise, args.seed)
        write_trace(fixes, args.trace, CONFIG["simulated_fix_interval"])
        print(f"Simulated trace saved to {args.trace} ({len(fixes)} fixes)")
        return

    log_path = args.log
    if not log_path:
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        log_path = f"trailguide_{timestamp}.log"

    navigator = Navigator(route, log_path=log_path, db_path=args.db, monitor=args.monitor,
                          quiet=args.quiet)

    # Set up fix source
    if args.monitor:
        navigator.set_gps_source(WebSocketGPS(navigator.monitor))
    elif args.playback:
        if not Path(args.playback).exists():
            print(f"Playback file not found: {args.playback}")
            sys.exit(1)
        navigator.set_gps_source(GPSPlayback(args.playback, args.speed))
    elif args.simulate:
        navigator.set_gps_source(SimulatedGPS(route.geometry, args.sim_speed,
                                              noise=args.noise, seed=args.seed))

    if args.record:
        navigator.set_gps_source(GPSRecorder(navigator.gps_source, args.record))

    if not navigator.run():
        sys.exit(1)


if __name__ == "__main__":
    main()
