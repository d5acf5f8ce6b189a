#!/usr/bin/env python3
"""
Disk Rebuild Monitor - Main entry point.

Runs the fleet API server with periodic rebuild refresh.
"""

from __future__ import annotations

import argparse
import random
from http.server import ThreadingHTTPServer
from pathlib import Path
from typing import Optional

from .config import Config
from .routes import FleetRequestHandler
from .workers import CACHE_MAX_AGE, CACHE_NAME, DEFAULT_REFRESH_SECONDS, FleetState, RefreshWorker
from ..collectors.base import BaseCollector
from ..collectors.inventory import InventoryFileCollector
from ..collectors.telemetry import TelemetryHTTPCollector
from ..data.demo import build_demo_fleet
from ..data.models import FleetSnapshot
from ..data.persistence import DataStore
from ..simulation.progress import ProgressSimulator


def apply_cli_overrides(config: Config, args) -> Config:
    """Apply command line overrides on top of the loaded config."""
    if args.host:
        config.server.host = args.host
    if args.port:
        config.server.port = args.port
    if args.url_prefix:
        config.server.url_prefix = args.url_prefix
    if args.refresh_interval:
        config.refresh.interval_seconds = args.refresh_interval
    if args.seed is not None:
        config.refresh.seed = args.seed
    if args.data_dir:
        config.data_dir = args.data_dir

    # A feed given on the command line replaces the configured one
    if args.inventory:
        config.feed.kind = "file"
        config.feed.path = args.inventory
    elif args.telemetry_url:
        config.feed.kind = "http"
        config.feed.url = args.telemetry_url
    if args.insecure is not None:
        config.feed.verify = not args.insecure
    if args.ca_bundle:
        config.feed.ca_bundle = args.ca_bundle
    return config


def create_feed(config: Config) -> Optional[BaseCollector]:
    """Build the live feed for the configured kind; None for the demo fleet.

    Raises:
        ValueError: If a file or http feed is missing its path or url.
    """
    feed = config.feed
    if feed.kind == "file":
        if not feed.path:
            raise ValueError("feed.path is required for a file feed")
        return InventoryFileCollector(feed.path)
    if feed.kind == "http":
        if not feed.url:
            raise ValueError("feed.url is required for an http feed")
        return TelemetryHTTPCollector(
            url=feed.url,
            timeout=feed.timeout,
            verify=feed.verify,
            ca_bundle=feed.ca_bundle,
            headers=feed.headers,
        )
    return None


def create_state(config: Config) -> FleetState:
    """Wire the feed, store and simulator for the configured deployment."""
    feed = create_feed(config)
    store = DataStore(Path(config.data_dir)) if config.data_dir else None

    rng = random.Random(config.refresh.seed) if config.refresh.seed is not None else None
    simulator = ProgressSimulator(rng=rng)

    # The demo fleet seeds the state unless FleetState can resume a cached snapshot
    initial: Optional[FleetSnapshot] = None
    if feed is None:
        cached = store.load_fleet_snapshot(CACHE_NAME, max_age=CACHE_MAX_AGE) if store else None
        if cached is None:
            initial = build_demo_fleet(seed=config.refresh.seed)

    return FleetState(
        initial,
        feed=feed,
        store=store,
        simulator=simulator,
        simulate=config.simulate,
        source_name=feed.name if feed else "demo",
    )


def run_server(args) -> None:
    """Run the fleet API server."""
    # Load configuration
    config = apply_cli_overrides(Config.load(args.config), args)
    print(
        f"[config] Loaded: deployment={config.deployment_name!r}, "
        f"feed={config.feed.kind!r}, simulate={config.simulate}",
        flush=True,
    )

    state = create_state(config)

    # Do initial refresh
    print("[monitor] Loading initial data...", flush=True)
    if not state.is_ready():
        result = state.refresh_now(blocking=True)
        if not result.ok:
            print(f"[monitor] Initial refresh: {result.detail}", flush=True)

    # Start refresh worker
    worker = RefreshWorker(state, interval_seconds=config.refresh.interval_seconds)
    worker.start()

    # Configure the request handler
    FleetRequestHandler.fleet_state = state
    FleetRequestHandler.url_prefix = config.server.url_prefix
    FleetRequestHandler.config = config.to_dict()

    server = ThreadingHTTPServer((config.server.host, config.server.port), FleetRequestHandler)

    print(f"[monitor] Serving on http://{config.server.host}:{config.server.port}", flush=True)
    if config.server.url_prefix:
        print(f"[monitor] URL prefix: {config.server.url_prefix}", flush=True)
    if state.store is not None:
        print(f"[monitor] Data directory: {state.store.data_dir}", flush=True)

    try:
        server.serve_forever()
    except KeyboardInterrupt:
        print("\n[monitor] Shutting down...", flush=True)
    finally:
        worker.shutdown(timeout=5)
        if state.feed is not None:
            state.feed.close()
        server.server_close()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Disk array rebuild monitor",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )

    # Server options
    parser.add_argument("--host", default=None, help="Bind address (config: server.host)")
    parser.add_argument("--port", type=int, default=None, help="Port to listen on (config: server.port)")
    parser.add_argument("--config", type=str, help="Path to config YAML file")
    parser.add_argument("--data-dir", type=str, help="Directory for the snapshot cache and history")

    # Refresh options
    parser.add_argument(
        "--refresh-interval",
        type=float,
        default=None,
        help=f"Refresh interval in seconds (default {DEFAULT_REFRESH_SECONDS})",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Seed for the demo fleet and progress simulator",
    )

    # Feed options
    feed_group = parser.add_mutually_exclusive_group()
    feed_group.add_argument("--inventory", type=str, help="Read the fleet from a YAML/JSON inventory file")
    feed_group.add_argument("--telemetry-url", type=str, help="Read the fleet from a JSON telemetry endpoint")

    # TLS options
    parser.add_argument(
        "--insecure",
        dest="insecure",
        action="store_true",
        default=None,
        help="Skip TLS verification for the telemetry feed",
    )
    parser.add_argument(
        "--secure",
        dest="insecure",
        action="store_false",
        help="Require TLS verification for the telemetry feed",
    )
    parser.add_argument(
        "--ca-bundle",
        type=str,
        help="Path to a custom CA bundle",
    )

    parser.add_argument(
        "--url-prefix",
        default="",
        help="Path prefix for reverse proxy setup",
    )
    return parser


def parse_args(argv=None):
    return build_parser().parse_args(argv)


def main(argv=None):
    """Entry point for the rebuild-monitor command."""
    args = parse_args(argv)
    run_server(args)


if __name__ == "__main__":
    main()
