#!/usr/bin/env python3
"""Service entrypoint — loads budgets, runs evaluation cycles until interrupted.

Usage::

    # Run with default config
    python scripts/run.py

    # Custom config file
    python scripts/run.py --config config/settings.yaml

    # Override log level
    python scripts/run.py --log-level DEBUG
"""

from __future__ import annotations

import argparse
import asyncio
import signal
import sys

import structlog
from aiohttp import web

from perfbudget.core.config import ConfigError, load_settings
from perfbudget.core.logging import setup_logging
from perfbudget.engine.factory import create_engine
from perfbudget.engine.server import start_server

logger = structlog.get_logger(__name__)

_DEFAULT_CONFIG = "config/settings.yaml"


async def run(args: argparse.Namespace) -> int:
    """Start the engine (and optional HTTP server) and run until interrupted."""
    config_path = args.config or _DEFAULT_CONFIG
    try:
        settings = load_settings(config_path)
    except ConfigError as exc:
        # Logging is not configured yet; fail fast on stderr.
        print(f"configuration error: {exc}", file=sys.stderr)
        return 2

    setup_logging(settings.logging, level=args.log_level)

    if not settings.budgets:
        logger.error("no_budgets_configured", config=config_path)
        return 1

    engine = create_engine(settings, config_path=config_path)

    runner: web.AppRunner | None = None
    if settings.server.enabled:
        runner = await start_server(engine, settings.server.host, settings.server.port)
        logger.info("server_started", host=settings.server.host, port=settings.server.port)

    await engine.start()

    # ── Wait for shutdown signal ─────────────────────────────────
    stop_event = asyncio.Event()

    def _signal_handler() -> None:
        logger.info("shutdown_signal_received")
        stop_event.set()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, _signal_handler)
        except NotImplementedError:
            # Windows: signal handlers not supported on ProactorEventLoop
            pass

    try:
        await stop_event.wait()
    except KeyboardInterrupt:
        logger.info("keyboard_interrupt")

    # ── Graceful shutdown ────────────────────────────────────────
    if runner is not None:
        await runner.cleanup()
    await engine.stop()

    health = engine.health()
    logger.info(
        "engine_exited",
        status=health["status"],
        cycles=health["cycles"],
        **health["counters"],
    )
    return 0


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Run the performance budget engine.",
    )
    parser.add_argument(
        "--config",
        default=None,
        help=f"Path to settings YAML (default: {_DEFAULT_CONFIG})",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Log level override: DEBUG, INFO, WARNING, ERROR",
    )
    args = parser.parse_args()

    code = asyncio.run(run(args))
    sys.exit(code)


if __name__ == "__main__":
    main()
