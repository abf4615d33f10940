"""HTTP surface of a running engine — health checks and event ingestion.

Runs as an ``aiohttp`` web server alongside the engine.
Exposes:
- ``GET /health``              → 200 unless a budget is violated (then 503)
- ``GET /api/status``          → full health payload
- ``GET /api/reports/latest``  → most recent report (404 before the first cycle)
- ``POST /api/events``         → ingest one event or a JSON array of events
"""

from __future__ import annotations

import json

from aiohttp import web

from perfbudget.core.types import BudgetStatus
from perfbudget.engine.coordinator import BudgetEngine

ENGINE_KEY = web.AppKey("engine", BudgetEngine)


async def _handle_health(request: web.Request) -> web.Response:
    engine = request.app[ENGINE_KEY]
    overall = engine.overall_status()
    payload = {
        "status": overall.value,
        "budgets": {name: status.value for name, status in engine.status().items()},
    }
    status = 503 if overall == BudgetStatus.VIOLATED else 200
    return web.json_response(payload, status=status)


async def _handle_status(request: web.Request) -> web.Response:
    return web.json_response(request.app[ENGINE_KEY].health())


async def _handle_latest_report(request: web.Request) -> web.Response:
    report = request.app[ENGINE_KEY].last_report
    if report is None:
        return web.json_response({"error": "no report yet"}, status=404)
    return web.json_response(report.to_dict())


async def _handle_events(request: web.Request) -> web.Response:
    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return web.json_response({"error": "invalid JSON"}, status=400)

    raws = body if isinstance(body, list) else [body]
    summary = request.app[ENGINE_KEY].ingest_many(raws)
    return web.json_response(
        {
            "accepted": summary.accepted,
            "rejected": summary.rejected,
            "errors": summary.errors,
        },
        status=202,
    )


def create_web_app(engine: BudgetEngine) -> web.Application:
    """Create the aiohttp web application for *engine*."""
    app = web.Application()
    app[ENGINE_KEY] = engine
    app.router.add_get("/health", _handle_health)
    app.router.add_get("/api/status", _handle_status)
    app.router.add_get("/api/reports/latest", _handle_latest_report)
    app.router.add_post("/api/events", _handle_events)
    return app


async def start_server(
    engine: BudgetEngine,
    host: str = "127.0.0.1",
    port: int = 8089,
) -> web.AppRunner:
    """Start the HTTP server. Returns the runner for cleanup."""
    runner = web.AppRunner(create_web_app(engine))
    await runner.setup()
    site = web.TCPSite(runner, host, port)
    await site.start()
    return runner
