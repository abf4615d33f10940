#!/usr/bin/env python3
"""Replay CLI — feed recorded timing events through the budgets offline.

Usage:
    python -m scripts.replay events.jsonl
    python -m scripts.replay events.jsonl --events-per-cycle 10
    python -m scripts.replay events.jsonl --config config/settings.yaml --json

Events file format: one raw event per line (JSON lines), e.g.::

    {"kind": "load_time", "value": 1800, "source": "home"}
    {"kind": "CompositeScore(seo)", "value": 92}
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from collections.abc import Iterable
from pathlib import Path
from typing import Any

from perfbudget.core.config import ConfigError, load_settings
from perfbudget.core.logging import setup_logging
from perfbudget.engine.coordinator import BudgetEngine, CycleResult
from perfbudget.engine.factory import create_engine


def load_events(path: str | Path) -> list[dict[str, Any]]:
    """Read a JSON-lines events file, skipping blank lines."""
    events: list[dict[str, Any]] = []
    with open(path) as f:
        for line in f:
            line = line.strip()
            if line:
                events.append(json.loads(line))
    return events


async def replay(
    engine: BudgetEngine,
    events: Iterable[dict[str, Any]],
    events_per_cycle: int = 1,
) -> list[CycleResult]:
    """Ingest *events* in batches, running one cycle per batch."""
    if events_per_cycle < 1:
        raise ValueError("events_per_cycle must be >= 1")

    results: list[CycleResult] = []
    batch: list[dict[str, Any]] = []
    for event in events:
        batch.append(event)
        if len(batch) == events_per_cycle:
            engine.ingest_many(batch)
            results.append(await engine.run_cycle())
            batch = []
    if batch:
        engine.ingest_many(batch)
        results.append(await engine.run_cycle())

    await engine.emitter.close()
    return results


def render_timeline(results: list[CycleResult]) -> str:
    """One line per cycle listing every budget's status."""
    lines = []
    for result in results:
        cells = []
        for e in result.report.evaluations:
            marker = "*" if e.transitioned else ""
            cells.append(f"{e.budget.name}={e.status.value}{marker}")
        lines.append(f"cycle {result.report.cycle:>4}: " + "  ".join(cells))
    return "\n".join(lines)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Replay recorded timing events through the configured budgets.",
    )
    parser.add_argument("events", help="Path to a JSON-lines events file")
    parser.add_argument("--config", default=None, help="Path to settings YAML")
    parser.add_argument(
        "--events-per-cycle",
        type=int,
        default=1,
        help="Events ingested before each evaluation cycle (default: 1)",
    )
    parser.add_argument("--json", action="store_true", help="Print reports as JSON lines")
    return parser.parse_args(argv)


async def run(args: argparse.Namespace) -> int:
    try:
        settings = load_settings(args.config)
    except ConfigError as exc:
        print(f"configuration error: {exc}", file=sys.stderr)
        return 2

    setup_logging(settings.logging, level="WARNING", fmt="console")
    engine = create_engine(settings, sinks=[])
    results = await replay(engine, load_events(args.events), args.events_per_cycle)

    if args.json:
        for result in results:
            print(json.dumps(result.report.to_dict(), sort_keys=True))
    else:
        print(render_timeline(results))
    return 1 if engine.overall_status().value == "violated" else 0


def main() -> None:
    code = asyncio.run(run(parse_args()))
    sys.exit(code)


if __name__ == "__main__":
    main()
