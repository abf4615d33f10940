"""BudgetEngine — drives ingest → aggregate → evaluate → emit cycles."""

from __future__ import annotations

import asyncio
import time
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from pathlib import Path
from types import TracebackType
from typing import Any

import structlog

from perfbudget.aggregate.aggregator import MetricAggregator
from perfbudget.budget.evaluator import BudgetEvaluator
from perfbudget.core.config import ConfigError, read_settings
from perfbudget.core.types import Budget, BudgetStatus, TimingEvent
from perfbudget.ingest.ingestor import EventIngestor, IngestSummary
from perfbudget.ingest.queue import IngestQueue
from perfbudget.report.emitter import ReportEmitter
from perfbudget.report.types import EmitResult, Report

logger = structlog.stdlib.get_logger()

# Worst status wins when summarising overall health.
_SEVERITY: dict[BudgetStatus, int] = {
    BudgetStatus.OK: 0,
    BudgetStatus.WARNING: 1,
    BudgetStatus.VIOLATED: 2,
}


@dataclass
class CycleResult:
    """What one evaluation cycle produced."""

    report: Report
    emit: EmitResult
    drained: int


class BudgetEngine:
    """Owns every component of one engine instance and runs its cycles.

    Each cycle: evict expired samples → drain the inbound queue into the
    aggregator → evaluate every budget → build a report → await delivery
    to all sinks.  Nothing is shared between engine instances.

    Usage::

        engine = BudgetEngine(budgets=[...], emitter=ReportEmitter([ConsoleSink()]))
        async with engine:
            engine.ingest({"kind": "load_time", "value": 1800})
            ...
    """

    def __init__(
        self,
        budgets: Iterable[Budget] | None = None,
        *,
        queue: IngestQueue | None = None,
        aggregator: MetricAggregator | None = None,
        evaluator: BudgetEvaluator | None = None,
        emitter: ReportEmitter | None = None,
        interval_secs: float = 10.0,
        flush_on_stop: bool = True,
        config_path: str | Path | None = None,
        hot_reload: bool = False,
    ) -> None:
        if interval_secs <= 0:
            raise ValueError("interval_secs must be > 0")
        self._queue = queue or IngestQueue()
        self._ingestor = EventIngestor(self._queue)
        self._aggregator = aggregator or MetricAggregator()
        self._evaluator = evaluator or BudgetEvaluator()
        if budgets is not None:
            self._evaluator.replace_all(budgets)
            self._evaluator.apply_pending()
        self._emitter = emitter or ReportEmitter()
        self._interval_secs = interval_secs
        self._flush_on_stop = flush_on_stop
        self._config_path = Path(config_path) if config_path else None
        self._hot_reload = hot_reload and self._config_path is not None
        self._config_mtime = self._read_mtime()

        self._cycle_lock = asyncio.Lock()
        self._wake = asyncio.Event()
        self._task: asyncio.Task[None] | None = None
        self._running = False
        self._cycles = 0
        self._cycle_errors = 0
        self._last_report: Report | None = None
        self._last_emit: EmitResult | None = None

    # ── Properties ──────────────────────────────────────────────

    @property
    def running(self) -> bool:
        return self._running

    @property
    def cycles(self) -> int:
        return self._cycles

    @property
    def ingestor(self) -> EventIngestor:
        return self._ingestor

    @property
    def aggregator(self) -> MetricAggregator:
        return self._aggregator

    @property
    def evaluator(self) -> BudgetEvaluator:
        return self._evaluator

    @property
    def emitter(self) -> ReportEmitter:
        return self._emitter

    @property
    def last_report(self) -> Report | None:
        return self._last_report

    @property
    def last_emit(self) -> EmitResult | None:
        return self._last_emit

    # ── Ingestion ───────────────────────────────────────────────

    def ingest(self, raw: Mapping[str, Any] | TimingEvent) -> TimingEvent:
        """Queue one raw event. See :meth:`EventIngestor.ingest`."""
        return self._ingestor.ingest(raw)

    def ingest_many(self, raws: Iterable[Mapping[str, Any] | TimingEvent]) -> IngestSummary:
        return self._ingestor.ingest_many(raws)

    # ── Budgets ─────────────────────────────────────────────────

    def reload_budgets(self, budgets: Iterable[Budget]) -> None:
        """Replace the budget set at the next cycle boundary.

        Raises:
            ValueError: If two budgets share a name.
        """
        self._evaluator.replace_all(budgets)
        logger.info("budgets_reload_staged")

    # ── Health ──────────────────────────────────────────────────

    def status(self) -> dict[str, BudgetStatus]:
        """Current status per budget, for health-check polling."""
        return self._evaluator.statuses()

    def overall_status(self) -> BudgetStatus:
        statuses = self.status().values()
        return max(statuses, key=_SEVERITY.__getitem__, default=BudgetStatus.OK)

    def health(self) -> dict[str, Any]:
        """Full health payload: per-budget state plus operational counters."""
        budgets: dict[str, Any] = {}
        for name in self.status():
            state = self._evaluator.state(name)
            if state is not None:
                budgets[name] = state.model_dump(mode="json")

        ingest = self._ingestor.stats
        evaluator = self._evaluator.stats
        return {
            "status": self.overall_status().value,
            "running": self._running,
            "cycles": self._cycles,
            "last_report_at": self._last_report.generated_at if self._last_report else None,
            "budgets": budgets,
            "counters": {
                "events_accepted": ingest.accepted,
                "events_malformed": ingest.malformed,
                "events_overloaded": ingest.overloaded,
                "events_queued": len(self._queue),
                "events_recorded": self._aggregator.recorded,
                "budgets_skipped": evaluator.skipped,
                "budget_errors": evaluator.errors,
                "transitions": evaluator.transitions,
                "sink_failures": self._emitter.failure_count,
                "cycle_errors": self._cycle_errors,
            },
        }

    # ── Cycle ───────────────────────────────────────────────────

    async def run_cycle(self) -> CycleResult:
        """Run one full evaluation cycle and wait for report delivery."""
        async with self._cycle_lock:
            self._maybe_reload_config()
            self._aggregator.evict_expired(time.monotonic())
            drained = self._aggregator.drain(self._queue)
            evaluations = self._evaluator.evaluate(self._aggregator)

            self._cycles += 1
            report = Report(cycle=self._cycles, evaluations=tuple(evaluations))
            emit = await self._emitter.emit(report)

            self._last_report = report
            self._last_emit = emit
            logger.debug(
                "cycle_completed",
                cycle=self._cycles,
                drained=drained,
                budgets=len(evaluations),
                transitions=len(report.transitions),
                sink_failures=len(emit.failures),
            )
            return CycleResult(report=report, emit=emit, drained=drained)

    # ── Lifecycle ───────────────────────────────────────────────

    async def start(self) -> None:
        """Start the background cycle loop."""
        if self._running:
            return
        self._running = True
        self._wake.clear()
        self._task = asyncio.create_task(self._loop())
        logger.info(
            "engine_started",
            interval_secs=self._interval_secs,
            budgets=len(self._evaluator.budgets),
            sinks=[s.name for s in self._emitter.sinks],
        )

    async def stop(self) -> None:
        """Stop cooperatively: finish the in-flight cycle, flush, close sinks."""
        if not self._running:
            return
        self._running = False
        self._wake.set()
        if self._task is not None:
            await self._task
            self._task = None

        if self._flush_on_stop and len(self._queue) > 0:
            try:
                await self.run_cycle()
            except Exception:
                self._cycle_errors += 1
                logger.exception("flush_cycle_error")

        await self._emitter.close()
        logger.info("engine_stopped", cycles=self._cycles)

    async def _loop(self) -> None:
        while self._running:
            try:
                await asyncio.wait_for(self._wake.wait(), timeout=self._interval_secs)
            except TimeoutError:
                pass
            if not self._running:
                break
            try:
                await self.run_cycle()
            except Exception:
                self._cycle_errors += 1
                logger.exception("cycle_error", cycle=self._cycles)

    async def __aenter__(self) -> BudgetEngine:
        await self.start()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.stop()

    # ── Internal ────────────────────────────────────────────────

    def _read_mtime(self) -> float | None:
        if self._config_path is None:
            return None
        try:
            return self._config_path.stat().st_mtime
        except OSError:
            return None

    def _maybe_reload_config(self) -> None:
        if not self._hot_reload or self._config_path is None:
            return
        mtime = self._read_mtime()
        if mtime is None or mtime == self._config_mtime:
            return
        self._config_mtime = mtime
        try:
            settings = read_settings(self._config_path)
        except ConfigError as exc:
            logger.error("config_reload_failed", path=str(self._config_path), error=str(exc))
            return
        self._evaluator.replace_all(settings.budgets)
        logger.info("config_reloaded", path=str(self._config_path), budgets=len(settings.budgets))
