"""Build a fully wired engine from settings."""

from __future__ import annotations

from pathlib import Path

from perfbudget.aggregate.aggregator import MetricAggregator
from perfbudget.budget.evaluator import BudgetEvaluator
from perfbudget.core.config import Settings
from perfbudget.engine.coordinator import BudgetEngine
from perfbudget.ingest.queue import IngestQueue
from perfbudget.report.emitter import ReportEmitter
from perfbudget.report.factory import create_emitter
from perfbudget.report.sinks import ReportSink


def create_engine(
    settings: Settings,
    sinks: list[ReportSink] | None = None,
    config_path: str | Path | None = None,
) -> BudgetEngine:
    """Wire queue, aggregator, evaluator and emitter from *settings*.

    Args:
        settings: Validated settings (budgets already checked).
        sinks: Explicit sinks; when None they are built from ``settings.sinks``.
        config_path: YAML file to watch when ``scheduler.hot_reload`` is on.
    """
    if sinks is None:
        emitter = create_emitter(settings.sinks)
    else:
        emitter = ReportEmitter(sinks=sinks, timeout_secs=settings.sinks.timeout_secs)

    return BudgetEngine(
        budgets=settings.budgets,
        queue=IngestQueue(max_size=settings.ingest.queue_size),
        aggregator=MetricAggregator(
            window_size=settings.aggregation.window_size,
            window_max_age_secs=settings.aggregation.window_max_age_secs,
        ),
        evaluator=BudgetEvaluator(),
        emitter=emitter,
        interval_secs=settings.scheduler.interval_secs,
        flush_on_stop=settings.scheduler.flush_on_stop,
        config_path=config_path,
        hot_reload=settings.scheduler.hot_reload,
    )
