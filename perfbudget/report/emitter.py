"""ReportEmitter — fans each report out to every sink with failure isolation."""

from __future__ import annotations

import asyncio

import structlog

from perfbudget.report.sinks import ReportSink
from perfbudget.report.types import EmitResult, Report, SinkFailure

logger = structlog.get_logger(__name__)


class ReportEmitter:
    """Delivers reports to sinks in registration order.

    - Each delivery is bounded by ``timeout_secs``; a timeout counts as that
      sink's failure.
    - A failing sink is logged and recorded in the result; delivery to the
      remaining sinks continues.
    - ``emit`` returns only once every sink has succeeded or failed.
    """

    def __init__(
        self,
        sinks: list[ReportSink] | None = None,
        timeout_secs: float = 5.0,
    ) -> None:
        self._sinks: list[ReportSink] = list(sinks or [])
        self._timeout_secs = timeout_secs
        self._emitted = 0
        self._failures = 0

    @property
    def sinks(self) -> list[ReportSink]:
        return list(self._sinks)

    @property
    def emitted(self) -> int:
        return self._emitted

    @property
    def failure_count(self) -> int:
        """Total sink failures since construction."""
        return self._failures

    def add_sink(self, sink: ReportSink) -> None:
        self._sinks.append(sink)

    async def emit(self, report: Report) -> EmitResult:
        """Deliver *report* to every sink; never raises for sink errors."""
        result = EmitResult()
        for sink in self._sinks:
            try:
                await asyncio.wait_for(sink.deliver(report), timeout=self._timeout_secs)
            except TimeoutError:
                self._record_failure(result, sink, f"timed out after {self._timeout_secs}s")
            except Exception as exc:
                self._record_failure(result, sink, str(exc) or type(exc).__name__)
            else:
                result.delivered.append(sink.name)

        self._emitted += 1
        if result.failures:
            logger.warning(
                "report_partially_delivered" if result.delivered else "report_not_delivered",
                cycle=report.cycle,
                delivered=result.delivered,
                failed=[f.sink for f in result.failures],
            )
        return result

    async def close(self) -> None:
        for sink in self._sinks:
            try:
                await sink.close()
            except Exception:
                logger.exception("sink_close_error", sink=sink.name)

    def _record_failure(self, result: EmitResult, sink: ReportSink, error: str) -> None:
        self._failures += 1
        result.failures.append(SinkFailure(sink=sink.name, error=error))
        logger.error("sink_delivery_failed", sink=sink.name, error=error)
