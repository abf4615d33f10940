"""Report sinks — structured log, JSON-lines file, and HTTP delivery."""

from __future__ import annotations

import abc
import asyncio
import json
from pathlib import Path

import aiohttp
import structlog

from perfbudget.core.config import ConsoleSinkConfig, FileSinkConfig, HttpSinkConfig
from perfbudget.core.types import BudgetStatus
from perfbudget.report.exceptions import SinkError
from perfbudget.report.types import Report

# Log level per budget status for console output.
_STATUS_LEVELS: dict[BudgetStatus, str] = {
    BudgetStatus.OK: "info",
    BudgetStatus.WARNING: "warning",
    BudgetStatus.VIOLATED: "error",
}


class ReportSink(abc.ABC):
    """Destination for emitted reports."""

    @property
    def name(self) -> str:
        return type(self).__name__

    @abc.abstractmethod
    async def deliver(self, report: Report) -> None:
        """Deliver a report. Raises SinkError (or any exception) on failure."""

    async def close(self) -> None:
        """Release resources (HTTP sessions, etc.)."""


class ConsoleSink(ReportSink):
    """Writes each report as structured log lines."""

    def __init__(self, config: ConsoleSinkConfig | None = None) -> None:
        self._only_transitions = (config or ConsoleSinkConfig()).only_transitions
        self._logger = structlog.get_logger("perfbudget.report")

    async def deliver(self, report: Report) -> None:
        evaluations = report.transitions if self._only_transitions else report.evaluations
        for e in evaluations:
            log = getattr(self._logger, _STATUS_LEVELS[e.status])
            log(
                "budget_evaluation",
                cycle=report.cycle,
                budget=e.budget.name,
                status=e.status.value,
                value=e.current_value,
                threshold=e.budget.threshold,
                transitioned=e.transitioned,
            )
        self._logger.info("budget_report", cycle=report.cycle, **report.status_counts())


class FileSink(ReportSink):
    """Appends each report as one JSON line to a file."""

    def __init__(self, config: FileSinkConfig) -> None:
        self._path = Path(config.path)

    @property
    def path(self) -> Path:
        return self._path

    async def deliver(self, report: Report) -> None:
        line = json.dumps(report.to_dict(), sort_keys=True)
        try:
            await asyncio.to_thread(self._append, line)
        except OSError as exc:
            raise SinkError(f"cannot write {self._path}: {exc}") from exc

    def _append(self, line: str) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        with open(self._path, "a", encoding="utf-8") as f:
            f.write(line + "\n")


class HttpSink(ReportSink):
    """POSTs each report as JSON to a dashboard endpoint."""

    def __init__(self, config: HttpSinkConfig) -> None:
        self._url = config.url.get_secret_value()
        self._headers = dict(config.headers)
        self._session: aiohttp.ClientSession | None = None

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(headers=self._headers)
        return self._session

    async def deliver(self, report: Report) -> None:
        try:
            session = self._get_session()
            async with session.post(self._url, json=report.to_dict()) as resp:
                if 200 <= resp.status < 300:
                    return
                body = await resp.text()
                raise SinkError(f"HTTP {resp.status}: {body[:200]}")
        except aiohttp.ClientError as exc:
            raise SinkError(f"HTTP delivery failed: {exc}") from exc

    async def close(self) -> None:
        if self._session and not self._session.closed:
            await self._session.close()
            self._session = None
