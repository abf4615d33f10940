"""Report delivery exceptions."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from perfbudget.report.types import SinkFailure


class ReportError(Exception):
    """Base exception for report emission errors."""


class SinkError(ReportError):
    """A sink failed to deliver a report."""


class EmitError(ReportError):
    """One or more sinks failed during an emit (raised on demand)."""

    def __init__(self, failures: list[SinkFailure]) -> None:
        self.failures = failures
        names = ", ".join(f.sink for f in failures)
        super().__init__(f"{len(failures)} sink(s) failed: {names}")
