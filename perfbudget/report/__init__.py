"""Report assembly and delivery to sinks."""

from perfbudget.report.emitter import ReportEmitter
from perfbudget.report.exceptions import EmitError, ReportError, SinkError
from perfbudget.report.factory import create_emitter, create_sinks
from perfbudget.report.sinks import ConsoleSink, FileSink, HttpSink, ReportSink
from perfbudget.report.types import EmitResult, Report, SinkFailure

__all__ = [
    "ConsoleSink",
    "EmitError",
    "EmitResult",
    "FileSink",
    "HttpSink",
    "Report",
    "ReportEmitter",
    "ReportError",
    "ReportSink",
    "SinkError",
    "SinkFailure",
    "create_emitter",
    "create_sinks",
]
