"""Convenience factory for wiring report sinks from config."""

from __future__ import annotations

from perfbudget.core.config import SinksConfig
from perfbudget.report.emitter import ReportEmitter
from perfbudget.report.sinks import ConsoleSink, FileSink, HttpSink, ReportSink


def create_sinks(config: SinksConfig) -> list[ReportSink]:
    """Build the enabled sinks, in console → file → HTTP order."""
    sinks: list[ReportSink] = []

    if config.console.enabled:
        sinks.append(ConsoleSink(config.console))

    if config.file.enabled:
        sinks.append(FileSink(config.file))

    if config.http.enabled:
        sinks.append(HttpSink(config.http))

    return sinks


def create_emitter(config: SinksConfig) -> ReportEmitter:
    """Build an emitter with every enabled sink and the configured timeout."""
    return ReportEmitter(sinks=create_sinks(config), timeout_secs=config.timeout_secs)
