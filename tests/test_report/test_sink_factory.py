"""Tests for create_sinks / create_emitter."""

from __future__ import annotations

from pydantic import SecretStr

from perfbudget.core.config import (
    ConsoleSinkConfig,
    FileSinkConfig,
    HttpSinkConfig,
    SinksConfig,
)
from perfbudget.report.factory import create_emitter, create_sinks
from perfbudget.report.sinks import ConsoleSink, FileSink, HttpSink


class TestCreateSinks:
    def test_default_is_console_only(self) -> None:
        sinks = create_sinks(SinksConfig())
        assert len(sinks) == 1
        assert isinstance(sinks[0], ConsoleSink)

    def test_all_enabled_in_order(self) -> None:
        config = SinksConfig(
            file=FileSinkConfig(enabled=True, path="out.jsonl"),
            http=HttpSinkConfig(enabled=True, url=SecretStr("https://x.example/r")),
        )
        sinks = create_sinks(config)
        assert [type(s) for s in sinks] == [ConsoleSink, FileSink, HttpSink]

    def test_none_enabled(self) -> None:
        config = SinksConfig(console=ConsoleSinkConfig(enabled=False))
        assert create_sinks(config) == []


class TestCreateEmitter:
    def test_emitter_gets_sinks(self) -> None:
        emitter = create_emitter(SinksConfig(timeout_secs=1.5))
        assert [s.name for s in emitter.sinks] == ["ConsoleSink"]
