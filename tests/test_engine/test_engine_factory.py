"""Tests for create_engine — wiring from settings."""

from __future__ import annotations

from pathlib import Path

from perfbudget.core.config import parse_settings
from perfbudget.engine.factory import create_engine


class TestCreateEngine:
    def test_wires_budgets_and_windows(self) -> None:
        settings = parse_settings({
            "aggregation": {"window_size": 3},
            "ingest": {"queue_size": 5},
            "scheduler": {"interval_secs": 2.5},
            "budgets": [
                {"name": "lcp", "kind": "load_time", "threshold": 2000},
                {"name": "seo", "kind": "CompositeScore(seo)", "threshold": 80,
                 "comparison": "greaterThan"},
            ],
        })

        engine = create_engine(settings)

        assert [b.name for b in engine.evaluator.budgets] == ["lcp", "seo"]
        assert engine.ingestor.queue.max_size == 5
        assert engine.status() == {"lcp": "ok", "seo": "ok"}
        assert [s.name for s in engine.emitter.sinks] == ["ConsoleSink"]

    def test_explicit_sinks_override_config(self) -> None:
        engine = create_engine(parse_settings({}), sinks=[])
        assert engine.emitter.sinks == []

    async def test_window_size_from_settings(self) -> None:
        settings = parse_settings({
            "aggregation": {"window_size": 2},
            "budgets": [{"name": "lcp", "kind": "load_time", "threshold": 2000,
                         "aggregation": "min"}],
        })
        engine = create_engine(settings, sinks=[])
        for value in (100, 2500, 2600):
            engine.ingest({"kind": "load_time", "value": value})
        result = await engine.run_cycle()
        assert result.report.evaluations[0].current_value == 2500

    async def test_hot_reload_path(self, tmp_path: Path) -> None:
        settings = parse_settings({"scheduler": {"hot_reload": True}})
        engine = create_engine(settings, sinks=[], config_path=tmp_path / "missing.yaml")
        await engine.run_cycle()
        assert engine.evaluator.budgets == []
