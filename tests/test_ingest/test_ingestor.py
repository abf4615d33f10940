"""Tests for EventIngestor — validation, timestamp normalization, counters."""

from __future__ import annotations

import pytest

from perfbudget.core.types import MetricKind, TimingEvent
from perfbudget.ingest.exceptions import MalformedEventError, OverloadedError
from perfbudget.ingest.ingestor import EventIngestor
from perfbudget.ingest.queue import IngestQueue


# ── Helpers ─────────────────────────────────────────────────────


class FakeClock:
    """Manually advanced clock."""

    def __init__(self, now: float) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


WALL_ANCHOR = 1_700_000_000.0
MONO_ANCHOR = 500.0


def _ingestor(max_size: int = 100) -> tuple[EventIngestor, IngestQueue, FakeClock]:
    queue = IngestQueue(max_size=max_size)
    mono = FakeClock(MONO_ANCHOR)
    ingestor = EventIngestor(queue, clock=mono, wall_clock=FakeClock(WALL_ANCHOR))
    return ingestor, queue, mono


# ── Validation ──────────────────────────────────────────────────


class TestValidation:
    def test_valid_event_is_queued(self) -> None:
        ingestor, queue, _ = _ingestor()
        event = ingestor.ingest({
            "kind": "load_time",
            "value": 1830,
            "source": "home",
            "tags": {"page": "/", "build": 42},
        })
        assert event.kind == MetricKind.LOAD_TIME
        assert event.value == 1830.0
        assert event.source == "home"
        assert event.tags == {"page": "/", "build": "42"}
        assert queue.drain() == [event]

    def test_composite_score_with_category(self) -> None:
        ingestor, _, _ = _ingestor()
        event = ingestor.ingest({"kind": "CompositeScore", "category": "seo", "value": 88})
        assert event.kind == MetricKind.SCORE_SEO

    @pytest.mark.parametrize(
        "raw",
        [
            {"value": 10},
            {"kind": "", "value": 10},
            {"kind": "paint", "value": 10},
            {"kind": "load_time"},
            {"kind": "load_time", "value": "fast"},
            {"kind": "load_time", "value": True},
            {"kind": "load_time", "value": float("nan")},
            {"kind": "load_time", "value": float("inf")},
            {"kind": "load_time", "value": -1},
            {"kind": "composite_score.seo", "value": 101},
            {"kind": "composite_score", "value": 50},
            {"kind": "load_time", "value": 1, "tags": ["a"]},
            {"kind": "load_time", "value": 1, "timestamp": "yesterday"},
        ],
    )
    def test_malformed_rejected(self, raw: dict[str, object]) -> None:
        ingestor, queue, _ = _ingestor()
        with pytest.raises(MalformedEventError):
            ingestor.ingest(raw)
        assert len(queue) == 0
        assert ingestor.stats.malformed == 1

    def test_non_mapping_rejected(self) -> None:
        ingestor, _, _ = _ingestor()
        with pytest.raises(MalformedEventError):
            ingestor.ingest([1, 2, 3])  # type: ignore[arg-type]

    def test_prebuilt_event_passes_through(self) -> None:
        ingestor, queue, _ = _ingestor()
        event = TimingEvent(kind=MetricKind.API_LATENCY, value=120, timestamp=1.0)
        assert ingestor.ingest(event) is event
        assert len(queue) == 1


# ── Timestamps ──────────────────────────────────────────────────


class TestTimestamps:
    def test_missing_timestamp_uses_monotonic_now(self) -> None:
        ingestor, _, mono = _ingestor()
        mono.now = 512.5
        event = ingestor.ingest({"kind": "load_time", "value": 1})
        assert event.timestamp == 512.5

    def test_wall_seconds_mapped_to_monotonic(self) -> None:
        ingestor, _, mono = _ingestor()
        mono.now = MONO_ANCHOR + 60
        event = ingestor.ingest({
            "kind": "load_time",
            "value": 1,
            "timestamp": WALL_ANCHOR + 30,
        })
        assert event.timestamp == pytest.approx(MONO_ANCHOR + 30)

    def test_wall_milliseconds_detected(self) -> None:
        ingestor, _, mono = _ingestor()
        mono.now = MONO_ANCHOR + 60
        event = ingestor.ingest({
            "kind": "load_time",
            "value": 1,
            "timestamp": (WALL_ANCHOR + 10) * 1000,
        })
        assert event.timestamp == pytest.approx(MONO_ANCHOR + 10)

    def test_future_timestamp_clamped_to_now(self) -> None:
        ingestor, _, mono = _ingestor()
        mono.now = MONO_ANCHOR + 5
        event = ingestor.ingest({
            "kind": "load_time",
            "value": 1,
            "timestamp": WALL_ANCHOR + 3600,
        })
        assert event.timestamp == MONO_ANCHOR + 5


# ── Backpressure & counters ─────────────────────────────────────


class TestBackpressure:
    def test_overloaded_when_queue_full(self) -> None:
        ingestor, queue, _ = _ingestor(max_size=2)
        ingestor.ingest({"kind": "load_time", "value": 1})
        ingestor.ingest({"kind": "load_time", "value": 2})
        with pytest.raises(OverloadedError):
            ingestor.ingest({"kind": "load_time", "value": 3})

        stats = ingestor.stats
        assert stats.accepted == 2
        assert stats.overloaded == 1
        assert [e.value for e in queue.drain()] == [1.0, 2.0]

    def test_ingest_many_collects_errors(self) -> None:
        ingestor, queue, _ = _ingestor(max_size=2)
        summary = ingestor.ingest_many([
            {"kind": "load_time", "value": 1},
            {"kind": "bogus", "value": 1},
            {"kind": "render_duration", "value": 16},
            {"kind": "api_latency", "value": 80},
        ])
        assert summary.accepted == 2
        assert summary.rejected == 2
        assert len(summary.errors) == 2
        assert len(queue) == 2
