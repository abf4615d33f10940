"""EventIngestor — validates raw timing events and queues canonical records."""

from __future__ import annotations

import math
import threading
import time
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

import structlog

from perfbudget.core.types import MetricKind, TimingEvent
from perfbudget.ingest.exceptions import (
    IngestError,
    MalformedEventError,
    OverloadedError,
)
from perfbudget.ingest.queue import IngestQueue

logger = structlog.stdlib.get_logger()

Clock = Callable[[], float]

# Epoch timestamps above this are taken to be milliseconds (JS Date.now()).
_EPOCH_MS_CUTOFF = 1e11

_MAX_SCORE = 100.0


@dataclass
class IngestStats:
    """Outcome counters for the ingestor."""

    accepted: int = 0
    malformed: int = 0
    overloaded: int = 0


@dataclass
class IngestSummary:
    """Result of a batch ingest — never raises, reports per-event errors."""

    accepted: int = 0
    rejected: int = 0
    errors: list[str] = field(default_factory=list)


class EventIngestor:
    """Turns raw instrumentation payloads into :class:`TimingEvent` records.

    A raw event is a mapping with at least ``kind`` and ``value``; optional
    keys are ``category`` (for ``composite_score``), ``timestamp`` (epoch
    seconds or milliseconds), ``source`` and ``tags``.  Wall-clock
    timestamps are translated to the monotonic domain through an anchor
    taken at construction, so later wall-clock jumps do not reorder samples.

    Usage::

        queue = IngestQueue(max_size=10_000)
        ingestor = EventIngestor(queue)
        ingestor.ingest({"kind": "load_time", "value": 1830.5, "source": "home"})
    """

    def __init__(
        self,
        queue: IngestQueue,
        clock: Clock = time.monotonic,
        wall_clock: Clock = time.time,
    ) -> None:
        self._queue = queue
        self._clock = clock
        self._wall_anchor = wall_clock()
        self._mono_anchor = clock()
        self._stats = IngestStats()
        self._stats_lock = threading.Lock()

    @property
    def stats(self) -> IngestStats:
        with self._stats_lock:
            return IngestStats(**vars(self._stats))

    @property
    def queue(self) -> IngestQueue:
        return self._queue

    def ingest(self, raw: Mapping[str, Any] | TimingEvent) -> TimingEvent:
        """Validate *raw* and push it onto the inbound queue.

        Returns:
            The canonical event that was queued.

        Raises:
            MalformedEventError: Missing/unknown kind or non-numeric value.
            OverloadedError: The inbound queue is full; the event was dropped.
        """
        try:
            event = raw if isinstance(raw, TimingEvent) else self.normalize(raw)
        except MalformedEventError as exc:
            self._count("malformed")
            logger.warning("event_rejected", reason=str(exc))
            raise

        try:
            self._queue.put(event)
        except OverloadedError:
            self._count("overloaded")
            logger.warning(
                "event_dropped",
                kind=event.kind.value,
                source=event.source,
                queue_size=self._queue.max_size,
            )
            raise

        self._count("accepted")
        return event

    def ingest_many(self, raws: Iterable[Mapping[str, Any] | TimingEvent]) -> IngestSummary:
        """Ingest a batch, collecting errors instead of raising."""
        summary = IngestSummary()
        for raw in raws:
            try:
                self.ingest(raw)
            except IngestError as exc:
                summary.rejected += 1
                summary.errors.append(str(exc))
            else:
                summary.accepted += 1
        return summary

    def normalize(self, raw: Mapping[str, Any]) -> TimingEvent:
        """Build a canonical event from a raw mapping without queueing it."""
        if not isinstance(raw, Mapping):
            raise MalformedEventError(f"event must be a mapping, got {type(raw).__name__}")

        kind = self._parse_kind(raw)
        value = self._parse_value(raw.get("value"), kind)

        tags = raw.get("tags") or {}
        if not isinstance(tags, Mapping):
            raise MalformedEventError("tags must be a mapping")

        source = raw.get("source") or ""
        return TimingEvent(
            kind=kind,
            value=value,
            timestamp=self._to_monotonic(raw.get("timestamp")),
            source=str(source),
            tags={str(k): str(v) for k, v in tags.items()},
        )

    # ── Internal ────────────────────────────────────────────────

    def _count(self, outcome: str) -> None:
        with self._stats_lock:
            setattr(self._stats, outcome, getattr(self._stats, outcome) + 1)

    @staticmethod
    def _parse_kind(raw: Mapping[str, Any]) -> MetricKind:
        kind = raw.get("kind")
        if isinstance(kind, MetricKind):
            return kind
        if not isinstance(kind, str) or not kind:
            raise MalformedEventError("event has no kind")
        category = raw.get("category")
        try:
            return MetricKind.parse(kind, str(category) if category is not None else None)
        except ValueError as exc:
            raise MalformedEventError(str(exc)) from exc

    @staticmethod
    def _parse_value(value: Any, kind: MetricKind) -> float:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise MalformedEventError(f"{kind.value}: value must be numeric, got {value!r}")
        value = float(value)
        if not math.isfinite(value):
            raise MalformedEventError(f"{kind.value}: value must be finite")
        if kind.is_score:
            if not 0.0 <= value <= _MAX_SCORE:
                raise MalformedEventError(f"{kind.value}: score {value} outside 0-100")
        elif value < 0:
            raise MalformedEventError(f"{kind.value}: negative duration {value}")
        return value

    def _to_monotonic(self, timestamp: Any) -> float:
        now = self._clock()
        if timestamp is None:
            return now
        if isinstance(timestamp, bool) or not isinstance(timestamp, (int, float)):
            raise MalformedEventError(f"timestamp must be numeric, got {timestamp!r}")
        wall = float(timestamp)
        if not math.isfinite(wall):
            raise MalformedEventError("timestamp must be finite")
        if wall > _EPOCH_MS_CUTOFF:
            wall /= 1000.0
        # Clock skew on the producer must not place samples in the future.
        return min(self._mono_anchor + (wall - self._wall_anchor), now)
