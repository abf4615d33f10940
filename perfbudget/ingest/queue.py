"""Bounded, thread-safe inbound queue between producers and the aggregator."""

from __future__ import annotations

import threading
from collections import deque
from dataclasses import dataclass

from perfbudget.core.types import TimingEvent
from perfbudget.ingest.exceptions import OverloadedError


@dataclass
class QueueStats:
    """Counters for the inbound queue."""

    max_size: int
    enqueued: int = 0
    dequeued: int = 0
    dropped: int = 0
    current_size: int = 0


class IngestQueue:
    """FIFO of canonical events with a hard size limit.

    Any number of producers (threads or coroutines) may ``put``; a single
    consumer ``drain``s the whole backlog once per cycle.  ``put`` never
    blocks: when the queue is full the event is dropped and
    :class:`OverloadedError` is raised.
    """

    def __init__(self, max_size: int = 10_000) -> None:
        if max_size < 1:
            raise ValueError("max_size must be >= 1")
        self._items: deque[TimingEvent] = deque()
        self._lock = threading.Lock()
        self._stats = QueueStats(max_size=max_size)

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    @property
    def max_size(self) -> int:
        return self._stats.max_size

    @property
    def stats(self) -> QueueStats:
        with self._lock:
            return QueueStats(**vars(self._stats))

    def put(self, event: TimingEvent) -> None:
        """Enqueue *event* or raise OverloadedError if the queue is full."""
        with self._lock:
            if len(self._items) >= self._stats.max_size:
                self._stats.dropped += 1
                raise OverloadedError(
                    f"ingest queue full ({self._stats.max_size} events)"
                )
            self._items.append(event)
            self._stats.enqueued += 1
            self._stats.current_size = len(self._items)

    def drain(self) -> list[TimingEvent]:
        """Remove and return every queued event, oldest first."""
        with self._lock:
            items = list(self._items)
            self._items.clear()
            self._stats.dequeued += len(items)
            self._stats.current_size = 0
        return items
