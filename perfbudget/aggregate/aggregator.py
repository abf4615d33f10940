"""MetricAggregator — per-key rolling windows and their summary statistics."""

from __future__ import annotations

import structlog

from perfbudget.aggregate.exceptions import InsufficientDataError
from perfbudget.aggregate.stats import summarize
from perfbudget.aggregate.window import AggregationWindow
from perfbudget.core.types import Aggregation, MetricKind, TimingEvent, WindowKey
from perfbudget.ingest.queue import IngestQueue

logger = structlog.stdlib.get_logger()


class MetricAggregator:
    """Owns one :class:`AggregationWindow` per ``(kind, tags)`` key.

    Windows are created lazily on the first event for a key and are only
    removed through :meth:`deregister`.  Only the coordinator's cycle
    mutates windows, so no locking is needed here.

    Usage::

        aggregator = MetricAggregator(window_size=100)
        aggregator.drain(queue)
        p95 = aggregator.snapshot(MetricKind.LOAD_TIME, {}, Aggregation.P95)
    """

    def __init__(
        self,
        window_size: int = 100,
        window_max_age_secs: float | None = None,
    ) -> None:
        if window_size < 1:
            raise ValueError("window_size must be >= 1")
        self._window_size = window_size
        self._max_age_secs = window_max_age_secs
        self._windows: dict[WindowKey, AggregationWindow] = {}
        self._recorded = 0

    @property
    def recorded(self) -> int:
        """Total events recorded since construction."""
        return self._recorded

    def keys(self) -> list[WindowKey]:
        return list(self._windows)

    def window(self, key: WindowKey) -> AggregationWindow | None:
        return self._windows.get(key)

    def record_event(self, event: TimingEvent) -> None:
        """Append *event* to its window, creating the window if needed."""
        key = event.key
        window = self._windows.get(key)
        if window is None:
            window = AggregationWindow(key, self._window_size, self._max_age_secs)
            self._windows[key] = window
            logger.debug("window_created", window=str(key))
        window.append(event.value, event.timestamp)
        self._recorded += 1

    def drain(self, queue: IngestQueue) -> int:
        """Move every queued event into its window, oldest timestamp first.

        Returns the number of events recorded.
        """
        events = queue.drain()
        events.sort(key=lambda e: e.timestamp)
        for event in events:
            self.record_event(event)
        return len(events)

    def evict_expired(self, now: float) -> int:
        """Apply age-based eviction to every window."""
        return sum(w.evict_expired(now) for w in self._windows.values())

    def snapshot(
        self,
        kind: MetricKind,
        tags: dict[str, str] | None,
        aggregation: Aggregation,
    ) -> float:
        """Compute *aggregation* over the current samples of a window.

        Raises:
            InsufficientDataError: No window exists for the key, or it is empty.
        """
        key = WindowKey.of(kind, tags)
        window = self._windows.get(key)
        if window is None or len(window) == 0:
            raise InsufficientDataError(f"no samples for {key}")
        return summarize(window.values(), aggregation)

    def deregister(self, kind: MetricKind, tags: dict[str, str] | None = None) -> bool:
        """Remove a window explicitly. Returns True if it existed."""
        removed = self._windows.pop(WindowKey.of(kind, tags), None)
        return removed is not None
