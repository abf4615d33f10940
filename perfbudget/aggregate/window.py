"""AggregationWindow — bounded, time-ordered sample buffer for one metric key."""

from __future__ import annotations

from collections import deque
from typing import NamedTuple

from perfbudget.core.types import WindowKey


class Sample(NamedTuple):
    timestamp: float
    value: float


class AggregationWindow:
    """Keeps the most recent samples for one ``(kind, tags)`` key.

    Capacity is bounded by sample count and optionally by age.  Samples are
    appended at the tail and evicted from the head only.  A sample whose
    timestamp is older than the current tail is stamped with the tail's
    timestamp so the buffer stays time-ordered.
    """

    def __init__(
        self,
        key: WindowKey,
        capacity: int = 100,
        max_age_secs: float | None = None,
    ) -> None:
        if capacity < 1:
            raise ValueError("capacity must be >= 1")
        self._key = key
        self._capacity = capacity
        self._max_age_secs = max_age_secs
        self._samples: deque[Sample] = deque(maxlen=capacity)
        self._evicted = 0

    def __len__(self) -> int:
        return len(self._samples)

    @property
    def key(self) -> WindowKey:
        return self._key

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def evicted(self) -> int:
        """Total samples evicted so far (by capacity or age)."""
        return self._evicted

    @property
    def latest_timestamp(self) -> float | None:
        return self._samples[-1].timestamp if self._samples else None

    def append(self, value: float, timestamp: float) -> None:
        """Add a sample, evicting the oldest one if at capacity."""
        if self._samples and timestamp < self._samples[-1].timestamp:
            timestamp = self._samples[-1].timestamp
        if len(self._samples) == self._capacity:
            self._evicted += 1
        self._samples.append(Sample(timestamp, value))

    def evict_expired(self, now: float) -> int:
        """Drop samples older than the age limit. Returns the number dropped."""
        if self._max_age_secs is None:
            return 0
        cutoff = now - self._max_age_secs
        dropped = 0
        while self._samples and self._samples[0].timestamp < cutoff:
            self._samples.popleft()
            dropped += 1
        self._evicted += dropped
        return dropped

    def values(self) -> list[float]:
        """Sample values, oldest first."""
        return [s.value for s in self._samples]

    def samples(self) -> list[Sample]:
        return list(self._samples)
