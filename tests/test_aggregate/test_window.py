"""Tests for AggregationWindow — capacity, eviction, time ordering."""

from __future__ import annotations

import pytest

from perfbudget.aggregate.window import AggregationWindow
from perfbudget.core.types import MetricKind, WindowKey

KEY = WindowKey.of(MetricKind.LOAD_TIME)


class TestCapacity:
    def test_capacity_never_exceeded(self) -> None:
        window = AggregationWindow(KEY, capacity=3)
        for i in range(10):
            window.append(float(i), float(i))
            assert len(window) <= 3

    def test_eviction_keeps_most_recent_in_order(self) -> None:
        capacity, extra = 5, 4
        window = AggregationWindow(KEY, capacity=capacity)
        for i in range(capacity + extra):
            window.append(float(i), float(i))
        assert window.values() == [4.0, 5.0, 6.0, 7.0, 8.0]
        assert window.evicted == extra

    def test_invalid_capacity(self) -> None:
        with pytest.raises(ValueError):
            AggregationWindow(KEY, capacity=0)


class TestOrdering:
    def test_late_sample_stamped_with_tail_timestamp(self) -> None:
        window = AggregationWindow(KEY, capacity=10)
        window.append(1.0, 100.0)
        window.append(2.0, 90.0)
        timestamps = [s.timestamp for s in window.samples()]
        assert timestamps == [100.0, 100.0]
        assert window.values() == [1.0, 2.0]

    def test_latest_timestamp(self) -> None:
        window = AggregationWindow(KEY)
        assert window.latest_timestamp is None
        window.append(1.0, 5.0)
        assert window.latest_timestamp == 5.0


class TestAgeEviction:
    def test_expired_samples_dropped_from_head(self) -> None:
        window = AggregationWindow(KEY, capacity=10, max_age_secs=60)
        for ts in (0.0, 30.0, 70.0, 100.0):
            window.append(ts, ts)
        dropped = window.evict_expired(now=110.0)
        assert dropped == 2
        assert window.values() == [70.0, 100.0]

    def test_no_age_limit(self) -> None:
        window = AggregationWindow(KEY, capacity=10)
        window.append(1.0, 0.0)
        assert window.evict_expired(now=1e9) == 0
        assert len(window) == 1
