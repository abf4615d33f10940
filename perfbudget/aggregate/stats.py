"""Deterministic summary statistics over window samples."""

from __future__ import annotations

import math
from collections.abc import Sequence

from perfbudget.core.types import Aggregation


def percentile(values: Sequence[float], fraction: float) -> float:
    """Percentile by linear interpolation between order statistics.

    The rank of the requested percentile is ``fraction * (n - 1)``; when it
    falls between two order statistics the result is interpolated linearly
    between them.  Identical inputs always give identical outputs,
    regardless of arrival order.

    Raises:
        ValueError: If *values* is empty or *fraction* is outside [0, 1].
    """
    if not values:
        raise ValueError("percentile of empty sequence")
    if not 0.0 <= fraction <= 1.0:
        raise ValueError(f"fraction must be in [0, 1], got {fraction}")

    ordered = sorted(values)
    rank = fraction * (len(ordered) - 1)
    lo = math.floor(rank)
    hi = math.ceil(rank)
    if lo == hi:
        return ordered[lo]
    return ordered[lo] + (ordered[hi] - ordered[lo]) * (rank - lo)


def summarize(values: Sequence[float], aggregation: Aggregation) -> float:
    """Compute *aggregation* over *values* (which must be non-empty)."""
    if not values:
        raise ValueError(f"{aggregation.value} of empty sequence")

    fraction = aggregation.percentile
    if fraction is not None:
        return percentile(values, fraction)
    if aggregation == Aggregation.MEAN:
        return math.fsum(values) / len(values)
    if aggregation == Aggregation.MIN:
        return min(values)
    if aggregation == Aggregation.MAX:
        return max(values)
    raise ValueError(f"unsupported aggregation: {aggregation!r}")
