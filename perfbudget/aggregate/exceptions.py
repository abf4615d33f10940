"""Aggregation exceptions."""

from __future__ import annotations


class AggregationError(Exception):
    """Base exception for metric aggregation errors."""


class InsufficientDataError(AggregationError):
    """The requested window has no samples yet."""
