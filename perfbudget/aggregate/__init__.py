"""Metric aggregation — rolling windows and percentile summaries."""

from perfbudget.aggregate.aggregator import MetricAggregator
from perfbudget.aggregate.exceptions import AggregationError, InsufficientDataError
from perfbudget.aggregate.stats import percentile, summarize
from perfbudget.aggregate.window import AggregationWindow, Sample

__all__ = [
    "AggregationError",
    "AggregationWindow",
    "InsufficientDataError",
    "MetricAggregator",
    "Sample",
    "percentile",
    "summarize",
]
