"""Core module — config, types, logging."""

from perfbudget.core.config import (
    ConfigError,
    Settings,
    get_settings,
    load_settings,
    parse_settings,
    reset_settings,
)
from perfbudget.core.logging import setup_logging
from perfbudget.core.types import (
    Aggregation,
    Budget,
    BudgetStatus,
    Comparison,
    MetricKind,
    ScoreCategory,
    TimingEvent,
    WindowKey,
)

__all__ = [
    "Aggregation",
    "Budget",
    "BudgetStatus",
    "Comparison",
    "ConfigError",
    "MetricKind",
    "ScoreCategory",
    "Settings",
    "TimingEvent",
    "WindowKey",
    "get_settings",
    "load_settings",
    "parse_settings",
    "reset_settings",
    "setup_logging",
]
