"""Engine coordination — cycle scheduling, lifecycle, HTTP surface."""

from perfbudget.engine.coordinator import BudgetEngine, CycleResult
from perfbudget.engine.factory import create_engine
from perfbudget.engine.server import create_web_app, start_server

__all__ = [
    "BudgetEngine",
    "CycleResult",
    "create_engine",
    "create_web_app",
    "start_server",
]
