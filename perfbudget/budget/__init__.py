"""Budget evaluation — hysteresis state machine per budget."""

from perfbudget.budget.evaluator import BudgetEvaluator, EvaluatorStats
from perfbudget.budget.state import advance
from perfbudget.budget.types import BudgetEvaluation, ViolationState

__all__ = [
    "BudgetEvaluation",
    "BudgetEvaluator",
    "EvaluatorStats",
    "ViolationState",
    "advance",
]
