"""Domain types for budget evaluation."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from perfbudget.core.types import Budget, BudgetStatus


class ViolationState(BaseModel):
    """Hysteresis state of one budget, mutated only by the evaluator."""

    status: BudgetStatus = BudgetStatus.OK
    consecutive_bad: int = 0
    consecutive_good: int = 0
    last_transition_at: float = 0.0
    last_value: float | None = None


class BudgetEvaluation(BaseModel):
    """Outcome of evaluating one budget in one cycle.

    ``current_value`` is None when the budget was skipped for lack of data.
    """

    model_config = ConfigDict(frozen=True)

    budget: Budget
    current_value: float | None
    status: BudgetStatus
    previous_status: BudgetStatus
    transitioned: bool = False

    @property
    def skipped(self) -> bool:
        return self.current_value is None
