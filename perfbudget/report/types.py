"""Report and delivery-result types."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from perfbudget.budget.types import BudgetEvaluation
from perfbudget.core.types import BudgetStatus
from perfbudget.report.exceptions import EmitError


class Report(BaseModel):
    """Evaluation results of one cycle. Immutable once built."""

    model_config = ConfigDict(frozen=True)

    generated_at: float = Field(default_factory=time.time)
    cycle: int = 0
    evaluations: tuple[BudgetEvaluation, ...] = ()

    @property
    def transitions(self) -> list[BudgetEvaluation]:
        return [e for e in self.evaluations if e.transitioned]

    @property
    def violations(self) -> list[BudgetEvaluation]:
        return [e for e in self.evaluations if e.status == BudgetStatus.VIOLATED]

    def status_counts(self) -> dict[str, int]:
        counts = {s.value: 0 for s in BudgetStatus}
        for e in self.evaluations:
            counts[e.status.value] += 1
        return counts

    def to_dict(self) -> dict[str, Any]:
        """JSON-safe representation used by file and HTTP sinks."""
        return {
            "generated_at": self.generated_at,
            "cycle": self.cycle,
            "summary": self.status_counts(),
            "evaluations": [
                {
                    "budget": e.budget.name,
                    "kind": e.budget.kind.value,
                    "tags": dict(e.budget.tags),
                    "threshold": e.budget.threshold,
                    "comparison": e.budget.comparison.value,
                    "aggregation": e.budget.aggregation.value,
                    "current_value": e.current_value,
                    "status": e.status.value,
                    "previous_status": e.previous_status.value,
                    "transitioned": e.transitioned,
                }
                for e in self.evaluations
            ],
        }


@dataclass(frozen=True)
class SinkFailure:
    """One sink's failure during an emit."""

    sink: str
    error: str


@dataclass
class EmitResult:
    """Outcome of fanning a report out to every sink."""

    delivered: list[str] = field(default_factory=list)
    failures: list[SinkFailure] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures

    @property
    def partial(self) -> bool:
        """Some sinks succeeded and some failed."""
        return bool(self.failures) and bool(self.delivered)

    def raise_for_failures(self) -> None:
        """Raise EmitError if any sink failed."""
        if self.failures:
            raise EmitError(list(self.failures))
