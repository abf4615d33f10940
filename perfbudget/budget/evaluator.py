"""BudgetEvaluator — compares aggregated metrics to budgets with hysteresis."""

from __future__ import annotations

import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass

import structlog

from perfbudget.aggregate.aggregator import MetricAggregator
from perfbudget.aggregate.exceptions import InsufficientDataError
from perfbudget.budget.state import advance
from perfbudget.budget.types import BudgetEvaluation, ViolationState
from perfbudget.core.types import Budget, BudgetStatus

logger = structlog.stdlib.get_logger()


@dataclass
class _Pending:
    op: str  # "register" | "deregister" | "replace_all"
    budgets: tuple[Budget, ...] = ()
    name: str = ""


@dataclass
class EvaluatorStats:
    """Counters for the evaluator."""

    cycles: int = 0
    evaluated: int = 0
    skipped: int = 0
    errors: int = 0
    transitions: int = 0


class BudgetEvaluator:
    """Runs the hysteresis state machine of every registered budget.

    Budgets are evaluated in registration order.  Registration changes are
    staged and only take effect at the next cycle boundary
    (:meth:`apply_pending`, called at the start of :meth:`evaluate`), so
    thresholds never change in the middle of a cycle.

    Usage::

        evaluator = BudgetEvaluator([Budget(kind=MetricKind.LOAD_TIME, threshold=2000)])
        evaluations = evaluator.evaluate(aggregator)
    """

    def __init__(
        self,
        budgets: Iterable[Budget] | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._budgets: dict[str, Budget] = {}
        self._states: dict[str, ViolationState] = {}
        self._pending: list[_Pending] = []
        self._clock = clock
        self._stats = EvaluatorStats()
        for budget in _unique(budgets or ()):
            self._install(budget)

    # ── Registration (staged) ───────────────────────────────────

    def register(self, budget: Budget) -> None:
        """Stage *budget* for registration (replaces one with the same name)."""
        self._pending.append(_Pending(op="register", budgets=(budget,)))

    def deregister(self, name: str) -> None:
        """Stage removal of the budget called *name*."""
        self._pending.append(_Pending(op="deregister", name=name))

    def replace_all(self, budgets: Iterable[Budget]) -> None:
        """Stage a full replacement of the budget set (hot reload).

        Raises:
            ValueError: If two budgets in *budgets* share a name.
        """
        self._pending.append(_Pending(op="replace_all", budgets=_unique(budgets)))

    @property
    def has_pending(self) -> bool:
        return bool(self._pending)

    def apply_pending(self) -> int:
        """Apply staged registration changes. Returns how many were applied."""
        pending, self._pending = self._pending, []
        for change in pending:
            if change.op == "register":
                self._install(change.budgets[0])
            elif change.op == "deregister":
                self._remove(change.name)
            else:
                wanted = {b.name for b in change.budgets}
                for name in [n for n in self._budgets if n not in wanted]:
                    self._remove(name)
                for budget in change.budgets:
                    self._install(budget)
        return len(pending)

    # ── Queries ─────────────────────────────────────────────────

    @property
    def budgets(self) -> list[Budget]:
        return list(self._budgets.values())

    @property
    def stats(self) -> EvaluatorStats:
        return EvaluatorStats(**vars(self._stats))

    def state(self, name: str) -> ViolationState | None:
        """Read-only copy of one budget's state."""
        state = self._states.get(name)
        return state.model_copy() if state is not None else None

    def statuses(self) -> dict[str, BudgetStatus]:
        """Current status per budget, in registration order."""
        return {name: state.status for name, state in self._states.items()}

    # ── Evaluation ──────────────────────────────────────────────

    def evaluate(self, aggregator: MetricAggregator) -> list[BudgetEvaluation]:
        """Evaluate every budget once against the aggregator's windows.

        Budgets without samples are skipped (status unchanged).
        """
        self.apply_pending()
        self._stats.cycles += 1
        now = self._clock()
        results: list[BudgetEvaluation] = []

        for name, budget in self._budgets.items():
            state = self._states[name]
            previous = state.status
            try:
                value = aggregator.snapshot(budget.kind, budget.tags, budget.aggregation)
            except InsufficientDataError:
                self._stats.skipped += 1
                logger.debug("budget_skipped", budget=name, reason="insufficient_data")
                results.append(_unchanged(budget, state))
                continue
            except Exception:
                self._stats.errors += 1
                logger.exception("budget_evaluation_error", budget=name)
                results.append(_unchanged(budget, state))
                continue

            state.last_value = value
            transitioned = advance(state, budget, budget.is_compliant(value), now)
            self._stats.evaluated += 1
            if transitioned:
                self._stats.transitions += 1
                logger.info(
                    "budget_transition",
                    budget=name,
                    previous=previous.value,
                    status=state.status.value,
                    value=value,
                    threshold=budget.threshold,
                    aggregation=budget.aggregation.value,
                )
            results.append(BudgetEvaluation(
                budget=budget,
                current_value=value,
                status=state.status,
                previous_status=previous,
                transitioned=transitioned,
            ))

        return results

    # ── Internal ────────────────────────────────────────────────

    def _install(self, budget: Budget) -> None:
        existing = self._budgets.get(budget.name)
        if existing is None or existing.key != budget.key:
            self._states[budget.name] = ViolationState(last_transition_at=self._clock())
        self._budgets[budget.name] = budget
        logger.info(
            "budget_registered",
            budget=budget.name,
            kind=budget.kind.value,
            threshold=budget.threshold,
            comparison=budget.comparison.value,
            aggregation=budget.aggregation.value,
        )

    def _remove(self, name: str) -> None:
        if self._budgets.pop(name, None) is not None:
            self._states.pop(name, None)
            logger.info("budget_deregistered", budget=name)


def _unchanged(budget: Budget, state: ViolationState) -> BudgetEvaluation:
    return BudgetEvaluation(
        budget=budget,
        current_value=None,
        status=state.status,
        previous_status=state.status,
    )


def _unique(budgets: Iterable[Budget]) -> tuple[Budget, ...]:
    batch = tuple(budgets)
    seen: set[str] = set()
    for budget in batch:
        if budget.name in seen:
            raise ValueError(f"duplicate budget name: {budget.name!r}")
        seen.add(budget.name)
    return batch
