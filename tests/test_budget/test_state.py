"""Tests for the hysteresis state machine."""

from __future__ import annotations

from perfbudget.budget.state import advance
from perfbudget.budget.types import ViolationState
from perfbudget.core.types import Budget, BudgetStatus, MetricKind


def _budget(trigger: int = 3, clear: int = 3) -> Budget:
    return Budget(
        kind=MetricKind.LOAD_TIME,
        threshold=2000,
        consecutive_violations_to_trigger=trigger,
        consecutive_recoveries_to_clear=clear,
    )


def _run(budget: Budget, verdicts: list[bool]) -> list[BudgetStatus]:
    state = ViolationState()
    statuses = []
    for i, compliant in enumerate(verdicts):
        advance(state, budget, compliant, now=float(i))
        statuses.append(state.status)
    return statuses


OK, WARN, VIOL = BudgetStatus.OK, BudgetStatus.WARNING, BudgetStatus.VIOLATED


class TestTrigger:
    def test_two_breaches_not_enough_for_three(self) -> None:
        assert _run(_budget(trigger=3), [False, False]) == [WARN, WARN]

    def test_three_breaches_trigger(self) -> None:
        assert _run(_budget(trigger=3), [False, False, False]) == [WARN, WARN, VIOL]

    def test_single_breach_trigger_skips_warning(self) -> None:
        assert _run(_budget(trigger=1), [False]) == [VIOL]

    def test_compliant_sample_resets_bad_streak(self) -> None:
        statuses = _run(_budget(trigger=3, clear=3), [False, False, True, False, False])
        assert statuses == [WARN, WARN, WARN, WARN, WARN]

    def test_ok_stays_ok(self) -> None:
        assert _run(_budget(), [True, True, True]) == [OK, OK, OK]


class TestRecovery:
    def test_single_compliant_does_not_clear_violated(self) -> None:
        statuses = _run(_budget(trigger=2, clear=2), [False, False, True, False])
        assert statuses == [WARN, VIOL, VIOL, VIOL]

    def test_recovery_streak_clears_violated(self) -> None:
        statuses = _run(_budget(trigger=2, clear=2), [False, False, True, True])
        assert statuses == [WARN, VIOL, VIOL, OK]

    def test_warning_clears_after_recovery_streak(self) -> None:
        statuses = _run(_budget(trigger=3, clear=2), [False, True, True])
        assert statuses == [WARN, WARN, OK]


class TestBookkeeping:
    def test_counters_and_transition_time(self) -> None:
        state = ViolationState()
        budget = _budget(trigger=2)

        assert advance(state, budget, False, now=10.0) is True
        assert state.consecutive_bad == 1
        assert state.last_transition_at == 10.0

        assert advance(state, budget, False, now=20.0) is True
        assert state.status == VIOL
        assert state.last_transition_at == 20.0

        assert advance(state, budget, True, now=30.0) is False
        assert state.consecutive_bad == 0
        assert state.consecutive_good == 1
        assert state.last_transition_at == 20.0
