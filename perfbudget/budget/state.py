"""Per-budget hysteresis state machine."""

from __future__ import annotations

from perfbudget.budget.types import ViolationState
from perfbudget.core.types import Budget, BudgetStatus


def advance(
    state: ViolationState,
    budget: Budget,
    compliant: bool,
    now: float,
) -> bool:
    """Feed one cycle's verdict into *state*. Returns True on a status change.

    - A breach resets the good streak; a compliant sample resets the bad one.
    - From OK, the first breach moves to WARNING (or straight to VIOLATED
      when a single breach is enough to trigger).
    - WARNING becomes VIOLATED once the bad streak reaches
      ``consecutive_violations_to_trigger``.
    - WARNING and VIOLATED return to OK once the good streak reaches
      ``consecutive_recoveries_to_clear``.
    """
    previous = state.status

    if compliant:
        state.consecutive_bad = 0
        state.consecutive_good += 1
        if (
            state.status != BudgetStatus.OK
            and state.consecutive_good >= budget.consecutive_recoveries_to_clear
        ):
            state.status = BudgetStatus.OK
    else:
        state.consecutive_good = 0
        state.consecutive_bad += 1
        if state.consecutive_bad >= budget.consecutive_violations_to_trigger:
            state.status = BudgetStatus.VIOLATED
        elif state.status == BudgetStatus.OK:
            state.status = BudgetStatus.WARNING

    if state.status != previous:
        state.last_transition_at = now
        return True
    return False
