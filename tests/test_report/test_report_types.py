"""Tests for Report / EmitResult helpers."""

from __future__ import annotations

import json

import pytest
from pydantic import ValidationError

from perfbudget.budget.types import BudgetEvaluation
from perfbudget.core.types import Budget, BudgetStatus, MetricKind
from perfbudget.report.types import EmitResult, Report, SinkFailure


def _evaluation(name: str, status: BudgetStatus, transitioned: bool = False) -> BudgetEvaluation:
    return BudgetEvaluation(
        budget=Budget(name=name, kind=MetricKind.LOAD_TIME, threshold=2000, tags={"page": "/"}),
        current_value=1500.0,
        status=status,
        previous_status=BudgetStatus.OK,
        transitioned=transitioned,
    )


class TestReport:
    def test_transitions_and_violations(self) -> None:
        report = Report(evaluations=(
            _evaluation("a", BudgetStatus.OK),
            _evaluation("b", BudgetStatus.VIOLATED, transitioned=True),
            _evaluation("c", BudgetStatus.WARNING, transitioned=True),
        ))
        assert [e.budget.name for e in report.transitions] == ["b", "c"]
        assert [e.budget.name for e in report.violations] == ["b"]
        assert report.status_counts() == {"ok": 1, "warning": 1, "violated": 1}

    def test_to_dict_is_json_safe(self) -> None:
        report = Report(generated_at=5.0, cycle=3, evaluations=(_evaluation("a", BudgetStatus.OK),))
        data = json.loads(json.dumps(report.to_dict()))
        assert data["cycle"] == 3
        entry = data["evaluations"][0]
        assert entry["kind"] == "load_time"
        assert entry["tags"] == {"page": "/"}
        assert entry["comparison"] == "less_than"
        assert entry["aggregation"] == "p95"

    def test_immutable(self) -> None:
        report = Report()
        with pytest.raises(ValidationError):
            report.cycle = 9  # type: ignore[misc]


class TestEmitResult:
    def test_ok_when_no_failures(self) -> None:
        result = EmitResult(delivered=["a"])
        assert result.ok
        assert not result.partial
        result.raise_for_failures()

    def test_partial(self) -> None:
        result = EmitResult(delivered=["a"], failures=[SinkFailure("b", "down")])
        assert result.partial
        assert not result.ok
