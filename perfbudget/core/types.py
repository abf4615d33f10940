"""Domain types shared across the engine — metric kinds, events, budgets."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class ScoreCategory(StrEnum):
    """Audit score category for composite scores."""

    PERFORMANCE = "performance"
    ACCESSIBILITY = "accessibility"
    BEST_PRACTICES = "best_practices"
    SEO = "seo"


class MetricKind(StrEnum):
    """Kind of performance signal.

    Timing kinds are measured in milliseconds; composite scores are 0-100
    and carry their audit category in the value (``composite_score.<cat>``).
    """

    LOAD_TIME = "load_time"
    RENDER_DURATION = "render_duration"
    API_LATENCY = "api_latency"
    SCORE_PERFORMANCE = "composite_score.performance"
    SCORE_ACCESSIBILITY = "composite_score.accessibility"
    SCORE_BEST_PRACTICES = "composite_score.best_practices"
    SCORE_SEO = "composite_score.seo"

    @property
    def is_score(self) -> bool:
        return self.value.startswith(_SCORE_PREFIX)

    @property
    def category(self) -> ScoreCategory | None:
        if not self.is_score:
            return None
        return ScoreCategory(self.value[len(_SCORE_PREFIX):])

    @classmethod
    def composite(cls, category: ScoreCategory | str) -> MetricKind:
        """Return the composite-score kind for *category*."""
        cat = _lookup(ScoreCategory, str(category))
        if cat is None:
            raise ValueError(f"unknown score category: {category!r}")
        return cls(f"{_SCORE_PREFIX}{cat.value}")

    @classmethod
    def parse(cls, raw: str, category: str | None = None) -> MetricKind:
        """Parse a kind name in any of the accepted spellings.

        Accepts ``load_time``, ``LoadTime``, ``loadTime``,
        ``composite_score.seo``, ``CompositeScore(seo)`` or a bare
        ``composite_score`` together with *category*.

        Raises:
            ValueError: If the name (or category) is not recognized.
        """
        text = raw.strip()
        match = _COMPOSITE_CALL_RE.fullmatch(text)
        if match is not None:
            return cls.composite(match.group(1))

        kind = _lookup(cls, text)
        if kind is not None:
            return kind

        if _normalize(text) == _normalize(_SCORE_PREFIX.rstrip(".")):
            if category is None:
                raise ValueError("composite_score requires a category")
            return cls.composite(category)

        raise ValueError(f"unknown metric kind: {raw!r}")


_SCORE_PREFIX = "composite_score."
_COMPOSITE_CALL_RE = re.compile(r"composite_?score\s*\(\s*([A-Za-z_ ]+?)\s*\)", re.IGNORECASE)


def _normalize(text: str) -> str:
    return re.sub(r"[^a-z0-9]", "", text.lower())


def _lookup(enum_cls: Any, text: str) -> Any:
    wanted = _normalize(text)
    for member in enum_cls:
        if _normalize(member.value) == wanted or _normalize(member.name) == wanted:
            return member
    return None


class Comparison(StrEnum):
    """Direction a metric must stay on relative to its threshold."""

    LESS_THAN = "less_than"
    GREATER_THAN = "greater_than"


class Aggregation(StrEnum):
    """Statistic computed over a window before comparing to a threshold."""

    P50 = "p50"
    P75 = "p75"
    P90 = "p90"
    P95 = "p95"
    P99 = "p99"
    MEAN = "mean"
    MIN = "min"
    MAX = "max"

    @property
    def percentile(self) -> float | None:
        """Percentile as a fraction in [0, 1], or None for non-percentiles."""
        if self.value.startswith("p"):
            return int(self.value[1:]) / 100.0
        return None


class BudgetStatus(StrEnum):
    """Health of a single budget."""

    OK = "ok"
    WARNING = "warning"
    VIOLATED = "violated"


TagItems = tuple[tuple[str, str], ...]


def freeze_tags(tags: dict[str, str] | None) -> TagItems:
    """Canonical, order-independent form of a tag mapping."""
    if not tags:
        return ()
    return tuple(sorted((str(k), str(v)) for k, v in tags.items()))


@dataclass(frozen=True)
class WindowKey:
    """Identifies one aggregation window: metric kind plus exact tag set."""

    kind: MetricKind
    tags: TagItems = ()

    @classmethod
    def of(cls, kind: MetricKind, tags: dict[str, str] | None = None) -> WindowKey:
        return cls(kind=kind, tags=freeze_tags(tags))

    def __str__(self) -> str:
        if not self.tags:
            return self.kind.value
        rendered = ",".join(f"{k}={v}" for k, v in self.tags)
        return f"{self.kind.value}{{{rendered}}}"


class TimingEvent(BaseModel):
    """Canonical, immutable timing record produced by the ingestor.

    ``timestamp`` is in the monotonic clock domain (seconds).
    """

    model_config = ConfigDict(frozen=True)

    kind: MetricKind
    value: float
    timestamp: float
    source: str = ""
    tags: dict[str, str] = Field(default_factory=dict)

    @property
    def key(self) -> WindowKey:
        return WindowKey.of(self.kind, self.tags)


def _snake(name: str) -> str:
    return re.sub(r"(?<!^)(?=[A-Z])", "_", name).lower()


class Budget(BaseModel):
    """A named threshold and comparison rule for one metric window.

    Field names also accept their camelCase spelling
    (``consecutiveViolationsToTrigger``) and enum values accept
    ``lessThan`` / ``greaterThan``.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str = ""
    kind: MetricKind
    threshold: float
    comparison: Comparison = Comparison.LESS_THAN
    aggregation: Aggregation = Aggregation.P95
    tags: dict[str, str] = Field(default_factory=dict)
    consecutive_violations_to_trigger: int = Field(default=3, ge=1)
    consecutive_recoveries_to_clear: int = Field(default=3, ge=1)

    @model_validator(mode="before")
    @classmethod
    def _accept_camel_case(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        out = {_snake(k) if isinstance(k, str) else k: v for k, v in data.items()}
        if isinstance(out.get("kind"), str):
            out["kind"] = MetricKind.parse(out["kind"], out.pop("category", None))
        for field, enum_cls in (("comparison", Comparison), ("aggregation", Aggregation)):
            value = out.get(field)
            if isinstance(value, str):
                member = _lookup(enum_cls, value)
                if member is not None:
                    out[field] = member
        kind = out.get("kind")
        agg = out.get("aggregation", Aggregation.P95)
        if not out.get("name") and isinstance(kind, MetricKind) and isinstance(agg, Aggregation):
            tags = out.get("tags")
            key = WindowKey.of(kind, tags if isinstance(tags, dict) else None)
            out["name"] = f"{key}.{agg.value}"
        return out

    @field_validator("tags", mode="before")
    @classmethod
    def _stringify_tags(cls, v: Any) -> Any:
        if isinstance(v, dict):
            return {str(k): str(val) for k, val in v.items()}
        return v

    @property
    def key(self) -> WindowKey:
        return WindowKey.of(self.kind, self.tags)

    def is_compliant(self, value: float) -> bool:
        """Whether *value* satisfies this budget (strict comparison)."""
        if self.comparison == Comparison.LESS_THAN:
            return value < self.threshold
        return value > self.threshold
