"""Pydantic settings loaded from YAML configuration."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, SecretStr, ValidationError, model_validator

from perfbudget.core.types import Budget

_settings: Settings | None = None

_DEFAULT_CONFIG_PATH = Path("config/settings.yaml")


class ConfigError(Exception):
    """Configuration could not be loaded or is invalid (fatal at startup)."""


class IngestConfig(BaseModel):
    """Inbound event queue configuration."""

    queue_size: int = Field(default=10_000, ge=1)


class AggregationConfig(BaseModel):
    """Rolling window configuration."""

    window_size: int = Field(default=100, ge=1)
    window_max_age_secs: float | None = Field(default=None, gt=0)


class SchedulerConfig(BaseModel):
    """Evaluation cycle configuration."""

    interval_secs: float = Field(default=10.0, gt=0)
    flush_on_stop: bool = True
    hot_reload: bool = False


class ConsoleSinkConfig(BaseModel):
    """Structured log output of each report."""

    enabled: bool = True
    only_transitions: bool = False


class FileSinkConfig(BaseModel):
    """JSON-lines report persistence."""

    enabled: bool = False
    path: str = "reports/reports.jsonl"


class HttpSinkConfig(BaseModel):
    """HTTP POST of each report to a dashboard endpoint."""

    enabled: bool = False
    url: SecretStr = SecretStr("")
    headers: dict[str, str] = Field(default_factory=dict)


class SinksConfig(BaseModel):
    """Container for all report sink configurations."""

    timeout_secs: float = Field(default=5.0, gt=0)
    console: ConsoleSinkConfig = ConsoleSinkConfig()
    file: FileSinkConfig = FileSinkConfig()
    http: HttpSinkConfig = HttpSinkConfig()


class ServerConfig(BaseModel):
    """Health-check and ingestion HTTP server."""

    enabled: bool = False
    host: str = "127.0.0.1"
    port: int = 8089


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = "INFO"
    format: str = "json"


class BudgetDefaults(BaseModel):
    """Hysteresis counts applied to budgets that omit them."""

    consecutive_violations_to_trigger: int = Field(default=3, ge=1)
    consecutive_recoveries_to_clear: int = Field(default=3, ge=1)


class Settings(BaseModel):
    """Root settings container."""

    ingest: IngestConfig = IngestConfig()
    aggregation: AggregationConfig = AggregationConfig()
    scheduler: SchedulerConfig = SchedulerConfig()
    sinks: SinksConfig = SinksConfig()
    server: ServerConfig = ServerConfig()
    logging: LoggingConfig = LoggingConfig()
    budget_defaults: BudgetDefaults = BudgetDefaults()
    budgets: list[Budget] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _apply_budget_defaults(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        raw_budgets = data.get("budgets")
        if not isinstance(raw_budgets, list):
            return data
        defaults = data.get("budget_defaults") or BudgetDefaults()
        if not isinstance(defaults, BudgetDefaults):
            try:
                defaults = BudgetDefaults.model_validate(defaults)
            except ValidationError:
                # Field validation reports the bad section
                return data
        filled = []
        for entry in raw_budgets:
            if isinstance(entry, dict):
                entry = {**defaults.model_dump(), **entry}
            filled.append(entry)
        return {**data, "budgets": filled}

    @model_validator(mode="after")
    def _unique_budget_names(self) -> Settings:
        seen: set[str] = set()
        for budget in self.budgets:
            if budget.name in seen:
                raise ValueError(f"duplicate budget name: {budget.name!r}")
            seen.add(budget.name)
        return self


def parse_settings(data: dict[str, Any]) -> Settings:
    """Validate a raw settings mapping.

    Raises:
        ConfigError: If the mapping does not describe valid settings.
    """
    try:
        return Settings.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"invalid configuration: {exc}") from exc


def read_settings(path: str | Path) -> Settings:
    """Parse a YAML settings file without touching the global cache.

    A missing file yields default settings.

    Raises:
        ConfigError: If the file cannot be parsed or fails validation.
    """
    config_path = Path(path)

    data: dict[str, Any] = {}
    if config_path.exists():
        try:
            with open(config_path) as f:
                raw = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as exc:
            raise ConfigError(f"cannot read {config_path}: {exc}") from exc
        if isinstance(raw, dict):
            data = raw
        elif raw is not None:
            raise ConfigError(f"{config_path}: top level must be a mapping")

    return parse_settings(data)


def load_settings(path: str | Path | None = None) -> Settings:
    """Load settings from a YAML file and cache globally.

    Args:
        path: Path to YAML config. Defaults to config/settings.yaml.

    Returns:
        Parsed Settings instance.

    Raises:
        ConfigError: If the file cannot be parsed or fails validation.
    """
    global _settings  # noqa: PLW0603

    _settings = read_settings(path or _DEFAULT_CONFIG_PATH)
    return _settings


def get_settings() -> Settings:
    """Return the cached settings, loading defaults if not yet loaded."""
    global _settings  # noqa: PLW0603
    if _settings is None:
        _settings = load_settings()
    return _settings


def reset_settings() -> None:
    """Reset the cached settings (useful for testing)."""
    global _settings  # noqa: PLW0603
    _settings = None
