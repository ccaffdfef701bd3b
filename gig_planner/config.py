"""
Application configuration management.

Load order (each layer overrides the previous):
  1. ``config/default.toml``      — committed static defaults
  2. ``config/local.toml``        — optional local overrides (gitignored)
  3. ``.env``                     — local secrets and env overrides (gitignored)
  4. Environment variables        — ``GIG_PLANNER_*`` prefix

Entry point: ``load_config(config_path=None) -> AppConfig``

The decision engine never reads configuration itself: callers pass the
relevant sub-config (``ScoringConfig``, ``AnalyticsConfig``) explicitly.
"""

from __future__ import annotations

import math
import os
import tomllib
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, field_validator, model_validator

# ── Sub-config models ─────────────────────────────────────────────────────────


class DatabaseConfig(BaseModel):
    """SQLite database connection settings."""

    model_config = ConfigDict(frozen=True)

    db_path: str = "data/db/gig_planner.db"
    wal_mode: bool = True
    busy_timeout_ms: int = 5000


class ScoringConfig(BaseModel):
    """Weights and thresholds for the gig scorer.

    The four weights combine the hourly, travel, urgency and quick-turnaround
    sub-scores (each 0–100) into the final 0–100 score, so they must sum to 1.
    """

    model_config = ConfigDict(frozen=True)

    mileage_rate: float = 0.67
    hourly_rate_ceiling: float = 50.0
    weight_hourly: float = 0.4
    weight_travel: float = 0.3
    weight_urgency: float = 0.2
    weight_quick: float = 0.1
    high_threshold: int = 80
    medium_threshold: int = 50

    @field_validator("mileage_rate")
    @classmethod
    def validate_mileage_rate(cls, v: float) -> float:
        if v < 0:
            raise ValueError(f"mileage_rate must be >= 0, got {v}.")
        return v

    @field_validator("hourly_rate_ceiling")
    @classmethod
    def validate_ceiling(cls, v: float) -> float:
        if v <= 0:
            raise ValueError(f"hourly_rate_ceiling must be > 0, got {v}.")
        return v

    @model_validator(mode="after")
    def validate_weights_and_thresholds(self) -> "ScoringConfig":
        weights = (
            self.weight_hourly, self.weight_travel,
            self.weight_urgency, self.weight_quick,
        )
        if any(w < 0 for w in weights):
            raise ValueError("Scoring weights must be non-negative.")
        if not math.isclose(sum(weights), 1.0, abs_tol=1e-6):
            raise ValueError(f"Scoring weights must sum to 1.0, got {sum(weights):.4f}.")
        if not 0 <= self.medium_threshold <= self.high_threshold <= 100:
            raise ValueError(
                "Thresholds must satisfy 0 <= medium_threshold <= high_threshold <= 100, "
                f"got medium={self.medium_threshold}, high={self.high_threshold}."
            )
        return self


class ScheduleConfig(BaseModel):
    """Schedule selector defaults."""

    model_config = ConfigDict(frozen=True)

    default_hours: float = 8.0

    @field_validator("default_hours")
    @classmethod
    def validate_default_hours(cls, v: float) -> float:
        if v <= 0:
            raise ValueError(f"default_hours must be > 0, got {v}.")
        return v


class AnalyticsConfig(BaseModel):
    """Earnings aggregation and projection parameters."""

    model_config = ConfigDict(frozen=True)

    weekly_window_days: int = 7
    monthly_window_days: int = 30
    top_platforms: int = 5
    high_confidence_above: int = 50     # lifetime completed gigs above this → high
    medium_confidence_above: int = 20   # above this → medium, else low

    @model_validator(mode="after")
    def validate_windows(self) -> "AnalyticsConfig":
        if self.weekly_window_days < 1 or self.monthly_window_days < 1:
            raise ValueError("Projection windows must be at least 1 day.")
        if self.top_platforms < 1:
            raise ValueError(f"top_platforms must be >= 1, got {self.top_platforms}.")
        if self.medium_confidence_above > self.high_confidence_above:
            raise ValueError("medium_confidence_above must be <= high_confidence_above.")
        return self


class IngestionConfig(BaseModel):
    """Defaults applied to imported gig records."""

    model_config = ConfigDict(frozen=True)

    default_source_id: str = "csv-import"
    default_duration_minutes: int = 60
    default_user_id: str = "local-user"

    @field_validator("default_duration_minutes")
    @classmethod
    def validate_default_duration(cls, v: int) -> int:
        if v <= 0:
            raise ValueError(f"default_duration_minutes must be > 0, got {v}.")
        return v


class LoggingConfig(BaseModel):
    """Logging output settings."""

    model_config = ConfigDict(frozen=True)

    level: str = "INFO"
    log_file: str = "data/logs/gig_planner.log"
    json_format: bool = False

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        valid = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid:
            raise ValueError(f"Log level must be one of {sorted(valid)}, got '{v}'.")
        return v.upper()


class AppConfig(BaseModel):
    """Complete application configuration — the single source of truth.

    Constructed by ``load_config()`` which merges TOML + .env.
    """

    model_config = ConfigDict(frozen=True)

    database: DatabaseConfig = DatabaseConfig()
    scoring: ScoringConfig = ScoringConfig()
    schedule: ScheduleConfig = ScheduleConfig()
    analytics: AnalyticsConfig = AnalyticsConfig()
    ingestion: IngestionConfig = IngestionConfig()
    logging: LoggingConfig = LoggingConfig()
    debug: bool = False


# ── Loader ────────────────────────────────────────────────────────────────────

_PROJECT_ROOT = Path(__file__).parent.parent


def _find_project_root() -> Path:
    """Walk up from this file to find the project root (contains pyproject.toml)."""
    candidate = Path(__file__).parent
    for _ in range(5):
        if (candidate / "pyproject.toml").exists():
            return candidate
        candidate = candidate.parent
    return _PROJECT_ROOT


def load_config(config_path: Optional[Path] = None) -> AppConfig:
    """Load and merge application configuration.

    Args:
        config_path: Explicit path to a TOML config file. Defaults to
            ``<project_root>/config/default.toml``.

    Returns:
        Fully validated ``AppConfig`` instance.

    Raises:
        FileNotFoundError: If the specified ``config_path`` does not exist.
        pydantic.ValidationError: If merged config values fail validation.
    """
    root = _find_project_root()

    load_dotenv(dotenv_path=root / ".env", override=False)

    if config_path is None:
        config_path = root / "config" / "default.toml"

    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(
            f"Config file not found: {config_path}\n"
            "Create config/default.toml or pass --config."
        )

    with open(config_path, "rb") as f:
        raw: dict[str, Any] = tomllib.load(f)

    local_config_path = config_path.parent / "local.toml"
    if local_config_path.exists():
        with open(local_config_path, "rb") as f:
            local_raw: dict[str, Any] = tomllib.load(f)
        raw = _deep_merge(raw, local_raw)

    raw = _apply_env_overrides(raw)

    return _build_app_config(raw)


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge ``override`` into ``base``."""
    result = dict(base)
    for key, val in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(val, dict):
            result[key] = _deep_merge(result[key], val)
        else:
            result[key] = val
    return result


def _apply_env_overrides(raw: dict[str, Any]) -> dict[str, Any]:
    """Apply GIG_PLANNER_* env vars to the raw config dict.

    Supported overrides:
      GIG_PLANNER_DB_PATH       → raw["database"]["db_path"]
      GIG_PLANNER_LOG_LEVEL     → raw["logging"]["level"]
      GIG_PLANNER_MILEAGE_RATE  → raw["scoring"]["mileage_rate"]
      GIG_PLANNER_DEBUG         → raw["debug"]
    """
    if db_path := os.environ.get("GIG_PLANNER_DB_PATH"):
        raw.setdefault("database", {})["db_path"] = db_path

    if log_level := os.environ.get("GIG_PLANNER_LOG_LEVEL"):
        raw.setdefault("logging", {})["level"] = log_level

    if mileage_rate := os.environ.get("GIG_PLANNER_MILEAGE_RATE"):
        raw.setdefault("scoring", {})["mileage_rate"] = float(mileage_rate)

    if debug := os.environ.get("GIG_PLANNER_DEBUG"):
        raw["debug"] = debug.lower() in ("1", "true", "yes")

    return raw


def _build_app_config(raw: dict[str, Any]) -> AppConfig:
    """Map raw TOML dict to ``AppConfig`` model structure."""
    project = raw.pop("project", {})

    return AppConfig(
        database=DatabaseConfig(**raw.get("database", {})),
        scoring=ScoringConfig(**raw.get("scoring", {})),
        schedule=ScheduleConfig(**raw.get("schedule", {})),
        analytics=AnalyticsConfig(**raw.get("analytics", {})),
        ingestion=IngestionConfig(**raw.get("ingestion", {})),
        logging=LoggingConfig(**raw.get("logging", {})),
        debug=raw.get("debug", project.get("debug", False)),
    )
