"""
Taskflow Configuration — Load and validate taskflow.yaml.

Usage:
    from taskflow.engine.config import load_config, get_config
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from taskflow.engine.errors import TaskflowConfigError

CONFIG_FILENAME = "taskflow.yaml"

# Tolerance for weights that should add up to 1.0
WEIGHT_SUM_TOLERANCE = 0.01


# ---------------------------------------------------------------------------
# Pydantic models for taskflow.yaml
# ---------------------------------------------------------------------------

class ScoringWeights(BaseModel):
    """Composite weights. Each in [0, 1]; together they sum to 1.0 ± 0.01."""
    output: float = Field(default=0.35, ge=0.0, le=1.0)
    quality: float = Field(default=0.25, ge=0.0, le=1.0)
    reliability: float = Field(default=0.25, ge=0.0, le=1.0)
    consistency: float = Field(default=0.15, ge=0.0, le=1.0)

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def validate_sum(self) -> "ScoringWeights":
        total = self.output + self.quality + self.reliability + self.consistency
        if abs(total - 1.0) >= WEIGHT_SUM_TOLERANCE:
            raise ValueError(f"weights must sum to 1.0, got {total:.3f}")
        return self


class ScoringConfig(BaseModel):
    weekly_output_target: int = Field(default=15, ge=1, le=100)
    window_days: int = Field(default=28, ge=1, le=366)
    weights: ScoringWeights = ScoringWeights()


class LoggingConfig(BaseModel):
    level: str = "INFO"
    directory: str = ".taskflow/logs"

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        v = v.upper()
        if v not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"unknown log level '{v}'")
        return v


class TaskflowConfig(BaseModel):
    """Root model for taskflow.yaml."""
    environment: str = "dev"
    scoring: ScoringConfig = ScoringConfig()
    logging: LoggingConfig = LoggingConfig()

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        if v not in ("dev", "staging", "prod"):
            raise ValueError(f"environment must be dev/staging/prod, got '{v}'")
        return v


# ---------------------------------------------------------------------------
# Config Loading Functions
# ---------------------------------------------------------------------------

_config: Optional[TaskflowConfig] = None


def _find_config_file() -> Optional[Path]:
    """Walk up from CWD looking for taskflow.yaml."""
    current = Path.cwd()
    for parent in [current, *current.parents]:
        candidate = parent / CONFIG_FILENAME
        if candidate.exists():
            return candidate
    return None


def load_config(config_path: Optional[str] = None) -> TaskflowConfig:
    """
    Load and validate taskflow.yaml.

    Args:
        config_path: Explicit path. If None, auto-discovers from CWD upwards.

    Returns:
        Validated TaskflowConfig. Defaults when no file exists.
    """
    global _config

    path = Path(config_path) if config_path else _find_config_file()
    if path is None or not path.exists():
        _config = TaskflowConfig()
        return _config

    try:
        with open(path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise TaskflowConfigError(f"Could not parse {path}: {e}", config_path=str(path)) from e

    if not isinstance(raw, dict):
        raise TaskflowConfigError(
            f"{path} must contain a mapping at the top level",
            config_path=str(path),
        )

    # Allow everything to be nested under a top-level "taskflow:" key
    data = raw.get("taskflow", raw)

    try:
        _config = TaskflowConfig(**data)
    except ValidationError as e:
        raise TaskflowConfigError(
            f"Invalid configuration in {path}",
            config_path=str(path),
            validation_errors=[err["msg"] for err in e.errors()],
        ) from e
    return _config


def get_config() -> TaskflowConfig:
    """Get the currently loaded config, loading if necessary."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def reset_config() -> None:
    """Drop the cached config (used by tests and reload hooks)."""
    global _config
    _config = None
