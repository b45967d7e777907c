"""Configuration models and YAML loader."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import BaseModel, Field, field_validator

from schedule_tool.engine.proration import ProrationPolicy

CONFIG_ENV_VAR = "SCHEDULE_TOOL_CONFIG"
ORIGINS_ENV_VAR = "ALLOWED_ORIGINS"

DEFAULT_ALLOWED_ORIGINS = [
    "http://localhost:8080",
    "http://localhost:3000",
    "http://127.0.0.1:8080",
]


class SchedulingConfig(BaseModel):
    """Defaults applied when a request does not say otherwise."""

    hours_per_day: float = Field(default=10, gt=0, le=24)
    include_weekends: bool = False
    default_duration_days: int = Field(default=1, ge=1)


class ProrationConfig(BaseModel):
    policy: ProrationPolicy = ProrationPolicy.LINEAR


class ApiConfig(BaseModel):
    allowed_origins: list[str] = Field(default_factory=lambda: list(DEFAULT_ALLOWED_ORIGINS))

    @property
    def allow_all_origins(self) -> bool:
        return "*" in self.allowed_origins


class Settings(BaseModel):
    """Top-level settings loaded from YAML."""

    scheduling: SchedulingConfig = Field(default_factory=SchedulingConfig)
    proration: ProrationConfig = Field(default_factory=ProrationConfig)
    api: ApiConfig = Field(default_factory=ApiConfig)
    log_level: str = "INFO"

    @field_validator("log_level")
    @classmethod
    def known_log_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in logging.getLevelNamesMapping():
            msg = f"unknown log level: {v}"
            raise ValueError(msg)
        return level

    @classmethod
    def from_yaml(cls, path: str | Path) -> "Settings":
        """Load settings from a YAML file."""
        path = Path(path)
        if not path.exists():
            msg = f"Config file not found: {path}"
            raise FileNotFoundError(msg)
        raw: dict[str, Any] = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        return cls.model_validate(raw)


def load_settings(path: Optional[str | Path] = None) -> Settings:
    """Resolve settings from an explicit path, $SCHEDULE_TOOL_CONFIG, or defaults.

    $ALLOWED_ORIGINS (comma separated, "*" for any) overrides the API origins.
    """
    path = path or os.environ.get(CONFIG_ENV_VAR)
    settings = Settings.from_yaml(path) if path else Settings()

    origins_env = os.environ.get(ORIGINS_ENV_VAR, "")
    origins = [o.strip() for o in origins_env.split(",") if o.strip()]
    if origins:
        settings.api.allowed_origins = ["*"] if "*" in origins else origins
    return settings
