from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Mapping

from dotenv import dotenv_values

_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


def _as_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _as_float(value: str | None, default: float) -> float:
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        return default


def _as_log_level(value: str | None, default: str) -> str:
    level = (value or default).strip().upper()
    # Unknown names fall back instead of failing the host application.
    return level if level in _LOG_LEVELS else default


@dataclass(frozen=True)
class Settings:
    env: str
    log_level: str
    enable_prometheus_metrics: bool
    timer_join_timeout_seconds: float

    @property
    def is_production(self) -> bool:
        return self.env.lower() not in {"development", "dev", "test", "testing"}

    @property
    def log_level_value(self) -> int:
        return getattr(logging, self.log_level, logging.INFO)


def load_settings(env_file: str | os.PathLike[str] | None = None) -> Settings:
    """Build settings from the process environment.

    Values from ``env_file`` (a dotenv file) only fill variables the
    environment does not already define; ``os.environ`` is never modified.
    """
    env: Mapping[str, str | None] = os.environ
    if env_file is not None:
        env = {**dotenv_values(env_file), **os.environ}

    return Settings(
        env=env.get("ENV") or "development",
        log_level=_as_log_level(env.get("LOG_LEVEL"), "INFO"),
        enable_prometheus_metrics=_as_bool(env.get("ENABLE_PROMETHEUS_METRICS"), True),
        timer_join_timeout_seconds=max(0.1, _as_float(env.get("TIMER_JOIN_TIMEOUT_SECONDS"), 1.0)),
    )


settings = load_settings()
