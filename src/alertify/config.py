"""Runtime settings via pydantic-settings — 12-factor app style.

Rules themselves live in a TOML file (see :mod:`alertify.loader`); this module
only covers how the daemon runs.
"""
from __future__ import annotations

import os
from pathlib import Path
from typing import Literal, get_args

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .alerts.dispatch import DispatchFailurePolicy

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
LOG_LEVELS: tuple[str, ...] = get_args(LogLevel)


def default_config_path() -> Path:
    """``$XDG_CONFIG_HOME/alertify/config.toml``, falling back to ``~/.config``."""
    base = os.environ.get("XDG_CONFIG_HOME")
    root = Path(base) if base else Path.home() / ".config"
    return root / "alertify" / "config.toml"


class Settings(BaseSettings):
    """Alertify configuration — loaded from env vars / .env file."""

    model_config = SettingsConfigDict(env_prefix="ALERTIFY_", env_file=".env", extra="ignore")

    config_path: Path = Field(default_factory=default_config_path, description="Rule file location")
    battery_interval: float = Field(default=10.0, gt=0, description="Battery poll interval (s)")
    cpu_interval: float = Field(default=10.0, gt=0, description="CPU poll interval (s)")
    memory_interval: float = Field(default=10.0, gt=0, description="Memory poll interval (s)")
    storage_interval: float = Field(default=60.0, gt=0, description="Storage poll interval (s)")
    dispatch_workers: int = Field(default=4, ge=1, description="Threads used to deliver notifications")
    dispatch_failure_policy: DispatchFailurePolicy = Field(
        default=DispatchFailurePolicy.KEEP,
        description="keep: stay latched after a failed notification; release: allow re-firing",
    )
    quote_command_fields: bool = Field(default=True, description="Shell-quote values substituted into exec commands")
    notify_command: str = Field(default="notify-send", description="Notification command")
    log_level: LogLevel = Field(default="INFO", description="Logging level")

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_log_level(cls, value: object) -> object:
        return value.upper() if isinstance(value, str) else value


settings = Settings()
