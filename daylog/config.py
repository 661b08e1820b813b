"""Configuration for the daylog logging engine.

Settings come from DAYLOG_* environment variables only. Explicit
arguments passed to LogSession take precedence over these values.
"""

import sys
from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _default_run_name() -> str:
    stem = Path(sys.argv[0]).stem if sys.argv and sys.argv[0] else ""
    return stem or "main"


class LogSettings(BaseSettings):
    """Logging settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_prefix="DAYLOG_", extra="ignore")

    # Parent of the per-day directories
    base_dir: Path = Path("logs")

    # Validated later by the threshold setter so a bad value is reported
    # as a WARN entry instead of failing startup
    min_level: str = "INFO"

    run_name: str = Field(default_factory=_default_run_name)

    install_exit_hooks: bool = True

    @field_validator("min_level", mode="before")
    @classmethod
    def _normalise_level(cls, value):
        if isinstance(value, str):
            return value.strip().upper()
        return value


@lru_cache
def get_settings() -> LogSettings:
    """Get cached settings instance."""
    return LogSettings()
