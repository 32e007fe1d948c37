"""
Process-level configuration.

Environment-driven settings (pydantic-settings). Domain tunables such as the
approval thresholds are frozen dataclasses next to the code that uses them.
"""

from enum import Enum
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class LogFormat(str, Enum):
    """Log output formats."""

    JSON = "json"
    CONSOLE = "console"


class LogConfig(BaseSettings):
    """Logging configuration (LEDGER_LOG_LEVEL, LEDGER_LOG_FORMAT)."""

    model_config = SettingsConfigDict(env_prefix="LEDGER_LOG_", extra="ignore")

    level: str = Field(default="INFO")
    format: LogFormat = Field(default=LogFormat.JSON)

    @field_validator("level")
    @classmethod
    def normalize_level(cls, v: str) -> str:
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level


class CoreConfig(BaseSettings):
    """Ledger core configuration."""

    model_config = SettingsConfigDict(env_prefix="LEDGER_", env_file=".env", extra="ignore")

    log: LogConfig = Field(default_factory=LogConfig)


# Global config instance
_config: Optional[CoreConfig] = None


def get_config() -> CoreConfig:
    """Get global configuration instance."""
    global _config
    if _config is None:
        _config = CoreConfig()
    return _config


def reset_config() -> None:
    """Drop the cached configuration (next get_config() re-reads the environment)."""
    global _config
    _config = None
