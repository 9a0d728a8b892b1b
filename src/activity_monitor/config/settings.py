"""Runtime settings for activity-monitor.

This module uses Pydantic Settings for values that come from the
environment rather than the preferences file:
- Type validation
- Environment variable support (ACTIVITY_MONITOR_ prefix)
- Default values
"""

from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from activity_monitor.constants import (
    DEFAULT_DATA_DIR,
    DEFAULT_LOG_LEVEL,
    DEFAULT_PROFILE_ID,
    VALID_LOG_LEVELS,
)


class RuntimeSettings(BaseSettings):
    """Process-level settings.

    Can be overridden via environment variables with ACTIVITY_MONITOR_ prefix,
    e.g. ``ACTIVITY_MONITOR_PROFILE=alt``.
    """

    model_config = SettingsConfigDict(env_prefix="ACTIVITY_MONITOR_")

    data_dir: Path = Field(
        default=Path(DEFAULT_DATA_DIR),
        description="Directory holding config.yaml, stored logs and the log file",
    )
    profile: str = Field(
        default=DEFAULT_PROFILE_ID,
        min_length=1,
        description="Active profile id; selects the local store key",
    )
    log_level: str = Field(
        default=DEFAULT_LOG_LEVEL,
        description="Log level when the preferences file does not set one",
    )
    log_file: Path | None = Field(
        default=None,
        description="Write logs to this file instead of stderr",
    )

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in VALID_LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(VALID_LOG_LEVELS)}")
        return level


def get_runtime_settings() -> RuntimeSettings:
    """Build runtime settings from the current environment."""
    return RuntimeSettings()
