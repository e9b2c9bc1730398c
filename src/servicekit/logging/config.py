# SPDX-FileCopyrightText: 2024-present Richard Dahl <richard@dahl.us>
# SPDX-License-Identifier: MIT
# SPDX-Package-Name: servicekit
"""
Configuration for the servicekit logging system.

Loads from environment variables prefixed with ``SERVICEKIT_LOGGING_``.
"""

from __future__ import annotations

from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from servicekit.logging.level import LogLevel


class LoggingSettings(BaseSettings):
    """Configuration settings for the servicekit logging system."""

    model_config = SettingsConfigDict(
        env_prefix="SERVICEKIT_LOGGING_",
        extra="ignore",
        case_sensitive=False,
    )

    level: str = Field(default=LogLevel.INFO.value, description="Log level")
    json_format: bool = Field(default=False, description="Render records as JSON")
    include_timestamp: bool = Field(
        default=True, description="Include an ISO timestamp in each record"
    )

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: Any) -> str:
        """Validate that the level is a valid log level."""
        if not isinstance(v, str):
            raise ValueError(f"Log level must be a string, got {type(v).__name__}")
        return LogLevel.from_string(v).value

    @classmethod
    def load(cls) -> LoggingSettings:
        """Load logging settings from environment variables or defaults."""
        return cls()
