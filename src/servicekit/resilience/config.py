# SPDX-FileCopyrightText: 2024-present Richard Dahl <richard@dahl.us>
# SPDX-License-Identifier: MIT
# SPDX-Package-Name: servicekit
"""Configuration for retry defaults."""

from __future__ import annotations

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class RetrySettings(BaseSettings):
    """Default values for retry policies built without explicit options."""

    model_config = SettingsConfigDict(
        env_prefix="SERVICEKIT_RETRY_",
        extra="ignore",
        case_sensitive=False,
    )

    max_attempts: int = Field(default=3, ge=1, description="Attempts including the first call")
    initial_delay: float = Field(default=1.0, ge=0.0, description="First backoff delay in seconds")
    backoff: str = Field(default="exponential", description="fixed, linear or exponential")
    backoff_multiplier: float = Field(default=2.0, ge=1.0)
    max_delay: float = Field(default=30.0, ge=0.0, description="Upper bound for a single delay")

    @field_validator("backoff")
    @classmethod
    def validate_backoff(cls, v: str) -> str:
        """Validate the backoff strategy name."""
        if v.lower() not in ("fixed", "linear", "exponential"):
            raise ValueError("backoff must be one of 'fixed', 'linear' or 'exponential'")
        return v.lower()
