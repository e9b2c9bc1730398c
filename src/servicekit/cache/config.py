# SPDX-FileCopyrightText: 2024-present Richard Dahl <richard@dahl.us>
# SPDX-License-Identifier: MIT
# SPDX-Package-Name: servicekit
"""Configuration for the cache system."""

from __future__ import annotations

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class CacheSettings(BaseSettings):
    """Settings for the cache system."""

    model_config = SettingsConfigDict(
        env_prefix="SERVICEKIT_CACHE_",
        extra="ignore",
        case_sensitive=False,
    )

    # Backend configuration
    backend: str = Field(default="memory", description="Cache backend to use (memory or redis)")
    redis_url: str = Field(
        default="redis://localhost:6379/0",
        description="Redis connection URL (used by the redis backend)",
    )

    # Common settings
    key_prefix: str = Field(default="servicekit:", description="Prefix for all cache keys")
    default_ttl: float = Field(default=300, description="Default time-to-live in seconds")
    use_memory_fallback: bool = Field(
        default=True,
        description="Serve from an in-process store while the backend is unreachable",
    )

    # In-memory backend settings
    max_size: int = Field(default=1000, description="Maximum number of items kept in memory")

    @field_validator("backend")
    @classmethod
    def validate_backend(cls, v: str) -> str:
        """Validate the cache backend."""
        if v.lower() not in ("memory", "redis"):
            raise ValueError("backend must be either 'memory' or 'redis'")
        return v.lower()

    @field_validator("max_size")
    @classmethod
    def validate_max_size(cls, v: int) -> int:
        """Validate the maximum cache size."""
        if v < 1:
            raise ValueError("max_size must be at least 1")
        return v

    @field_validator("default_ttl")
    @classmethod
    def validate_ttl(cls, v: float) -> float:
        """Validate the TTL value."""
        if v <= 0:
            raise ValueError("default_ttl must be positive")
        return v
