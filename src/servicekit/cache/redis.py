# SPDX-FileCopyrightText: 2024-present Richard Dahl <richard@dahl.us>
# SPDX-License-Identifier: MIT
# SPDX-Package-Name: servicekit
"""Redis backend for the cache system."""

from __future__ import annotations

import json
import math
from typing import Any

from redis.asyncio import Redis
from redis.exceptions import RedisError

from servicekit.cache.errors import CacheSerializationError, CacheUnavailableError
from servicekit.cache.protocols import MISS, CacheKey

# Connection failures surface as either family depending on where they happen.
_BACKEND_ERRORS = (RedisError, OSError)


class RedisCacheBackend:
    """Redis backend for the cache system.

    Values are stored as JSON and must read back equal to what was written:
    a value JSON cannot reproduce exactly (datetimes, decimals, tuples,
    models, non-string dict keys) raises :class:`CacheSerializationError`
    instead of being stored in a lossy form.
    """

    name = "redis"

    def __init__(
        self,
        redis: Redis | None = None,
        url: str = "redis://localhost:6379/0",
        **kwargs: Any,
    ) -> None:
        """Initialize the Redis backend.

        Args:
            redis: Redis client instance. If not provided, one is created from ``url``.
            url: Redis connection URL
            **kwargs: Additional arguments for ``Redis.from_url``
        """
        kwargs.setdefault("socket_connect_timeout", 2)
        kwargs.setdefault("socket_timeout", 2)
        self._redis = redis or Redis.from_url(url, **kwargs)

    async def get(self, key: CacheKey) -> Any:
        try:
            data = await self._redis.get(key)
        except _BACKEND_ERRORS as e:
            raise CacheUnavailableError(f"Redis error getting key {key}: {e}", backend=self.name) from e
        if data is None:
            return MISS
        try:
            return json.loads(data)
        except ValueError as e:
            raise CacheSerializationError(f"Failed to decode cached value: {e}", key=key) from e

    async def set(self, key: CacheKey, value: Any, ttl: float | None = None) -> None:
        try:
            payload = json.dumps(value, allow_nan=False)
        except (TypeError, ValueError) as e:
            raise CacheSerializationError(f"Failed to encode value: {e}", key=key) from e
        if json.loads(payload) != value:
            raise CacheSerializationError(
                f"Value of type {type(value).__name__} does not survive a JSON round trip", key=key
            )

        ttl_seconds = max(1, math.ceil(ttl)) if ttl else None
        try:
            await self._redis.set(key, payload, ex=ttl_seconds)
        except _BACKEND_ERRORS as e:
            raise CacheUnavailableError(f"Redis error setting key {key}: {e}", backend=self.name) from e

    async def delete(self, key: CacheKey) -> bool:
        try:
            return bool(await self._redis.delete(key))
        except _BACKEND_ERRORS as e:
            raise CacheUnavailableError(f"Redis error deleting key {key}: {e}", backend=self.name) from e

    async def delete_pattern(self, pattern: str) -> int:
        """Delete every key matching ``pattern``.

        Keys are collected with ``SCAN MATCH`` and removed with a single
        ``DEL``, which Redis applies atomically.
        """
        try:
            keys = [key async for key in self._redis.scan_iter(match=pattern, count=500)]
            if not keys:
                return 0
            return int(await self._redis.delete(*keys))
        except _BACKEND_ERRORS as e:
            raise CacheUnavailableError(f"Redis error deleting pattern {pattern}: {e}", backend=self.name) from e

    async def ping(self) -> bool:
        """Return True when the server answers."""
        try:
            return bool(await self._redis.ping())
        except _BACKEND_ERRORS:
            return False

    async def close(self) -> None:
        await self._redis.aclose()
