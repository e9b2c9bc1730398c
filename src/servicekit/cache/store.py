# SPDX-FileCopyrightText: 2024-present Richard Dahl <richard@dahl.us>
# SPDX-License-Identifier: MIT
# SPDX-Package-Name: servicekit
"""Cache store adapter with soft-fail semantics.

:class:`CacheStore` is what interceptors talk to. It namespaces keys, applies
default TTLs and turns every backend failure into a miss (reads) or a
best-effort no-op (writes), optionally serving from an in-process fallback
while the backend is down. Availability is preferred over consistency: a
cache outage never fails a business call.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from servicekit.cache.config import CacheSettings
from servicekit.cache.errors import CacheSerializationError
from servicekit.cache.memory import MemoryCacheBackend
from servicekit.cache.protocols import MISS, CacheBackendProtocol, CacheKey
from servicekit.logging import ServiceLogger, get_logger

# Backend error logs are throttled: after this many errors, stay quiet until
# the window below has elapsed since the last one.
MAX_ERRORS_BEFORE_SILENCE = 5
ERROR_LOG_WINDOW = 60.0


@dataclass
class CacheStats:
    """Counters for one cache store."""

    hits: int = 0
    misses: int = 0
    sets: int = 0
    invalidated: int = 0
    errors: int = 0

    def hit_ratio(self) -> float:
        """Calculate the cache hit ratio."""
        total = self.hits + self.misses
        return self.hits / total if total > 0 else 0.0

    def __str__(self) -> str:
        return (
            f"CacheStats(hits={self.hits}, misses={self.misses}, "
            f"hit_ratio={self.hit_ratio():.2f}, sets={self.sets}, "
            f"invalidated={self.invalidated}, errors={self.errors})"
        )


class CacheStore:
    """Namespaced, soft-failing cache in front of a pluggable backend."""

    def __init__(
        self,
        backend: CacheBackendProtocol,
        *,
        key_prefix: str = "",
        default_ttl: float = 300,
        use_memory_fallback: bool = True,
        fallback: MemoryCacheBackend | None = None,
        logger: ServiceLogger | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the cache store.

        Args:
            backend: The primary cache backend
            key_prefix: Prepended to every key and pattern
            default_ttl: TTL in seconds used when ``set`` gets none
            use_memory_fallback: Serve from an in-process store while the
                backend is unreachable
            fallback: Fallback store to use; created when omitted. Ignored
                when the backend already is in-process.
            logger: Logger instance (optional)
            clock: Time source used to throttle error logs
        """
        self._backend = backend
        self._key_prefix = key_prefix
        self._default_ttl = default_ttl
        self._logger = logger or get_logger("servicekit.cache", backend=backend.name)
        self._clock = clock
        self._fallback: MemoryCacheBackend | None = None
        if use_memory_fallback and not isinstance(backend, MemoryCacheBackend):
            self._fallback = fallback or MemoryCacheBackend()
        self.stats = CacheStats()
        self._error_count = 0
        self._last_error_at: float | None = None

    @property
    def backend(self) -> CacheBackendProtocol:
        return self._backend

    @property
    def fallback(self) -> MemoryCacheBackend | None:
        return self._fallback

    def _key(self, key: CacheKey) -> str:
        return f"{self._key_prefix}{key}"

    def _record_error(self, operation: str, target: str, error: Exception) -> None:
        self.stats.errors += 1
        now = self._clock()
        if self._last_error_at is not None and now - self._last_error_at > ERROR_LOG_WINDOW:
            self._error_count = 0
        self._error_count += 1
        self._last_error_at = now
        if self._error_count <= MAX_ERRORS_BEFORE_SILENCE:
            self._logger.warning(
                "Cache backend unavailable",
                operation=operation,
                target=target,
                error=str(error),
                error_type=type(error).__name__,
                error_count=self._error_count,
                fallback=self._fallback is not None,
            )

    async def get(self, key: CacheKey) -> Any:
        """Get a value from the cache.

        Args:
            key: The cache key

        Returns:
            The cached value, or ``MISS``. Never raises.
        """
        full_key = self._key(key)
        try:
            value = await self._backend.get(full_key)
        except Exception as e:
            self._record_error("get", full_key, e)
            value = await self._fallback.get(full_key) if self._fallback is not None else MISS

        if value is MISS:
            self.stats.misses += 1
        else:
            self.stats.hits += 1
        return value

    async def set(self, key: CacheKey, value: Any, ttl: float | None = None) -> None:
        """Set a value in the cache, overwriting any previous one.

        Args:
            key: The cache key
            value: The value to cache
            ttl: Time to live in seconds; the store default when omitted
        """
        full_key = self._key(key)
        ttl = ttl if ttl is not None else self._default_ttl
        try:
            await self._backend.set(full_key, value, ttl)
        except CacheSerializationError as e:
            # rejected value, not an outage: no fallback write
            self._logger.warning(
                "Cache value not serializable",
                key=full_key,
                value_type=type(value).__name__,
                error=str(e),
            )
            return
        except Exception as e:
            self._record_error("set", full_key, e)
            if self._fallback is None:
                return
            await self._fallback.set(full_key, value, ttl)
        self.stats.sets += 1

    async def delete(self, key: CacheKey) -> bool:
        """Delete one key from the backend and the fallback."""
        full_key = self._key(key)
        deleted = False
        try:
            deleted = await self._backend.delete(full_key)
        except Exception as e:
            self._record_error("delete", full_key, e)
        if self._fallback is not None:
            deleted = await self._fallback.delete(full_key) or deleted
        return deleted

    async def delete_pattern(self, pattern: str) -> int:
        """Delete every entry whose key matches a glob pattern.

        The fallback store is always purged too, so entries written during an
        outage cannot outlive an invalidation.

        Args:
            pattern: Glob pattern, relative to the store's key prefix

        Returns:
            Number of entries removed across backend and fallback
        """
        full_pattern = self._key(pattern)
        count = 0
        try:
            count = await self._backend.delete_pattern(full_pattern)
        except Exception as e:
            self._record_error("delete_pattern", full_pattern, e)
        if self._fallback is not None:
            count += await self._fallback.delete_pattern(full_pattern)
        self.stats.invalidated += count
        if count:
            self._logger.debug("Cache invalidated", pattern=full_pattern, keys_count=count)
        return count

    async def clear(self) -> int:
        """Remove every entry under this store's prefix."""
        return await self.delete_pattern("*")

    async def close(self) -> None:
        await self._backend.close()
        if self._fallback is not None:
            await self._fallback.close()


def create_cache_store(settings: CacheSettings | None = None) -> CacheStore:
    """Build a cache store from settings.

    Args:
        settings: Cache settings; loaded from the environment when omitted

    Returns:
        A configured :class:`CacheStore`
    """
    settings = settings or CacheSettings()
    backend: CacheBackendProtocol
    if settings.backend == "redis":
        from servicekit.cache.redis import RedisCacheBackend

        backend = RedisCacheBackend(url=settings.redis_url)
    else:
        backend = MemoryCacheBackend(max_size=settings.max_size)
    return CacheStore(
        backend,
        key_prefix=settings.key_prefix,
        default_ttl=settings.default_ttl,
        use_memory_fallback=settings.use_memory_fallback,
    )
