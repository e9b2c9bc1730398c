# SPDX-FileCopyrightText: 2024-present Richard Dahl <richard@dahl.us>
# SPDX-License-Identifier: MIT
# SPDX-Package-Name: servicekit
"""Cacheable and InvalidateCache interceptors."""

from __future__ import annotations

import functools
from collections.abc import Callable
from typing import Any

from servicekit.cache.keys import bind_arguments, make_cache_key
from servicekit.cache.protocols import MISS
from servicekit.cache.store import CacheStore
from servicekit.interceptors import defaults
from servicekit.interceptors.base import AsyncMethod, InterceptorKind, attach, declare
from servicekit.logging import ServiceLogger, get_logger

DEFAULT_TTL = 300.0

KeyFunc = Callable[..., str]


def with_cache(
    func: AsyncMethod,
    *,
    ttl: float = DEFAULT_TTL,
    prefix: str | None = None,
    key_func: KeyFunc | None = None,
    cache: CacheStore | None = None,
    logger: ServiceLogger | None = None,
) -> AsyncMethod:
    """Cache the results of ``func``.

    A hit returns the stored value without calling ``func``. A miss calls it
    and stores the result only if the call succeeds. ``None`` results are
    cached like any other value.

    Args:
        func: Coroutine function to wrap
        ttl: Lifetime of stored results, in seconds
        prefix: Key prefix; ``"<Class>:<method>"`` by default
        key_func: Builds the part of the key after the prefix from the call
            arguments; defaults to a canonical rendering of the bound arguments
        cache: Store to use; the process default when omitted
        logger: Logger instance (optional)

    Returns:
        The wrapped coroutine function
    """
    if ttl <= 0:
        raise ValueError("ttl must be positive")
    declaration = declare(func, InterceptorKind.CACHEABLE, ttl=ttl, prefix=prefix)
    key_prefix = prefix or declaration.target
    log = logger or get_logger("servicekit.interceptors.caching")

    def build_key(args: tuple[Any, ...], kwargs: dict[str, Any]) -> str:
        if key_func is not None:
            return f"{key_prefix}:{key_func(*args, **kwargs)}"
        return make_cache_key(key_prefix, bind_arguments(func, args, kwargs))

    @functools.wraps(func)
    async def wrapper(*args: Any, **kwargs: Any) -> Any:
        store = cache or defaults.get_cache_store()
        key = build_key(args, kwargs)
        cached = await store.get(key)
        if cached is not MISS:
            log.debug("Cache hit", method=declaration.target, key=key)
            return cached

        log.debug("Cache miss", method=declaration.target, key=key)
        result = await func(*args, **kwargs)
        await store.set(key, result, ttl)
        return result

    return attach(wrapper, func, declaration)


def cacheable(ttl: float = DEFAULT_TTL, **options: Any) -> Callable[[AsyncMethod], AsyncMethod]:
    """Decorator form of :func:`with_cache`."""

    def decorator(func: AsyncMethod) -> AsyncMethod:
        return with_cache(func, ttl=ttl, **options)

    return decorator


def with_cache_invalidation(
    func: AsyncMethod,
    *patterns: str,
    cache: CacheStore | None = None,
    logger: ServiceLogger | None = None,
) -> AsyncMethod:
    """Invalidate cache entries after ``func`` succeeds.

    Every key matching one of ``patterns`` is deleted before the call
    returns. Nothing is invalidated when ``func`` raises.

    Args:
        func: Coroutine function to wrap
        *patterns: Glob patterns, e.g. ``"UserService:*"``
        cache: Store to use; the process default when omitted
        logger: Logger instance (optional)

    Returns:
        The wrapped coroutine function
    """
    if not patterns:
        raise ValueError("at least one invalidation pattern is required")
    declaration = declare(func, InterceptorKind.INVALIDATE_CACHE, patterns=tuple(patterns))
    log = logger or get_logger("servicekit.interceptors.caching")

    @functools.wraps(func)
    async def wrapper(*args: Any, **kwargs: Any) -> Any:
        result = await func(*args, **kwargs)
        store = cache or defaults.get_cache_store()
        for pattern in patterns:
            count = await store.delete_pattern(pattern)
            log.debug("Cache invalidated", method=declaration.target, pattern=pattern, keys_count=count)
        return result

    return attach(wrapper, func, declaration)


def invalidates_cache(*patterns: str, **options: Any) -> Callable[[AsyncMethod], AsyncMethod]:
    """Decorator form of :func:`with_cache_invalidation`."""

    def decorator(func: AsyncMethod) -> AsyncMethod:
        return with_cache_invalidation(func, *patterns, **options)

    return decorator
