# SPDX-FileCopyrightText: 2024-present Richard Dahl <richard@dahl.us>
# SPDX-License-Identifier: MIT
# SPDX-Package-Name: servicekit
"""RateLimit and CircuitBreaker interceptors."""

from __future__ import annotations

import functools
from collections.abc import Callable, Mapping
from typing import Any

from servicekit.interceptors.base import AsyncMethod, InterceptorKind, attach, declare, has_receiver
from servicekit.logging import ServiceLogger, get_logger
from servicekit.resilience.circuit_breaker import CircuitBreaker
from servicekit.resilience.errors import RateLimitExceededError
from servicekit.resilience.rate_limit import SlidingWindowRateLimiter

GLOBAL_KEY = "global"


def default_rate_limit_key(args: tuple[Any, ...], kwargs: dict[str, Any]) -> str:
    """Client key for a call: the ``ip`` keyword, else the ``ip`` of the first argument."""
    if kwargs.get("ip"):
        return str(kwargs["ip"])
    if args:
        first = args[0]
        ip = first.get("ip") if isinstance(first, Mapping) else getattr(first, "ip", None)
        if ip:
            return str(ip)
    return GLOBAL_KEY


def with_rate_limit(
    func: AsyncMethod,
    *,
    max_requests: int,
    window: float,
    key_func: Callable[..., str] | None = None,
    limiter: SlidingWindowRateLimiter | None = None,
    logger: ServiceLogger | None = None,
) -> AsyncMethod:
    """Reject calls beyond ``max_requests`` per ``window`` seconds per client.

    Limits are per method: the client key is prefixed with the method
    identity, so one limiter may be shared by several methods.

    Args:
        func: Coroutine function to wrap
        max_requests: Calls allowed per client within the window
        window: Sliding window length, in seconds
        key_func: Computes the client key from the call arguments
            (``self`` excluded)
        limiter: Limiter to use; a new one per method when omitted
        logger: Logger instance (optional)

    Returns:
        The wrapped coroutine function

    Raises:
        RateLimitExceededError: From the wrapped call when over the limit
    """
    declaration = declare(func, InterceptorKind.RATE_LIMIT, max_requests=max_requests, window=window)
    limiter = limiter or SlidingWindowRateLimiter(max_requests, window)
    offset = 1 if has_receiver(func) else 0
    log = logger or get_logger("servicekit.interceptors.guards")

    @functools.wraps(func)
    async def wrapper(*args: Any, **kwargs: Any) -> Any:
        call_args = args[offset:]
        client = key_func(*call_args, **kwargs) if key_func else default_rate_limit_key(call_args, kwargs)
        key = f"{declaration.target}:{client}"
        try:
            limiter.hit(key)
        except RateLimitExceededError as error:
            log.warning(
                "Rate limit exceeded",
                method=declaration.target,
                client=client,
                retry_after=error.retry_after,
            )
            raise
        return await func(*args, **kwargs)

    wrapper.limiter = limiter  # type: ignore[attr-defined]
    return attach(wrapper, func, declaration)


def rate_limit(**options: Any) -> Callable[[AsyncMethod], AsyncMethod]:
    """Decorator form of :func:`with_rate_limit`."""

    def decorator(func: AsyncMethod) -> AsyncMethod:
        return with_rate_limit(func, **options)

    return decorator


def with_circuit_breaker(
    func: AsyncMethod,
    *,
    error_threshold: int = 5,
    window: float = 60.0,
    reset_timeout: float = 30.0,
    log_state_changes: bool = True,
    breaker: CircuitBreaker | None = None,
) -> AsyncMethod:
    """Guard ``func`` with a circuit breaker.

    Args:
        func: Coroutine function to wrap
        error_threshold: Failures inside ``window`` that open the circuit
        window: Failure counting window, in seconds
        reset_timeout: Time the circuit stays open before a trial call
        log_state_changes: Log every state transition
        breaker: Breaker to share; one per method is created when omitted

    Returns:
        The wrapped coroutine function

    Raises:
        CircuitOpenError: From the wrapped call while the circuit is open
    """
    declaration = declare(
        func,
        InterceptorKind.CIRCUIT_BREAKER,
        error_threshold=error_threshold,
        window=window,
        reset_timeout=reset_timeout,
    )
    breaker = breaker or CircuitBreaker(
        error_threshold,
        window,
        reset_timeout,
        name=declaration.target,
        log_state_changes=log_state_changes,
    )

    @functools.wraps(func)
    async def wrapper(*args: Any, **kwargs: Any) -> Any:
        return await breaker.call(func, *args, **kwargs)

    wrapper.breaker = breaker  # type: ignore[attr-defined]
    return attach(wrapper, func, declaration)


def circuit_breaker(**options: Any) -> Callable[[AsyncMethod], AsyncMethod]:
    """Decorator form of :func:`with_circuit_breaker`."""

    def decorator(func: AsyncMethod) -> AsyncMethod:
        return with_circuit_breaker(func, **options)

    return decorator
