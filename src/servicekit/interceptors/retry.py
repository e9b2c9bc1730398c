# SPDX-FileCopyrightText: 2024-present Richard Dahl <richard@dahl.us>
# SPDX-License-Identifier: MIT
# SPDX-Package-Name: servicekit
"""Retry interceptor."""

from __future__ import annotations

import functools
from collections.abc import Callable
from typing import Any

from servicekit.interceptors import defaults
from servicekit.interceptors.base import AsyncMethod, InterceptorKind, attach, declare
from servicekit.resilience.retry import (
    BackoffStrategy,
    OnRetry,
    RetryExecutor,
    RetryPolicy,
    ShouldRetry,
    default_should_retry,
)


def with_retry(
    func: AsyncMethod,
    policy: RetryPolicy | None = None,
    *,
    max_attempts: int = 3,
    initial_delay: float = 1.0,
    backoff: BackoffStrategy | str = BackoffStrategy.EXPONENTIAL,
    backoff_multiplier: float = 2.0,
    max_delay: float = 30.0,
    should_retry: ShouldRetry = default_should_retry,
    on_retry: OnRetry | None = None,
    executor: RetryExecutor | None = None,
) -> AsyncMethod:
    """Retry ``func`` with backoff.

    The policy is built from the keyword arguments unless ``policy`` is
    given, and is validated here, at definition time.

    Args:
        func: Coroutine function to wrap
        policy: Complete retry policy; overrides every other option
        max_attempts: Attempts including the first call
        initial_delay: Delay before the second attempt, in seconds
        backoff: fixed, linear or exponential
        backoff_multiplier: Base of the exponential strategy
        max_delay: Upper bound for a single delay, in seconds
        should_retry: Predicate deciding whether an error is retried
        on_retry: Hook called with ``(attempt, error)`` before each sleep
        executor: Executor to run under; the process default when omitted

    Returns:
        The wrapped coroutine function
    """
    if policy is None:
        policy = RetryPolicy(
            max_attempts=max_attempts,
            initial_delay=initial_delay,
            backoff=BackoffStrategy(backoff),
            backoff_multiplier=backoff_multiplier,
            max_delay=max_delay,
            should_retry=should_retry,
            on_retry=on_retry,
        )
    declaration = declare(
        func,
        InterceptorKind.RETRY,
        max_attempts=policy.max_attempts,
        backoff=policy.backoff.value,
    )

    @functools.wraps(func)
    async def wrapper(*args: Any, **kwargs: Any) -> Any:
        runner = executor or defaults.get_retry_executor()
        return await runner.execute(lambda: func(*args, **kwargs), policy, name=declaration.target)

    return attach(wrapper, func, declaration)


def retry(**options: Any) -> Callable[[AsyncMethod], AsyncMethod]:
    """Decorator form of :func:`with_retry`."""

    def decorator(func: AsyncMethod) -> AsyncMethod:
        return with_retry(func, **options)

    return decorator
