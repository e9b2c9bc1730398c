# SPDX-FileCopyrightText: 2024-present Richard Dahl <richard@dahl.us>
# SPDX-License-Identifier: MIT
# SPDX-Package-Name: servicekit
"""Performance interceptor."""

from __future__ import annotations

import functools
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from servicekit.interceptors.base import AsyncMethod, InterceptorKind, attach, declare
from servicekit.logging import LogLevel, ServiceLogger, get_logger


@dataclass(frozen=True)
class PerformanceSample:
    method: str
    duration_ms: float
    succeeded: bool


def with_performance(
    func: AsyncMethod,
    *,
    warning_threshold: float = 1000.0,
    error_threshold: float = 5000.0,
    log_metrics: bool = True,
    on_sample: Callable[[PerformanceSample], Any] | None = None,
    logger: ServiceLogger | None = None,
    clock: Callable[[], float] = time.perf_counter,
) -> AsyncMethod:
    """Time every call of ``func``.

    Slow calls are logged at WARNING above ``warning_threshold`` and at ERROR
    above ``error_threshold``; other calls at DEBUG when ``log_metrics``.
    Thresholds are in milliseconds.

    Args:
        func: Coroutine function to wrap
        warning_threshold: Duration in ms logged as a warning
        error_threshold: Duration in ms logged as an error
        log_metrics: Log calls under the warning threshold too
        on_sample: Receives a :class:`PerformanceSample` for each call
        logger: Logger instance (optional)
        clock: Time source in seconds

    Returns:
        The wrapped coroutine function
    """
    if warning_threshold > error_threshold:
        raise ValueError("warning_threshold must not exceed error_threshold")
    declaration = declare(
        func,
        InterceptorKind.PERFORMANCE,
        warning_threshold=warning_threshold,
        error_threshold=error_threshold,
    )
    log = logger or get_logger("servicekit.interceptors.performance")

    def record(duration_ms: float, succeeded: bool) -> None:
        if duration_ms > error_threshold:
            level = LogLevel.ERROR
        elif duration_ms > warning_threshold:
            level = LogLevel.WARNING
        elif log_metrics:
            level = LogLevel.DEBUG
        else:
            level = None
        if level is not None:
            log.log(
                level,
                "Method performance",
                method=declaration.target,
                duration_ms=round(duration_ms, 3),
                succeeded=succeeded,
            )
        if on_sample is not None:
            try:
                on_sample(PerformanceSample(declaration.target, duration_ms, succeeded))
            except Exception as error:
                log.warning("on_sample hook failed", method=declaration.target, error=str(error))

    @functools.wraps(func)
    async def wrapper(*args: Any, **kwargs: Any) -> Any:
        start = clock()
        try:
            result = await func(*args, **kwargs)
        except Exception:
            record((clock() - start) * 1000, succeeded=False)
            raise
        record((clock() - start) * 1000, succeeded=True)
        return result

    return attach(wrapper, func, declaration)


def measured(**options: Any) -> Callable[[AsyncMethod], AsyncMethod]:
    """Decorator form of :func:`with_performance`."""

    def decorator(func: AsyncMethod) -> AsyncMethod:
        return with_performance(func, **options)

    return decorator
