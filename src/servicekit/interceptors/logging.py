# SPDX-FileCopyrightText: 2024-present Richard Dahl <richard@dahl.us>
# SPDX-License-Identifier: MIT
# SPDX-Package-Name: servicekit
"""
Log interceptor.

Emits a structured record when the wrapped method starts and when it
completes, with masked arguments, optionally the masked result and the
execution time in milliseconds. Failures are logged at ERROR, forwarded to
the error tracker and re-raised unchanged.
"""

from __future__ import annotations

import functools
import time
from collections.abc import Callable, Iterable, Mapping
from typing import Any

from pydantic import BaseModel

from servicekit.cache.keys import bind_arguments
from servicekit.interceptors import defaults
from servicekit.interceptors.base import (
    AsyncMethod,
    InterceptorKind,
    attach,
    declare,
    report_error,
)
from servicekit.logging import LogLevel, ServiceLogger, get_logger
from servicekit.tracking import ErrorTrackerProtocol

MASK = "***MASKED***"
DEFAULT_MASK_FIELDS: tuple[str, ...] = (
    "password",
    "token",
    "secret",
    "api_key",
    "apiKey",
    "authorization",
)


def mask_sensitive_data(data: Any, fields: Iterable[str] = DEFAULT_MASK_FIELDS) -> Any:
    """Return a copy of ``data`` with sensitive values replaced.

    Keys are compared case-insensitively. Dicts, lists, tuples, sets and
    pydantic models are walked recursively; the input is never modified.

    Args:
        data: Value to mask
        fields: Key names whose values are hidden

    Returns:
        The masked copy
    """
    lowered = {name.lower() for name in fields}
    if not lowered:
        return data
    return _mask(data, lowered)


def _mask(data: Any, fields: set[str]) -> Any:
    if isinstance(data, BaseModel):
        data = data.model_dump()
    if isinstance(data, Mapping):
        return {
            key: MASK if str(key).lower() in fields else _mask(value, fields)
            for key, value in data.items()
        }
    if isinstance(data, list):
        return [_mask(item, fields) for item in data]
    if isinstance(data, tuple):
        return tuple(_mask(item, fields) for item in data)
    if isinstance(data, (set, frozenset)):
        return [_mask(item, fields) for item in data]
    return data


def describe_arguments(func: Callable[..., Any], args: tuple[Any, ...], kwargs: dict[str, Any]) -> Any:
    """Bound arguments of a call by name, or the raw args if they do not bind."""
    try:
        return bind_arguments(func, args, kwargs)
    except TypeError:
        return {"args": list(args), "kwargs": kwargs}


def with_logging(
    func: AsyncMethod,
    *,
    level: LogLevel | str = LogLevel.INFO,
    log_args: bool = True,
    log_result: bool = False,
    log_execution_time: bool = True,
    mask_fields: Iterable[str] = DEFAULT_MASK_FIELDS,
    send_to_tracker: bool = True,
    logger: ServiceLogger | None = None,
    error_tracker: ErrorTrackerProtocol | None = None,
) -> AsyncMethod:
    """Wrap ``func`` with structured call logging.

    Args:
        func: Coroutine function to wrap
        level: Level of the start and completion records
        log_args: Include the masked arguments
        log_result: Include the masked result
        log_execution_time: Include the execution time in ms
        mask_fields: Keys whose values are masked in args and result
        send_to_tracker: Report failures to the error tracker
        logger: Logger instance (optional)
        error_tracker: Tracker to report to; the process default when omitted

    Returns:
        The wrapped coroutine function
    """
    mask_fields = tuple(mask_fields)
    if not isinstance(level, LogLevel):
        level = LogLevel.from_string(level)
    declaration = declare(
        func,
        InterceptorKind.LOG,
        level=level.value,
        log_args=log_args,
        log_result=log_result,
        mask_fields=mask_fields,
    )
    target = declaration.target
    log = logger or get_logger("servicekit.interceptors.logging")

    @functools.wraps(func)
    async def wrapper(*args: Any, **kwargs: Any) -> Any:
        fields: dict[str, Any] = {"method": target}
        if log_args:
            fields["args"] = mask_sensitive_data(describe_arguments(func, args, kwargs), mask_fields)
        log.log(level, f"{target} called", action="start", **fields)
        start = time.perf_counter()
        try:
            result = await func(*args, **kwargs)
        except Exception as error:
            elapsed_ms = (time.perf_counter() - start) * 1000
            if log_execution_time:
                fields["execution_time_ms"] = round(elapsed_ms, 3)
            log.error(
                f"{target} failed after {elapsed_ms:.0f}ms: {error}",
                action="error",
                error=str(error),
                error_type=type(error).__name__,
                **fields,
            )
            if send_to_tracker:
                report_error(
                    error_tracker or defaults.get_error_tracker(),
                    error,
                    {"tags": {"method": target}, **fields},
                    log,
                )
            raise

        elapsed_ms = (time.perf_counter() - start) * 1000
        done: dict[str, Any] = {"method": target}
        if log_execution_time:
            done["execution_time_ms"] = round(elapsed_ms, 3)
        if log_result:
            done["result"] = mask_sensitive_data(result, mask_fields)
        log.log(level, f"{target} completed in {elapsed_ms:.0f}ms", action="success", **done)
        return result

    return attach(wrapper, func, declaration)


def logged(**options: Any) -> Callable[[AsyncMethod], AsyncMethod]:
    """Decorator form of :func:`with_logging`."""

    def decorator(func: AsyncMethod) -> AsyncMethod:
        return with_logging(func, **options)

    return decorator
