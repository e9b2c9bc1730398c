# SPDX-FileCopyrightText: 2024-present Richard Dahl <richard@dahl.us>
# SPDX-License-Identifier: MIT
# SPDX-Package-Name: servicekit
"""
Interceptor declarations and the helpers shared by every interceptor.

Each interceptor wraps an async method at definition time and records an
:class:`InterceptorDeclaration` on the wrapper's ``__interceptors__``
attribute. Declarations accumulate outermost first as wrappers stack, so the
order in which a method's interceptors run can be read back with
:func:`get_interceptors`.
"""

from __future__ import annotations

import inspect
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, TypeGuard, TypeVar

from servicekit.cache.keys import default_key_prefix
from servicekit.interceptors.errors import DuplicateInterceptorError

R = TypeVar("R")
AsyncMethod = Callable[..., Awaitable[Any]]

INTERCEPTORS_ATTR = "__interceptors__"
_RECEIVER_NAMES = ("self", "cls")


class InterceptorKind(str, Enum):
    LOG = "log"
    CACHEABLE = "cacheable"
    INVALIDATE_CACHE = "invalidate_cache"
    VALIDATE = "validate"
    RETRY = "retry"
    RATE_LIMIT = "rate_limit"
    CIRCUIT_BREAKER = "circuit_breaker"
    AUDIT = "audit"
    PERFORMANCE = "performance"


@dataclass(frozen=True)
class InterceptorDeclaration:
    """Record of one interceptor applied to one method.

    Attributes:
        target: Identity of the wrapped method, ``"<Class>:<method>"``
        kind: Which interceptor was applied
        options: The options it was configured with (read-only)
    """

    target: str
    kind: InterceptorKind
    options: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "options", MappingProxyType(dict(self.options)))


def is_coroutine_function(func: Callable[..., Any]) -> TypeGuard[AsyncMethod]:
    """Check if a function is a coroutine function.

    Args:
        func: The function to check

    Returns:
        True if the function is a coroutine function, False otherwise
    """
    return inspect.iscoroutinefunction(func) or (
        callable(func) and inspect.iscoroutinefunction(getattr(func, "__call__", None))
    )


def get_interceptors(method: Callable[..., Any]) -> tuple[InterceptorDeclaration, ...]:
    """Return the interceptors applied to ``method``, outermost first."""
    method = getattr(method, "__func__", method)
    return tuple(getattr(method, INTERCEPTORS_ATTR, ()))


def method_identity(func: Callable[..., Any]) -> str:
    return default_key_prefix(func)


def declare(func: Callable[..., Any], kind: InterceptorKind, **options: Any) -> InterceptorDeclaration:
    """Validate that ``func`` can take an interceptor of ``kind``.

    Raises:
        TypeError: If ``func`` is not a coroutine function
        DuplicateInterceptorError: If ``kind`` is already applied to ``func``
    """
    if not is_coroutine_function(func):
        raise TypeError(
            f"{kind.value} interceptor requires a coroutine function, got {getattr(func, '__qualname__', func)!r}"
        )
    target = method_identity(func)
    if any(existing.kind is kind for existing in get_interceptors(func)):
        raise DuplicateInterceptorError(target, kind.value)
    return InterceptorDeclaration(target=target, kind=kind, options=options)


def attach(wrapper: Callable[..., R], wrapped: Callable[..., Any], declaration: InterceptorDeclaration) -> Callable[..., R]:
    """Record ``declaration`` on ``wrapper`` in front of those of ``wrapped``."""
    setattr(wrapper, INTERCEPTORS_ATTR, (declaration, *get_interceptors(wrapped)))
    return wrapper


def has_receiver(func: Callable[..., Any]) -> bool:
    """True when the first parameter of ``func`` is ``self`` or ``cls``."""
    try:
        parameters = list(inspect.signature(func).parameters)
    except (TypeError, ValueError):
        return False
    return bool(parameters) and parameters[0] in _RECEIVER_NAMES


def parameter_names(func: Callable[..., Any]) -> list[str]:
    """Names of the positional parameters of ``func``, receiver excluded."""
    parameters = [
        p.name
        for p in inspect.signature(func).parameters.values()
        if p.kind in (p.POSITIONAL_ONLY, p.POSITIONAL_OR_KEYWORD)
    ]
    if parameters and parameters[0] in _RECEIVER_NAMES:
        parameters = parameters[1:]
    return parameters


def report_error(
    tracker: Any,
    error: BaseException,
    context: dict[str, Any],
    logger: Any,
) -> None:
    """Forward ``error`` to the error tracker without ever raising."""
    try:
        tracker.capture_exception(error, context)
    except Exception as tracker_error:
        logger.warning(
            "Error tracker failed",
            error_type=type(error).__name__,
            tracker_error=str(tracker_error),
        )
