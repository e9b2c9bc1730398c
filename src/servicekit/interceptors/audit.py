# SPDX-FileCopyrightText: 2024-present Richard Dahl <richard@dahl.us>
# SPDX-License-Identifier: MIT
# SPDX-Package-Name: servicekit
"""
Audit interceptor.

Records an :class:`AuditEvent` for every call of the wrapped method, whether
it succeeds or fails. The method's own error is always re-raised; a failing
sink is logged and otherwise ignored.
"""

from __future__ import annotations

import functools
import time
from collections.abc import Callable, Iterable
from datetime import UTC, datetime
from typing import Any, Literal, Protocol, runtime_checkable

from pydantic import BaseModel, Field

from servicekit.cache.keys import to_jsonable
from servicekit.interceptors import defaults
from servicekit.interceptors.base import AsyncMethod, InterceptorKind, attach, declare
from servicekit.interceptors.logging import DEFAULT_MASK_FIELDS, describe_arguments, mask_sensitive_data
from servicekit.logging import ServiceLogger, get_correlation_id, get_logger


class AuditEvent(BaseModel):
    """One audited method call."""

    event_type: str
    method: str
    outcome: Literal["success", "failure"]
    duration_ms: float
    occurred_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    correlation_id: str | None = None
    args: Any = None
    result: Any = None
    error_type: str | None = None
    error_message: str | None = None


@runtime_checkable
class AuditSink(Protocol):
    """Destination for audit events."""

    async def record(self, event: AuditEvent) -> None: ...


class LoggingAuditSink:
    """Writes audit events to the structured log."""

    def __init__(self, logger: ServiceLogger | None = None) -> None:
        self._logger = logger or get_logger("servicekit.audit")

    async def record(self, event: AuditEvent) -> None:
        self._logger.info("Audit event", **event.model_dump(mode="json", exclude_none=True))


def with_audit(
    func: AsyncMethod,
    *,
    event_type: str,
    include_args: bool = False,
    include_result: bool = False,
    exclude_fields: Iterable[str] = DEFAULT_MASK_FIELDS,
    sink: AuditSink | None = None,
    logger: ServiceLogger | None = None,
) -> AsyncMethod:
    """Emit an audit event after each call of ``func``.

    Args:
        func: Coroutine function to wrap
        event_type: Business name of the event, e.g. ``"booking.created"``
        include_args: Attach the masked arguments to the event
        include_result: Attach the masked result to successful events
        exclude_fields: Keys masked in args and result
        sink: Destination; the process default when omitted
        logger: Logger instance (optional)

    Returns:
        The wrapped coroutine function
    """
    exclude_fields = tuple(exclude_fields)
    declaration = declare(
        func,
        InterceptorKind.AUDIT,
        event_type=event_type,
        include_args=include_args,
        include_result=include_result,
    )
    log = logger or get_logger("servicekit.interceptors.audit")

    async def emit(event: AuditEvent) -> None:
        try:
            await (sink or defaults.get_audit_sink()).record(event)
        except Exception as error:
            log.warning(
                "Audit sink failed",
                method=declaration.target,
                event_type=event_type,
                error=str(error),
            )

    @functools.wraps(func)
    async def wrapper(*args: Any, **kwargs: Any) -> Any:
        fields: dict[str, Any] = {
            "event_type": event_type,
            "method": declaration.target,
            "correlation_id": get_correlation_id(),
        }
        if include_args:
            fields["args"] = to_jsonable(
                mask_sensitive_data(describe_arguments(func, args, kwargs), exclude_fields)
            )
        start = time.perf_counter()
        try:
            result = await func(*args, **kwargs)
        except Exception as error:
            await emit(
                AuditEvent(
                    outcome="failure",
                    duration_ms=(time.perf_counter() - start) * 1000,
                    error_type=type(error).__name__,
                    error_message=str(error),
                    **fields,
                )
            )
            raise

        if include_result:
            fields["result"] = to_jsonable(mask_sensitive_data(result, exclude_fields))
        await emit(AuditEvent(outcome="success", duration_ms=(time.perf_counter() - start) * 1000, **fields))
        return result

    return attach(wrapper, func, declaration)


def audited(event_type: str, **options: Any) -> Callable[[AsyncMethod], AsyncMethod]:
    """Decorator form of :func:`with_audit`."""

    def decorator(func: AsyncMethod) -> AsyncMethod:
        return with_audit(func, event_type=event_type, **options)

    return decorator
