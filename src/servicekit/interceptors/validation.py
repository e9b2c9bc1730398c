# SPDX-FileCopyrightText: 2024-present Richard Dahl <richard@dahl.us>
# SPDX-License-Identifier: MIT
# SPDX-Package-Name: servicekit
"""
Validate interceptor.

Checks selected arguments against pydantic schemas before the wrapped method
runs. Every rule is evaluated and all failures are reported together in one
:class:`~servicekit.validation.ValidationError`. On success the parsed values
replace the arguments, so the method sees coerced data.
"""

from __future__ import annotations

import functools
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any

from servicekit.interceptors import defaults
from servicekit.interceptors.base import (
    AsyncMethod,
    InterceptorKind,
    attach,
    declare,
    has_receiver,
    parameter_names,
    report_error,
)
from servicekit.logging import ServiceLogger, get_logger
from servicekit.tracking import ErrorTrackerProtocol
from servicekit.validation import SchemaValidator, ValidationError, ValidationFailure


@dataclass(frozen=True)
class ValidationRule:
    """Validate one argument of a call.

    Attributes:
        param_index: Position of the argument, not counting ``self``/``cls``
        schema: ``BaseModel`` subclass, ``TypeAdapter`` or type annotation
        param_name: Name used in error messages; the parameter's own name
            when omitted
    """

    param_index: int
    schema: Any
    param_name: str | None = None

    def __post_init__(self) -> None:
        if self.param_index < 0:
            raise ValueError("param_index must not be negative")


def with_validation(
    func: AsyncMethod,
    rules: Sequence[ValidationRule],
    *,
    throw_on_error: bool = True,
    log_errors: bool = True,
    send_to_tracker: bool = True,
    validator: SchemaValidator | None = None,
    logger: ServiceLogger | None = None,
    error_tracker: ErrorTrackerProtocol | None = None,
) -> AsyncMethod:
    """Wrap ``func`` with argument validation.

    Rules pointing past the arguments actually supplied are skipped.

    Args:
        func: Coroutine function to wrap
        rules: Validation rules, evaluated in order
        throw_on_error: Raise on failure; otherwise log and call ``func``
            with the original arguments
        log_errors: Log validation failures at WARNING
        send_to_tracker: Report validation failures to the error tracker
        validator: Schema validator; the process default when omitted
        logger: Logger instance (optional)
        error_tracker: Tracker to report to; the process default when omitted

    Returns:
        The wrapped coroutine function

    Raises:
        ValidationError: From the wrapped call, listing every failed rule
    """
    rules = tuple(rules)
    if not rules:
        raise ValueError("at least one validation rule is required")
    declaration = declare(
        func,
        InterceptorKind.VALIDATE,
        rules=rules,
        throw_on_error=throw_on_error,
    )
    offset = 1 if has_receiver(func) else 0
    names = parameter_names(func)
    log = logger or get_logger("servicekit.interceptors.validation")

    def rule_name(rule: ValidationRule) -> str:
        if rule.param_name:
            return rule.param_name
        if rule.param_index < len(names):
            return names[rule.param_index]
        return f"arg{rule.param_index}"

    @functools.wraps(func)
    async def wrapper(*args: Any, **kwargs: Any) -> Any:
        schema_validator = validator or defaults.get_validator()
        new_args = list(args)
        new_kwargs = dict(kwargs)
        failures: list[ValidationFailure] = []

        for rule in rules:
            position = offset + rule.param_index
            name = names[rule.param_index] if rule.param_index < len(names) else None
            if position < len(args):
                value = args[position]
            elif name is not None and name in kwargs:
                value = kwargs[name]
            else:
                continue

            result = schema_validator.validate(value, rule.schema)
            if not result.valid:
                failures.append(ValidationFailure(rule.param_index, rule_name(rule), result.errors))
            elif position < len(args):
                new_args[position] = result.value
            else:
                new_kwargs[name] = result.value

        if not failures:
            return await func(*new_args, **new_kwargs)

        error = ValidationError(failures, method=declaration.target)
        if log_errors:
            log.warning(
                "Validation failed",
                method=declaration.target,
                failures=[failure.describe() for failure in failures],
            )
        if send_to_tracker:
            report_error(
                error_tracker or defaults.get_error_tracker(),
                error,
                {"tags": {"method": declaration.target, "kind": "validation"}, "params": error.param_names},
                log,
            )
        if throw_on_error:
            raise error
        return await func(*args, **kwargs)

    return attach(wrapper, func, declaration)


def validate(
    *rules: ValidationRule, **options: Any
) -> Callable[[AsyncMethod], AsyncMethod]:
    """Decorator form of :func:`with_validation`.

    Example:
        @validate(ValidationRule(0, CreateBooking), ValidationRule(1, UUID4, "user_id"))
        async def create_booking(self, data, user_id): ...
    """

    def decorator(func: AsyncMethod) -> AsyncMethod:
        return with_validation(func, rules, **options)

    return decorator
