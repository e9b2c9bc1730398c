# SPDX-FileCopyrightText: 2024-present Richard Dahl <richard@dahl.us>
# SPDX-License-Identifier: MIT
# SPDX-Package-Name: servicekit

"""
Validation-specific error classes for servicekit.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from servicekit.errors.base import ErrorCategory, ErrorSeverity, ServiceKitError


@dataclass(frozen=True)
class ValidationFailure:
    """Failure of a single validation rule."""

    param_index: int
    param_name: str
    errors: tuple[str, ...] = field(default_factory=tuple)

    def describe(self) -> str:
        return f"{self.param_name}: {', '.join(self.errors)}"


class ValidationError(ServiceKitError):
    """Raised when one or more arguments of an intercepted call are invalid.

    Carries every failing rule; the message lists all of them.
    """

    def __init__(
        self,
        failures: list[ValidationFailure],
        method: str | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        self.failures = list(failures)
        self.method = method
        ctx = dict(context or {})
        if method:
            ctx["method"] = method
        ctx["params"] = [failure.param_name for failure in self.failures]
        super().__init__(
            message="Validation failed: " + "; ".join(f.describe() for f in self.failures),
            code="VAL_ARGUMENTS_INVALID",
            category=ErrorCategory.VALIDATION,
            severity=ErrorSeverity.WARNING,
            context=ctx,
        )

    @property
    def param_names(self) -> list[str]:
        return [failure.param_name for failure in self.failures]
