# SPDX-FileCopyrightText: 2024-present Richard Dahl <richard@dahl.us>
# SPDX-License-Identifier: MIT
# SPDX-Package-Name: servicekit
"""Errors raised while declaring interceptors."""

from __future__ import annotations

from servicekit.errors.base import ErrorCategory, ErrorSeverity, ServiceKitError


class DuplicateInterceptorError(ServiceKitError):
    """Raised at definition time when a method gets the same interceptor kind twice."""

    def __init__(self, target: str, kind: str) -> None:
        self.target = target
        self.kind = kind
        super().__init__(
            message=f"Interceptor '{kind}' is already applied to {target}",
            code="INTERCEPTOR_DUPLICATE",
            category=ErrorCategory.INTERCEPTOR,
            severity=ErrorSeverity.CRITICAL,
            context={"target": target, "kind": kind},
        )
