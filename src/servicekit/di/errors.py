# SPDX-FileCopyrightText: 2024-present Richard Dahl <richard@dahl.us>
# SPDX-License-Identifier: MIT
# SPDX-Package-Name: servicekit
"""
Dependency injection errors.

This module defines the errors raised by :class:`servicekit.di.ServiceContainer`.
"""

from __future__ import annotations

from collections.abc import Hashable, Sequence
from typing import Any

from servicekit.errors.base import ErrorCategory, ErrorSeverity, ServiceKitError

ERROR_CODE_PREFIX = "DI"


def describe_key(key: Hashable) -> str:
    """Readable name of a service key (string or token)."""
    return key if isinstance(key, str) else str(key)


class DIError(ServiceKitError):
    """Base class for all DI-related errors."""

    def __init__(
        self,
        message: str,
        code: str | None = None,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        **context: Any,
    ) -> None:
        """Initialize a DI error.

        Args:
            message: Human-readable error message
            code: Error code without prefix (will be prefixed with DI_)
            severity: How severe this error is
            **context: Additional context information
        """
        super().__init__(
            code=f"{ERROR_CODE_PREFIX}_{code}" if code else f"{ERROR_CODE_PREFIX}_ERROR",
            message=message,
            category=ErrorCategory.DI,
            severity=severity,
            context=context or {},
        )


class ServiceNotRegisteredError(DIError):
    """Raised when resolving a key nothing was registered under."""

    def __init__(self, key: Hashable) -> None:
        self.key = key
        super().__init__(
            f"Service not registered: {describe_key(key)}",
            code="SERVICE_NOT_FOUND",
            service_key=describe_key(key),
        )


class CircularDependencyError(DIError):
    """Raised when a key is requested again while it is still being constructed."""

    def __init__(self, key: Hashable, chain: Sequence[Hashable]) -> None:
        self.key = key
        self.chain = [*chain, key]
        path = " -> ".join(describe_key(item) for item in self.chain)
        super().__init__(
            f"Circular dependency detected for {describe_key(key)}: {path}",
            code="CIRCULAR_DEPENDENCY",
            severity=ErrorSeverity.CRITICAL,
            service_key=describe_key(key),
            dependency_chain=[describe_key(item) for item in self.chain],
        )
