# SPDX-FileCopyrightText: 2024-present Richard Dahl <richard@dahl.us>
# SPDX-License-Identifier: MIT
# SPDX-Package-Name: servicekit
"""
Base error classes for the servicekit error handling system.

This module provides the foundation for structured error handling with
error codes, contextual information, and error categories. Every subsystem
(cache, DI, validation, resilience, interceptors) defines its own errors in
its ``errors`` module on top of :class:`ServiceKitError`.
"""

from __future__ import annotations

from datetime import UTC, datetime
from enum import Enum
from typing import Any


class ErrorSeverity(str, Enum):
    """Severity levels for errors across servicekit."""

    CRITICAL = "critical"
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class ErrorCategory(str, Enum):
    """Subsystem an error originates from."""

    INTERNAL = "INTERNAL"
    CACHE = "CACHE"
    DI = "DI"
    VALIDATION = "VALIDATION"
    RESILIENCE = "RESILIENCE"
    INTERCEPTOR = "INTERCEPTOR"


class ServiceKitError(Exception):
    """
    Base error class for servicekit errors.
    Should only be subclassed for package-specific errors, not instantiated directly.
    """

    message: str
    code: str
    category: ErrorCategory
    severity: ErrorSeverity
    context: dict[str, Any]
    timestamp: datetime

    def __new__(cls, *args: Any, **kwargs: Any) -> ServiceKitError:
        if cls is ServiceKitError:
            raise TypeError(
                "Do not instantiate ServiceKitError directly; subclass it for specific errors."
            )
        return super().__new__(cls)

    def __init__(
        self,
        message: str,
        code: str,
        category: ErrorCategory = ErrorCategory.INTERNAL,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: dict[str, Any] | None = None,
        **kwargs: Any,
    ) -> None:
        """Initialize a new error (never instantiate the base directly).

        Args:
            message: Human-readable error message
            code: Machine-readable error code, e.g. ``DI_SERVICE_NOT_FOUND``
            category: Subsystem the error belongs to
            severity: Severity level of the error
            context: Additional contextual information
            **kwargs: Merged into ``context``
        """
        super().__init__(message)
        full_context = dict(context or {})
        full_context.update(kwargs)

        self.message = message
        self.code = code
        self.category = category
        self.severity = severity
        self.context = full_context
        self.timestamp = datetime.now(UTC)

    def add_context(self, key: str, value: Any) -> ServiceKitError:
        """Add a key-value pair to the error context and return self for chaining."""
        self.context[key] = value
        return self

    def __str__(self) -> str:
        """Get string representation of the error.

        Returns:
            String in format 'code: message'
        """
        return f"{self.code}: {self.message}"

    def to_dict(self) -> dict[str, Any]:
        """Return a dictionary representation of the error.

        Returns:
            Dictionary with all error properties
        """
        return {
            "code": self.code,
            "message": self.message,
            "category": self.category.value,
            "severity": self.severity.value,
            "context": self.context,
            "timestamp": self.timestamp.isoformat(),
        }
