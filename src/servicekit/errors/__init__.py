# SPDX-FileCopyrightText: 2024-present Richard Dahl <richard@dahl.us>
# SPDX-License-Identifier: MIT
# SPDX-Package-Name: servicekit
"""
Public API for the servicekit error system.
"""

from __future__ import annotations

from servicekit.errors.base import ErrorCategory, ErrorSeverity, ServiceKitError

__all__ = [
    "ErrorCategory",
    "ErrorSeverity",
    "ServiceKitError",
]
