# SPDX-FileCopyrightText: 2024-present Richard Dahl <richard@dahl.us>
# SPDX-License-Identifier: MIT
# SPDX-Package-Name: servicekit

"""
Validation module for servicekit.
"""

from __future__ import annotations

from servicekit.validation.errors import ValidationError, ValidationFailure
from servicekit.validation.validator import SchemaValidator, ValidationResult

__all__ = [
    "SchemaValidator",
    "ValidationError",
    "ValidationFailure",
    "ValidationResult",
]
