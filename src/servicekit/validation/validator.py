# SPDX-FileCopyrightText: 2024-present Richard Dahl <richard@dahl.us>
# SPDX-License-Identifier: MIT
# SPDX-Package-Name: servicekit

"""
Schema validator built on pydantic.

:meth:`SchemaValidator.validate` normalizes pydantic's raising API into a
result object. A schema may be a ``BaseModel`` subclass, a ``TypeAdapter``, or
any type annotation pydantic can build an adapter for (``int``,
``Annotated[str, Field(min_length=1)]``, ``list[Booking]``, ...).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, PydanticUserError, TypeAdapter
from pydantic import ValidationError as PydanticValidationError


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of validating one value against one schema.

    Attributes:
        valid: Whether the value satisfied the schema
        value: The parsed (possibly coerced) value when valid, else the input
        errors: Human-readable messages when invalid
    """

    valid: bool
    value: Any = None
    errors: tuple[str, ...] = field(default_factory=tuple)

    @classmethod
    def ok(cls, value: Any) -> ValidationResult:
        return cls(valid=True, value=value)

    @classmethod
    def fail(cls, value: Any, errors: list[str]) -> ValidationResult:
        return cls(valid=False, value=value, errors=tuple(errors))


def _format_errors(exc: PydanticValidationError) -> list[str]:
    messages = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()))
        message = error.get("msg", "invalid value")
        messages.append(f"{location}: {message}" if location else message)
    return messages


class SchemaValidator:
    """Validates values against pydantic schemas without raising."""

    def __init__(self) -> None:
        self._adapters: dict[Any, TypeAdapter[Any]] = {}

    def _adapter_for(self, schema: Any) -> TypeAdapter[Any]:
        if isinstance(schema, TypeAdapter):
            return schema
        try:
            adapter = self._adapters.get(schema)
        except TypeError:
            # unhashable schema object
            return TypeAdapter(schema)
        if adapter is None:
            adapter = TypeAdapter(schema)
            self._adapters[schema] = adapter
        return adapter

    def validate(self, value: Any, schema: Any) -> ValidationResult:
        """Validate ``value`` against ``schema``.

        Args:
            value: The value to check
            schema: A ``BaseModel`` subclass, ``TypeAdapter`` or type annotation

        Returns:
            A :class:`ValidationResult`; never raises, even when a custom
            validator of the schema does
        """
        try:
            if isinstance(schema, type) and issubclass(schema, BaseModel):
                parsed = schema.model_validate(value)
            else:
                parsed = self._adapter_for(schema).validate_python(value)
        except PydanticValidationError as exc:
            return ValidationResult.fail(value, _format_errors(exc))
        except PydanticUserError as exc:
            return ValidationResult.fail(value, [f"invalid schema: {exc}"])
        except Exception as exc:
            # pydantic lets errors other than ValueError/AssertionError escape custom validators
            return ValidationResult.fail(value, [f"{type(exc).__name__}: {exc}"])
        return ValidationResult.ok(parsed)
