# SPDX-FileCopyrightText: 2024-present Richard Dahl <richard@dahl.us>
# SPDX-License-Identifier: MIT
# SPDX-Package-Name: servicekit
"""Cache key derivation.

A key is ``<prefix>:<arguments>`` where ``<arguments>`` is a canonical JSON
rendering of the call's bound arguments: dict keys are sorted, sets are
ordered, and pydantic models, dataclasses, enums, dates and UUIDs have fixed
encodings. Equal arguments therefore always produce equal keys, whether they
were passed positionally or by keyword.
"""

from __future__ import annotations

import dataclasses
import inspect
import json
from collections.abc import Callable, Mapping
from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID

from pydantic import BaseModel

_SKIPPED_PARAMETERS = ("self", "cls")


def to_jsonable(value: Any) -> Any:
    """Convert ``value`` into plain JSON types with a deterministic shape."""
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return to_jsonable(dataclasses.asdict(value))
    if isinstance(value, Enum):
        return to_jsonable(value.value)
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, (UUID, Decimal)):
        return str(value)
    if isinstance(value, Mapping):
        return {str(k): to_jsonable(v) for k, v in value.items()}
    if isinstance(value, (set, frozenset)):
        items = [to_jsonable(item) for item in value]
        return sorted(items, key=lambda item: json.dumps(item, sort_keys=True, default=str))
    if isinstance(value, (list, tuple)):
        return [to_jsonable(item) for item in value]
    return str(value)


def stable_serialize(value: Any) -> str:
    """Serialize ``value`` to canonical JSON."""
    return json.dumps(to_jsonable(value), sort_keys=True, separators=(",", ":"), default=str)


def bind_arguments(func: Callable[..., Any], args: tuple[Any, ...], kwargs: dict[str, Any]) -> dict[str, Any]:
    """Map a call's arguments to parameter names, defaults applied.

    ``self`` and ``cls`` are left out so instances of one service share keys.

    Raises:
        TypeError: If the arguments do not match the signature
    """
    bound = inspect.signature(func).bind(*args, **kwargs)
    bound.apply_defaults()
    return {name: value for name, value in bound.arguments.items() if name not in _SKIPPED_PARAMETERS}


def make_cache_key(prefix: str, arguments: Mapping[str, Any]) -> str:
    """Build the cache key for one call.

    Args:
        prefix: Method identity (``"<Class>:<method>"`` by default)
        arguments: Bound arguments of the call

    Returns:
        The cache key
    """
    return f"{prefix}:{stable_serialize(dict(arguments))}"


def default_key_prefix(func: Callable[..., Any]) -> str:
    """Return ``"<Class>:<method>"`` for methods, or the function name."""
    parts = [part for part in func.__qualname__.split(".") if part != "<locals>"]
    return ":".join(parts[-2:])
