"""
Entity Comparator

Structural equality over two entity values, either of which may be absent.

Two present entities are equal iff every field is deeply equal. No field
gets special treatment: a bumped `updatedAt` is a change like any other.
"""

import math
from collections.abc import Mapping, Sequence
from typing import Any

from pydantic import BaseModel


class _Missing:
    """Sentinel for an entity absent from a snapshot."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING: Any = _Missing()


def is_missing(value: Any) -> bool:
    return value is MISSING or value is None


def _normalize(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    return value


def values_equal(a: Any, b: Any) -> bool:
    """
    Deep equality over JSON-like values.

    Mappings compare regardless of key order, sequences element-wise.
    Booleans never equal numbers, ints and floats compare numerically,
    and NaN equals NaN.
    """
    a = _normalize(a)
    b = _normalize(b)

    if isinstance(a, bool) or isinstance(b, bool):
        return isinstance(a, bool) and isinstance(b, bool) and a == b

    if isinstance(a, (int, float)) and isinstance(b, (int, float)):
        # NaN equals NaN, as in the serialized form
        return a == b or (
            isinstance(a, float) and isinstance(b, float)
            and math.isnan(a) and math.isnan(b)
        )

    if isinstance(a, Mapping) and isinstance(b, Mapping):
        if a.keys() != b.keys():
            return False
        return all(values_equal(a[key], b[key]) for key in a)

    if isinstance(a, (str, bytes)) or isinstance(b, (str, bytes)):
        return type(a) is type(b) and a == b

    if isinstance(a, Sequence) and isinstance(b, Sequence):
        if len(a) != len(b):
            return False
        return all(values_equal(x, y) for x, y in zip(a, b))

    if a is None or b is None:
        return a is b

    return type(a) is type(b) and a == b


def entities_equal(a: Any, b: Any) -> bool:
    """
    Compare two entities, where either may be MISSING.

    Two missing values are equal; missing never equals a present entity.
    """
    if is_missing(a) or is_missing(b):
        return is_missing(a) and is_missing(b)
    return values_equal(a, b)
