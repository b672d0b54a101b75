"""Closed value model shared by merge, flatten and change detection."""
from __future__ import annotations

import datetime as dt
from enum import Enum
from typing import Any, Dict, List, Mapping, Union

from confstore.core.errors import DecodeError

Scalar = Union[None, bool, int, float, str, dt.datetime, dt.date, dt.time]
Value = Union[Scalar, List["Value"], Dict[str, "Value"]]
Tree = Dict[str, Value]


class Kind(Enum):
    NULL = "null"
    BOOL = "bool"
    INTEGER = "integer"
    FLOAT = "float"
    STRING = "string"
    TIME = "time"
    SEQUENCE = "sequence"
    MAPPING = "mapping"


def kind_of(value: Any) -> Kind:
    """Classify a normalised value.

    ``bool`` is checked before ``int`` since it subclasses it. Anything outside
    the value model raises ``TypeError``; normalised trees never hold such values.
    """

    if value is None:
        return Kind.NULL
    if isinstance(value, bool):
        return Kind.BOOL
    if isinstance(value, int):
        return Kind.INTEGER
    if isinstance(value, float):
        return Kind.FLOAT
    if isinstance(value, str):
        return Kind.STRING
    if isinstance(value, (dt.datetime, dt.date, dt.time)):
        return Kind.TIME
    if isinstance(value, list):
        return Kind.SEQUENCE
    if isinstance(value, dict):
        return Kind.MAPPING
    raise TypeError(f"unsupported configuration value: {type(value).__name__}")


def normalize(value: Any) -> Value:
    """Return a deep copy of ``value`` converted into the value model.

    Mapping keys are stringified and tuples become lists, which is what a
    YAML document with integer keys or a TOML array needs.
    """

    if value is None or isinstance(value, (bool, int, float, str, dt.datetime, dt.date, dt.time)):
        return value
    if isinstance(value, Mapping):
        return {str(key): normalize(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [normalize(item) for item in value]
    raise DecodeError(f"unsupported configuration value: {type(value).__name__}")


def normalize_tree(payload: Any) -> Tree:
    """Normalise a decoded payload whose root must be a mapping."""

    if payload is None:
        return {}
    if not isinstance(payload, Mapping):
        raise DecodeError(f"configuration root must be a mapping, got {type(payload).__name__}")
    return normalize(payload)  # type: ignore[return-value]


def copy_value(value: Value) -> Value:
    kind = kind_of(value)
    if kind is Kind.MAPPING:
        return {key: copy_value(item) for key, item in value.items()}  # type: ignore[union-attr]
    if kind is Kind.SEQUENCE:
        return [copy_value(item) for item in value]  # type: ignore[union-attr]
    return value


def deep_equal(left: Value, right: Value) -> bool:
    """Kind-aware equality: ``1``, ``1.0`` and ``True`` are all different."""

    kind = kind_of(left)
    if kind is not kind_of(right):
        return False
    if kind is Kind.MAPPING:
        if left.keys() != right.keys():  # type: ignore[union-attr]
            return False
        return all(deep_equal(item, right[key]) for key, item in left.items())  # type: ignore[union-attr, index]
    if kind is Kind.SEQUENCE:
        if len(left) != len(right):  # type: ignore[arg-type]
            return False
        return all(deep_equal(a, b) for a, b in zip(left, right))  # type: ignore[arg-type]
    if kind is Kind.TIME:
        return type(left) is type(right) and left == right
    return left == right


__all__ = [
    "Kind",
    "Scalar",
    "Tree",
    "Value",
    "copy_value",
    "deep_equal",
    "kind_of",
    "normalize",
    "normalize_tree",
]
