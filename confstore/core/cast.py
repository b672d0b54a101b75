"""Best-effort conversion of resolved values into typed results.

Every ``to_*`` function returns the zero value of its target type when the
input is missing or cannot be converted; none of them raise.
"""
from __future__ import annotations

import datetime as dt
import json
import math
import re
from typing import Any, Dict, List, Mapping

from pydantic import TypeAdapter, ValidationError

_BOOL = TypeAdapter(bool)
_INT = TypeAdapter(int)
_FLOAT = TypeAdapter(float)
_DATETIME = TypeAdapter(dt.datetime)
_TIMEDELTA = TypeAdapter(dt.timedelta)

ZERO_TIME = dt.datetime.min.replace(tzinfo=dt.timezone.utc)
ZERO_DURATION = dt.timedelta(0)

_DURATION_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}
_DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|ms|s|m|h)")
_DURATION_FULL = re.compile(r"[-+]?(?:(?:\d+(?:\.\d*)?|\.\d+)(?:ns|us|µs|ms|s|m|h))+")


def parse_duration(text: str) -> dt.timedelta:
    """Parse a duration such as ``"1h30m"``, ``"250ms"`` or ``"-1.5s"``.

    A bare number is read as seconds. Raises ``ValueError`` on anything else.
    """

    text = text.strip()
    if not text:
        raise ValueError("empty duration")
    try:
        seconds = float(text)
    except ValueError:
        if not _DURATION_FULL.fullmatch(text):
            raise ValueError(f"invalid duration: {text!r}") from None
        sign = -1.0 if text.startswith("-") else 1.0
        seconds = sign * sum(
            float(amount) * _DURATION_UNITS[unit] for amount, unit in _DURATION_PART.findall(text)
        )
    if not math.isfinite(seconds):
        raise ValueError(f"invalid duration: {text!r}")
    try:
        return dt.timedelta(seconds=seconds)
    except OverflowError as exc:
        raise ValueError(f"duration out of range: {text!r}") from exc


def to_string(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode("utf-8", errors="replace")
    if isinstance(value, (dt.datetime, dt.date, dt.time)):
        return value.isoformat()
    if isinstance(value, dt.timedelta):
        return str(value)
    return ""


def to_bool(value: Any) -> bool:
    if value is None:
        return False
    try:
        return _BOOL.validate_python(value)
    except ValidationError:
        return False


def to_int(value: Any) -> int:
    if value is None:
        return 0
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else 0
    try:
        return _INT.validate_python(value)
    except ValidationError:
        pass
    if isinstance(value, str):
        try:
            number = float(value)
        except ValueError:
            return 0
        return int(number) if math.isfinite(number) else 0
    return 0


def to_float(value: Any) -> float:
    if value is None:
        return 0.0
    if isinstance(value, bool):
        return float(value)
    try:
        return _FLOAT.validate_python(value)
    except ValidationError:
        return 0.0


def to_time(value: Any) -> dt.datetime:
    if value is None:
        return ZERO_TIME
    if isinstance(value, dt.datetime):
        return value
    if isinstance(value, dt.date):
        return dt.datetime.combine(value, dt.time(), tzinfo=dt.timezone.utc)
    if isinstance(value, bool):
        return ZERO_TIME
    try:
        return _DATETIME.validate_python(value)
    except ValidationError:
        return ZERO_TIME


def to_duration(value: Any) -> dt.timedelta:
    if value is None or isinstance(value, bool):
        return ZERO_DURATION
    if isinstance(value, dt.timedelta):
        return value
    if isinstance(value, (int, float)):
        try:
            return dt.timedelta(seconds=value) if math.isfinite(value) else ZERO_DURATION
        except OverflowError:
            return ZERO_DURATION
    if isinstance(value, str):
        try:
            return parse_duration(value)
        except ValueError:
            pass
    try:
        return _TIMEDELTA.validate_python(value)
    except ValidationError:
        return ZERO_DURATION


def to_slice(value: Any) -> List[Any]:
    if isinstance(value, (list, tuple)):
        return list(value)
    return []


def to_string_slice(value: Any) -> List[str]:
    if isinstance(value, str):
        return value.split()
    if isinstance(value, (list, tuple)):
        return [to_string(item) for item in value]
    return []


def _as_mapping(value: Any) -> Mapping[Any, Any] | None:
    if isinstance(value, Mapping):
        return value
    if isinstance(value, str):
        try:
            decoded = json.loads(value)
        except ValueError:
            return None
        if isinstance(decoded, dict):
            return decoded
    return None


def to_string_map(value: Any) -> Dict[str, Any]:
    mapping = _as_mapping(value)
    if mapping is None:
        return {}
    return {str(key): item for key, item in mapping.items()}


def to_string_map_string(value: Any) -> Dict[str, str]:
    mapping = _as_mapping(value)
    if mapping is None:
        return {}
    return {str(key): to_string(item) for key, item in mapping.items()}


def to_string_map_string_slice(value: Any) -> Dict[str, List[str]]:
    mapping = _as_mapping(value)
    if mapping is None:
        return {}
    result: Dict[str, List[str]] = {}
    for key, item in mapping.items():
        if isinstance(item, str):
            result[str(key)] = [item]
        elif isinstance(item, (list, tuple)):
            result[str(key)] = [to_string(entry) for entry in item]
        else:
            result[str(key)] = [to_string(item)]
    return result


def to_slice_string_map(value: Any) -> List[Dict[str, Any]]:
    if not isinstance(value, (list, tuple)):
        return []
    return [to_string_map(item) for item in value if isinstance(item, Mapping)]


__all__ = [
    "ZERO_DURATION",
    "ZERO_TIME",
    "parse_duration",
    "to_bool",
    "to_duration",
    "to_float",
    "to_int",
    "to_slice",
    "to_slice_string_map",
    "to_string",
    "to_string_map",
    "to_string_map_string",
    "to_string_map_string_slice",
    "to_string_slice",
    "to_time",
]
