"""Decoding of resolved configuration values into typed targets."""
from __future__ import annotations

import dataclasses
import datetime as dt
import types
import typing
from dataclasses import dataclass
from typing import Annotated, Any, Dict, Mapping, Tuple

from pydantic import BaseModel, BeforeValidator, PydanticUserError, TypeAdapter, ValidationError

from confstore.core.cast import parse_duration
from confstore.core.errors import UnmarshalError

DEFAULT_TAG_NAME = "config"


def _coerce_duration(value: Any) -> Any:
    if isinstance(value, str):
        try:
            return parse_duration(value)
        except ValueError:
            return value
    return value


Duration = Annotated[dt.timedelta, BeforeValidator(_coerce_duration)]
"""``timedelta`` field type that also accepts strings such as ``"1m30s"``."""


@dataclass(slots=True, frozen=True)
class DecodeOptions:
    tag_name: str = DEFAULT_TAG_NAME
    weakly_typed_input: bool = True
    squash: bool = False

    def merged(self, **overrides: Any) -> "DecodeOptions":
        unknown = set(overrides) - {"tag_name", "weakly_typed_input", "squash"}
        if unknown:
            raise TypeError(f"unknown decode options: {', '.join(sorted(unknown))}")
        return dataclasses.replace(self, **overrides)


def _unwrap(annotation: Any) -> Any:
    """Strip ``Optional``/``Annotated`` wrappers down to the concrete type."""

    origin = typing.get_origin(annotation)
    if origin is Annotated:
        return _unwrap(typing.get_args(annotation)[0])
    if origin is typing.Union or isinstance(annotation, types.UnionType):
        members = [arg for arg in typing.get_args(annotation) if arg is not type(None)]
        if len(members) == 1:
            return _unwrap(members[0])
    return annotation


def _is_structured(annotation: Any) -> bool:
    return isinstance(annotation, type) and (
        issubclass(annotation, BaseModel) or dataclasses.is_dataclass(annotation)
    )


def _field_specs(target: type, tag_name: str) -> Dict[str, Tuple[str, Any]]:
    """Return ``{input_key: (output_key, annotation)}`` for a structured type."""

    specs: Dict[str, Tuple[str, Any]] = {}
    if issubclass(target, BaseModel):
        for name, info in target.model_fields.items():
            extra = info.json_schema_extra if isinstance(info.json_schema_extra, dict) else {}
            output_key = info.alias or name
            input_key = extra.get(tag_name) or output_key
            specs[str(input_key)] = (output_key, info.annotation)
        return specs
    hints = typing.get_type_hints(target, include_extras=True)
    for field in dataclasses.fields(target):
        input_key = field.metadata.get(tag_name) or field.name
        specs[str(input_key)] = (field.name, hints.get(field.name, Any))
    return specs


def _prepare(value: Any, annotation: Any, options: DecodeOptions) -> Any:
    """Rename tagged keys and apply squashing ahead of validation."""

    target = _unwrap(annotation)
    origin = typing.get_origin(target)
    if origin in (list, tuple, set, frozenset) and isinstance(value, list):
        args = typing.get_args(target)
        item_type = args[0] if args else Any
        return [_prepare(item, item_type, options) for item in value]
    if origin is dict and isinstance(value, Mapping):
        args = typing.get_args(target)
        item_type = args[1] if len(args) == 2 else Any
        return {key: _prepare(item, item_type, options) for key, item in value.items()}
    if not _is_structured(target) or not isinstance(value, Mapping):
        return value

    prepared: Dict[str, Any] = {}
    declared = _field_specs(target, options.tag_name)
    for key, item in value.items():
        if key not in declared:
            prepared[key] = item
    for input_key, (output_key, field_type) in declared.items():
        if input_key in value:
            prepared[output_key] = _prepare(value[input_key], field_type, options)
        elif options.squash and _is_structured(_unwrap(field_type)):
            prepared[output_key] = _prepare(value, field_type, options)
    return prepared


def decode_value(value: Any, target: Any, options: DecodeOptions) -> Any:
    """Validate ``value`` as ``target`` and return the resulting instance."""

    try:
        adapter = TypeAdapter(target)
        return adapter.validate_python(
            _prepare(value, target, options),
            strict=not options.weakly_typed_input,
        )
    except ValidationError as exc:
        raise UnmarshalError(str(exc)) from exc
    except (PydanticUserError, NameError, TypeError) as exc:
        raise UnmarshalError(f"cannot decode into {target!r}: {exc}") from exc


__all__ = ["DEFAULT_TAG_NAME", "DecodeOptions", "Duration", "decode_value"]
