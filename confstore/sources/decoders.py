"""Decoders for the payload formats confstore understands out of the box."""
from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict

import yaml

from confstore.core.errors import DecodeError
from confstore.sources.provider import Decoder


def yaml_decoder(content: bytes) -> Dict[str, Any]:
    data = yaml.safe_load(content)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise DecodeError(f"YAML root must be a mapping, got {type(data).__name__}")
    return data


def json_decoder(content: bytes) -> Dict[str, Any]:
    if not content.strip():
        return {}
    data = json.loads(content)
    if not isinstance(data, dict):
        raise DecodeError(f"JSON root must be an object, got {type(data).__name__}")
    return data


_BY_SUFFIX: Dict[str, Decoder] = {
    ".yaml": yaml_decoder,
    ".yml": yaml_decoder,
    ".json": json_decoder,
}


def decoder_for_path(path: str | Path) -> Decoder:
    """Pick a decoder from the file suffix."""

    suffix = Path(path).suffix.lower()
    try:
        return _BY_SUFFIX[suffix]
    except KeyError:
        raise DecodeError(f"Unsupported configuration format: {suffix or '<none>'}") from None


__all__ = ["decoder_for_path", "json_decoder", "yaml_decoder"]
