"""Exception types raised by the configuration store."""
from __future__ import annotations


class ConfStoreError(Exception):
    """Base class for every error raised by confstore."""


class SourceError(ConfStoreError):
    """A data source could not produce its current payload."""


class DecodeError(ConfStoreError):
    """A payload could not be turned into a nested mapping."""


class InvalidKeyError(ConfStoreError, KeyError):
    """An unmarshal key resolved to nothing in the configuration."""

    def __init__(self, key: str) -> None:
        super().__init__(key)
        self.key = key

    def __str__(self) -> str:
        return f"{self.key}: invalid key, maybe not exist in config"


class UnmarshalError(ConfStoreError):
    """A resolved value could not be decoded into the requested target."""


__all__ = [
    "ConfStoreError",
    "SourceError",
    "DecodeError",
    "InvalidKeyError",
    "UnmarshalError",
]
