"""Interfaces the store consumes from configuration sources and formats."""
from __future__ import annotations

from typing import Any, Callable, Iterable, Mapping, Protocol, runtime_checkable

Decoder = Callable[[bytes], Mapping[str, Any]]
"""Turns a raw payload into a nested mapping; raising means undecodable."""


@runtime_checkable
class DataSource(Protocol):
    """A provider of raw configuration bytes and change wake-ups."""

    def read_config(self) -> bytes:
        """Return the current payload."""

    def changes(self) -> Iterable[None]:
        """Yield once per change; the iteration blocks between changes and ends when the source closes."""


__all__ = ["DataSource", "Decoder"]
