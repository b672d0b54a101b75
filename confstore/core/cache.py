"""Thread-safe dotted-key cache that doubles as the change-detection baseline."""
from __future__ import annotations

import threading
from types import MappingProxyType
from typing import Dict, Mapping, Tuple

from confstore.core.values import Value, deep_equal

ChangeSet = Mapping[str, Value]

EMPTY_CHANGES: ChangeSet = MappingProxyType({})


class ResolvedKeyCache:
    """Maps dotted keys to the last value resolved for them.

    A stored ``None`` is a real entry: once a key resolved to nothing it stays
    that way until a merge writes a value for it.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._entries: Dict[str, Value] = {}

    def lookup(self, key: str) -> Tuple[bool, Value]:
        with self._lock:
            if key in self._entries:
                return True, self._entries[key]
        return False, None

    def store(self, key: str, value: Value) -> None:
        with self._lock:
            self._entries[key] = value

    def refresh(self, flattened: Mapping[str, Value]) -> ChangeSet:
        """Overwrite entries from a fresh flattening and report what changed.

        Only keys that already had an entry with a different value are
        reported. Entries for keys missing from ``flattened`` are left alone.
        """

        changes: Dict[str, Value] = {}
        with self._lock:
            for key, value in flattened.items():
                if key in self._entries and not deep_equal(self._entries[key], value):
                    changes[key] = value
                self._entries[key] = value
        if not changes:
            return EMPTY_CHANGES
        return MappingProxyType(changes)

    def evict_mappings(self) -> None:
        """Drop entries holding whole subtrees; they are re-resolved on lookup."""

        with self._lock:
            stale = [key for key, value in self._entries.items() if isinstance(value, dict)]
            for key in stale:
                del self._entries[key]


__all__ = ["ChangeSet", "EMPTY_CHANGES", "ResolvedKeyCache"]
