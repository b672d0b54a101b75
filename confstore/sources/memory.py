"""In-memory data source, handy for tests and for pushing config from code."""
from __future__ import annotations

import queue
import threading
from typing import Iterator

_CLOSED = object()


class MemoryDataSource:
    def __init__(self, content: bytes = b"") -> None:
        self._content = content
        self._lock = threading.Lock()
        self._signals: "queue.Queue[object]" = queue.Queue()

    def read_config(self) -> bytes:
        with self._lock:
            return self._content

    def update(self, content: bytes) -> None:
        """Replace the payload and wake the reload loop."""

        with self._lock:
            self._content = content
        self._signals.put(None)

    def close(self) -> None:
        self._signals.put(_CLOSED)

    def changes(self) -> Iterator[None]:
        while True:
            signal = self._signals.get()
            if signal is _CLOSED:
                return
            yield None


__all__ = ["MemoryDataSource"]
