"""File-backed data source that detects changes by polling the mtime."""
from __future__ import annotations

import threading
from pathlib import Path
from typing import Iterator

from confstore.common.logger import logger
from confstore.core.errors import SourceError


class FileDataSource:
    """Serves a file's bytes and signals when its modification time moves."""

    def __init__(self, path: str | Path, poll_interval: float = 1.0) -> None:
        self._path = Path(path).expanduser().resolve()
        self._poll_interval = poll_interval
        self._closed = threading.Event()
        self._lock = threading.Lock()
        self._mtime: float | None = self._stat()

    @property
    def path(self) -> Path:
        return self._path

    def read_config(self) -> bytes:
        try:
            content = self._path.read_bytes()
        except OSError as exc:
            raise SourceError(f"Unable to read configuration file {self._path}: {exc}") from exc
        with self._lock:
            self._mtime = self._stat()
        return content

    def changes(self) -> Iterator[None]:
        while not self._closed.wait(self._poll_interval):
            if self._should_reload():
                logger.debug("Configuration file {} changed", self._path)
                yield None

    def close(self) -> None:
        self._closed.set()

    def _stat(self) -> float | None:
        try:
            return self._path.stat().st_mtime
        except FileNotFoundError:
            return None

    def _should_reload(self) -> bool:
        current = self._stat()
        with self._lock:
            if current == self._mtime:
                return False
            self._mtime = current
        return True


__all__ = ["FileDataSource"]
