"""Background reload loop binding a data source to a configuration."""
from __future__ import annotations

import threading
from typing import TYPE_CHECKING

from confstore.common.logger import logger
from confstore.core.errors import ConfStoreError, SourceError
from confstore.sources.provider import DataSource, Decoder

if TYPE_CHECKING:
    from confstore.core.configuration import Configuration


class SourceLoader:
    """Keeps a configuration in sync with a data source.

    ``start`` performs the initial load and runs the ``on_change`` hook on
    the calling thread, raising if the load fails. Later reloads run on a
    daemon thread that lives as long as the source's change stream; their
    failures are logged and skipped.
    """

    def __init__(self, configuration: "Configuration", source: DataSource, decoder: Decoder) -> None:
        self._configuration = configuration
        self._source = source
        self._decoder = decoder
        self._thread: threading.Thread | None = None

    def start(self) -> None:
        if self._thread is not None:
            raise RuntimeError("SourceLoader already started")
        self._configuration.load(self._read(), self._decoder)
        self._configuration.notify_loaded()
        self._thread = threading.Thread(target=self._run, name="confstore-source-loader", daemon=True)
        self._thread.start()

    def _read(self) -> bytes:
        try:
            return self._source.read_config()
        except SourceError:
            raise
        except Exception as exc:
            raise SourceError(f"failed to read configuration source: {exc}") from exc

    def _run(self) -> None:
        for _ in self._source.changes():
            try:
                self._configuration.load(self._read(), self._decoder)
            except ConfStoreError as exc:
                logger.warning("Skipping configuration reload: {}", exc)
        logger.debug("Configuration source closed; reload loop finished")

    def is_alive(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def join(self, timeout: float | None = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout)


__all__ = ["SourceLoader"]
