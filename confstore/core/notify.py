"""Change callbacks: global notifier, prefix watch registry and dispatch."""
from __future__ import annotations

import threading
from typing import TYPE_CHECKING, Callable, Dict, Iterable, List

from confstore.common.logger import logger
from confstore.core.cache import ChangeSet

if TYPE_CHECKING:
    from confstore.core.configuration import Configuration

ChangeCallback = Callable[["Configuration", ChangeSet], None]
Dispatcher = Callable[[ChangeCallback, "Configuration", ChangeSet], None]


def invoke_isolated(callback: ChangeCallback, configuration: "Configuration", changes: ChangeSet) -> None:
    """Run ``callback`` on the calling thread, logging instead of raising."""

    try:
        callback(configuration, changes)
    except Exception:
        logger.exception("Configuration change callback {} failed", getattr(callback, "__name__", callback))


def dispatch(callback: ChangeCallback, configuration: "Configuration", changes: ChangeSet) -> None:
    """Run ``callback`` on its own daemon thread and return immediately."""

    thread = threading.Thread(
        target=invoke_isolated,
        args=(callback, configuration, changes),
        name="confstore-callback",
        daemon=True,
    )
    thread.start()


class ChangeNotifier:
    """Callbacks interested in any change at all."""

    def __init__(self) -> None:
        self._callbacks: List[ChangeCallback] = []

    def add(self, callback: ChangeCallback) -> None:
        self._callbacks.append(callback)

    def snapshot(self) -> List[ChangeCallback]:
        return list(self._callbacks)


class WatchRegistry:
    """Callbacks keyed by the dotted-key prefix they watch.

    Matching is a raw string prefix test, so ``"db"`` also matches
    ``"dbx.flag"``.
    """

    def __init__(self) -> None:
        self._watchers: Dict[str, List[ChangeCallback]] = {}

    def add(self, prefix: str, callback: ChangeCallback) -> None:
        self._watchers.setdefault(prefix, []).append(callback)

    def matching(self, changed_keys: Iterable[str]) -> List[ChangeCallback]:
        keys = list(changed_keys)
        callbacks: List[ChangeCallback] = []
        for prefix, registered in self._watchers.items():
            if any(key.startswith(prefix) for key in keys):
                callbacks.extend(registered)
        return callbacks

    def prefixes(self) -> List[str]:
        return list(self._watchers)


__all__ = [
    "ChangeCallback",
    "ChangeNotifier",
    "Dispatcher",
    "WatchRegistry",
    "dispatch",
    "invoke_isolated",
]
