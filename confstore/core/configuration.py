"""Hierarchical configuration store with typed accessors and change watching."""
from __future__ import annotations

import datetime as dt
import threading
from typing import IO, Any, Callable, Dict, List, TypeVar

from confstore.common.logger import logger
from confstore.core import cast
from confstore.core.cache import EMPTY_CHANGES, ResolvedKeyCache
from confstore.core.decode import DecodeOptions, decode_value
from confstore.core.errors import DecodeError, InvalidKeyError, SourceError, UnmarshalError
from confstore.core.notify import ChangeCallback, ChangeNotifier, Dispatcher, WatchRegistry, dispatch, invoke_isolated
from confstore.core.tree import assign_path, deep_search, flatten_tree, merge_tree, split_key
from confstore.core.values import Kind, Tree, Value, copy_value, kind_of, normalize, normalize_tree
from confstore.sources.loader import SourceLoader
from confstore.sources.provider import DataSource, Decoder

DEFAULT_KEY_DELIM = "."

T = TypeVar("T")


def _check_delim(delim: str) -> str:
    if not delim:
        raise ValueError("key delimiter must not be empty")
    return delim


class Configuration:
    """A merged configuration tree behind a dotted-key cache.

    Every ``load``/``set`` runs one generation under the instance lock: the
    tree is updated, re-flattened and compared against the cache. Callbacks
    for the resulting changes are handed to the dispatcher after the
    generation completes.
    """

    def __init__(
        self,
        key_delim: str = DEFAULT_KEY_DELIM,
        dispatcher: Dispatcher = dispatch,
        decode_options: DecodeOptions | None = None,
    ) -> None:
        self._lock = threading.RLock()
        self._override: Tree = {}
        self._key_delim = _check_delim(key_delim)
        self._generation = 0
        self._raw: bytes = b""
        self._cache = ResolvedKeyCache()
        self._notifier = ChangeNotifier()
        self._watchers = WatchRegistry()
        self._dispatch = dispatcher
        self._decode_options = decode_options or DecodeOptions()

    # Structure ------------------------------------------------------------------

    @property
    def key_delim(self) -> str:
        return self._key_delim

    @property
    def raw(self) -> bytes:
        """The last payload handed to :meth:`load`."""

        return self._raw

    @property
    def decode_options(self) -> DecodeOptions:
        return self._decode_options

    @property
    def generation(self) -> int:
        """Number of completed load/set generations."""

        return self._generation

    def set_key_delim(self, delim: str) -> None:
        delim = _check_delim(delim)
        with self._lock:
            self._key_delim = delim

    def sub(self, key: str) -> "Configuration":
        """Return a detached instance built from a deep copy of a subtree."""

        child = Configuration(
            key_delim=self._key_delim,
            dispatcher=self._dispatch,
            decode_options=self._decode_options,
        )
        with self._lock:
            value = self.find(key)
            if kind_of(value) is Kind.MAPPING:
                child._override = copy_value(value)  # type: ignore[assignment]
        return child

    def all_settings(self) -> Tree:
        with self._lock:
            return copy_value(self._override)  # type: ignore[return-value]

    def all_keys(self) -> List[str]:
        with self._lock:
            return sorted(flatten_tree(self._override, self._key_delim))

    # Callbacks ------------------------------------------------------------------

    def on_change(self, callback: ChangeCallback) -> None:
        """Register a callback for any change, and for the first source load."""

        with self._lock:
            self._notifier.add(callback)

    def watch(self, prefix: str, callback: ChangeCallback) -> None:
        """Register a callback for changes to keys starting with ``prefix``."""

        with self._lock:
            self._watchers.add(prefix, callback)

    def notify_loaded(self) -> None:
        """Run every ``on_change`` callback on the calling thread with no changes."""

        with self._lock:
            callbacks = self._notifier.snapshot()
        for callback in callbacks:
            invoke_isolated(callback, self, EMPTY_CHANGES)

    # Loading --------------------------------------------------------------------

    def load(self, content: bytes, decoder: Decoder) -> None:
        """Decode ``content`` and merge it into the tree."""

        self._raw = content
        try:
            payload = decoder(content)
        except DecodeError:
            raise
        except Exception as exc:
            raise DecodeError(f"failed to decode configuration: {exc}") from exc
        incoming = normalize_tree(payload)
        self._apply(lambda tree: merge_tree(tree, incoming))

    def load_from_reader(self, reader: IO[Any], decoder: Decoder) -> None:
        try:
            content = reader.read()
        except OSError as exc:
            raise SourceError(f"failed to read configuration stream: {exc}") from exc
        if isinstance(content, str):
            content = content.encode("utf-8")
        self.load(content, decoder)

    def load_from_data_source(self, source: DataSource, decoder: Decoder, **options: Any) -> SourceLoader:
        """Load ``source`` now and keep reloading it whenever it signals a change.

        Keyword options (``tag_name``, ``weakly_typed_input``, ``squash``)
        become this instance's default decode options.
        """

        if options:
            self._decode_options = self._decode_options.merged(**options)
        loader = SourceLoader(self, source, decoder)
        loader.start()
        return loader

    def set(self, key: str, value: Any) -> None:
        """Assign ``value`` at a dotted key, replacing whatever was there."""

        path = split_key(key, self._key_delim)
        leaf = normalize(value)
        self._apply(lambda tree: assign_path(tree, path, leaf))

    def _apply(self, mutate: Callable[[Tree], Any]) -> None:
        with self._lock:
            mutate(self._override)
            self._generation += 1
            generation = self._generation
            changes = self._cache.refresh(flatten_tree(self._override, self._key_delim))
            self._cache.evict_mappings()
            callbacks: List[ChangeCallback] = []
            if changes:
                callbacks = self._notifier.snapshot() + self._watchers.matching(changes)
        logger.bind(generation=generation).debug(
            "Configuration generation {} applied: {} changed keys", generation, len(changes)
        )
        for callback in callbacks:
            self._dispatch(callback, self, changes)

    # Lookup ---------------------------------------------------------------------

    def find(self, key: str) -> Value:
        """Resolve a dotted key through the cache, walking the tree on a miss.

        A cached miss is returned as ``None`` without consulting the tree.
        Containers are returned as copies; the cache keeps its own snapshot.
        """

        found, value = self._cache.lookup(key)
        if found:
            return copy_value(value)
        path = split_key(key, self._key_delim)
        with self._lock:
            value = copy_value(deep_search(self._override, path[:-1]).get(path[-1]))
            self._cache.store(key, value)
        return copy_value(value)

    def get(self, key: str) -> Value:
        return self.find(key)

    def get_string(self, key: str) -> str:
        return cast.to_string(self.find(key))

    def get_bool(self, key: str) -> bool:
        return cast.to_bool(self.find(key))

    def get_int(self, key: str) -> int:
        return cast.to_int(self.find(key))

    def get_int64(self, key: str) -> int:
        return cast.to_int(self.find(key))

    def get_float64(self, key: str) -> float:
        return cast.to_float(self.find(key))

    def get_time(self, key: str) -> dt.datetime:
        return cast.to_time(self.find(key))

    def get_duration(self, key: str) -> dt.timedelta:
        return cast.to_duration(self.find(key))

    def get_string_slice(self, key: str) -> List[str]:
        return cast.to_string_slice(self.find(key))

    def get_slice(self, key: str) -> List[Any]:
        return cast.to_slice(self.find(key))

    def get_string_map(self, key: str) -> Dict[str, Any]:
        return cast.to_string_map(self.find(key))

    def get_string_map_string(self, key: str) -> Dict[str, str]:
        return cast.to_string_map_string(self.find(key))

    def get_string_map_string_slice(self, key: str) -> Dict[str, List[str]]:
        return cast.to_string_map_string_slice(self.find(key))

    def get_slice_string_map(self, key: str) -> List[Dict[str, Any]]:
        return cast.to_slice_string_map(self.find(key))

    # Decoding -------------------------------------------------------------------

    def unmarshal_key(self, key: str, target: Any, **options: Any) -> Any:
        """Decode the value at ``key`` (the whole tree for ``""``) into ``target``.

        Raises ``InvalidKeyError`` when the key resolves to nothing and
        ``UnmarshalError`` when the value does not fit ``target``.
        """

        decode_options = self._decode_options.merged(**options)
        if key == "":
            value: Any = self.all_settings()
        else:
            value = self.find(key)
            if value is None:
                raise InvalidKeyError(key)
        return decode_value(value, target, decode_options)

    def unmarshal_with_expect(self, key: str, expect: T, **options: Any) -> T:
        """Decode ``key`` into the type of ``expect``, returning ``expect`` on failure."""

        try:
            return self.unmarshal_key(key, type(expect), **options)
        except (InvalidKeyError, UnmarshalError) as exc:
            logger.debug("Falling back to expected value for {}: {}", key, exc)
            return expect


__all__ = ["Configuration", "DEFAULT_KEY_DELIM"]
