"""Nested configuration tree operations: merge, flatten, lookup and assign."""
from __future__ import annotations

from typing import Dict, Iterator, List, Sequence, Tuple

from confstore.core.values import Kind, Tree, Value, copy_value, kind_of


def merge_tree(dst: Tree, src: Tree) -> Tree:
    """Deep-merge ``src`` into ``dst`` in place and return ``dst``.

    Mappings on both sides are merged recursively; any other pairing
    (scalars, sequences, mismatched kinds) is replaced by a copy of the
    incoming value.
    """

    for key, incoming in src.items():
        current = dst.get(key)
        if key in dst and kind_of(current) is Kind.MAPPING and kind_of(incoming) is Kind.MAPPING:
            merge_tree(current, incoming)  # type: ignore[arg-type]
        else:
            dst[key] = copy_value(incoming)
    return dst


def _walk(prefix: str, node: Tree, delim: str) -> Iterator[Tuple[str, Value]]:
    for key, value in node.items():
        path = f"{prefix}{delim}{key}" if prefix else key
        if kind_of(value) is Kind.MAPPING:
            yield from _walk(path, value, delim)  # type: ignore[arg-type]
        else:
            yield path, value


def flatten_tree(tree: Tree, delim: str = ".") -> Dict[str, Value]:
    """Map every reachable leaf to its delimiter-joined path."""

    return dict(_walk("", tree, delim))


def split_key(key: str, delim: str) -> List[str]:
    return key.split(delim)


def deep_search(tree: Tree, path: Sequence[str]) -> Tree:
    """Return the mapping found by following ``path``, or an empty one."""

    node: Tree = tree
    for segment in path:
        child = node.get(segment)
        if kind_of(child) is not Kind.MAPPING:
            return {}
        node = child  # type: ignore[assignment]
    return node


def assign_path(tree: Tree, path: Sequence[str], value: Value) -> None:
    """Assign ``value`` at ``path``, creating intermediate mappings.

    An intermediate segment that is missing or holds a non-mapping value is
    replaced by an empty mapping.
    """

    node: Tree = tree
    for segment in path[:-1]:
        child = node.get(segment)
        if kind_of(child) is not Kind.MAPPING:
            child = {}
            node[segment] = child
        node = child  # type: ignore[assignment]
    node[path[-1]] = copy_value(value)


__all__ = ["assign_path", "deep_search", "flatten_tree", "merge_tree", "split_key"]
