"""
Path flattening for flatdoc documents.

A nested mapping is stored as one (path, value) row per terminal value,
where the path is the chain of keys from the root joined with '.'.

Example:
    >>> flatten({"user": {"name": "John", "age": 25}})
    [('user.name', 'John'), ('user.age', '25')]

Two resolution strategies are provided:
    - flatten(): every terminal keyed on its full key chain
    - first_match_paths(): resolves each terminal key NAME to the first
      match in traversal order, dropping later terminals that share the
      name. Kept for stores written with that layout.

Invariants:
    - Keys are stringified before joining
    - Empty sub-mappings produce no rows
    - Values are stored as strings (None stays NULL), so reads are lossy
      for non-string leaves
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from .errors import AmbiguousPathError

SEPARATOR = "."


def coerce_value(value: Any) -> str | None:
    """Convert a terminal value to its stored representation."""
    if value is None:
        return None
    return str(value)


def flatten(mapping: Mapping[Any, Any]) -> list[tuple[str, str | None]]:
    """Flatten a nested mapping into (path, value) pairs.

    Pairs come out in depth-first, first-encountered order.

    Args:
        mapping: Nested mapping of scalars and mappings

    Returns:
        One (dotted path, coerced value) pair per terminal value

    Raises:
        AmbiguousPathError: If two key chains join to the same path,
            e.g. {"a.b": 1, "a": {"b": 2}}
    """
    pairs: list[tuple[str, str | None]] = []
    seen: set[str] = set()

    def walk(node: Mapping[Any, Any], prefix: list[str]) -> None:
        for key, value in node.items():
            chain = prefix + [str(key)]
            if isinstance(value, Mapping):
                walk(value, chain)
                continue

            path = SEPARATOR.join(chain)
            if path in seen:
                raise AmbiguousPathError(path)
            seen.add(path)
            pairs.append((path, coerce_value(value)))

    walk(mapping, [])
    return pairs


def terminal_keys(mapping: Mapping[Any, Any]) -> list[str]:
    """Collect terminal key names depth-first, each name once."""
    names: list[str] = []

    def walk(node: Mapping[Any, Any]) -> None:
        for key, value in node.items():
            if isinstance(value, Mapping):
                walk(value)
            elif str(key) not in names:
                names.append(str(key))

    walk(mapping)
    return names


def path_to(
    mapping: Mapping[Any, Any],
    key: Any,
    prefix: Sequence[str] = (),
) -> tuple[list[str], Any] | None:
    """Find the first terminal named `key` in traversal order.

    Args:
        mapping: Mapping to search
        key: Terminal key name (compared as a string)
        prefix: Key chain already walked to reach `mapping`

    Returns:
        (key chain, value) of the first match, or None
    """
    wanted = str(key)
    for k, v in mapping.items():
        chain = list(prefix) + [str(k)]
        if isinstance(v, Mapping):
            found = path_to(v, wanted, chain)
            if found is not None:
                return found
        elif str(k) == wanted:
            return chain, v
    return None


def first_match_paths(mapping: Mapping[Any, Any]) -> list[tuple[str, str | None]]:
    """Flatten by resolving each terminal key name to its first match.

    Given {"a": {"id": 1}, "b": {"id": 2}}, only ("a.id", "1") is produced;
    "b.id" shares the name "id" and is dropped.
    """
    pairs = []
    for key in terminal_keys(mapping):
        found = path_to(mapping, key)
        if found is None:
            continue
        chain, value = found
        pairs.append((SEPARATOR.join(chain), coerce_value(value)))
    return pairs


def join_path(key: Any, path: str | Sequence[Any] | None = None) -> str:
    """Build the stored path for `key` under an optional parent path.

    Args:
        key: Terminal key
        path: Parent path as a dotted string or a sequence of segments

    Returns:
        The dotted path

    Raises:
        TypeError: If path is neither a string nor a sequence
    """
    if path is None:
        return str(key)
    if isinstance(path, str):
        return f"{path}{SEPARATOR}{key}"
    if isinstance(path, Sequence):
        return SEPARATOR.join([str(segment) for segment in path] + [str(key)])
    raise TypeError(f"path must be a string or a sequence, got {type(path).__name__}")


def unflatten(pairs: Iterable[tuple[str, Any]]) -> dict[str, Any]:
    """Rebuild a nested dict from (path, value) pairs.

    Raises:
        AmbiguousPathError: If a path is both a leaf and a parent
    """
    root: dict[str, Any] = {}
    for path, value in pairs:
        *parents, leaf = path.split(SEPARATOR)
        node = root
        for segment in parents:
            child = node.setdefault(segment, {})
            if not isinstance(child, dict):
                raise AmbiguousPathError(path)
            node = child
        if isinstance(node.get(leaf), dict):
            raise AmbiguousPathError(path)
        node[leaf] = value
    return root
