from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Iterator, List, Tuple, Union

from .errors import ResolverError


logger = logging.getLogger(__name__)

MARKER_PREFIX = "secure:"

JsonScalar = Union[str, int, float, bool, None]
JsonValue = Union[Dict[str, Any], List[Any], JsonScalar]
Container = Union[Dict[Any, Any], List[Any]]
Resolve = Callable[[str], str]


def is_marker(s: str) -> bool:
    """Return True if `s` is an encrypted marker (`secure:` at offset 0, case-sensitive)."""
    return s.startswith(MARKER_PREFIX)


def extract_token(s: str) -> str:
    """Return the token of a marker: everything after the first colon.

    The token is opaque and may be empty or contain further colons:
    "secure:a:b:c" -> "a:b:c", "secure:" -> "".
    """
    return s.split(":", 1)[1]


def _key_path(parent: str, key: Any) -> str:
    key = str(key)
    if key.isidentifier():
        return f"{parent}.{key}"
    escaped = key.replace("\\", "\\\\").replace("'", "\\'")
    return f"{parent}['{escaped}']"


def walk(value: JsonValue, resolve: Resolve) -> JsonValue:
    """
    Return a copy of `value` with every marker leaf replaced by its plaintext.

    - Objects and arrays are rebuilt; keys, key order and element order are
      preserved. Containers are never candidates themselves.
    - Strings starting with `secure:` are resolved via `resolve(token)` and the
      result replaces the whole string. Other strings pass through.
    - Numbers, booleans and null pass through unchanged.

    Resolution is sequential. The first failing `resolve` call aborts the walk;
    `ResolverError`s are tagged with the location of the failing marker.
    The input value is never mutated.
    """
    if not isinstance(value, (dict, list)):
        return _leaf(value, resolve, "$")

    # Iterative, so depth is not bound by the recursion limit. Child containers
    # are inserted into their parent before they are filled.
    root = _empty_like(value)
    stack: List[Tuple[Iterator[Tuple[Any, Any]], Container, str]] = [
        (_children(value), root, "$")
    ]
    while stack:
        children, out, path = stack[-1]
        entry = next(children, None)
        if entry is None:
            stack.pop()
            continue
        key, item = entry
        item_path = _child_path(out, path, key)
        if isinstance(item, (dict, list)):
            child = _empty_like(item)
            _put(out, key, child)
            stack.append((_children(item), child, item_path))
        else:
            _put(out, key, _leaf(item, resolve, item_path))
    return root


def _empty_like(value: Container) -> Container:
    return {} if isinstance(value, dict) else []


def _children(value: Container) -> Iterator[Tuple[Any, Any]]:
    if isinstance(value, dict):
        return iter(value.items())
    return iter(enumerate(value))


def _child_path(container: Container, path: str, key: Any) -> str:
    if isinstance(container, dict):
        return _key_path(path, key)
    return f"{path}[{key}]"


def _put(out: Container, key: Any, item: Any) -> None:
    if isinstance(out, dict):
        out[key] = item
    else:
        out.append(item)


def _check_scalar(value: Any, path: str) -> None:
    if value is None or isinstance(value, (str, bool, int, float)):
        return
    raise TypeError(f"Unsupported JSON value type at {path}: {type(value).__name__}")


def _leaf(value: JsonScalar, resolve: Resolve, path: str) -> JsonScalar:
    _check_scalar(value, path)
    if isinstance(value, str) and is_marker(value):
        return _resolve_leaf(value, resolve, path)
    return value


def _resolve_leaf(marker: str, resolve: Resolve, path: str) -> str:
    logger.debug("Resolving marker at %s", path)
    try:
        return resolve(extract_token(marker))
    except ResolverError as exc:
        if exc.path is None:
            exc.path = path
        raise


def _iter_leaves(value: JsonValue) -> Iterator[Tuple[str, JsonScalar]]:
    """Yield `(path, scalar)` for every leaf in traversal order, iteratively."""
    if not isinstance(value, (dict, list)):
        _check_scalar(value, "$")
        yield "$", value
        return
    stack: List[Tuple[Iterator[Tuple[Any, Any]], Container, str]] = [
        (_children(value), value, "$")
    ]
    while stack:
        children, node, path = stack[-1]
        entry = next(children, None)
        if entry is None:
            stack.pop()
            continue
        key, item = entry
        item_path = _child_path(node, path, key)
        if isinstance(item, (dict, list)):
            stack.append((_children(item), item, item_path))
        else:
            _check_scalar(item, item_path)
            yield item_path, item


def find_markers(value: JsonValue) -> List[str]:
    """List the locations of all marker leaves, in traversal order, without resolving."""
    return [
        path
        for path, leaf in _iter_leaves(value)
        if isinstance(leaf, str) and is_marker(leaf)
    ]


__all__ = [
    "MARKER_PREFIX",
    "JsonValue",
    "extract_token",
    "find_markers",
    "is_marker",
    "walk",
]
