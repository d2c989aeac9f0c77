"""Bounded depth-first search over opaque render trees.

Nodes are whatever the host hands us: mappings, plain objects, namespaces.
Children are reached through the "walkable" keys (mapping key or attribute
of the same name). A child slot may hold nothing, a single node, a
list/tuple, or lists nested inside lists. Lists are containers only; they
are flattened in order and never passed to the predicate. Strings and bytes
are leaves.

Found nodes are returned by reference. Feature code may set these fields
on them and nothing else:

    onClick, onContextMenu   handler slots
    className                space separated class string

Structural fields (type, key, children) belong to the host.
"""
from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Callable, Iterable, Iterator, Sequence, Tuple

from augment import metrics

Predicate = Callable[[Any], Any]

DEFAULT_WALKABLE: Tuple[str, ...] = ("props", "children")
DEFAULT_MAX_DEPTH = 100
MUTABLE_FIELDS = frozenset({"onClick", "onContextMenu", "className"})

# Errors a predicate raises when it pokes at a node of the wrong shape.
_MISS_ERRORS = (AttributeError, KeyError, TypeError, IndexError)

_MISSING = object()


def _read(obj: Any, key: str) -> Any:
    if isinstance(obj, Mapping):
        return obj.get(key, _MISSING)
    if isinstance(obj, (str, bytes, list, tuple)) or obj is None:
        return _MISSING
    return getattr(obj, key, _MISSING)


def get_path(obj: Any, *path: str, default: Any = None) -> Any:
    """Optional-chaining read: get_path(node, "props", "className")."""
    cur = obj
    for key in path:
        cur = _read(cur, key)
        if cur is _MISSING or cur is None:
            return default
    return cur


def set_field(node: Any, key: str, value: Any) -> None:
    """Write one of MUTABLE_FIELDS on a live node (mapping or object)."""
    if key not in MUTABLE_FIELDS:
        raise KeyError(f"'{key}' is not a mutable render field")
    if isinstance(node, Mapping):
        node[key] = value  # type: ignore[index]
    else:
        setattr(node, key, value)


def _flatten(value: Any, seen: set[int]) -> Iterator[Any]:
    if value is None or value is _MISSING:
        return
    if isinstance(value, (list, tuple)):
        if id(value) in seen:
            return
        seen.add(id(value))
        for item in value:
            yield from _flatten(item, seen)
        return
    yield value


def _matches(node: Any, predicate: Predicate) -> bool:
    try:
        return bool(predicate(node))
    except _MISS_ERRORS:
        return False


def find_in_tree(
    root: Any,
    predicate: Predicate,
    max_depth: int | None = None,
    walkable: Sequence[str] = DEFAULT_WALKABLE,
) -> Any | None:
    """Return the first node (pre-order) for which predicate is truthy.

    Depth counts walkable hops from root (root is depth 0); nothing deeper
    than max_depth is visited. Objects seen once are never entered again,
    so cyclic structures terminate. Returns None when nothing matches.
    """
    limit = DEFAULT_MAX_DEPTH if max_depth is None else max_depth
    seen: set[int] = set()
    visited = 0
    # Explicit stack: (node, depth). Children pushed reversed to keep order.
    stack: list[tuple[Any, int]] = [
        (n, 0) for n in reversed(list(_flatten(root, seen)))
    ]
    while stack:
        node, depth = stack.pop()
        if id(node) in seen:
            continue
        seen.add(id(node))
        visited += 1
        if _matches(node, predicate):
            metrics.observe("tree_search_visited", visited, {"outcome": "hit"})
            return node
        if depth >= limit or isinstance(node, (str, bytes)):
            continue
        children: list[Any] = []
        for key in walkable:
            children.extend(_flatten(_read(node, key), seen))
        stack.extend((c, depth + 1) for c in reversed(children))
    metrics.observe("tree_search_visited", visited, {"outcome": "miss"})
    return None


def iter_tree(
    root: Any,
    max_depth: int | None = None,
    walkable: Sequence[str] = DEFAULT_WALKABLE,
) -> Iterable[Any]:
    """All reachable nodes in search order (debug helper)."""
    found: list[Any] = []

    def _collect(node: Any) -> bool:
        found.append(node)
        return False

    find_in_tree(root, _collect, max_depth=max_depth, walkable=walkable)
    return found


__all__ = [
    "find_in_tree",
    "get_path",
    "set_field",
    "iter_tree",
    "DEFAULT_WALKABLE",
    "DEFAULT_MAX_DEPTH",
    "MUTABLE_FIELDS",
]
