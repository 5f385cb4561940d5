"""
Field Path Helpers.

Dotted-path access over a configuration tree (e.g. ``"server.http.port"``).
Mappings are addressed by key and lists by their integer index.
"""

from __future__ import annotations

import copy
from typing import Any, Dict, List, Mapping, Optional, Union

_MISSING = object()


def split_path(field_path: str) -> List[str]:
    """Split a dotted field path into its segments."""
    return field_path.split(".") if field_path else []


def _list_index(segment: str) -> Optional[int]:
    """Return the list index named by an ASCII-digit segment, else None."""
    if segment.isascii() and segment.isdigit():
        return int(segment)
    return None


def _child(node: Any, segment: str) -> Any:
    if isinstance(node, Mapping):
        return node.get(segment, _MISSING)
    index = _list_index(segment)
    if isinstance(node, list) and index is not None:
        return node[index] if index < len(node) else _MISSING
    return _MISSING


def get_field(tree: Mapping[str, Any], field_path: str) -> Optional[Any]:
    """
    Resolve a dotted path against a tree.

    Args:
        tree: Configuration tree to look into.
        field_path: Dotted path of the field.

    Returns:
        The value stored at the path, or None if any segment does not exist.
        The value is returned by reference: callers copy it when needed.
    """
    segments = split_path(field_path)
    if not segments:
        return None

    node: Any = tree
    for segment in segments:
        node = _child(node, segment)
        if node is _MISSING:
            return None
    return node


def set_field(tree: Mapping[str, Any], field_path: str, value: Any) -> Dict[str, Any]:
    """
    Return a copy of ``tree`` with ``value`` stored at ``field_path``.

    Missing intermediate nodes are created as mappings, and intermediate
    scalars are replaced by mappings. Numeric segments index into existing
    lists (appending when the index equals the list length).

    Args:
        tree: Source tree, left untouched.
        field_path: Dotted path of the field to set.
        value: Value to store (deep-copied).

    Returns:
        A new, independent tree.

    Raises:
        ValueError: If the field path is empty or the list index is out of range.
    """
    segments = split_path(field_path)
    if not segments or any(segment == "" for segment in segments):
        raise ValueError(f"Invalid field path: {field_path!r}")

    result: Dict[str, Any] = copy.deepcopy(dict(tree))
    node: Union[Dict[str, Any], List[Any]] = result
    for position, segment in enumerate(segments):
        last = position == len(segments) - 1
        if isinstance(node, list):
            index = _list_index(segment)
            if index is None or index > len(node):
                raise ValueError(
                    f"List index {segment!r} out of range in field path {field_path!r}"
                )
            if index == len(node):
                node.append({})
            if last:
                node[index] = copy.deepcopy(value)
                break
            if not isinstance(node[index], (dict, list)):
                node[index] = {}
            node = node[index]
            continue

        if last:
            node[segment] = copy.deepcopy(value)
            break
        child = node.get(segment)
        if not isinstance(child, (dict, list)):
            child = {}
            node[segment] = child
        node = child

    return result


def limit_depth(value: Any, depth: int) -> Any:
    """
    Return a depth-limited snapshot of ``value``.

    Mappings found ``depth`` levels below ``value`` are replaced by the list
    of their keys; ``depth=0`` returns the keys of ``value`` itself.
    Non-mapping values are returned unchanged.
    """
    if not isinstance(value, Mapping):
        return value
    if depth <= 0:
        return list(value.keys())
    return {key: limit_depth(child, depth - 1) for key, child in value.items()}
