"""Helpers for plain configuration trees.

Purpose
-------
A configuration tree is a nested structure of mappings, sequences, and
scalars. The helpers below clone and read such trees without relying on
``copy.deepcopy`` so read-only mapping proxies and tuples keep their shape.

Contents
--------
* :func:`deepcopy_tree` – recursive clone returning mutable mappings.
* :func:`deepcopy_mapping` – mapping-specialised variant used by the document.
* :func:`lookup` – dotted-path read with a default.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any


def deepcopy_mapping(mapping: Mapping[str, Any]) -> dict[str, Any]:
    """Recursively clone a mapping so callers receive a mutable copy.

    Examples
    --------
    >>> deepcopy_mapping({"a": {"b": 1}})["a"]["b"]
    1
    """

    result: dict[str, Any] = {}
    for key, value in mapping.items():
        if isinstance(value, Mapping):
            result[key] = deepcopy_mapping(value)
        elif isinstance(value, list):
            result[key] = [deepcopy_tree(item) for item in value]
        else:
            result[key] = deepcopy_tree(value)
    return result


def deepcopy_tree(value: Any) -> Any:
    """Clone nested values while preserving container types where practical.

    Examples
    --------
    >>> deepcopy_tree({"nested": [1, 2]})
    {'nested': [1, 2]}
    >>> deepcopy_tree(("a", "b"))
    ('a', 'b')
    """

    if isinstance(value, Mapping):
        return deepcopy_mapping(value)
    if isinstance(value, list):
        return [deepcopy_tree(item) for item in value]
    if isinstance(value, (set, tuple)):
        iterable = [deepcopy_tree(item) for item in value]
        return type(value)(iterable)
    return value


def lookup(tree: Any, dotted: str, default: Any = None) -> Any:
    """Resolve *dotted* within *tree*, returning *default* when missing.

    Numeric segments index into lists.

    Examples
    --------
    >>> lookup({"db": {"hosts": ["a", "b"]}}, "db.hosts.1")
    'b'
    >>> lookup({"db": {}}, "db.port", default=5432)
    5432
    """

    current: Any = tree
    for part in dotted.split("."):
        if isinstance(current, Mapping):
            if part not in current:
                return default
            current = current[part]
        elif isinstance(current, list) and part.isdigit() and int(part) < len(current):
            current = current[int(part)]
        else:
            return default
    return current
