"""Read-time placeholder substitution.

Purpose
-------
Replace ``{{source.path|default}}`` placeholders at configured paths of an
overlay with values taken from the process environment, server variables, or
session state, coerced to the declared scalar type. Stored documents are never
rewritten; substitution happens on every read.

Contents
    - ``substitute``: replace one path (with ``*`` wildcard fan-out).
    - ``apply_templating``: apply an ordered list of rules left-to-right.
    - ``normalize_templating``: accept the loose rule shapes providers declare.
    - ``resolve_placeholder`` / ``coerce``: the two halves of rendering a leaf.

System Role
-----------
Pure functions over plain trees; the resolution cache calls
:func:`apply_templating` after selecting the environment overlay.
"""

from __future__ import annotations

import math
import re
from collections.abc import Mapping
from typing import Any, Iterable

from ..domain.errors import UnsupportedTypeError, WildcardOnNonContainerError

VALUE_TYPES: tuple[str, ...] = ("string", "int", "float", "bool")
SOURCE_NAMES: tuple[str, ...] = ("env", "server", "session")
WILDCARD = "*"

_PLACEHOLDER = re.compile(r"^\{\{.+\}\}$")

TemplateRule = tuple[str, str]


def substitute(
    tree: Any,
    path: str,
    value_type: str = "string",
    sources: Mapping[str, Any] | None = None,
) -> Any:
    """Return *tree* with the placeholder at *path* rendered as *value_type*.

    Why
    ----
    Secrets and host-specific values live in the environment, not in the
    committed document; placeholders let the document point at them.

    What
    ----
    Containers along *path* are rebuilt so *tree* itself is never mutated;
    branches off the path are shared with the input. A ``*`` segment applies
    the remaining path to every value of a mapping or item of a sequence.
    Missing keys and non-placeholder leaves leave the tree unchanged.

    Raises
    ------
    UnsupportedTypeError
        When *value_type* is not one of :data:`VALUE_TYPES`.
    WildcardOnNonContainerError
        When ``*`` meets a scalar.

    Examples
    --------
    >>> substitute({"a": {"b": "{{env.FOO|bar}}"}}, "a.b", "string", {"env": {}})
    {'a': {'b': 'bar'}}
    >>> substitute({"a": {"b": "{{env.FOO|bar}}"}}, "a.b", "string", {"env": {"FOO": "baz"}})
    {'a': {'b': 'baz'}}
    >>> substitute({"items": [{"x": "{{env.V|1}}"}, {"x": "{{env.V|1}}"}]}, "items.*.x", "int", {"env": {}})
    {'items': [{'x': 1}, {'x': 1}]}
    """

    _ensure_value_type(value_type)
    return _substitute(tree, path.split("."), value_type, sources or {})


def apply_templating(tree: Any, rules: Any, sources: Mapping[str, Any] | None = None) -> Any:
    """Apply every rule in order; later rules see the output of earlier ones.

    Examples
    --------
    >>> apply_templating({"port": "{{env.PORT|80}}"}, [("port", "int")], {"env": {"PORT": "8080"}})
    {'port': 8080}
    """

    for path, value_type in normalize_templating(rules):
        tree = substitute(tree, path, value_type, sources)
    return tree


def normalize_templating(rules: Any) -> list[TemplateRule]:
    """Return *rules* as a list of stripped ``(path, value_type)`` pairs.

    Accepted shapes: a sequence mixing bare path strings (typed ``string``)
    and ``(path, value_type)`` pairs, or a mapping ``{path: value_type}``.
    Blank paths are dropped.

    Examples
    --------
    >>> normalize_templating(["db.host", ("db.port", "int"), "  "])
    [('db.host', 'string'), ('db.port', 'int')]
    >>> normalize_templating({"debug": "bool"})
    [('debug', 'bool')]
    """

    if not rules:
        return []
    if isinstance(rules, str):
        entries: Iterable[Any] = [rules]
    elif isinstance(rules, Mapping):
        entries = [_mapping_entry(path, value_type) for path, value_type in rules.items()]
    else:
        entries = rules

    normalized: list[TemplateRule] = []
    for entry in entries:
        path, value_type = _split_rule(entry)
        path = path.strip()
        if not path:
            continue
        _ensure_value_type(value_type)
        normalized.append((path, value_type))
    return normalized


def resolve_placeholder(placeholder: str, sources: Mapping[str, Any]) -> Any:
    """Look up the value a ``{{...}}`` placeholder refers to.

    The body splits on the first ``|`` into reference and default (``None``
    when absent). The reference's first segment picks the source table; an
    unknown table behaves like an empty one. The default is returned as soon
    as a segment is missing, and also when the reference lands on a container.

    Examples
    --------
    >>> resolve_placeholder("{{session.user.locale|en}}", {"session": {"user": {"locale": "it"}}})
    'it'
    >>> resolve_placeholder("{{session.user.tz}}", {"session": {"user": {}}}) is None
    True
    >>> resolve_placeholder("{{cookie.id|anon}}", {})
    'anon'
    """

    body = placeholder[2:-2]
    reference, separator, fallback = body.partition("|")
    default = fallback if separator else None

    segments = reference.split(".")
    current: Any = sources.get(segments[0]) if segments[0] in SOURCE_NAMES else None
    if current is None:
        current = {}
    for segment in segments[1:]:
        if not isinstance(current, Mapping) or segment not in current:
            return default
        current = current[segment]
    if isinstance(current, (Mapping, list, tuple)):
        return default
    return current


def coerce(value: Any, value_type: str) -> Any:
    """Convert a resolved placeholder value to *value_type*.

    Examples
    --------
    >>> coerce("42", "int"), coerce("3.7", "int"), coerce("abc", "int")
    (42, 3, 0)
    >>> coerce("2.5", "float"), coerce(None, "float")
    (2.5, 0.0)
    >>> coerce("0", "bool"), coerce("no", "bool"), coerce(None, "string")
    (False, True, '')
    """

    _ensure_value_type(value_type)
    if value_type == "string":
        return _to_string(value)
    if value_type == "int":
        return _to_int(value)
    if value_type == "float":
        return _to_float(value)
    return _to_bool(value)


def _substitute(node: Any, segments: list[str], value_type: str, sources: Mapping[str, Any]) -> Any:
    if not segments:
        return _render_leaf(node, value_type, sources)
    head, rest = segments[0], segments[1:]
    if head == WILDCARD:
        return _fan_out(node, rest, value_type, sources)
    if isinstance(node, Mapping):
        if head not in node:
            return node
        return _replace_child(node, head, _substitute(node[head], rest, value_type, sources))
    if isinstance(node, (list, tuple)) and _is_index(head, node):
        index = int(head)
        return _replace_item(node, index, _substitute(node[index], rest, value_type, sources))
    return node


def _fan_out(node: Any, rest: list[str], value_type: str, sources: Mapping[str, Any]) -> Any:
    """Apply *rest* independently to every child of *node*."""

    if isinstance(node, Mapping):
        return {key: _substitute(child, rest, value_type, sources) for key, child in node.items()}
    if isinstance(node, (list, tuple)):
        return type(node)(_substitute(child, rest, value_type, sources) for child in node)
    raise WildcardOnNonContainerError(f"Wildcard '*' cannot expand {type(node).__name__} value")


def _replace_child(node: Mapping[str, Any], key: str, value: Any) -> Any:
    if value is node[key]:
        return node
    updated = dict(node)
    updated[key] = value
    return updated


def _replace_item(node: list[Any] | tuple[Any, ...], index: int, value: Any) -> Any:
    if value is node[index]:
        return node
    updated = list(node)
    updated[index] = value
    return type(node)(updated)


def _is_index(segment: str, node: list[Any] | tuple[Any, ...]) -> bool:
    return segment.isdigit() and int(segment) < len(node)


def _render_leaf(value: Any, value_type: str, sources: Mapping[str, Any]) -> Any:
    if not isinstance(value, str) or not _PLACEHOLDER.match(value):
        return value
    return coerce(resolve_placeholder(value, sources), value_type)


def _mapping_entry(path: Any, value_type: Any) -> Any:
    # integer keys come from list-like mappings: the value is the path
    if isinstance(path, int):
        return value_type
    return (path, value_type)


def _split_rule(entry: Any) -> TemplateRule:
    if isinstance(entry, str):
        return entry, "string"
    if isinstance(entry, (tuple, list)) and len(entry) == 2:
        return str(entry[0]), str(entry[1])
    if isinstance(entry, (tuple, list)) and len(entry) == 1:
        return str(entry[0]), "string"
    raise TypeError(f"Malformed templating rule: {entry!r}")


def _ensure_value_type(value_type: str) -> None:
    if value_type not in VALUE_TYPES:
        raise UnsupportedTypeError(f"Unsupported value type in config template: {value_type!r}")


def _to_string(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _to_int(value: Any) -> int:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else 0
    if isinstance(value, str):
        text = value.strip()
        if "_" in text:
            return 0
        try:
            return int(text)
        except ValueError:
            pass
        number = _to_float(text)
        return int(number)
    return 0


def _to_float(value: Any) -> float:
    # nan, inf and "_" digit separators count as non-numeric
    if isinstance(value, (bool, int)):
        return float(value)
    if isinstance(value, float):
        return value if math.isfinite(value) else 0.0
    if isinstance(value, str) and "_" not in value:
        try:
            number = float(value.strip())
        except ValueError:
            return 0.0
        return number if math.isfinite(number) else 0.0
    return 0.0


def _to_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value not in ("", "0")
    return bool(value)
