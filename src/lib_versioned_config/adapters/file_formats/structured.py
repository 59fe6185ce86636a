"""Structured file formats for persisted configuration documents.

Purpose
-------
Convert on-disk artifacts into Python mappings and back. Formats are small
wrappers around ``json`` and ``yaml.safe_load`` / ``yaml.safe_dump`` so error
handling and observability live in one place.

Contents
--------
* :class:`BaseFileFormat` – shared helpers for reading files and validating
  mapping outputs.
* :class:`JSONFileFormat` – the default format.
* :class:`YAMLFileFormat` – optional format (only available when PyYAML is
  installed).
* :data:`FILE_FORMATS` / :func:`format_for` – suffix lookup.

System Role
-----------
Used by :class:`lib_versioned_config.adapters.store.default.FileDocumentStore`
to parse and serialise documents. TOML is not offered because it cannot
represent the ``null`` migration marker.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Mapping

from ...domain.errors import InvalidFormat, NotFound
from ...observability import log_debug, log_error

try:
    import yaml  # type: ignore[import-not-found]
except ModuleNotFoundError:  # pragma: no cover - optional dependency
    yaml = None  # type: ignore[assignment]


class BaseFileFormat:
    """Common utilities shared by the structured file formats."""

    suffixes: tuple[str, ...] = ()

    def _read(self, path: str) -> bytes:
        """Read *path* as bytes, raising :class:`NotFound` when the file is missing.

        Side Effects
        ------------
        Emits ``config_file_read`` debug events.
        """

        file_path = Path(path)
        if not file_path.is_file():
            raise NotFound(f"Configuration file not found: {path}")
        payload = file_path.read_bytes()
        log_debug("config_file_read", path=path, size=len(payload))
        return payload

    @staticmethod
    def _ensure_mapping(data: object, *, path: str) -> Mapping[str, object]:
        """Ensure *data* behaves like a mapping, otherwise raise ``InvalidFormat``.

        Examples
        --------
        >>> BaseFileFormat._ensure_mapping({"key": 1}, path="demo")
        {'key': 1}
        >>> BaseFileFormat._ensure_mapping(42, path="demo")
        Traceback (most recent call last):
        ...
        lib_versioned_config.domain.errors.InvalidFormat: File demo did not produce a mapping
        """

        if not isinstance(data, Mapping):
            raise InvalidFormat(f"File {path} did not produce a mapping")
        return data  # type: ignore[return-value]


class JSONFileFormat(BaseFileFormat):
    """Read and write JSON documents."""

    suffixes = (".json",)

    def load(self, path: str) -> Mapping[str, object]:
        """Return mapping extracted from JSON file at *path*.

        Examples
        --------
        >>> from tempfile import NamedTemporaryFile
        >>> tmp = NamedTemporaryFile('w', delete=False, encoding='utf-8')
        >>> _ = tmp.write('{"production": {"enabled": true}}')
        >>> tmp.close()
        >>> JSONFileFormat().load(tmp.name)["production"]["enabled"]
        True
        >>> Path(tmp.name).unlink()
        """

        try:
            data = json.loads(self._read(path))
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            log_error("config_file_invalid", path=path, format="json", error=str(exc))
            raise InvalidFormat(f"Invalid JSON in {path}: {exc}") from exc
        result = self._ensure_mapping(data, path=path)
        log_debug("config_file_loaded", path=path, format="json")
        return result

    def dump(self, payload: Mapping[str, Any]) -> str:
        """Serialise *payload* preserving key order.

        Examples
        --------
        >>> print(JSONFileFormat().dump({"meta": {"version": None}}), end="")
        {
          "meta": {
            "version": null
          }
        }
        """

        return json.dumps(payload, indent=2, ensure_ascii=False) + "\n"


class YAMLFileFormat(BaseFileFormat):
    """Read and write YAML documents when PyYAML is available."""

    suffixes = (".yaml", ".yml")

    def load(self, path: str) -> Mapping[str, object]:
        """Return mapping extracted from YAML file at *path*.

        Raises
        ------
        NotFound
            When PyYAML is not installed.
        """

        _require_yaml()
        try:
            data = yaml.safe_load(self._read(path))  # type: ignore[union-attr]
        except yaml.YAMLError as exc:  # type: ignore[union-attr]
            log_error("config_file_invalid", path=path, format="yaml", error=str(exc))
            raise InvalidFormat(f"Invalid YAML in {path}: {exc}") from exc
        if data is None:
            data = {}
        result = self._ensure_mapping(data, path=path)
        log_debug("config_file_loaded", path=path, format="yaml")
        return result

    def dump(self, payload: Mapping[str, Any]) -> str:
        _require_yaml()
        return yaml.safe_dump(dict(payload), sort_keys=False, allow_unicode=True)  # type: ignore[union-attr]


FILE_FORMATS: dict[str, JSONFileFormat | YAMLFileFormat] = {
    suffix: file_format for file_format in (JSONFileFormat(), YAMLFileFormat()) for suffix in file_format.suffixes
}
"""Supported formats keyed by lower-case suffix."""


def format_for(suffix: str) -> JSONFileFormat | YAMLFileFormat:
    """Return the format registered for *suffix* (with or without leading dot).

    Examples
    --------
    >>> type(format_for("json")).__name__
    'JSONFileFormat'
    """

    normalized = "." + suffix.lower().lstrip(".")
    try:
        return FILE_FORMATS[normalized]
    except KeyError as exc:
        raise ValueError(f"Unsupported config file suffix {suffix!r}; expected one of {sorted(FILE_FORMATS)}") from exc


def _require_yaml() -> None:
    if yaml is None:
        raise NotFound("PyYAML is required for YAML configuration support")
