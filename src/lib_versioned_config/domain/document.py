"""The persisted unit of configuration: one document per key.

Purpose
-------
Model the ``meta`` / environment split of a stored configuration document
without any I/O. Adapters parse files into plain mappings and hand them to
:meth:`ConfigDocument.from_mapping`; the store serialises
:meth:`ConfigDocument.to_mapping` back to disk.

Contents
--------
* :data:`PRODUCTION` / :data:`META` – well-known names.
* :class:`ConfigDocument` – migration marker plus ordered environment overlays.

System Role
-----------
The resolution cache memoises :class:`ConfigDocument` instances; the migration
engine mutates them in place; the environment resolver reads overlays from them.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from .errors import InvalidFormat
from .tree import deepcopy_mapping

PRODUCTION = "production"
"""Fallback environment every document starts with."""

META = "meta"
"""Reserved top-level key holding ``{"version": str | None}``."""


@dataclass(slots=True)
class ConfigDocument:
    """Migration marker plus one configuration overlay per environment.

    Attributes
    ----------
    meta_version:
        Highest migration version already applied, ``None`` when never migrated.
    environments:
        Insertion-ordered mapping from environment name to overlay tree. The
        name ``meta`` never appears here.

    Examples
    --------
    >>> doc = ConfigDocument.empty()
    >>> doc.meta_version is None, doc.environments
    (True, {'production': {}})
    >>> doc.to_mapping()
    {'meta': {'version': None}, 'production': {}}
    """

    meta_version: str | None = None
    environments: dict[str, dict[str, Any]] = field(default_factory=dict)

    @classmethod
    def empty(cls) -> ConfigDocument:
        """Return the canonical document used when no file exists yet."""

        return cls(meta_version=None, environments={PRODUCTION: {}})

    @classmethod
    def from_mapping(cls, payload: object, *, source: str | None = None) -> ConfigDocument:
        """Parse the persisted shape into a document.

        Files written before migrations existed carry no ``meta`` block; they
        are accepted with ``meta_version=None``.

        Raises
        ------
        InvalidFormat
            When *payload*, its ``meta`` block, or any overlay is not a mapping.

        Examples
        --------
        >>> doc = ConfigDocument.from_mapping({"production": {"debug": False}})
        >>> doc.meta_version is None, doc.environments["production"]
        (True, {'debug': False})
        >>> ConfigDocument.from_mapping({"meta": {"version": "1.2.0"}, "staging": {}}).meta_version
        '1.2.0'
        """

        where = f" in {source}" if source else ""
        if not isinstance(payload, Mapping):
            raise InvalidFormat(f"Config document{where} is not a mapping")

        meta = payload.get(META, {})
        if meta is None:
            meta = {}
        if not isinstance(meta, Mapping):
            raise InvalidFormat(f"Config document{where} has a malformed '{META}' block")
        version = meta.get("version")

        environments: dict[str, dict[str, Any]] = {}
        for name, overlay in payload.items():
            if name == META:
                continue
            if overlay is None:
                overlay = {}
            if not isinstance(overlay, Mapping):
                raise InvalidFormat(f"Environment '{name}'{where} is not a mapping")
            environments[str(name)] = deepcopy_mapping(overlay)

        return cls(meta_version=None if version is None else str(version), environments=environments)

    def to_mapping(self) -> dict[str, Any]:
        """Return the persisted shape: ``meta`` first, then overlays in order."""

        payload: dict[str, Any] = {META: {"version": self.meta_version}}
        for name, overlay in self.environments.items():
            payload[name] = deepcopy_mapping(overlay)
        return payload

    def copy(self) -> ConfigDocument:
        """Return an independent deep copy."""

        return ConfigDocument(
            meta_version=self.meta_version,
            environments={name: deepcopy_mapping(tree) for name, tree in self.environments.items()},
        )
