"""Version-tagged schema migrations for configuration documents.

Purpose
-------
Describe one migration as a plain record (version plus a named transform) and
provide the semantic version ordering used to decide whether a migration has
already been applied.

Contents
--------
* :data:`Transform` – ``(overlay, environment_name) -> overlay`` callable type.
* :class:`Migration` – frozen record; :meth:`Migration.coerce` validates loose
  input.
* :func:`compare_versions` – ``-1 / 0 / 1`` comparison backed by
  :mod:`packaging.version`.
* :func:`ensure_stored_version` – rejects an unparseable version recorded in a
  document.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Callable

from packaging.version import InvalidVersion, Version

from .errors import InvalidFormat, InvalidMigrationFormat

Transform = Callable[[dict[str, Any], str], Any]

BASE_VERSION = "0.0.0"
"""Version assumed for documents that were never migrated."""


@dataclass(frozen=True, slots=True)
class Migration:
    """One schema upgrade step owned by a configuration provider.

    Attributes
    ----------
    version:
        Semantic version string (``major.minor.patch``; shorter forms allowed).
    transform:
        Pure function receiving a copy of one environment overlay and the
        environment name; must return the upgraded overlay as a mapping.

    Examples
    --------
    >>> def add_timeout(tree, env):
    ...     return {**tree, "timeout": 30}
    >>> Migration("1.0.0", add_timeout).transform({}, "production")
    {'timeout': 30}
    """

    version: str
    transform: Transform

    @classmethod
    def coerce(cls, candidate: object) -> Migration:
        """Return *candidate* as a validated :class:`Migration`.

        Accepts an instance or the mapping form ``{"version": ..., "migration": callable}``
        (``transform`` is accepted as an alias for ``migration``).

        Raises
        ------
        InvalidMigrationFormat
            When the version or transform is missing, the version cannot be
            parsed, or the transform is not callable.

        Examples
        --------
        >>> Migration.coerce({"version": "1.1", "migration": lambda tree, env: tree}).version
        '1.1'
        >>> Migration.coerce({"version": "1.1"})
        Traceback (most recent call last):
        ...
        lib_versioned_config.domain.errors.InvalidMigrationFormat: Wrong config migration format: missing transform
        """

        if isinstance(candidate, Migration):
            version, transform = candidate.version, candidate.transform
        elif isinstance(candidate, Mapping):
            version = candidate.get("version")
            transform = candidate.get("migration", candidate.get("transform"))
        else:
            raise InvalidMigrationFormat(f"Wrong config migration format: {type(candidate).__name__}")

        if not isinstance(version, str) or not version.strip():
            raise InvalidMigrationFormat("Wrong config migration format: missing version")
        if transform is None:
            raise InvalidMigrationFormat("Wrong config migration format: missing transform")
        if not callable(transform):
            raise InvalidMigrationFormat(f"Migration {version} transform is not callable")
        _parse(version)
        if isinstance(candidate, Migration):
            return candidate
        return cls(version=version.strip(), transform=transform)


def compare_versions(left: str | None, right: str | None) -> int:
    """Compare two semantic versions, treating ``None`` as ``0.0.0``.

    Examples
    --------
    >>> compare_versions(None, "0.1.0")
    -1
    >>> compare_versions("1.0", "1.0.0")
    0
    >>> compare_versions("1.10.0", "1.9.3")
    1
    """

    lhs = _parse(left or BASE_VERSION)
    rhs = _parse(right or BASE_VERSION)
    if lhs < rhs:
        return -1
    if lhs > rhs:
        return 1
    return 0


def ensure_stored_version(version: str | None, *, source: str | None = None) -> None:
    """Raise :class:`InvalidFormat` when a document records an unparseable version.

    Examples
    --------
    >>> ensure_stored_version("1.2.0")
    >>> ensure_stored_version("banana", source="mailer")
    Traceback (most recent call last):
    ...
    lib_versioned_config.domain.errors.InvalidFormat: Config document mailer records invalid version 'banana'
    """

    if not version:
        return
    try:
        Version(version)
    except InvalidVersion as exc:
        where = f" {source}" if source else ""
        raise InvalidFormat(f"Config document{where} records invalid version {version!r}") from exc


def _parse(version: str) -> Version:
    try:
        return Version(version)
    except InvalidVersion as exc:
        raise InvalidMigrationFormat(f"Invalid migration version {version!r}") from exc
