"""Migration engine.

Purpose
-------
Upgrade a configuration document in place by running every migration newer
than the document's recorded version against each environment overlay. The
module performs no I/O; the caller persists the document when the returned
``changed`` flag is set.

Contents
    - ``apply_migrations``: public entry point.
    - ``_migrate_overlays``: runs one transform over every overlay.

System Role
-----------
Called by :class:`lib_versioned_config.core.ConfigResolver` between loading a
document from the store and saving it back.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Iterable

from ..domain.document import META, ConfigDocument
from ..domain.errors import InvalidMigrationResult
from ..domain.migration import BASE_VERSION, Migration, compare_versions, ensure_stored_version
from ..domain.tree import deepcopy_mapping
from ..observability import log_debug


def apply_migrations(
    document: ConfigDocument,
    migrations: Iterable[Migration | Mapping[str, Any]],
    *,
    key: str | None = None,
) -> tuple[ConfigDocument, bool]:
    """Apply pending *migrations* to *document* and report whether it changed.

    Why
    ----
    Providers version their own schema; documents written by older releases
    must be upgraded transparently the first time they are read.

    What
    ----
    Migrations run in the order given; the engine never sorts them. Each one is
    skipped when the document's version at the start of the pass is already at
    or above the migration's version. The final ``meta_version`` is the version
    of the last migration applied in this pass.

    Parameters
    ----------
    document:
        Document to upgrade; mutated in place and returned.
    migrations:
        :class:`Migration` records or ``{"version", "migration"}`` mappings.
    key:
        Optional document key, used for log events and error messages.

    Returns
    -------
    tuple[ConfigDocument, bool]
        The (same) document and ``True`` when at least one migration ran.

    Raises
    ------
    InvalidMigrationFormat
        When any supplied migration is malformed; raised before any transform
        runs.
    InvalidFormat
        When migrations are supplied and the document records a version that
        cannot be parsed.
    InvalidMigrationResult
        When a transform returns a non-mapping. Overlays already transformed
        stay mutated in memory; nothing has been persisted.

    Examples
    --------
    >>> doc = ConfigDocument.empty()
    >>> steps = [Migration("1.0", lambda tree, env: {**tree, "retries": 3})]
    >>> doc, changed = apply_migrations(doc, steps)
    >>> changed, doc.meta_version, doc.environments["production"]
    (True, '1.0', {'retries': 3})
    >>> apply_migrations(doc, steps)[1]
    False
    """

    ordered = [Migration.coerce(candidate) for candidate in migrations]
    if ordered:
        ensure_stored_version(document.meta_version, source=key)
    starting_version = document.meta_version or BASE_VERSION

    latest: str | None = None
    for migration in ordered:
        if compare_versions(starting_version, migration.version) >= 0:
            continue
        _migrate_overlays(document, migration)
        latest = migration.version
        log_debug("migration_applied", key=key, version=migration.version)

    if latest is None:
        return document, False

    previous = document.meta_version
    document.meta_version = latest
    log_debug("migrations_completed", key=key, previous=previous, version=latest)
    return document, True


def _migrate_overlays(document: ConfigDocument, migration: Migration) -> None:
    """Replace every overlay with ``migration.transform(overlay, name)``."""

    for name in list(document.environments):
        if name == META:
            continue
        result = migration.transform(deepcopy_mapping(document.environments[name]), name)
        if not isinstance(result, Mapping):
            raise InvalidMigrationResult(
                f"Migration {migration.version} returned {type(result).__name__} for environment '{name}'; "
                "config must be a mapping"
            )
        document.environments[name] = deepcopy_mapping(result)
