"""Application-layer ports describing collaborator responsibilities.

Purpose
-------
Define the structural contracts the resolution cache depends on so concrete
adapters (filesystem store, Redis, in-memory cache, dotenv parser) stay
swappable and testable in isolation.

Contents
--------
* :class:`DocumentStore` – reads and atomically writes one document per key.
* :class:`DistributedCache` – cross-process fetch-or-populate with tag
  invalidation.
* :class:`ConfigProvider` – a package's migrations, key, and templating rules.
* :class:`DotEnvLoader` – parses a ``.env`` file into flat variables.

System Role
-----------
These protocols enforce Dependency Inversion. The resolution cache receives
implementations by injection and never imports an adapter directly.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable, Iterable, Mapping, Protocol, Sequence, runtime_checkable

from ..domain.document import ConfigDocument


@runtime_checkable
class DocumentStore(Protocol):
    """Persist configuration documents keyed by name.

    Why
    ----
    Keep serialisation formats and atomic-write mechanics out of the cache
    orchestration.
    """

    def path_for(self, key: str) -> Path:
        """Return the file location backing *key*."""

    def load(self, key: str) -> ConfigDocument:
        """Return the stored document or the canonical empty one; never writes."""

    def save(self, key: str, document: ConfigDocument) -> None:
        """Overwrite the stored document so readers never observe a partial file."""


@runtime_checkable
class DistributedCache(Protocol):
    """Cross-process cache shared by every worker reading configuration.

    Why
    ----
    Avoid re-reading and re-migrating documents in every process while letting
    one write invalidate every cached copy via a tag.
    """

    def is_enabled(self) -> bool:
        """Return ``True`` when the backend is configured and reachable."""

    def get_or_compute(
        self,
        cache_key: str,
        ttl: int,
        tags: Sequence[str],
        compute: Callable[[], Any],
    ) -> Any:
        """Return the cached value or store and return ``compute()``."""

    def invalidate_tag(self, tag: str) -> None:
        """Drop every entry registered under *tag*."""


@runtime_checkable
class ConfigProvider(Protocol):
    """Capability exposed by a package that owns a configuration document."""

    def migrations(self) -> Sequence[Any]:
        """Return the ordered migration list (ascending versions)."""

    def config_key(self) -> str | None:
        """Return the document key, or ``None`` to use the package identifier."""

    def templating(self) -> Iterable[Any]:
        """Return ``(path, value_type)`` rules applied on every read."""


@runtime_checkable
class DotEnvLoader(Protocol):
    """Materialise a ``.env`` file into flat variables."""

    def load(self) -> Mapping[str, str]:
        """Return parsed variables, empty when no file exists."""
