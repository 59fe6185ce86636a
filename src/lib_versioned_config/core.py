"""Resolution cache and composition root for ``lib_versioned_config``.

Purpose
-------
Provide the single entry point callers use to read and write configuration:
process-local memoisation in front of an optional distributed cache, in front
of the document store and migration engine. Environment selection and
templating run on every read so a changed environment signal is honoured
without touching the disk.

Contents
--------
* :class:`ConfigContext` – owned, resettable process state (memo + dotenv flag).
* :class:`ConfigResolver` – ``get`` / ``get_for`` / ``set`` / ``reset_cache``.
* :func:`build_resolver` – wires the default filesystem adapters.

System Role
-----------
This module connects adapters (filesystem, dotenv, environment, cache) with the
pure application functions while emitting structured observability signals. It
is the canonical location for adjusting caching policy.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable, Mapping, MutableMapping, Sequence

from .adapters.dotenv.default import DefaultDotEnvLoader
from .adapters.env.default import ProcessEnvironment
from .adapters.store.default import FileDocumentStore
from .application.environment import resolve_overlay
from .application.migrate import apply_migrations
from .application.ports import DistributedCache, DocumentStore, DotEnvLoader
from .application.registry import ProviderRegistry
from .application.templating import apply_templating
from .domain.document import ConfigDocument
from .domain.tree import deepcopy_mapping
from .observability import log_debug, log_error, log_info, make_event

CACHE_TAG = "config"
"""Tag every cached document is registered under; any write flushes it."""

CACHE_KEY_PREFIX = "config."

DEFAULT_CACHE_TTL = 3600 * 24

UNCACHED_KEYS: tuple[str, ...] = ("redis", "cache")
"""Keys configuring the cache subsystem itself; never read through the cache."""


@dataclass
class ConfigContext:
    """Process-wide state owned by one :class:`ConfigResolver`.

    Attributes
    ----------
    documents:
        Memoised full documents keyed by configuration key.
    env_loaded:
        Whether the ``.env`` file was applied since the last reset.
    """

    documents: dict[str, ConfigDocument] = field(default_factory=dict)
    env_loaded: bool = False

    def reset(self) -> None:
        self.documents.clear()
        self.env_loaded = False


class _RetrievalFailed(Exception):
    """Carries an error raised while computing a cache entry past the cache client."""

    def __init__(self, cause: BaseException) -> None:
        super().__init__(str(cause))
        self.cause = cause


class ConfigResolver:
    """Read, migrate, cache, and write per-environment configuration documents.

    Why
    ----
    Every package reads its configuration many times per process; the file
    should be parsed and migrated once, shared across processes when a
    distributed cache exists, and still resolve placeholders and the current
    environment on each call.

    Examples
    --------
    >>> from tempfile import TemporaryDirectory
    >>> tmp = TemporaryDirectory()
    >>> resolver = ConfigResolver(FileDocumentStore(tmp.name), environment=ProcessEnvironment(environ={}))
    >>> resolver.get("mailer")
    {}
    >>> resolver.set("mailer", {"host": "{{env.SMTP_HOST|localhost}}"})
    >>> resolver.get("mailer", templating=["host"])
    {'host': 'localhost'}
    >>> tmp.cleanup()
    """

    def __init__(
        self,
        store: DocumentStore,
        *,
        environment: ProcessEnvironment,
        cache: DistributedCache | None = None,
        dotenv: DotEnvLoader | None = None,
        registry: ProviderRegistry | None = None,
        context: ConfigContext | None = None,
        uncached_keys: Iterable[str] = UNCACHED_KEYS,
        cache_ttl: int = DEFAULT_CACHE_TTL,
    ) -> None:
        self.store = store
        self.environment = environment
        self.cache = cache
        self.dotenv = dotenv
        self.registry = registry if registry is not None else ProviderRegistry()
        self.context = context if context is not None else ConfigContext()
        self.uncached_keys = frozenset(uncached_keys)
        self.cache_ttl = cache_ttl

    def ensure_environment_loaded(self) -> None:
        """Apply the ``.env`` file once per context."""

        if self.context.env_loaded:
            return
        if self.dotenv is not None:
            values = self.dotenv.load()
            self.environment.environ.update(values)
        self.context.env_loaded = True

    def environment_name(self) -> str:
        """Return the current environment name (``production`` by default)."""

        self.ensure_environment_loaded()
        return self.environment.current()

    def get(
        self,
        key: str,
        migrations: Sequence[Any] = (),
        templating: Any = (),
    ) -> dict[str, Any]:
        """Return the overlay of *key* for the current environment.

        Parameters
        ----------
        key:
            Configuration key (document name).
        migrations:
            Ordered migrations owned by the caller; pending ones are applied and
            persisted the first time the document is read in this process.
        templating:
            ``(path, value_type)`` rules rendered against the placeholder sources.

        Returns
        -------
        dict[str, Any]
            A fresh tree; mutating it never affects later reads.
        """

        document = self.document(key, migrations)
        overlay = resolve_overlay(document, self.environment_name())
        return apply_templating(overlay, templating, self.environment.sources())

    def get_for(self, package: str) -> dict[str, Any]:
        """Return the configuration of a registered *package*."""

        provider = self.registry.get(package)
        key = provider.config_key() or package
        return self.get(key, provider.migrations(), provider.templating())

    def document(self, key: str, migrations: Sequence[Any] = ()) -> ConfigDocument:
        """Return a copy of the memoised full document for *key*, loading it on first use."""

        memo = self.context.documents
        if key not in memo:
            memo[key] = self._fetch(key, migrations)
        return memo[key].copy()

    def set(self, key: str, tree: Mapping[str, Any]) -> None:
        """Replace the current environment's overlay of *key* and persist it.

        The document is read straight from the store so cached copies cannot
        leak into the file. Afterwards the memo entry is dropped and, when a
        distributed cache is enabled, the whole ``config`` tag is flushed.
        """

        environment = self.environment_name()
        document = self.store.load(key)
        document.environments[environment] = deepcopy_mapping(tree)
        self.store.save(key, document)
        self.context.documents.pop(key, None)
        log_info("config_written", **make_event(key, str(self.store.path_for(key)), {"environment": environment}))

        if self._cache_enabled():
            try:
                self.cache.invalidate_tag(CACHE_TAG)  # type: ignore[union-attr]
            except Exception as exc:  # noqa: BLE001 - cache outages must not fail a completed write
                log_error("config_cache_invalidation_failed", **make_event(key, None, {"error": str(exc)}))
            else:
                log_debug("config_cache_invalidated", **make_event(key, None, {"tag": CACHE_TAG}))

    def reset_cache(self) -> None:
        """Forget memoised documents and re-check the ``.env`` file on next read."""

        self.context.reset()
        log_debug("config_cache_reset", key=None, path=None)

    def _fetch(self, key: str, migrations: Sequence[Any]) -> ConfigDocument:
        if key in self.uncached_keys or not self._cache_enabled():
            return self._retrieve(key, migrations)

        def compute() -> dict[str, Any]:
            try:
                return self._retrieve(key, migrations).to_mapping()
            except Exception as exc:
                raise _RetrievalFailed(exc) from exc

        try:
            payload = self.cache.get_or_compute(  # type: ignore[union-attr]
                CACHE_KEY_PREFIX + key, self.cache_ttl, [CACHE_TAG], compute
            )
        except _RetrievalFailed as failure:
            raise failure.cause
        except Exception as exc:  # noqa: BLE001 - any cache client failure means "cache unavailable"
            log_error("config_cache_fallback", **make_event(key, None, {"error": str(exc)}))
            return self._retrieve(key, migrations)
        return ConfigDocument.from_mapping(payload, source=CACHE_KEY_PREFIX + key)

    def _retrieve(self, key: str, migrations: Sequence[Any]) -> ConfigDocument:
        """Load *key* from the store, migrate it, and persist when it changed."""

        document = self.store.load(key)
        document, changed = apply_migrations(document, migrations, key=key)
        if changed:
            self.store.save(key, document)
            log_info("config_migrated", **make_event(key, str(self.store.path_for(key)), {"version": document.meta_version}))
        return document

    def _cache_enabled(self) -> bool:
        if self.cache is None:
            return False
        try:
            return bool(self.cache.is_enabled())
        except Exception as exc:  # noqa: BLE001 - treat a failing probe as a disabled cache
            log_error("config_cache_probe_failed", key=None, path=None, error=str(exc))
            return False


def build_resolver(
    project_root: str | os.PathLike[str] | None = None,
    *,
    environ: MutableMapping[str, str] | None = None,
    cache: DistributedCache | None = None,
    suffix: str = ".json",
    registry: ProviderRegistry | None = None,
) -> ConfigResolver:
    """Wire a :class:`ConfigResolver` with the default filesystem adapters.

    What
    ----
    Applies ``<project_root>/.env`` to *environ*, derives the config directory
    from ``CONFIG_PATH`` (default ``config``), and builds the store.

    Parameters
    ----------
    project_root:
        Directory holding ``.env`` and the config directory; defaults to the
        current working directory.
    environ:
        Mutable mapping standing in for :data:`os.environ`.
    cache:
        Optional distributed cache (for example
        :class:`~lib_versioned_config.adapters.cache.redis.RedisTagCache`).
    suffix:
        Document file suffix (``.json`` or ``.yaml``).
    registry:
        Provider registry used by :meth:`ConfigResolver.get_for`.

    Examples
    --------
    >>> from tempfile import TemporaryDirectory
    >>> tmp = TemporaryDirectory()
    >>> resolver = build_resolver(tmp.name, environ={"CONFIG_PATH": "settings"})
    >>> resolver.store.path_for("mailer").relative_to(tmp.name).as_posix()
    'settings/mailer.json'
    >>> tmp.cleanup()
    """

    root = Path(project_root) if project_root is not None else Path.cwd()
    environment = ProcessEnvironment(environ=environ)
    dotenv = DefaultDotEnvLoader(root / ".env")
    dotenv.apply(environment.environ)

    store = FileDocumentStore(environment.config_root(root), suffix=suffix)
    log_debug("resolver_built", key=None, path=str(store.root), suffix=store.suffix)
    return ConfigResolver(
        store,
        environment=environment,
        cache=cache,
        dotenv=dotenv,
        registry=registry,
        context=ConfigContext(env_loaded=True),
    )


__all__ = [
    "CACHE_TAG",
    "ConfigContext",
    "ConfigResolver",
    "build_resolver",
]
