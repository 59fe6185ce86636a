"""Per-environment, versioned configuration documents for modular applications.

Each package owns one configuration document holding an overlay per deployment
environment. Documents are upgraded in place by ordered migrations, may contain
``{{env.NAME|default}}`` placeholders resolved at read time, and are cached per
process (and optionally across processes) in front of atomic file writes.
"""

from __future__ import annotations

from .adapters.cache.memory import InMemoryTagCache
from .adapters.env.default import ProcessEnvironment, bind_server, bind_session
from .adapters.store.default import FileDocumentStore
from .application.environment import current_environment, resolve_overlay
from .application.migrate import apply_migrations
from .application.registry import AbstractConfigProvider, ProviderRegistry
from .application.templating import apply_templating, substitute
from .core import CACHE_TAG, ConfigContext, ConfigResolver, build_resolver
from .domain.document import META, PRODUCTION, ConfigDocument
from .domain.errors import (
    CacheUnavailable,
    ConfigError,
    ConfigIOError,
    InvalidFormat,
    InvalidMigrationFormat,
    InvalidMigrationResult,
    NotFound,
    ReservedNameError,
    UnsupportedTypeError,
    WildcardOnNonContainerError,
)
from .domain.migration import Migration, compare_versions
from .observability import bind_trace_id, get_logger

__all__ = [
    "AbstractConfigProvider",
    "CACHE_TAG",
    "CacheUnavailable",
    "ConfigContext",
    "ConfigDocument",
    "ConfigError",
    "ConfigIOError",
    "ConfigResolver",
    "FileDocumentStore",
    "InMemoryTagCache",
    "InvalidFormat",
    "InvalidMigrationFormat",
    "InvalidMigrationResult",
    "META",
    "Migration",
    "NotFound",
    "PRODUCTION",
    "ProcessEnvironment",
    "ProviderRegistry",
    "ReservedNameError",
    "UnsupportedTypeError",
    "WildcardOnNonContainerError",
    "apply_migrations",
    "apply_templating",
    "bind_server",
    "bind_session",
    "bind_trace_id",
    "build_resolver",
    "compare_versions",
    "current_environment",
    "get_logger",
    "resolve_overlay",
    "substitute",
]
