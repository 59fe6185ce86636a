"""Domain-level exception hierarchy.

Purpose
-------
Expose the stable error taxonomy shared by adapters, the resolution cache, and
consuming applications. The hierarchy lives in the domain layer so outer layers
may depend on it without creating import cycles.

Contents
--------
* :class:`ConfigError` – umbrella base class for all configuration failures.
* :class:`ConfigIOError` – the config directory or file cannot be written.
* :class:`InvalidFormat` – a persisted document cannot be parsed.
* :class:`NotFound` – an optional resource (file, provider) is missing.
* :class:`InvalidMigrationFormat` / :class:`InvalidMigrationResult` – schema
  migration misuse.
* :class:`UnsupportedTypeError` / :class:`WildcardOnNonContainerError` –
  templating misuse.
* :class:`ReservedNameError` – the current environment is named ``meta``.
* :class:`CacheUnavailable` – a distributed cache backend failed.

System Role
-----------
Every error except :class:`CacheUnavailable` is fatal for the read or write
that raised it and propagates to the caller unchanged. Callers catch
:class:`ConfigError` to handle all library failures uniformly.
"""

from __future__ import annotations


class ConfigError(Exception):
    """Base type for all exceptions emitted by ``lib_versioned_config``.

    Why
    ----
    Provide a single catch-all type for consumers that do not need fine-grained
    handling.
    """


class ConfigIOError(ConfigError, OSError):
    """Raised when a configuration document cannot be persisted.

    Typical Sources
    ---------------
    The config directory cannot be created, is not writable, or the atomic
    write/rename of the document failed. Also an :class:`OSError` so callers
    handling filesystem failures generically still catch it.
    """


class InvalidFormat(ConfigError):
    """Raised when a persisted document cannot be parsed into the expected shape.

    Typical Sources
    ---------------
    Structured file formats (:mod:`json`, :mod:`yaml`), dotenv parsing, and
    :meth:`lib_versioned_config.domain.document.ConfigDocument.from_mapping`.
    """


class NotFound(ConfigError):
    """Represents missing-but-optional resources (files, providers, etc.)."""


class InvalidMigrationFormat(ConfigError):
    """A supplied migration is missing its version or its transform."""


class InvalidMigrationResult(ConfigError):
    """A migration transform returned something other than a mapping."""


class UnsupportedTypeError(ConfigError, ValueError):
    """Templating requested a scalar type outside ``string/int/float/bool``."""


class ReservedNameError(ConfigError):
    """The current-environment signal resolved to the reserved name ``meta``.

    Why
    ----
    ``meta`` holds the migration marker inside every document; allowing it as an
    environment would let overlays overwrite the schema version.
    """


class WildcardOnNonContainerError(ConfigError, TypeError):
    """A ``*`` path segment was applied to a scalar value."""


class CacheUnavailable(ConfigError):
    """Raised by distributed cache adapters when their backend fails.

    The resolution cache treats it like a disabled cache and reads the document
    directly from disk instead.
    """
