"""Environment signal and placeholder sources.

Purpose
-------
Wrap the process environment so the resolution cache can read the current
environment name, the ``CONFIG_PATH`` setting, and the three placeholder
sources (``env``, ``server``, ``session``) from one injectable object.

Key behaviours
--------------
* ``environ`` defaults to :data:`os.environ` but any mutable mapping can be
  injected for deterministic tests.
* ``server`` and ``session`` tables live in context variables so web
  frameworks can bind request-scoped values with :func:`bind_server` /
  :func:`bind_session` without threading them through every call.
"""

from __future__ import annotations

import os
from contextvars import ContextVar
from pathlib import Path
from typing import Any, Mapping, MutableMapping

from ...application.environment import current_environment

DEFAULT_CONFIG_DIR = "config"
"""Directory (relative to the project root) used when ``CONFIG_PATH`` is unset."""

SERVER: ContextVar[Mapping[str, Any] | None] = ContextVar("lib_versioned_config_server", default=None)
"""Server variables (e.g. a WSGI ``environ``) exposed to ``{{server.*}}`` placeholders."""

SESSION: ContextVar[Mapping[str, Any] | None] = ContextVar("lib_versioned_config_session", default=None)
"""Session state exposed to ``{{session.*}}`` placeholders."""


def bind_server(values: Mapping[str, Any] | None) -> None:
    """Bind (or clear with ``None``) the server variables for the current context."""

    SERVER.set(values)


def bind_session(values: Mapping[str, Any] | None) -> None:
    """Bind (or clear with ``None``) the session state for the current context.

    Examples
    --------
    >>> bind_session({"user": {"locale": "it"}})
    >>> ProcessEnvironment(environ={}).sources()["session"]["user"]["locale"]
    'it'
    >>> bind_session(None)
    """

    SESSION.set(values)


class ProcessEnvironment:
    """Read environment-derived settings for the resolution cache."""

    def __init__(self, *, environ: MutableMapping[str, str] | None = None) -> None:
        """Initialise with a specific ``environ`` mapping for testability.

        Parameters
        ----------
        environ:
            Mapping to read from (and to apply ``.env`` values to). Defaults to
            :data:`os.environ`.
        """

        self.environ: MutableMapping[str, str] = os.environ if environ is None else environ

    def current(self) -> str:
        """Return the active environment name.

        Examples
        --------
        >>> ProcessEnvironment(environ={"APP_ENV": "staging"}).current()
        'staging'
        """

        return current_environment(self.environ)

    def config_root(self, project_root: str | os.PathLike[str]) -> Path:
        """Return ``<project_root>/<CONFIG_PATH>`` (default ``config``).

        Examples
        --------
        >>> str(ProcessEnvironment(environ={"CONFIG_PATH": "etc/app"}).config_root("/srv"))
        '/srv/etc/app'
        """

        return Path(project_root) / (self.environ.get("CONFIG_PATH") or DEFAULT_CONFIG_DIR)

    def sources(self) -> dict[str, Mapping[str, Any]]:
        """Return the placeholder source tables keyed by source name."""

        return {
            "env": self.environ,
            "server": SERVER.get() or {},
            "session": SESSION.get() or {},
        }
