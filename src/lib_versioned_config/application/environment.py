"""Environment overlay selection.

Purpose
-------
Pick which overlay of a document applies to the running process and derive the
current environment name from the process environment.

Contents
    - ``ENVIRONMENT_VARIABLES``: variables consulted, in priority order.
    - ``current_environment``: name of the active environment.
    - ``resolve_overlay``: overlay for that name with a ``production`` fallback.
"""

from __future__ import annotations

from typing import Any, Mapping

from ..domain.document import META, PRODUCTION, ConfigDocument
from ..domain.errors import ReservedNameError
from ..domain.tree import deepcopy_mapping

ENVIRONMENT_VARIABLES: tuple[str, ...] = ("APP_ENV", "ENVIRONMENT")


def current_environment(environ: Mapping[str, str]) -> str:
    """Return the active environment name, defaulting to ``production``.

    Empty values are treated as unset.

    Raises
    ------
    ReservedNameError
        When the signal names the reserved ``meta`` key.

    Examples
    --------
    >>> current_environment({"ENVIRONMENT": "staging"})
    'staging'
    >>> current_environment({"APP_ENV": "", "ENVIRONMENT": "dev"})
    'dev'
    >>> current_environment({})
    'production'
    """

    name = PRODUCTION
    for variable in ENVIRONMENT_VARIABLES:
        value = environ.get(variable)
        if value:
            name = value
            break
    if name == META:
        raise ReservedNameError(f'"{META}" is a reserved keyword and cannot be used as environment name')
    return name


def resolve_overlay(document: ConfigDocument, environment: str) -> dict[str, Any]:
    """Return a copy of the overlay for *environment*.

    A missing overlay falls back to ``production`` (never to any other
    overlay), then to an empty tree. The fallback is a read-time default; the
    document itself is not modified.

    Examples
    --------
    >>> doc = ConfigDocument(None, {"production": {"debug": False}, "dev": {"debug": True}})
    >>> resolve_overlay(doc, "dev")
    {'debug': True}
    >>> resolve_overlay(doc, "staging")
    {'debug': False}
    >>> resolve_overlay(ConfigDocument(None, {"dev": {}}), "staging")
    {}
    """

    overlays = document.environments
    if environment in overlays:
        return deepcopy_mapping(overlays[environment])
    if PRODUCTION in overlays:
        return deepcopy_mapping(overlays[PRODUCTION])
    return {}
