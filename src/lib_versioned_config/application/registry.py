"""Typed registry of configuration providers.

Purpose
-------
Map package identifiers to the provider objects that own their configuration
document (migrations, key, templating rules). Providers register as instances;
nothing is looked up by class-name string.

Contents
    - ``AbstractConfigProvider``: convenience base with the usual defaults.
    - ``ProviderRegistry``: explicit, owned registry injected into the resolver.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Iterator, Sequence

from ..domain.errors import NotFound
from .ports import ConfigProvider


class AbstractConfigProvider(ABC):
    """Base class for packages owning a configuration document.

    Subclasses must list their migrations; the document key defaults to the
    package identifier and no paths are templated.
    """

    @abstractmethod
    def migrations(self) -> Sequence[Any]:
        """Return migrations in ascending version order."""

    def config_key(self) -> str | None:
        return None

    def templating(self) -> Sequence[Any]:
        return []


class ProviderRegistry:
    """Package identifier → :class:`ConfigProvider`.

    Examples
    --------
    >>> class Mailer(AbstractConfigProvider):
    ...     def migrations(self):
    ...         return []
    >>> registry = ProviderRegistry()
    >>> registry.register("mailer", Mailer())
    >>> registry.key_for("mailer")
    'mailer'
    """

    def __init__(self) -> None:
        self._providers: dict[str, ConfigProvider] = {}

    def register(self, package: str, provider: ConfigProvider) -> None:
        """Register *provider* for *package*, replacing any previous one."""

        if not isinstance(provider, ConfigProvider):
            raise TypeError(f"{type(provider).__name__} does not implement the ConfigProvider protocol")
        self._providers[package] = provider

    def get(self, package: str) -> ConfigProvider:
        try:
            return self._providers[package]
        except KeyError as exc:
            raise NotFound(f"No configuration provider registered for package {package!r}") from exc

    def key_for(self, package: str) -> str:
        """Return the document key owned by *package*."""

        return self.get(package).config_key() or package

    def packages(self) -> list[str]:
        return list(self._providers)

    def __contains__(self, package: object) -> bool:
        return package in self._providers

    def __iter__(self) -> Iterator[str]:
        return iter(self._providers)

    def __len__(self) -> int:
        return len(self._providers)
