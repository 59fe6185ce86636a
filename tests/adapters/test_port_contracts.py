"""Adapter contract tests for the default ports implementation.

Purpose
-------
Verify the default adapters continue to satisfy the application-layer ports
defined in ``src/lib_versioned_config/application/ports.py`` so dependency
inversion remains enforceable through automated tests.
"""

from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock

from lib_versioned_config.adapters.cache.memory import InMemoryTagCache
from lib_versioned_config.adapters.cache.redis import RedisTagCache
from lib_versioned_config.adapters.dotenv.default import DefaultDotEnvLoader
from lib_versioned_config.adapters.store.default import FileDocumentStore
from lib_versioned_config.application import ports
from lib_versioned_config.application.registry import AbstractConfigProvider


class _Provider(AbstractConfigProvider):
    def migrations(self):
        return []


def test_file_store_contract(tmp_path: Path) -> None:
    """FileDocumentStore must fulfil the DocumentStore protocol."""

    assert isinstance(FileDocumentStore(tmp_path), ports.DocumentStore)


def test_cache_contracts() -> None:
    """Both cache adapters must be interchangeable behind DistributedCache."""

    assert isinstance(InMemoryTagCache(), ports.DistributedCache)
    assert isinstance(RedisTagCache(MagicMock()), ports.DistributedCache)


def test_dotenv_loader_contract(tmp_path: Path) -> None:
    assert isinstance(DefaultDotEnvLoader(tmp_path / ".env"), ports.DotEnvLoader)


def test_abstract_provider_contract() -> None:
    assert isinstance(_Provider(), ports.ConfigProvider)
