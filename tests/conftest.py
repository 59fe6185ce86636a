"""Shared fixtures: an isolated config directory, environment mapping, and resolver factory."""

from __future__ import annotations

from pathlib import Path
from typing import Callable

import pytest

from lib_versioned_config.adapters.env.default import ProcessEnvironment, bind_server, bind_session
from lib_versioned_config.adapters.store.default import FileDocumentStore
from lib_versioned_config.application.ports import DistributedCache
from lib_versioned_config.core import ConfigResolver


@pytest.fixture()
def environ() -> dict[str, str]:
    """Stand-in for ``os.environ`` so tests never leak into the real process environment."""

    return {}


@pytest.fixture()
def config_root(tmp_path: Path) -> Path:
    return tmp_path / "config"


@pytest.fixture()
def store(config_root: Path) -> FileDocumentStore:
    return FileDocumentStore(config_root)


@pytest.fixture()
def make_resolver(store: FileDocumentStore, environ: dict[str, str]) -> Callable[..., ConfigResolver]:
    """Return a factory building resolvers over the shared store and environment."""

    def _factory(cache: DistributedCache | None = None, **kwargs) -> ConfigResolver:
        return ConfigResolver(store, environment=ProcessEnvironment(environ=environ), cache=cache, **kwargs)

    return _factory


@pytest.fixture(autouse=True)
def _clear_request_sources():
    """Server and session tables are context-scoped; reset them around every test."""

    bind_server(None)
    bind_session(None)
    yield
    bind_server(None)
    bind_session(None)
