from __future__ import annotations

from pathlib import Path

from lib_versioned_config.adapters.env.default import ProcessEnvironment, bind_server, bind_session


def test_config_root_defaults_to_config_directory(tmp_path: Path) -> None:
    assert ProcessEnvironment(environ={}).config_root(tmp_path) == tmp_path / "config"


def test_config_root_honours_config_path(tmp_path: Path) -> None:
    environment = ProcessEnvironment(environ={"CONFIG_PATH": "etc/settings"})
    assert environment.config_root(tmp_path) == tmp_path / "etc" / "settings"


def test_current_reads_live_mapping() -> None:
    environ = {"APP_ENV": "dev"}
    environment = ProcessEnvironment(environ=environ)
    assert environment.current() == "dev"
    environ["APP_ENV"] = "staging"
    assert environment.current() == "staging"


def test_sources_expose_bound_server_and_session() -> None:
    environment = ProcessEnvironment(environ={"HOME": "/root"})
    assert environment.sources() == {"env": {"HOME": "/root"}, "server": {}, "session": {}}
    bind_server({"HTTP_HOST": "example.org"})
    bind_session({"user": {"id": 3}})
    sources = environment.sources()
    assert sources["server"]["HTTP_HOST"] == "example.org"
    assert sources["session"]["user"]["id"] == 3
