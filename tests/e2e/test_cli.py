"""End-to-end CLI coverage for the public commands exposed by lib_versioned_config.

These tests exercise the documented CLI workflows (read, document, write, env,
metadata lookups) against a temporary project root so no real configuration is
touched.
"""

from __future__ import annotations

import json
from pathlib import Path

from click.testing import CliRunner

import lib_cli_exit_tools

from lib_versioned_config import cli
from lib_versioned_config.adapters.store.default import FileDocumentStore
from lib_versioned_config.domain.document import ConfigDocument

CLEAN_ENV = {"APP_ENV": None, "ENVIRONMENT": None, "CONFIG_PATH": None}


def _runner() -> CliRunner:
    """Return a fresh CLI runner so each test starts from a clean state."""

    return CliRunner()


def _invoke(args: list[str], **env: str):
    return _runner().invoke(cli.cli, args, env={**CLEAN_ENV, **env})


def test_cli_write_then_read_round_trip(tmp_path: Path) -> None:
    """`cli write` persists the overlay for the chosen environment; `cli read` returns it."""

    source = tmp_path / "overlay.json"
    source.write_text('{"host": "smtp", "port": 25}', encoding="utf-8")
    result = _invoke(["write", "mailer", "--source", str(source), "--project-root", str(tmp_path), "--environment", "dev"])
    assert result.exit_code == 0
    assert result.output.strip() == str(tmp_path / "config" / "mailer.json")

    result = _invoke(["read", "mailer", "--project-root", str(tmp_path), "--environment", "dev"])
    assert result.exit_code == 0
    assert json.loads(result.output) == {"host": "smtp", "port": 25}

    result = _invoke(["read", "mailer", "--project-root", str(tmp_path)])
    assert json.loads(result.output) == {}


def test_cli_read_renders_templates(tmp_path: Path) -> None:
    """`cli read --template PATH:TYPE` resolves placeholders from the environment."""

    FileDocumentStore(tmp_path / "config").save(
        "mailer", ConfigDocument(None, {"production": {"port": "{{env.SMTP_PORT|25}}", "host": "{{env.SMTP_HOST|localhost}}"}})
    )
    result = _invoke(
        ["read", "mailer", "--project-root", str(tmp_path), "--template", "port:int", "--template", "host", "--indent", "0"],
        SMTP_PORT="2525",
    )
    assert result.exit_code == 0
    assert json.loads(result.output) == {"port": 2525, "host": "localhost"}


def test_cli_read_path_prints_single_value(tmp_path: Path) -> None:
    """`cli read --path` narrows the output to one dotted path."""

    FileDocumentStore(tmp_path / "config").save("mailer", ConfigDocument(None, {"production": {"smtp": {"hosts": ["a", "b"]}}}))
    result = _invoke(["read", "mailer", "--project-root", str(tmp_path), "--path", "smtp.hosts.1"])
    assert result.exit_code == 0
    assert json.loads(result.output) == "b"
    result = _invoke(["read", "mailer", "--project-root", str(tmp_path), "--path", "smtp.port"])
    assert json.loads(result.output) is None


def test_cli_read_rejects_unknown_template_type(tmp_path: Path) -> None:
    result = _invoke(["read", "mailer", "--project-root", str(tmp_path), "--template", "port:decimal"])
    assert result.exit_code == 2


def test_cli_document_prints_meta_block(tmp_path: Path) -> None:
    """`cli document` shows the persisted migration marker next to every overlay."""

    FileDocumentStore(tmp_path / "config").save("mailer", ConfigDocument("1.4.0", {"production": {"host": "smtp"}}))
    result = _invoke(["document", "mailer", "--project-root", str(tmp_path)])
    assert result.exit_code == 0
    assert json.loads(result.output) == {"meta": {"version": "1.4.0"}, "production": {"host": "smtp"}}


def test_cli_write_rejects_unsupported_source(tmp_path: Path) -> None:
    source = tmp_path / "overlay.ini"
    source.write_text("[mailer]\nhost = smtp\n", encoding="utf-8")
    result = _invoke(["write", "mailer", "--source", str(source), "--project-root", str(tmp_path)])
    assert result.exit_code == 2
    assert not (tmp_path / "config").exists()


def test_cli_env_applies_dotenv_and_config_path(tmp_path: Path) -> None:
    """`cli env` prints the environment name the project's .env selects."""

    (tmp_path / ".env").write_text("APP_ENV=staging\n", encoding="utf-8")
    result = _invoke(["env", "--project-root", str(tmp_path)])
    assert result.exit_code == 0
    assert result.output.strip() == "staging"


def test_cli_env_defaults_to_production(tmp_path: Path) -> None:
    result = _invoke(["env", "--project-root", str(tmp_path)])
    assert result.output.strip() == "production"


def test_cli_info_handles_missing_metadata(monkeypatch) -> None:
    """`cli info` must degrade gracefully when package metadata is unavailable."""

    def _raise_pkg_not_found(*_args, **_kwargs):
        raise cli.metadata.PackageNotFoundError()

    monkeypatch.setattr(cli.metadata, "metadata", _raise_pkg_not_found)
    result = _runner().invoke(cli.cli, ["info"])
    assert result.exit_code == 0
    assert "metadata unavailable" in result.output


def test_cli_main_restores_traceback_flag(tmp_path: Path, monkeypatch) -> None:
    """`cli main` should restore lib_cli_exit_tools tracebacks after execution."""

    for name in CLEAN_ENV:
        monkeypatch.delenv(name, raising=False)
    previous_traceback = getattr(lib_cli_exit_tools.config, "traceback", False)
    exit_code = cli.main(["--traceback", "env", "--project-root", str(tmp_path)], restore_traceback=True)
    assert exit_code == 0
    assert getattr(lib_cli_exit_tools.config, "traceback", False) == previous_traceback


def test_cli_main_reports_reserved_environment(tmp_path: Path, monkeypatch) -> None:
    """Domain errors surface as a non-zero exit code through the shared printers."""

    monkeypatch.setenv("APP_ENV", "meta")
    exit_code = cli.main(["read", "mailer", "--project-root", str(tmp_path)])
    assert exit_code != 0
