"""CLI adapter for ``lib_versioned_config`` built on ``lib_cli_exit_tools``.

Purpose
-------
Expose the resolution cache via a command line interface so operators can
inspect the resolved configuration of a key, see the raw persisted document
(including its migration marker), and write an environment overlay without
writing Python code.

Contents
--------
* :data:`CLICK_CONTEXT_SETTINGS` – shared Click settings ensuring ``-h`` works.
* :func:`cli` – root command that wires global traceback handling into
  ``lib_cli_exit_tools``.
* :func:`cli_info` – prints distribution metadata for quick diagnostics.
* :func:`cli_env` – prints the current environment name.
* :func:`cli_read` – prints the resolved overlay of a key as JSON.
* :func:`cli_document` – prints the full persisted document as JSON.
* :func:`cli_write` – replaces the current environment's overlay of a key.
* :func:`main` – entry point used by ``console_scripts`` registration.

System Role
-----------
The CLI lives in the outermost layer. It builds a resolver through
:func:`lib_versioned_config.core.build_resolver` and never reaches into adapter
internals directly. ``lib_cli_exit_tools`` centralises the exit code strategy.
"""

from __future__ import annotations

import json
import os
import sys
from importlib import metadata
from pathlib import Path
from typing import Any, Final, Optional, Sequence

import lib_cli_exit_tools
import rich_click as click

from .adapters.file_formats.structured import format_for
from .application.templating import VALUE_TYPES, TemplateRule
from .core import ConfigResolver, build_resolver
from .domain.tree import lookup

CLICK_CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}
_TRACEBACK_SUMMARY_LIMIT: Final[int] = 500
_TRACEBACK_VERBOSE_LIMIT: Final[int] = 10_000

SUFFIX_CHOICES: Final[tuple[str, ...]] = ("json", "yaml", "yml")


def _resolve_version() -> str:
    """Return the installed package version, ``"0.0.0"`` when metadata is missing."""

    try:
        return metadata.version("lib_versioned_config")
    except metadata.PackageNotFoundError:
        return "0.0.0"


_project_root_option = click.option(
    "--project-root",
    type=click.Path(path_type=Path, file_okay=False, dir_okay=True, resolve_path=True),
    default=None,
    help="Directory holding .env and the config directory (defaults to CWD)",
)
_suffix_option = click.option(
    "--suffix",
    type=click.Choice(SUFFIX_CHOICES, case_sensitive=False),
    default="json",
    show_default=True,
    help="File format of the stored documents",
)
_environment_option = click.option(
    "--environment",
    default=None,
    help="Override the current environment (APP_ENV) for this invocation",
)


@click.group(
    help="Per-environment versioned configuration store",
    context_settings=CLICK_CONTEXT_SETTINGS,
    invoke_without_command=False,
)
@click.version_option(
    version=_resolve_version(),
    prog_name="lib_versioned_config",
    message="lib_versioned_config version %(version)s",
)
@click.option(
    "--traceback/--no-traceback",
    is_flag=True,
    default=False,
    help="Show full Python traceback on errors",
)
@click.pass_context
def cli(ctx: click.Context, traceback: bool) -> None:
    """Root command configuring traceback handling for all subcommands.

    Side Effects
        Mutates ``lib_cli_exit_tools.config.traceback`` and
        ``lib_cli_exit_tools.config.traceback_force_color``.
    """

    ctx.ensure_object(dict)
    ctx.obj["traceback"] = traceback
    lib_cli_exit_tools.config.traceback = traceback
    lib_cli_exit_tools.config.traceback_force_color = traceback


@cli.command("info", context_settings=CLICK_CONTEXT_SETTINGS)
def cli_info() -> None:
    """Print basic distribution metadata so users can confirm installation."""

    try:
        meta = metadata.metadata("lib_versioned_config")
    except metadata.PackageNotFoundError:
        click.echo("lib_versioned_config (metadata unavailable)")
        return
    click.echo(f"Info for {meta.get('Name', 'lib_versioned_config')}:")
    click.echo(f"  Version         : {meta.get('Version', _resolve_version())}")
    click.echo(f"  Requires-Python : {meta.get('Requires-Python', '>=3.10')}")
    summary = meta.get("Summary")
    if summary:
        click.echo(f"  Summary         : {summary}")
    for entry in meta.get_all("Project-URL") or []:
        click.echo(f"  {entry}")


@cli.command("env", context_settings=CLICK_CONTEXT_SETTINGS)
@_project_root_option
def cli_env(project_root: Optional[Path]) -> None:
    """Print the current environment name after applying the project's ``.env``."""

    click.echo(_resolver(project_root, "json", None).environment_name())


@cli.command("read", context_settings=CLICK_CONTEXT_SETTINGS)
@click.argument("key")
@_project_root_option
@_suffix_option
@_environment_option
@click.option(
    "--template",
    "templates",
    multiple=True,
    help="PATH[:TYPE] to render as placeholder (repeatable; TYPE defaults to string)",
)
@click.option("--path", "dotted", default=None, help="Print only the value at this dotted path (e.g. smtp.port)")
@click.option(
    "--indent",
    type=int,
    default=None,
    help="Pretty-print JSON output with the provided indent size",
)
def cli_read(
    key: str,
    project_root: Optional[Path],
    suffix: str,
    environment: Optional[str],
    templates: Sequence[str],
    dotted: Optional[str],
    indent: Optional[int],
) -> None:
    """Resolve KEY for the current environment and print it as JSON.

    No migrations are applied; the document is read as persisted. With
    ``--path`` only that value is printed (``null`` when missing).
    """

    rules = [_parse_template(value) for value in templates]
    tree: Any = _resolver(project_root, suffix, environment).get(key, templating=rules)
    if dotted:
        tree = lookup(tree, dotted)
    click.echo(_to_json(tree, indent))


@cli.command("document", context_settings=CLICK_CONTEXT_SETTINGS)
@click.argument("key")
@_project_root_option
@_suffix_option
@click.option("--indent", type=int, default=2, show_default=True, help="JSON indent size")
def cli_document(key: str, project_root: Optional[Path], suffix: str, indent: Optional[int]) -> None:
    """Print the full persisted document of KEY, including its ``meta`` block."""

    document = _resolver(project_root, suffix, None).store.load(key)
    click.echo(_to_json(document.to_mapping(), indent))


@cli.command("write", context_settings=CLICK_CONTEXT_SETTINGS)
@click.argument("key")
@click.option(
    "--source",
    type=click.Path(path_type=Path, exists=True, file_okay=True, dir_okay=False, readable=True),
    required=True,
    help="JSON or YAML file holding the new overlay",
)
@_project_root_option
@_suffix_option
@_environment_option
def cli_write(
    key: str,
    source: Path,
    project_root: Optional[Path],
    suffix: str,
    environment: Optional[str],
) -> None:
    """Replace the current environment's overlay of KEY with the contents of SOURCE."""

    try:
        source_format = format_for(source.suffix or "json")
    except ValueError as exc:
        raise click.BadParameter(str(exc), param_hint="--source") from exc
    tree = source_format.load(str(source))
    resolver = _resolver(project_root, suffix, environment)
    resolver.set(key, tree)
    click.echo(str(resolver.store.path_for(key)))


def _resolver(project_root: Optional[Path], suffix: str, environment: Optional[str]) -> ConfigResolver:
    """Build a resolver over a copy of the process environment."""

    resolver = build_resolver(project_root, environ=dict(os.environ), suffix=suffix)
    if environment:
        resolver.environment.environ["APP_ENV"] = environment
    return resolver


def _parse_template(value: str) -> TemplateRule:
    """Split ``PATH[:TYPE]`` into a templating rule.

    Examples
    --------
    >>> _parse_template("db.port:int")
    ('db.port', 'int')
    >>> _parse_template("db.host")
    ('db.host', 'string')
    """

    path, separator, value_type = value.rpartition(":")
    if not separator:
        return value, "string"
    value_type = value_type.strip().lower()
    if value_type not in VALUE_TYPES:
        raise click.BadParameter(
            f"Template type must be one of: {', '.join(VALUE_TYPES)}.",
            param_hint="--template",
        )
    return path, value_type


def _to_json(payload: Any, indent: Optional[int]) -> str:
    return json.dumps(payload, indent=indent, separators=(",", ":"), ensure_ascii=False)


def main(argv: Optional[Sequence[str]] = None, *, restore_traceback: bool = True) -> int:
    """Execute the CLI with shared exit handling and return the exit code."""

    previous_traceback = getattr(lib_cli_exit_tools.config, "traceback", False)
    previous_force_color = getattr(lib_cli_exit_tools.config, "traceback_force_color", False)
    try:
        try:
            return lib_cli_exit_tools.run_cli(
                cli,
                argv=list(argv) if argv is not None else None,
                prog_name="lib_versioned_config",
            )
        except BaseException as exc:  # noqa: BLE001 - funnel through shared printers
            lib_cli_exit_tools.print_exception_message(
                trace_back=lib_cli_exit_tools.config.traceback,
                length_limit=(
                    _TRACEBACK_VERBOSE_LIMIT if lib_cli_exit_tools.config.traceback else _TRACEBACK_SUMMARY_LIMIT
                ),
            )
            return lib_cli_exit_tools.get_system_exit_code(exc)
    finally:
        if restore_traceback:
            lib_cli_exit_tools.config.traceback = previous_traceback
            lib_cli_exit_tools.config.traceback_force_color = previous_force_color


if __name__ == "__main__":  # pragma: no cover - exercised via console entry point
    raise SystemExit(main(sys.argv[1:]))
