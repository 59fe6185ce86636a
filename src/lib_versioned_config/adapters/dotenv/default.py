"""`.env` adapter.

Purpose
-------
Implement the :class:`lib_versioned_config.application.ports.DotEnvLoader`
protocol for the project's ``.env`` file and apply the parsed variables to the
process environment before the current environment name is read.

Contents
--------
* :class:`DefaultDotEnvLoader` – parses one file and overlays it onto an
  environment mapping.
* Helper functions (`_parse_dotenv`, `_strip_quotes`) that perform parsing.

System Role
-----------
Called once per resolver context (and again after ``reset_cache``) so values
such as ``APP_ENV`` or ``CONFIG_PATH`` can live in ``.env``.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Mapping, MutableMapping

from ...domain.errors import InvalidFormat
from ...observability import log_debug, log_error


class DefaultDotEnvLoader:
    """Load a dotenv file into a flat mapping of variables."""

    def __init__(self, path: str | os.PathLike[str]) -> None:
        """Bind the loader to the dotenv file at *path* (it may not exist)."""

        self.path = Path(path)

    def load(self) -> Mapping[str, str]:
        """Return the parsed variables, or an empty mapping when the file is absent.

        Examples
        --------
        >>> from tempfile import TemporaryDirectory
        >>> tmp = TemporaryDirectory()
        >>> path = Path(tmp.name) / '.env'
        >>> _ = path.write_text('APP_ENV=staging', encoding='utf-8')
        >>> DefaultDotEnvLoader(path).load()["APP_ENV"]
        'staging'
        >>> tmp.cleanup()
        """

        if not self.path.is_file():
            log_debug("dotenv_not_found", path=str(self.path))
            return {}
        data = _parse_dotenv(self.path)
        log_debug("dotenv_loaded", path=str(self.path), keys=sorted(data.keys()))
        return data

    def apply(self, environ: MutableMapping[str, str]) -> Mapping[str, str]:
        """Overwrite *environ* with the parsed variables and return them.

        Values from the file win over variables already present, so a ``.env``
        file can pin ``APP_ENV`` for a checkout.
        """

        data = self.load()
        for key, value in data.items():
            environ[key] = value
        return data


def _parse_dotenv(path: Path) -> dict[str, str]:
    """Parse ``path`` into a flat dictionary, raising ``InvalidFormat`` on malformed lines.

    Examples
    --------
    >>> import os
    >>> tmp = Path('example.env')
    >>> body = os.linesep.join(['export APP_ENV=dev', 'CONFIG_PATH="etc/config" # local']) + os.linesep
    >>> _ = tmp.write_text(body, encoding='utf-8')
    >>> _parse_dotenv(tmp)
    {'APP_ENV': 'dev', 'CONFIG_PATH': 'etc/config'}
    >>> tmp.unlink()
    """

    result: dict[str, str] = {}
    with path.open("r", encoding="utf-8") as handle:
        for line_number, raw_line in enumerate(handle, start=1):
            line = raw_line.strip()
            if not line or line.startswith("#"):
                continue
            if line.startswith("export "):
                line = line[len("export ") :].lstrip()
            if "=" not in line:
                log_error("dotenv_invalid_line", path=str(path), line=line_number)
                raise InvalidFormat(f"Malformed line {line_number} in {path}")
            key, value = line.split("=", 1)
            key = key.strip()
            if not key:
                log_error("dotenv_invalid_line", path=str(path), line=line_number)
                raise InvalidFormat(f"Missing variable name on line {line_number} in {path}")
            result[key] = _strip_quotes(value.strip())
    return result


def _strip_quotes(value: str) -> str:
    """Trim surrounding quotes and inline comments from ``value``.

    Examples
    --------
    >>> _strip_quotes('"token"')
    'token'
    >>> _strip_quotes("value # comment")
    'value'
    >>> _strip_quotes('"a # b" # note')
    'a # b'
    """

    if value[:1] in {'"', "'"}:
        closing = value.find(value[0], 1)
        if closing != -1:
            return value[1:closing]
    if value.startswith("#"):
        return ""
    if " #" in value:
        return value.split(" #", 1)[0].strip()
    return value
