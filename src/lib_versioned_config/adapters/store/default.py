"""Filesystem document store.

Purpose
-------
Implement the :class:`lib_versioned_config.application.ports.DocumentStore`
protocol with one file per configuration key under a single root directory.

Key behaviours
--------------
* ``load`` never writes: an absent file yields :meth:`ConfigDocument.empty`.
* ``save`` writes a sibling temporary file, flushes it to disk, and renames it
  over the target so readers never observe a partially written document.
* Directory creation, permission, and write failures surface as
  :class:`~lib_versioned_config.domain.errors.ConfigIOError`.
"""

from __future__ import annotations

import os
import stat
import tempfile
from pathlib import Path

from ...domain.document import ConfigDocument
from ...domain.errors import ConfigIOError
from ...observability import log_debug, log_error, make_event
from ..file_formats.structured import format_for


class FileDocumentStore:
    """Store documents as ``<root>/<key><suffix>``.

    Examples
    --------
    >>> from tempfile import TemporaryDirectory
    >>> tmp = TemporaryDirectory()
    >>> store = FileDocumentStore(tmp.name)
    >>> store.load("mailer").environments
    {'production': {}}
    >>> store.save("mailer", ConfigDocument("1.0.0", {"production": {"host": "smtp"}}))
    >>> store.load("mailer").meta_version
    '1.0.0'
    >>> tmp.cleanup()
    """

    def __init__(self, root: str | os.PathLike[str], *, suffix: str = ".json") -> None:
        """Bind the store to *root*; the directory is created lazily on first save.

        Parameters
        ----------
        root:
            Directory holding one file per key.
        suffix:
            File suffix selecting the format (``.json``, ``.yaml``, ``.yml``).
        """

        self.root = Path(root)
        self._format = format_for(suffix)
        self.suffix = "." + suffix.lower().lstrip(".")

    def path_for(self, key: str) -> Path:
        """Return the file path for *key*.

        Raises
        ------
        ValueError
            When *key* is empty or would escape the root directory.
        """

        if not key or key in {".", ".."} or "/" in key or "\\" in key or os.sep in key:
            raise ValueError(f"Invalid configuration key {key!r}")
        return self.root / f"{key}{self.suffix}"

    def load(self, key: str) -> ConfigDocument:
        """Return the stored document for *key* or the canonical empty one."""

        path = self.path_for(key)
        if not path.is_file():
            log_debug("config_document_missing", **make_event(key, str(path)))
            return ConfigDocument.empty()
        payload = self._format.load(str(path))
        document = ConfigDocument.from_mapping(payload, source=str(path))
        log_debug(
            "config_document_loaded",
            **make_event(key, str(path), {"version": document.meta_version, "environments": list(document.environments)}),
        )
        return document

    def save(self, key: str, document: ConfigDocument) -> None:
        """Atomically overwrite the stored document for *key*."""

        path = self.path_for(key)
        self._ensure_directory(key)
        body = self._format.dump(document.to_mapping())

        try:
            handle, temp_name = tempfile.mkstemp(prefix=f".{key}.", suffix=".tmp", dir=self.root)
        except OSError as exc:
            log_error("config_document_write_failed", **make_event(key, str(path), {"error": str(exc)}))
            raise ConfigIOError(f"Error while writing config file {path}: {exc}") from exc

        try:
            with os.fdopen(handle, "w", encoding="utf-8") as stream:
                stream.write(body)
                stream.flush()
                os.fsync(stream.fileno())
            # mkstemp creates 0600 files; keep the previous mode, or what open() would give a new file
            os.chmod(temp_name, stat.S_IMODE(path.stat().st_mode) if path.exists() else _new_file_mode())
            os.replace(temp_name, path)
        except OSError as exc:
            Path(temp_name).unlink(missing_ok=True)
            log_error("config_document_write_failed", **make_event(key, str(path), {"error": str(exc)}))
            raise ConfigIOError(f"Error while writing config file {path}: {exc}") from exc

        log_debug("config_document_saved", **make_event(key, str(path), {"version": document.meta_version}))

    def _ensure_directory(self, key: str) -> None:
        try:
            self.root.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            log_error("config_directory_unavailable", **make_event(key, str(self.root), {"error": str(exc)}))
            raise ConfigIOError(f"Config directory {self.root} cannot be created: {exc}") from exc
        if not os.access(self.root, os.W_OK):
            log_error("config_directory_unavailable", **make_event(key, str(self.root), {"error": "not writable"}))
            raise ConfigIOError(f"Config directory {self.root} is not writable")


def _new_file_mode() -> int:
    """Return ``0o666`` filtered through the process umask."""

    mask = os.umask(0)
    os.umask(mask)
    return 0o666 & ~mask
