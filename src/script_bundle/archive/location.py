"""Script location backed by a ZIP archive.

An archive holds one manifest entry with the location configuration and one
entry per script.  Opening an archive resolves the configuration by letting
manifest values override the caller's defaults field by field; scripts are
exposed in script order regardless of the order of the entries.  Writing
always rebuilds the whole archive.
"""

from __future__ import annotations

import codecs
import io
import logging
import os
import tempfile
from collections.abc import Iterable
from datetime import UTC, datetime
from pathlib import Path
from typing import IO, Self, TextIO

from script_bundle.archive.handler import (
    ARCHIVE_ERRORS,
    ArchiveEntry,
    ArchiveReader,
    ArchiveWriter,
    create_archive,
    open_archive,
)
from script_bundle.constants import (
    MANIFEST_ENTRY_NAME,
    SUPPORTED_EXTENSIONS,
    UNDEFINED_LOCATION_NAME,
)
from script_bundle.errors import (
    ArchiveReadError,
    ArchiveWriteError,
    ConfigurationParseError,
    ScriptBundleError,
)
from script_bundle.location import LocationConfig, sort_scripts
from script_bundle.properties import format_properties, parse_properties
from script_bundle.script import Script, ScriptContentHandle
from script_bundle.utils.io import close_quietly

logger = logging.getLogger(__name__)

_TRANSFER_CHUNK_SIZE = 65_536  # characters per read
_MANIFEST_ENCODING = "utf-8"


class _EntryTextReader(io.TextIOWrapper):
    """Text stream over an entry; decoding and decompression errors name the entry."""

    def __init__(self, raw: IO[bytes], encoding: str, archive_path: Path, entry_name: str) -> None:
        super().__init__(raw, encoding=encoding, newline="")
        self._archive_path = archive_path
        self._entry_name = entry_name

    def _read_error(self, exc: Exception) -> ArchiveReadError:
        return ArchiveReadError(self._archive_path, self._entry_name, str(exc))

    def read(self, size: int | None = -1) -> str:
        try:
            return super().read(size)
        except ARCHIVE_ERRORS as exc:
            raise self._read_error(exc) from exc

    def readline(self, size: int = -1) -> str:
        try:
            return super().readline(size)
        except ARCHIVE_ERRORS as exc:
            raise self._read_error(exc) from exc


class ArchiveEntryContent(ScriptContentHandle):
    """Content of one archive entry, reopened by name on every call."""

    def __init__(self, archive: ArchiveReader, entry_name: str, encoding: str) -> None:
        self._archive = archive
        self._entry_name = entry_name
        self._encoding = encoding

    def open_reader(self) -> TextIO:
        raw = self._archive.open_entry(self._entry_name)
        return _EntryTextReader(raw, self._encoding, self._archive.path, self._entry_name)


def _now_millis() -> int:
    return int(datetime.now(UTC).timestamp() * 1000)


def _read_manifest(archive: ArchiveReader, entries: list[ArchiveEntry]) -> dict[str, str]:
    if not any(e.filename == MANIFEST_ENTRY_NAME for e in entries):
        logger.debug("No manifest in %s, using defaults", archive.path)
        return {}
    with archive.open_entry(MANIFEST_ENTRY_NAME) as stream:
        try:
            data = stream.read()
        except ARCHIVE_ERRORS as exc:
            raise ArchiveReadError(archive.path, MANIFEST_ENTRY_NAME, str(exc)) from exc
    try:
        text = data.decode(_MANIFEST_ENCODING)
    except UnicodeDecodeError as exc:
        raise ConfigurationParseError(
            MANIFEST_ENTRY_NAME, None, f"manifest is not valid {_MANIFEST_ENCODING}"
        ) from exc
    return parse_properties(text)


def _write_entry(
    writer: ArchiveWriter,
    name: str,
    last_modified: int,
    reader: TextIO,
    encoding: str,
) -> None:
    encoder = codecs.getincrementalencoder(encoding)()
    with writer.open_entry(name, last_modified) as stream:
        while chunk := reader.read(_TRANSFER_CHUNK_SIZE):
            stream.write(encoder.encode(chunk))
        stream.write(encoder.encode("", final=True))


class ArchiveScriptLocation:
    """Scripts and their configuration, read from or destined for an archive.

    Use :meth:`open` to read an existing archive and :meth:`from_scripts` to
    stage scripts for :meth:`write`.  An opened location keeps its archive
    open for the scripts' content handles until :meth:`close`.
    """

    def __init__(
        self,
        scripts: Iterable[Script],
        config: LocationConfig,
        *,
        archive_file: Path | None = None,
        archive: ArchiveReader | None = None,
    ) -> None:
        self._config = config
        self._scripts = sort_scripts(scripts)
        self._archive_file = archive_file.absolute() if archive_file is not None else None
        self._archive = archive

    @classmethod
    def from_scripts(cls, scripts: Iterable[Script], config: LocationConfig) -> Self:
        """Create a location that has no archive yet, for a later :meth:`write`."""
        return cls(scripts, config)

    @classmethod
    def open(cls, archive_file: str | Path, defaults: LocationConfig) -> Self:
        """Read the archive at *archive_file*.

        Manifest values override *defaults* field by field; a missing
        manifest leaves every field at its default.

        Raises:
            ArchiveOpenError: If the archive is missing or not a valid archive.
            ArchiveReadError: If the manifest or an entry cannot be read.
            ConfigurationParseError: If a manifest value is invalid.
        """
        archive_file = Path(archive_file)
        archive = open_archive(archive_file)
        try:
            entries = archive.list_entries()
            config = LocationConfig.merged(_read_manifest(archive, entries), defaults)
            scripts = [
                Script(
                    entry.filename,
                    entry.last_modified,
                    ArchiveEntryContent(archive, entry.filename, config.encoding),
                    config,
                )
                for entry in entries
                if not entry.is_dir and entry.filename != MANIFEST_ENTRY_NAME
            ]
        except Exception:
            close_quietly(archive, f"archive {archive_file}")
            raise
        logger.debug("Loaded %d scripts from %s", len(scripts), archive_file)
        return cls(scripts, config, archive_file=archive_file, archive=archive)

    @property
    def config(self) -> LocationConfig:
        return self._config

    @property
    def scripts(self) -> tuple[Script, ...]:
        return self._scripts

    @property
    def archive_file(self) -> Path | None:
        return self._archive_file

    @property
    def location_name(self) -> str:
        if self._archive_file is None:
            return UNDEFINED_LOCATION_NAME
        return str(self._archive_file)

    def write(self, target_file: str | Path) -> None:
        """Write the configuration and all scripts to a new archive at *target_file*.

        The archive is built next to the target and moved into place only
        once complete, so a failed write never leaves a valid-looking file.

        Raises:
            ArchiveWriteError: If the archive cannot be created, an entry
                cannot be written, or the archive cannot be finished.
        """
        target = Path(target_file)
        if target.suffix.lower() not in SUPPORTED_EXTENSIONS:
            raise ArchiveWriteError(target, reason=f"unsupported archive format {target.suffix}")
        try:
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{target.name}.", suffix=".part", dir=target.parent
            )
        except OSError as exc:
            raise ArchiveWriteError(target, reason=str(exc)) from exc
        os.close(fd)
        tmp_path = Path(tmp_name)
        try:
            self._write_archive(tmp_path, target)
            try:
                # mkstemp creates 0600 files
                os.chmod(tmp_path, 0o644)
                os.replace(tmp_path, target)
            except OSError as exc:
                raise ArchiveWriteError(target, reason=str(exc)) from exc
        except BaseException:
            tmp_path.unlink(missing_ok=True)
            raise
        self._archive_file = target.absolute()
        logger.info("Wrote %d scripts to %s", len(self._scripts), self._archive_file)

    def _write_archive(self, path: Path, target: Path) -> None:
        try:
            writer = create_archive(path)
        except ARCHIVE_ERRORS as exc:
            raise ArchiveWriteError(target, reason=str(exc)) from exc
        try:
            self._write_manifest(writer, target)
            for script in self._scripts:
                self._write_script(writer, target, script)
        except BaseException as exc:
            try:
                writer.close()
            except ARCHIVE_ERRORS as close_exc:
                exc.add_note(f"Closing archive {target} also failed: {close_exc}")
            raise
        try:
            writer.close()
        except ARCHIVE_ERRORS as exc:
            raise ArchiveWriteError(target, reason=f"closing failed: {exc}") from exc

    def _write_manifest(self, writer: ArchiveWriter, target: Path) -> None:
        text = format_properties(self._config.to_properties(), comment="script location")
        try:
            with io.StringIO(text) as reader:
                _write_entry(writer, MANIFEST_ENTRY_NAME, _now_millis(), reader, _MANIFEST_ENCODING)
        except ARCHIVE_ERRORS as exc:
            raise ArchiveWriteError(target, MANIFEST_ENTRY_NAME, str(exc)) from exc

    def _write_script(self, writer: ArchiveWriter, target: Path, script: Script) -> None:
        if script.name == MANIFEST_ENTRY_NAME:
            raise ArchiveWriteError(target, script.name, "name is reserved for the manifest")
        try:
            with script.content.open_reader() as reader:
                _write_entry(
                    writer, script.name, script.last_modified, reader, self._config.encoding
                )
        except (ScriptBundleError, *ARCHIVE_ERRORS) as exc:
            raise ArchiveWriteError(target, script.name, str(exc)) from exc
        logger.debug("Added %s to %s", script.name, target)

    def close(self) -> None:
        """Release the archive opened by :meth:`open`.  Never raises."""
        archive, self._archive = self._archive, None
        close_quietly(archive, f"archive {self.location_name}")

    def __enter__(self) -> Self:
        return self

    def __exit__(self, exc_type: object, exc_val: object, exc_tb: object) -> None:
        self.close()
