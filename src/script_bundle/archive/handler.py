"""Archive readers and writers for script bundles.

Provides a uniform interface for listing, opening and writing archive
entries.  ZIP is the only container format; ``.jar`` files are ZIP archives
and are accepted as well.
"""

from __future__ import annotations

import logging
import zipfile
import zlib
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import IO

from script_bundle.archive.timestamps import (
    decode_timestamp_extra,
    encode_timestamp_extra,
    from_dos_date_time,
    to_dos_date_time,
)
from script_bundle.constants import SUPPORTED_EXTENSIONS
from script_bundle.errors import ArchiveOpenError, ArchiveReadError

logger = logging.getLogger(__name__)

# Exceptions the zipfile module raises for I/O and format problems.
ARCHIVE_ERRORS: tuple[type[Exception], ...] = (
    OSError,
    ValueError,
    KeyError,
    RuntimeError,
    EOFError,
    zipfile.BadZipFile,
    zlib.error,
)


@dataclass(frozen=True, slots=True)
class ArchiveEntry:
    filename: str
    is_dir: bool
    size: int = 0
    last_modified: int = 0  # epoch milliseconds


class ArchiveReader(ABC):
    """Read access to an existing archive."""

    @property
    @abstractmethod
    def path(self) -> Path:
        """Location of the archive on disk."""

    @abstractmethod
    def list_entries(self) -> list[ArchiveEntry]:
        """Return all entries in the archive, in stored order."""

    @abstractmethod
    def open_entry(self, name: str) -> IO[bytes]:
        """Open a new binary stream over the entry called *name*."""

    @abstractmethod
    def close(self) -> None:
        """Release resources."""

    def __enter__(self) -> ArchiveReader:
        return self

    def __exit__(self, exc_type: object, exc_val: object, exc_tb: object) -> None:
        self.close()


class ArchiveWriter(ABC):
    """Sequential writer for a new archive."""

    @abstractmethod
    def open_entry(self, name: str, last_modified: int) -> IO[bytes]:
        """Start a new entry and return a stream for its payload."""

    @abstractmethod
    def close(self) -> None:
        """Finish the archive.  Errors propagate; the file is invalid if this fails."""

    def __enter__(self) -> ArchiveWriter:
        return self

    def __exit__(self, exc_type: object, exc_val: object, exc_tb: object) -> None:
        self.close()


class ZipReader(ArchiveReader):
    """Reader for .zip/.jar archives using stdlib zipfile.

    Each :meth:`open_entry` call returns an independent stream; several
    entries may be open at the same time.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        self._zf = zipfile.ZipFile(self._path, "r")

    @property
    def path(self) -> Path:
        return self._path

    def list_entries(self) -> list[ArchiveEntry]:
        entries: list[ArchiveEntry] = []
        for info in self._zf.infolist():
            entries.append(
                ArchiveEntry(
                    filename=info.filename,
                    is_dir=info.is_dir(),
                    size=info.file_size,
                    last_modified=self._entry_timestamp(info),
                )
            )
        return entries

    def _entry_timestamp(self, info: zipfile.ZipInfo) -> int:
        try:
            millis = decode_timestamp_extra(info.extra)
        except ValueError as exc:
            raise ArchiveReadError(self._path, info.filename, str(exc)) from exc
        if millis is None:
            return from_dos_date_time(info.date_time)
        return millis

    def open_entry(self, name: str) -> IO[bytes]:
        try:
            return self._zf.open(name, "r")
        except ARCHIVE_ERRORS as exc:
            raise ArchiveReadError(self._path, name, str(exc)) from exc

    def close(self) -> None:
        self._zf.close()


class ZipWriter(ArchiveWriter):
    """Writer producing deflated .zip archives with exact entry timestamps."""

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        self._zf = zipfile.ZipFile(self._path, "w", compression=zipfile.ZIP_DEFLATED)

    def open_entry(self, name: str, last_modified: int) -> IO[bytes]:
        info = zipfile.ZipInfo(name, date_time=to_dos_date_time(last_modified))
        info.compress_type = zipfile.ZIP_DEFLATED
        info.extra = encode_timestamp_extra(last_modified)
        return self._zf.open(info, "w")

    def close(self) -> None:
        self._zf.close()


def open_archive(path: str | Path) -> ArchiveReader:
    """Open an archive file and return the appropriate reader.

    Raises:
        ArchiveOpenError: If the format is not supported, or the file is
            missing, unreadable or corrupt.
    """
    path = Path(path)
    ext = path.suffix.lower()

    if ext not in SUPPORTED_EXTENSIONS:
        raise ArchiveOpenError(path, f"unsupported archive format {ext or '(none)'}")
    try:
        reader = ZipReader(path)
    except ARCHIVE_ERRORS as exc:
        raise ArchiveOpenError(path, str(exc)) from exc
    logger.debug("Opened archive %s", path)
    return reader


def create_archive(path: str | Path) -> ArchiveWriter:
    """Create (or truncate) a ZIP archive at *path*.  zipfile errors propagate."""
    return ZipWriter(path)
