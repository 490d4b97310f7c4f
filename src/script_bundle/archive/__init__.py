from script_bundle.archive.handler import (
    ArchiveEntry,
    ArchiveReader,
    ArchiveWriter,
    ZipReader,
    ZipWriter,
    create_archive,
    open_archive,
)
from script_bundle.archive.location import ArchiveEntryContent, ArchiveScriptLocation

__all__ = [
    "ArchiveEntry",
    "ArchiveEntryContent",
    "ArchiveReader",
    "ArchiveScriptLocation",
    "ArchiveWriter",
    "ZipReader",
    "ZipWriter",
    "create_archive",
    "open_archive",
]
