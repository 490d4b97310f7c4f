"""Script location backed by a directory tree on disk.

Used to stage scripts from a working copy before packing them into an
archive.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path

from script_bundle.archive.location import ArchiveScriptLocation
from script_bundle.constants import MANIFEST_ENTRY_NAME
from script_bundle.errors import ScriptBundleError
from script_bundle.location import LocationConfig, sort_scripts
from script_bundle.script import FileContent, Script

logger = logging.getLogger(__name__)


class DirectoryScriptLocation:
    def __init__(self, root: Path, scripts: Iterable[Script], config: LocationConfig) -> None:
        self._root = root.absolute()
        self._scripts = sort_scripts(scripts)
        self._config = config

    @classmethod
    def scan(cls, root: str | Path, config: LocationConfig) -> DirectoryScriptLocation:
        """Collect every file under *root* whose extension is a script extension."""
        root = Path(root)
        if not root.is_dir():
            raise ScriptBundleError(f"Script directory {root} not found")

        scripts: list[Script] = []
        for file_path in root.rglob("*"):
            if not file_path.is_file():
                continue
            if file_path.suffix.lstrip(".").lower() not in config.file_extensions:
                continue
            name = file_path.relative_to(root).as_posix()
            if name == MANIFEST_ENTRY_NAME:
                logger.warning("Skipping %s: name is reserved for the archive manifest", name)
                continue
            last_modified = file_path.stat().st_mtime_ns // 1_000_000
            scripts.append(
                Script(name, last_modified, FileContent(file_path, config.encoding), config)
            )
        logger.debug("Found %d scripts under %s", len(scripts), root)
        return cls(root, scripts, config)

    @property
    def config(self) -> LocationConfig:
        return self._config

    @property
    def scripts(self) -> tuple[Script, ...]:
        return self._scripts

    @property
    def location_name(self) -> str:
        return str(self._root)

    def to_archive(self) -> ArchiveScriptLocation:
        return ArchiveScriptLocation.from_scripts(self._scripts, self._config)
