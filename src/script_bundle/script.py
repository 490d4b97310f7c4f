"""Scripts and the handles that give access to their content.

Script names are ``/``-separated relative paths such as
``01_schema/02_@users_#patch_add_email.sql``.  Every path segment may start
with a version index (``01_``); the file name may carry a target database
token (``@users``) and qualifier tokens (``#patch``).  Scripts are compared by
name and ordered so that incremental scripts come first, by version index,
then repeatable scripts, then post-processing scripts.
"""

from __future__ import annotations

import io
import re
from abc import ABC, abstractmethod
from functools import cached_property, total_ordering
from pathlib import Path
from typing import TextIO

from script_bundle.location import LocationConfig

_INDEX_RE = re.compile(r"^(\d+)_")


class ScriptContentHandle(ABC):
    """Reopenable source of a script's text."""

    @abstractmethod
    def open_reader(self) -> TextIO:
        """Open a fresh text stream over the content.  The caller closes it."""

    def read_text(self) -> str:
        with self.open_reader() as reader:
            return reader.read()


class TextContent(ScriptContentHandle):
    def __init__(self, text: str) -> None:
        self._text = text

    def open_reader(self) -> TextIO:
        return io.StringIO(self._text)


class FileContent(ScriptContentHandle):
    def __init__(self, path: str | Path, encoding: str) -> None:
        self._path = Path(path)
        self._encoding = encoding

    @property
    def path(self) -> Path:
        return self._path

    def open_reader(self) -> TextIO:
        # newline="" keeps line endings as stored so content survives repacking unchanged
        return self._path.open("r", encoding=self._encoding, newline="")


def _parse_index(segment: str) -> int | None:
    m = _INDEX_RE.match(segment)
    return int(m.group(1)) if m else None


@total_ordering
class Script:
    def __init__(
        self,
        name: str,
        last_modified: int,
        content: ScriptContentHandle,
        config: LocationConfig,
    ) -> None:
        self._name = name.replace("\\", "/")
        self._last_modified = int(last_modified)
        self._content = content
        self._config = config

    @property
    def name(self) -> str:
        return self._name

    @property
    def last_modified(self) -> int:
        """Milliseconds since the Unix epoch."""
        return self._last_modified

    @property
    def content(self) -> ScriptContentHandle:
        return self._content

    @cached_property
    def _segments(self) -> list[str]:
        return self._name.split("/")

    @cached_property
    def _file_tokens(self) -> list[str]:
        stem = self._segments[-1].rsplit(".", 1)[0]
        tokens = stem.split("_")
        if _parse_index(self._segments[-1]) is not None:
            tokens = tokens[1:]
        return tokens

    @property
    def extension(self) -> str:
        file_name = self._segments[-1]
        return file_name.rsplit(".", 1)[1].lower() if "." in file_name else ""

    @cached_property
    def version_indexes(self) -> tuple[int | None, ...]:
        return tuple(_parse_index(segment) for segment in self._segments)

    @property
    def is_postprocessing(self) -> bool:
        dir_name = self._config.postprocessing_dir_name
        if not dir_name or len(self._segments) < 2:
            return False
        return self._segments[0].lower() == dir_name.lower()

    @property
    def is_repeatable(self) -> bool:
        return not self.is_postprocessing and all(i is None for i in self.version_indexes)

    @property
    def is_incremental(self) -> bool:
        return not self.is_postprocessing and not self.is_repeatable

    @cached_property
    def qualifiers(self) -> frozenset[str]:
        prefix = self._config.qualifier_prefix
        return frozenset(
            token[len(prefix) :].lower()
            for token in self._file_tokens
            if token.startswith(prefix) and len(token) > len(prefix)
        )

    @cached_property
    def target_database(self) -> str | None:
        prefix = self._config.target_database_prefix
        for token in self._file_tokens:
            if token.startswith(prefix) and len(token) > len(prefix):
                return token[len(prefix) :]
        return None

    @property
    def is_patch(self) -> bool:
        return not self.qualifiers.isdisjoint(self._config.patch_qualifiers)

    @cached_property
    def _sort_key(self) -> tuple[object, ...]:
        # unindexed segments sort after indexed ones at the same depth
        versions = tuple((1, 0) if i is None else (0, i) for i in self.version_indexes)
        return (self.is_postprocessing, self.is_repeatable, versions, self._name)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Script):
            return NotImplemented
        return self._name == other._name

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Script):
            return NotImplemented
        return self._sort_key < other._sort_key

    def __hash__(self) -> int:
        return hash(self._name)

    def __repr__(self) -> str:
        return f"Script({self._name!r}, last_modified={self._last_modified})"
