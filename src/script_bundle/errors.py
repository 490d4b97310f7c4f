"""Exceptions raised while reading, resolving, or writing script bundles."""

from __future__ import annotations

from pathlib import Path


class ScriptBundleError(Exception):
    pass


class ArchiveError(ScriptBundleError):
    def __init__(self, message: str, path: str | Path) -> None:
        self.path = Path(path)
        super().__init__(message)


class ArchiveOpenError(ArchiveError):
    def __init__(self, path: str | Path, reason: str = "") -> None:
        message = f"Error opening archive {path}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message, path)


class ArchiveReadError(ArchiveError):
    def __init__(self, path: str | Path, entry: str, reason: str = "") -> None:
        self.entry = entry
        message = f"Error reading entry {entry!r} from archive {path}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message, path)


class ArchiveWriteError(ArchiveError):
    def __init__(self, path: str | Path, entry: str | None = None, reason: str = "") -> None:
        self.entry = entry
        if entry is None:
            message = f"Error creating archive {path}"
        else:
            message = f"Error writing entry {entry!r} to archive {path}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message, path)


class ConfigurationError(ScriptBundleError):
    pass


class ConfigurationParseError(ConfigurationError):
    def __init__(self, key: str, value: str | None, reason: str = "") -> None:
        self.key = key
        self.value = value
        message = f"Invalid value {value!r} for configuration property {key}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
