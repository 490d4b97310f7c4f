from script_bundle.archive.location import ArchiveScriptLocation
from script_bundle.directory import DirectoryScriptLocation
from script_bundle.errors import (
    ArchiveOpenError,
    ArchiveReadError,
    ArchiveWriteError,
    ConfigurationError,
    ConfigurationParseError,
    ScriptBundleError,
)
from script_bundle.location import LocationConfig, ScriptLocation, sort_scripts
from script_bundle.properties import load_configuration, load_default_config
from script_bundle.script import FileContent, Script, ScriptContentHandle, TextContent

__all__ = [
    "ArchiveOpenError",
    "ArchiveReadError",
    "ArchiveScriptLocation",
    "ArchiveWriteError",
    "ConfigurationError",
    "ConfigurationParseError",
    "DirectoryScriptLocation",
    "FileContent",
    "LocationConfig",
    "Script",
    "ScriptBundleError",
    "ScriptContentHandle",
    "ScriptLocation",
    "TextContent",
    "load_configuration",
    "load_default_config",
    "sort_scripts",
]
