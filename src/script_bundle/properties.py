"""Loading and writing flat ``key=value`` configuration.

The baseline configuration ships with the package as ``defaults.properties``.
A custom file may override any of its keys.  The same text format is used for
the manifest stored inside script archives.
"""

from __future__ import annotations

import io
import logging
from collections.abc import Mapping
from importlib import resources
from pathlib import Path

from dotenv import dotenv_values

from script_bundle.constants import DEFAULT_PROPERTIES_RESOURCE
from script_bundle.errors import ConfigurationError, ConfigurationParseError
from script_bundle.location import LocationConfig

logger = logging.getLogger(__name__)


def parse_properties(text: str) -> dict[str, str]:
    """Parse ``key=value`` lines.

    Raises:
        ConfigurationParseError: If a line names a key but has no ``=``.
    """
    values = dotenv_values(stream=io.StringIO(text), interpolate=False)
    properties: dict[str, str] = {}
    for key, value in values.items():
        if value is None:
            raise ConfigurationParseError(key, None, "missing '=' and value")
        properties[key] = value
    return properties


def _quote(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace("'", "\\'")
    return f"'{escaped}'"


def format_properties(properties: Mapping[str, str], comment: str = "") -> str:
    lines = [f"# {comment}"] if comment else []
    lines.extend(f"{key}={_quote(value)}" for key, value in properties.items())
    return "\n".join(lines) + "\n"


def load_default_configuration() -> dict[str, str]:
    """Load the baseline configuration bundled with the package.

    Raises:
        ConfigurationError: If the resource is missing or unreadable.
    """
    resource = resources.files("script_bundle").joinpath(DEFAULT_PROPERTIES_RESOURCE)
    try:
        text = resource.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigurationError(
            f"Configuration file {DEFAULT_PROPERTIES_RESOURCE} not found in package"
        ) from exc
    return parse_properties(text)


def load_properties_file(path: str | Path) -> dict[str, str]:
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigurationError(f"Unable to load configuration file {path}") from exc
    return parse_properties(text)


def load_configuration(custom_config: str | Path | None = None) -> dict[str, str]:
    """Return the baseline configuration overlaid with *custom_config*, if given."""
    properties = load_default_configuration()
    if custom_config is not None:
        overrides = load_properties_file(custom_config)
        logger.debug("Overriding %d properties from %s", len(overrides), custom_config)
        properties.update(overrides)
    return properties


def load_default_config(custom_config: str | Path | None = None) -> LocationConfig:
    return LocationConfig.from_properties(load_configuration(custom_config))
