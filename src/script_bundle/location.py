"""Resolved script location configuration and the location capability.

A location binds a fully resolved :class:`LocationConfig` to an ordered,
duplicate-free tuple of scripts.  Locations do not share a base class; any
object exposing ``config``, ``scripts`` and ``location_name`` qualifies.
"""

from __future__ import annotations

import codecs
import logging
from collections.abc import Iterable, Mapping
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from script_bundle.constants import (
    PROPKEY_ENCODING,
    PROPKEY_FILE_EXTENSIONS,
    PROPKEY_PATCH_QUALIFIERS,
    PROPKEY_POSTPROCESSING_DIR_NAME,
    PROPKEY_QUALIFIER_PREFIX,
    PROPKEY_TARGET_DATABASE_PREFIX,
)
from script_bundle.errors import ConfigurationParseError

if TYPE_CHECKING:
    from script_bundle.script import Script

logger = logging.getLogger(__name__)

# field name -> property key, in manifest order
PROPERTY_KEYS: dict[str, str] = {
    "file_extensions": PROPKEY_FILE_EXTENSIONS,
    "target_database_prefix": PROPKEY_TARGET_DATABASE_PREFIX,
    "qualifier_prefix": PROPKEY_QUALIFIER_PREFIX,
    "patch_qualifiers": PROPKEY_PATCH_QUALIFIERS,
    "postprocessing_dir_name": PROPKEY_POSTPROCESSING_DIR_NAME,
    "encoding": PROPKEY_ENCODING,
}


class LocationConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    file_extensions: frozenset[str]
    target_database_prefix: str = Field(min_length=1)
    qualifier_prefix: str = Field(min_length=1)
    patch_qualifiers: frozenset[str] = frozenset()
    postprocessing_dir_name: str = ""
    encoding: str

    @field_validator("file_extensions", "patch_qualifiers", mode="before")
    @classmethod
    def _split_comma_separated(cls, value: object) -> object:
        if isinstance(value, str):
            return value.split(",")
        return value

    @field_validator("file_extensions")
    @classmethod
    def _normalize_extensions(cls, value: frozenset[str]) -> frozenset[str]:
        extensions = frozenset(
            ext.strip().lstrip(".").lower() for ext in value if ext.strip().lstrip(".")
        )
        if not extensions:
            raise ValueError("at least one script file extension is required")
        return extensions

    @field_validator("patch_qualifiers")
    @classmethod
    def _normalize_qualifiers(cls, value: frozenset[str]) -> frozenset[str]:
        return frozenset(q.strip().lower() for q in value if q.strip())

    @field_validator("postprocessing_dir_name")
    @classmethod
    def _strip_dir_name(cls, value: str) -> str:
        return value.strip().strip("/")

    @field_validator("encoding")
    @classmethod
    def _known_encoding(cls, value: str) -> str:
        value = value.strip()
        try:
            codecs.lookup(value)
        except LookupError as exc:
            raise ValueError(f"unknown encoding {value!r}") from exc
        return value

    @classmethod
    def _validate_fields(cls, values: Mapping[str, object]) -> LocationConfig:
        try:
            return cls.model_validate(dict(values))
        except ValidationError as exc:
            error = exc.errors()[0]
            field_name = str(error["loc"][0]) if error["loc"] else ""
            raw = values.get(field_name)
            raise ConfigurationParseError(
                PROPERTY_KEYS.get(field_name, field_name),
                raw if isinstance(raw, str) or raw is None else _join(raw),
                error["msg"],
            ) from exc

    @classmethod
    def from_properties(cls, properties: Mapping[str, str]) -> LocationConfig:
        """Build a configuration in which every property key must be present."""
        values: dict[str, object] = {}
        for field_name, key in PROPERTY_KEYS.items():
            if key not in properties:
                raise ConfigurationParseError(key, None, "property is not defined")
            values[field_name] = properties[key]
        return cls._validate_fields(values)

    @classmethod
    def merged(cls, overrides: Mapping[str, str], defaults: LocationConfig) -> LocationConfig:
        """Resolve each field from *overrides* when its key is present, else from *defaults*.

        Raises:
            ConfigurationParseError: If an override cannot be parsed.
        """
        values: dict[str, object] = {}
        for field_name, key in PROPERTY_KEYS.items():
            if key in overrides:
                values[field_name] = overrides[key]
            else:
                values[field_name] = getattr(defaults, field_name)
        return cls._validate_fields(values)

    def to_properties(self) -> dict[str, str]:
        properties: dict[str, str] = {}
        for field_name, key in PROPERTY_KEYS.items():
            value = getattr(self, field_name)
            properties[key] = _join(value) if isinstance(value, frozenset) else value
        return properties


def _join(values: Iterable[str]) -> str:
    return ",".join(sorted(values))


@runtime_checkable
class ScriptLocation(Protocol):
    @property
    def config(self) -> LocationConfig: ...

    @property
    def scripts(self) -> tuple[Script, ...]: ...

    @property
    def location_name(self) -> str: ...


def sort_scripts(scripts: Iterable[Script]) -> tuple[Script, ...]:
    """Drop duplicate names (the last one wins) and order by the script order."""
    by_name: dict[str, Script] = {}
    for script in scripts:
        if script.name in by_name:
            logger.warning("Duplicate script %s, keeping the last occurrence", script.name)
        by_name[script.name] = script
    return tuple(sorted(by_name.values()))
