import pytest
from pydantic import ValidationError

from script_bundle.errors import ConfigurationParseError
from script_bundle.location import LocationConfig, ScriptLocation, sort_scripts
from script_bundle.script import Script, TextContent


def _properties(**overrides: str) -> dict[str, str]:
    properties = {
        "scripts.fileExtensions": "sql,ddl",
        "scripts.targetDatabase.prefix": "@",
        "scripts.qualifier.prefix": "#",
        "scripts.patch.qualifiers": "patch",
        "scripts.postProcessing.dirName": "postprocessing",
        "scripts.encoding": "UTF-8",
    }
    properties.update(overrides)
    return properties


class TestFromProperties:
    def test_parses_all_fields(self):
        config = LocationConfig.from_properties(_properties())

        assert config.file_extensions == frozenset({"sql", "ddl"})
        assert config.target_database_prefix == "@"
        assert config.qualifier_prefix == "#"
        assert config.patch_qualifiers == frozenset({"patch"})
        assert config.postprocessing_dir_name == "postprocessing"
        assert config.encoding == "UTF-8"

    def test_set_values_are_trimmed_and_normalized(self):
        config = LocationConfig.from_properties(
            _properties(
                **{
                    "scripts.fileExtensions": " .SQL, ddl ,,",
                    "scripts.patch.qualifiers": "Patch, HOTFIX,",
                }
            )
        )

        assert config.file_extensions == frozenset({"sql", "ddl"})
        assert config.patch_qualifiers == frozenset({"patch", "hotfix"})

    def test_empty_patch_qualifiers_allowed(self):
        config = LocationConfig.from_properties(_properties(**{"scripts.patch.qualifiers": ""}))
        assert config.patch_qualifiers == frozenset()

    def test_missing_key_raises(self):
        properties = _properties()
        del properties["scripts.qualifier.prefix"]

        with pytest.raises(ConfigurationParseError) as exc_info:
            LocationConfig.from_properties(properties)

        assert exc_info.value.key == "scripts.qualifier.prefix"
        assert exc_info.value.value is None

    @pytest.mark.parametrize(
        ("key", "value"),
        [
            ("scripts.fileExtensions", " , "),
            ("scripts.targetDatabase.prefix", ""),
            ("scripts.qualifier.prefix", ""),
            ("scripts.encoding", "klingon-8"),
        ],
    )
    def test_invalid_value_raises_with_key(self, key, value):
        with pytest.raises(ConfigurationParseError) as exc_info:
            LocationConfig.from_properties(_properties(**{key: value}))

        assert exc_info.value.key == key
        assert exc_info.value.value == value


class TestMerged:
    def test_overrides_win_field_by_field(self, config):
        merged = LocationConfig.merged(
            {"scripts.qualifier.prefix": "!", "scripts.fileExtensions": "ddl"}, config
        )

        assert merged.qualifier_prefix == "!"
        assert merged.file_extensions == frozenset({"ddl"})
        assert merged.target_database_prefix == config.target_database_prefix
        assert merged.encoding == config.encoding

    def test_no_overrides_equals_defaults(self, config):
        assert LocationConfig.merged({}, config) == config

    def test_unknown_keys_ignored(self, config):
        assert LocationConfig.merged({"something.else": "x"}, config) == config

    def test_invalid_override_raises(self, config):
        with pytest.raises(ConfigurationParseError, match="scripts.encoding"):
            LocationConfig.merged({"scripts.encoding": "???"}, config)


class TestToProperties:
    def test_sets_joined_sorted(self):
        config = LocationConfig(
            file_extensions={"sql", "ddl"},
            target_database_prefix="@",
            qualifier_prefix="#",
            patch_qualifiers={"patch", "hotfix"},
            encoding="UTF-8",
        )

        properties = config.to_properties()

        assert properties["scripts.fileExtensions"] == "ddl,sql"
        assert properties["scripts.patch.qualifiers"] == "hotfix,patch"
        assert properties["scripts.postProcessing.dirName"] == ""

    def test_parses_back_to_equal_config(self, config):
        assert LocationConfig.from_properties(config.to_properties()) == config


def test_config_is_frozen(config):
    with pytest.raises(ValidationError):
        config.encoding = "ascii"


class TestSortScripts:
    def test_orders_and_deduplicates(self, config):
        scripts = [
            Script("02_b.sql", 1, TextContent(""), config),
            Script("01_a.sql", 1, TextContent(""), config),
            Script("02_b.sql", 9, TextContent(""), config),
        ]

        result = sort_scripts(scripts)

        assert [s.name for s in result] == ["01_a.sql", "02_b.sql"]
        assert result[1].last_modified == 9

    def test_returns_tuple(self, config):
        assert sort_scripts([]) == ()


def test_archive_location_satisfies_protocol(config):
    from script_bundle.archive.location import ArchiveScriptLocation

    assert isinstance(ArchiveScriptLocation.from_scripts([], config), ScriptLocation)
