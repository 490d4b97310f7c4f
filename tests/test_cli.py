import pytest
from pydantic import ValidationError
from typer.testing import CliRunner

from script_bundle import cli
from script_bundle.config import Settings

runner = CliRunner()


@pytest.fixture(autouse=True)
def _no_logging_setup(monkeypatch):
    monkeypatch.setattr(cli, "_configure_logging", lambda level: None)


@pytest.fixture
def script_dir(tmp_path):
    root = tmp_path / "scripts"
    root.mkdir()
    (root / "02_b.sql").write_text("create table b (id int);\n")
    (root / "01_a.sql").write_text("create table a (id int);\n")
    return root


def test_pack_then_list(script_dir, tmp_path):
    target = tmp_path / "bundle.zip"

    result = runner.invoke(cli.app, ["pack", str(script_dir), str(target)])
    assert result.exit_code == 0, result.output
    assert "Packed 2 scripts" in result.output
    assert target.exists()

    result = runner.invoke(cli.app, ["list", str(target)])
    assert result.exit_code == 0, result.output
    assert "scripts.encoding" in result.output
    assert result.output.index("01_a.sql") < result.output.index("02_b.sql")


def test_cat_prints_content(script_dir, tmp_path):
    target = tmp_path / "bundle.zip"
    runner.invoke(cli.app, ["pack", str(script_dir), str(target)])

    result = runner.invoke(cli.app, ["cat", str(target), "02_b.sql"])

    assert result.exit_code == 0, result.output
    assert result.output == "create table b (id int);\n"


def test_cat_unknown_script_fails(script_dir, tmp_path):
    target = tmp_path / "bundle.zip"
    runner.invoke(cli.app, ["pack", str(script_dir), str(target)])

    result = runner.invoke(cli.app, ["cat", str(target), "99_nope.sql"])

    assert result.exit_code == 1
    assert "No script named" in result.output


def test_pack_with_custom_config(script_dir, tmp_path):
    (script_dir / "03_c.ddl").write_text("drop table x;")
    custom = tmp_path / "custom.properties"
    custom.write_text("scripts.fileExtensions=ddl\n")
    target = tmp_path / "bundle.zip"

    result = runner.invoke(cli.app, ["pack", str(script_dir), str(target), "--config", str(custom)])

    assert result.exit_code == 0, result.output
    assert "Packed 1 scripts" in result.output


def test_list_missing_archive_fails(tmp_path):
    result = runner.invoke(cli.app, ["list", str(tmp_path / "missing.zip")])

    assert result.exit_code == 1
    assert "Error" in result.output


def test_custom_config_from_settings(script_dir, tmp_path, monkeypatch):
    (script_dir / "03_c.ddl").write_text("drop table x;")
    custom = tmp_path / "custom.properties"
    custom.write_text("scripts.fileExtensions=ddl\n")
    monkeypatch.setattr(cli.settings, "custom_config", custom)
    target = tmp_path / "bundle.zip"

    result = runner.invoke(cli.app, ["pack", str(script_dir), str(target)])

    assert result.exit_code == 0, result.output
    assert "Packed 1 scripts" in result.output


class TestSettings:
    def test_reads_prefixed_environment(self, monkeypatch, tmp_path):
        monkeypatch.setenv("SCRIPT_BUNDLE_CUSTOM_CONFIG", str(tmp_path / "c.properties"))
        monkeypatch.setenv("SCRIPT_BUNDLE_LOG_LEVEL", "debug")

        settings = Settings(_env_file=None)

        assert settings.custom_config == tmp_path / "c.properties"
        assert settings.log_level == "DEBUG"

    def test_rejects_unknown_log_level(self, monkeypatch):
        monkeypatch.setenv("SCRIPT_BUNDLE_LOG_LEVEL", "chatty")

        with pytest.raises(ValidationError):
            Settings(_env_file=None)


def test_cat_undecodable_script_fails(make_zip):
    path = make_zip({"01_a.sql": b"caf\xe9"})

    result = runner.invoke(cli.app, ["cat", str(path), "01_a.sql"])

    assert result.exit_code == 1
    assert "Error" in result.output
    assert "01_a.sql" in result.output
