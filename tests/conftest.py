import zipfile
from pathlib import Path

import pytest

from script_bundle.constants import MANIFEST_ENTRY_NAME
from script_bundle.location import LocationConfig


@pytest.fixture
def config() -> LocationConfig:
    return LocationConfig(
        file_extensions={"sql"},
        target_database_prefix="@",
        qualifier_prefix="#",
        patch_qualifiers={"patch"},
        postprocessing_dir_name="postprocessing",
        encoding="UTF-8",
    )


@pytest.fixture
def make_zip(tmp_path):
    """Build a zip with the given entries, in the given order.

    ``manifest`` is written as the manifest entry when not ``None``.
    """

    def _make(
        files: dict[str, bytes | str],
        name: str = "scripts.zip",
        manifest: str | None = None,
    ) -> Path:
        path = tmp_path / name
        with zipfile.ZipFile(path, "w", compression=zipfile.ZIP_STORED) as zf:
            if manifest is not None:
                zf.writestr(MANIFEST_ENTRY_NAME, manifest)
            for entry_name, content in files.items():
                zf.writestr(entry_name, content)
        return path

    return _make
