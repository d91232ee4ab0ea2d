from pathlib import Path

import pytest

from qlbuild.config import BuildConfig


@pytest.fixture
def config(tmp_path: Path) -> BuildConfig:
    return BuildConfig(
        quantlib_version="1.34",
        boost_version="1.86.0",
        work_dir=tmp_path / "work",
        install_dir=tmp_path / "install",
        archive_path=tmp_path / "dist" / "QuantLib-1.34-msvc-x64.zip",
        jobs=4,
    )
