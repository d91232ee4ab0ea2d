"""
Configuration model for qlbuild.

The CLI constructs a BuildConfig instance and passes it down into every
pipeline stage so behavior can be adjusted without relying on global
state. The record is frozen; stages only read from it.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

DEFAULT_QUANTLIB_VERSION = "1.34"
DEFAULT_BOOST_VERSION = "1.86.0"

QUANTLIB_URL = (
    "https://github.com/lballabio/QuantLib/releases/download/"
    "v{version}/QuantLib-{version}.tar.gz"
)
BOOST_URL = "https://archives.boost.io/release/{version}/source/{dirname}.7z"


def default_jobs() -> int:
    return os.cpu_count() or 1


@dataclass(frozen=True)
class BuildConfig:
    """
    Top-level configuration for a qlbuild run.

    Directory fields should be absolute; the CLI resolves them before
    building the record.
    """

    quantlib_version: str = DEFAULT_QUANTLIB_VERSION
    boost_version: str = DEFAULT_BOOST_VERSION
    work_dir: Path = Path("work")
    install_dir: Path = Path("install")
    archive_path: Optional[Path] = None
    jobs: int = field(default_factory=default_jobs)
    build_tests: bool = False
    package: bool = False
    build_type: str = "Release"
    generator: Optional[str] = None
    artifact_pattern: str = "QuantLib*.dll"
    cmake: str = "cmake"
    seven_zip: str = "7z"
    dry_run: bool = False
    verbosity: int = 0

    @property
    def boost_dirname(self) -> str:
        return "boost_" + self.boost_version.replace(".", "_")

    @property
    def quantlib_dirname(self) -> str:
        return f"QuantLib-{self.quantlib_version}"

    @property
    def downloads_dir(self) -> Path:
        return self.work_dir / "downloads"

    @property
    def boost_root(self) -> Path:
        return self.work_dir / self.boost_dirname

    @property
    def quantlib_root(self) -> Path:
        return self.work_dir / self.quantlib_dirname

    @property
    def build_dir(self) -> Path:
        return self.work_dir / "build"

    @property
    def staging_dir(self) -> Path:
        return self.work_dir / "staging"

    @property
    def boost_url(self) -> str:
        return BOOST_URL.format(version=self.boost_version, dirname=self.boost_dirname)

    @property
    def quantlib_url(self) -> str:
        return QUANTLIB_URL.format(version=self.quantlib_version)

    @property
    def resolved_archive_path(self) -> Path:
        """
        Location of the zip produced by the packager.

        Defaults to QuantLib-<version>-msvc-x64.zip in the current
        directory when no explicit output was given.
        """

        if self.archive_path is not None:
            return self.archive_path
        return Path.cwd() / f"QuantLib-{self.quantlib_version}-msvc-x64.zip"
