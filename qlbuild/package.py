"""
Packaging of a finished build into a distributable zip.

The staging area mirrors the archive layout:

    bin/ lib/ include/      installed QuantLib tree
    bin/quantlib-test-suite optional, when tests were built
    include/boost/          Boost headers needed by consumers
    licenses/               QuantLib and Boost license texts
"""

from __future__ import annotations

import logging
import shutil
import zipfile
from pathlib import Path
from typing import List, Optional

from .config import BuildConfig
from .domain import StageResult, ok, warning
from .errors import PackagingError

LOG = logging.getLogger(__name__)

TEST_BINARY_PATTERN = "quantlib-test-suite*"
TEST_BINARY_DIR = "test-suite"

QUANTLIB_LICENSE = "LICENSE.TXT"
BOOST_LICENSE = "LICENSE_1_0.txt"


def find_test_binary(build_dir: Path) -> Optional[Path]:
    """
    Locate the test-suite executable in the build tree.

    Only files living somewhere below a test-suite directory qualify;
    intermediate build products with similar names elsewhere are
    ignored.
    """

    if not build_dir.is_dir():
        return None
    for candidate in sorted(build_dir.rglob(TEST_BINARY_PATTERN)):
        if not candidate.is_file() or candidate.suffix in (".pdb", ".ilk", ".obj"):
            continue
        if TEST_BINARY_DIR in candidate.relative_to(build_dir).parts[:-1]:
            return candidate
    return None


def _prepare_staging(staging: Path) -> None:
    if staging.exists():
        shutil.rmtree(staging)
    staging.mkdir(parents=True)


def write_archive(staging: Path, archive: Path) -> None:
    """
    Compress staging into archive, replacing any earlier archive.
    """

    archive.parent.mkdir(parents=True, exist_ok=True)
    if archive.exists():
        archive.unlink()
    with zipfile.ZipFile(archive, "w", compression=zipfile.ZIP_DEFLATED) as zf:
        for path in sorted(staging.rglob("*")):
            if path.is_file():
                zf.write(path, path.relative_to(staging).as_posix())


def archive_listing(archive: Path) -> List[str]:
    with zipfile.ZipFile(archive) as zf:
        return zf.namelist()


def package_install(config: BuildConfig) -> StageResult:
    result = StageResult(stage="package")
    staging = config.staging_dir
    archive = config.resolved_archive_path

    try:
        _prepare_staging(staging)
        shutil.copytree(config.install_dir, staging, dirs_exist_ok=True)

        if config.build_tests:
            test_binary = find_test_binary(config.build_dir)
            if test_binary is None:
                detail = f"test binary {TEST_BINARY_PATTERN} not found under {config.build_dir}"
                LOG.warning("%s", detail)
                result.add(warning(detail))
            else:
                (staging / "bin").mkdir(exist_ok=True)
                shutil.copy2(test_binary, staging / "bin" / test_binary.name)
                result.add(ok(f"included {test_binary.name}"))

        shutil.copytree(
            config.boost_root / "boost",
            staging / "include" / "boost",
            dirs_exist_ok=True,
        )

        licenses = staging / "licenses"
        licenses.mkdir(exist_ok=True)
        shutil.copy2(config.quantlib_root / QUANTLIB_LICENSE, licenses / f"QuantLib-{QUANTLIB_LICENSE}")
        shutil.copy2(config.boost_root / BOOST_LICENSE, licenses / f"Boost-{BOOST_LICENSE}")

        LOG.info("Writing %s", archive)
        write_archive(staging, archive)
    except (OSError, shutil.Error, zipfile.BadZipFile) as exc:
        raise PackagingError(f"failed to package {config.install_dir}: {exc}") from exc

    result.add(ok(str(archive)))
    return result
