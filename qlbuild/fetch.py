"""
Dependency fetching for qlbuild.

Boost (headers only, .7z) and the QuantLib release tarball are
downloaded into the work directory and unpacked next to each other.
A fetch is skipped entirely when the unpacked tree already contains
its marker file; the downloaded bytes are never checksummed.
"""

from __future__ import annotations

import logging
import os
import tarfile
from pathlib import Path
from urllib.request import urlretrieve

from .config import BuildConfig
from .domain import StageResult, ok
from .errors import DownloadError, ExtractionError, WorkspaceError
from .tools import extract_7z

LOG = logging.getLogger(__name__)

BOOST_MARKER = Path("boost") / "version.hpp"
QUANTLIB_MARKER = Path("CMakeLists.txt")


def download(url: str, folder: Path) -> Path:
    """
    Download url into folder and return the local path.

    An archive already present in folder is reused as is. The bytes go
    to a .part file first and only take the final name once the
    transfer completed, so an interrupted run never leaves a truncated
    archive that later runs would mistake for a cached one.
    """

    path = folder / os.path.basename(url)
    if path.exists():
        LOG.debug("Using cached archive: %s", path)
        return path

    partial = path.with_suffix(path.suffix + ".part")
    LOG.info("Downloading %s", url)
    completed = False
    try:
        folder.mkdir(parents=True, exist_ok=True)
        urlretrieve(url, filename=str(partial))
        partial.replace(path)
        completed = True
    except (OSError, ValueError) as exc:
        raise DownloadError(f"failed to download {url}: {exc}") from exc
    finally:
        if not completed and partial.exists():
            partial.unlink()
    return path


def extract_tar(archive: Path, destination: Path) -> None:
    LOG.info("Extracting %s", archive.name)
    try:
        with tarfile.open(archive) as tar:
            if hasattr(tarfile, "data_filter"):
                tar.extractall(destination, filter="data")
            else:
                tar.extractall(destination)
    except (tarfile.TarError, OSError) as exc:
        raise ExtractionError(f"failed to extract {archive}: {exc}") from exc


def _require_marker(marker: Path, archive: Path) -> None:
    if not marker.exists():
        raise ExtractionError(
            f"{archive.name} did not produce {marker}; "
            "the archive layout does not match the requested version"
        )


def fetch_boost(config: BuildConfig) -> Path:
    """
    Make sure the Boost headers tree exists and return its root.
    """

    root = config.boost_root
    marker = root / BOOST_MARKER
    if marker.exists():
        LOG.info("Boost %s already present at %s", config.boost_version, root)
        return root

    archive = download(config.boost_url, config.downloads_dir)
    LOG.info("Extracting %s", archive.name)
    extract_7z(config.seven_zip, archive, config.work_dir)
    _require_marker(marker, archive)
    return root


def fetch_quantlib(config: BuildConfig) -> Path:
    """
    Make sure the QuantLib source tree exists and return its root.
    """

    root = config.quantlib_root
    marker = root / QUANTLIB_MARKER
    if marker.exists():
        LOG.info("QuantLib %s already present at %s", config.quantlib_version, root)
        return root

    archive = download(config.quantlib_url, config.downloads_dir)
    extract_tar(archive, config.work_dir)
    _require_marker(marker, archive)
    return root


def fetch_dependencies(config: BuildConfig) -> StageResult:
    result = StageResult(stage="fetch")
    try:
        config.work_dir.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise WorkspaceError(f"cannot use work directory {config.work_dir}: {exc}") from exc
    result.add(ok(f"boost headers at {fetch_boost(config)}"))
    result.add(ok(f"quantlib sources at {fetch_quantlib(config)}"))
    return result
