"""
Post-install verification.

CMake can exit 0 and still leave no shared library behind, e.g. when a
patch silently stopped matching. This gate turns that into a failure.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from .config import BuildConfig
from .domain import StageResult, ok
from .errors import VerificationError

LOG = logging.getLogger(__name__)


def find_artifact(root: Path, pattern: str) -> Optional[Path]:
    """
    Return the first file below root whose name matches pattern.
    """

    if not root.is_dir():
        return None
    for candidate in sorted(root.rglob(pattern)):
        if candidate.is_file():
            return candidate
    return None


def verify_install(config: BuildConfig) -> StageResult:
    artifact = find_artifact(config.install_dir, config.artifact_pattern)
    if artifact is None:
        raise VerificationError(
            f"no file matching {config.artifact_pattern} under {config.install_dir}; "
            "the build reported success but produced no shared library"
        )
    LOG.info("Found %s", artifact)
    result = StageResult(stage="verify")
    result.add(ok(str(artifact)))
    return result
