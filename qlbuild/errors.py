"""
Custom exception types used across qlbuild.

Every error carries the exit status the CLI should report, so the
pipeline can tell a failed tool apart from a build that produced no
usable artifact.
"""

from __future__ import annotations

from typing import Optional, Sequence


class QlBuildError(Exception):
    """Base class for all qlbuild specific errors."""

    exit_code = 1


class CommandError(QlBuildError):
    """Raised when an external tool exits with a non-zero status."""

    def __init__(
        self,
        cmd: Sequence[str],
        returncode: Optional[int],
        stderr: Optional[str] = None,
    ) -> None:
        self.cmd = list(cmd)
        self.returncode = returncode
        self.stderr = stderr
        message = f"command failed ({returncode}): {' '.join(self.cmd)}"
        if stderr and stderr.strip():
            message = f"{message}\n{stderr.strip()}"
        super().__init__(message)


class DownloadError(QlBuildError):
    """Raised when an archive cannot be downloaded."""


class ExtractionError(QlBuildError):
    """Raised when an archive cannot be unpacked into a usable tree."""


class PatchError(QlBuildError):
    """Raised when a source file cannot be read or rewritten."""


class VerificationError(QlBuildError):
    """Raised when the install tree lacks the expected artifact."""

    exit_code = 2


class PackagingError(QlBuildError):
    """Raised when the distributable archive cannot be assembled."""


class WorkspaceError(QlBuildError):
    """Raised when the work directory cannot be created or used."""
