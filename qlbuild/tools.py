"""
External tool integration for qlbuild.

Every external process (CMake, the 7z extractor) goes through run_tool
so that logging and exit-status handling are centralized. A non-zero
exit always raises; there are no retries.
"""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path
from typing import Optional, Sequence, Union

from .errors import CommandError

LOG = logging.getLogger(__name__)

PathLike = Union[str, Path]


def run_tool(
    args: Sequence[str],
    cwd: Optional[PathLike] = None,
    capture: bool = True,
) -> subprocess.CompletedProcess[str]:
    """
    Run an external command and return the completed process.

    With capture=False the tool writes straight to the console, which
    is what long-running build steps want; stderr is then not part of
    the raised error.
    """

    cmd = [str(a) for a in args]
    LOG.debug("Running command: %s", " ".join(cmd))
    try:
        completed = subprocess.run(
            cmd,
            cwd=str(cwd) if cwd is not None else None,
            check=False,
            text=True,
            capture_output=capture,
        )
    except OSError as exc:
        raise CommandError(cmd, None, f"failed to execute {cmd[0]}: {exc}") from exc

    if completed.returncode != 0:
        stderr = completed.stderr if capture else None
        LOG.debug("%s stderr: %s", cmd[0], stderr)
        raise CommandError(cmd, completed.returncode, stderr)

    return completed


def extract_7z(seven_zip: str, archive: PathLike, destination: PathLike) -> None:
    """
    Unpack a .7z archive into destination with the 7z command-line tool.
    """

    run_tool([seven_zip, "x", "-y", f"-o{destination}", str(archive)])
