"""
Logging helpers for qlbuild.

Only a verbosity-based setup is provided; the external tools write
their own output straight to the console. Verbosity applies to the
qlbuild loggers only, other libraries stay at WARNING.
"""

from __future__ import annotations

import logging

PACKAGE_LOGGER = "qlbuild"


def level_for(verbosity: int) -> int:
    """
    Map a -v count to a logging level.

    verbosity == 0 -> WARNING
    verbosity == 1 -> INFO
    verbosity >= 2 -> DEBUG
    """

    if verbosity <= 0:
        return logging.WARNING
    if verbosity == 1:
        return logging.INFO
    return logging.DEBUG


def configure_logging(verbosity: int) -> int:
    level = level_for(verbosity)
    logging.basicConfig(
        level=logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    logging.getLogger(PACKAGE_LOGGER).setLevel(level)
    return level
