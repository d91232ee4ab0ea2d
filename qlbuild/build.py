"""
CMake driver for qlbuild.

Configure, build and install run strictly in that order. Any non-zero
exit raises CommandError from run_tool and nothing after it runs;
whatever the failed step left in the build tree stays there for the
next attempt.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List

from .config import BuildConfig
from .domain import StageResult, StageOutcome, ok, warning
from .tools import run_tool

LOG = logging.getLogger(__name__)

MSVC_RUNTIME = "MultiThreaded$<$<CONFIG:Debug>:Debug>DLL"
GENERATED_CONFIG = Path("ql") / "config.hpp"
EXPORT_TOKEN = "QL_EXPORT"


def _on_off(flag: bool) -> str:
    return "ON" if flag else "OFF"


def configure_args(config: BuildConfig) -> List[str]:
    args = [
        config.cmake,
        "-S",
        str(config.quantlib_root),
        "-B",
        str(config.build_dir),
    ]
    if config.generator:
        args += ["-G", config.generator]
    args += [
        f"-DCMAKE_INSTALL_PREFIX={config.install_dir}",
        "-DCMAKE_INSTALL_BINDIR=bin",
        "-DCMAKE_INSTALL_LIBDIR=lib",
        "-DCMAKE_INSTALL_INCLUDEDIR=include",
        f"-DCMAKE_BUILD_TYPE={config.build_type}",
        "-DBUILD_SHARED_LIBS=ON",
        "-DCMAKE_WINDOWS_EXPORT_ALL_SYMBOLS=ON",
        f"-DCMAKE_MSVC_RUNTIME_LIBRARY={MSVC_RUNTIME}",
        f"-DBoost_INCLUDE_DIR={config.boost_root}",
        f"-DQL_BUILD_TEST_SUITE={_on_off(config.build_tests)}",
        "-DQL_BUILD_EXAMPLES=OFF",
        "-DQL_BUILD_BENCHMARK=OFF",
    ]
    return args


def build_args(config: BuildConfig) -> List[str]:
    return [
        config.cmake,
        "--build",
        str(config.build_dir),
        "--config",
        config.build_type,
        "--parallel",
        str(config.jobs),
    ]


def install_args(config: BuildConfig) -> List[str]:
    return [
        config.cmake,
        "--install",
        str(config.build_dir),
        "--config",
        config.build_type,
    ]


def check_generated_config(config: BuildConfig) -> StageOutcome:
    """
    Look for the export macro in the header CMake generated from the
    patched template. Only diagnostic: the outcome is never fatal.
    """

    header = config.build_dir / GENERATED_CONFIG
    if not header.is_file():
        detail = f"generated header {header} not found"
        LOG.warning("%s", detail)
        return warning(detail)

    try:
        text = header.read_text(encoding="utf-8", errors="replace")
    except OSError as exc:
        detail = f"cannot read generated header {header}: {exc}"
        LOG.warning("%s", detail)
        return warning(detail)

    if EXPORT_TOKEN not in text:
        detail = f"{header} does not define {EXPORT_TOKEN}; DLL exports may be incomplete"
        LOG.warning("%s", detail)
        return warning(detail)
    return ok(f"{header} defines {EXPORT_TOKEN}")


def run_build(config: BuildConfig) -> StageResult:
    result = StageResult(stage="build")

    LOG.info("Configuring QuantLib %s", config.quantlib_version)
    run_tool(configure_args(config), capture=False)
    result.add(ok("configured"))
    result.add(check_generated_config(config))

    LOG.info("Building with %d job(s)", config.jobs)
    run_tool(build_args(config), capture=False)
    result.add(ok("built"))

    LOG.info("Installing into %s", config.install_dir)
    run_tool(install_args(config), capture=False)
    result.add(ok("installed"))
    return result
