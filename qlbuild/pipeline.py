"""
High-level orchestration for qlbuild.

The pipeline is responsible for:
  - fetching Boost and the QuantLib sources,
  - patching the QuantLib tree for an MSVC DLL build,
  - configuring, building and installing with CMake,
  - verifying the installed shared library, and
  - optionally packaging everything into a zip archive.

Stages run in that order. Warnings are collected and the run goes on;
the first fatal outcome ends it.
"""

from __future__ import annotations

import logging
import shlex
from typing import Callable, List, Tuple

from .build import build_args, configure_args, install_args, run_build
from .config import BuildConfig
from .domain import PipelineReport, StageResult, fatal
from .errors import QlBuildError
from .fetch import fetch_dependencies
from .package import package_install
from .patches import QUANTLIB_PATCHES, apply_patches
from .verify import verify_install

LOG = logging.getLogger(__name__)

Stage = Callable[[BuildConfig], StageResult]


def _patch_sources(config: BuildConfig) -> StageResult:
    return apply_patches(config.quantlib_root)


def _stages(config: BuildConfig) -> List[Tuple[str, Stage]]:
    stages: List[Tuple[str, Stage]] = [
        ("fetch", fetch_dependencies),
        ("patch", _patch_sources),
        ("build", run_build),
        ("verify", verify_install),
    ]
    if config.package:
        stages.append(("package", package_install))
    return stages


def _run_stage(name: str, stage: Stage, config: BuildConfig) -> StageResult:
    LOG.info("Stage %s", name)
    try:
        return stage(config)
    except QlBuildError as exc:
        LOG.error("%s failed: %s", name, exc)
        return StageResult(stage=name, outcomes=[fatal(str(exc), exc.exit_code)])


def run_pipeline(config: BuildConfig) -> PipelineReport:
    """
    Entry point for the main CLI command.

    Returns a report whose exit_code is 0 on success, 1 when a tool,
    download or patch step failed and 2 when the build left no usable
    artifact behind.
    """

    LOG.debug("Starting qlbuild with config: %s", config)
    report = PipelineReport()

    for name, stage in _stages(config):
        result = _run_stage(name, stage, config)
        report.stages.append(result)
        failure = result.fatal_outcome
        if failure is not None:
            report.exit_code = failure.exit_code or 1
            break

    if report.warnings:
        LOG.warning("Finished with %d warning(s)", len(report.warnings))
    return report


def describe_plan(config: BuildConfig) -> List[str]:
    """
    Describe what a real run would do, without touching anything.
    """

    lines = [
        f"fetch {config.boost_url} -> {config.boost_root}",
        f"fetch {config.quantlib_url} -> {config.quantlib_root}",
    ]
    lines += [
        f"patch {config.quantlib_root / patch.path}: {patch.description}"
        for patch in QUANTLIB_PATCHES
    ]
    lines += [
        shlex.join(configure_args(config)),
        shlex.join(build_args(config)),
        shlex.join(install_args(config)),
        f"verify {config.install_dir}/**/{config.artifact_pattern}",
    ]
    if config.package:
        lines.append(f"package {config.install_dir} -> {config.resolved_archive_path}")
    return lines
