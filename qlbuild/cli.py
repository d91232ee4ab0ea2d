"""
Command-line interface for qlbuild.

This module is responsible for argument parsing and delegating to the
high-level orchestration in the pipeline module.
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from .config import DEFAULT_BOOST_VERSION, DEFAULT_QUANTLIB_VERSION, BuildConfig, default_jobs
from .logging_utils import configure_logging
from .pipeline import describe_plan, run_pipeline


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="qlbuild",
        description=(
            "Download QuantLib and Boost, patch QuantLib for an MSVC shared-library "
            "build, build and install it with CMake, and optionally package the result."
        ),
    )

    parser.add_argument(
        "--quantlib-version",
        default=DEFAULT_QUANTLIB_VERSION,
        help=f"QuantLib release to build (default: {DEFAULT_QUANTLIB_VERSION}).",
    )
    parser.add_argument(
        "--boost-version",
        default=DEFAULT_BOOST_VERSION,
        help=f"Boost release providing the headers (default: {DEFAULT_BOOST_VERSION}).",
    )
    parser.add_argument(
        "--work-dir",
        default="work",
        help="Directory for downloads, sources and the build tree (default: ./work).",
    )
    parser.add_argument(
        "--install-dir",
        default="install",
        help="CMake install prefix (default: ./install).",
    )
    parser.add_argument(
        "-o",
        "--output",
        default=None,
        help="Zip archive to write when packaging (default: ./QuantLib-<version>-msvc-x64.zip).",
    )
    parser.add_argument(
        "-j",
        "--jobs",
        type=int,
        default=None,
        help="Parallel build jobs (default: number of logical processors).",
    )
    parser.add_argument(
        "--tests",
        dest="build_tests",
        action="store_true",
        help="Build the QuantLib test suite and include it in the package.",
    )
    parser.add_argument(
        "--no-tests",
        dest="build_tests",
        action="store_false",
        help="Do not build the test suite.",
    )
    parser.set_defaults(build_tests=False)

    parser.add_argument(
        "--package",
        dest="package",
        action="store_true",
        help="Package the installation into a zip archive.",
    )
    parser.add_argument(
        "--no-package",
        dest="package",
        action="store_false",
        help="Stop after verifying the installation.",
    )
    parser.set_defaults(package=False)

    parser.add_argument(
        "--build-type",
        default="Release",
        help="CMake build configuration (default: Release).",
    )
    parser.add_argument(
        "-G",
        "--generator",
        default=None,
        help="CMake generator, e.g. 'Visual Studio 17 2022' or 'Ninja'.",
    )
    parser.add_argument(
        "--artifact-pattern",
        default="QuantLib*.dll",
        help="File name pattern the installation must contain (default: QuantLib*.dll).",
    )
    parser.add_argument("--cmake", default="cmake", help="CMake executable.")
    parser.add_argument("--7z", dest="seven_zip", default="7z", help="7z executable.")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print the planned steps without downloading or building anything.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (can be specified multiple times).",
    )

    return parser


def config_from_args(args: argparse.Namespace) -> BuildConfig:
    return BuildConfig(
        quantlib_version=args.quantlib_version,
        boost_version=args.boost_version,
        work_dir=Path(args.work_dir).resolve(),
        install_dir=Path(args.install_dir).resolve(),
        archive_path=Path(args.output).resolve() if args.output else None,
        jobs=args.jobs if args.jobs and args.jobs > 0 else default_jobs(),
        build_tests=args.build_tests,
        package=args.package,
        build_type=args.build_type,
        generator=args.generator,
        artifact_pattern=args.artifact_pattern,
        cmake=args.cmake,
        seven_zip=args.seven_zip,
        dry_run=args.dry_run,
        verbosity=args.verbose,
    )


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_arg_parser()
    args = parser.parse_args(argv)
    config = config_from_args(args)

    configure_logging(verbosity=config.verbosity)

    if config.dry_run:
        for line in describe_plan(config):
            print(line)
        return 0

    try:
        report = run_pipeline(config)
    except KeyboardInterrupt:
        # Graceful shutdown on Ctrl+C
        return 130
    except Exception as exc:  # noqa: BLE001
        print(f"qlbuild: error: {exc}", file=sys.stderr)
        return 1

    if not report.succeeded:
        failure = report.stages[-1].fatal_outcome
        detail = failure.detail if failure is not None else "build failed"
        print(f"qlbuild: error: {detail}", file=sys.stderr)
    return report.exit_code


if __name__ == "__main__":  # pragma: no cover - manual invocation
    raise SystemExit(main())
