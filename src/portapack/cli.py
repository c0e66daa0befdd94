"""Command-line entry point for ``portapack``."""

from __future__ import annotations

import argparse
import logging
import pathlib

from portapack.builder import ExecutableBuilder
from portapack.config import BuildConfig
from portapack.errors import PortapackError
from portapack.models import BuildOptions, default_output_name
from portapack.observability import configure_logging
from portapack.targets import TargetPlatform


def _parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="portapack",
        description=(
            "Package a Python application with native dependencies into a portable executable, "
            "falling back from bundle to pack to a plain copy."
        ),
    )
    parser.add_argument(
        "--target",
        type=str,
        default=None,
        help=(
            "Target platform: " + ", ".join(member.value for member in TargetPlatform) + ". "
            "Defaults to the current host."
        ),
    )
    parser.add_argument(
        "--output",
        type=str,
        default=None,
        help="Output executable name (default: <app>-<platform>, with .exe for Windows).",
    )
    parser.add_argument(
        "--project-root",
        type=pathlib.Path,
        default=pathlib.Path.cwd(),
        help="Application project root (default: current directory).",
    )
    parser.add_argument(
        "--report",
        type=pathlib.Path,
        default=None,
        help="Write a build summary to this path (JSON, or CBOR for a .cbor suffix).",
    )
    parser.add_argument(
        "--archive",
        action="store_true",
        help="Also write a portable tar.gz distribution of the build.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show external tool output and debug logging.",
    )
    parser.add_argument(
        "--skip-cleanup",
        action="store_true",
        help="Keep the build workspace for debugging.",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    """Run the portapack CLI.

    :param argv: Optional argv list (excluding program name).
    :returns: Exit code.
    """

    ns = _parser().parse_args(argv)
    logger: logging.Logger = configure_logging(verbose=ns.verbose)

    try:
        config = BuildConfig.load(ns.project_root)
        if ns.target is not None:
            target = TargetPlatform.parse(ns.target)
        else:
            target = TargetPlatform.host() or TargetPlatform.LINUX_X64
        options = BuildOptions(
            target=target,
            output_name=ns.output or default_output_name(config.app_name, target),
            verbose=ns.verbose,
            skip_cleanup=ns.skip_cleanup,
        )
        result = ExecutableBuilder(options=options, config=config, archive=ns.archive).build()
        if ns.report is not None:
            if ns.report.suffix == ".cbor":
                result.to_cbor(ns.report)
            else:
                result.to_json(ns.report)
    except PortapackError as exc:
        logger.error("Build failed: %s", exc)
        return 1
    except OSError as exc:
        logger.error("Build failed: %s", exc)
        return 1

    logger.info("Executable ready: %s (%s)", result.artifact_path, result.method.value)
    if result.verification is not None and not result.verification.passed:
        logger.warning("Executable test did not pass; the artifact may still work: %s", result.verification.detail)
    if result.archive_path is not None:
        logger.info("Distribution archive: %s", result.archive_path)
    return 0
