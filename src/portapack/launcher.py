"""Launcher scripts that start a packaged application from its output directory."""

from __future__ import annotations

import shlex
from collections.abc import Sequence
from pathlib import Path, PurePosixPath, PureWindowsPath

from portapack.targets import TargetPlatform

POSIX_TEMPLATE = """\
#!/bin/sh
cd "$(dirname "$0")/{run_dir}" || exit 1
{environment}exec {command} "$@"
"""

BATCH_TEMPLATE = """\
@echo off
cd /d "%~dp0\\{run_dir}"
{environment}{command} %*
"""


def runtime_command(target: TargetPlatform) -> str:
    return "python" if target.is_windows else "python3"


def write_launcher(
    path: Path,
    *,
    target: TargetPlatform,
    run_dir: str,
    command: Sequence[str],
    python_path: Sequence[str] = (),
) -> Path:
    """Write a launcher at ``path`` that runs ``command`` inside ``run_dir``.

    ``run_dir`` and ``python_path`` entries are relative: the run directory to
    the launcher's own location, the import paths to the run directory.
    """
    if target.is_windows:
        content = render_batch(run_dir=run_dir, command=command, python_path=python_path)
    else:
        content = render_posix(run_dir=run_dir, command=command, python_path=python_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    newline = "\r\n" if target.is_windows else "\n"
    path.write_text(content, encoding="utf-8", newline=newline)
    if not target.is_windows:
        path.chmod(0o755)
    return path


def render_posix(*, run_dir: str, command: Sequence[str], python_path: Sequence[str] = ()) -> str:
    environment = ""
    if python_path:
        joined = ":".join(str(PurePosixPath(entry)) for entry in python_path)
        environment = f'PYTHONPATH="{joined}${{PYTHONPATH:+:$PYTHONPATH}}" '
    return POSIX_TEMPLATE.format(
        run_dir=str(PurePosixPath(run_dir)),
        environment=environment,
        command=shlex.join(command),
    )


def render_batch(*, run_dir: str, command: Sequence[str], python_path: Sequence[str] = ()) -> str:
    environment = ""
    if python_path:
        joined = ";".join(str(PureWindowsPath(entry)) for entry in python_path)
        environment = f'set "PYTHONPATH={joined};%PYTHONPATH%"\n'
    rendered = " ".join(_quote_batch(str(PureWindowsPath(part)) if "/" in part else part) for part in command)
    return BATCH_TEMPLATE.format(
        run_dir=str(PureWindowsPath(run_dir)),
        environment=environment,
        command=rendered,
    )


def _quote_batch(part: str) -> str:
    return f'"{part}"' if " " in part else part


__all__ = ["render_batch", "render_posix", "runtime_command", "write_launcher"]
