"""Blocking subprocess execution for external build tools."""

from __future__ import annotations

import contextlib
import logging
import os
import shlex
import signal
import subprocess
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from portapack.errors import ProcessError

logger = logging.getLogger(__name__)

_STDERR_LIMIT = 2000


@dataclass(frozen=True, slots=True)
class CommandResult:
    argv: tuple[str, ...]
    returncode: int
    stdout: str = ""
    stderr: str = ""


class Runner(Protocol):
    def run(
        self,
        argv: Sequence[str],
        *,
        cwd: Path | None = None,
        env: Mapping[str, str] | None = None,
        timeout: float | None = None,
    ) -> CommandResult:
        """Run ``argv`` to completion, raising ``ProcessError`` on failure."""


@dataclass(slots=True)
class CommandRunner:
    """Runs commands as blocking subprocesses.

    When ``verbose`` is set the child inherits the console; otherwise its
    output is captured and only surfaced in errors. Commands run in their own
    process group so that a timeout can terminate everything they spawned.
    """

    verbose: bool = False

    def run(
        self,
        argv: Sequence[str],
        *,
        cwd: Path | None = None,
        env: Mapping[str, str] | None = None,
        timeout: float | None = None,
    ) -> CommandResult:
        command = tuple(str(part) for part in argv)
        rendered = shlex.join(command)
        logger.debug("Executing: %s", rendered)
        stream = None if self.verbose else subprocess.PIPE
        merged_env = {**os.environ, **env} if env is not None else None
        try:
            process = subprocess.Popen(
                command,
                cwd=str(cwd) if cwd is not None else None,
                env=merged_env,
                stdin=subprocess.DEVNULL,
                stdout=stream,
                stderr=stream,
                text=True,
                start_new_session=os.name == "posix",
            )
        except OSError as exc:
            raise ProcessError(
                "Command could not be started.",
                hint="Ensure the program exists and is executable.",
                context={"command": rendered, "error": str(exc)},
            ) from exc

        try:
            stdout, stderr = process.communicate(timeout=timeout)
        except subprocess.TimeoutExpired as exc:
            _terminate(process)
            raise ProcessError(
                f"Command timed out after {timeout:g}s.",
                timed_out=True,
                context={"command": rendered},
            ) from exc

        result = CommandResult(
            argv=command,
            returncode=process.returncode,
            stdout=stdout or "",
            stderr=stderr or "",
        )
        if result.returncode != 0:
            raise ProcessError(
                f"Command failed with code {result.returncode}.",
                returncode=result.returncode,
                context={
                    "command": rendered,
                    "stderr": (result.stderr or result.stdout)[:_STDERR_LIMIT],
                },
            )
        return result


def _terminate(process: subprocess.Popen[str]) -> None:
    if os.name == "posix":
        with contextlib.suppress(ProcessLookupError, PermissionError):
            os.killpg(process.pid, signal.SIGKILL)
    else:
        process.kill()
    process.communicate()


__all__ = ["CommandResult", "CommandRunner", "Runner"]
