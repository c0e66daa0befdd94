"""Advisory smoke test of a produced executable."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from pathlib import Path

from portapack.errors import ProcessError
from portapack.models import VerificationResult
from portapack.process import Runner

logger = logging.getLogger(__name__)

DEFAULT_VERIFY_ARGS = ("--help",)
DEFAULT_VERIFY_TIMEOUT = 10.0


def verify_executable(
    path: Path,
    *,
    runner: Runner,
    args: Sequence[str] = DEFAULT_VERIFY_ARGS,
    timeout: float = DEFAULT_VERIFY_TIMEOUT,
) -> VerificationResult:
    """Run ``path`` with ``args`` and report whether it exited cleanly.

    Never raises: a missing artifact, a launch error, a non-zero exit and a
    timeout are all reported as a failed result and logged as warnings.
    """
    if not path.exists():
        logger.warning("Executable not found for verification: %s", path)
        return VerificationResult(passed=False, detail=f"missing artifact: {path}")

    try:
        runner.run([str(path), *args], cwd=path.parent, timeout=timeout)
    except ProcessError as exc:
        if exc.timed_out:
            logger.warning("Executable did not exit within %gs: %s", timeout, path)
            return VerificationResult(passed=False, timed_out=True, detail=f"timed out after {timeout:g}s")
        logger.warning("Executable verification failed: %s", exc.summary)
        return VerificationResult(
            passed=False,
            returncode=exc.returncode,
            detail=str(exc.context.get("stderr") or exc).strip(),
        )

    logger.info("Executable verified: %s", path.name)
    return VerificationResult(passed=True, returncode=0)


__all__ = ["DEFAULT_VERIFY_ARGS", "DEFAULT_VERIFY_TIMEOUT", "verify_executable"]
