"""Scratch build workspace: staging, dependency install and teardown."""

from __future__ import annotations

import logging
import shutil
import sys
from collections.abc import Sequence
from pathlib import Path

from portapack.errors import PrerequisiteError, ProcessError, WorkspaceError
from portapack.process import Runner
from portapack.targets import TargetPlatform

logger = logging.getLogger(__name__)

SITE_PACKAGES = "site-packages"
PATCHES = "patches"


class Workspace:
    """An exclusively owned scratch directory under the project root.

    One workspace per build invocation; ``setup()`` always starts from an
    empty directory and ``cleanup()`` is safe to call at any time.
    """

    def __init__(
        self,
        project_root: Path,
        *,
        name: str = "temp-build",
        entries: Sequence[str] = (),
        manifest_name: str = "pyproject.toml",
        lockfile_name: str = "requirements.txt",
    ) -> None:
        self.project_root = Path(project_root)
        self.path = self.project_root / name
        self.entries = tuple(entries)
        self.manifest_name = manifest_name
        self.lockfile_name = lockfile_name

    @property
    def exists(self) -> bool:
        return self.path.exists()

    @property
    def manifest_path(self) -> Path:
        return self.path / self.manifest_name

    @property
    def lockfile_path(self) -> Path:
        return self.path / self.lockfile_name

    @property
    def site_packages(self) -> Path:
        return self.path / SITE_PACKAGES

    @property
    def patches_dir(self) -> Path:
        return self.path / PATCHES

    def setup(self) -> list[str]:
        """Recreate the workspace and copy the deployable entries into it."""
        self.cleanup()
        copied: list[str] = []
        try:
            self.path.mkdir(parents=True)
            for entry in self.entries:
                source = self.project_root / entry
                if not source.exists():
                    logger.debug("Skipping missing deployable entry: %s", entry)
                    continue
                destination = self.path / entry
                if source.is_dir():
                    shutil.copytree(source, destination, ignore=shutil.ignore_patterns("__pycache__"))
                else:
                    destination.parent.mkdir(parents=True, exist_ok=True)
                    shutil.copy2(source, destination)
                copied.append(entry)
                logger.info("Copied: %s", entry)
        except OSError as exc:
            raise WorkspaceError(
                "Failed to stage the build workspace.",
                hint="Check free disk space and permissions under the project root.",
                context={"operation": "setup", "path": str(self.path), "error": str(exc)},
            ) from exc
        return copied

    def install_dependencies(self, runner: Runner, *, target: TargetPlatform) -> Path:
        """Install the lockfile into ``site-packages`` inside the workspace."""
        self.site_packages.mkdir(parents=True, exist_ok=True)
        if not self.lockfile_path.exists():
            logger.info("No %s found; skipping dependency install", self.lockfile_name)
            return self.site_packages

        argv = [
            sys.executable,
            "-m",
            "pip",
            "install",
            "--disable-pip-version-check",
            "--no-input",
            "--target",
            str(self.site_packages),
            "--requirement",
            str(self.lockfile_path),
        ]
        if not target.matches_host():
            # Foreign targets can only take prebuilt wheels for their platform.
            argv.extend(
                [
                    "--platform",
                    target.pip_platform_tag,
                    "--only-binary=:all:",
                    "--python-version",
                    f"{sys.version_info.major}.{sys.version_info.minor}",
                    "--implementation",
                    "cp",
                ]
            )
        try:
            runner.run(argv, cwd=self.path)
        except ProcessError as exc:
            raise PrerequisiteError(
                "Failed to install dependencies.",
                hint="Check that pip is available and the lockfile resolves for the target.",
                context={
                    "operation": "install_dependencies",
                    "target": target.value,
                    "error": str(exc),
                },
            ) from exc
        return self.site_packages

    def cleanup(self) -> bool:
        """Remove the workspace; returns whether anything was removed."""
        if not self.path.exists():
            return False
        try:
            shutil.rmtree(self.path)
        except OSError as exc:
            raise WorkspaceError(
                "Failed to remove the build workspace.",
                context={"operation": "cleanup", "path": str(self.path), "error": str(exc)},
            ) from exc
        return True


__all__ = ["PATCHES", "SITE_PACKAGES", "Workspace"]
