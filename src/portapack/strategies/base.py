"""Typed interfaces and shared file helpers for packaging strategies."""

from __future__ import annotations

import shutil
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

from portapack.config import BuildConfig
from portapack.models import BuildMethod, BuildOptions
from portapack.observability import StructuredLogger
from portapack.process import Runner
from portapack.workspace import Workspace

PYTHON_PATH_DIRS = ("lib", "patches")


@dataclass(slots=True)
class BuildContext:
    options: BuildOptions
    config: BuildConfig
    workspace: Workspace
    runner: Runner
    logger: StructuredLogger = field(default_factory=StructuredLogger)

    @property
    def project_root(self) -> Path:
        return self.workspace.project_root

    @property
    def output_dir(self) -> Path:
        """Directory holding a launcher-based build; outlives the workspace."""
        return self.project_root / self.config.output_root / self.options.output_stem

    @property
    def launcher_path(self) -> Path:
        return self.project_root / self.options.output_name


class BuildStrategy(Protocol):
    method: BuildMethod

    def build(self, context: BuildContext) -> Path:
        """Produce the executable artifact and return its path."""

    def discard(self, context: BuildContext) -> None:
        """Remove any partial output left by a failed ``build``."""


def remove_path(path: Path) -> None:
    if path.is_dir() and not path.is_symlink():
        shutil.rmtree(path)
    elif path.exists() or path.is_symlink():
        path.unlink()


def copy_entry(source: Path, destination: Path) -> bool:
    """Copy a file or directory if it exists; returns whether it did."""
    if not source.exists():
        return False
    if source.is_dir():
        shutil.copytree(
            source,
            destination,
            ignore=shutil.ignore_patterns("__pycache__", "*.pyc"),
            dirs_exist_ok=True,
        )
    else:
        destination.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(source, destination)
    return True


def copy_entries(source_root: Path, destination_root: Path, names: Iterable[str]) -> list[str]:
    return [name for name in names if copy_entry(source_root / name, destination_root / name)]


def reset_dir(path: Path) -> Path:
    remove_path(path)
    path.mkdir(parents=True)
    return path


def discard_outputs(context: BuildContext) -> None:
    remove_path(context.output_dir)
    remove_path(context.launcher_path)


__all__ = [
    "BuildContext",
    "BuildStrategy",
    "PYTHON_PATH_DIRS",
    "copy_entries",
    "copy_entry",
    "discard_outputs",
    "remove_path",
    "reset_dir",
]
