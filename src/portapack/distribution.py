"""Portable per-platform archives of a finished build.

Each archive holds one top-level ``<app>-<platform>/`` directory with the
build under ``runtime/`` and a launcher beside it. Archives are byte-for-byte
reproducible: entries are sorted, owners zeroed and every timestamp pinned
to ``SOURCE_DATE_EPOCH``.
"""

from __future__ import annotations

import fnmatch
import gzip
import logging
import os
import shutil
import tarfile
from collections.abc import Iterable
from pathlib import Path

from portapack.config import BuildConfig
from portapack.errors import WorkspaceError
from portapack.launcher import runtime_command, write_launcher
from portapack.models import BuildMethod, BuildResult
from portapack.strategies.base import PYTHON_PATH_DIRS, copy_entry, remove_path
from portapack.strategies.bundle import BUNDLE_NAME

logger = logging.getLogger(__name__)

APP_DIR = "runtime"


def source_date_epoch() -> int:
    value = os.environ.get("SOURCE_DATE_EPOCH", "").strip()
    if not value:
        return 0
    try:
        return max(0, int(value))
    except ValueError:
        logger.warning("Ignoring non-integer SOURCE_DATE_EPOCH=%r", value)
        return 0


def strip_cruft(root: Path, *, file_patterns: Iterable[str], dir_names: Iterable[str]) -> int:
    """Delete development-only files and directories under ``root``."""
    if not root.is_dir():
        return 0
    patterns = tuple(file_patterns)
    names = frozenset(dir_names)
    removed = 0
    for current, dirs, files in os.walk(root, topdown=True):
        for name in sorted(dirs):
            if name in names:
                shutil.rmtree(Path(current) / name)
                dirs.remove(name)
                removed += 1
        for name in files:
            if any(fnmatch.fnmatch(name, pattern) for pattern in patterns):
                (Path(current) / name).unlink()
                removed += 1
    return removed


def write_deterministic_tarball(source_dir: Path, output_path: Path, *, root_name: str, epoch: int) -> Path:
    if output_path.exists():
        output_path.unlink()
    output_path.parent.mkdir(parents=True, exist_ok=True)
    dirs, files = _iter_tree(source_dir)

    with output_path.open("wb") as raw, gzip.GzipFile(filename="", mode="wb", fileobj=raw, mtime=epoch) as gz:
        with tarfile.open(fileobj=gz, mode="w|") as tar:
            root = _tar_info(root_name, tarfile.DIRTYPE, mode=0o755, epoch=epoch)
            tar.addfile(root)
            for relative in dirs:
                tar.addfile(_tar_info(f"{root_name}/{relative}", tarfile.DIRTYPE, mode=0o755, epoch=epoch))
            for relative in files:
                path = source_dir / relative
                info = _tar_info(
                    f"{root_name}/{relative}",
                    tarfile.REGTYPE,
                    mode=path.stat().st_mode & 0o777,
                    epoch=epoch,
                )
                info.size = path.stat().st_size
                with path.open("rb") as handle:
                    tar.addfile(info, fileobj=handle)
    return output_path


def package_distribution(result: BuildResult, *, config: BuildConfig, destination: Path) -> Path:
    """Stage ``result`` for its platform and write the release tarball."""
    target = result.target
    package_name = f"{config.app_name}-{target.value}"
    staging = destination / package_name
    archive_path = destination / f"{package_name}-v{config.version}.tar.gz"

    try:
        remove_path(staging)
        app_dir = staging / APP_DIR
        app_dir.mkdir(parents=True)
        if result.method is BuildMethod.PACK:
            shutil.copy2(result.artifact_path, app_dir / result.output_name)
            command: tuple[str, ...] = (
                result.output_name if target.is_windows else f"./{result.output_name}",
            )
            python_path: tuple[str, ...] = ()
        else:
            if result.output_dir is None or not result.output_dir.is_dir():
                raise WorkspaceError(
                    "Build output directory is missing.",
                    context={"operation": "package_distribution", "method": result.method.value},
                )
            copy_entry(result.output_dir, app_dir)
            entry = BUNDLE_NAME if result.method is BuildMethod.BUNDLE else config.entry_script
            command = (runtime_command(target), entry)
            python_path = PYTHON_PATH_DIRS

        removed = strip_cruft(
            app_dir / "lib",
            file_patterns=config.cruft_file_patterns,
            dir_names=config.cruft_dir_names,
        )
        logger.debug("Removed %d development files from %s", removed, package_name)

        launcher_name = f"{config.app_name}.bat" if target.is_windows else config.app_name
        write_launcher(
            staging / launcher_name,
            target=target,
            run_dir=APP_DIR,
            command=command,
            python_path=python_path,
        )
        write_deterministic_tarball(staging, archive_path, root_name=package_name, epoch=source_date_epoch())
    except OSError as exc:
        raise WorkspaceError(
            "Failed to write the distribution archive.",
            context={"operation": "package_distribution", "path": str(archive_path), "error": str(exc)},
        ) from exc
    finally:
        if staging.exists():
            shutil.rmtree(staging, ignore_errors=True)

    logger.info("Distribution archive written: %s", archive_path)
    return archive_path


def _iter_tree(root: Path) -> tuple[list[str], list[str]]:
    dirs: list[str] = []
    files: list[str] = []
    for current, subdirs, names in os.walk(root):
        subdirs.sort()
        relative_root = Path(current).relative_to(root)
        for name in subdirs:
            dirs.append((relative_root / name).as_posix())
        for name in sorted(names):
            files.append((relative_root / name).as_posix())
    return sorted(dirs), sorted(files)


def _tar_info(name: str, kind: bytes, *, mode: int, epoch: int) -> tarfile.TarInfo:
    info = tarfile.TarInfo(name)
    info.type = kind
    info.mode = mode
    info.mtime = epoch
    info.uid = 0
    info.gid = 0
    info.uname = ""
    info.gname = ""
    return info


__all__ = [
    "package_distribution",
    "source_date_epoch",
    "strip_cruft",
    "write_deterministic_tarball",
]
