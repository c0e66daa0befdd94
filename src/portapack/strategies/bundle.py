"""Bundle-and-wrap: pure-Python code zipped into one archive plus a launcher.

Distributions that ship compiled extensions, and the packages configured as
external, cannot be imported from a zip archive. They are kept next to the
archive in ``lib/`` and put on ``PYTHONPATH`` by the launcher.
"""

from __future__ import annotations

import importlib.metadata
import re
import shutil
import sys
import textwrap
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

from portapack.errors import StrategyError
from portapack.launcher import runtime_command, write_launcher
from portapack.models import BuildMethod
from portapack.strategies.base import (
    PYTHON_PATH_DIRS,
    BuildContext,
    copy_entries,
    copy_entry,
    discard_outputs,
    remove_path,
    reset_dir,
)

BUNDLE_SOURCE_DIR = "bundle-src"
BUNDLE_OUTPUT_DIR = "dist-bundle"
BUNDLE_NAME = "app.pyz"
NATIVE_SUFFIXES = frozenset({".so", ".pyd", ".dylib", ".dll"})
_IGNORED_ENTRIES = frozenset({"..", "bin", "__pycache__"})

MAIN_TEMPLATE = textwrap.dedent("""\
    import runpy

    runpy.run_module({module!r}, run_name="__main__", alter_sys=True)
""")


@dataclass(frozen=True, slots=True)
class SitePackagesPartition:
    bundled: tuple[str, ...]
    external: tuple[str, ...]


def canonicalize_name(name: str) -> str:
    return re.sub(r"[-_.]+", "-", name).lower()


def partition_site_packages(site_packages: Path, external: Iterable[str]) -> SitePackagesPartition:
    """Split the top-level entries of ``site_packages`` by owning distribution.

    A distribution is external when it is named in ``external`` or any of its
    files is a compiled extension. Entries no distribution claims are
    bundled unless they contain compiled extensions themselves.
    """
    if not site_packages.is_dir():
        return SitePackagesPartition(bundled=(), external=())

    external_names = {canonicalize_name(name) for name in external}
    bundled: set[str] = set()
    externals: set[str] = set()
    claimed: set[str] = set()

    for distribution in importlib.metadata.distributions(path=[str(site_packages)]):
        name = distribution.metadata["Name"]
        if not name:
            continue
        files = distribution.files or []
        entries = {file.parts[0] for file in files if file.parts and file.parts[0] not in _IGNORED_ENTRIES}
        native = any(Path(str(file)).suffix in NATIVE_SUFFIXES for file in files)
        if native or canonicalize_name(name) in external_names:
            externals.update(entries)
        else:
            bundled.update(entries)
        claimed.update(entries)

    for entry in site_packages.iterdir():
        if entry.name in claimed or entry.name in _IGNORED_ENTRIES:
            continue
        if _contains_native(entry):
            externals.add(entry.name)
        else:
            bundled.add(entry.name)

    # A top-level name shared with an external distribution stays external.
    bundled -= externals
    existing = {entry.name for entry in site_packages.iterdir()}
    return SitePackagesPartition(
        bundled=tuple(sorted(bundled & existing)),
        external=tuple(sorted(externals & existing)),
    )


def _contains_native(path: Path) -> bool:
    if path.is_file():
        return path.suffix in NATIVE_SUFFIXES
    return any(candidate.suffix in NATIVE_SUFFIXES for candidate in path.rglob("*"))


@dataclass(slots=True)
class BundleStrategy:
    method: BuildMethod = BuildMethod.BUNDLE

    def build(self, context: BuildContext) -> Path:
        workspace = context.workspace
        config = context.config
        entry = workspace.path / config.entry_script
        if not entry.exists():
            raise StrategyError(
                "Entry script is missing from the workspace.",
                context={"operation": "bundle", "entry": config.entry_script},
            )

        staging = reset_dir(workspace.path / BUNDLE_SOURCE_DIR)
        copy_entry(workspace.path / "src", staging)
        partition = partition_site_packages(workspace.site_packages, config.external_packages)
        copy_entries(workspace.site_packages, staging, partition.bundled)
        (staging / "__main__.py").write_text(
            MAIN_TEMPLATE.format(module=config.entry_module),
            encoding="utf-8",
        )
        context.logger.log(
            operation="bundle",
            strategy=self.method.value,
            phase="stage",
            message=f"Staged {len(partition.bundled)} packages; {len(partition.external)} kept external",
            level="debug",
            extra={"bundled": partition.bundled, "external": partition.external},
        )

        archive = reset_dir(workspace.path / BUNDLE_OUTPUT_DIR) / BUNDLE_NAME
        context.runner.run(
            [sys.executable, "-m", "zipapp", str(staging), "-o", str(archive), "-c"],
            cwd=workspace.path,
        )
        if not archive.exists():
            raise StrategyError(
                "Bundler reported success but produced no archive.",
                context={"operation": "bundle", "path": str(archive)},
            )

        output_dir = reset_dir(context.output_dir)
        shutil.copy2(archive, output_dir / BUNDLE_NAME)
        copy_entries(workspace.path, output_dir, (workspace.manifest_name, *config.asset_dirs))
        lib_dir = output_dir / "lib"
        lib_dir.mkdir()
        copy_entries(workspace.site_packages, lib_dir, partition.external)
        copy_entry(workspace.patches_dir, output_dir / "patches")

        target = context.options.target
        return write_launcher(
            context.launcher_path,
            target=target,
            run_dir=context.output_dir.relative_to(context.launcher_path.parent).as_posix(),
            command=(runtime_command(target), BUNDLE_NAME),
            python_path=PYTHON_PATH_DIRS,
        )

    def discard(self, context: BuildContext) -> None:
        remove_path(context.workspace.path / BUNDLE_SOURCE_DIR)
        remove_path(context.workspace.path / BUNDLE_OUTPUT_DIR)
        discard_outputs(context)


__all__ = [
    "BundleStrategy",
    "SitePackagesPartition",
    "canonicalize_name",
    "partition_site_packages",
]
