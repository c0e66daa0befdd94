"""Single-binary-pack: one self-contained executable built with PyInstaller."""

from __future__ import annotations

import importlib.util
import os
import shutil
import sys
from dataclasses import dataclass
from pathlib import Path

from portapack.errors import ManifestError, StrategyError
from portapack.manifest import PackConfig, read_pack_config
from portapack.models import BuildMethod
from portapack.shims import RUNTIME_HOOK
from portapack.strategies.base import BuildContext, remove_path
from portapack.workspace import SITE_PACKAGES

PACKER_MODULE = "PyInstaller"


def packer_available() -> bool:
    return importlib.util.find_spec(PACKER_MODULE) is not None


def module_name(package: str) -> str:
    """Import name PyInstaller should exclude for a distribution name."""
    return package.replace("-", "_")


def data_mappings(pack: PackConfig, root: Path) -> list[str]:
    """Translate asset globs into ``--add-data`` ``SOURCE<sep>DEST`` pairs."""
    mappings: list[str] = []
    for pattern in pack.assets:
        base = pattern.split("/**", 1)[0].rstrip("/")
        source = root / base
        if not base or not source.exists():
            continue
        destination = base.removeprefix(f"{SITE_PACKAGES}/")
        mappings.append(f"{source}{os.pathsep}{destination}")
    return mappings


@dataclass(slots=True)
class PackStrategy:
    method: BuildMethod = BuildMethod.PACK
    available: bool | None = None

    def build(self, context: BuildContext) -> Path:
        target = context.options.target
        if not target.matches_host():
            raise StrategyError(
                f"Single-binary packing cannot cross-compile for {target.value}.",
                hint="Build on a host matching the target to get a single binary.",
                context={"operation": "pack", "target": target.value},
            )
        available = self.available if self.available is not None else packer_available()
        if not available:
            raise StrategyError(
                "PyInstaller is not installed.",
                hint="Install PyInstaller into the build environment.",
                context={"operation": "pack"},
            )

        workspace = context.workspace
        try:
            pack = read_pack_config(workspace.manifest_path)
        except ManifestError as exc:
            raise StrategyError(
                "Packaging configuration is unavailable.",
                context={"operation": "pack", "error": str(exc)},
            ) from exc

        dist_dir = workspace.path / pack.output_path
        remove_path(dist_dir)
        argv = self.command(context, pack, dist_dir)
        context.logger.log(
            operation="pack",
            strategy=self.method.value,
            phase="invoke",
            message="Running PyInstaller",
            level="debug",
            extra={"argv": argv},
        )
        context.runner.run(argv, cwd=workspace.path, env={"PYTHONDONTWRITEBYTECODE": "1"})

        built = dist_dir / context.options.output_name
        if not built.exists():
            raise StrategyError(
                "Packer reported success but produced no executable.",
                context={"operation": "pack", "path": str(built)},
            )
        destination = context.launcher_path
        remove_path(destination)
        shutil.move(str(built), destination)
        if not target.is_windows:
            destination.chmod(0o755)
        return destination

    def command(self, context: BuildContext, pack: PackConfig, dist_dir: Path) -> list[str]:
        workspace = context.workspace
        argv = [
            sys.executable,
            "-m",
            PACKER_MODULE,
            "--onefile",
            "--noconfirm",
            "--clean",
            "--name",
            context.options.output_stem,
            "--distpath",
            str(dist_dir),
            "--workpath",
            str(workspace.path / "pack-work"),
            "--specpath",
            str(workspace.path),
            "--paths",
            str(workspace.site_packages),
            "--paths",
            str(workspace.patches_dir),
        ]
        for option in pack.options:
            argv.extend(["--python-option", option])
        for package in pack.excluded:
            argv.extend(["--exclude-module", module_name(package)])
        for mapping in data_mappings(pack, workspace.path):
            argv.extend(["--add-data", mapping])
        runtime_hook = workspace.patches_dir / RUNTIME_HOOK
        if runtime_hook.exists():
            argv.extend(["--runtime-hook", str(runtime_hook)])
        argv.append(str(workspace.path / pack.scripts))
        return argv

    def discard(self, context: BuildContext) -> None:
        remove_path(context.workspace.path / context.config.pack_output_path)
        remove_path(context.workspace.path / "pack-work")
        remove_path(context.launcher_path)


__all__ = ["PackStrategy", "data_mappings", "module_name", "packer_available"]
