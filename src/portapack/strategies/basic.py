"""Plain-copy-and-wrap: the application tree copied as-is behind a launcher."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from portapack.launcher import runtime_command, write_launcher
from portapack.models import BuildMethod
from portapack.strategies.base import (
    PYTHON_PATH_DIRS,
    BuildContext,
    copy_entries,
    copy_entry,
    discard_outputs,
    reset_dir,
)


@dataclass(slots=True)
class BasicStrategy:
    method: BuildMethod = BuildMethod.BASIC

    def build(self, context: BuildContext) -> Path:
        workspace = context.workspace
        config = context.config
        output_dir = reset_dir(context.output_dir)
        copied = copy_entries(
            workspace.path,
            output_dir,
            ("src", workspace.manifest_name, *config.asset_dirs),
        )
        if not copy_entry(workspace.site_packages, output_dir / "lib"):
            (output_dir / "lib").mkdir()
        copy_entry(workspace.patches_dir, output_dir / "patches")
        context.logger.log(
            operation="basic",
            strategy=self.method.value,
            phase="copy",
            message=f"Copied {', '.join(copied) or 'nothing'} into {output_dir.name}",
            level="debug",
        )

        target = context.options.target
        return write_launcher(
            context.launcher_path,
            target=target,
            run_dir=context.output_dir.relative_to(context.launcher_path.parent).as_posix(),
            command=(runtime_command(target), config.entry_script),
            python_path=PYTHON_PATH_DIRS,
        )

    def discard(self, context: BuildContext) -> None:
        discard_outputs(context)


__all__ = ["BasicStrategy"]
