"""Shared test fixtures."""

from __future__ import annotations

import logging
import textwrap
from collections.abc import Callable, Iterator, Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path

import pytest

from portapack.capabilities import uninstall_import_fallbacks
from portapack.config import BuildConfig
from portapack.errors import ProcessError
from portapack.manifest import patch_manifest
from portapack.models import BuildOptions
from portapack.observability import LOGGER_NAME, StructuredLogger
from portapack.process import CommandResult
from portapack.shims import emit_capability_shims
from portapack.strategies import BuildContext
from portapack.targets import TargetPlatform
from portapack.workspace import Workspace

Handler = Callable[[tuple[str, ...]], None]

MAIN_SCRIPT = textwrap.dedent("""\
    import argparse


    def main():
        parser = argparse.ArgumentParser(prog="app", description="Sample application.")
        parser.add_argument("--name", default="world")
        args = parser.parse_args()
        print(f"hello {args.name}")


    if __name__ == "__main__":
        main()
""")


@dataclass(slots=True)
class FakeRunner:
    """Records commands; handlers keyed by an argv element simulate the tool."""

    handlers: dict[str, Handler] = field(default_factory=dict)
    calls: list[tuple[str, ...]] = field(default_factory=list)
    envs: list[Mapping[str, str] | None] = field(default_factory=list)
    timeouts: list[float | None] = field(default_factory=list)

    def run(
        self,
        argv: Sequence[str],
        *,
        cwd: Path | None = None,
        env: Mapping[str, str] | None = None,
        timeout: float | None = None,
    ) -> CommandResult:
        command = tuple(str(part) for part in argv)
        self.calls.append(command)
        self.envs.append(env)
        self.timeouts.append(timeout)
        for marker, handler in self.handlers.items():
            if marker in command:
                handler(command)
        return CommandResult(argv=command, returncode=0)

    def called(self, marker: str) -> bool:
        return any(marker in command for command in self.calls)


def fail_command(command: tuple[str, ...]) -> None:
    raise ProcessError(
        "Command failed with code 1.",
        returncode=1,
        context={"command": " ".join(command), "stderr": "boom"},
    )


def write_zipapp_output(command: tuple[str, ...]) -> None:
    output = Path(command[command.index("-o") + 1])
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_bytes(b"PK\x05\x06" + b"\x00" * 18)


@pytest.fixture(autouse=True)
def _reset_global_state() -> Iterator[None]:
    yield
    uninstall_import_fallbacks()
    logger = logging.getLogger(LOGGER_NAME)
    logger.handlers.clear()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def project(tmp_path: Path) -> Path:
    root = tmp_path / "project"
    (root / "src").mkdir(parents=True)
    (root / "src" / "main.py").write_text(MAIN_SCRIPT, encoding="utf-8")
    (root / "assets").mkdir()
    (root / "assets" / "logo.txt").write_text("logo\n", encoding="utf-8")
    (root / "pyproject.toml").write_text(
        textwrap.dedent("""\
            # application manifest
            [project]
            name = "app"
            version = "1.2.3"
        """),
        encoding="utf-8",
    )
    return root


@pytest.fixture
def make_context(project: Path) -> Callable[..., BuildContext]:
    """Stage the sample project the way the builder does before the cascade."""

    def factory(
        target: TargetPlatform = TargetPlatform.LINUX_X64,
        runner: FakeRunner | None = None,
        output_name: str | None = None,
    ) -> BuildContext:
        config = BuildConfig.load(project)
        options = BuildOptions(target=target, output_name=output_name or f"app-{target.short_name}")
        workspace = Workspace(project, entries=config.deployable_entries)
        workspace.setup()
        workspace.site_packages.mkdir()
        patch_manifest(workspace, options, config)
        emit_capability_shims(workspace.patches_dir)
        return BuildContext(
            options=options,
            config=config,
            workspace=workspace,
            runner=runner or FakeRunner(),
            logger=StructuredLogger(),
        )

    return factory
