"""Build pipeline: stage, configure, cascade, verify, archive, clean up."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from portapack.cascade import BuildCascade
from portapack.config import BuildConfig
from portapack.distribution import package_distribution
from portapack.errors import ManifestError, PortapackError, WorkspaceError
from portapack.manifest import patch_manifest
from portapack.models import BuildMethod, BuildOptions, BuildResult, VerificationResult
from portapack.observability import StructuredLogger
from portapack.process import CommandRunner, Runner
from portapack.shims import emit_capability_shims
from portapack.strategies import BuildContext
from portapack.targets import TargetPlatform
from portapack.verify import verify_executable
from portapack.workspace import Workspace


@dataclass(slots=True)
class ExecutableBuilder:
    """Runs one build invocation end to end.

    The workspace is removed when the build finishes, whether it succeeded
    or failed, unless ``options.skip_cleanup`` is set.
    """

    options: BuildOptions
    config: BuildConfig
    runner: Runner | None = None
    cascade: BuildCascade = field(default_factory=BuildCascade)
    logger: StructuredLogger = field(default_factory=StructuredLogger)
    archive: bool = False

    @property
    def command_runner(self) -> Runner:
        if self.runner is None:
            self.runner = CommandRunner(verbose=self.options.verbose)
        return self.runner

    @property
    def workspace(self) -> Workspace:
        return Workspace(
            self.config.project_root,
            name=self.config.workspace_name,
            entries=self.config.deployable_entries,
            manifest_name=self.config.manifest_name,
            lockfile_name=self.config.lockfile_name,
        )

    def build(self) -> BuildResult:
        workspace = self.workspace
        self.logger.log(
            operation="build",
            phase="start",
            message=f"Building {self.options.output_name} for {self.options.target.value}",
        )
        try:
            result = self._build(workspace)
        except PortapackError as exc:
            self.logger.log(
                operation="build",
                phase="failed",
                message=exc.summary,
                level="error",
                extra={"code": exc.code, "failed_operation": exc.operation},
            )
            self._cleanup_after_failure(workspace)
            raise
        except BaseException:
            self._cleanup_after_failure(workspace)
            raise
        self._cleanup(workspace)
        self._summarize(result)
        return result

    def _build(self, workspace: Workspace) -> BuildResult:
        copied = workspace.setup()
        self.logger.log(
            operation="setup",
            phase="workspace",
            message=f"Workspace ready at {workspace.path}",
            extra={"copied": copied},
        )
        if not workspace.manifest_path.exists():
            raise ManifestError(
                f"{self.config.manifest_name} not found in the project root.",
                hint="Run the build from the application's project root.",
                context={"operation": "build", "path": str(self.config.project_root)},
            )

        workspace.install_dependencies(self.command_runner, target=self.options.target)
        self.logger.log(operation="install_dependencies", phase="workspace", message="Dependencies installed")

        pack_config = patch_manifest(workspace, self.options, self.config)
        self.logger.log(
            operation="patch_manifest",
            phase="configure",
            message="Packaging configuration written",
            extra={"excluded": pack_config.excluded},
        )

        shims = emit_capability_shims(workspace.patches_dir)
        self.logger.log(
            operation="emit_shims",
            phase="configure",
            message="Capability fallbacks emitted",
            level="debug",
            extra={"modules": shims.modules},
        )

        context = BuildContext(
            options=self.options,
            config=self.config,
            workspace=workspace,
            runner=self.command_runner,
            logger=self.logger,
        )
        outcome = self.cascade.run(context)
        verification = self._verify(outcome.artifact_path)

        result = BuildResult(
            target=self.options.target,
            output_name=self.options.output_name,
            method=outcome.method,
            artifact_path=outcome.artifact_path,
            output_dir=None if outcome.method is BuildMethod.PACK else context.output_dir,
            attempts=outcome.attempts,
            verification=verification,
        )
        if self.archive:
            destination = self.config.project_root / self.config.archive_dir
            result.archive_path = package_distribution(result, config=self.config, destination=destination)
            self.logger.log(
                operation="package_distribution",
                phase="archive",
                message=f"Archive written: {result.archive_path.name}",
            )
        return result

    def _verify(self, artifact: Path) -> VerificationResult:
        host = TargetPlatform.host()
        if host is None or host.os_family != self.options.target.os_family:
            self.logger.log(
                operation="verify",
                phase="verify",
                message="Skipping verification: the artifact cannot run on this host",
                level="warning",
            )
            return VerificationResult(passed=False, detail="not runnable on this host")
        verification = verify_executable(
            artifact,
            runner=self.command_runner,
            args=self.config.verify_args,
            timeout=self.config.verify_timeout,
        )
        self.logger.log(
            operation="verify",
            phase="verify",
            message="Executable test passed" if verification.passed else "Executable test failed",
            level="info" if verification.passed else "warning",
            extra=verification.to_payload(),
        )
        return verification

    def _cleanup(self, workspace: Workspace) -> None:
        if self.options.skip_cleanup:
            self.logger.log(
                operation="cleanup",
                phase="teardown",
                message=f"Keeping workspace at {workspace.path}",
            )
            return
        if workspace.cleanup():
            self.logger.log(operation="cleanup", phase="teardown", message="Workspace removed", level="debug")

    def _cleanup_after_failure(self, workspace: Workspace) -> None:
        # The build error takes precedence over a cleanup failure.
        try:
            self._cleanup(workspace)
        except WorkspaceError as exc:
            self.logger.log(
                operation="cleanup",
                phase="teardown",
                message=exc.summary,
                level="warning",
                extra={"path": str(workspace.path)},
            )

    def _summarize(self, result: BuildResult) -> None:
        self.logger.log(
            operation="build",
            phase="summary",
            message=(
                f"Built {result.output_name} for {result.target.value} "
                f"using {result.method.value}: {result.artifact_path}"
            ),
            extra={"method": result.method.value},
        )
        result.logs = list(self.logger.records)


__all__ = ["ExecutableBuilder"]
