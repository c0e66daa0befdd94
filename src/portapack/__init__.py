"""Portable executable builds for Python applications with native dependencies."""

from .builder import ExecutableBuilder
from .cascade import BuildCascade, CascadeOutcome, CascadeState
from .config import BuildConfig
from .distribution import package_distribution
from .errors import (
    CascadeExhaustedError,
    ErrorCode,
    ManifestError,
    PortapackError,
    PrerequisiteError,
    ProcessError,
    StrategyError,
    ValidationError,
    WorkspaceError,
)
from .manifest import PackConfig, patch_manifest, read_pack_config
from .models import (
    BuildAttemptResult,
    BuildMethod,
    BuildOptions,
    BuildResult,
    VerificationResult,
    default_output_name,
)
from .targets import TargetPlatform
from .verify import verify_executable
from .workspace import Workspace

__version__ = "0.1.0"

__all__ = [
    "BuildAttemptResult",
    "BuildCascade",
    "BuildConfig",
    "BuildMethod",
    "BuildOptions",
    "BuildResult",
    "CascadeExhaustedError",
    "CascadeOutcome",
    "CascadeState",
    "ErrorCode",
    "ExecutableBuilder",
    "ManifestError",
    "PackConfig",
    "PortapackError",
    "PrerequisiteError",
    "ProcessError",
    "StrategyError",
    "TargetPlatform",
    "ValidationError",
    "VerificationResult",
    "Workspace",
    "WorkspaceError",
    "default_output_name",
    "package_distribution",
    "patch_manifest",
    "read_pack_config",
    "verify_executable",
]
