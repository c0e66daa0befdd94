"""Core typed dataclasses for build options, attempts and results."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path

import cbor2

from portapack.errors import ValidationError
from portapack.targets import TargetPlatform

_SAFE_NAME = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]*$")


class BuildMethod(StrEnum):
    BUNDLE = "bundle"
    PACK = "pack"
    BASIC = "basic"


@dataclass(slots=True)
class BuildOptions:
    """Options for one build invocation.

    ``output_name`` is normalised on construction so that it carries an
    ``.exe`` suffix exactly when the target is a Windows variant.
    """

    target: TargetPlatform
    output_name: str
    verbose: bool = False
    skip_cleanup: bool = False

    def __post_init__(self) -> None:
        if not isinstance(self.target, TargetPlatform):
            self.target = TargetPlatform.parse(str(self.target))
        name = self.output_name.strip()
        if not _SAFE_NAME.fullmatch(name) or name in {".", ".."}:
            raise ValidationError(
                f"Output name {self.output_name!r} is not filesystem-safe.",
                hint="Use letters, digits, '.', '_' and '-' only, without path separators.",
                context={"operation": "build_options", "output": self.output_name},
            )
        if name.lower().endswith(".exe"):
            name = name[: -len(".exe")]
        if not name:
            raise ValidationError(
                "Output name must not be empty.",
                context={"operation": "build_options", "output": self.output_name},
            )
        self.output_name = name + self.target.executable_suffix

    @property
    def output_stem(self) -> str:
        return self.output_name.removesuffix(".exe")


def default_output_name(app_name: str, target: TargetPlatform) -> str:
    return f"{app_name}-{target.short_name}{target.executable_suffix}"


@dataclass(frozen=True, slots=True)
class BuildAttemptResult:
    strategy: BuildMethod
    succeeded: bool
    artifact_path: Path | None = None
    error: str | None = None

    def to_payload(self) -> dict[str, object]:
        return {
            "strategy": self.strategy.value,
            "succeeded": self.succeeded,
            "artifact_path": str(self.artifact_path) if self.artifact_path else None,
            "error": self.error,
        }


@dataclass(frozen=True, slots=True)
class VerificationResult:
    passed: bool
    timed_out: bool = False
    returncode: int | None = None
    detail: str = ""

    def to_payload(self) -> dict[str, object]:
        return {
            "passed": self.passed,
            "timed_out": self.timed_out,
            "returncode": self.returncode,
            "detail": self.detail,
        }


@dataclass(slots=True)
class BuildResult:
    target: TargetPlatform
    output_name: str
    method: BuildMethod
    artifact_path: Path
    output_dir: Path | None
    attempts: tuple[BuildAttemptResult, ...] = ()
    verification: VerificationResult | None = None
    archive_path: Path | None = None
    logs: list[dict[str, object]] = field(default_factory=list)
    schema_version: int = 1

    def to_json(self, path: str | Path | None = None) -> str:
        encoded = json.dumps(self._payload(), indent=2, sort_keys=True) + "\n"
        if path is not None:
            Path(path).write_text(encoded, encoding="utf-8")
        return encoded

    def to_cbor(self, path: str | Path | None = None) -> bytes:
        encoded = cbor2.dumps(self._payload(), canonical=True)
        if path is not None:
            Path(path).write_bytes(encoded)
        return encoded

    def _payload(self) -> dict[str, object]:
        return {
            "schema_version": self.schema_version,
            "target": self.target.value,
            "output": self.output_name,
            "method": self.method.value,
            "artifact_path": str(self.artifact_path),
            "output_dir": str(self.output_dir) if self.output_dir else None,
            "attempts": [attempt.to_payload() for attempt in self.attempts],
            "verification": (
                self.verification.to_payload() if self.verification is not None else None
            ),
            "archive_path": str(self.archive_path) if self.archive_path else None,
            "logs": list(self.logs),
        }


__all__ = [
    "BuildAttemptResult",
    "BuildMethod",
    "BuildOptions",
    "BuildResult",
    "VerificationResult",
    "default_output_name",
]
