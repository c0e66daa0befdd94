"""Typed build error model with stable, machine-readable error codes."""

from __future__ import annotations

from collections.abc import Mapping
from enum import StrEnum


class ErrorCode(StrEnum):
    """Stable error identifiers used across the build pipeline."""

    VALIDATION = "E_VALIDATION"
    ENVIRONMENT = "E_ENVIRONMENT"
    MANIFEST = "E_MANIFEST"
    STRATEGY = "E_STRATEGY"
    PROCESS = "E_PROCESS"
    WORKSPACE = "E_WORKSPACE"
    CASCADE = "E_CASCADE"


class PortapackError(Exception):
    """A build failure tied to the pipeline operation that raised it.

    ``context`` holds string details for the report; its ``operation`` entry
    names the pipeline step (``setup``, ``cascade``, ``load_config`` ...) and
    is exposed as :attr:`operation`.
    """

    code: str
    hint: str | None
    context: dict[str, str]

    def __init__(
        self,
        message: str,
        *,
        code: ErrorCode,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code.value
        self.hint = hint
        self.context = dict(context or {})

    @property
    def operation(self) -> str | None:
        return self.context.get("operation")

    @property
    def summary(self) -> str:
        """The message alone, first line only."""
        message = super().__str__()
        return message.splitlines()[0] if message else type(self).__name__

    def __str__(self) -> str:
        lines = [super().__str__()]
        if self.hint:
            lines.append(f"Hint: {self.hint}")
        lines.extend(f"  {key}: {value}" for key, value in self.context.items() if value)
        return "\n".join(lines)

    def to_dict(self) -> dict[str, object]:
        payload: dict[str, object] = {
            "code": self.code,
            "message": super().__str__(),
            "context": dict(self.context),
        }
        if self.operation is not None:
            payload["operation"] = self.operation
        if self.hint is not None:
            payload["hint"] = self.hint
        return payload


class ValidationError(PortapackError):
    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.VALIDATION, hint=hint, context=context)


class PrerequisiteError(PortapackError):
    """A required tool or input is missing from the build environment."""

    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.ENVIRONMENT, hint=hint, context=context)


class ManifestError(PortapackError):
    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.MANIFEST, hint=hint, context=context)


class StrategyError(PortapackError):
    """A packaging strategy could not produce an artifact; the cascade moves on."""

    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.STRATEGY, hint=hint, context=context)


class ProcessError(PortapackError):
    """An external command exited non-zero, failed to launch, or timed out."""

    returncode: int | None
    timed_out: bool

    def __init__(
        self,
        message: str,
        *,
        returncode: int | None = None,
        timed_out: bool = False,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.PROCESS, hint=hint, context=context)
        self.returncode = returncode
        self.timed_out = timed_out


class WorkspaceError(PortapackError):
    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.WORKSPACE, hint=hint, context=context)


class CascadeExhaustedError(PortapackError):
    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.CASCADE, hint=hint, context=context)


__all__ = [
    "CascadeExhaustedError",
    "ErrorCode",
    "ManifestError",
    "PortapackError",
    "PrerequisiteError",
    "ProcessError",
    "StrategyError",
    "ValidationError",
    "WorkspaceError",
]
