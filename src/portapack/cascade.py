"""Ordered fallthrough across packaging strategies.

The cascade is an explicit state machine: each ``try-*`` state runs one
strategy; success ends in ``done``. Any failure discards partial output and
moves one state down; a failure of the last strategy ends in ``fatal``.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path

from portapack.errors import CascadeExhaustedError, PortapackError
from portapack.models import BuildAttemptResult, BuildMethod
from portapack.strategies import BuildContext, BuildStrategy, default_strategies


class CascadeState(StrEnum):
    TRY_BUNDLE = "try-bundle"
    TRY_PACK = "try-pack"
    TRY_BASIC = "try-basic"
    DONE = "done"
    FATAL = "fatal"


STATE_METHODS: dict[CascadeState, BuildMethod] = {
    CascadeState.TRY_BUNDLE: BuildMethod.BUNDLE,
    CascadeState.TRY_PACK: BuildMethod.PACK,
    CascadeState.TRY_BASIC: BuildMethod.BASIC,
}

ON_FAILURE: dict[CascadeState, CascadeState] = {
    CascadeState.TRY_BUNDLE: CascadeState.TRY_PACK,
    CascadeState.TRY_PACK: CascadeState.TRY_BASIC,
    CascadeState.TRY_BASIC: CascadeState.FATAL,
}


@dataclass(frozen=True, slots=True)
class CascadeOutcome:
    method: BuildMethod
    artifact_path: Path
    attempts: tuple[BuildAttemptResult, ...]


class BuildCascade:
    def __init__(self, strategies: Sequence[BuildStrategy] | None = None) -> None:
        chosen = tuple(strategies) if strategies is not None else default_strategies()
        self.strategies: dict[BuildMethod, BuildStrategy] = {
            strategy.method: strategy for strategy in chosen
        }
        missing = [method.value for method in STATE_METHODS.values() if method not in self.strategies]
        if missing:
            raise ValueError(f"Cascade is missing strategies: {', '.join(missing)}")
        self.state = CascadeState.TRY_BUNDLE

    def run(self, context: BuildContext) -> CascadeOutcome:
        self.state = CascadeState.TRY_BUNDLE
        attempts: list[BuildAttemptResult] = []

        while True:
            method = STATE_METHODS[self.state]
            strategy = self.strategies[method]
            context.logger.log(
                operation="cascade",
                strategy=method.value,
                phase="start",
                message=f"Attempting {method.value} build",
            )
            try:
                artifact = strategy.build(context)
            except Exception as exc:  # noqa: BLE001 - any strategy failure moves to the next strategy
                attempts.append(BuildAttemptResult(strategy=method, succeeded=False, error=_summary(exc)))
                self._discard(strategy, context)
                self.state = ON_FAILURE[self.state]
                if self.state is CascadeState.FATAL:
                    context.logger.log(
                        operation="cascade",
                        strategy=method.value,
                        phase="failed",
                        message=f"Final {method.value} build failed: {_summary(exc)}",
                        level="error",
                    )
                    raise CascadeExhaustedError(
                        "All packaging strategies failed.",
                        hint="Run with --verbose to see each strategy's output.",
                        context={
                            "operation": "cascade",
                            "attempts": "; ".join(
                                f"{attempt.strategy.value}: {attempt.error}" for attempt in attempts
                            ),
                        },
                    ) from exc
                context.logger.log(
                    operation="cascade",
                    strategy=method.value,
                    phase="failed",
                    message=f"{method.value} build failed, trying {STATE_METHODS[self.state].value}: {_summary(exc)}",
                    level="warning",
                )
                continue

            attempts.append(BuildAttemptResult(strategy=method, succeeded=True, artifact_path=artifact))
            self.state = CascadeState.DONE
            context.logger.log(
                operation="cascade",
                strategy=method.value,
                phase="done",
                message=f"Build succeeded using {method.value}",
                extra={"artifact": artifact},
            )
            return CascadeOutcome(method=method, artifact_path=artifact, attempts=tuple(attempts))

    def _discard(self, strategy: BuildStrategy, context: BuildContext) -> None:
        try:
            strategy.discard(context)
        except OSError as exc:
            context.logger.log(
                operation="cascade",
                strategy=strategy.method.value,
                phase="discard",
                message=f"Could not remove partial output: {exc}",
                level="warning",
            )


def _summary(exc: BaseException) -> str:
    if isinstance(exc, PortapackError):
        return exc.summary
    return str(exc).splitlines()[0] if str(exc) else type(exc).__name__


__all__ = ["BuildCascade", "CascadeOutcome", "CascadeState"]
