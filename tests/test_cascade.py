from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

import pytest

from portapack.cascade import BuildCascade, CascadeState
from portapack.errors import CascadeExhaustedError, ManifestError, ProcessError, StrategyError
from portapack.models import BuildMethod
from portapack.strategies import BuildContext

ContextFactory = Callable[..., BuildContext]


@dataclass(slots=True)
class ScriptedStrategy:
    method: BuildMethod
    error: Exception | None = None
    log: list[str] = field(default_factory=list)

    def build(self, context: BuildContext) -> Path:
        self.log.append(f"build:{self.method.value}")
        partial = context.project_root / f"partial-{self.method.value}"
        partial.write_text("partial", encoding="utf-8")
        if self.error is not None:
            raise self.error
        return partial

    def discard(self, context: BuildContext) -> None:
        self.log.append(f"discard:{self.method.value}")
        (context.project_root / f"partial-{self.method.value}").unlink()


def _strategies(log: list[str], **errors: Exception) -> list[ScriptedStrategy]:
    return [
        ScriptedStrategy(method=method, error=errors.get(method.value), log=log)
        for method in (BuildMethod.BUNDLE, BuildMethod.PACK, BuildMethod.BASIC)
    ]


def test_first_success_stops_the_cascade(make_context: ContextFactory) -> None:
    log: list[str] = []
    cascade = BuildCascade(_strategies(log))

    outcome = cascade.run(make_context())

    assert outcome.method is BuildMethod.BUNDLE
    assert log == ["build:bundle"]
    assert cascade.state is CascadeState.DONE
    assert [attempt.succeeded for attempt in outcome.attempts] == [True]


def test_failures_fall_through_in_order(make_context: ContextFactory) -> None:
    log: list[str] = []
    context = make_context()
    cascade = BuildCascade(
        _strategies(log, bundle=StrategyError("no archive"), pack=ProcessError("exit 1", returncode=1))
    )

    outcome = cascade.run(context)

    assert outcome.method is BuildMethod.BASIC
    assert log == [
        "build:bundle",
        "discard:bundle",
        "build:pack",
        "discard:pack",
        "build:basic",
    ]
    assert not (context.project_root / "partial-bundle").exists()
    assert not (context.project_root / "partial-pack").exists()
    assert [attempt.strategy for attempt in outcome.attempts] == [
        BuildMethod.BUNDLE,
        BuildMethod.PACK,
        BuildMethod.BASIC,
    ]
    assert outcome.attempts[0].error == "no archive"
    assert outcome.attempts[0].artifact_path is None
    warnings = [record for record in context.logger.records if record["level"] == "warning"]
    assert [record["strategy"] for record in warnings] == ["bundle", "pack"]


def test_os_errors_are_recoverable(make_context: ContextFactory) -> None:
    log: list[str] = []
    cascade = BuildCascade(_strategies(log, bundle=OSError("disk hiccup")))

    outcome = cascade.run(make_context())

    assert outcome.method is BuildMethod.PACK


def test_final_failure_is_fatal(make_context: ContextFactory) -> None:
    log: list[str] = []
    cascade = BuildCascade(
        _strategies(
            log,
            bundle=StrategyError("bundle failed"),
            pack=StrategyError("pack failed"),
            basic=OSError("read-only filesystem"),
        )
    )

    with pytest.raises(CascadeExhaustedError) as excinfo:
        cascade.run(make_context())

    assert cascade.state is CascadeState.FATAL
    assert log.count("discard:basic") == 1
    attempts = excinfo.value.context["attempts"]
    assert "bundle: bundle failed" in attempts
    assert "basic: read-only filesystem" in attempts


def test_any_early_failure_still_tries_later_strategies(make_context: ContextFactory) -> None:
    log: list[str] = []
    cascade = BuildCascade(_strategies(log, bundle=ManifestError("corrupt"), pack=KeyError("RECORD")))

    outcome = cascade.run(make_context())

    assert outcome.method is BuildMethod.BASIC
    assert log == [
        "build:bundle",
        "discard:bundle",
        "build:pack",
        "discard:pack",
        "build:basic",
    ]
    assert outcome.attempts[0].error == "corrupt"
    assert outcome.attempts[1].error == "'RECORD'"


def test_unexpected_final_failure_is_reported_as_exhaustion(make_context: ContextFactory) -> None:
    log: list[str] = []
    cascade = BuildCascade(
        _strategies(
            log,
            bundle=StrategyError("bundle failed"),
            pack=StrategyError("pack failed"),
            basic=ValueError("bad entry"),
        )
    )

    with pytest.raises(CascadeExhaustedError) as excinfo:
        cascade.run(make_context())

    assert isinstance(excinfo.value.__cause__, ValueError)
    assert "basic: bad entry" in excinfo.value.context["attempts"]


def test_cascade_requires_every_strategy() -> None:
    with pytest.raises(ValueError, match="pack"):
        BuildCascade([ScriptedStrategy(method=BuildMethod.BUNDLE), ScriptedStrategy(method=BuildMethod.BASIC)])
