import json
import logging
import os
import sys
from pathlib import Path

import pytest

from portapack.errors import ProcessError
from portapack.observability import LOGGER_NAME, StructuredLogger, configure_logging
from portapack.process import CommandRunner


def test_configure_logging_sets_level_and_single_handler() -> None:
    configure_logging(verbose=False)
    logger = configure_logging(verbose=True)

    assert logger.name == LOGGER_NAME
    assert logger.level == logging.DEBUG
    assert len(logger.handlers) == 1
    assert logger.propagate is False


def test_structured_logger_records_and_exports(tmp_path: Path) -> None:
    structured = StructuredLogger()
    structured.log(
        operation="cascade",
        strategy="bundle",
        phase="failed",
        message="bundle build failed",
        level="warning",
        extra={"artifact": tmp_path / "app", "attempts": ("bundle",)},
    )
    structured.log(operation="build", message="done")

    assert [record["operation"] for record in structured.records_for_strategy("bundle")] == ["cascade"]
    assert structured.records[0]["extra"] == {"artifact": str(tmp_path / "app"), "attempts": ["bundle"]}

    output = structured.to_json_lines(tmp_path / "logs" / "build.jsonl")
    lines = output.read_text(encoding="utf-8").splitlines()
    assert [json.loads(line)["message"] for line in lines] == ["bundle build failed", "done"]


def test_structured_logger_mirrors_to_console_logger(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.INFO, logger=LOGGER_NAME):
        StructuredLogger().log(operation="cascade", strategy="pack", message="trying pack", level="warning")

    assert "[pack] trying pack" in caplog.text


def test_runner_returns_captured_output(tmp_path: Path) -> None:
    result = CommandRunner().run(
        [sys.executable, "-c", "import os; print(os.environ['PORTAPACK_PROBE'])"],
        cwd=tmp_path,
        env={"PORTAPACK_PROBE": "42"},
    )
    assert result.returncode == 0
    assert result.stdout.strip() == "42"


def test_runner_raises_on_non_zero_exit() -> None:
    with pytest.raises(ProcessError) as excinfo:
        CommandRunner().run([sys.executable, "-c", "import sys; sys.stderr.write('bad'); sys.exit(4)"])
    assert excinfo.value.returncode == 4
    assert excinfo.value.context["stderr"] == "bad"


def test_runner_raises_when_program_is_missing(tmp_path: Path) -> None:
    with pytest.raises(ProcessError, match="could not be started"):
        CommandRunner().run([str(tmp_path / "no-such-tool")])


@pytest.mark.skipif(os.name != "posix", reason="Process groups are POSIX-only.")
def test_runner_timeout_kills_process() -> None:
    with pytest.raises(ProcessError) as excinfo:
        CommandRunner().run([sys.executable, "-c", "import time; time.sleep(30)"], timeout=0.5)
    assert excinfo.value.timed_out
