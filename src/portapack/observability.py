"""Console logging setup and structured build records."""

from __future__ import annotations

import json
import logging
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

LOGGER_NAME = "portapack"

_LEVELS: dict[str, int] = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "critical": logging.CRITICAL,
}


def configure_logging(*, verbose: bool) -> logging.Logger:
    """Configure the ``portapack`` logger for console output.

    :param verbose: Enable debug output.
    :returns: Configured logger.
    """

    level = logging.DEBUG if verbose else logging.INFO
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False

    handler = logging.StreamHandler(stream=sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter("%(levelname)s %(message)s"))

    logger.handlers.clear()
    logger.addHandler(handler)
    return logger


@dataclass(slots=True)
class StructuredLogger:
    """Collects build events and mirrors them to the console logger."""

    records: list[dict[str, Any]] = field(default_factory=list)
    logger: logging.Logger = field(default_factory=lambda: logging.getLogger(LOGGER_NAME))

    def log(
        self,
        *,
        operation: str,
        message: str,
        strategy: str | None = None,
        phase: str | None = None,
        level: str = "info",
        extra: dict[str, Any] | None = None,
    ) -> None:
        record: dict[str, Any] = {
            "level": level,
            "operation": operation,
            "strategy": strategy,
            "phase": phase,
            "message": message,
        }
        if extra is not None:
            record["extra"] = {key: _plain(value) for key, value in extra.items()}
        self.records.append(record)
        prefix = f"[{strategy}] " if strategy else ""
        self.logger.log(_LEVELS.get(level, logging.INFO), "%s%s", prefix, message)

    def records_for_strategy(self, strategy: str) -> list[dict[str, Any]]:
        return [record for record in self.records if record.get("strategy") == strategy]

    def to_json_lines(self, path: str | Path) -> Path:
        output_path = Path(path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        lines = [json.dumps(record, sort_keys=True) for record in self.records]
        output_path.write_text("\n".join(lines) + "\n", encoding="utf-8")
        return output_path


def _plain(value: Any) -> Any:
    if isinstance(value, (str, int, float, bool)) or value is None:
        return value
    if isinstance(value, (list, tuple)):
        return [_plain(item) for item in value]
    return str(value)


__all__ = ["LOGGER_NAME", "StructuredLogger", "configure_logging"]
