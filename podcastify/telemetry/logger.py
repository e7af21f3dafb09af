"""Structured run logging utilities.

Responsibilities:
- Emit concise, deterministic phase-level runtime logs through `loguru`.
- Attach per-job context (job id, chunk counts) as sorted `key=value` tokens.
"""

from __future__ import annotations

from typing import TextIO

from loguru import logger


def _sanitize_context_value(value: object) -> str:
    """Convert context values into stable, shell-safe tokens."""

    raw = str(value).strip()
    if not raw:
        return "none"
    return "".join(
        character if character.isalnum() or character in {"-", "_", ".", ":", "/"} else "_"
        for character in raw
    )


def _format_context(context: dict[str, object]) -> str:
    """Serialize context key/value pairs in deterministic key order."""

    if not context:
        return ""
    tokens = [f"{key}={_sanitize_context_value(context[key])}" for key in sorted(context)]
    return " " + " ".join(tokens)


def _is_phase_record(record: dict) -> bool:
    return record["extra"].get("phase") is True


class RunLogger:
    """Emit deterministic phase logs for pipeline activity.

    With a `sink`, phase lines are additionally written there as bare messages;
    other handlers configured on the global `loguru` logger are left untouched.
    """

    def __init__(self, sink: TextIO | None = None) -> None:
        """Bind a phase logger and optionally attach a dedicated sink."""

        self._logger = logger.bind(phase=True)
        self._handler_id: int | None = None
        if sink is not None:
            self._handler_id = logger.add(
                sink,
                format="{message}",
                level="INFO",
                colorize=False,
                filter=_is_phase_record,
            )

    def close(self) -> None:
        """Detach the dedicated sink, if any."""

        if self._handler_id is not None:
            logger.remove(self._handler_id)
            self._handler_id = None

    def _emit(self, level: str, event: str, stage: str, **context: object) -> None:
        """Emit one structured runtime log line."""

        line = f"[phase] level={level} stage={stage} event={event}{_format_context(context)}"
        self._logger.log(level, line)

    def log_stage_start(self, stage: str, **context: object) -> None:
        """Emit a stage-start runtime event."""

        self._emit("INFO", "start", stage, **context)

    def log_stage_complete(self, stage: str, **context: object) -> None:
        """Emit a stage-complete runtime event."""

        self._emit("INFO", "complete", stage, **context)

    def log_stage_failure(self, stage: str, error_type: str, **context: object) -> None:
        """Emit a stage-failure runtime event without sensitive payload details."""

        self._emit("ERROR", "failure", stage, error_type=error_type, **context)
