"""Stage telemetry helper methods for the generation pipeline.

Responsibilities:
- Provide stage index/total metadata for job progress reporting.
- Emit stage start/complete/failure events with per-job context.
- Wrap stage actions with consistent telemetry hooks.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TypeVar

from ..telemetry.logger import RunLogger

_StageResult = TypeVar("_StageResult")


class PipelineTelemetryMixin:
    """Provide stage-telemetry helper methods.

    Hosts must set `_run_logger` and `_stage_progress_callback`.
    """

    _PHASE_SEQUENCE = ("chunk", "tts", "assemble", "store")

    _run_logger: RunLogger | None
    _stage_progress_callback: Callable[[str, str, int, int], None] | None

    def _stage_position(self, stage_name: str) -> tuple[int, int] | None:
        """Return 1-based stage index and total stage count for known stages."""

        try:
            index = self._PHASE_SEQUENCE.index(stage_name) + 1
        except ValueError:
            return None
        return index, len(self._PHASE_SEQUENCE)

    def _on_stage_start(self, stage_name: str, context: dict[str, object]) -> None:
        """Emit start events to the stage progress callback and structured logger."""

        stage_position = self._stage_position(stage_name)
        job_id = context.get("job_id")
        if stage_position and job_id and self._stage_progress_callback is not None:
            self._stage_progress_callback(
                str(job_id), stage_name, stage_position[0], stage_position[1]
            )
        if self._run_logger is not None:
            self._run_logger.log_stage_start(stage_name, **context)

    def _on_stage_complete(self, stage_name: str, context: dict[str, object]) -> None:
        """Emit stage-complete event to the structured logger."""

        if self._run_logger is not None:
            self._run_logger.log_stage_complete(stage_name, **context)

    def _on_stage_failure(
        self, stage_name: str, exc: Exception, context: dict[str, object]
    ) -> None:
        """Emit stage-failure event with sanitized exception metadata."""

        if self._run_logger is not None:
            self._run_logger.log_stage_failure(stage_name, type(exc).__name__, **context)

    def _run_stage(
        self,
        stage_name: str,
        action: Callable[[], _StageResult],
        **context: object,
    ) -> _StageResult:
        """Run one named stage and emit start/complete/failure telemetry events."""

        self._on_stage_start(stage_name, context)
        try:
            result = action()
        except Exception as exc:
            self._on_stage_failure(stage_name, exc, context)
            raise
        self._on_stage_complete(stage_name, context)
        return result
