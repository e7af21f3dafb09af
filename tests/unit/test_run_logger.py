"""Unit tests for structured phase logging."""

from __future__ import annotations

import io

from loguru import logger

from podcastify.telemetry.logger import RunLogger


def test_phase_lines_are_deterministic_and_sanitized() -> None:
    sink = io.StringIO()
    run_logger = RunLogger(sink=sink)
    try:
        run_logger.log_stage_start("tts", job_id="s1-ch1-en-1", chunks=3)
        run_logger.log_stage_failure("store", "StorageError", job_id="s1 ch1", detail="")
    finally:
        run_logger.close()

    assert sink.getvalue().splitlines() == [
        "[phase] level=INFO stage=tts event=start chunks=3 job_id=s1-ch1-en-1",
        "[phase] level=ERROR stage=store event=failure detail=none error_type=StorageError job_id=s1_ch1",
    ]


def test_sink_ignores_unrelated_records_and_detaches_on_close() -> None:
    sink = io.StringIO()
    run_logger = RunLogger(sink=sink)
    logger.info("unrelated application message")
    run_logger.log_stage_complete("chunk")
    run_logger.close()
    run_logger.close()
    run_logger.log_stage_complete("assemble")

    assert sink.getvalue().splitlines() == ["[phase] level=INFO stage=chunk event=complete"]
