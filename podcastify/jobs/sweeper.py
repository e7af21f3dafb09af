"""Periodic background reaping of expired jobs."""

from __future__ import annotations

import threading

from loguru import logger

from .store import DEFAULT_JOB_RETENTION_SECONDS, JobStore


class JobSweeper:
    """Daemon thread that calls `JobStore.sweep_expired` at a fixed interval."""

    def __init__(
        self,
        store: JobStore,
        retention_seconds: float = DEFAULT_JOB_RETENTION_SECONDS,
        interval_seconds: float = 3600.0,
    ) -> None:
        self.store = store
        self.retention_seconds = retention_seconds
        self.interval_seconds = interval_seconds
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start sweeping; a second call while running is ignored."""

        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(
            target=self._loop, name="podcastify-job-sweeper", daemon=True
        )
        self._thread.start()
        logger.info(
            "[Jobs] Sweeper started (retention={}s, interval={}s)",
            self.retention_seconds,
            self.interval_seconds,
        )

    def stop(self, timeout: float | None = 5.0) -> None:
        """Signal the sweeper to stop and wait for the thread to exit."""

        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None

    def _loop(self) -> None:
        while not self._stop.wait(self.interval_seconds):
            self.store.sweep_expired(self.retention_seconds)
