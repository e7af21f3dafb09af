"""Point-to-point dispatch of generation events.

Responsibilities:
- Hand one `GenerationRequested` event to exactly one handler invocation.
- Run each job as its own unit of concurrency on a worker pool.
- Offer an inline dispatcher for deterministic tests and one-shot CLI runs.
"""

from __future__ import annotations

from concurrent.futures import Future, ThreadPoolExecutor, wait
import threading
from typing import Callable, Protocol

from loguru import logger

from ..models.datatypes import GenerationRequested

GenerationHandler = Callable[[GenerationRequested], None]


class Dispatcher(Protocol):
    """Delivers generation events to the pipeline."""

    def dispatch(self, event: GenerationRequested, handler: GenerationHandler) -> None:
        """Schedule `handler(event)` and return without waiting for it."""

    def wait_idle(self, timeout: float | None = None) -> bool:
        """Block until every dispatched event has been handled."""

    def shutdown(self, wait: bool = True) -> None:
        """Stop accepting events."""


class InlineDispatcher:
    """Run handlers synchronously in the caller's thread."""

    def dispatch(self, event: GenerationRequested, handler: GenerationHandler) -> None:
        handler(event)

    def wait_idle(self, timeout: float | None = None) -> bool:
        return True

    def shutdown(self, wait: bool = True) -> None:
        return None


class JobDispatcher:
    """Run handlers on a bounded `ThreadPoolExecutor`, one task per job."""

    def __init__(self, max_workers: int = 4) -> None:
        """Initialize the worker pool."""

        if max_workers <= 0:
            raise ValueError("`max_workers` must be a positive integer.")
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="podcastify-job"
        )
        self._pending: set[Future] = set()
        self._lock = threading.Lock()

    def dispatch(self, event: GenerationRequested, handler: GenerationHandler) -> None:
        """Submit one event; handler exceptions are logged when the task finishes."""

        logger.info("[Dispatch] audio/generate.requested job={}", event.job_id)
        future = self._executor.submit(handler, event)
        with self._lock:
            self._pending.add(future)
        future.add_done_callback(lambda done: self._finished(event.job_id, done))

    def wait_idle(self, timeout: float | None = None) -> bool:
        """Wait for all dispatched tasks; return `False` on timeout."""

        with self._lock:
            pending = set(self._pending)
        if not pending:
            return True
        _, not_done = wait(pending, timeout=timeout)
        return not not_done

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)

    def _finished(self, job_id: str, future: Future) -> None:
        with self._lock:
            self._pending.discard(future)
        if future.cancelled():
            logger.warning("[Dispatch] Job {} was cancelled before running", job_id)
            return
        exc = future.exception()
        if exc is not None:
            logger.opt(exception=exc).error("[Dispatch] Job {} handler crashed", job_id)
