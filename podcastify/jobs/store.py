"""Job registry with lifecycle enforcement.

Responsibilities:
- Create, update, query, and delete job records behind one mutex.
- Enforce the `pending -> processing -> completed|failed` lifecycle.
- Keep `updated_at` strictly increasing on every accepted update.
- Reap jobs older than a retention window.

Key types:
- `JobBackend`: pluggable keyed storage for job records.
- `InMemoryJobBackend`: dict-backed default backend.
- `JobStore`: thread-safe registry used by the orchestrator and query surfaces.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timedelta, timezone
import threading
from typing import Callable, Iterable, Protocol

from loguru import logger

from ..errors import JobTransitionError
from ..models.datatypes import (
    JOB_STATUS_COMPLETED,
    JOB_STATUS_FAILED,
    JOB_STATUS_PENDING,
    JOB_STATUS_PROCESSING,
    JOB_STATUSES,
    Job,
)

DEFAULT_JOB_RETENTION_SECONDS = 24 * 60 * 60

_ALLOWED_TRANSITIONS = {
    JOB_STATUS_PENDING: frozenset(
        {JOB_STATUS_PENDING, JOB_STATUS_PROCESSING, JOB_STATUS_FAILED}
    ),
    JOB_STATUS_PROCESSING: frozenset(
        {JOB_STATUS_PROCESSING, JOB_STATUS_COMPLETED, JOB_STATUS_FAILED}
    ),
    JOB_STATUS_COMPLETED: frozenset(),
    JOB_STATUS_FAILED: frozenset(),
}
_UPDATABLE_FIELDS = frozenset({"status", "progress", "result_location", "error"})


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class JobBackend(Protocol):
    """Keyed storage for job records; callers serialize access."""

    def get(self, job_id: str) -> Job | None:
        """Return one job by id."""

    def put(self, job: Job) -> None:
        """Insert or replace one job."""

    def remove(self, job_id: str) -> bool:
        """Remove one job and report whether it existed."""

    def values(self) -> Iterable[Job]:
        """Iterate over all stored jobs."""


class InMemoryJobBackend:
    """Process-local job storage."""

    def __init__(self) -> None:
        self._jobs: dict[str, Job] = {}

    def get(self, job_id: str) -> Job | None:
        return self._jobs.get(job_id)

    def put(self, job: Job) -> None:
        self._jobs[job.id] = job

    def remove(self, job_id: str) -> bool:
        return self._jobs.pop(job_id, None) is not None

    def values(self) -> Iterable[Job]:
        return list(self._jobs.values())


class JobStore:
    """Thread-safe job registry."""

    def __init__(
        self,
        backend: JobBackend | None = None,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        """Initialize the store with an optional backend and clock."""

        self._backend = backend if backend is not None else InMemoryJobBackend()
        self._clock = clock
        self._lock = threading.Lock()

    def create(self, session_id: str, content_id: str, language: str) -> Job:
        """Create a `pending` job keyed by session, content, language, and creation time."""

        with self._lock:
            created_at = self._clock()
            millis = int(created_at.timestamp() * 1000)
            job_id = f"{session_id}-{content_id}-{language}-{millis}"
            while self._backend.get(job_id) is not None:
                millis += 1
                job_id = f"{session_id}-{content_id}-{language}-{millis}"
            job = Job(
                id=job_id,
                session_id=session_id,
                content_id=content_id,
                language=language,
                status=JOB_STATUS_PENDING,
                created_at=created_at,
                updated_at=created_at,
            )
            self._backend.put(job)
        logger.debug("[Jobs] Created job {}", job_id)
        return job

    def update(self, job_id: str, **fields: object) -> Job | None:
        """Merge fields into a job and bump `updated_at`.

        Returns `None` when the job is unknown (e.g. already reaped).

        Raises:
            JobTransitionError: If the update would break the job lifecycle.
        """

        unknown = set(fields) - _UPDATABLE_FIELDS
        if unknown:
            raise JobTransitionError(
                f"Unsupported job fields: {', '.join(sorted(unknown))}."
            )

        with self._lock:
            current = self._backend.get(job_id)
            if current is None:
                return None

            updated = replace(current, **fields)
            self._validate_transition(current, updated)

            now = self._clock()
            if now <= current.updated_at:
                now = current.updated_at + timedelta(microseconds=1)
            updated = replace(updated, updated_at=now)
            self._backend.put(updated)
            return updated

    def get(self, job_id: str) -> Job | None:
        """Return one job by id."""

        with self._lock:
            return self._backend.get(job_id)

    def list_by_session(self, session_id: str) -> list[Job]:
        """Return a session's jobs, newest first."""

        with self._lock:
            jobs = [job for job in self._backend.values() if job.session_id == session_id]
        return sorted(jobs, key=lambda job: (job.created_at, job.id), reverse=True)

    def delete(self, job_id: str) -> bool:
        """Delete one job and report whether it existed."""

        with self._lock:
            return self._backend.remove(job_id)

    def sweep_expired(
        self, max_age_seconds: float = DEFAULT_JOB_RETENTION_SECONDS
    ) -> int:
        """Delete jobs created more than `max_age_seconds` ago; return the count."""

        with self._lock:
            cutoff = self._clock() - timedelta(seconds=max_age_seconds)
            expired = [job.id for job in self._backend.values() if job.created_at < cutoff]
            for job_id in expired:
                self._backend.remove(job_id)
        if expired:
            logger.info("[Jobs] Swept {} expired jobs", len(expired))
        return len(expired)

    @staticmethod
    def _validate_transition(current: Job, updated: Job) -> None:
        """Reject updates that violate status ordering or result invariants."""

        if updated.status not in JOB_STATUSES:
            raise JobTransitionError(f"Unknown job status `{updated.status}`.")
        if current.is_terminal:
            raise JobTransitionError(
                f"Job `{current.id}` is already `{current.status}` and cannot change."
            )
        if updated.status not in _ALLOWED_TRANSITIONS[current.status]:
            raise JobTransitionError(
                f"Job `{current.id}` cannot move from `{current.status}` to `{updated.status}`."
            )
        has_location = updated.result_location is not None
        if has_location != (updated.status == JOB_STATUS_COMPLETED):
            raise JobTransitionError(
                "A job result location must be set exactly when the job is `completed`."
            )
