"""Domain exceptions for pipeline, storage, and CLI diagnostics."""

from __future__ import annotations


class PipelineStageError(RuntimeError):
    """Raised when a specific pipeline stage fails."""

    def __init__(
        self,
        *,
        stage: str,
        detail: str,
        hint: str | None = None,
    ) -> None:
        """Initialize a stage-scoped pipeline error."""

        super().__init__(detail)
        self.stage = stage
        self.detail = detail
        self.hint = hint


class StorageError(PipelineStageError):
    """Raised when an artifact cannot be persisted or read back."""

    def __init__(self, detail: str, *, hint: str | None = None) -> None:
        """Initialize a store-stage error."""

        super().__init__(stage="store", detail=detail, hint=hint)


class JobTransitionError(ValueError):
    """Raised when a job update would violate lifecycle invariants."""


class JobNotFoundError(LookupError):
    """Raised when a polled job id is unknown (never created or already reaped)."""


class PollTimeoutError(TimeoutError):
    """Raised when a client gives up polling before a job reaches a terminal state.

    The server-side job keeps running; a later poll or cache hit may observe it.
    """

    def __init__(self, job_id: str, attempts: int, last_status: str | None) -> None:
        """Initialize timeout metadata for diagnostics."""

        super().__init__(
            f"Job `{job_id}` still `{last_status or 'unknown'}` after {attempts} polls."
        )
        self.job_id = job_id
        self.attempts = attempts
        self.last_status = last_status
