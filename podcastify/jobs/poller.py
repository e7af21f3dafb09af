"""Client-side job polling contract.

Responsibilities:
- Poll a job status source at a fixed interval until a terminal state.
- Give up after a bounded number of attempts without cancelling the job.
- Provide an HTTP status source for polling a remote Podcastify server.
"""

from __future__ import annotations

import time
from typing import Callable

import requests

from ..errors import JobNotFoundError, PollTimeoutError
from ..models.datatypes import Job

StatusSource = Callable[[str], "Job | None"]


class JobPoller:
    """Bounded fixed-interval polling loop over a job status source."""

    def __init__(
        self,
        fetch_status: StatusSource,
        *,
        interval_seconds: float = 2.0,
        max_attempts: int = 60,
        sleeper: Callable[[float], None] = time.sleep,
        on_update: Callable[[Job], None] | None = None,
    ) -> None:
        """Initialize the poller.

        Args:
            fetch_status: Callable returning the current job, or `None` if unknown.
            interval_seconds: Delay between consecutive polls.
            max_attempts: Maximum number of status fetches before giving up.
            sleeper: Sleep function, injectable for tests.
            on_update: Optional callback receiving every observed job snapshot.
        """

        if max_attempts <= 0:
            raise ValueError("`max_attempts` must be a positive integer.")
        self._fetch_status = fetch_status
        self.interval_seconds = interval_seconds
        self.max_attempts = max_attempts
        self._sleeper = sleeper
        self._on_update = on_update

    def wait(self, job_id: str) -> Job:
        """Poll until the job is `completed` or `failed` and return it.

        Raises:
            JobNotFoundError: If the source does not know the job.
            PollTimeoutError: If attempts run out first. The job itself keeps running.
        """

        last_status: str | None = None
        for attempt in range(1, self.max_attempts + 1):
            job = self._fetch_status(job_id)
            if job is None:
                raise JobNotFoundError(f"Job `{job_id}` was not found.")
            last_status = job.status
            if self._on_update is not None:
                self._on_update(job)
            if job.is_terminal:
                return job
            if attempt < self.max_attempts:
                self._sleeper(self.interval_seconds)
        raise PollTimeoutError(job_id, self.max_attempts, last_status)


class HttpJobStatusSource:
    """Fetch job status from a Podcastify server's `/api/jobs` endpoint."""

    def __init__(self, base_url: str, timeout_seconds: float = 10.0) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds

    def __call__(self, job_id: str) -> Job | None:
        response = requests.get(
            f"{self.base_url}/api/jobs",
            params={"jobId": job_id},
            timeout=self.timeout_seconds,
        )
        if response.status_code == 404:
            return None
        response.raise_for_status()
        return Job.from_payload(response.json()["job"])
