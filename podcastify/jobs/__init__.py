"""Job tracking: registry, background sweep, and client polling."""

from .poller import HttpJobStatusSource, JobPoller
from .store import InMemoryJobBackend, JobBackend, JobStore
from .sweeper import JobSweeper

__all__ = [
    "HttpJobStatusSource",
    "InMemoryJobBackend",
    "JobBackend",
    "JobPoller",
    "JobStore",
    "JobSweeper",
]
