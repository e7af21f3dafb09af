"""Core datatypes shared across Podcastify modules.

Responsibilities:
- Represent immutable records exchanged between pipeline stages.
- Provide explicit typing for job state, audio formats, and storage results.

Key types:
- `Job`, `RawPcm`, `EncodedAudio`, `SynthesizedAudio`, `AssembledAudio`,
  `StoredAudioInfo`, `GenerationRequested`, and `GenerationResult`.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Union

JOB_STATUS_PENDING = "pending"
JOB_STATUS_PROCESSING = "processing"
JOB_STATUS_COMPLETED = "completed"
JOB_STATUS_FAILED = "failed"

JOB_STATUSES = (
    JOB_STATUS_PENDING,
    JOB_STATUS_PROCESSING,
    JOB_STATUS_COMPLETED,
    JOB_STATUS_FAILED,
)
TERMINAL_JOB_STATUSES = frozenset({JOB_STATUS_COMPLETED, JOB_STATUS_FAILED})


@dataclass(frozen=True, slots=True)
class Job:
    """One tracked (content-id, language) audio-generation request.

    Attributes:
        id: Opaque unique job identifier.
        session_id: Originating client session.
        content_id: Identifier of the text content being voiced.
        language: Target language code.
        status: One of `pending`, `processing`, `completed`, `failed`.
        created_at: Creation timestamp (UTC).
        updated_at: Last transition timestamp (UTC), strictly increasing.
        progress: Optional 0-100 progress indicator.
        result_location: Artifact location, set only when `completed`.
        error: Human-readable failure message, set when `failed`.
    """

    id: str
    session_id: str
    content_id: str
    language: str
    status: str
    created_at: datetime
    updated_at: datetime
    progress: int | None = None
    result_location: str | None = None
    error: str | None = None

    @property
    def is_terminal(self) -> bool:
        """Return whether the job reached `completed` or `failed`."""

        return self.status in TERMINAL_JOB_STATUSES

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> Job:
        """Rebuild a job from an `as_payload` mapping (e.g. an HTTP status body)."""

        return cls(
            id=str(payload["id"]),
            session_id=str(payload["sessionId"]),
            content_id=str(payload["contentId"]),
            language=str(payload["language"]),
            status=str(payload["status"]),
            created_at=datetime.fromisoformat(payload["createdAt"]),
            updated_at=datetime.fromisoformat(payload["updatedAt"]),
            progress=payload.get("progress"),
            result_location=payload.get("location"),
            error=payload.get("error"),
        )

    def as_payload(self) -> dict[str, object]:
        """Serialize the job into a JSON-friendly status payload."""

        return {
            "id": self.id,
            "sessionId": self.session_id,
            "contentId": self.content_id,
            "language": self.language,
            "status": self.status,
            "progress": self.progress,
            "location": self.result_location,
            "error": self.error,
            "createdAt": self.created_at.isoformat(),
            "updatedAt": self.updated_at.isoformat(),
        }


@dataclass(frozen=True, slots=True)
class RawPcm:
    """Raw little-endian linear PCM samples that still need a container."""

    sample_rate: int = 24000
    channels: int = 1
    bits_per_sample: int = 16


@dataclass(frozen=True, slots=True)
class EncodedAudio:
    """Audio already wrapped in a playable container/codec."""

    mime_type: str
    extension: str


SampleFormat = Union[RawPcm, EncodedAudio]


@dataclass(frozen=True, slots=True)
class SynthesizedAudio:
    """Audio payload returned for one synthesized text chunk."""

    data: bytes
    sample_format: SampleFormat


@dataclass(frozen=True, slots=True)
class AssembledAudio:
    """Playable audio assembled from all chunks of one request."""

    data: bytes
    extension: str
    content_type: str


@dataclass(frozen=True, slots=True)
class StoredAudioInfo:
    """Result of a storage lookup or write.

    Attributes:
        location: Local URL path (`/audio/<name>`), remote public URL, or object key.
        content_id: Content identifier (or synthetic id for merges/archives).
        language: Language code (or synthetic kind such as `zip`).
        cached: Whether the artifact already existed before this call.
        size: Optional artifact size in bytes.
        uploaded_at: Optional artifact timestamp.
    """

    location: str
    content_id: str
    language: str
    cached: bool
    size: int | None = None
    uploaded_at: datetime | None = None


@dataclass(frozen=True, slots=True)
class GenerationRequested:
    """Point-to-point event that triggers background generation for one job."""

    job_id: str
    session_id: str
    content_id: str
    language: str
    text: str


@dataclass(frozen=True, slots=True)
class GenerationResult:
    """Immediate answer to a `generate` submission.

    Exactly one of `location` (cache hit) or `job_id` (background job) is set.
    """

    cached: bool
    content_id: str
    language: str
    location: str | None = None
    job_id: str | None = None
    status: str | None = None
