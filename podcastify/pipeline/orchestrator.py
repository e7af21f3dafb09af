"""Pipeline orchestration for Podcastify.

Responsibilities:
- Answer `generate` submissions with a cached artifact or a background job.
- Run the `chunk -> tts -> assemble -> store` step sequence for one job.
- Record every step transition (and any failure) on the job record.
- Expose job status queries plus merge and archive export.

Key types:
- `AudioPipeline`: orchestration facade.
"""

from __future__ import annotations

from collections.abc import Callable

from loguru import logger

from ..audio.archive import ArchiveExporter
from ..audio.assembly import AudioAssembler
from ..audio.merger import ArtifactMerger
from ..errors import JobTransitionError, PipelineStageError
from ..models.datatypes import (
    JOB_STATUS_COMPLETED,
    JOB_STATUS_FAILED,
    JOB_STATUS_PROCESSING,
    GenerationRequested,
    GenerationResult,
    Job,
    StoredAudioInfo,
    SynthesizedAudio,
)
from ..jobs.store import JobStore
from ..storage.tier import StorageTier
from ..telemetry.logger import RunLogger
from ..text.chunking import TextChunker
from ..tts.gemini_client import GeminiProviderError
from ..tts.synthesizer import TTSSynthesizer
from .dispatch import Dispatcher, InlineDispatcher
from .telemetry import PipelineTelemetryMixin

DEFAULT_CHUNK_SIZE_CHARS = 5000

# Share of job progress spent synthesizing; assembly and storage fill the rest.
_SYNTHESIS_PROGRESS_SHARE = 90


class AudioPipeline(PipelineTelemetryMixin):
    """Coordinate cache lookup, background generation, and job bookkeeping."""

    def __init__(
        self,
        *,
        synthesizer: TTSSynthesizer,
        storage: StorageTier,
        jobs: JobStore | None = None,
        dispatcher: Dispatcher | None = None,
        chunker: TextChunker | None = None,
        assembler: AudioAssembler | None = None,
        archive_retention_seconds: float | None = None,
        chunk_size_chars: int = DEFAULT_CHUNK_SIZE_CHARS,
        run_logger: RunLogger | None = None,
        stage_progress_callback: Callable[[str, str, int, int], None] | None = None,
    ) -> None:
        """Initialize collaborators; only the synthesizer and storage are required."""

        if chunk_size_chars <= 0:
            raise ValueError("`chunk_size_chars` must be a positive integer.")
        self.synthesizer = synthesizer
        self.storage = storage
        self.jobs = jobs if jobs is not None else JobStore()
        self.dispatcher = dispatcher if dispatcher is not None else InlineDispatcher()
        self.chunker = chunker or TextChunker()
        self.assembler = assembler or AudioAssembler()
        self.merger = ArtifactMerger(storage)
        self.archiver = ArchiveExporter(storage, retention_seconds=archive_retention_seconds)
        self.chunk_size_chars = chunk_size_chars
        self._run_logger = run_logger
        self._stage_progress_callback = stage_progress_callback

    def generate(
        self,
        content_id: str,
        language: str,
        text: str,
        session_id: str,
    ) -> GenerationResult:
        """Return a cached artifact immediately, or start a job and return its id.

        Raises:
            PipelineStageError: On bad input (`request`) or missing provider
                credentials (`config`). No job exists in either case.
        """

        self._validate_request(content_id, language, text, session_id)
        try:
            self.synthesizer.require_credentials()
        except GeminiProviderError as exc:
            raise PipelineStageError(
                stage="config",
                detail=str(exc),
                hint="Set GEMINI_API_KEY or run `podcastify credentials --set-api-key`.",
            ) from exc

        cached = self.storage.lookup(content_id, language)
        if cached is not None:
            logger.info("[Generate] Cache hit for {}-{}: {}", content_id, language, cached.location)
            return GenerationResult(
                cached=True,
                content_id=content_id,
                language=language,
                location=cached.location,
            )

        job = self.jobs.create(session_id, content_id, language)
        event = GenerationRequested(
            job_id=job.id,
            session_id=session_id,
            content_id=content_id,
            language=language,
            text=text,
        )
        try:
            self.dispatcher.dispatch(event, self.execute)
        except Exception as exc:
            message = self._failure_message(exc)
            logger.error("[Generate] Job {} could not be dispatched: {}", job.id, message)
            self._transition(job.id, status=JOB_STATUS_FAILED, error=message)
            raise

        current = self.jobs.get(job.id)
        return GenerationResult(
            cached=False,
            content_id=content_id,
            language=language,
            job_id=job.id,
            status=current.status if current is not None else job.status,
        )

    def execute(self, event: GenerationRequested) -> None:
        """Run the generation steps for one job; failures end up on the job record."""

        job_id = event.job_id
        try:
            self._transition(job_id, status=JOB_STATUS_PROCESSING, progress=0)
            chunks = self._run_stage(
                "chunk",
                lambda: self.chunker.to_chunks(event.text, self.chunk_size_chars),
                job_id=job_id,
            )
            parts = self._run_stage(
                "tts",
                lambda: self._synthesize_chunks(job_id, chunks, event.language),
                job_id=job_id,
                chunks=len(chunks),
            )
            assembled = self._run_stage(
                "assemble",
                lambda: self.assembler.assemble(parts),
                job_id=job_id,
                chunks=len(parts),
            )
            stored = self._run_stage(
                "store",
                lambda: self.storage.store(
                    event.content_id,
                    event.language,
                    assembled.data,
                    extension=assembled.extension,
                    content_type=assembled.content_type,
                ),
                job_id=job_id,
                bytes=len(assembled.data),
            )
            self._transition(
                job_id,
                status=JOB_STATUS_COMPLETED,
                progress=100,
                result_location=stored.location,
            )
            logger.info("[Generate] Job {} completed: {}", job_id, stored.location)
        except Exception as exc:
            message = self._failure_message(exc)
            logger.error("[Generate] Job {} failed: {}", job_id, message)
            try:
                self._transition(job_id, status=JOB_STATUS_FAILED, error=message)
            except JobTransitionError as transition_error:
                logger.error(
                    "[Generate] Could not record failure for job {}: {}",
                    job_id,
                    transition_error,
                )

    def get_job_status(self, job_id: str) -> Job | None:
        """Return the current job record, or `None` when unknown or reaped."""

        return self.jobs.get(job_id)

    def list_jobs(self, session_id: str) -> list[Job]:
        """Return a session's jobs, newest first."""

        return self.jobs.list_by_session(session_id)

    def lookup(self, content_id: str, language: str) -> StoredAudioInfo | None:
        """Return stored artifact info for `(content_id, language)` without generating."""

        return self.storage.info(content_id, language)

    def merge_artifacts(self, locations: list[str]) -> StoredAudioInfo:
        """Merge WAV artifacts in order into one new artifact."""

        return self._run_stage("merge", lambda: self.merger.merge(locations), files=len(locations))

    def export_archive(self, locations: list[str]) -> tuple[StoredAudioInfo, int]:
        """Bundle artifacts into a stored ZIP archive."""

        return self._run_stage(
            "archive", lambda: self.archiver.export(locations), files=len(locations)
        )

    def close(self, wait: bool = True) -> None:
        """Stop the dispatcher."""

        self.dispatcher.shutdown(wait=wait)

    def _synthesize_chunks(
        self, job_id: str, chunks: list[str], language: str
    ) -> list[SynthesizedAudio]:
        """Synthesize chunks strictly in order, reporting progress after each one."""

        parts: list[SynthesizedAudio] = []
        total = len(chunks)
        for index, chunk in enumerate(chunks, start=1):
            logger.info("[TTS] Job {} chunk {}/{} ({} chars)", job_id, index, total, len(chunk))
            parts.append(self.synthesizer.synthesize(chunk, language))
            self._transition(job_id, progress=index * _SYNTHESIS_PROGRESS_SHARE // total)
        return parts

    def _transition(self, job_id: str, **fields: object) -> Job | None:
        """Apply a job update; an unknown (reaped) job is a logged no-op."""

        updated = self.jobs.update(job_id, **fields)
        if updated is None:
            logger.warning("[Generate] Job {} no longer exists; update skipped", job_id)
        return updated

    @staticmethod
    def _failure_message(exc: Exception) -> str:
        if isinstance(exc, PipelineStageError):
            return exc.detail
        return str(exc) or type(exc).__name__

    @staticmethod
    def _validate_request(content_id: str, language: str, text: str, session_id: str) -> None:
        """Reject malformed submissions before any lookup or job creation."""

        for field_name, value in (
            ("content_id", content_id),
            ("language", language),
            ("session_id", session_id),
        ):
            if not isinstance(value, str) or not value.strip():
                raise PipelineStageError(
                    stage="request",
                    detail=f"`{field_name}` must be a non-empty string.",
                )
            if "/" in value or "\\" in value or ".." in value:
                raise PipelineStageError(
                    stage="request",
                    detail=f"`{field_name}` must not contain path separators.",
                )
        if not isinstance(text, str) or not text:
            raise PipelineStageError(
                stage="request",
                detail="`text` must be a non-empty string.",
                hint="Provide the text to voice.",
            )
