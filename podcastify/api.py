"""HTTP surface for Podcastify.

Responsibilities:
- Accept generation submissions and answer with a cached artifact or job id.
- Serve job status for one job or a whole session to polling clients.
- Expose merge and archive export over JSON.
- Serve locally cached artifacts under `/audio`.

Key public functions:
- `create_app`: build the FastAPI application around an `AudioPipeline`.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any

from fastapi import APIRouter, FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, StrictStr

from .errors import PipelineStageError, StorageError
from .jobs.sweeper import JobSweeper
from .pipeline.orchestrator import AudioPipeline

_STATUS_BY_STAGE = {
    "request": 400,
    "merge": 400,
    "archive": 400,
    "config": 500,
    "store": 500,
}


class TtsAsyncRequest(BaseModel):
    """Generation submission for one (content id, language) pair."""

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    text: StrictStr
    language: StrictStr
    content_id: StrictStr = Field(alias="contentId")
    session_id: StrictStr = Field(alias="sessionId")


class AudioFilesRequest(BaseModel):
    """Ordered artifact locations for merge and archive export."""

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    audio_files: list[StrictStr] = Field(alias="audioFiles")


def _error_response(status_code: int, detail: str, **extra: object) -> JSONResponse:
    body: dict[str, object] = {"error": detail}
    body.update({key: value for key, value in extra.items() if value is not None})
    return JSONResponse(status_code=status_code, content=body)


async def _stage_error_handler(request: Request, exc: PipelineStageError) -> JSONResponse:
    status_code = _STATUS_BY_STAGE.get(exc.stage, 500)
    if isinstance(exc, StorageError) and exc.detail.startswith("Audio file not found"):
        status_code = 404
    logger.warning(
        "[API] {} {} failed at stage {}: {}",
        request.method,
        request.url.path,
        exc.stage,
        exc.detail,
    )
    return _error_response(status_code, exc.detail, stage=exc.stage, hint=exc.hint)


async def _validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    fields = sorted({".".join(str(part) for part in error["loc"][1:]) for error in exc.errors()})
    return _error_response(400, f"Invalid request fields: {', '.join(fields) or 'body'}.")


def _build_router(pipeline: AudioPipeline) -> APIRouter:
    router = APIRouter(prefix="/api")

    @router.post("/tts-async")
    def submit_generation(payload: TtsAsyncRequest) -> dict[str, Any]:
        """Return a cached artifact immediately or start a background job."""

        result = pipeline.generate(
            payload.content_id,
            payload.language,
            payload.text,
            payload.session_id,
        )
        if result.cached:
            return {
                "audioUrl": result.location,
                "contentId": result.content_id,
                "language": result.language,
                "cached": True,
                "jobId": None,
            }
        return {
            "jobId": result.job_id,
            "contentId": result.content_id,
            "language": result.language,
            "cached": False,
            "status": result.status,
            "message": "Audio generation started in background",
        }

    @router.get("/jobs", response_model=None)
    def job_status(
        job_id: str | None = Query(default=None, alias="jobId"),
        session_id: str | None = Query(default=None, alias="sessionId"),
    ) -> dict[str, Any] | JSONResponse:
        """Return one job by id, or all jobs of a session newest first."""

        if job_id:
            job = pipeline.get_job_status(job_id)
            if job is None:
                return _error_response(404, "Job not found")
            return {"job": job.as_payload()}
        if not session_id:
            return _error_response(400, "sessionId or jobId is required")
        return {"jobs": [job.as_payload() for job in pipeline.list_jobs(session_id)]}

    @router.post("/merge-audio")
    def merge_audio(payload: AudioFilesRequest) -> dict[str, Any]:
        """Merge WAV artifacts in order into one new artifact."""

        stored = pipeline.merge_artifacts(payload.audio_files)
        return {
            "success": True,
            "fileName": stored.location.rsplit("/", 1)[-1],
            "url": stored.location,
        }

    @router.post("/zip-audio")
    def zip_audio(payload: AudioFilesRequest) -> dict[str, Any]:
        """Bundle artifacts into one stored ZIP archive."""

        stored, size = pipeline.export_archive(payload.audio_files)
        return {
            "url": stored.location,
            "filename": stored.location.rsplit("/", 1)[-1],
            "size": size,
            "fileCount": len(payload.audio_files),
        }

    return router


def create_app(pipeline: AudioPipeline, sweeper: JobSweeper | None = None) -> FastAPI:
    """Build the FastAPI application; the pipeline is closed on shutdown."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if sweeper is not None:
            sweeper.start()
        logger.info("[API] Podcastify server started")
        try:
            yield
        finally:
            if sweeper is not None:
                sweeper.stop()
            pipeline.close(wait=False)
            logger.info("[API] Podcastify server stopped")

    app = FastAPI(title="Podcastify", lifespan=lifespan)
    app.add_exception_handler(PipelineStageError, _stage_error_handler)
    app.add_exception_handler(RequestValidationError, _validation_error_handler)
    app.include_router(_build_router(pipeline))

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok"}

    local = pipeline.storage.local
    app.mount(
        local.url_prefix,
        StaticFiles(directory=str(local.root), check_dir=False),
        name="audio",
    )
    return app
