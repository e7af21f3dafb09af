"""Runtime wiring for the generation pipeline.

Responsibilities:
- Validate configuration and map failures to stage-aware errors.
- Build storage, provider, job, and dispatch collaborators from one config.
"""

from __future__ import annotations

from collections.abc import Callable

from ..config import PodcastifyConfig
from ..errors import PipelineStageError
from ..jobs.store import JobStore
from ..provider_factory import ProviderFactory
from ..storage.local import LocalAudioCache
from ..storage.remote import RemoteObjectStore
from ..storage.tier import StorageTier
from ..telemetry.logger import RunLogger
from ..tts.synthesizer import TTSSynthesizer
from .dispatch import Dispatcher, JobDispatcher
from .orchestrator import AudioPipeline


def validate_config(config: PodcastifyConfig) -> None:
    """Validate top-level configuration and map failures to a stage-aware error."""

    try:
        config.validate()
    except ValueError as exc:
        raise PipelineStageError(
            stage="config",
            detail=str(exc),
            hint="Fix the config file or PODCASTIFY_* environment values and rerun.",
        ) from exc


def build_storage(config: PodcastifyConfig) -> StorageTier:
    """Create the local cache and, when a bucket is configured, the remote store."""

    remote = None
    if config.remote_enabled:
        remote = RemoteObjectStore(
            config.remote_bucket,
            prefix=config.remote_prefix,
            public_url=config.remote_public_url,
            endpoint_url=config.remote_endpoint_url,
            region_name=config.remote_region,
            access_key_id=config.remote_access_key_id,
            secret_access_key=config.remote_secret_access_key,
        )
    return StorageTier(
        LocalAudioCache(config.audio_dir),
        remote=remote,
        http_timeout_seconds=config.request_timeout_seconds,
    )


def build_pipeline(
    config: PodcastifyConfig,
    *,
    api_key: str | None = None,
    run_logger: RunLogger | None = None,
    dispatcher: Dispatcher | None = None,
    synthesizer: TTSSynthesizer | None = None,
    storage: StorageTier | None = None,
    jobs: JobStore | None = None,
    stage_progress_callback: Callable[[str, str, int, int], None] | None = None,
) -> AudioPipeline:
    """Create a fully wired `AudioPipeline` for a validated config.

    `api_key` overrides the config's resolved key; injected collaborators
    replace the ones that would otherwise be built from the config.
    """

    validate_config(config)
    if synthesizer is None:
        synthesizer = ProviderFactory.create_tts_synthesizer(
            config.provider_tts,
            config.model_tts,
            api_key=api_key if api_key is not None else config.resolved_api_key(),
            voice=config.tts_voice,
            timeout_seconds=config.request_timeout_seconds,
            max_retries=config.max_retries,
            retry_backoff_base_seconds=config.retry_backoff_base_seconds,
        )
    return AudioPipeline(
        synthesizer=synthesizer,
        storage=storage if storage is not None else build_storage(config),
        jobs=jobs,
        dispatcher=dispatcher if dispatcher is not None else JobDispatcher(config.max_workers),
        archive_retention_seconds=config.archive_retention_seconds,
        chunk_size_chars=config.chunk_size_chars,
        run_logger=run_logger,
        stage_progress_callback=stage_progress_callback,
    )
