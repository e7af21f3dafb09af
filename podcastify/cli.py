"""Command-line interface for Podcastify.

Responsibilities:
- Expose user-facing commands for generation, status, merge, and export.
- Resolve configuration and the provider API key from CLI, keyring, and env.
- Run the HTTP server.

Key public functions:
- `app`: Typer application instance.
- `main`: invoke the Typer application.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Annotated

import typer
import uvicorn

from .api import create_app
from .cli_rendering import echo_job, echo_stored_audio, exit_with_command_error
from .config import ConfigLoader, PodcastifyConfig, RuntimeConfigSources
from .credentials import create_credential_store
from .errors import JobNotFoundError, PipelineStageError, PollTimeoutError
from .jobs.poller import HttpJobStatusSource, JobPoller
from .jobs.store import JobStore
from .jobs.sweeper import JobSweeper
from .models.datatypes import JOB_STATUS_COMPLETED, Job
from .parsing import normalize_optional_string
from .pipeline.dispatch import InlineDispatcher
from .pipeline.orchestrator import AudioPipeline
from .pipeline.runtime import build_pipeline
from .telemetry.logger import RunLogger

app = typer.Typer(
    name="podcastify",
    no_args_is_help=True,
    help="Podcastify CLI.",
)

ConfigOption = Annotated[
    Path | None,
    typer.Option("--config", help="Path to YAML config file. Defaults to PODCASTIFY_* env."),
]
ApiKeyOption = Annotated[
    str | None,
    typer.Option(
        "--api-key",
        help="Gemini API key override. Prefer `--prompt-api-key` to avoid shell history.",
    ),
]
PromptApiKeyOption = Annotated[
    bool,
    typer.Option("--prompt-api-key", help="Prompt for API key with hidden input."),
]


class GenerationProgressIndicator:
    """Render deterministic progress lines for a polled generation job."""

    _SPINNER_FRAMES = "|/-\\"

    def __init__(self, command_name: str) -> None:
        self._command_name = command_name
        self._frame = 0
        self._last: tuple[str, int | None] | None = None

    def on_stage_start(self, job_id: str, stage_name: str, index: int, total: int) -> None:
        """Print one progress line for a pipeline stage start."""

        typer.echo(
            f"[progress] command={self._command_name} job={job_id} "
            f"{index}/{total} stage={stage_name}"
        )

    def on_job_update(self, job: Job) -> None:
        """Print a poll line whenever the observed status or progress changes."""

        snapshot = (job.status, job.progress)
        if snapshot == self._last:
            return
        self._last = snapshot
        spinner = self._SPINNER_FRAMES[self._frame % len(self._SPINNER_FRAMES)]
        self._frame += 1
        progress = f"{job.progress}%" if job.progress is not None else "-"
        typer.echo(
            f"[poll] command={self._command_name} {spinner} status={job.status} progress={progress}"
        )


def _load_config(config_path: Path | None) -> PodcastifyConfig:
    """Load YAML or environment config and map failures to stage errors."""

    if config_path is None:
        try:
            return ConfigLoader.from_env()
        except ValueError as exc:
            raise PipelineStageError(
                stage="config",
                detail=f"Invalid environment configuration: {exc}",
                hint="Fix the PODCASTIFY_* environment values and rerun.",
            ) from exc

    try:
        return ConfigLoader.from_yaml(config_path)
    except FileNotFoundError as exc:
        raise PipelineStageError(
            stage="config",
            detail=f"Config file not found: `{config_path}`.",
            hint="Provide an existing path via `--config <path.yaml>`.",
        ) from exc
    except ValueError as exc:
        raise PipelineStageError(
            stage="config",
            detail=f"Invalid config file `{config_path}`: {exc}",
            hint="Fix config schema/values and rerun.",
        ) from exc
    except OSError as exc:
        raise PipelineStageError(
            stage="config",
            detail=f"Failed to load config file `{config_path}`: {exc}",
            hint="Verify file permissions.",
        ) from exc


def _resolve_api_key(
    config: PodcastifyConfig,
    api_key: str | None,
    prompt_api_key: bool,
) -> str | None:
    """Resolve the API key with `cli` > `secure` > `env` > config precedence."""

    cli_values: dict[str, str] = {}
    if prompt_api_key:
        prompted = normalize_optional_string(
            typer.prompt(
                "Gemini API key (hidden input)",
                default="",
                hide_input=True,
                show_default=False,
            )
        )
        if prompted is not None:
            cli_values["api_key"] = prompted
    elif normalize_optional_string(api_key) is not None:
        cli_values["api_key"] = api_key.strip()

    secure_values: dict[str, str] = {}
    stored = create_credential_store().get_api_key()
    if stored is not None:
        secure_values["api_key"] = stored

    return config.resolved_api_key(
        RuntimeConfigSources(cli=cli_values, secure=secure_values, env=os.environ)
    )


def _offline_pipeline(config_file: Path | None) -> AudioPipeline:
    """Build a pipeline for storage-only commands (no provider calls, no workers)."""

    config = _load_config(config_file)
    return build_pipeline(config, dispatcher=InlineDispatcher())


@app.command("generate")
def generate_command(
    content_id: Annotated[str, typer.Argument(help="Content identifier, e.g. a chapter id.")],
    language: Annotated[str, typer.Argument(help="Target language code.")],
    text_file: Annotated[
        Path | None,
        typer.Option("--text-file", help="Read the text to voice from this UTF-8 file."),
    ] = None,
    text: Annotated[
        str | None,
        typer.Option("--text", help="Text to voice (alternative to `--text-file`)."),
    ] = None,
    session_id: Annotated[
        str, typer.Option("--session-id", help="Session id used to group jobs.")
    ] = "cli",
    config_file: ConfigOption = None,
    api_key: ApiKeyOption = None,
    prompt_api_key: PromptApiKeyOption = False,
) -> None:
    """Generate audio for one content id and language, polling until done."""

    pipeline: AudioPipeline | None = None
    try:
        if (text is None) == (text_file is None):
            raise PipelineStageError(
                stage="request",
                detail="Provide exactly one of `--text` or `--text-file`.",
            )
        source_text = text if text is not None else text_file.read_text(encoding="utf-8")

        config = _load_config(config_file)
        resolved_key = _resolve_api_key(config, api_key, prompt_api_key)
        progress = GenerationProgressIndicator(command_name="generate")
        pipeline = build_pipeline(
            config,
            api_key=resolved_key,
            run_logger=RunLogger(),
            stage_progress_callback=progress.on_stage_start,
        )

        result = pipeline.generate(content_id, language, source_text, session_id)
        if result.cached:
            typer.echo(f"Cached audio: {result.location}")
            return

        typer.echo(f"Job id: {result.job_id}")
        poller = JobPoller(
            pipeline.get_job_status,
            interval_seconds=config.poll_interval_seconds,
            max_attempts=config.poll_max_attempts,
            on_update=progress.on_job_update,
        )
        job = poller.wait(result.job_id)
    except (PipelineStageError, JobNotFoundError, PollTimeoutError, OSError) as exc:
        exit_with_command_error("generate", exc)
    finally:
        if pipeline is not None:
            pipeline.close(wait=False)

    echo_job(job)
    if job.status != JOB_STATUS_COMPLETED:
        raise typer.Exit(code=1)


@app.command("status")
def status_command(
    job_id: Annotated[str, typer.Argument(help="Job id returned by a submission.")],
    server: Annotated[
        str, typer.Option("--server", help="Base URL of a running Podcastify server.")
    ] = "http://127.0.0.1:8000",
    wait: Annotated[
        bool, typer.Option("--wait", help="Poll until the job reaches a terminal state.")
    ] = False,
    config_file: ConfigOption = None,
) -> None:
    """Show a job's status from a running server."""

    try:
        source = HttpJobStatusSource(server)
        if wait:
            config = _load_config(config_file)
            job = JobPoller(
                source,
                interval_seconds=config.poll_interval_seconds,
                max_attempts=config.poll_max_attempts,
                on_update=GenerationProgressIndicator("status").on_job_update,
            ).wait(job_id)
        else:
            job = source(job_id)
            if job is None:
                raise JobNotFoundError(f"Job `{job_id}` was not found.")
    except Exception as exc:
        exit_with_command_error("status", exc)

    echo_job(job)


@app.command("lookup")
def lookup_command(
    content_id: Annotated[str, typer.Argument(help="Content identifier.")],
    language: Annotated[str, typer.Argument(help="Language code.")],
    config_file: ConfigOption = None,
) -> None:
    """Show the stored artifact for a content id and language, if any."""

    try:
        info = _offline_pipeline(config_file).lookup(content_id, language)
    except PipelineStageError as exc:
        exit_with_command_error("lookup", exc)

    if info is None:
        typer.echo(f"No stored audio for `{content_id}` in `{language}`.")
        raise typer.Exit(code=1)
    echo_stored_audio(info)


@app.command("merge")
def merge_command(
    locations: Annotated[list[str], typer.Argument(help="WAV artifact locations, in order.")],
    config_file: ConfigOption = None,
) -> None:
    """Merge WAV artifacts into one new artifact."""

    try:
        stored = _offline_pipeline(config_file).merge_artifacts(locations)
    except PipelineStageError as exc:
        exit_with_command_error("merge", exc)

    echo_stored_audio(stored)


@app.command("archive")
def archive_command(
    locations: Annotated[list[str], typer.Argument(help="Artifact locations to bundle.")],
    config_file: ConfigOption = None,
) -> None:
    """Bundle artifacts into one stored ZIP archive."""

    try:
        stored, size = _offline_pipeline(config_file).export_archive(locations)
    except PipelineStageError as exc:
        exit_with_command_error("archive", exc)

    typer.echo(f"Archive: {stored.location}")
    typer.echo(f"Files: {len(locations)}")
    typer.echo(f"Size (bytes): {size}")


@app.command("serve")
def serve_command(
    host: Annotated[str, typer.Option("--host", help="Bind address.")] = "127.0.0.1",
    port: Annotated[int, typer.Option("--port", help="Bind port.")] = 8000,
    config_file: ConfigOption = None,
    api_key: ApiKeyOption = None,
    prompt_api_key: PromptApiKeyOption = False,
) -> None:
    """Run the HTTP API server."""

    try:
        config = _load_config(config_file)
        resolved_key = _resolve_api_key(config, api_key, prompt_api_key)
        jobs = JobStore()
        pipeline = build_pipeline(
            config, api_key=resolved_key, run_logger=RunLogger(), jobs=jobs
        )
    except PipelineStageError as exc:
        exit_with_command_error("serve", exc)

    sweeper = None
    if config.sweeper_enabled:
        sweeper = JobSweeper(
            jobs,
            retention_seconds=config.job_retention_seconds,
            interval_seconds=config.job_sweep_interval_seconds,
        )
    uvicorn.run(create_app(pipeline, sweeper=sweeper), host=host, port=port)


@app.command("credentials")
def credentials_command(
    set_api_key: Annotated[
        bool,
        typer.Option(
            "--set-api-key",
            help="Prompt for API key with hidden input and store it securely.",
        ),
    ] = False,
    clear_api_key: Annotated[
        bool,
        typer.Option(
            "--clear-api-key",
            help="Clear stored API key from secure credential storage.",
        ),
    ] = False,
) -> None:
    """Manage the securely stored Gemini API key."""

    if set_api_key and clear_api_key:
        exit_with_command_error(
            "credentials",
            PipelineStageError(
                stage="credentials",
                detail="`--set-api-key` and `--clear-api-key` cannot be used together.",
                hint="Run one credentials action per command invocation.",
            ),
        )

    credential_store = create_credential_store()
    if set_api_key:
        prompted_api_key = normalize_optional_string(
            typer.prompt(
                "Gemini API key (hidden input)",
                default="",
                hide_input=True,
                show_default=False,
            )
        )
        if prompted_api_key is None:
            exit_with_command_error(
                "credentials",
                PipelineStageError(
                    stage="credentials",
                    detail="No API key entered.",
                    hint="Provide a non-empty API key when using `--set-api-key`.",
                ),
            )
        try:
            credential_store.set_api_key(prompted_api_key)
        except (RuntimeError, ValueError) as exc:
            exit_with_command_error(
                "credentials",
                PipelineStageError(
                    stage="credentials",
                    detail=f"Failed to store API key securely: {exc}",
                    hint="Install and configure a keyring backend and retry.",
                ),
            )
        typer.echo("API key stored in secure credential storage.")
        return

    if clear_api_key:
        removed = credential_store.clear_api_key()
        if removed:
            typer.echo("Stored API key cleared from secure credential storage.")
        else:
            typer.echo("No stored API key found in secure credential storage.")
        return

    status = "present" if credential_store.get_api_key() is not None else "not set"
    typer.echo(f"Stored Gemini API key: {status}")


def main() -> None:
    """CLI entrypoint for console scripts."""
    app()


if __name__ == "__main__":
    main()
