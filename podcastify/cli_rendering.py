"""CLI output and error rendering helpers.

This module centralizes user-facing CLI presentation for command diagnostics,
job status rows, and stored artifact summaries.
"""

from __future__ import annotations

from typing import NoReturn

import typer

from .errors import PipelineStageError
from .models.datatypes import Job, StoredAudioInfo


def exit_with_command_error(command_name: str, exc: Exception) -> NoReturn:
    """Print concise diagnostics for command failures and exit with code 1."""

    if isinstance(exc, PipelineStageError):
        typer.secho(
            f"{command_name} failed at stage `{exc.stage}`: {exc.detail}",
            fg=typer.colors.RED,
            err=True,
        )
        if exc.hint:
            typer.secho(f"Hint: {exc.hint}", fg=typer.colors.YELLOW, err=True)
    else:
        typer.secho(f"{command_name} failed: {exc}", fg=typer.colors.RED, err=True)
    raise typer.Exit(code=1) from exc


def echo_job(job: Job) -> None:
    """Print one job's status fields."""

    typer.echo(f"Job id: {job.id}")
    typer.echo(f"Status: {job.status}")
    if job.progress is not None:
        typer.echo(f"Progress: {job.progress}%")
    if job.result_location:
        typer.echo(f"Location: {job.result_location}")
    if job.error:
        typer.echo(f"Error: {job.error}")


def echo_stored_audio(info: StoredAudioInfo) -> None:
    """Print artifact location and metadata."""

    typer.echo(f"Location: {info.location}")
    typer.echo(f"Cached: {'yes' if info.cached else 'no'}")
    if info.size is not None:
        typer.echo(f"Size (bytes): {info.size}")
    if info.uploaded_at is not None:
        typer.echo(f"Stored at: {info.uploaded_at.isoformat()}")
