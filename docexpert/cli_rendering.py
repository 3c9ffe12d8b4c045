"""CLI output and error rendering helpers.

This module centralizes user-facing CLI presentation for command diagnostics,
batch progress lines, batch failures, and run summaries.
"""

from __future__ import annotations

from pathlib import Path
from typing import NoReturn

import typer

from .config import ProviderRuntimeConfig
from .errors import PipelineStageError
from .models.datatypes import ExtractionResult, ProgressEvent
from .settings import Settings


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


def echo_progress(command_name: str, event: ProgressEvent) -> None:
    """Print one deterministic progress line for a batch about to be sent."""

    typer.echo(
        f"[progress] command={command_name} batch={event.batch_number}/{event.total_batches} "
        f"pages={event.page_range.label} of {event.total_pages}"
    )


def echo_runtime(runtime: ProviderRuntimeConfig) -> None:
    """Print non-secret provider runtime values."""

    metadata = runtime.as_metadata()
    typer.echo(
        f"Provider: {metadata['provider']} | Model: {metadata['model']} | "
        f"Pages per request: {metadata['chunk_size']}"
    )


def echo_run_summary(result: ExtractionResult, output_path: Path) -> None:
    """Print the output location and extracted character count of a completed run."""

    source = " (from cache)" if result.from_cache else ""
    typer.echo(f"Extracted characters: {len(result.text)}{source}")
    typer.echo(f"Output: {output_path}")


def echo_batch_failure(
    result: ExtractionResult,
    state_path: Path,
    partial_path: Path | None,
) -> None:
    """Print which batch failed, why, and how to resume."""

    failure = result.failure
    if failure is None:
        return
    typer.secho(
        f"Batch {failure.batch_number} failed: {failure.message}",
        fg=typer.colors.RED,
        err=True,
    )
    if failure.error_type == "RateLimitError":
        typer.secho(
            "Hint: check the API key or plan limits (`docexpert credentials`, "
            "`docexpert settings`), then resume.",
            fg=typer.colors.YELLOW,
            err=True,
        )
    if partial_path is not None:
        typer.echo(f"Partial output: {partial_path}")
    typer.echo(f"Resume state: {state_path}")
    typer.echo(f"Resume with: docexpert resume {state_path}")


def echo_settings(settings: Settings, path: Path) -> None:
    """Print stored settings in deterministic order."""

    typer.echo(f"Settings file: {path}")
    typer.echo(f"Provider: {settings.provider}")
    typer.echo(f"Model: {settings.model}")
    typer.echo(f"PDF chunk size: {settings.pdf_chunk_size}")
    for provider_id in sorted(settings.models):
        typer.echo(f"  {provider_id}: {settings.models[provider_id]}")
