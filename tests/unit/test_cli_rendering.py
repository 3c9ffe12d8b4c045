"""Unit tests for CLI output and error rendering helpers."""

from __future__ import annotations

from pathlib import Path

import pytest
import typer

from docexpert.cli_rendering import (
    echo_batch_failure,
    echo_progress,
    echo_run_summary,
    echo_runtime,
    echo_settings,
    exit_with_command_error,
)
from docexpert.config import ProviderRuntimeConfig
from docexpert.errors import PipelineStageError
from docexpert.models import (
    ChunkFailure,
    ExtractionResult,
    ExtractionState,
    PageRange,
    ProgressEvent,
)
from docexpert.settings import Settings


def _failure_result(error_type: str) -> ExtractionResult:
    state = ExtractionState(requested=PageRange(1, 12), chunk_size=5, accumulated_text="A")
    state.record_failure(1, "Rate limit exceeded", error_type)
    return ExtractionResult(kind="failure", text="A", state=state, failure=state.failure)


def test_exit_with_command_error_renders_stage_error_with_hint(
    capsys: pytest.CaptureFixture[str],
) -> None:
    """Renderer should print stage diagnostics and hint before exiting with code 1."""

    error = PipelineStageError(
        stage="load",
        detail="Failed to read PDF `broken.pdf`: file not found.",
        hint="Verify the input file exists.",
    )

    with pytest.raises(typer.Exit) as exc_info:
        exit_with_command_error("extract", error)

    captured = capsys.readouterr()
    assert exc_info.value.exit_code == 1
    assert "extract failed at stage `load`" in captured.err
    assert "Hint: Verify the input file exists." in captured.err


def test_exit_with_command_error_renders_non_stage_fallback(
    capsys: pytest.CaptureFixture[str],
) -> None:
    """Renderer should print fallback exception text for non-stage failures."""

    error = RuntimeError("unexpected state error")

    with pytest.raises(typer.Exit) as exc_info:
        exit_with_command_error("resume", error)

    captured = capsys.readouterr()
    assert exc_info.value.exit_code == 1
    assert "resume failed: unexpected state error" in captured.err


def test_echo_progress_renders_batch_and_pages(capsys: pytest.CaptureFixture[str]) -> None:
    """Progress lines carry batch position and page range."""

    echo_progress(
        "extract",
        ProgressEvent(batch_number=2, total_batches=3, page_range=PageRange(6, 10), total_pages=12),
    )

    assert capsys.readouterr().out.strip() == (
        "[progress] command=extract batch=2/3 pages=6-10 of 12"
    )


def test_echo_runtime_never_prints_api_key(capsys: pytest.CaptureFixture[str]) -> None:
    """Runtime summaries omit secrets."""

    echo_runtime(ProviderRuntimeConfig("google", "gemini", 5, api_key="secret-value"))

    output = capsys.readouterr().out
    assert "Provider: google | Model: gemini | Pages per request: 5" in output
    assert "secret-value" not in output


def test_echo_run_summary_marks_cached_results(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    """Summaries report text length and whether the cache served it."""

    state = ExtractionState(requested=PageRange(1, 1), chunk_size=5)
    result = ExtractionResult(kind="completed", text="hello", state=state, from_cache=True)

    echo_run_summary(result, tmp_path / "out.txt")

    output = capsys.readouterr().out
    assert "Extracted characters: 5 (from cache)" in output
    assert f"Output: {tmp_path / 'out.txt'}" in output


def test_echo_batch_failure_renders_batch_and_resume_hint(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    """Failures name the 1-based batch and print resume instructions."""

    state_path = tmp_path / "report_Extracted.state.json"
    echo_batch_failure(_failure_result("RateLimitError"), state_path, tmp_path / "partial.txt")

    captured = capsys.readouterr()
    assert "Batch 2 failed: Rate limit exceeded" in captured.err
    assert "Hint: check the API key" in captured.err
    assert f"Partial output: {tmp_path / 'partial.txt'}" in captured.out
    assert f"Resume with: docexpert resume {state_path}" in captured.out


def test_echo_batch_failure_omits_rate_limit_hint_for_other_errors(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    """Only quota failures print the credentials hint."""

    echo_batch_failure(_failure_result("ExtractionTimeoutError"), tmp_path / "s.json", None)

    captured = capsys.readouterr()
    assert "Hint:" not in captured.err
    assert "Partial output:" not in captured.out


def test_echo_settings_lists_models(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    """Settings output shows the selected provider and every model."""

    echo_settings(Settings(), tmp_path / "settings.json")

    output = capsys.readouterr().out
    assert "Provider: google" in output
    assert "Model: gemini-3-flash-preview" in output
    assert "PDF chunk size: 5" in output
    assert "  mistral: mistral-ocr-latest" in output
