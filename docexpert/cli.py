"""Command-line interface for docexpert.

Responsibilities:
- Expose user-facing commands for extraction, resume, settings, credentials, and cache.
- Convert CLI arguments into `ExtractionConfig` and stream pipeline progress.
- Persist partial text and resume state when a batch fails.

Key public functions:
- `app`: Typer application instance.
- `main`: invoke the Typer application.
"""

from __future__ import annotations

from dataclasses import replace
from pathlib import Path
from typing import Annotated, Iterator

import typer

from . import __version__
from .cache.result_cache import SqliteResultCache
from .cli_rendering import (
    echo_batch_failure,
    echo_progress,
    echo_run_summary,
    echo_runtime,
    echo_settings,
    exit_with_command_error,
)
from .cli_runtime import resolve_provider_runtime_sources
from .config import ConfigLoader, ExtractionConfig, default_cache_path
from .credentials import create_credential_store
from .errors import PipelineStageError
from .io.pdf_document import load_source_document
from .io.storage import ArtifactStore
from .models.datatypes import ExtractionResult, ExtractionState, PipelineEvent, ProgressEvent
from .parsing import normalize_optional_string
from .pipeline.output import export_filename, load_state, save_state, state_filename
from .pipeline.runtime import build_pipeline, resolve_runtime_config, validate_config
from .settings import SUPPORTED_PROVIDER_IDS, Settings, SettingsStore
from .telemetry.logger import RunLogger, configure_logging

app = typer.Typer(
    name="docexpert",
    no_args_is_help=True,
    help="Chunked, resumable PDF text extraction with AI providers.",
)


@app.callback()
def main_callback(
    log_level: Annotated[
        str,
        typer.Option("--log-level", help="Log level for stderr run logs (e.g. INFO, DEBUG)."),
    ] = "INFO",
) -> None:
    """Configure stderr logging for every command."""

    configure_logging(level=log_level.upper())


def _load_yaml_config(config_path: Path | None) -> ExtractionConfig | None:
    """Load a YAML config file when requested and map failures to stage errors."""

    if config_path is None:
        return None

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


def _load_settings() -> tuple[Settings, SettingsStore]:
    """Load user settings once per command and map failures to stage errors."""

    store = SettingsStore()
    try:
        return store.load(), store
    except ValueError as exc:
        raise PipelineStageError(
            stage="settings",
            detail=str(exc),
            hint="Fix or delete the settings file, or update it with `docexpert settings`.",
        ) from exc


def _resolve_command_base_config(
    config_file: Path | None,
    input_pdf: Path | None,
    out: Path | None,
    start: int | None,
    end: int | None,
    translate_to: str | None,
    source_language: str | None,
    timeout: float | None,
    no_cache: bool,
    password: str | None,
) -> ExtractionConfig:
    """Resolve effective command config from YAML defaults and explicit CLI overrides."""

    loaded_config = _load_yaml_config(config_file)
    if loaded_config is None:
        if input_pdf is None:
            raise PipelineStageError(
                stage="config",
                detail="Input PDF path is required when `--config` is not provided.",
                hint="Pass `<input.pdf>` or use `--config <path.yaml>` with `input_pdf`.",
            )
        loaded_config = ExtractionConfig(input_pdf=input_pdf)

    overrides: dict[str, object] = {}
    if input_pdf is not None:
        overrides["input_pdf"] = input_pdf
    if out is not None:
        overrides["output_dir"] = out
    if start is not None:
        overrides["page_start"] = start
    if end is not None:
        overrides["page_end"] = end
    if translate_to is not None:
        overrides["target_language"] = translate_to
    if source_language is not None:
        overrides["source_language"] = source_language
    if timeout is not None:
        overrides["timeout_seconds"] = timeout
    if no_cache:
        overrides["use_cache"] = False
    if password is not None:
        overrides["password"] = password
    return replace(loaded_config, **overrides)


def _drain_with_progress(
    command_name: str, events: Iterator[PipelineEvent]
) -> ExtractionResult:
    """Print progress events and return the terminal result of a run."""

    result: ExtractionResult | None = None
    for event in events:
        if isinstance(event, ProgressEvent):
            echo_progress(command_name, event)
        else:
            result = event
    if result is None:
        raise PipelineStageError(
            stage="extract",
            detail="Extraction ended without a result.",
        )
    return result


def _persist_result(
    result: ExtractionResult,
    store: ArtifactStore,
    source_name: str,
) -> None:
    """Write outputs of a finished run and exit with code 1 on batch failure."""

    translation = result.state.translation
    output_name = Path(export_filename(source_name, translation))
    state_name = Path(state_filename(source_name, translation))

    if result.succeeded:
        output_path = store.save_text(output_name, result.text)
        store.delete(state_name)
        echo_run_summary(result, output_path)
        return

    if result.text:
        partial_path: Path | None = store.save_text(output_name, result.text)
    else:
        store.delete(output_name)
        partial_path = None
    state_path = save_state(store, state_name, result.state)
    echo_batch_failure(result, state_path, partial_path)
    raise typer.Exit(code=1)


def _run_pipeline(
    command_name: str,
    config: ExtractionConfig,
    settings: Settings,
    run_logger: RunLogger,
    resume_state: ExtractionState | None = None,
) -> tuple[ExtractionResult, str]:
    """Build the pipeline for `config`, run or resume it, and return the result."""

    runtime = resolve_runtime_config(config, settings)
    echo_runtime(runtime)
    source = load_source_document(
        config.input_pdf,
        password=config.password,
        run_logger=run_logger,
    )

    result_cache = SqliteResultCache(config.resolved_cache_path()) if config.use_cache else None
    try:
        pipeline = build_pipeline(
            runtime,
            timeout_seconds=config.timeout_seconds,
            password=config.password,
            result_cache=result_cache,
            run_logger=run_logger,
        )
        if resume_state is None:
            events = pipeline.run(
                source,
                config.requested_range(source.page_count),
                runtime.chunk_size,
                config.translation,
                source_path=str(config.input_pdf.resolve()),
            )
        else:
            events = pipeline.resume(source, resume_state)
        result = _drain_with_progress(command_name, events)
    finally:
        if result_cache is not None:
            result_cache.close()
    return result, source.name


@app.command("extract")
def extract_command(
    input_pdf: Annotated[
        Path | None,
        typer.Argument(help="Path to source PDF (optional when `--config` is provided)."),
    ] = None,
    config: Annotated[
        Path | None,
        typer.Option("--config", help="Path to YAML config file."),
    ] = None,
    out: Annotated[
        Path | None,
        typer.Option("--out", help="Output directory (overrides config file value)."),
    ] = None,
    start: Annotated[int | None, typer.Option("--start", help="First page (1-based).")] = None,
    end: Annotated[int | None, typer.Option("--end", help="Last page (inclusive).")] = None,
    provider: Annotated[
        str | None,
        typer.Option("--provider", help="Provider id: google, openai, openrouter, mistral."),
    ] = None,
    model: Annotated[str | None, typer.Option("--model", help="Model id override.")] = None,
    api_key: Annotated[
        str | None,
        typer.Option("--api-key", help="Provider API key for this run."),
    ] = None,
    store_api_key: Annotated[
        bool,
        typer.Option("--store-api-key", help="Store `--api-key` in secure credential storage."),
    ] = False,
    chunk_size: Annotated[
        int | None,
        typer.Option("--chunk-size", min=1, help="Pages per AI request (overrides settings)."),
    ] = None,
    translate_to: Annotated[
        str | None,
        typer.Option("--translate-to", help="Translate extracted text into this language."),
    ] = None,
    source_language: Annotated[
        str | None,
        typer.Option("--source-language", help="Source language for translation (default auto)."),
    ] = None,
    timeout: Annotated[
        float | None,
        typer.Option("--timeout", help="Per-batch AI timeout in seconds (default 900)."),
    ] = None,
    no_cache: Annotated[
        bool,
        typer.Option("--no-cache", help="Skip the result cache for this run."),
    ] = False,
    password: Annotated[
        str | None,
        typer.Option("--password", help="Password for encrypted PDFs."),
    ] = None,
) -> None:
    """Extract text from a PDF in page batches, saving resume state on failure."""

    run_logger = RunLogger()
    try:
        base_config = _resolve_command_base_config(
            config_file=config,
            input_pdf=input_pdf,
            out=out,
            start=start,
            end=end,
            translate_to=translate_to,
            source_language=source_language,
            timeout=timeout,
            no_cache=no_cache,
            password=password,
        )
        validate_config(base_config)
        settings, _ = _load_settings()
        runtime_sources = resolve_provider_runtime_sources(
            base_config,
            settings,
            provider=provider,
            model=model,
            api_key=api_key,
            chunk_size=chunk_size,
            store_api_key=store_api_key,
            run_logger=run_logger,
        )
        run_config = replace(base_config, runtime_sources=runtime_sources)
        result, source_name = _run_pipeline("extract", run_config, settings, run_logger)
    except Exception as exc:
        exit_with_command_error("extract", exc)

    _persist_result(result, ArtifactStore(run_config.output_dir), source_name)


@app.command("resume")
def resume_command(
    state_file: Annotated[Path, typer.Argument(help="Path to a saved `.state.json` file.")],
    input_pdf: Annotated[
        Path | None,
        typer.Option("--input", help="Source PDF path (defaults to the path saved in state)."),
    ] = None,
    out: Annotated[
        Path | None,
        typer.Option("--out", help="Output directory (defaults to the state file directory)."),
    ] = None,
    provider: Annotated[str | None, typer.Option("--provider", help="Provider id.")] = None,
    model: Annotated[str | None, typer.Option("--model", help="Model id override.")] = None,
    api_key: Annotated[
        str | None,
        typer.Option("--api-key", help="Provider API key for this run."),
    ] = None,
    timeout: Annotated[
        float | None,
        typer.Option("--timeout", help="Per-batch AI timeout in seconds (default 900)."),
    ] = None,
    password: Annotated[
        str | None,
        typer.Option("--password", help="Password for encrypted PDFs."),
    ] = None,
) -> None:
    """Resume a failed extraction from its saved batch cursor and partial text."""

    run_logger = RunLogger()
    try:
        try:
            state = load_state(state_file)
        except FileNotFoundError as exc:
            raise PipelineStageError(
                stage="resume",
                detail=f"State file not found: `{state_file}`.",
                hint="Pass the `.state.json` path printed by the failed `extract` run.",
            ) from exc
        except ValueError as exc:
            raise PipelineStageError(
                stage="resume",
                detail=f"Invalid state file `{state_file}`: {exc}",
            ) from exc

        source_path = input_pdf
        if source_path is None and state.source_path is not None:
            source_path = Path(state.source_path)
        if source_path is None:
            raise PipelineStageError(
                stage="resume",
                detail="State file does not record the source PDF path.",
                hint="Pass the original PDF with `--input <file.pdf>`.",
            )

        base_config = ExtractionConfig(
            input_pdf=source_path,
            output_dir=out if out is not None else state_file.parent,
            chunk_size=state.chunk_size,
            use_cache=False,
            password=password,
        )
        if timeout is not None:
            base_config = replace(base_config, timeout_seconds=timeout)
        validate_config(base_config)
        settings, _ = _load_settings()
        runtime_sources = resolve_provider_runtime_sources(
            base_config,
            settings,
            provider=provider,
            model=model,
            api_key=api_key,
            chunk_size=state.chunk_size,
            run_logger=run_logger,
        )
        run_config = replace(base_config, runtime_sources=runtime_sources)
        result, source_name = _run_pipeline(
            "resume", run_config, settings, run_logger, resume_state=state
        )
    except Exception as exc:
        exit_with_command_error("resume", exc)

    _persist_result(result, ArtifactStore(run_config.output_dir), source_name)


@app.command("settings")
def settings_command(
    provider: Annotated[
        str | None,
        typer.Option("--provider", help="Set the default provider."),
    ] = None,
    model: Annotated[
        str | None,
        typer.Option("--model", help="Set the model for the (new) default provider."),
    ] = None,
    chunk_size: Annotated[
        int | None,
        typer.Option("--chunk-size", help="Set pages per AI request."),
    ] = None,
) -> None:
    """Show or update stored extraction settings."""

    try:
        settings, store = _load_settings()
        if provider is not None or model is not None or chunk_size is not None:
            try:
                settings = store.update(provider=provider, model=model, pdf_chunk_size=chunk_size)
            except ValueError as exc:
                raise PipelineStageError(
                    stage="settings",
                    detail=str(exc),
                    hint=f"Supported providers: {', '.join(SUPPORTED_PROVIDER_IDS)}.",
                ) from exc
            typer.echo("Settings saved.")
    except Exception as exc:
        exit_with_command_error("settings", exc)

    echo_settings(settings, store.path)


@app.command("credentials")
def credentials_command(
    provider: Annotated[
        str | None,
        typer.Option("--provider", help="Provider id (defaults to the settings provider)."),
    ] = None,
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
    """Manage securely stored provider API keys."""

    try:
        if set_api_key and clear_api_key:
            raise PipelineStageError(
                stage="credentials",
                detail="`--set-api-key` and `--clear-api-key` cannot be used together.",
                hint="Run one credentials action per command invocation.",
            )
        provider_id = normalize_optional_string(provider)
        if provider_id is None:
            provider_id = _load_settings()[0].provider
        provider_id = provider_id.lower()
        if provider_id not in SUPPORTED_PROVIDER_IDS:
            raise PipelineStageError(
                stage="credentials",
                detail=f"Unsupported provider `{provider_id}`.",
                hint=f"Supported providers: {', '.join(SUPPORTED_PROVIDER_IDS)}.",
            )

        credential_store = create_credential_store()
        if set_api_key:
            prompted_api_key = normalize_optional_string(
                typer.prompt(
                    f"{provider_id} API key (hidden input)",
                    default="",
                    hide_input=True,
                    show_default=False,
                )
            )
            if prompted_api_key is None:
                raise PipelineStageError(
                    stage="credentials",
                    detail="No API key entered.",
                    hint="Provide a non-empty API key when using `--set-api-key`.",
                )
            try:
                credential_store.set_api_key(provider_id, prompted_api_key)
            except RuntimeError as exc:
                raise PipelineStageError(
                    stage="credentials",
                    detail=f"Failed to store API key securely: {exc}",
                    hint="Install and configure a keyring backend and retry.",
                ) from exc
            typer.echo("API key stored in secure credential storage.")
            return

        if clear_api_key:
            if credential_store.clear_api_key(provider_id):
                typer.echo("Stored API key cleared from secure credential storage.")
            else:
                typer.echo("No stored API key found in secure credential storage.")
            return

        status = "present" if credential_store.get_api_key(provider_id) is not None else "not set"
    except Exception as exc:
        exit_with_command_error("credentials", exc)

    typer.echo(f"Stored {provider_id} API key: {status}")


@app.command("cache")
def cache_command(
    path: Annotated[
        Path | None,
        typer.Option("--path", help="Cache database path (defaults to DOCEXPERT_CACHE_PATH)."),
    ] = None,
    clear: Annotated[bool, typer.Option("--clear", help="Delete all cached results.")] = False,
    purge_expired: Annotated[
        bool,
        typer.Option("--purge-expired", help="Delete cached results older than 24 hours."),
    ] = False,
) -> None:
    """Inspect or prune the extraction result cache."""

    cache_path = path if path is not None else default_cache_path()
    try:
        with SqliteResultCache(cache_path) as cache:
            if clear:
                cache.clear()
                typer.echo("Cache cleared.")
            elif purge_expired:
                removed = cache.purge_expired()
                typer.echo(f"Removed {removed} expired entr{'y' if removed == 1 else 'ies'}.")
            entries = cache.count()
    except Exception as exc:
        exit_with_command_error("cache", exc)

    typer.echo(f"Cache: {cache_path}")
    typer.echo(f"Entries: {entries}")


@app.command("version")
def version_command() -> None:
    """Print the installed docexpert version."""

    typer.echo(__version__)


def main() -> None:
    """CLI entrypoint for console scripts."""
    app()


if __name__ == "__main__":
    main()

