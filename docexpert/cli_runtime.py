"""CLI provider runtime resolution helpers.

This module isolates runtime source assembly and secure API-key lookup and
persistence from the command wiring layer.
"""

from __future__ import annotations

import os
from typing import Callable

import typer

from .config import ExtractionConfig, RuntimeConfigSources
from .credentials import CredentialStore, create_credential_store
from .errors import PipelineStageError
from .parsing import normalize_optional_string
from .settings import Settings
from .telemetry.logger import RunLogger


def _set_runtime_cli_value(
    runtime_cli_values: dict[str, str],
    key: str,
    value: object,
) -> None:
    """Set a normalized runtime CLI value when user input is present."""

    normalized = normalize_optional_string(value)
    if normalized is not None:
        runtime_cli_values[key] = normalized


def resolve_provider_runtime_sources(
    config: ExtractionConfig,
    settings: Settings,
    *,
    provider: str | None,
    model: str | None,
    api_key: str | None,
    chunk_size: int | None,
    store_api_key: bool = False,
    credential_store_factory: Callable[[], CredentialStore] = create_credential_store,
    run_logger: RunLogger | None = None,
) -> RuntimeConfigSources:
    """Resolve CLI, secure, and env source mappings for one command invocation."""

    runtime_cli_values: dict[str, str] = {}
    _set_runtime_cli_value(runtime_cli_values, "provider", provider)
    _set_runtime_cli_value(runtime_cli_values, "model", model)
    _set_runtime_cli_value(runtime_cli_values, "api_key", api_key)
    _set_runtime_cli_value(runtime_cli_values, "chunk_size", chunk_size)

    env_source = config.runtime_sources.env or os.environ
    try:
        provider_id = config.resolved_provider_runtime(
            RuntimeConfigSources(cli=runtime_cli_values, env=env_source), settings
        ).provider
    except ValueError as exc:
        raise PipelineStageError(
            stage="config",
            detail=str(exc),
            hint="Pass `--provider` with one of: google, openai, openrouter, mistral.",
        ) from exc

    credential_store = credential_store_factory()
    runtime_secure_values: dict[str, str] = {}
    if "api_key" not in runtime_cli_values:
        try:
            stored_api_key = credential_store.get_api_key(provider_id)
        except RuntimeError as exc:
            stored_api_key = None
            if run_logger is not None:
                run_logger.log_event(
                    "WARNING",
                    "unavailable",
                    "credentials",
                    error_type=type(exc).__name__,
                )
        if stored_api_key is not None:
            runtime_secure_values[f"{provider_id}_api_key"] = stored_api_key
    elif store_api_key:
        try:
            credential_store.set_api_key(provider_id, runtime_cli_values["api_key"])
        except (RuntimeError, ValueError) as exc:
            raise PipelineStageError(
                stage="credentials",
                detail=f"Failed to store API key securely: {exc}",
                hint="Configure a keyring backend, or rerun without `--store-api-key`.",
            ) from exc
        typer.echo("Stored API key in secure credential storage.")

    return RuntimeConfigSources(
        cli=runtime_cli_values,
        secure=runtime_secure_values,
        env=env_source,
    )
