"""Runtime assembly helpers for extraction runs.

Responsibilities:
- Validate run configuration and resolve provider runtime values.
- Construct the provider extractor, client, encoder, and pipeline for one run.
"""

from __future__ import annotations

import os

from ..cache.result_cache import ResultCache
from ..config import ExtractionConfig, ProviderRuntimeConfig, RuntimeConfigSources
from ..errors import ExtractionError, PipelineStageError
from ..llm.extraction_client import AiExtractionClient
from ..llm.rate_limiter import RateLimiter
from ..provider_factory import ProviderFactory
from ..settings import Settings
from ..telemetry.logger import RunLogger
from .chunk_encoder import ChunkEncoder
from .orchestrator import ExtractionPipeline


def validate_config(config: ExtractionConfig) -> None:
    """Validate top-level configuration and map failures to a stage-aware error."""

    try:
        config.validate()
    except ValueError as exc:
        raise PipelineStageError(
            stage="config",
            detail=str(exc),
            hint="Update page range, provider, or chunk-size options and rerun the command.",
        ) from exc


def resolve_runtime_config(config: ExtractionConfig, settings: Settings) -> ProviderRuntimeConfig:
    """Resolve provider runtime values with deterministic source precedence."""

    try:
        env_source = config.runtime_sources.env or os.environ
        runtime_sources = RuntimeConfigSources(
            cli=config.runtime_sources.cli,
            secure=config.runtime_sources.secure,
            env=env_source,
        )
        return config.resolved_provider_runtime(runtime_sources, settings)
    except ValueError as exc:
        raise PipelineStageError(
            stage="config",
            detail=str(exc),
            hint=(
                "Set a supported provider and a non-empty model via CLI options, "
                "`DOCEXPERT_*` environment variables, or `docexpert settings`."
            ),
        ) from exc


def build_pipeline(
    runtime: ProviderRuntimeConfig,
    *,
    timeout_seconds: float,
    password: str | None = None,
    result_cache: ResultCache | None = None,
    run_logger: RunLogger | None = None,
    rate_limiter: RateLimiter | None = None,
) -> ExtractionPipeline:
    """Create an `ExtractionPipeline` wired to the resolved provider."""

    try:
        extractor = ProviderFactory.create_extractor(
            runtime.provider,
            runtime.model,
            runtime.api_key,
            timeout_seconds=timeout_seconds,
            rate_limiter=rate_limiter if rate_limiter is not None else RateLimiter(),
        )
    except ExtractionError as exc:
        raise PipelineStageError(
            stage="provider",
            detail=exc.message,
            hint="Choose a provider/model combination that can read PDF documents.",
        ) from exc
    client = AiExtractionClient(extractor, timeout_seconds=timeout_seconds)
    return ExtractionPipeline(
        ChunkEncoder(password=password),
        client,
        runtime.model,
        provider_id=runtime.provider,
        result_cache=result_cache,
        run_logger=run_logger,
    )
