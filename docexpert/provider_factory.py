"""Provider factory helpers for AI extraction.

Responsibilities:
- Resolve provider identifiers to concrete `DocumentExtractor` implementations.
- Keep orchestration independent from concrete provider class construction.

Notes:
- Mistral is only usable through its OCR models.
"""

from __future__ import annotations

from .errors import GenericError
from .llm.extractors import (
    DocumentExtractor,
    GeminiExtractor,
    MistralOcrExtractor,
    OpenAICompatibleExtractor,
)
from .llm.rate_limiter import RateLimiter
from .settings import SUPPORTED_PROVIDER_IDS


class ProviderFactory:
    """Factory for provider-backed extractors used by the pipeline."""

    @staticmethod
    def create_extractor(
        provider_id: str,
        model: str,
        api_key: str | None = None,
        *,
        timeout_seconds: float = 900.0,
        rate_limiter: RateLimiter | None = None,
    ) -> DocumentExtractor:
        """Create an extractor for a configured provider identifier.

        Raises:
            GenericError: If the provider/model combination cannot extract PDFs.
        """

        if provider_id == "google":
            return GeminiExtractor(
                api_key=api_key,
                timeout_seconds=timeout_seconds,
                rate_limiter=rate_limiter,
            )
        if provider_id in {"openai", "openrouter"}:
            return OpenAICompatibleExtractor(
                provider_id=provider_id,
                api_key=api_key,
                timeout_seconds=timeout_seconds,
                rate_limiter=rate_limiter,
            )
        if provider_id == "mistral":
            if "ocr" not in model.lower():
                raise GenericError(
                    f"Mistral model `{model}` cannot read PDF documents; "
                    "use an OCR model such as `mistral-ocr-latest`."
                )
            return MistralOcrExtractor(
                api_key=api_key,
                timeout_seconds=timeout_seconds,
                rate_limiter=rate_limiter,
            )
        raise GenericError(
            f"Unsupported extraction provider `{provider_id}`. "
            f"Expected one of: {', '.join(SUPPORTED_PROVIDER_IDS)}."
        )
