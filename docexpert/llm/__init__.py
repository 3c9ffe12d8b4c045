"""LLM-facing abstractions for PDF extraction.

This package defines prompt templates, provider extractors, the shared HTTP
transport, request pacing, and the timeout-bounded extraction client.
"""

from .extraction_client import AiExtractionClient
from .extractors import (
    DocumentExtractor,
    GeminiExtractor,
    MistralOcrExtractor,
    OpenAICompatibleExtractor,
)
from .prompts import PAGE_SEPARATOR, PromptLibrary
from .rate_limiter import RateLimiter

__all__ = [
    "AiExtractionClient",
    "DocumentExtractor",
    "GeminiExtractor",
    "MistralOcrExtractor",
    "OpenAICompatibleExtractor",
    "PAGE_SEPARATOR",
    "PromptLibrary",
    "RateLimiter",
]
