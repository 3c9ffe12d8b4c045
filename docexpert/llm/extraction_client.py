"""Single-chunk AI extraction with a hard timeout.

Responsibilities:
- Build the extraction prompt for one chunk, with optional translation directives.
- Race the provider call against a fixed timeout ceiling.
- Normalize every failure into `RateLimitError`, `ExtractionTimeoutError` or `GenericError`.

Notes:
- The client never retries; retry policy belongs to the caller resuming a run.
- A timed-out provider call keeps running on a daemon thread; its result is discarded and it never delays process exit.
"""

from __future__ import annotations

import threading

from ..errors import EncodingError, ExtractionError, ExtractionTimeoutError, GenericError
from ..models.datatypes import TranslationConfig
from .extractors import DocumentExtractor
from .prompts import PromptLibrary

DEFAULT_TIMEOUT_SECONDS = 900.0
TIMEOUT_MESSAGE = "AI service took too long to respond"


class AiExtractionClient:
    """Execute one extraction request per chunk against a configured provider."""

    def __init__(
        self,
        extractor: DocumentExtractor,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        prompts: PromptLibrary | None = None,
    ) -> None:
        """Initialize client with its provider extractor and timeout ceiling."""

        if timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be positive.")
        self.extractor = extractor
        self.timeout_seconds = timeout_seconds
        self.prompts = prompts if prompts is not None else PromptLibrary()

    @property
    def provider_id(self) -> str:
        """Return the provider identifier of the wrapped extractor."""

        return self.extractor.provider_id

    def extract(
        self,
        payload: str,
        model: str,
        translation: TranslationConfig | None = None,
    ) -> str:
        """Extract (and optionally translate) text from one base64 PDF chunk.

        Raises:
            RateLimitError: If the provider reports quota or credential exhaustion.
            ExtractionTimeoutError: If the call exceeds `timeout_seconds`.
            GenericError: For every other failure.
        """

        if translation is not None and not self.extractor.supports_translation:
            raise GenericError(
                f"Provider `{self.extractor.provider_id}` with model `{model}` "
                "does not support translation."
            )
        prompt = self.prompts.pdf_extraction_prompt(translation)

        outcome: dict[str, object] = {}
        finished = threading.Event()

        def _call_provider() -> None:
            try:
                outcome["text"] = self.extractor.extract(payload, model, prompt)
            except Exception as exc:
                outcome["error"] = exc
            finally:
                finished.set()

        # Daemon so an abandoned call never holds up interpreter exit.
        worker = threading.Thread(target=_call_provider, name="docexpert-extract", daemon=True)
        worker.start()
        if not finished.wait(self.timeout_seconds):
            raise ExtractionTimeoutError(TIMEOUT_MESSAGE)

        error = outcome.get("error")
        if isinstance(error, EncodingError):
            raise GenericError(error.message) from error
        if isinstance(error, ExtractionError):
            raise error
        if isinstance(error, Exception):
            raise GenericError(str(error) or type(error).__name__) from error

        text = outcome.get("text")
        if not isinstance(text, str):
            raise GenericError("AI service returned a non-text response.")
        return text.strip()
