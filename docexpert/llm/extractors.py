"""Provider-specific PDF chunk extractors.

Responsibilities:
- Define the `DocumentExtractor` protocol consumed by `AiExtractionClient`.
- Implement one request/response mapping per provider API.

Notes:
- Gemini and OpenAI-compatible providers receive the PDF inline next to the prompt.
- Mistral OCR has no prompt input, so it cannot translate.
"""

from __future__ import annotations

from typing import Any, Protocol

from ..errors import GenericError, RateLimitError
from .http_client import ProviderHttpClient
from .prompts import PAGE_SEPARATOR
from .rate_limiter import RateLimiter, pacing_key

_PDF_MIME_TYPE = "application/pdf"
_CHUNK_FILENAME = "document_chunk.pdf"


class DocumentExtractor(Protocol):
    """Protocol for provider-backed PDF chunk extraction."""

    provider_id: str
    supports_translation: bool

    def extract(self, payload: str, model: str, prompt: str) -> str:
        """Return text extracted from a base64 PDF chunk."""


def _require_api_key(api_key: str | None, provider_label: str, env_key: str) -> str:
    """Return a normalized API key or raise a credential failure."""

    normalized = api_key.strip() if isinstance(api_key, str) else ""
    if not normalized:
        raise RateLimitError(
            f"Missing {provider_label} API key. Set `{env_key}`, use `--api-key`, or "
            "store one with `docexpert credentials --set-api-key`."
        )
    return normalized


class GeminiExtractor:
    """Google Gemini `generateContent` extractor with inline PDF data."""

    supports_translation = True

    def __init__(
        self,
        *,
        api_key: str | None,
        base_url: str = "https://generativelanguage.googleapis.com/v1beta",
        timeout_seconds: float = 900.0,
        rate_limiter: RateLimiter | None = None,
        provider_id: str = "google",
    ) -> None:
        """Initialize Gemini endpoint settings."""

        self.provider_id = provider_id
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.http = ProviderHttpClient(
            provider_label="Gemini",
            timeout_seconds=timeout_seconds,
            rate_limiter=rate_limiter,
        )

    def extract(self, payload: str, model: str, prompt: str) -> str:
        """Send PDF data plus prompt and return the concatenated candidate text."""

        api_key = _require_api_key(self.api_key, "Google", "GOOGLE_API_KEY")
        body = {
            "contents": [
                {
                    "parts": [
                        {"inline_data": {"mime_type": _PDF_MIME_TYPE, "data": payload}},
                        {"text": prompt},
                    ]
                }
            ]
        }
        response = self.http.post_json(
            f"{self.base_url}/models/{model}:generateContent",
            headers={"x-goog-api-key": api_key},
            payload=body,
            pacing_key=pacing_key(self.provider_id, model),
        )
        return self._candidate_text(response)

    @staticmethod
    def _candidate_text(response: dict[str, Any]) -> str:
        """Extract text parts of the first candidate from a Gemini response."""

        candidates = response.get("candidates")
        if not isinstance(candidates, list) or not candidates:
            feedback = response.get("promptFeedback")
            if isinstance(feedback, dict) and feedback.get("blockReason"):
                raise GenericError(f"Gemini blocked the request: {feedback['blockReason']}.")
            raise GenericError("Gemini response missing non-empty `candidates` list.")

        content = candidates[0].get("content") if isinstance(candidates[0], dict) else None
        parts = content.get("parts") if isinstance(content, dict) else None
        if not isinstance(parts, list):
            raise GenericError("Gemini response missing `candidates[0].content.parts`.")
        return "".join(
            part["text"]
            for part in parts
            if isinstance(part, dict) and isinstance(part.get("text"), str)
        )


class OpenAICompatibleExtractor:
    """Chat-completions extractor for OpenAI and OpenRouter file inputs."""

    supports_translation = True

    _PROVIDER_SETTINGS: dict[str, tuple[str, str, str]] = {
        "openai": ("https://api.openai.com/v1", "OpenAI", "OPENAI_API_KEY"),
        "openrouter": ("https://openrouter.ai/api/v1", "OpenRouter", "OPENROUTER_API_KEY"),
    }

    def __init__(
        self,
        *,
        provider_id: str,
        api_key: str | None,
        base_url: str | None = None,
        timeout_seconds: float = 900.0,
        rate_limiter: RateLimiter | None = None,
    ) -> None:
        """Initialize endpoint settings for an OpenAI-compatible provider."""

        if provider_id not in self._PROVIDER_SETTINGS:
            raise GenericError(f"Unsupported OpenAI-compatible provider `{provider_id}`.")
        default_url, label, env_key = self._PROVIDER_SETTINGS[provider_id]
        self.provider_id = provider_id
        self.api_key = api_key
        self.base_url = (base_url or default_url).rstrip("/")
        self._env_key = env_key
        self.http = ProviderHttpClient(
            provider_label=label,
            timeout_seconds=timeout_seconds,
            rate_limiter=rate_limiter,
        )

    def extract(self, payload: str, model: str, prompt: str) -> str:
        """Send a user message with text and PDF file parts; return the reply text."""

        api_key = _require_api_key(self.api_key, self.http.provider_label, self._env_key)
        headers = {"Authorization": f"Bearer {api_key}"}
        if self.provider_id == "openrouter":
            headers["HTTP-Referer"] = "https://github.com/docexpert/docexpert"
            headers["X-Title"] = "Document Expert"

        body = {
            "model": model,
            "messages": [
                {
                    "role": "user",
                    "content": [
                        {"type": "text", "text": prompt},
                        {
                            "type": "file",
                            "file": {
                                "filename": _CHUNK_FILENAME,
                                "file_data": f"data:{_PDF_MIME_TYPE};base64,{payload}",
                            },
                        },
                    ],
                }
            ],
        }
        response = self.http.post_json(
            f"{self.base_url}/chat/completions",
            headers=headers,
            payload=body,
            pacing_key=pacing_key(self.provider_id, model),
        )
        return self._message_text(response)

    def _message_text(self, response: dict[str, Any]) -> str:
        """Extract first assistant message text from a chat-completions payload."""

        label = self.http.provider_label
        choices = response.get("choices")
        if not isinstance(choices, list) or not choices:
            raise GenericError(f"{label} response missing non-empty `choices` list.")
        message = choices[0].get("message") if isinstance(choices[0], dict) else None
        if not isinstance(message, dict):
            raise GenericError(f"{label} response missing `choices[0].message` object.")

        content = message.get("content")
        if isinstance(content, str):
            return content
        if isinstance(content, list):
            return "".join(
                item["text"]
                for item in content
                if isinstance(item, dict)
                and item.get("type") == "text"
                and isinstance(item.get("text"), str)
            )
        raise GenericError(f"{label} response message content is malformed.")


class MistralOcrExtractor:
    """Mistral OCR endpoint extractor returning per-page Markdown."""

    supports_translation = False

    def __init__(
        self,
        *,
        api_key: str | None,
        base_url: str = "https://api.mistral.ai/v1",
        timeout_seconds: float = 900.0,
        rate_limiter: RateLimiter | None = None,
        provider_id: str = "mistral",
    ) -> None:
        """Initialize Mistral OCR endpoint settings."""

        self.provider_id = provider_id
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.http = ProviderHttpClient(
            provider_label="Mistral",
            timeout_seconds=timeout_seconds,
            rate_limiter=rate_limiter,
        )

    def extract(self, payload: str, model: str, prompt: str) -> str:
        """Send the PDF to the OCR endpoint; `prompt` is not accepted by this API."""

        _ = prompt
        api_key = _require_api_key(self.api_key, "Mistral", "MISTRAL_API_KEY")
        body = {
            "model": model,
            "document": {
                "type": "document_url",
                "document_url": f"data:{_PDF_MIME_TYPE};base64,{payload}",
                "document_name": _CHUNK_FILENAME,
            },
        }
        response = self.http.post_json(
            f"{self.base_url}/ocr",
            headers={"Authorization": f"Bearer {api_key}"},
            payload=body,
            pacing_key=pacing_key(self.provider_id, model),
        )
        pages = response.get("pages")
        if not isinstance(pages, list):
            raise GenericError("Mistral OCR response missing `pages` list.")
        markdown_pages = [
            page["markdown"]
            for page in pages
            if isinstance(page, dict) and isinstance(page.get("markdown"), str)
        ]
        return f"\n\n{PAGE_SEPARATOR}\n\n".join(markdown_pages)
