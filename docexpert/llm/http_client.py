"""Provider HTTP transport for AI extraction requests.

Responsibilities:
- Send JSON POST requests to provider REST APIs with `requests`.
- Map HTTP and transport failures onto the extraction error taxonomy.
- Redact API keys and cap provider messages before they reach users or logs.
"""

from __future__ import annotations

import json
import re
import socket
from typing import Any

import requests

from ..errors import ExtractionTimeoutError, GenericError, RateLimitError
from .rate_limiter import RateLimiter

_RATE_LIMIT_STATUS_CODES = frozenset({401, 429})
_RATE_LIMIT_MESSAGE_MARKERS = ("api key not valid", "quota")


class ProviderHttpClient:
    """Minimal requests-based JSON client shared by provider extractors."""

    _MAX_PROVIDER_MESSAGE_CHARS = 240

    def __init__(
        self,
        *,
        provider_label: str,
        timeout_seconds: float = 900.0,
        rate_limiter: RateLimiter | None = None,
    ) -> None:
        """Initialize transport settings for one provider."""

        self.provider_label = provider_label
        self.timeout_seconds = timeout_seconds
        self.rate_limiter = rate_limiter

    def post_json(
        self,
        url: str,
        *,
        headers: dict[str, str],
        payload: dict[str, Any],
        pacing_key: str | None = None,
    ) -> dict[str, Any]:
        """POST `payload` as JSON and return the decoded JSON object body."""

        if self.rate_limiter is not None and pacing_key is not None:
            self.rate_limiter.acquire(pacing_key)

        request_headers = {"Content-Type": "application/json", **headers}
        try:
            response = requests.post(
                url,
                headers=request_headers,
                json=payload,
                timeout=self.timeout_seconds,
            )
            response.raise_for_status()
            body = bytes(response.content)
        except requests.HTTPError as exc:
            raise self._http_error_to_extraction_error(exc) from exc
        except (requests.Timeout, socket.timeout, TimeoutError) as exc:
            raise ExtractionTimeoutError(
                f"{self.provider_label} request timed out."
            ) from exc
        except requests.RequestException as exc:
            raise GenericError(
                f"{self.provider_label} request transport error: "
                f"{self._short_message(self._redact_sensitive_tokens(str(exc)))}"
            ) from exc

        try:
            decoded = json.loads(body.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise GenericError(f"{self.provider_label} returned invalid JSON payload.") from exc
        if not isinstance(decoded, dict):
            raise GenericError(f"{self.provider_label} response root must be a JSON object.")
        return decoded

    @staticmethod
    def _decode_error_body(exc: requests.HTTPError) -> str:
        """Decode an HTTP error body into a best-effort UTF-8 payload string."""

        response = exc.response
        if response is None:
            return ""
        try:
            return bytes(response.content).decode("utf-8", errors="replace").strip()
        except (TypeError, ValueError):
            return ""

    @classmethod
    def _redact_sensitive_tokens(cls, text: str) -> str:
        """Redact API-key-like tokens from provider error content."""

        redacted = re.sub(r"\bsk-[A-Za-z0-9_-]{8,}\b", "[redacted-key]", text)
        redacted = re.sub(r"\bAIza[A-Za-z0-9_-]{20,}\b", "[redacted-key]", redacted)
        redacted = re.sub(
            r"(?i)bearer\s+[A-Za-z0-9._-]{12,}",
            "Bearer [redacted-token]",
            redacted,
        )
        return redacted

    @classmethod
    def _short_message(cls, text: str) -> str:
        """Normalize and cap user-facing provider message length."""

        compact = " ".join(text.split())
        if len(compact) <= cls._MAX_PROVIDER_MESSAGE_CHARS:
            return compact
        return f"{compact[: cls._MAX_PROVIDER_MESSAGE_CHARS - 1]}..."

    @classmethod
    def _extract_provider_message(cls, body: str) -> str:
        """Extract a concise provider-facing message from an error body."""

        if not body:
            return ""
        try:
            payload = json.loads(body)
        except json.JSONDecodeError:
            return cls._short_message(cls._redact_sensitive_tokens(body))

        message: str | None = None
        if isinstance(payload, dict):
            error_payload = payload.get("error")
            if isinstance(error_payload, dict):
                message_value = error_payload.get("message")
                if isinstance(message_value, str) and message_value.strip():
                    message = message_value.strip()
            elif isinstance(error_payload, str) and error_payload.strip():
                message = error_payload.strip()
            if message is None:
                message_value = payload.get("message")
                if isinstance(message_value, str) and message_value.strip():
                    message = message_value.strip()
        if message is None:
            message = body
        return cls._short_message(cls._redact_sensitive_tokens(message))

    @staticmethod
    def is_rate_limit_failure(status_code: int, provider_message: str) -> bool:
        """Return whether a failure means quota or credential exhaustion."""

        if status_code in _RATE_LIMIT_STATUS_CODES:
            return True
        message_lower = provider_message.lower()
        return any(marker in message_lower for marker in _RATE_LIMIT_MESSAGE_MARKERS)

    def _http_error_to_extraction_error(
        self, exc: requests.HTTPError
    ) -> RateLimitError | GenericError:
        """Convert HTTP errors into the extraction error taxonomy."""

        status_code = exc.response.status_code if exc.response is not None else 0
        provider_message = self._extract_provider_message(self._decode_error_body(exc))
        if self.is_rate_limit_failure(status_code, provider_message):
            return RateLimitError(
                provider_message or f"{self.provider_label} rejected the request (HTTP {status_code}).",
                status_code=status_code,
            )
        if provider_message:
            detail = f"{self.provider_label} request failed (HTTP {status_code}): {provider_message}"
        else:
            detail = f"{self.provider_label} request failed (HTTP {status_code})."
        return GenericError(detail, status_code=status_code)
