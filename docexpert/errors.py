"""Domain exceptions for extraction pipeline and CLI diagnostics.

Key types:
- `ExtractionError`: base class for per-chunk failures that halt a run.
- `EncodingError`, `RateLimitError`, `ExtractionTimeoutError`, `GenericError`:
  the failure taxonomy surfaced to callers for resume decisions.
- `PipelineStageError`: configuration/resume validation failures for the CLI.
"""

from __future__ import annotations


class ExtractionError(RuntimeError):
    """Raised when one chunk cannot be encoded or extracted."""

    def __init__(self, message: str) -> None:
        """Initialize the error with a user-facing message."""

        super().__init__(message)
        self.message = message


class EncodingError(ExtractionError):
    """Raised when chunk pages cannot be copied or serialized."""


class RateLimitError(ExtractionError):
    """Raised when the AI provider signals quota or credential exhaustion."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        """Initialize the error with the provider-supplied message."""

        super().__init__(message)
        self.status_code = status_code


class ExtractionTimeoutError(ExtractionError, TimeoutError):
    """Raised when the AI provider does not answer within the timeout ceiling."""


class GenericError(ExtractionError):
    """Raised for any other provider, parsing, or configuration failure."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        """Initialize the error with optional HTTP status metadata."""

        super().__init__(message)
        self.status_code = status_code


class PipelineStageError(RuntimeError):
    """Raised when a specific pipeline stage fails outside chunk processing."""

    def __init__(
        self,
        *,
        stage: str,
        detail: str,
        hint: str | None = None,
    ) -> None:
        """Initialize a stage-scoped pipeline error."""

        super().__init__(detail)
        self.stage = stage
        self.detail = detail
        self.hint = hint
