"""Structured run logging utilities.

Responsibilities:
- Emit concise, deterministic phase-level runtime logs through `loguru`.
- Keep secret values and document content out of log lines.
"""

from __future__ import annotations

import sys
from typing import TextIO

from loguru import logger as _loguru_logger

from ..models.datatypes import PageRange


def _sanitize_context_value(value: object) -> str:
    """Convert context values into stable, shell-safe tokens."""

    raw = str(value).strip()
    if not raw:
        return "none"
    return "".join(
        character if character.isalnum() or character in {"-", "_", ".", ":", "/"} else "_"
        for character in raw
    )


def _format_context(context: dict[str, object]) -> str:
    """Serialize context key/value pairs in deterministic key order."""

    if not context:
        return ""
    tokens = [
        f"{key}={_sanitize_context_value(context[key])}"
        for key in sorted(context.keys())
    ]
    return " " + " ".join(tokens)


def configure_logging(sink: TextIO | None = None, level: str = "INFO") -> None:
    """Replace loguru handlers with a single plain-message sink."""

    _loguru_logger.remove()
    _loguru_logger.add(
        sink or sys.stderr,
        format="{message}",
        level=level,
        colorize=False,
    )


class RunLogger:
    """Emit deterministic phase logs for extraction pipeline activity."""

    def __init__(self, run_label: str | None = None) -> None:
        """Initialize the logger with an optional run label added to every line."""

        self._run_label = run_label

    def log_event(self, level: str, event: str, stage: str, **context: object) -> None:
        """Emit one structured runtime log line."""

        if self._run_label is not None:
            context.setdefault("run", self._run_label)
        line = f"[phase] level={level} stage={stage} event={event}{_format_context(context)}"
        _loguru_logger.log(level, line)

    def log_run_start(self, total_batches: int, start_index: int) -> None:
        """Emit a run-start event."""

        self.log_event("INFO", "start", "extract", batches=total_batches, start_index=start_index)

    def log_run_complete(self, characters: int) -> None:
        """Emit a run-complete event."""

        self.log_event("INFO", "complete", "extract", chars=characters)

    def log_run_failure(self, batch_number: int, error_type: str) -> None:
        """Emit a run-failure event naming the batch that halted the run."""

        self.log_event("ERROR", "failure", "extract", batch=batch_number, error_type=error_type)

    def log_batch_start(
        self,
        batch_number: int,
        total_batches: int,
        page_range: PageRange,
        size_mb: float,
    ) -> None:
        """Emit a batch-start event with the encoded payload size."""

        self.log_event(
            "INFO",
            "batch_start",
            "extract",
            batch=f"{batch_number}/{total_batches}",
            pages=page_range.label,
            size_mb=f"{size_mb:.2f}",
        )

    def log_batch_success(self, batch_number: int, characters: int) -> None:
        """Emit a batch-success event."""

        self.log_event("SUCCESS", "batch_complete", "extract", batch=batch_number, chars=characters)

    def log_batch_failure(self, batch_number: int, error_type: str) -> None:
        """Emit a batch-failure event without provider payload details."""

        self.log_event("ERROR", "batch_failure", "extract", batch=batch_number, error_type=error_type)

    def log_cache_hit(self) -> None:
        """Emit a result-cache hit event."""

        self.log_event("INFO", "hit", "cache")

    def log_cache_failure(self, operation: str, error_type: str) -> None:
        """Emit a non-fatal cache failure event."""

        self.log_event("WARNING", "failure", "cache", operation=operation, error_type=error_type)
