"""Core datatypes shared across docexpert modules.

Responsibilities:
- Represent immutable records exchanged between pipeline stages.
- Hold the single mutable `ExtractionState` owned by one pipeline run.
- Provide explicit typing and JSON payload conversion for resume files.

Key types:
- `SourceDocument`, `PageRange`, `ChunkDescriptor`, `TranslationConfig`,
  `EncodedChunk`, `ChunkFailure`, `ExtractionState`, `ProgressEvent`,
  `ExtractionResult`, and `CacheEntry`.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from hashlib import sha256
from typing import Any, Literal


def file_fingerprint(name: str, size: int, last_modified: float | None) -> str:
    """Return a stable identity hash for one file from name, size, and mtime."""

    modified = "" if last_modified is None else f"{last_modified:.3f}"
    return sha256(f"{name}|{size}|{modified}".encode("utf-8")).hexdigest()


@dataclass(frozen=True, slots=True)
class SourceDocument:
    """Immutable handle to a multi-page PDF owned by the caller.

    Attributes:
        data: Raw PDF bytes (possibly repaired by reconstruction).
        page_count: Total number of pages in `data`.
        name: Original file name used for fingerprinting and export naming.
        last_modified: Optional source modification timestamp in epoch seconds.
        original_size: Size of the file as uploaded, when `data` was rebuilt.
    """

    data: bytes = field(repr=False)
    page_count: int
    name: str = "document.pdf"
    last_modified: float | None = None
    original_size: int | None = None

    @property
    def size_bytes(self) -> int:
        """Return the byte size of the source file."""

        if self.original_size is not None:
            return self.original_size
        return len(self.data)

    @property
    def fingerprint(self) -> str:
        """Return a stable identity derived from name, size, and modification time."""

        return file_fingerprint(self.name, self.size_bytes, self.last_modified)


@dataclass(frozen=True, slots=True)
class PageRange:
    """Inclusive, 1-indexed page range."""

    start: int
    end: int

    @property
    def page_count(self) -> int:
        """Return the number of pages covered, or 0 for an inverted range."""

        return max(0, self.end - self.start + 1)

    @property
    def label(self) -> str:
        """Return a compact `start-end` label for progress and logs."""

        return f"{self.start}-{self.end}"

    def is_valid_for(self, total_pages: int) -> bool:
        """Return whether `1 <= start <= end <= total_pages` holds."""

        return 1 <= self.start <= self.end <= total_pages

    def clamp(self, total_pages: int) -> PageRange | None:
        """Clamp into `[1, total_pages]`, returning `None` when nothing remains."""

        start = max(1, self.start)
        end = min(self.end, total_pages)
        if start > end:
            return None
        return PageRange(start=start, end=end)

    def as_payload(self) -> dict[str, int]:
        """Return a JSON-serializable representation."""

        return {"start": self.start, "end": self.end}

    @classmethod
    def from_payload(cls, payload: Any) -> PageRange:
        """Build a page range from a `{start, end}` mapping."""

        if not isinstance(payload, dict):
            raise ValueError("Page range payload must be an object.")
        start = payload.get("start")
        end = payload.get("end")
        if not isinstance(start, int) or not isinstance(end, int):
            raise ValueError("Page range payload requires integer `start` and `end`.")
        return cls(start=start, end=end)


@dataclass(frozen=True, slots=True)
class ChunkDescriptor:
    """One contiguous page-range chunk sent as a single AI request.

    Attributes:
        index: 0-based chunk index within the run.
        page_range: Pages covered by the chunk.
        batch_number: 1-based number used in progress display.
        total_batches: Number of chunks in the run.
    """

    index: int
    page_range: PageRange
    batch_number: int
    total_batches: int


@dataclass(frozen=True, slots=True)
class TranslationConfig:
    """Optional translation directives; absence means extraction-only mode."""

    target_language: str
    source_language: str = "auto"

    @property
    def auto_detect_source(self) -> bool:
        """Return whether the source language should be auto-detected."""

        return self.source_language.strip().lower() == "auto"

    def as_payload(self) -> dict[str, str]:
        """Return a JSON-serializable representation."""

        return {
            "source_language": self.source_language,
            "target_language": self.target_language,
        }

    @classmethod
    def from_payload(cls, payload: Any) -> TranslationConfig | None:
        """Build translation config from a payload, returning `None` when absent."""

        if payload is None:
            return None
        if not isinstance(payload, dict):
            raise ValueError("Translation payload must be an object or null.")
        target = payload.get("target_language")
        if not isinstance(target, str) or not target.strip():
            raise ValueError("Translation payload requires `target_language`.")
        source = payload.get("source_language")
        if not isinstance(source, str) or not source.strip():
            source = "auto"
        return cls(target_language=target.strip(), source_language=source.strip())


@dataclass(frozen=True, slots=True)
class EncodedChunk:
    """Serialized chunk ready to embed in a provider request body."""

    payload: str = field(repr=False)
    size_estimate_bytes: float
    mime_type: str = "application/pdf"

    @property
    def size_estimate_mb(self) -> float:
        """Return the approximate payload size in megabytes."""

        return self.size_estimate_bytes / (1024 * 1024)


@dataclass(frozen=True, slots=True)
class ChunkFailure:
    """Failure metadata for the chunk that halted a run."""

    chunk_index: int
    message: str
    error_type: str = "GenericError"

    @property
    def batch_number(self) -> int:
        """Return the 1-based batch number of the failed chunk."""

        return self.chunk_index + 1


RunStatus = Literal["idle", "running", "succeeded", "failed"]


@dataclass(slots=True)
class ExtractionState:
    """Mutable state of one extraction run, serializable for resume.

    Attributes:
        requested: Page range requested by the caller.
        chunk_size: Pages per chunk captured at run start.
        translation: Optional translation directives.
        accumulated_text: Concatenated text of all successful chunks.
        next_chunk_index: Resume cursor (index of the next chunk to process).
        failure: Failure of the halted chunk, or `None`.
        status: Run state machine position.
        source_fingerprint: Fingerprint of the source the state belongs to.
        source_path: Optional source path used by CLI resume.
    """

    requested: PageRange
    chunk_size: int
    translation: TranslationConfig | None = None
    accumulated_text: str = ""
    next_chunk_index: int = 0
    failure: ChunkFailure | None = None
    status: RunStatus = "idle"
    source_fingerprint: str = ""
    source_path: str | None = None

    @property
    def resume_index(self) -> int:
        """Return the chunk index a resumed run should start from."""

        if self.failure is not None:
            return self.failure.chunk_index
        return self.next_chunk_index

    def append(self, text: str) -> None:
        """Append one chunk's text and advance the resume cursor."""

        if self.accumulated_text:
            self.accumulated_text = f"{self.accumulated_text}\n\n{text}"
        else:
            self.accumulated_text = text
        self.next_chunk_index += 1

    def record_failure(self, chunk_index: int, message: str, error_type: str) -> None:
        """Mark the run as failed at a chunk index."""

        self.failure = ChunkFailure(
            chunk_index=chunk_index,
            message=message,
            error_type=error_type,
        )
        self.next_chunk_index = chunk_index
        self.status = "failed"

    def snapshot(self) -> ExtractionState:
        """Return an independent copy safe to hand to callers."""

        return replace(self)

    def as_payload(self) -> dict[str, object]:
        """Return a JSON-serializable representation."""

        failure_payload: dict[str, object] | None = None
        if self.failure is not None:
            failure_payload = {
                "chunk_index": self.failure.chunk_index,
                "message": self.failure.message,
                "error_type": self.failure.error_type,
            }
        return {
            "requested": self.requested.as_payload(),
            "chunk_size": self.chunk_size,
            "translation": None if self.translation is None else self.translation.as_payload(),
            "accumulated_text": self.accumulated_text,
            "next_chunk_index": self.next_chunk_index,
            "failure": failure_payload,
            "status": self.status,
            "source_fingerprint": self.source_fingerprint,
            "source_path": self.source_path,
        }

    @classmethod
    def from_payload(cls, payload: Any) -> ExtractionState:
        """Build state from a payload produced by `as_payload`."""

        if not isinstance(payload, dict):
            raise ValueError("Extraction state payload must be an object.")

        chunk_size = payload.get("chunk_size")
        if isinstance(chunk_size, bool) or not isinstance(chunk_size, int) or chunk_size < 1:
            raise ValueError("Extraction state requires a positive integer `chunk_size`.")
        next_index = payload.get("next_chunk_index", 0)
        if isinstance(next_index, bool) or not isinstance(next_index, int) or next_index < 0:
            raise ValueError("Extraction state `next_chunk_index` must be a non-negative integer.")
        accumulated = payload.get("accumulated_text", "")
        if not isinstance(accumulated, str):
            raise ValueError("Extraction state `accumulated_text` must be a string.")

        failure: ChunkFailure | None = None
        raw_failure = payload.get("failure")
        if raw_failure is not None:
            if not isinstance(raw_failure, dict) or not isinstance(
                raw_failure.get("chunk_index"), int
            ):
                raise ValueError("Extraction state `failure` requires integer `chunk_index`.")
            failure = ChunkFailure(
                chunk_index=raw_failure["chunk_index"],
                message=str(raw_failure.get("message", "")),
                error_type=str(raw_failure.get("error_type", "GenericError")),
            )

        status = payload.get("status", "idle")
        if status not in {"idle", "running", "succeeded", "failed"}:
            raise ValueError(f"Extraction state has unknown status `{status}`.")

        source_path = payload.get("source_path")
        return cls(
            requested=PageRange.from_payload(payload.get("requested")),
            chunk_size=chunk_size,
            translation=TranslationConfig.from_payload(payload.get("translation")),
            accumulated_text=accumulated,
            next_chunk_index=next_index,
            failure=failure,
            status=status,
            source_fingerprint=str(payload.get("source_fingerprint", "")),
            source_path=source_path if isinstance(source_path, str) else None,
        )


@dataclass(frozen=True, slots=True)
class ProgressEvent:
    """Emitted before each chunk's provider call begins."""

    batch_number: int
    total_batches: int
    page_range: PageRange
    total_pages: int
    kind: Literal["progress"] = "progress"


@dataclass(frozen=True, slots=True)
class ExtractionResult:
    """Terminal event of a pipeline run.

    Attributes:
        kind: `completed` or `failure`.
        text: Final text on completion, partial text on failure.
        state: Snapshot of the run state, usable for `resume`.
        failure: Failure metadata when `kind == "failure"`.
        from_cache: Whether the text came from the result cache.
    """

    kind: Literal["completed", "failure"]
    text: str
    state: ExtractionState
    failure: ChunkFailure | None = None
    from_cache: bool = False

    @property
    def succeeded(self) -> bool:
        """Return whether every chunk completed."""

        return self.kind == "completed"


PipelineEvent = ProgressEvent | ExtractionResult


@dataclass(frozen=True, slots=True)
class CacheEntry:
    """Stored cache record with its write timestamp in epoch milliseconds."""

    key: str
    payload: Any
    timestamp_ms: int
