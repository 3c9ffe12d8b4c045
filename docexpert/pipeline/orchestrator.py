"""Pipeline orchestration for chunked PDF extraction.

Responsibilities:
- Plan chunks once per run and process them strictly in ascending order.
- Emit a progress event before each provider call and one terminal result.
- Halt on the first failing chunk, keeping partial text and the resume cursor.
- Skip the whole run when the result cache already holds the requested output.

Key types:
- `ExtractionPipeline`: orchestration facade yielding `PipelineEvent` values.
"""

from __future__ import annotations

import sqlite3
from collections.abc import Iterable, Iterator
from typing import Protocol

from ..cache.result_cache import ResultCache, analysis_cache_key
from ..errors import ExtractionError, PipelineStageError
from ..models.datatypes import (
    ChunkDescriptor,
    EncodedChunk,
    ExtractionResult,
    ExtractionState,
    PageRange,
    PipelineEvent,
    ProgressEvent,
    SourceDocument,
    TranslationConfig,
)
from ..telemetry.logger import RunLogger
from .chunk_builder import DEFAULT_CHUNK_SIZE, build_chunks

_CACHE_ERRORS = (sqlite3.Error, OSError, TypeError, ValueError)


class ChunkEncoderLike(Protocol):
    """Protocol for chunk serialization used by the pipeline."""

    def encode(self, source: SourceDocument, page_range: PageRange) -> EncodedChunk:
        """Serialize one page range of `source`."""


class ExtractionClientLike(Protocol):
    """Protocol for per-chunk AI extraction used by the pipeline."""

    def extract(
        self,
        payload: str,
        model: str,
        translation: TranslationConfig | None = None,
    ) -> str:
        """Return text extracted from one encoded chunk."""


class ExtractionPipeline:
    """Coordinate chunk encoding and extraction for a single document run."""

    def __init__(
        self,
        encoder: ChunkEncoderLike,
        client: ExtractionClientLike,
        model: str,
        *,
        provider_id: str | None = None,
        result_cache: ResultCache | None = None,
        run_logger: RunLogger | None = None,
    ) -> None:
        """Initialize pipeline collaborators and optional cache/logging hooks."""

        self._encoder = encoder
        self._client = client
        self._model = model
        self._provider_id = (
            provider_id if provider_id is not None else getattr(client, "provider_id", "")
        )
        self._result_cache = result_cache
        self._run_logger = run_logger

    def run(
        self,
        source: SourceDocument,
        requested: PageRange,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        translation: TranslationConfig | None = None,
        start_index: int = 0,
        seed_text: str = "",
        *,
        source_path: str | None = None,
    ) -> Iterator[PipelineEvent]:
        """Start a run and return its event stream.

        The stream yields one `ProgressEvent` per processed chunk and ends with
        exactly one `ExtractionResult`. Chunk boundaries are fixed by the
        `chunk_size` given here for the whole run.

        Raises:
            ValueError: If `chunk_size < 1` or `start_index` is outside
                `[0, total_batches]`.
        """

        chunks = build_chunks(source.page_count, requested, chunk_size)
        if isinstance(start_index, bool) or not 0 <= start_index <= len(chunks):
            raise ValueError(
                f"`start_index` must be between 0 and {len(chunks)}, got {start_index}."
            )
        state = ExtractionState(
            requested=requested,
            chunk_size=chunk_size,
            translation=translation,
            accumulated_text=seed_text,
            next_chunk_index=start_index,
            source_fingerprint=source.fingerprint,
            source_path=source_path,
        )
        return self._events(source, chunks, state)

    def resume(self, source: SourceDocument, state: ExtractionState) -> Iterator[PipelineEvent]:
        """Continue a paused run from its resume cursor with its partial text.

        Raises:
            PipelineStageError: If `state` was recorded for a different source.
        """

        if state.source_fingerprint and state.source_fingerprint != source.fingerprint:
            raise PipelineStageError(
                stage="resume",
                detail="Saved extraction state belongs to a different document.",
                hint="Resume with the same PDF file that produced the state file.",
            )
        return self.run(
            source,
            state.requested,
            state.chunk_size,
            state.translation,
            start_index=state.resume_index,
            seed_text=state.accumulated_text,
            source_path=state.source_path,
        )

    def _events(
        self,
        source: SourceDocument,
        chunks: list[ChunkDescriptor],
        state: ExtractionState,
    ) -> Iterator[PipelineEvent]:
        """Drive one run over `chunks`, mutating `state` as chunks settle."""

        state.status = "running"
        total_batches = len(chunks)
        if self._run_logger is not None:
            self._run_logger.log_run_start(total_batches, state.next_chunk_index)

        cache_key = self._cache_key_for(source, chunks, state)
        if cache_key is not None:
            cached_text = self._cache_lookup(cache_key)
            if cached_text is not None:
                state.accumulated_text = cached_text
                state.next_chunk_index = total_batches
                state.status = "succeeded"
                if self._run_logger is not None:
                    self._run_logger.log_cache_hit()
                yield ExtractionResult(
                    kind="completed",
                    text=cached_text,
                    state=state.snapshot(),
                    from_cache=True,
                )
                return

        for chunk in chunks[state.next_chunk_index :]:
            yield ProgressEvent(
                batch_number=chunk.batch_number,
                total_batches=total_batches,
                page_range=chunk.page_range,
                total_pages=source.page_count,
            )
            try:
                encoded = self._encoder.encode(source, chunk.page_range)
                if self._run_logger is not None:
                    self._run_logger.log_batch_start(
                        chunk.batch_number,
                        total_batches,
                        chunk.page_range,
                        encoded.size_estimate_mb,
                    )
                text = self._client.extract(encoded.payload, self._model, state.translation)
            except ExtractionError as exc:
                error_type = type(exc).__name__
                state.record_failure(chunk.index, exc.message, error_type)
                if self._run_logger is not None:
                    self._run_logger.log_batch_failure(chunk.batch_number, error_type)
                    self._run_logger.log_run_failure(chunk.batch_number, error_type)
                yield ExtractionResult(
                    kind="failure",
                    text=state.accumulated_text,
                    state=state.snapshot(),
                    failure=state.failure,
                )
                return

            state.append(text)
            if self._run_logger is not None:
                self._run_logger.log_batch_success(chunk.batch_number, len(text))

        state.status = "succeeded"
        if self._run_logger is not None:
            self._run_logger.log_run_complete(len(state.accumulated_text))
        if cache_key is not None:
            self._cache_store(cache_key, state.accumulated_text)
        yield ExtractionResult(
            kind="completed",
            text=state.accumulated_text,
            state=state.snapshot(),
        )

    def _cache_key_for(
        self,
        source: SourceDocument,
        chunks: list[ChunkDescriptor],
        state: ExtractionState,
    ) -> str | None:
        """Return the cache key for fresh, non-empty runs, else `None`."""

        if self._result_cache is None or not chunks:
            return None
        if state.next_chunk_index != 0 or state.accumulated_text:
            return None
        clamped = PageRange(start=chunks[0].page_range.start, end=chunks[-1].page_range.end)
        return analysis_cache_key(
            source.fingerprint,
            page_range=clamped,
            chunk_size=state.chunk_size,
            translation=state.translation,
            provider=self._provider_id,
            model=self._model,
        )

    def _cache_lookup(self, cache_key: str) -> str | None:
        """Return cached text, treating unreadable entries as misses."""

        assert self._result_cache is not None
        try:
            payload = self._result_cache.get(cache_key)
        except _CACHE_ERRORS as exc:
            if self._run_logger is not None:
                self._run_logger.log_cache_failure("get", type(exc).__name__)
            return None
        if isinstance(payload, dict) and isinstance(payload.get("text"), str):
            return payload["text"]
        return None

    def _cache_store(self, cache_key: str, text: str) -> None:
        """Write completed text to the cache; failures are logged and ignored."""

        assert self._result_cache is not None
        try:
            self._result_cache.set(cache_key, {"text": text})
        except _CACHE_ERRORS as exc:
            if self._run_logger is not None:
                self._run_logger.log_cache_failure("set", type(exc).__name__)


def final_result(events: Iterable[PipelineEvent]) -> ExtractionResult:
    """Drain an event stream and return its terminal `ExtractionResult`."""

    result: ExtractionResult | None = None
    for event in events:
        if isinstance(event, ExtractionResult):
            result = event
    if result is None:
        raise RuntimeError("Extraction event stream ended without a result.")
    return result
