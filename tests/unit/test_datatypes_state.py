"""Unit tests for extraction state accumulation and serialization."""

from __future__ import annotations

import pytest

from docexpert.models.datatypes import (
    ChunkFailure,
    ExtractionState,
    PageRange,
    SourceDocument,
    TranslationConfig,
)


def test_append_separates_chunks_with_blank_line() -> None:
    """The first chunk is stored as-is and later chunks follow a blank line."""

    state = ExtractionState(requested=PageRange(1, 10), chunk_size=5)
    state.append("A")
    state.append("B")

    assert state.accumulated_text == "A\n\nB"
    assert state.next_chunk_index == 2


def test_record_failure_sets_resume_cursor() -> None:
    """Failures should pause the run at the failing chunk index."""

    state = ExtractionState(requested=PageRange(1, 15), chunk_size=5, status="running")
    state.append("A")
    state.record_failure(1, "Rate limit exceeded", "RateLimitError")

    assert state.status == "failed"
    assert state.resume_index == 1
    assert state.failure == ChunkFailure(1, "Rate limit exceeded", "RateLimitError")
    assert state.failure.batch_number == 2


def test_snapshot_is_independent_copy() -> None:
    """Mutating the live state must not change an earlier snapshot."""

    state = ExtractionState(requested=PageRange(1, 10), chunk_size=5)
    snapshot = state.snapshot()
    state.append("later")

    assert snapshot.accumulated_text == ""
    assert snapshot.next_chunk_index == 0


def test_payload_roundtrip_preserves_resume_fields() -> None:
    """Serialized state should restore every field needed for resume."""

    state = ExtractionState(
        requested=PageRange(3, 20),
        chunk_size=4,
        translation=TranslationConfig(target_language="English", source_language="ckb"),
        accumulated_text="part one",
        next_chunk_index=1,
        status="failed",
        source_fingerprint="abc",
        source_path="/tmp/book.pdf",
    )
    state.record_failure(1, "timeout", "ExtractionTimeoutError")

    restored = ExtractionState.from_payload(state.as_payload())

    assert restored == state


@pytest.mark.parametrize(
    "payload",
    [
        [],
        {"requested": {"start": 1, "end": 5}, "chunk_size": 0},
        {"requested": {"start": 1, "end": 5}, "chunk_size": 5, "next_chunk_index": -1},
        {"requested": {"start": 1, "end": 5}, "chunk_size": 5, "status": "paused"},
        {"requested": {"start": "1", "end": 5}, "chunk_size": 5},
        {"requested": {"start": 1, "end": 5}, "chunk_size": 5, "failure": {"message": "x"}},
    ],
)
def test_from_payload_rejects_malformed_state(payload: object) -> None:
    """Malformed resume files should be rejected with `ValueError`."""

    with pytest.raises(ValueError):
        ExtractionState.from_payload(payload)


def test_source_fingerprint_depends_on_identity_fields() -> None:
    """Fingerprints change with name, size, or modification time, not page data."""

    base = SourceDocument(data=b"x" * 10, page_count=1, name="a.pdf", last_modified=1.0)
    same = SourceDocument(data=b"y" * 10, page_count=1, name="a.pdf", last_modified=1.0)
    renamed = SourceDocument(data=b"x" * 10, page_count=1, name="b.pdf", last_modified=1.0)
    touched = SourceDocument(data=b"x" * 10, page_count=1, name="a.pdf", last_modified=2.0)

    assert base.fingerprint == same.fingerprint
    assert base.fingerprint != renamed.fingerprint
    assert base.fingerprint != touched.fingerprint


def test_translation_payload_defaults_to_auto_source() -> None:
    """Missing source language means auto-detection."""

    translation = TranslationConfig.from_payload({"target_language": "Arabic"})

    assert translation is not None
    assert translation.auto_detect_source is True
    assert TranslationConfig.from_payload(None) is None
