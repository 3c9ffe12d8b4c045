"""Unit tests for page-range chunk partitioning."""

from __future__ import annotations

import math

import pytest

from docexpert.models.datatypes import PageRange
from docexpert.pipeline.chunk_builder import build_chunks, total_batches_for


def test_twelve_pages_in_chunks_of_five() -> None:
    """Twelve pages with size five should yield 1-5, 6-10, 11-12."""

    chunks = build_chunks(12, PageRange(1, 12), 5)

    assert [chunk.page_range for chunk in chunks] == [
        PageRange(1, 5),
        PageRange(6, 10),
        PageRange(11, 12),
    ]
    assert [chunk.index for chunk in chunks] == [0, 1, 2]
    assert [chunk.batch_number for chunk in chunks] == [1, 2, 3]
    assert {chunk.total_batches for chunk in chunks} == {3}


def test_inverted_range_yields_no_chunks() -> None:
    """An end page before the start page should produce an empty plan."""

    assert build_chunks(12, PageRange(5, 3), 5) == []


def test_requested_range_is_clamped_to_document() -> None:
    """Ranges beyond the document bounds should be clamped, not rejected."""

    chunks = build_chunks(7, PageRange(0, 40), 3)

    assert [chunk.page_range.label for chunk in chunks] == ["1-3", "4-6", "7-7"]


def test_range_entirely_outside_document_yields_no_chunks() -> None:
    """A range starting after the last page should produce an empty plan."""

    assert build_chunks(4, PageRange(9, 12), 2) == []


@pytest.mark.parametrize("chunk_size", [0, -1, True, 2.5])
def test_invalid_chunk_size_is_rejected(chunk_size: object) -> None:
    """Chunk size must be a positive integer."""

    with pytest.raises(ValueError):
        build_chunks(10, PageRange(1, 10), chunk_size)  # type: ignore[arg-type]


@pytest.mark.parametrize(
    ("total_pages", "start", "end", "chunk_size"),
    [
        (1, 1, 1, 1),
        (10, 1, 10, 3),
        (10, 4, 9, 4),
        (37, 2, 37, 5),
        (50, 17, 17, 8),
        (9, 1, 9, 20),
    ],
)
def test_chunks_partition_requested_range_exactly(
    total_pages: int, start: int, end: int, chunk_size: int
) -> None:
    """Chunks should cover the range contiguously in ascending order without overlap."""

    chunks = build_chunks(total_pages, PageRange(start, end), chunk_size)

    covered = [
        page
        for chunk in chunks
        for page in range(chunk.page_range.start, chunk.page_range.end + 1)
    ]
    assert covered == list(range(start, end + 1))
    assert all(chunk.page_range.page_count >= 1 for chunk in chunks)
    assert all(chunk.page_range.page_count <= chunk_size for chunk in chunks)
    expected_batches = math.ceil((end - start + 1) / chunk_size)
    assert len(chunks) == expected_batches
    assert all(chunk.total_batches == expected_batches for chunk in chunks)


def test_total_batches_for_empty_range_is_zero() -> None:
    """No pages means no batches."""

    assert total_batches_for(0, 5) == 0
    assert total_batches_for(11, 5) == 3
