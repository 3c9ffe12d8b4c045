"""Page-range chunk planning for PDF extraction runs.

Responsibilities:
- Clamp a requested page range into the document bounds.
- Partition the range into ordered, contiguous, non-empty chunks.
"""

from __future__ import annotations

from ..models.datatypes import ChunkDescriptor, PageRange

DEFAULT_CHUNK_SIZE = 5


def total_batches_for(page_count: int, chunk_size: int) -> int:
    """Return `ceil(page_count / chunk_size)` for non-negative page counts."""

    if page_count <= 0:
        return 0
    return (page_count + chunk_size - 1) // chunk_size


def build_chunks(
    total_pages: int,
    requested: PageRange,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> list[ChunkDescriptor]:
    """Split a requested page range into chunk descriptors of `chunk_size` pages.

    Args:
        total_pages: Page count of the source document.
        requested: Inclusive 1-based range requested by the caller.
        chunk_size: Pages per chunk; must be at least 1.

    Returns:
        Chunks in ascending page order, or an empty list when the clamped
        range is empty.

    Raises:
        ValueError: If `chunk_size` is lower than 1.
    """

    if isinstance(chunk_size, bool) or not isinstance(chunk_size, int) or chunk_size < 1:
        raise ValueError("`chunk_size` must be a positive integer.")

    clamped = requested.clamp(total_pages)
    if clamped is None:
        return []

    total_batches = total_batches_for(clamped.page_count, chunk_size)
    chunks: list[ChunkDescriptor] = []
    for index in range(total_batches):
        chunk_start = clamped.start + index * chunk_size
        chunk_end = min(chunk_start + chunk_size - 1, clamped.end)
        chunks.append(
            ChunkDescriptor(
                index=index,
                page_range=PageRange(start=chunk_start, end=chunk_end),
                batch_number=index + 1,
                total_batches=total_batches,
            )
        )
    return chunks
