"""Chunk serialization for provider transport.

Responsibilities:
- Copy one page range of a source document into a standalone PDF.
- Encode the chunk as base64 and estimate its decoded byte size.
"""

from __future__ import annotations

from pypdf import PdfReader

from ..io.pdf_document import copy_page_range, open_reader, serialize_base64
from ..models.datatypes import EncodedChunk, PageRange, SourceDocument

# base64 emits 4 characters per 3 bytes.
_BASE64_DECODED_RATIO = 0.75


class ChunkEncoder:
    """Encode page-range chunks of a `SourceDocument` as base64 PDF payloads."""

    def __init__(self, password: str | None = None) -> None:
        """Initialize the encoder with an optional document password."""

        self._password = password
        self._loaded: tuple[SourceDocument, PdfReader] | None = None

    def encode(self, source: SourceDocument, page_range: PageRange) -> EncodedChunk:
        """Extract `page_range` into a new document and serialize it.

        Raises:
            EncodingError: If the source cannot be parsed or pages cannot be copied.
        """

        reader = self._reader_for(source)
        writer = copy_page_range(reader, page_range)
        payload = serialize_base64(writer)
        return EncodedChunk(
            payload=payload,
            size_estimate_bytes=len(payload) * _BASE64_DECODED_RATIO,
        )

    def _reader_for(self, source: SourceDocument) -> PdfReader:
        """Return a parsed reader for `source`, reusing the last one when identical."""

        if self._loaded is not None and self._loaded[0] is source:
            return self._loaded[1]
        reader = open_reader(source.data, password=self._password)
        self._loaded = (source, reader)
        return reader
