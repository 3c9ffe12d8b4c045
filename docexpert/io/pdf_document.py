"""PDF document helpers backed by `pypdf`.

Responsibilities:
- Load PDF files into immutable `SourceDocument` handles.
- Repair mildly malformed files by copying every page into a fresh document.
- Copy inclusive page ranges into standalone documents and serialize them.
"""

from __future__ import annotations

import base64
import io
from pathlib import Path

from pypdf import PdfReader, PdfWriter

from ..errors import EncodingError
from ..models.datatypes import PageRange, SourceDocument
from ..telemetry.logger import RunLogger


def open_reader(data: bytes, password: str | None = None) -> PdfReader:
    """Parse PDF bytes leniently, decrypting with `password` (or empty) when needed."""

    try:
        reader = PdfReader(io.BytesIO(data), strict=False)
    except Exception as exc:
        raise EncodingError(f"Could not parse PDF document: {exc}") from exc

    if reader.is_encrypted:
        try:
            decrypted = reader.decrypt(password or "")
        except Exception as exc:
            raise EncodingError(f"Could not decrypt PDF document: {exc}") from exc
        if not decrypted:
            raise EncodingError("PDF document is password protected.")
    return reader


def repair_pdf_bytes(data: bytes, password: str | None = None) -> bytes:
    """Rebuild a PDF by copying every page into a new document."""

    reader = open_reader(data, password=password)
    writer = PdfWriter()
    try:
        for page in reader.pages:
            writer.add_page(page)
        buffer = io.BytesIO()
        writer.write(buffer)
    except Exception as exc:
        raise EncodingError(f"Could not rebuild PDF document: {exc}") from exc
    return buffer.getvalue()


def copy_page_range(reader: PdfReader, page_range: PageRange) -> PdfWriter:
    """Copy the inclusive 1-based `page_range` into a new writer."""

    page_total = len(reader.pages)
    if not page_range.is_valid_for(page_total):
        raise EncodingError(
            f"Page range {page_range.label} is outside the document bounds (1-{page_total})."
        )
    writer = PdfWriter()
    try:
        for page_index in range(page_range.start - 1, page_range.end):
            writer.add_page(reader.pages[page_index])
    except Exception as exc:
        raise EncodingError(f"Could not copy pages {page_range.label}: {exc}") from exc
    return writer


def serialize_base64(writer: PdfWriter) -> str:
    """Serialize a writer to a base64 ASCII string."""

    buffer = io.BytesIO()
    try:
        writer.write(buffer)
    except Exception as exc:
        raise EncodingError(f"Could not serialize PDF chunk: {exc}") from exc
    return base64.b64encode(buffer.getvalue()).decode("ascii")


def source_document_from_bytes(
    data: bytes,
    *,
    name: str = "document.pdf",
    last_modified: float | None = None,
    password: str | None = None,
    original_size: int | None = None,
) -> SourceDocument:
    """Build a `SourceDocument` from raw bytes, counting pages with `pypdf`."""

    reader = open_reader(data, password=password)
    try:
        page_count = len(reader.pages)
    except Exception as exc:
        raise EncodingError(f"Could not read PDF page tree: {exc}") from exc
    return SourceDocument(
        data=data,
        page_count=page_count,
        name=name,
        last_modified=last_modified,
        original_size=original_size,
    )


def load_source_document(
    pdf_path: Path,
    *,
    repair: bool = True,
    password: str | None = None,
    run_logger: RunLogger | None = None,
) -> SourceDocument:
    """Load a PDF file, repairing its structure on a best-effort basis.

    The fingerprint of the returned document is based on the file name, the
    original file size, and the file modification time, so repeated loads of
    an unchanged file produce the same cache identity even after repair.
    """

    if not pdf_path.exists():
        raise FileNotFoundError(f"Input PDF not found: {pdf_path}")

    original = pdf_path.read_bytes()
    last_modified = pdf_path.stat().st_mtime
    data = original
    if repair:
        try:
            data = repair_pdf_bytes(original, password=password)
        except EncodingError as exc:
            if run_logger is not None:
                run_logger.log_event(
                    "WARNING",
                    "repair_skipped",
                    "load",
                    reason=type(exc).__name__,
                )
            data = original

    return source_document_from_bytes(
        data,
        name=pdf_path.name,
        last_modified=last_modified,
        password=password,
        original_size=len(original),
    )
