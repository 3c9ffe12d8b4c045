"""Input/output components for docexpert.

This package contains PDF loading and slicing helpers and the artifact store
used to persist extracted text and resume state.
"""

from .pdf_document import load_source_document, repair_pdf_bytes
from .storage import ArtifactStore

__all__ = ["ArtifactStore", "load_source_document", "repair_pdf_bytes"]
