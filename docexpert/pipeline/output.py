"""Output helpers for extraction results.

Responsibilities:
- Derive export file names from the source name and translation settings.
- Split extracted text on page separators.
- Persist and load resumable `ExtractionState` files.
"""

from __future__ import annotations

import re
from pathlib import Path

from ..io.storage import ArtifactStore
from ..llm.prompts import PAGE_SEPARATOR
from ..models.datatypes import ExtractionState, TranslationConfig

STATE_SUFFIX = ".state.json"


def export_stem(source_name: str, translation: TranslationConfig | None = None) -> str:
    """Return the export stem, e.g. `report_Extracted_Translated_EN`."""

    stem = Path(source_name).stem or "document"
    stem = re.sub(r"[^\w.-]+", "_", stem).strip("_") or "document"
    if translation is None:
        return f"{stem}_Extracted"
    language = re.sub(r"[^\w-]+", "_", translation.target_language).strip("_").upper()
    return f"{stem}_Extracted_Translated_{language or 'XX'}"


def export_filename(source_name: str, translation: TranslationConfig | None = None) -> str:
    """Return the `.txt` file name used for extracted output."""

    return f"{export_stem(source_name, translation)}.txt"


def state_filename(source_name: str, translation: TranslationConfig | None = None) -> str:
    """Return the resume-state file name paired with an export."""

    return f"{export_stem(source_name, translation)}{STATE_SUFFIX}"


def split_pages(text: str) -> list[str]:
    """Split extracted text on page separators, dropping empty pages."""

    return [page.strip() for page in text.split(PAGE_SEPARATOR) if page.strip()]


def save_state(store: ArtifactStore, relative_path: Path, state: ExtractionState) -> Path:
    """Write `state` as JSON and return the final path."""

    return store.save_json(relative_path, state.as_payload())


def load_state(path: Path) -> ExtractionState:
    """Load an `ExtractionState` from a JSON file.

    Raises:
        ValueError: If the file is malformed.
    """

    store = ArtifactStore(path.parent)
    return ExtractionState.from_payload(store.load_json(Path(path.name)))
