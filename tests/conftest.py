"""Shared pytest fixtures for the full docexpert test suite."""

from __future__ import annotations

import io
from pathlib import Path
from typing import Callable

import pytest
from pypdf import PdfWriter

_PROVIDER_KEY_ENV = (
    "GOOGLE_API_KEY",
    "OPENAI_API_KEY",
    "OPENROUTER_API_KEY",
    "MISTRAL_API_KEY",
    "DOCEXPERT_PROVIDER",
    "DOCEXPERT_MODEL",
    "DOCEXPERT_CHUNK_SIZE",
)


def build_pdf_bytes(page_count: int) -> bytes:
    """Build a blank PDF whose page `n` (1-based) is `100 + n - 1` points wide."""

    writer = PdfWriter()
    for index in range(page_count):
        writer.add_blank_page(width=100 + index, height=200)
    buffer = io.BytesIO()
    writer.write(buffer)
    return buffer.getvalue()


@pytest.fixture(autouse=True)
def _isolate_user_state(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Point settings/cache paths into `tmp_path` and clear provider env values."""

    monkeypatch.setenv("DOCEXPERT_SETTINGS_PATH", str(tmp_path / "user" / "settings.json"))
    monkeypatch.setenv("DOCEXPERT_CACHE_PATH", str(tmp_path / "user" / "cache.sqlite3"))
    for key in _PROVIDER_KEY_ENV:
        monkeypatch.delenv(key, raising=False)


@pytest.fixture
def pdf_bytes_factory() -> Callable[[int], bytes]:
    """Provide a factory for in-memory multi-page PDF payloads."""

    return build_pdf_bytes


@pytest.fixture
def pdf_file_factory(tmp_path: Path) -> Callable[..., Path]:
    """Provide a factory writing multi-page PDFs under `tmp_path`."""

    def _write(page_count: int, name: str = "sample.pdf") -> Path:
        path = tmp_path / name
        path.write_bytes(build_pdf_bytes(page_count))
        return path

    return _write
