"""Integration-test fixtures for deterministic provider and keyring behavior."""

from __future__ import annotations

import base64
import io
import json
from collections.abc import Iterator
from typing import Any

import keyring
import pytest
import requests
from keyring.backend import KeyringBackend
from keyring.errors import PasswordDeleteError
from pypdf import PdfReader

from docexpert.llm.prompts import PAGE_SEPARATOR


class _MockRequestsResponse:
    """Minimal requests response mock used by integration tests."""

    def __init__(self, *, payload: bytes, status_code: int = 200) -> None:
        """Initialize response with payload bytes and status code."""

        self.content = payload
        self.status_code = status_code

    def raise_for_status(self) -> None:
        """Raise HTTP error when status code indicates failure."""

        if self.status_code >= 400:
            raise requests.HTTPError(f"HTTP {self.status_code}", response=self)


class FakeGeminiServer:
    """`requests.post` replacement answering like Gemini `generateContent`.

    Each page of the uploaded chunk is reported as `Page <n>`, where `n` is
    recovered from the page width written by `build_pdf_bytes`.
    """

    def __init__(self) -> None:
        """Initialize an empty call log and failure plan."""

        self.calls: list[dict[str, Any]] = []
        self._failures: dict[int, tuple[int, str]] = {}

    def fail_call(
        self,
        call_number: int,
        *,
        status_code: int = 429,
        message: str = "Rate limit exceeded",
    ) -> None:
        """Answer the given 1-based call with an HTTP error."""

        self._failures[call_number] = (status_code, message)

    def __call__(self, url: str, **kwargs: Any) -> _MockRequestsResponse:
        """Record the request and answer it."""

        self.calls.append({"url": url, **kwargs})
        failure = self._failures.get(len(self.calls))
        if failure is not None:
            status_code, message = failure
            body = json.dumps({"error": {"code": status_code, "message": message}})
            return _MockRequestsResponse(payload=body.encode("utf-8"), status_code=status_code)

        parts = kwargs["json"]["contents"][0]["parts"]
        chunk = base64.b64decode(parts[0]["inline_data"]["data"])
        reader = PdfReader(io.BytesIO(chunk))
        pages = [int(float(page.mediabox.width)) - 99 for page in reader.pages]
        text = f"\n{PAGE_SEPARATOR}\n".join(f"Page {number}" for number in pages)
        body = json.dumps({"candidates": [{"content": {"parts": [{"text": text}]}}]})
        return _MockRequestsResponse(payload=body.encode("utf-8"))


class InMemoryKeyring(KeyringBackend):
    """Process-local keyring backend so tests never touch the OS keychain."""

    priority = 1  # type: ignore[assignment]

    def __init__(self) -> None:
        """Initialize empty password storage."""

        super().__init__()
        self.passwords: dict[tuple[str, str], str] = {}

    def get_password(self, service: str, username: str) -> str | None:
        """Return a stored password or `None`."""

        return self.passwords.get((service, username))

    def set_password(self, service: str, username: str, password: str) -> None:
        """Store a password."""

        self.passwords[(service, username)] = password

    def delete_password(self, service: str, username: str) -> None:
        """Delete a stored password."""

        if (service, username) not in self.passwords:
            raise PasswordDeleteError("Password not found.")
        del self.passwords[(service, username)]


@pytest.fixture(autouse=True)
def memory_keyring() -> Iterator[InMemoryKeyring]:
    """Install an in-memory keyring backend for the duration of one test."""

    previous = keyring.get_keyring()
    backend = InMemoryKeyring()
    keyring.set_keyring(backend)
    yield backend
    keyring.set_keyring(previous)


@pytest.fixture(autouse=True)
def gemini_server(monkeypatch: pytest.MonkeyPatch) -> FakeGeminiServer:
    """Route provider HTTP calls to a deterministic fake Gemini endpoint."""

    server = FakeGeminiServer()
    monkeypatch.setattr(requests, "post", server)
    return server
