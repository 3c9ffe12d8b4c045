"""Fingerprinted TTL cache for whole-document extraction results.

Responsibilities:
- Build deterministic keys from a file identity and the analysis parameters.
- Store JSON-serializable payloads with a write timestamp and a fixed 24h TTL.
- Evict stale entries lazily when they are read.

Key types:
- `SqliteResultCache`: persistent cache with an explicit `open()/close()` lifecycle.
- `InMemoryResultCache`: dictionary-backed cache used by tests and one-shot runs.
"""

from __future__ import annotations

import json
import sqlite3
import threading
from hashlib import sha256
from pathlib import Path
from time import time
from typing import Any, Callable, Protocol

from ..models.datatypes import CacheEntry, PageRange, TranslationConfig, file_fingerprint

CACHE_TTL_SECONDS = 24 * 60 * 60
_CACHE_TTL_MS = CACHE_TTL_SECONDS * 1000


class ResultCache(Protocol):
    """Protocol for the extraction result cache."""

    def get(self, key: str) -> Any | None:
        """Return the payload for `key`, or `None` when absent or stale."""

    def set(self, key: str, payload: Any) -> None:
        """Store `payload` under `key` with the current timestamp."""


def analysis_cache_key(
    fingerprint: str,
    *,
    page_range: PageRange,
    chunk_size: int,
    translation: TranslationConfig | None,
    provider: str,
    model: str,
) -> str:
    """Build a cache key for one extraction request over one file identity."""

    identity = {
        "page_range": page_range.label,
        "chunk_size": chunk_size,
        "translation": translation.as_payload() if translation is not None else None,
        "provider": provider.strip().lower(),
        "model": model.strip(),
    }
    canonical = json.dumps(identity, sort_keys=True, ensure_ascii=True, separators=(",", ":"))
    identity_hash = sha256(canonical.encode("utf-8")).hexdigest()
    return f"extract:{fingerprint}:{identity_hash}"


def _now_ms(clock: Callable[[], float]) -> int:
    return int(round(clock() * 1000))


def _is_stale(timestamp_ms: int, now_ms: int) -> bool:
    return now_ms - timestamp_ms > _CACHE_TTL_MS


class InMemoryResultCache:
    """Dictionary-backed cache with the same TTL semantics as the SQLite cache."""

    def __init__(self, clock: Callable[[], float] = time) -> None:
        """Initialize an empty cache using `clock` for epoch-second timestamps."""

        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}

    def get(self, key: str) -> Any | None:
        """Return a fresh payload for `key`; drop and ignore stale entries."""

        entry = self._entries.get(key)
        if entry is None:
            return None
        if _is_stale(entry.timestamp_ms, _now_ms(self._clock)):
            del self._entries[key]
            return None
        return entry.payload

    def set(self, key: str, payload: Any) -> None:
        """Store `payload` under `key`."""

        # Round-trip through JSON so stored payloads match the SQLite backend.
        stored = json.loads(json.dumps(payload))
        self._entries[key] = CacheEntry(key=key, payload=stored, timestamp_ms=_now_ms(self._clock))

    def delete(self, key: str) -> None:
        """Remove one entry if present."""

        self._entries.pop(key, None)

    def clear(self) -> None:
        """Remove all entries."""

        self._entries.clear()

    def purge_expired(self) -> int:
        """Remove all stale entries and return how many were removed."""

        now_ms = _now_ms(self._clock)
        stale_keys = [key for key, entry in self._entries.items() if _is_stale(entry.timestamp_ms, now_ms)]
        for key in stale_keys:
            del self._entries[key]
        return len(stale_keys)

    def __len__(self) -> int:
        return len(self._entries)


class SqliteResultCache:
    """SQLite-backed cache storing JSON payloads keyed by fingerprint strings."""

    _SCHEMA = """
        CREATE TABLE IF NOT EXISTS result_cache (
            key TEXT PRIMARY KEY,
            payload TEXT NOT NULL,
            timestamp_ms INTEGER NOT NULL
        )
    """

    def __init__(self, db_path: str | Path, clock: Callable[[], float] = time) -> None:
        """Initialize cache settings; the database opens on `open()` or first use."""

        self.db_path = Path(db_path)
        self._clock = clock
        self._lock = threading.Lock()
        self._conn: sqlite3.Connection | None = None

    def open(self) -> SqliteResultCache:
        """Open the database connection and create the schema when missing."""

        with self._lock:
            if self._conn is None:
                self.db_path.parent.mkdir(parents=True, exist_ok=True)
                conn = sqlite3.connect(
                    str(self.db_path),
                    check_same_thread=False,
                    isolation_level=None,
                )
                conn.execute(self._SCHEMA)
                self._conn = conn
        return self

    def close(self) -> None:
        """Close the database connection; the cache may be reopened later."""

        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None

    def __enter__(self) -> SqliteResultCache:
        return self.open()

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _connection(self) -> sqlite3.Connection:
        if self._conn is None:
            self.open()
        assert self._conn is not None
        return self._conn

    def get(self, key: str) -> Any | None:
        """Return a fresh payload for `key`; delete and ignore stale entries."""

        conn = self._connection()
        with self._lock:
            row = conn.execute(
                "SELECT payload, timestamp_ms FROM result_cache WHERE key = ?",
                (key,),
            ).fetchone()
            if row is None:
                return None
            payload_text, timestamp_ms = row
            if _is_stale(int(timestamp_ms), _now_ms(self._clock)):
                conn.execute("DELETE FROM result_cache WHERE key = ?", (key,))
                return None
        return json.loads(payload_text)

    def entry(self, key: str) -> CacheEntry | None:
        """Return the raw entry for `key` without TTL filtering."""

        conn = self._connection()
        with self._lock:
            row = conn.execute(
                "SELECT payload, timestamp_ms FROM result_cache WHERE key = ?",
                (key,),
            ).fetchone()
        if row is None:
            return None
        return CacheEntry(key=key, payload=json.loads(row[0]), timestamp_ms=int(row[1]))

    def set(self, key: str, payload: Any) -> None:
        """Store `payload` under `key`, replacing any previous entry.

        Raises:
            TypeError: If `payload` is not JSON-serializable.
            sqlite3.Error: If the database write fails.
        """

        payload_text = json.dumps(payload, ensure_ascii=False)
        conn = self._connection()
        with self._lock:
            conn.execute(
                "INSERT OR REPLACE INTO result_cache (key, payload, timestamp_ms) VALUES (?, ?, ?)",
                (key, payload_text, _now_ms(self._clock)),
            )

    def delete(self, key: str) -> None:
        """Remove one entry if present."""

        conn = self._connection()
        with self._lock:
            conn.execute("DELETE FROM result_cache WHERE key = ?", (key,))

    def clear(self) -> None:
        """Remove all entries."""

        conn = self._connection()
        with self._lock:
            conn.execute("DELETE FROM result_cache")

    def purge_expired(self) -> int:
        """Remove all stale entries and return how many were removed."""

        threshold = _now_ms(self._clock) - _CACHE_TTL_MS
        conn = self._connection()
        with self._lock:
            cursor = conn.execute("DELETE FROM result_cache WHERE timestamp_ms < ?", (threshold,))
        return int(cursor.rowcount)

    def count(self) -> int:
        """Return the number of stored entries, including stale ones."""

        conn = self._connection()
        with self._lock:
            row = conn.execute("SELECT COUNT(*) FROM result_cache").fetchone()
        return int(row[0])
