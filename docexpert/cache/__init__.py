"""Extraction result caching.

This package holds the fingerprinted TTL cache consulted before a whole
extraction request is recomputed.
"""

from .result_cache import (
    CACHE_TTL_SECONDS,
    InMemoryResultCache,
    ResultCache,
    SqliteResultCache,
    analysis_cache_key,
    file_fingerprint,
)

__all__ = [
    "CACHE_TTL_SECONDS",
    "InMemoryResultCache",
    "ResultCache",
    "SqliteResultCache",
    "analysis_cache_key",
    "file_fingerprint",
]
