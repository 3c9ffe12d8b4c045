"""Shared typed data models for docexpert.

This package contains dataclasses used across pipeline modules to avoid
cross-module coupling and circular imports.
"""

from .datatypes import (
    CacheEntry,
    ChunkDescriptor,
    ChunkFailure,
    EncodedChunk,
    ExtractionResult,
    ExtractionState,
    PageRange,
    PipelineEvent,
    ProgressEvent,
    SourceDocument,
    TranslationConfig,
    file_fingerprint,
)

__all__ = [
    "CacheEntry",
    "ChunkDescriptor",
    "ChunkFailure",
    "EncodedChunk",
    "ExtractionResult",
    "ExtractionState",
    "PageRange",
    "PipelineEvent",
    "ProgressEvent",
    "SourceDocument",
    "TranslationConfig",
    "file_fingerprint",
]
