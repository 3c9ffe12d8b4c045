"""docexpert pipeline package.

This package contains chunk planning, chunk encoding, run orchestration, and
output helpers for extracted text and resume state.
"""

from .chunk_builder import DEFAULT_CHUNK_SIZE, build_chunks
from .chunk_encoder import ChunkEncoder
from .orchestrator import ExtractionPipeline, final_result

__all__ = [
    "DEFAULT_CHUNK_SIZE",
    "ChunkEncoder",
    "ExtractionPipeline",
    "build_chunks",
    "final_result",
]
