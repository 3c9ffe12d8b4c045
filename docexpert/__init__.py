"""Top-level package for docexpert.

This package splits large PDFs into page-range chunks, sends each chunk to an
AI provider for Markdown text extraction (optionally with translation), and
can resume a failed run from the exact batch that failed. The main
orchestration entry point is `ExtractionPipeline`.
"""

__version__ = "0.1.0"

from .pipeline import ExtractionPipeline

__all__ = ["ExtractionPipeline", "__version__"]
