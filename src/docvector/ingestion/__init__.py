"""
Ingestion — PDF loading, chunking, and embedding.

This module converts an uploaded PDF into per-chunk vector embeddings:
load → chunk → embed, sequenced by :class:`DocumentPipeline`.
"""

from docvector.ingestion.base import EmbeddingProvider, Loader, Splitter
from docvector.ingestion.models import EmbeddingResult, ProcessOptions
from docvector.ingestion.pipeline import DocumentPipeline

__all__ = [
    "DocumentPipeline",
    "EmbeddingProvider",
    "EmbeddingResult",
    "Loader",
    "ProcessOptions",
    "Splitter",
]
