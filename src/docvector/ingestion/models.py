"""Domain models for pipeline options and embedding results."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from docvector.config import settings


class ProcessOptions(BaseModel):
    """Per-request chunking options.

    Attributes
    ----------
    chunk_size:
        Maximum characters per chunk.
    chunk_overlap:
        Characters shared by consecutive chunks.  Validated by the chunker,
        not here, so that bad values surface as a ``chunk`` stage failure.
    """

    chunk_size: int = Field(default_factory=lambda: settings.chunk_size)
    chunk_overlap: int = Field(default_factory=lambda: settings.chunk_overlap)


class EmbeddingResult(BaseModel):
    """One embedded chunk: original text, vector, and source metadata."""

    content: str
    vector: list[float]
    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def dimension(self) -> int:
        return len(self.vector)
