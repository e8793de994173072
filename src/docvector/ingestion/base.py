"""Capability interfaces for the three pipeline stages.

The orchestrator depends only on these contracts.  Concrete backends
(pypdf, LangChain's recursive splitter, Hugging Face Inference) live in
the sibling modules; tests substitute in-memory fakes.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from langchain_core.documents import Document


class Loader(ABC):
    """Turns a file on disk into an ordered list of documents."""

    @abstractmethod
    def load(self, path: str | Path) -> list[Document]:
        """Return one or more documents per page, in page order.

        Raises
        ------
        LoadError
            When the file is unreadable, not a valid PDF, or has no text.
        """
        ...


class Splitter(ABC):
    """Splits documents into bounded, overlapping chunks."""

    @abstractmethod
    def split(self, documents: list[Document]) -> list[Document]:
        """Return chunks in source order, each carrying its source metadata."""
        ...


class EmbeddingProvider(ABC):
    """Maps one piece of text to a fixed-dimensionality vector."""

    #: Identifier of the underlying model, reported in logs.
    model_name: str = "unknown"

    @abstractmethod
    async def embed_query(self, text: str) -> list[float]:
        """Embed *text*.  Any exception is treated as a failed call."""
        ...
