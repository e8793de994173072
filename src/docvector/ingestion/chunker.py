"""Text chunking with recursive separator preference."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from langchain_text_splitters import RecursiveCharacterTextSplitter

from docvector.exceptions import ChunkError
from docvector.ingestion.base import Splitter

if TYPE_CHECKING:
    from langchain_core.documents import Document

logger = logging.getLogger(__name__)

# Paragraph, line, sentence, word, character.
DEFAULT_SEPARATORS = ["\n\n", "\n", ". ", " ", ""]


class TextChunker(Splitter):
    """Split documents into chunks of at most ``chunk_size`` characters.

    Consecutive chunks of the same document share up to ``chunk_overlap``
    characters.  A single token longer than ``chunk_size`` is emitted as an
    oversized chunk rather than dropped.

    Parameters
    ----------
    chunk_size:
        Maximum number of characters per chunk.
    chunk_overlap:
        Number of overlapping characters between consecutive chunks.
    separators:
        Split boundaries, in priority order.

    Raises
    ------
    ChunkError
        When ``chunk_size`` is not positive, ``chunk_overlap`` is negative,
        or ``chunk_overlap >= chunk_size``.
    """

    def __init__(
        self,
        chunk_size: int = 1000,
        chunk_overlap: int = 200,
        separators: list[str] | None = None,
    ) -> None:
        if chunk_size <= 0:
            raise ChunkError(f"chunk_size ({chunk_size}) must be positive", chunk_size=chunk_size)
        if chunk_overlap < 0:
            raise ChunkError(
                f"chunk_overlap ({chunk_overlap}) must not be negative", chunk_overlap=chunk_overlap
            )
        if chunk_overlap >= chunk_size:
            raise ChunkError(
                f"chunk_overlap ({chunk_overlap}) must be < chunk_size ({chunk_size})",
                chunk_size=chunk_size,
                chunk_overlap=chunk_overlap,
            )
        self.chunk_size = chunk_size
        self.chunk_overlap = chunk_overlap
        self._splitter = RecursiveCharacterTextSplitter(
            chunk_size=chunk_size,
            chunk_overlap=chunk_overlap,
            length_function=len,
            separators=separators or DEFAULT_SEPARATORS,
        )

    def split(self, documents: list[Document]) -> list[Document]:
        chunks: list[Document] = []
        for document in documents:
            pieces = self._splitter.split_documents([document])
            for idx, piece in enumerate(pieces):
                piece.metadata["chunk_index"] = idx
            chunks.extend(pieces)

        logger.info(
            "Produced %d chunks from %d documents (size=%d, overlap=%d)",
            len(chunks), len(documents), self.chunk_size, self.chunk_overlap,
        )
        return chunks


def chunk_documents(
    documents: list[Document],
    chunk_size: int = 1000,
    chunk_overlap: int = 200,
) -> list[Document]:
    """Split *documents* into smaller chunks for embedding.

    Parameters
    ----------
    documents:
        Source documents produced by a loader.
    chunk_size:
        Maximum number of characters per chunk.
    chunk_overlap:
        Number of overlapping characters between consecutive chunks.

    Returns
    -------
    list[Document]
        Chunked documents ready for embedding.
    """
    return TextChunker(chunk_size=chunk_size, chunk_overlap=chunk_overlap).split(documents)
