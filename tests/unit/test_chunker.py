"""Unit tests for the chunker module."""

import pytest
from langchain_core.documents import Document

from docvector.exceptions import ChunkError
from docvector.ingestion.chunker import TextChunker, chunk_documents


def test_short_document_yields_single_chunk() -> None:
    """A document no longer than chunk_size comes back whole."""
    text = "A short paragraph about embeddings."
    chunks = chunk_documents([Document(page_content=text, metadata={"source": "a.pdf"})])
    assert len(chunks) == 1
    assert chunks[0].page_content == text


def test_document_exactly_chunk_size_is_one_chunk() -> None:
    text = "B" * 1000
    chunks = chunk_documents([Document(page_content=text)], chunk_size=1000, chunk_overlap=200)
    assert [c.page_content for c in chunks] == [text]


def test_uniform_text_overlaps_exactly() -> None:
    """2000 'A's at 1000/200: chunk[1] starts with the last 200 chars of chunk[0]."""
    docs = [Document(page_content="A" * 2000, metadata={"source": "test"})]
    chunks = chunk_documents(docs, chunk_size=1000, chunk_overlap=200)
    assert len(chunks) >= 2
    first, second = chunks[0].page_content, chunks[1].page_content
    assert second.startswith(first[-200:])
    assert all(len(c.page_content) <= 1000 for c in chunks)


def test_long_text_splits_on_word_boundaries() -> None:
    long_text = "word " * 500  # ~2500 chars
    chunks = chunk_documents([Document(page_content=long_text)], chunk_size=256, chunk_overlap=32)
    assert len(chunks) > 1
    assert all(len(c.page_content) <= 256 for c in chunks)
    assert all(not c.page_content.startswith(" ") for c in chunks)


def test_paragraph_breaks_are_preferred() -> None:
    para_a = "First paragraph sentence. " * 10
    para_b = "Second paragraph sentence. " * 10
    text = f"{para_a.strip()}\n\n{para_b.strip()}"
    chunks = chunk_documents([Document(page_content=text)], chunk_size=300, chunk_overlap=50)
    assert chunks[0].page_content == para_a.strip()


def test_oversized_token_is_kept() -> None:
    """A single unsplittable token longer than chunk_size is never dropped."""
    token = "x" * 50
    chunks = TextChunker(chunk_size=20, chunk_overlap=5, separators=["\n\n", "\n", " "]).split(
        [Document(page_content=f"hi {token} there")]
    )
    assert any(token in c.page_content for c in chunks)
    assert any(len(c.page_content) > 20 for c in chunks)


def test_metadata_is_preserved_with_chunk_index() -> None:
    """Metadata from the source document should be preserved in chunks."""
    docs = [Document(page_content="word " * 300, metadata={"source": "test.pdf", "page": 3})]
    chunks = chunk_documents(docs, chunk_size=200, chunk_overlap=20)
    assert all(c.metadata["source"] == "test.pdf" and c.metadata["page"] == 3 for c in chunks)
    assert [c.metadata["chunk_index"] for c in chunks] == list(range(len(chunks)))
    assert "chunk_index" not in docs[0].metadata


def test_chunk_index_restarts_per_document() -> None:
    docs = [
        Document(page_content="one " * 100, metadata={"page": 0}),
        Document(page_content="two " * 100, metadata={"page": 1}),
    ]
    chunks = chunk_documents(docs, chunk_size=120, chunk_overlap=10)
    second_doc = [c for c in chunks if c.metadata["page"] == 1]
    assert second_doc[0].metadata["chunk_index"] == 0


def test_empty_input() -> None:
    """An empty list should return an empty list."""
    assert chunk_documents([]) == []


@pytest.mark.parametrize(
    ("chunk_size", "chunk_overlap"),
    [(100, 100), (100, 150), (0, 0), (-5, 0), (100, -1)],
)
def test_invalid_configuration_raises(chunk_size: int, chunk_overlap: int) -> None:
    with pytest.raises(ChunkError):
        TextChunker(chunk_size=chunk_size, chunk_overlap=chunk_overlap)


def test_overlap_error_message_names_both_values() -> None:
    with pytest.raises(ChunkError, match=r"chunk_overlap \(1000\) must be < chunk_size \(1000\)"):
        TextChunker(chunk_size=1000, chunk_overlap=1000)
