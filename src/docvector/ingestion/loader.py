"""PDF loading — thin wrapper around LangChain's ``PyPDFLoader``."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from langchain_community.document_loaders import PyPDFLoader

from docvector.exceptions import LoadError
from docvector.ingestion.base import Loader

if TYPE_CHECKING:
    from langchain_core.documents import Document

logger = logging.getLogger(__name__)


class PDFLoader(Loader):
    """Extract one :class:`Document` per PDF page using pypdf."""

    def load(self, path: str | Path) -> list[Document]:
        path = Path(path)
        if not path.is_file():
            raise LoadError(f"File not found: {path.name}", path=str(path))

        try:
            documents = PyPDFLoader(str(path)).load()
        except Exception as exc:  # noqa: BLE001
            raise LoadError(f"Not a readable PDF: {exc}", path=str(path)) from exc

        if not any(doc.page_content.strip() for doc in documents):
            raise LoadError("PDF contains no extractable text", path=str(path))

        logger.info("Loaded %d pages from %s", len(documents), path.name)
        return documents


def load_pdf(path: str | Path) -> list[Document]:
    """Load a single PDF file."""
    return PDFLoader().load(path)
