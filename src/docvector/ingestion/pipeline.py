"""Pipeline orchestrator — load → chunk → embed for one uploaded file.

Usage::

    from docvector.ingestion.pipeline import DocumentPipeline

    pipeline = DocumentPipeline()
    results  = await pipeline.process("/tmp/upload.pdf", api_key)

The input file is owned by the pipeline for the duration of the call and
is deleted afterwards, whether processing succeeded or not.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Callable

from docvector.config import settings
from docvector.exceptions import ChunkError, EmbedError, LoadError, PipelineError
from docvector.ingestion.base import EmbeddingProvider, Loader, Splitter
from docvector.ingestion.chunker import TextChunker
from docvector.ingestion.embedder import EmbedderClient, build_embedding_provider
from docvector.ingestion.loader import PDFLoader
from docvector.ingestion.models import EmbeddingResult, ProcessOptions

logger = logging.getLogger(__name__)

ProviderFactory = Callable[[str], EmbeddingProvider]
SplitterFactory = Callable[[int, int], Splitter]


class DocumentPipeline:
    """Sequence the three stages and tag failures with the stage name.

    Parameters
    ----------
    loader:
        Extracts documents from the input file.  Defaults to :class:`PDFLoader`.
    provider_factory:
        Builds an embedding provider from the per-request credential.
    splitter_factory:
        Builds a splitter from ``(chunk_size, chunk_overlap)``.
    max_concurrency:
        Upper bound on concurrent embedding calls.
    embed_timeout:
        Per-call embedding timeout in seconds.
    """

    def __init__(
        self,
        loader: Loader | None = None,
        provider_factory: ProviderFactory | None = None,
        splitter_factory: SplitterFactory | None = None,
        *,
        max_concurrency: int | None = None,
        embed_timeout: float | None = None,
    ) -> None:
        self.loader = loader or PDFLoader()
        self.provider_factory = provider_factory or build_embedding_provider
        self.splitter_factory = splitter_factory or TextChunker
        self.max_concurrency = max_concurrency or settings.embed_max_concurrency
        self.embed_timeout = embed_timeout if embed_timeout is not None else settings.embed_timeout

    async def process(
        self,
        file_path: str | Path,
        credential: str,
        options: ProcessOptions | None = None,
    ) -> list[EmbeddingResult]:
        """Run the pipeline on *file_path* and delete the file afterwards.

        Raises
        ------
        PipelineError
            Wrapping the first :class:`LoadError`, :class:`ChunkError` or
            :class:`EmbedError`; ``stage`` is ``"load"``, ``"chunk"`` or
            ``"embed"``.
        """
        path = Path(file_path)
        options = options or ProcessOptions()
        try:
            try:
                documents = await asyncio.to_thread(self.loader.load, path)
            except LoadError as exc:
                raise PipelineError("load", exc, secret=credential) from exc

            try:
                splitter = self.splitter_factory(options.chunk_size, options.chunk_overlap)
                chunks = splitter.split(documents)
            except ChunkError as exc:
                raise PipelineError("chunk", exc, secret=credential) from exc

            try:
                try:
                    provider = self.provider_factory(credential)
                except Exception as exc:  # noqa: BLE001
                    raise EmbedError(None, exc) from exc
                client = EmbedderClient(
                    provider,
                    max_concurrency=self.max_concurrency,
                    timeout=self.embed_timeout,
                )
                results = await client.embed(chunks)
            except EmbedError as exc:
                raise PipelineError("embed", exc, secret=credential) from exc
        except PipelineError as exc:
            logger.error("Pipeline failed for %s at %s stage: %s", path.name, exc.stage, exc.message)
            raise
        finally:
            _remove_file(path)

        logger.info(
            "Processed %s: %d pages, %d chunks, %d vectors",
            path.name, len(documents), len(chunks), len(results),
        )
        return results


def _remove_file(path: Path) -> None:
    try:
        path.unlink(missing_ok=True)
    except OSError as exc:
        logger.error("Failed to delete temporary file %s: %s", path, exc)
