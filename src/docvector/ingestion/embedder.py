"""Embedding client — concurrent per-chunk calls to an embedding provider.

Each chunk is embedded by an independent call.  Calls run concurrently
(bounded by a semaphore) and are tagged with their chunk index so results
are reassembled in input order regardless of completion order.  The first
failing call cancels the rest of the batch.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import TYPE_CHECKING

from langchain_huggingface import HuggingFaceEndpointEmbeddings
from tenacity import AsyncRetrying, stop_after_attempt, wait_exponential

from docvector.config import settings
from docvector.exceptions import EmbedError
from docvector.ingestion.base import EmbeddingProvider
from docvector.ingestion.models import EmbeddingResult

if TYPE_CHECKING:
    from langchain_core.documents import Document

logger = logging.getLogger(__name__)


class HuggingFaceEmbeddingProvider(EmbeddingProvider):
    """Hugging Face Inference API embeddings for one API key.

    The key lives only as long as this object, which the pipeline creates
    per request.
    """

    def __init__(self, api_key: str, model_name: str | None = None) -> None:
        self.model_name = model_name or settings.embedding_model
        self._embeddings = HuggingFaceEndpointEmbeddings(
            model=self.model_name,
            huggingfacehub_api_token=api_key,
        )

    async def embed_query(self, text: str) -> list[float]:
        return await self._embeddings.aembed_query(text)


class RetryingEmbeddingProvider(EmbeddingProvider):
    """Wrap a provider with bounded exponential-backoff retry per call."""

    def __init__(
        self,
        inner: EmbeddingProvider,
        *,
        max_attempts: int = 3,
        min_wait: float = 1.0,
        max_wait: float = 30.0,
    ) -> None:
        self.inner = inner
        self.model_name = inner.model_name
        self.max_attempts = max_attempts
        self.min_wait = min_wait
        self.max_wait = max_wait

    async def embed_query(self, text: str) -> list[float]:
        async for attempt in AsyncRetrying(
            reraise=True,
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(multiplier=self.min_wait, min=self.min_wait, max=self.max_wait),
        ):
            with attempt:
                if attempt.retry_state.attempt_number > 1:
                    logger.warning(
                        "Retrying embedding call (attempt %d/%d)",
                        attempt.retry_state.attempt_number, self.max_attempts,
                    )
                return await self.inner.embed_query(text)
        # unreachable due to reraise=True, but keeps type checkers happy
        raise RuntimeError("Embedding retries exhausted")


def build_embedding_provider(api_key: str) -> EmbeddingProvider:
    """Return the configured provider for *api_key*, with retry if enabled."""
    provider: EmbeddingProvider = HuggingFaceEmbeddingProvider(api_key)
    if settings.embed_max_attempts > 1:
        provider = RetryingEmbeddingProvider(provider, max_attempts=settings.embed_max_attempts)
    return provider


class EmbedderClient:
    """Embed a batch of chunks, all-or-nothing.

    Parameters
    ----------
    provider:
        Capability that embeds one text.
    max_concurrency:
        Upper bound on in-flight provider calls.
    timeout:
        Per-call timeout in seconds; ``None`` disables it.
    """

    def __init__(
        self,
        provider: EmbeddingProvider,
        *,
        max_concurrency: int = 8,
        timeout: float | None = None,
    ) -> None:
        self.provider = provider
        self.max_concurrency = max(1, max_concurrency)
        self.timeout = timeout

    async def _embed_one(self, index: int, text: str, semaphore: asyncio.Semaphore) -> tuple[int, list[float]]:
        async with semaphore:
            try:
                vector = await asyncio.wait_for(self.provider.embed_query(text), self.timeout)
                vector = [float(x) for x in vector]
            except asyncio.CancelledError:
                raise
            except Exception as exc:  # noqa: BLE001
                raise EmbedError(index, exc) from exc
        return index, vector

    async def embed(self, chunks: list[Document]) -> list[EmbeddingResult]:
        """Return one :class:`EmbeddingResult` per chunk, in input order.

        Raises
        ------
        EmbedError
            On the first failed call (remaining calls are cancelled), or when
            the provider returns vectors of differing dimensionality.
        """
        if not chunks:
            return []

        logger.info(
            "Embedding %d chunks with model=%s, max_concurrency=%d",
            len(chunks), self.provider.model_name, self.max_concurrency,
        )
        semaphore = asyncio.Semaphore(self.max_concurrency)
        vectors: list[list[float] | None] = [None] * len(chunks)
        tasks = [
            asyncio.create_task(self._embed_one(idx, chunk.page_content, semaphore))
            for idx, chunk in enumerate(chunks)
        ]

        t0 = time.monotonic()
        try:
            for finished in asyncio.as_completed(tasks):
                index, vector = await finished
                vectors[index] = vector
        except EmbedError as exc:
            logger.warning("Embedding aborted at chunk %s; cancelling remaining calls", exc.chunk_index)
            raise
        finally:
            for task in tasks:
                if not task.done():
                    task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)

        dims = {len(v) for v in vectors if v is not None}
        if len(dims) != 1:
            raise EmbedError(None, f"inconsistent vector dimensions {sorted(dims)}")

        elapsed = time.monotonic() - t0
        logger.info("Embedding complete: %d vectors (dim=%d) in %.1fs", len(vectors), dims.pop(), elapsed)

        return [
            EmbeddingResult(content=chunk.page_content, vector=vector, metadata=dict(chunk.metadata))
            for chunk, vector in zip(chunks, vectors)
        ]
