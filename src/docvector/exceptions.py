"""Exception hierarchy for the document pipeline and the auth boundary."""

from __future__ import annotations

from typing import Any


class DocvectorError(Exception):
    """Base exception for all docvector errors."""

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)


class LoadError(DocvectorError):
    """The input file is unreadable, not a PDF, or contains no text."""

    def __init__(self, message: str = "Failed to load PDF", path: str | None = None) -> None:
        details = {"path": path} if path else {}
        super().__init__(message=message, code="LOAD_ERROR", details=details)


class ChunkError(DocvectorError):
    """Invalid chunking configuration."""

    def __init__(self, message: str = "Invalid chunk configuration", **details: Any) -> None:
        super().__init__(message=message, code="CHUNK_ERROR", details=details)


class EmbedError(DocvectorError):
    """An embedding call failed; carries the index of the failing chunk."""

    def __init__(self, chunk_index: int | None, cause: BaseException | str) -> None:
        self.chunk_index = chunk_index
        self.cause = cause
        where = f"chunk {chunk_index}" if chunk_index is not None else "batch"
        super().__init__(
            message=f"Embedding failed for {where}: {cause}",
            code="EMBED_ERROR",
            details={"chunk_index": chunk_index},
        )


class SessionError(DocvectorError):
    """Identity-provider code exchange or session lookup failed."""

    def __init__(self, message: str = "Session lookup failed", details: dict[str, Any] | None = None) -> None:
        super().__init__(message=message, code="SESSION_ERROR", details=details)


class PipelineError(DocvectorError):
    """Failure of one pipeline stage, tagged with the stage name."""

    def __init__(self, stage: str, cause: DocvectorError, secret: str | None = None) -> None:
        self.stage = stage
        self.cause = cause
        message = f"{stage} stage failed: {cause.message}"
        if secret:
            message = message.replace(secret, "***")
        super().__init__(
            message=message,
            code="PIPELINE_ERROR",
            details={"stage": stage, "cause": cause.code},
        )
