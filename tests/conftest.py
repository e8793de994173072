"""Shared pytest configuration and fixtures."""

from __future__ import annotations

import asyncio
from pathlib import Path

import pytest
from langchain_core.documents import Document

from docvector.auth.provider import IdentityProvider, Session
from docvector.exceptions import LoadError, SessionError
from docvector.ingestion.base import EmbeddingProvider, Loader


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "integration: marks tests requiring external services")


# ── PDF bytes ──────────────────────────────────────────────────────────


def make_pdf(pages: list[str]) -> bytes:
    """Build a minimal single-font PDF with one text line per page."""
    objects: list[bytes] = []
    page_ids = [4 + 2 * i for i in range(len(pages))]
    objects.append(b"<< /Type /Catalog /Pages 2 0 R >>")
    kids = " ".join(f"{pid} 0 R" for pid in page_ids)
    objects.append(f"<< /Type /Pages /Kids [{kids}] /Count {len(pages)} >>".encode())
    objects.append(b"<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica >>")
    for i, text in enumerate(pages):
        content_id = page_ids[i] + 1
        objects.append(
            (
                f"<< /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792] "
                f"/Resources << /Font << /F1 3 0 R >> >> /Contents {content_id} 0 R >>"
            ).encode()
        )
        escaped = text.replace("\\", "\\\\").replace("(", "\\(").replace(")", "\\)")
        stream = f"BT /F1 12 Tf 72 720 Td ({escaped}) Tj ET".encode() if text else b""
        objects.append(b"<< /Length %d >>\nstream\n" % len(stream) + stream + b"\nendstream")

    out = bytearray(b"%PDF-1.4\n")
    offsets = []
    for number, body in enumerate(objects, 1):
        offsets.append(len(out))
        out += b"%d 0 obj\n" % number + body + b"\nendobj\n"
    xref_at = len(out)
    out += b"xref\n0 %d\n0000000000 65535 f \n" % (len(objects) + 1)
    for offset in offsets:
        out += b"%010d 00000 n \n" % offset
    out += b"trailer\n<< /Size %d /Root 1 0 R >>\nstartxref\n%d\n%%%%EOF\n" % (len(objects) + 1, xref_at)
    return bytes(out)


@pytest.fixture()
def pdf_file(tmp_path: Path) -> Path:
    """A two-page PDF with extractable text."""
    path = tmp_path / "sample.pdf"
    path.write_bytes(make_pdf(["Hello from page one", "Second page text"]))
    return path


# ── Fakes ──────────────────────────────────────────────────────────────


class FakeLoader(Loader):
    """Returns canned documents and records the paths it was asked to load."""

    def __init__(self, documents: list[Document] | None = None, error: LoadError | None = None) -> None:
        self.documents = documents if documents is not None else [
            Document(page_content="Alpha page. " * 5, metadata={"source": "fake.pdf", "page": 0}),
            Document(page_content="Beta page. " * 5, metadata={"source": "fake.pdf", "page": 1}),
        ]
        self.error = error
        self.paths: list[Path] = []

    def load(self, path):  # noqa: ANN001, ANN201
        self.paths.append(Path(path))
        if self.error is not None:
            raise self.error
        return self.documents


class FakeEmbeddingProvider(EmbeddingProvider):
    """Deterministic fixed-dimension embeddings with optional delays and failures."""

    model_name = "fake-embedding"

    def __init__(
        self,
        dim: int = 384,
        *,
        fail_on: set[str] | None = None,
        delays: dict[str, float] | None = None,
        error: Exception | None = None,
    ) -> None:
        self.dim = dim
        self.fail_on = fail_on or set()
        self.delays = delays or {}
        self.error = error
        self.calls: list[str] = []
        self.cancelled: list[str] = []

    async def embed_query(self, text: str) -> list[float]:
        self.calls.append(text)
        try:
            await asyncio.sleep(self.delays.get(text, 0))
        except asyncio.CancelledError:
            self.cancelled.append(text)
            raise
        if text in self.fail_on:
            raise self.error or RuntimeError(f"upstream failure for {text!r}")
        return [float(len(text))] + [0.1] * (self.dim - 1)


class FakeIdentityProvider(IdentityProvider):
    """In-memory identity provider keyed by access token and auth code."""

    def __init__(
        self,
        sessions: dict[str, Session] | None = None,
        codes: dict[str, Session] | None = None,
        lookup_error: SessionError | None = None,
    ) -> None:
        self.sessions = sessions or {}
        self.codes = codes or {}
        self.lookup_error = lookup_error
        self.exchanged: list[tuple[str, str | None]] = []

    async def exchange_code(self, code: str, code_verifier: str | None = None) -> Session:
        self.exchanged.append((code, code_verifier))
        if code not in self.codes:
            raise SessionError("invalid authorization code")
        session = self.codes[code]
        self.sessions[session.access_token] = session
        return session

    async def get_session(self, access_token: str) -> Session | None:
        if self.lookup_error is not None:
            raise self.lookup_error
        return self.sessions.get(access_token)

    def authorize_url(self, redirect_to: str, code_challenge: str) -> str:
        return f"https://idp.example.com/authorize?redirect_to={redirect_to}&code_challenge={code_challenge}"


@pytest.fixture()
def session() -> Session:
    return Session(access_token="valid-token", user_id="user-1", email="ada@example.com")


@pytest.fixture()
def identity_provider(session: Session) -> FakeIdentityProvider:
    return FakeIdentityProvider(
        sessions={session.access_token: session},
        codes={"good-code": Session(access_token="fresh-token", user_id="user-2", email="new@example.com")},
    )
