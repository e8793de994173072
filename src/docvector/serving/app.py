"""FastAPI application — upload endpoint, auth routes and debug log."""

from __future__ import annotations

import asyncio
import html
import logging
import tempfile
from pathlib import Path
from urllib.parse import urlencode

from fastapi import FastAPI, File, Form, Request, UploadFile
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse, Response

from docvector import __version__
from docvector.auth.gate import (
    CALLBACK_PATH,
    DEFAULT_CONFIG,
    SessionGateMiddleware,
    login_location,
    resolve_session,
    safe_redirect_target,
)
from docvector.auth.provider import IdentityProvider, SupabaseIdentityProvider, generate_pkce_pair
from docvector.config import settings
from docvector.debug_log import DebugLog, configure_logging, debug_log
from docvector.exceptions import PipelineError, SessionError
from docvector.ingestion.models import ProcessOptions
from docvector.ingestion.pipeline import DocumentPipeline

logger = logging.getLogger(__name__)

PDF_MIME_TYPE = "application/pdf"
PKCE_VERIFIER_COOKIE = "docvector-pkce-verifier"
NEXT_PATH_COOKIE = "docvector-next"
_READ_BLOCK = 1024 * 1024


def create_app(
    identity_provider: IdentityProvider | None = None,
    pipeline: DocumentPipeline | None = None,
    log_buffer: DebugLog | None = None,
) -> FastAPI:
    """Build the application.  Collaborators default to the production ones."""
    configure_logging(buffer=log_buffer)

    app = FastAPI(
        title="docvector",
        version=__version__,
        description="Upload a PDF, split it into overlapping chunks, and embed each chunk.",
    )
    app.state.identity_provider = identity_provider or SupabaseIdentityProvider()
    app.state.pipeline = pipeline or DocumentPipeline()
    app.state.debug_log = log_buffer if log_buffer is not None else debug_log
    app.add_middleware(SessionGateMiddleware, config=DEFAULT_CONFIG)

    # ── Health & pages ────────────────────────────────────────────────
    @app.get("/health")
    async def health() -> dict[str, str]:
        """Liveness probe."""
        return {"status": "ok"}

    @app.get("/", response_class=HTMLResponse)
    async def home(request: Request) -> str:
        session = request.state.session
        who = html.escape(session.email or session.user_id or "") if session else ""
        return _page(
            "docvector",
            f"<p>Signed in as {who}</p>"
            '<form action="/process" method="post" enctype="multipart/form-data">'
            '<input type="file" name="file" accept="application/pdf">'
            '<input type="password" name="apiKey" placeholder="Hugging Face API key">'
            '<button type="submit">Process</button></form>'
            '<form action="/auth/logout" method="post"><button type="submit">Sign out</button></form>',
        )

    @app.get("/auth/login", response_class=HTMLResponse)
    async def login(error: str | None = None, redirectedFrom: str | None = None) -> str:  # noqa: N803
        if error:
            logger.error("Login error from redirect: %s", error)
        start = "/auth/login/google"
        if redirectedFrom:
            start = f"{start}?{urlencode({'redirectedFrom': redirectedFrom})}"
        error_html = f'<p class="error">{html.escape(error)}</p>' if error else ""
        return _page("Sign in", f'{error_html}<a href="{html.escape(start)}">Continue with Google</a>')

    # ── Auth flow ─────────────────────────────────────────────────────
    @app.get("/auth/login/google")
    async def login_google(request: Request, redirectedFrom: str | None = None) -> Response:  # noqa: N803
        provider: IdentityProvider = request.app.state.identity_provider
        logger.info("Starting Google sign-in")
        verifier, challenge = generate_pkce_pair()
        callback_url = f"{settings.site_url.rstrip('/')}{CALLBACK_PATH}"
        response = RedirectResponse(provider.authorize_url(callback_url, challenge), status_code=302)
        _set_flow_cookie(response, PKCE_VERIFIER_COOKIE, verifier)
        _set_flow_cookie(response, NEXT_PATH_COOKIE, safe_redirect_target(redirectedFrom))
        return response

    @app.get("/auth/callback")
    async def auth_callback(
        request: Request,
        code: str | None = None,
        error: str | None = None,
        error_description: str | None = None,
    ) -> Response:
        provider: IdentityProvider = request.app.state.identity_provider
        logger.info("Starting auth callback handling")

        if error:
            return _callback_failure(error_description or error)

        if not code:
            if await resolve_session(request, provider) is not None:
                return RedirectResponse(DEFAULT_CONFIG.home_path, status_code=302)
            return _callback_failure("missing_code")

        try:
            session = await provider.exchange_code(code, request.cookies.get(PKCE_VERIFIER_COOKIE))
        except SessionError as exc:
            return _callback_failure(exc.message)

        target = safe_redirect_target(request.cookies.get(NEXT_PATH_COOKIE))
        response = RedirectResponse(target, status_code=302)
        response.set_cookie(
            settings.session_cookie_name,
            session.access_token,
            max_age=settings.session_cookie_max_age,
            path="/",
            secure=settings.session_cookie_secure,
            httponly=True,
            samesite="lax",
        )
        response.delete_cookie(PKCE_VERIFIER_COOKIE, path="/")
        response.delete_cookie(NEXT_PATH_COOKIE, path="/")
        return response

    @app.post("/auth/logout")
    async def logout() -> Response:
        response = RedirectResponse(DEFAULT_CONFIG.login_path, status_code=303)
        response.delete_cookie(settings.session_cookie_name, path="/")
        return response

    @app.get("/auth/config")
    async def auth_config(request: Request) -> dict:
        session = request.state.session
        return {
            "supabaseUrl": settings.supabase_url,
            "redirectUrl": f"{settings.site_url.rstrip('/')}{CALLBACK_PATH}",
            "authenticated": session is not None,
            "email": session.email if session else None,
        }

    # ── Document processing ───────────────────────────────────────────
    @app.post("/process")
    async def process(
        request: Request,
        file: UploadFile | None = File(default=None),
        apiKey: str | None = Form(default=None),  # noqa: N803
        chunkSize: int | None = Form(default=None),  # noqa: N803
        chunkOverlap: int | None = Form(default=None),  # noqa: N803
    ) -> JSONResponse:
        """Load, chunk and embed an uploaded PDF."""
        if not apiKey or not apiKey.strip():
            return JSONResponse({"error": "API key is required"}, status_code=400)
        if file is None or not file.filename:
            return JSONResponse({"error": "PDF file is required"}, status_code=400)
        if (file.content_type or "").split(";")[0].strip().lower() != PDF_MIME_TYPE:
            return JSONResponse({"error": "Only PDF files are accepted"}, status_code=400)

        temp_path = await _save_upload(file)
        if temp_path is None:
            return JSONResponse(
                {"error": f"File exceeds the {settings.max_upload_bytes} byte limit"},
                status_code=413,
            )

        overrides = {"chunk_size": chunkSize, "chunk_overlap": chunkOverlap}
        options = ProcessOptions(**{k: v for k, v in overrides.items() if v is not None})

        logger.info("Processing upload %s", file.filename)
        pipeline: DocumentPipeline = request.app.state.pipeline
        try:
            results = await pipeline.process(temp_path, apiKey.strip(), options)
        except PipelineError as exc:
            logger.error("Error processing document: %s (cause=%s)", exc.message, exc.details["cause"])
            return JSONResponse(
                {
                    "error": "Failed to process document",
                    "details": exc.message,
                },
                status_code=500,
            )

        return JSONResponse({"chunks": [r.model_dump() for r in results]})

    # ── Debug log ─────────────────────────────────────────────────────
    @app.get("/debug/logs")
    async def list_logs(request: Request) -> dict[str, list[str]]:
        return {"logs": request.app.state.debug_log.list()}

    @app.delete("/debug/logs", status_code=204)
    async def clear_logs(request: Request) -> Response:
        request.app.state.debug_log.clear()
        return Response(status_code=204)

    return app


def _page(title: str, body: str) -> str:
    return (
        f"<!doctype html><html><head><title>{html.escape(title)}</title></head>"
        f"<body><h1>{html.escape(title)}</h1>{body}</body></html>"
    )


def _set_flow_cookie(response: Response, name: str, value: str) -> None:
    response.set_cookie(
        name,
        value,
        max_age=600,
        path="/",
        secure=settings.session_cookie_secure,
        httponly=True,
        samesite="lax",
    )


def _callback_failure(message: str) -> Response:
    logger.error("Error in auth callback: %s", message)
    return RedirectResponse(login_location(error=message), status_code=302)


async def _save_upload(upload: UploadFile) -> Path | None:
    """Write *upload* to a named temporary file; ``None`` if it is too large."""
    size = 0
    with tempfile.NamedTemporaryFile(prefix="docvector-", suffix=".pdf", delete=False) as fh:
        path = Path(fh.name)
        try:
            while block := await upload.read(_READ_BLOCK):
                size += len(block)
                if size > settings.max_upload_bytes:
                    break
                await asyncio.to_thread(fh.write, block)
        except BaseException:
            fh.close()
            path.unlink(missing_ok=True)
            raise

    if size > settings.max_upload_bytes:
        path.unlink(missing_ok=True)
        logger.error("Rejected upload %s: over %d bytes", upload.filename, settings.max_upload_bytes)
        return None
    return path


app = create_app()
