"""Session gate — decides whether a navigation must be redirected.

:func:`decide` is a pure function of the request path, its query string and
whether a valid session is present.  :class:`SessionGateMiddleware` resolves
the session from the cookie and applies the decision to every request.

Rules
-----
* Protected path, no session → login, with ``redirectedFrom=<original>``.
* Login path, session present, no ``error`` parameter → the sanitized
  ``redirectedFrom`` target, else home.
* Login path carrying ``error`` never redirects.  That, together with
  targets being restricted to non-public local paths, rules out
  login ↔ home loops.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from urllib.parse import parse_qs, urlencode

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import RedirectResponse, Response

from docvector.auth.provider import IdentityProvider, Session
from docvector.config import settings
from docvector.exceptions import SessionError

logger = logging.getLogger(__name__)

LOGIN_PATH = "/auth/login"
CALLBACK_PATH = "/auth/callback"
HOME_PATH = "/"


@dataclass(frozen=True)
class GateConfig:
    """Paths the gate knows about."""

    login_path: str = LOGIN_PATH
    callback_path: str = CALLBACK_PATH
    home_path: str = HOME_PATH
    public_paths: frozenset[str] = field(
        default_factory=lambda: frozenset({LOGIN_PATH, CALLBACK_PATH, "/auth/login/google", "/health", "/favicon.ico"})
    )
    public_prefixes: tuple[str, ...] = ("/static/",)
    post_only_paths: frozenset[str] = frozenset({"/process", "/auth/logout"})

    def is_public(self, path: str) -> bool:
        return path in self.public_paths or path.startswith(self.public_prefixes)


DEFAULT_CONFIG = GateConfig()


@dataclass(frozen=True)
class Redirect:
    """Outcome of :func:`decide` when the request must not proceed."""

    location: str


def safe_redirect_target(target: str | None, config: GateConfig = DEFAULT_CONFIG) -> str:
    """Return *target* if it is a local, non-public, navigable path, else home."""
    if not target or not target.startswith("/") or target.startswith("//") or "\\" in target:
        return config.home_path
    path = target.split("?", 1)[0]
    if config.is_public(path) or path in config.post_only_paths:
        return config.home_path
    return target


def login_location(config: GateConfig = DEFAULT_CONFIG, **params: str) -> str:
    """Build the login URL with the given query parameters."""
    params = {k: v for k, v in params.items() if v}
    return f"{config.login_path}?{urlencode(params)}" if params else config.login_path


def decide(
    path: str,
    query_string: str,
    has_session: bool,
    config: GateConfig = DEFAULT_CONFIG,
) -> Redirect | None:
    """Return a :class:`Redirect` or ``None`` to let the request through."""
    if path == config.callback_path:
        return None

    if path == config.login_path:
        query = parse_qs(query_string)
        if has_session and not query.get("error"):
            target = query.get("redirectedFrom", [None])[0]
            return Redirect(safe_redirect_target(target, config))
        return None

    if config.is_public(path):
        return None

    if not has_session:
        original = f"{path}?{query_string}" if query_string else path
        return Redirect(login_location(config, redirectedFrom=original))

    return None


async def resolve_session(request: Request, provider: IdentityProvider) -> Session | None:
    """Look up the session named by the request's cookie.

    Lookup failures are logged and reported as "no session" so that the
    caller redirects to login instead of failing the request.
    """
    token = request.cookies.get(settings.session_cookie_name)
    if not token:
        return None
    try:
        session = await provider.get_session(token)
    except SessionError as exc:
        logger.warning("Session lookup failed, treating as signed out: %s", exc.message)
        return None
    if session is not None and session.is_expired:
        return None
    return session


class SessionGateMiddleware(BaseHTTPMiddleware):
    """Apply :func:`decide` to every request.

    The identity provider is read from ``app.state.identity_provider`` so
    it can be swapped in tests.  The resolved session is exposed as
    ``request.state.session``.
    """

    def __init__(self, app, config: GateConfig = DEFAULT_CONFIG) -> None:  # noqa: ANN001
        super().__init__(app)
        self.config = config

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        path = request.url.path
        request.state.session = None

        if path == self.config.callback_path or (
            self.config.is_public(path) and path != self.config.login_path
        ):
            return await call_next(request)

        provider: IdentityProvider = request.app.state.identity_provider
        session = await resolve_session(request, provider)
        request.state.session = session

        redirect = decide(path, request.url.query, session is not None, self.config)
        if redirect is not None:
            logger.debug("Redirecting %s -> %s", path, redirect.location)
            # 303 turns a rejected form POST into a GET of the login page.
            status_code = 307 if request.method in ("GET", "HEAD") else 303
            return RedirectResponse(redirect.location, status_code=status_code)
        return await call_next(request)
