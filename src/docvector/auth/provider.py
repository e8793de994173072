"""Identity-provider client — Supabase Auth over HTTP.

Only two operations are needed by the web app: exchanging a one-time
authorization code (PKCE flow) for a session, and resolving an access
token from the session cookie back to a user.
"""

from __future__ import annotations

import base64
import hashlib
import logging
import secrets
import time
from abc import ABC, abstractmethod
from typing import Any
from urllib.parse import urlencode

import httpx
from pydantic import BaseModel

from docvector.config import settings
from docvector.exceptions import SessionError

logger = logging.getLogger(__name__)


class Session(BaseModel):
    """An authenticated identity-provider session."""

    access_token: str
    refresh_token: str | None = None
    expires_at: int | None = None
    user_id: str | None = None
    email: str | None = None

    @property
    def is_expired(self) -> bool:
        return self.expires_at is not None and self.expires_at <= int(time.time())


def generate_pkce_pair() -> tuple[str, str]:
    """Return ``(code_verifier, code_challenge)`` for the S256 method."""
    verifier = secrets.token_urlsafe(48)
    digest = hashlib.sha256(verifier.encode("ascii")).digest()
    challenge = base64.urlsafe_b64encode(digest).rstrip(b"=").decode("ascii")
    return verifier, challenge


class IdentityProvider(ABC):
    """Backend-agnostic identity-provider interface."""

    @abstractmethod
    async def exchange_code(self, code: str, code_verifier: str | None = None) -> Session:
        """Trade a one-time authorization code for a session.

        Raises
        ------
        SessionError
            When the provider rejects the code or cannot be reached.
        """
        ...

    @abstractmethod
    async def get_session(self, access_token: str) -> Session | None:
        """Resolve *access_token* to a session, or ``None`` if it is invalid.

        Raises
        ------
        SessionError
            When the provider cannot be reached or answers unexpectedly.
        """
        ...

    def authorize_url(self, redirect_to: str, code_challenge: str) -> str:
        """Return the URL that starts the OAuth flow.  Optional."""
        raise NotImplementedError(f"{type(self).__name__} does not support authorize_url")


class SupabaseIdentityProvider(IdentityProvider):
    """Supabase Auth (GoTrue) REST client.

    Parameters
    ----------
    url:
        Project base URL, e.g. ``https://xyz.supabase.co``.
    anon_key:
        Public anon key sent as the ``apikey`` header.
    oauth_provider:
        External OAuth provider used by :meth:`authorize_url`.
    transport:
        Optional ``httpx`` transport (tests pass ``httpx.MockTransport``).
    """

    def __init__(
        self,
        url: str | None = None,
        anon_key: str | None = None,
        *,
        oauth_provider: str = "google",
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.url = (url if url is not None else settings.supabase_url).rstrip("/")
        self.anon_key = anon_key if anon_key is not None else settings.supabase_anon_key
        self.oauth_provider = oauth_provider
        self.timeout = timeout if timeout is not None else settings.identity_timeout
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=f"{self.url}/auth/v1",
            headers={"apikey": self.anon_key},
            timeout=self.timeout,
            transport=self._transport,
        )

    def authorize_url(self, redirect_to: str, code_challenge: str) -> str:
        query = urlencode(
            {
                "provider": self.oauth_provider,
                "redirect_to": redirect_to,
                "code_challenge": code_challenge,
                "code_challenge_method": "s256",
            }
        )
        return f"{self.url}/auth/v1/authorize?{query}"

    async def exchange_code(self, code: str, code_verifier: str | None = None) -> Session:
        payload: dict[str, Any] = {"auth_code": code}
        if code_verifier:
            payload["code_verifier"] = code_verifier

        try:
            async with self._client() as client:
                response = await client.post("/token", params={"grant_type": "pkce"}, json=payload)
        except httpx.HTTPError as exc:
            logger.error("Code exchange request failed: %s", exc)
            raise SessionError("Unable to reach identity provider") from exc

        if response.status_code != 200:
            body = _safe_json(response)
            message = body.get("error_description") or body.get("msg") or body.get("error") or "Code exchange failed"
            logger.error("Code exchange rejected (HTTP %d): %s", response.status_code, message)
            raise SessionError(str(message), details={"status_code": response.status_code})

        body = _safe_json(response)
        if "access_token" not in body:
            raise SessionError("Code exchange returned no access token")

        user = body.get("user") or {}
        session = Session(
            access_token=body["access_token"],
            refresh_token=body.get("refresh_token"),
            expires_at=body.get("expires_at"),
            user_id=user.get("id"),
            email=user.get("email"),
        )
        logger.info("Session obtained for user %s", session.user_id)
        return session

    async def get_session(self, access_token: str) -> Session | None:
        if not access_token:
            return None

        try:
            async with self._client() as client:
                response = await client.get("/user", headers={"Authorization": f"Bearer {access_token}"})
        except httpx.HTTPError as exc:
            raise SessionError("Unable to reach identity provider") from exc

        if response.status_code in (401, 403):
            return None
        if response.status_code != 200:
            raise SessionError(
                f"Unexpected session lookup response (HTTP {response.status_code})",
                details={"status_code": response.status_code},
            )

        user = _safe_json(response)
        return Session(access_token=access_token, user_id=user.get("id"), email=user.get("email"))


def _safe_json(response: httpx.Response) -> dict[str, Any]:
    try:
        body = response.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}
