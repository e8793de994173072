"""
Auth — session gate and identity-provider client.

Public surface
--------------
- :func:`decide` / :class:`SessionGateMiddleware` — redirect rules.
- :class:`IdentityProvider` — abstract backend.
- :class:`SupabaseIdentityProvider` — default Supabase Auth backend.
- :class:`Session` — authenticated session model.
"""

from docvector.auth.gate import GateConfig, Redirect, SessionGateMiddleware, decide, safe_redirect_target
from docvector.auth.provider import IdentityProvider, Session, SupabaseIdentityProvider

__all__ = [
    "GateConfig",
    "IdentityProvider",
    "Redirect",
    "Session",
    "SessionGateMiddleware",
    "SupabaseIdentityProvider",
    "decide",
    "safe_redirect_target",
]
