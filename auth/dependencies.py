"""
FastAPI dependencies for authentication.

Provides ``get_auth_context`` and ``get_current_claims``; the context is
placed on ``app.state.auth`` by ``main.create_app``.
"""

from __future__ import annotations

from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from auth.errors import TokenInvalidError
from auth.jwt import SessionClaims
from core.context import AuthContext

_bearer_scheme = HTTPBearer(auto_error=False)


def get_auth_context(request: Request) -> AuthContext:
    return request.app.state.auth


def get_current_claims(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer_scheme),
    ctx: AuthContext = Depends(get_auth_context),
) -> SessionClaims:
    """
    Verify the Bearer token and return its claims.

    A missing header and a bad token both raise a ``TokenError``, which the
    app's handlers turn into 401.
    """
    if credentials is None:
        raise TokenInvalidError("missing bearer token")
    return ctx.tokens.verify(credentials.credentials)
