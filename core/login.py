"""
Login flow: look up the stored hash, verify the password, issue a token.

An unknown email and a wrong password fail with the same
``InvalidCredentialsError`` and take comparable time.
"""

from __future__ import annotations

import asyncio
import logging

from auth.errors import InvalidCredentialsError
from core.context import AuthContext
from database.helpers import fetch_password_hash

logger = logging.getLogger(__name__)


async def login_user(ctx: AuthContext, *, email: str, password: str) -> str:
    """Return a signed session token for valid credentials."""
    async with ctx.session_factory() as session:
        stored_hash = await fetch_password_hash(session, email)

    if stored_hash is None:
        await asyncio.to_thread(ctx.hasher.dummy_verify, password)
        logger.info("Login failed for %s", email)
        raise InvalidCredentialsError("invalid credentials")

    try:
        await asyncio.to_thread(ctx.hasher.verify, password, stored_hash)
    except InvalidCredentialsError:
        logger.info("Login failed for %s", email)
        raise

    token = ctx.tokens.issue(email)
    logger.info("Login: %s", email)
    return token
