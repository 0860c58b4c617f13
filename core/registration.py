"""
Registration flow: verify OTP → hash password → insert user → consume OTP.

Any failure before the insert commits leaves no ``users`` row behind; the
insert is the only write to the credential store.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional, Union

from auth.errors import InvalidRequestError
from core.context import AuthContext
from database.helpers import create_user

logger = logging.getLogger(__name__)


async def register_user(
    ctx: AuthContext,
    *,
    name: str,
    email: str,
    password: str,
    otp: Union[str, int],
    role_id: Optional[int] = None,
) -> int:
    """
    Create an account and return its id.

    *role_id* is accepted for request compatibility but the account always
    gets ``ctx.default_role_id``.  No token is issued; the client logs in
    separately.
    """
    if not email.strip() or not password:
        raise InvalidRequestError("email and password are required")

    await ctx.otp.verify(email, otp)

    password_hash = await asyncio.to_thread(ctx.hasher.hash, password)

    if role_id is not None and role_id != ctx.default_role_id:
        logger.debug("Ignoring requested role_id=%s for %s", role_id, email)

    async with ctx.session_factory() as session:
        user = await create_user(
            session,
            name=name,
            email=email,
            password_hash=password_hash,
            role_id=ctx.default_role_id,
        )

    if ctx.settings.otp_consume_on_success:
        await ctx.otp.discard(email)

    logger.info("Registered user %s (id=%s)", email, user.id)
    return user.id
