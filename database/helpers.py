"""
Credential-store queries used by the registration and login flows.

The only write is a single INSERT; uniqueness of ``email`` is left to the
database constraint.
"""

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from auth.errors import DuplicateAccountError, StoreError
from database.models import User

logger = logging.getLogger(__name__)


async def create_user(
    session: AsyncSession,
    *,
    name: str,
    email: str,
    password_hash: str,
    role_id: int,
) -> User:
    """Insert and commit a new ``User`` row; nothing is written on failure."""
    user = User(name=name, email=email, password_hash=password_hash, role_id=role_id)
    session.add(user)
    try:
        await session.commit()
    except IntegrityError as exc:
        await session.rollback()
        raise DuplicateAccountError("email already registered") from exc
    except SQLAlchemyError as exc:
        await session.rollback()
        logger.error("User insert failed: %s", type(exc).__name__)
        raise StoreError("credential store unavailable") from exc
    return user


async def fetch_password_hash(session: AsyncSession, email: str) -> Optional[str]:
    """Return the stored hash for *email*, or None if no such account."""
    try:
        result = await session.execute(
            select(User.password_hash).where(User.email == email)
        )
        return result.scalar_one_or_none()
    except SQLAlchemyError as exc:
        logger.error("Password lookup failed: %s", type(exc).__name__)
        raise StoreError("credential store unavailable") from exc
