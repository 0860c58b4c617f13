"""
Auth context — the single handle every flow receives.

Built once at startup from ``Settings`` and shared read-only across
requests.  Owns the database engine and the TTL store client, so closing
the context releases their pools.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from auth.jwt import TokenIssuer
from auth.otp import LogOtpSender, OtpSender, OtpService, SmtpOtpSender
from auth.password import SecretHasher
from config.settings import Settings
from database.kv_store import MemoryTTLStore, RedisTTLStore, TTLStore
from database.session import build_engine, build_session_factory

logger = logging.getLogger(__name__)


@dataclass
class AuthContext:
    settings: Settings
    hasher: SecretHasher
    otp: OtpService
    tokens: TokenIssuer
    kv_store: TTLStore
    session_factory: async_sessionmaker[AsyncSession]
    engine: Optional[AsyncEngine] = None

    @property
    def default_role_id(self) -> int:
        return self.settings.default_role_id

    async def aclose(self) -> None:
        await self.kv_store.aclose()
        if self.engine is not None:
            await self.engine.dispose()


def build_sender(settings: Settings) -> OtpSender:
    if settings.otp_delivery == "smtp":
        return SmtpOtpSender(
            host=settings.smtp_host,
            port=settings.smtp_port,
            mail_from=settings.mail_from,
            username=settings.smtp_username,
            password=settings.smtp_password,
            use_ssl=settings.smtp_use_ssl,
        )
    return LogOtpSender()


def build_kv_store(settings: Settings) -> TTLStore:
    if settings.kv_backend == "memory":
        return MemoryTTLStore()
    return RedisTTLStore.from_url(settings.redis_url)


def build_context(
    settings: Settings,
    *,
    kv_store: Optional[TTLStore] = None,
    sender: Optional[OtpSender] = None,
) -> AuthContext:
    """Wire every collaborator from *settings*; *kv_store* / *sender* override the configured ones."""
    engine = build_engine(settings)
    store = kv_store if kv_store is not None else build_kv_store(settings)
    ctx = AuthContext(
        settings=settings,
        hasher=SecretHasher(
            time_cost=settings.argon2_time_cost,
            memory_cost=settings.argon2_memory_cost,
            parallelism=settings.argon2_parallelism,
        ),
        otp=OtpService(
            store,
            sender if sender is not None else build_sender(settings),
            ttl_seconds=settings.otp_ttl_seconds,
        ),
        tokens=TokenIssuer(
            settings.signing_key,
            lifetime=timedelta(hours=settings.jwt_expiry_hours),
            algorithm=settings.jwt_algorithm,
        ),
        kv_store=store,
        session_factory=build_session_factory(engine),
        engine=engine,
    )
    logger.info(
        "Auth context ready (kv=%s, delivery=%s, otp_ttl=%ss)",
        settings.kv_backend,
        settings.otp_delivery,
        settings.otp_ttl_seconds,
    )
    return ctx
