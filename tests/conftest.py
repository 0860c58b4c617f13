"""
Shared fixtures: a SQLite-backed auth context with a fake clock and a
capturing OTP sender.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Optional, Tuple

import pytest
import pytest_asyncio
from sqlalchemy import func, select

from auth.jwt import TokenIssuer
from auth.password import SecretHasher
from config.settings import Settings
from core.context import build_context
from database.kv_store import MemoryTTLStore
from database.models import User
from database.session import create_tables

FIXED_NOW = datetime(2026, 1, 1, 12, 0, 0, tzinfo=timezone.utc)
TEST_SECRET = "test-signing-key-0123456789abcdef0123"


class FakeClock:
    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class CapturingSender:
    def __init__(self) -> None:
        self.sent: List[Tuple[str, str]] = []

    async def send(self, email: str, code: str, ttl_seconds: int) -> None:
        self.sent.append((email, code))

    def last_code(self, email: str) -> Optional[str]:
        for addr, code in reversed(self.sent):
            if addr == email:
                return code
        return None


def fast_hasher() -> SecretHasher:
    return SecretHasher(time_cost=1, memory_cost=8, parallelism=1)


async def count_users(ctx) -> int:
    async with ctx.session_factory() as session:
        result = await session.execute(select(func.count()).select_from(User))
        return result.scalar_one()


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        _env_file=None,
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'auth.db'}",
        kv_backend="memory",
        otp_delivery="log",
        jwt_secret=TEST_SECRET,
        argon2_time_cost=1,
        argon2_memory_cost=8,
        argon2_parallelism=1,
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def sender() -> CapturingSender:
    return CapturingSender()


@pytest_asyncio.fixture
async def ctx(settings, clock, sender):
    context = build_context(settings, kv_store=MemoryTTLStore(clock=clock), sender=sender)
    context.tokens = TokenIssuer(settings.signing_key, clock=lambda: FIXED_NOW)
    await create_tables(context.engine)
    yield context
    await context.aclose()
