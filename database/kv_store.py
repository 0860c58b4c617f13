"""
TTL key-value stores backing pending OTPs.

Only three operations are needed: set-with-expiry, get and delete.
``RedisTTLStore`` is the production backend; ``MemoryTTLStore`` keeps
entries in-process and is used for local development and tests.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Dict, Optional, Protocol, Tuple

from redis.asyncio import Redis
from redis.exceptions import RedisError

from auth.errors import StoreError

logger = logging.getLogger(__name__)


class TTLStore(Protocol):
    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        """Store/replace *value* under *key*, expiring after *ttl_seconds*."""

    async def get(self, key: str) -> Optional[str]:
        """Return the live value, or None if absent or expired."""

    async def delete(self, key: str) -> None:
        ...

    async def aclose(self) -> None:
        ...


class RedisTTLStore:
    """``SET key value EX=ttl`` / ``GET key`` / ``DEL key`` over redis-py asyncio."""

    def __init__(self, client: Redis) -> None:
        self._client = client

    @classmethod
    def from_url(cls, url: str) -> "RedisTTLStore":
        return cls(Redis.from_url(url, decode_responses=True))

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        try:
            await self._client.set(key, value, ex=ttl_seconds)
        except RedisError as exc:
            logger.error("Redis SET failed: %s", exc)
            raise StoreError("TTL store unavailable") from exc

    async def get(self, key: str) -> Optional[str]:
        try:
            value = await self._client.get(key)
        except RedisError as exc:
            logger.error("Redis GET failed: %s", exc)
            raise StoreError("TTL store unavailable") from exc
        if isinstance(value, bytes):
            value = value.decode()
        return value

    async def delete(self, key: str) -> None:
        try:
            await self._client.delete(key)
        except RedisError as exc:
            logger.error("Redis DEL failed: %s", exc)
            raise StoreError("TTL store unavailable") from exc

    async def aclose(self) -> None:
        await self._client.aclose()


class MemoryTTLStore:
    """Dict-backed store; entries expire lazily on read."""

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._entries: Dict[str, Tuple[str, float]] = {}

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        self._entries[key] = (value, self._clock() + ttl_seconds)

    async def get(self, key: str) -> Optional[str]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if self._clock() >= expires_at:
            del self._entries[key]
            return None
        return value

    async def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    async def aclose(self) -> None:
        self._entries.clear()
