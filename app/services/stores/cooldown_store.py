"""
Cooldown store - short-lived per-user marker armed when a lead is emitted.

Independent of the session store: the marker expiring is what turns a DONE
session from "replay only" into "purge and restart".
"""

import time
from collections.abc import Callable
from typing import Protocol

from redis.asyncio import Redis


class CooldownStore(Protocol):
    async def set(self, user_id: str, ttl_seconds: int) -> None: ...

    async def has(self, user_id: str) -> bool: ...

    async def delete(self, user_id: str) -> None: ...

    async def close(self) -> None: ...


class RedisCooldownStore:
    def __init__(self, redis: Redis, key_prefix: str = "s24"):
        self._redis = redis
        self._key_prefix = key_prefix

    def _key(self, user_id: str) -> str:
        return f"{self._key_prefix}:cool:{user_id}"

    async def set(self, user_id: str, ttl_seconds: int) -> None:
        await self._redis.set(self._key(user_id), "1", ex=ttl_seconds)

    async def has(self, user_id: str) -> bool:
        return await self._redis.exists(self._key(user_id)) == 1

    async def delete(self, user_id: str) -> None:
        await self._redis.delete(self._key(user_id))

    async def close(self) -> None:
        await self._redis.aclose()


class InMemoryCooldownStore:
    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._expiry: dict[str, float] = {}

    async def set(self, user_id: str, ttl_seconds: int) -> None:
        self._expiry[user_id] = self._clock() + ttl_seconds

    async def has(self, user_id: str) -> bool:
        expires_at = self._expiry.get(user_id)
        if expires_at is None:
            return False
        if self._clock() >= expires_at:
            del self._expiry[user_id]
            return False
        return True

    async def delete(self, user_id: str) -> None:
        self._expiry.pop(user_id, None)

    async def close(self) -> None:
        self._expiry.clear()
