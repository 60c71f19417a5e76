"""
Session store - per-user conversation state with TTL expiry.

Two interchangeable implementations behind one interface, picked once at
startup (see app.services.stores.build_stores):
- RedisSessionStore: JSON value under "<prefix>:sess:<user_id>" with EX ttl
- InMemorySessionStore: dict owned by the instance, lazy expiry on read

Both re-validate on load; an unreadable payload raises SessionCorruption and
the caller treats the user as new.
"""

import json
import time
from collections.abc import Callable
from typing import Protocol

import pydantic
from redis.asyncio import Redis

from app.core.errors import SessionCorruption
from app.schemas.session import Session


class SessionStore(Protocol):
    async def get(self, user_id: str) -> Session | None: ...

    async def set(self, user_id: str, session: Session, ttl_seconds: int) -> None: ...

    async def delete(self, user_id: str) -> None: ...

    async def close(self) -> None: ...


def _decode(user_id: str, raw: str | bytes) -> Session:
    try:
        return Session.model_validate_json(raw)
    except (pydantic.ValidationError, json.JSONDecodeError, ValueError) as e:
        raise SessionCorruption(f"Stored session for {user_id} is invalid: {e}") from e


class RedisSessionStore:
    """Durable session store on Redis. Expiry is Redis' own (SET ... EX)."""

    def __init__(self, redis: Redis, key_prefix: str = "s24"):
        self._redis = redis
        self._key_prefix = key_prefix

    def _key(self, user_id: str) -> str:
        return f"{self._key_prefix}:sess:{user_id}"

    async def get(self, user_id: str) -> Session | None:
        raw = await self._redis.get(self._key(user_id))
        if raw is None:
            return None
        return _decode(user_id, raw)

    async def set(self, user_id: str, session: Session, ttl_seconds: int) -> None:
        await self._redis.set(self._key(user_id), session.model_dump_json(), ex=ttl_seconds)

    async def delete(self, user_id: str) -> None:
        await self._redis.delete(self._key(user_id))

    async def close(self) -> None:
        # The Redis client is shared with the cooldown store and closed by its owner
        return None


class InMemorySessionStore:
    """
    Process-local session store.

    Entries are kept as JSON strings so callers never share a mutable Session
    with the store. Expired entries are dropped when read.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._entries: dict[str, tuple[str, float]] = {}

    async def get(self, user_id: str) -> Session | None:
        entry = self._entries.get(user_id)
        if entry is None:
            return None
        raw, expires_at = entry
        if self._clock() >= expires_at:
            self._entries.pop(user_id, None)
            return None
        return _decode(user_id, raw)

    async def set(self, user_id: str, session: Session, ttl_seconds: int) -> None:
        self._entries[user_id] = (session.model_dump_json(), self._clock() + ttl_seconds)

    async def delete(self, user_id: str) -> None:
        self._entries.pop(user_id, None)

    async def close(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
