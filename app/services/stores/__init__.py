"""
Session and cooldown stores.

build_stores() picks the backend once at startup: Redis when REDIS_URL is
set, otherwise in-memory stores scoped to this process.
"""

import logging

from redis.asyncio import Redis

from app.core.config import Settings
from app.services.stores.cooldown_store import (
    CooldownStore,
    InMemoryCooldownStore,
    RedisCooldownStore,
)
from app.services.stores.session_store import (
    InMemorySessionStore,
    RedisSessionStore,
    SessionStore,
)

logger = logging.getLogger(__name__)


def build_stores(settings: Settings) -> tuple[SessionStore, CooldownStore, Redis | None]:
    """
    Construct the session and cooldown stores from configuration.

    Returns:
        (session_store, cooldown_store, redis_client). redis_client is None for
        the in-memory backend; it is returned so /ready can ping it.
    """
    if settings.redis_url:
        redis = Redis.from_url(settings.redis_url, decode_responses=True)
        logger.info(f"Using Redis session/cooldown stores (prefix={settings.redis_key_prefix})")
        return (
            RedisSessionStore(redis, key_prefix=settings.redis_key_prefix),
            RedisCooldownStore(redis, key_prefix=settings.redis_key_prefix),
            redis,
        )

    logger.warning("REDIS_URL not set - using in-memory session/cooldown stores (single process only)")
    return InMemorySessionStore(), InMemoryCooldownStore(), None


__all__ = [
    "CooldownStore",
    "InMemoryCooldownStore",
    "InMemorySessionStore",
    "RedisCooldownStore",
    "RedisSessionStore",
    "SessionStore",
    "build_stores",
]
