"""Cache-aside store interface and Redis implementation"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from redis.asyncio import Redis
from redis.exceptions import RedisError

from ..db.config import Settings
from ..errors import CacheUnavailable
from ..observability import logger


class CacheStore(ABC):
    """Key/value store with TTL; a miss is None, never an error"""

    @abstractmethod
    async def get(self, key: str) -> Optional[str]:
        """Return the cached value or None on miss"""
        ...

    @abstractmethod
    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        """Store value under key for ttl_seconds"""
        ...

    @abstractmethod
    async def ping(self) -> None:
        """Raise CacheUnavailable if the store cannot be reached"""
        ...

    @abstractmethod
    async def close(self) -> None:
        ...


class RedisCacheStore(CacheStore):
    """Redis-backed store; every driver failure surfaces as CacheUnavailable"""

    def __init__(self, client: Redis):
        self._client = client

    async def get(self, key: str) -> Optional[str]:
        try:
            return await self._client.get(key)
        except (RedisError, OSError) as e:
            raise CacheUnavailable(f"GET failed: {e}") from e

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        try:
            await self._client.set(key, value, ex=ttl_seconds)
        except (RedisError, OSError) as e:
            raise CacheUnavailable(f"SET failed: {e}") from e

    async def ping(self) -> None:
        try:
            await self._client.ping()
        except (RedisError, OSError) as e:
            raise CacheUnavailable(f"PING failed: {e}") from e

    async def close(self) -> None:
        await self._client.aclose()


def create_cache_store(settings: Settings) -> RedisCacheStore:
    """
    Build the process-wide cache store.

    The connection is lazy: an unreachable Redis does not stop startup, it only
    turns every lookup into a logged miss.
    """
    client = Redis.from_url(
        settings.redis_url,
        decode_responses=True,
        socket_timeout=settings.redis_socket_timeout,
        socket_connect_timeout=settings.redis_socket_timeout,
        health_check_interval=30,
    )
    logger.info(f"Cache store configured for {settings.redis_url.split('@')[-1]}")
    return RedisCacheStore(client)
