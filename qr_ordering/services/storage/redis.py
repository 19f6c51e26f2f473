"""
Redis Storage Service

Shared storage for staging/production (ENV_MODE=staging|production).
Every API worker sees the same carts and sessions, and keys expire on the
Redis side.
"""

import logging
from typing import Callable, Optional

import redis.asyncio as aioredis
from redis.exceptions import RedisError, WatchError

from qr_ordering.core.config import get_settings
from qr_ordering.services.storage.base import BaseStorageService

logger = logging.getLogger(__name__)


class RedisStorageService(BaseStorageService):
    """Storage backed by ``redis.asyncio``."""

    KEY_PREFIX = "qr_ordering:"

    def __init__(self, url: Optional[str] = None):
        settings = get_settings()
        self.url = url or settings.redis_url
        self._client = aioredis.from_url(
            self.url,
            encoding="utf-8",
            decode_responses=True,
            socket_timeout=5,
        )
        logger.info(f"RedisStorageService initialized ({self.url})")

    @property
    def provider_name(self) -> str:
        return "redis"

    def _key(self, key: str) -> str:
        return f"{self.KEY_PREFIX}{key}"

    async def get(self, key: str) -> Optional[str]:
        return await self._client.get(self._key(key))

    async def set(self, key: str, value: str, ttl: Optional[int] = None) -> None:
        await self._client.set(self._key(key), value, ex=ttl or None)

    async def delete(self, key: str) -> bool:
        removed = await self._client.delete(self._key(key))
        return bool(removed)

    async def pop(self, key: str) -> Optional[str]:
        return await self._client.getdel(self._key(key))

    async def update(
        self,
        key: str,
        change: Callable[[Optional[str]], str],
        ttl: Optional[int] = None,
    ) -> str:
        """Optimistic WATCH/MULTI loop: retried when another client wrote the key."""
        full_key = self._key(key)
        async with self._client.pipeline(transaction=True) as pipe:
            while True:
                try:
                    await pipe.watch(full_key)
                    value = change(await pipe.get(full_key))
                    pipe.multi()
                    pipe.set(full_key, value, ex=ttl or None)
                    await pipe.execute()
                    return value
                except WatchError:
                    logger.debug(f"Concurrent write on {full_key}, retrying")
                    continue

    async def health_check(self) -> bool:
        try:
            return bool(await self._client.ping())
        except RedisError as e:
            logger.error(f"Redis health check failed: {e}")
            return False

    async def close(self) -> None:
        await self._client.aclose()
