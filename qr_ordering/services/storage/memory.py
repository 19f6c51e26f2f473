"""
In-Memory Storage Service

Process-local replacement for Redis, used in development mode
(ENV_MODE=development) and in tests. State is lost on restart and is not
shared between API workers.
"""

import logging
import time
from typing import Callable, Optional

from qr_ordering.services.storage.base import BaseStorageService

logger = logging.getLogger(__name__)


class MemoryStorageService(BaseStorageService):
    """
    Dictionary-backed storage with per-key expiry.

    Expired keys are dropped lazily when read. No method awaits while
    touching the dictionary, so every operation, ``pop`` and ``update``
    included, is atomic on a single event loop without a lock.
    """

    def __init__(self, clock=time.monotonic):
        self._data: dict[str, tuple[str, Optional[float]]] = {}
        self._clock = clock
        logger.info("MemoryStorageService initialized")

    @property
    def provider_name(self) -> str:
        return "memory"

    def _expired(self, expires_at: Optional[float]) -> bool:
        return expires_at is not None and expires_at <= self._clock()

    def _read(self, key: str) -> Optional[str]:
        entry = self._data.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if self._expired(expires_at):
            del self._data[key]
            return None
        return value

    def _write(self, key: str, value: str, ttl: Optional[int]) -> None:
        expires_at = self._clock() + ttl if ttl else None
        self._data[key] = (value, expires_at)

    async def get(self, key: str) -> Optional[str]:
        return self._read(key)

    async def set(self, key: str, value: str, ttl: Optional[int] = None) -> None:
        self._write(key, value, ttl)

    async def delete(self, key: str) -> bool:
        entry = self._data.pop(key, None)
        return entry is not None and not self._expired(entry[1])

    async def pop(self, key: str) -> Optional[str]:
        value = self._read(key)
        self._data.pop(key, None)
        return value

    async def update(
        self,
        key: str,
        change: Callable[[Optional[str]], str],
        ttl: Optional[int] = None,
    ) -> str:
        value = change(self._read(key))
        self._write(key, value, ttl)
        return value

    async def health_check(self) -> bool:
        return True

    def __len__(self) -> int:
        return sum(1 for _, exp in self._data.values() if not self._expired(exp))
