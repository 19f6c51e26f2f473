"""
Storage Service Factory

Provides a single entry point for the key-value store behind carts and
sessions.

Usage:
    from qr_ordering.services.storage import get_storage_service

    storage = get_storage_service()
    await storage.set("cart:abc", payload, ttl=3600)

Environment Switching:
    - ENV_MODE=development → MemoryStorageService (no Redis needed)
    - ENV_MODE=staging → RedisStorageService
    - ENV_MODE=production → RedisStorageService
"""

import logging
from functools import lru_cache

from qr_ordering.core.config import get_settings
from qr_ordering.services.storage.base import BaseStorageService
from qr_ordering.services.storage.memory import MemoryStorageService

logger = logging.getLogger(__name__)


@lru_cache()
def get_storage_service() -> BaseStorageService:
    """
    Get the configured storage service instance.

    The instance is cached so every request in the process shares the
    same store (essential for the in-memory implementation).
    """
    settings = get_settings()

    if settings.is_development:
        logger.info("Storage Service: Using MemoryStorageService (development mode)")
        return MemoryStorageService()

    from qr_ordering.services.storage.redis import RedisStorageService

    logger.info(
        f"Storage Service: Using RedisStorageService "
        f"({settings.env_mode.value} mode)"
    )
    return RedisStorageService()


def reset_storage_service() -> None:
    """
    Clear the cached storage service instance.

    The next call to get_storage_service() creates a fresh, empty store.
    """
    get_storage_service.cache_clear()
    logger.debug("Storage service cache cleared")


__all__ = [
    "get_storage_service",
    "reset_storage_service",
    "BaseStorageService",
    "MemoryStorageService",
]
