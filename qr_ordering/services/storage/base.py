"""
Storage Service Abstract Base Class

Defines the interface for the key-value store that holds state the
customer and cashier devices keep between requests: carts and login
sessions. Both the in-memory and the Redis implementations honor the same
contract, so the cart and session code never know which one is active.

Design Pattern: Strategy Pattern
    - Development runs without Redis
    - Staging/production share state across API workers through Redis

Version: 1.0.0
"""

from abc import ABC, abstractmethod
from typing import Callable, Optional


class BaseStorageService(ABC):
    """
    Abstract base class for storage services.

    Values are strings (callers serialize to JSON). A ``ttl`` of ``None``
    keeps the key until it is deleted.

    Example:
        >>> storage = get_storage_service()
        >>> await storage.set("cart:abc", '{"items": {}}', ttl=3600)
        >>> await storage.get("cart:abc")
        '{"items": {}}'
    """

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """
        Return the name of the storage provider.

        Returns:
            str: Provider name (e.g., "memory", "redis")
        """
        pass

    @abstractmethod
    async def get(self, key: str) -> Optional[str]:
        """
        Read a value.

        Returns:
            The stored string, or None when missing or expired
        """
        pass

    @abstractmethod
    async def set(self, key: str, value: str, ttl: Optional[int] = None) -> None:
        """
        Store a value, replacing any previous one.

        Args:
            key: Storage key
            value: Serialized value
            ttl: Lifetime in seconds (None = no expiry)
        """
        pass

    @abstractmethod
    async def delete(self, key: str) -> bool:
        """
        Remove a key.

        Returns:
            bool: True if the key existed
        """
        pass

    @abstractmethod
    async def pop(self, key: str) -> Optional[str]:
        """
        Read and remove a value in one atomic step.

        Of several callers popping the same key, only one gets the value.

        Returns:
            The stored string, or None when missing or expired
        """
        pass

    @abstractmethod
    async def update(
        self,
        key: str,
        change: Callable[[Optional[str]], str],
        ttl: Optional[int] = None,
    ) -> str:
        """
        Read-modify-write a value without losing concurrent updates.

        ``change`` receives the current value (None when missing) and returns
        the new one. It may raise to abort; nothing is written then.

        Returns:
            The value that was stored
        """
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """Verify the store is reachable."""
        pass

    async def close(self) -> None:
        """Release connections. Default: nothing to release."""
        return None
