"""Cache service implementation.

Abstract cache interface with a Redis implementation and an in-process
LRU implementation. Used to remember which photo reference a place id
resolved to, so re-opening a tour does not repeat every place lookup.

Cache Key Consistency:
- Retrieving a place using the same place_id SHALL return the value stored
  under that place_id, whichever implementation is active.
"""

import json
from abc import ABC, abstractmethod
from typing import Any, Optional

import redis.asyncio as redis

from placay.utils.cache import LRUCache


class CacheService(ABC):
    """Abstract base class for cache services."""

    @abstractmethod
    async def get(self, key: str) -> Any | None:
        """Retrieve cached value by key.

        Args:
            key: The cache key to look up.

        Returns:
            The cached value if found, None otherwise.
        """
        pass

    @abstractmethod
    async def set(self, key: str, value: Any, ttl_seconds: Optional[int] = None) -> None:
        """Store value in cache with optional TTL.

        Args:
            key: The cache key to store under.
            value: The value to cache (must be JSON serializable).
            ttl_seconds: Time-to-live in seconds. Uses the service default
                when omitted.
        """
        pass

    @abstractmethod
    async def delete(self, key: str) -> bool:
        """Delete a specific key from the cache.

        Returns:
            True if the key was deleted, False if it didn't exist.
        """
        pass

    async def close(self) -> None:
        """Release any connections held by the cache."""

    @staticmethod
    def build_place_key(place_id: str) -> str:
        """Generate cache key for a place's photo reference.

        Example:
            >>> CacheService.build_place_key("ChIJD7fiBh9u5kcRYJSMaMOCCwQ")
            'place:photo:ChIJD7fiBh9u5kcRYJSMaMOCCwQ'
        """
        return f"place:photo:{place_id}"


class MemoryCacheService(CacheService):
    """Process-local cache backed by :class:`LRUCache`."""

    def __init__(self, max_size: int = 1000, default_ttl: int = 86400) -> None:
        self._cache = LRUCache(max_size=max_size, ttl_seconds=default_ttl)

    async def get(self, key: str) -> Any | None:
        return self._cache.get(key)

    async def set(self, key: str, value: Any, ttl_seconds: Optional[int] = None) -> None:
        self._cache.set(key, value, ttl_seconds)

    async def delete(self, key: str) -> bool:
        return self._cache.delete(key)


class RedisCacheService(CacheService):
    """Redis-based implementation of the cache service.

    Values are JSON serialized. The connection is opened lazily on first use.

    Attributes:
        _client: The Redis async client instance.
        _default_ttl: Default TTL in seconds for cached values.
    """

    def __init__(
        self,
        redis_url: str = "redis://localhost:6379",
        default_ttl: int = 86400,
    ) -> None:
        self._redis_url = redis_url
        self._default_ttl = default_ttl
        self._client: redis.Redis | None = None

    async def connect(self) -> None:
        if self._client is None:
            self._client = redis.from_url(
                self._redis_url,
                encoding="utf-8",
                decode_responses=True,
            )

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _ensure_connected(self) -> redis.Redis:
        if self._client is None:
            await self.connect()
        return self._client  # type: ignore

    async def get(self, key: str) -> Any | None:
        client = await self._ensure_connected()
        value = await client.get(key)
        if value is None:
            return None
        try:
            return json.loads(value)
        except json.JSONDecodeError:
            # Return raw value if not JSON
            return value

    async def set(self, key: str, value: Any, ttl_seconds: Optional[int] = None) -> None:
        client = await self._ensure_connected()
        ttl = ttl_seconds if ttl_seconds is not None else self._default_ttl
        await client.set(key, json.dumps(value), ex=ttl)

    async def delete(self, key: str) -> bool:
        client = await self._ensure_connected()
        return await client.delete(key) > 0

    @property
    def default_ttl(self) -> int:
        """Get the default TTL in seconds."""
        return self._default_ttl


def create_cache_service(
    redis_url: Optional[str] = None, default_ttl: int = 86400
) -> CacheService:
    """Redis when a URL is configured, otherwise the in-process LRU."""
    if redis_url:
        return RedisCacheService(redis_url=redis_url, default_ttl=default_ttl)
    return MemoryCacheService(default_ttl=default_ttl)
