"""
Redis client for the availability cache
"""
import redis.asyncio as redis
from typing import Optional
from app.config import settings
import logging

logger = logging.getLogger(__name__)


class RedisClient:
    """Async Redis client wrapper"""

    def __init__(self, url: str):
        self.url = url
        self.client: Optional[redis.Redis] = None

    @property
    def is_connected(self) -> bool:
        return self.client is not None

    async def connect(self):
        """Connect to Redis"""
        try:
            self.client = redis.from_url(
                self.url,
                encoding="utf-8",
                decode_responses=True,
                socket_connect_timeout=5,
            )
            await self.client.ping()
            logger.info(f"Connected to Redis: {self.url}")
        except Exception as e:
            logger.error(f"Failed to connect to Redis: {e}")
            self.client = None
            raise

    async def disconnect(self):
        """Disconnect from Redis"""
        if self.client:
            await self.client.aclose()
            self.client = None
            logger.info("Disconnected from Redis")

    async def get(self, key: str) -> Optional[str]:
        """Get value by key"""
        if not self.client:
            raise RuntimeError("Redis client not connected")
        return await self.client.get(key)

    async def set(self, key: str, value: str, ex: Optional[int] = None):
        """
        Set key-value pair

        Args:
            key: Redis key
            value: Value to store
            ex: Expiration time in seconds
        """
        if not self.client:
            raise RuntimeError("Redis client not connected")
        await self.client.set(key, value, ex=ex)

    async def delete(self, key: str):
        """Delete key"""
        if not self.client:
            raise RuntimeError("Redis client not connected")
        await self.client.delete(key)

    async def delete_pattern(self, pattern: str) -> int:
        """
        Delete every key matching a glob pattern

        Returns:
            Number of deleted keys
        """
        if not self.client:
            raise RuntimeError("Redis client not connected")

        deleted = 0
        async for key in self.client.scan_iter(match=pattern, count=100):
            deleted += await self.client.delete(key)
        return deleted


# Global Redis client
cache_redis_client = RedisClient(settings.redis_cache_url)


async def get_cache_redis() -> RedisClient:
    """Dependency for the cache Redis client"""
    return cache_redis_client
