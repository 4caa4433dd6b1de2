"""
Short-lived cache of computed time slots

Backed by Redis when it is enabled and reachable; every operation is a
no-op otherwise so slot computation never depends on the cache.
"""
import json
import logging
from typing import Any, Dict, Optional

from app.config import settings
from app.utils.redis_client import RedisClient, cache_redis_client

logger = logging.getLogger(__name__)


class AvailabilityCache:
    """Cache of available slots keyed by provider, date and duration"""

    KEY_PREFIX = "slots"

    def __init__(self, redis_client: Optional[RedisClient] = None, ttl: Optional[int] = None):
        self.redis = redis_client if redis_client is not None else cache_redis_client
        self.ttl = ttl or settings.AVAILABILITY_CACHE_TTL_SECONDS

    @property
    def enabled(self) -> bool:
        return settings.REDIS_ENABLED and self.redis.is_connected

    def key(self, provider_id: int, date: str, duration: int) -> str:
        return f"{self.KEY_PREFIX}:{provider_id}:{date}:{duration}"

    async def get(self, provider_id: int, date: str, duration: int) -> Optional[Dict[str, Any]]:
        if not self.enabled:
            return None
        try:
            raw = await self.redis.get(self.key(provider_id, date, duration))
        except Exception as e:
            logger.warning(f"⚠️ [CACHE] Read failed, computing slots directly: {e}")
            return None
        if raw is None:
            return None
        logger.debug(f"🎯 [CACHE] Hit for provider {provider_id} on {date} ({duration} min)")
        return json.loads(raw)

    async def set(self, provider_id: int, date: str, duration: int, value: Dict[str, Any]):
        if not self.enabled:
            return
        try:
            await self.redis.set(self.key(provider_id, date, duration), json.dumps(value), ex=self.ttl)
        except Exception as e:
            logger.warning(f"⚠️ [CACHE] Write failed: {e}")

    async def invalidate(self, provider_id: int, date: Optional[str] = None):
        """Drop cached slots of a provider, for one date or for all dates"""
        if not self.enabled:
            return
        pattern = f"{self.KEY_PREFIX}:{provider_id}:{date or '*'}:*"
        try:
            deleted = await self.redis.delete_pattern(pattern)
            logger.info(f"🧹 [CACHE] Invalidated {deleted} slot entries for provider {provider_id}")
        except Exception as e:
            logger.warning(f"⚠️ [CACHE] Invalidation failed for provider {provider_id}: {e}")


availability_cache = AvailabilityCache()
