"""
Redis cache utilities
"""

import json
import logging
from typing import Any, Optional

import redis.asyncio as redis
from redis.asyncio.connection import ConnectionPool
from redis.exceptions import RedisError

from getcito.config import get_settings
from getcito.utils.security import generate_cache_key

logger = logging.getLogger(__name__)

# Connection pool
_pool: Optional[ConnectionPool] = None


async def get_redis_pool() -> ConnectionPool:
    """Get or create Redis connection pool"""
    global _pool
    if _pool is None:
        settings = get_settings()
        _pool = ConnectionPool.from_url(
            settings.REDIS_URL,
            max_connections=20,
            decode_responses=True,
        )
    return _pool


async def get_redis() -> redis.Redis:
    """Get Redis client"""
    pool = await get_redis_pool()
    return redis.Redis(connection_pool=pool)


async def close_redis():
    """Close Redis connections"""
    global _pool
    if _pool is not None:
        await _pool.disconnect()
        _pool = None


class CacheService:
    """JSON cache on Redis. Failures degrade to cache misses."""

    def __init__(self, prefix: str = "getcito", client: Optional[redis.Redis] = None):
        self.prefix = prefix
        self._client = client

    def _key(self, key: str) -> str:
        """Generate full cache key with prefix"""
        return f"{self.prefix}:{key}"

    async def _get_client(self) -> Optional[redis.Redis]:
        if self._client is not None:
            return self._client
        if not get_settings().ANALYTICS_CACHE_ENABLED:
            return None
        return await get_redis()

    async def get(self, key: str) -> Optional[Any]:
        """Get value from cache"""
        client = await self._get_client()
        if client is None:
            return None
        try:
            value = await client.get(self._key(key))
        except RedisError as e:
            logger.warning("Cache read failed for %s: %s", key, e)
            return None
        if value is None:
            return None
        try:
            return json.loads(value)
        except json.JSONDecodeError:
            logger.warning("Discarding undecodable cache entry %s", key)
            return None

    async def set(self, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        """Set value in cache with optional TTL (seconds)"""
        client = await self._get_client()
        if client is None:
            return False
        if ttl is None:
            ttl = get_settings().ANALYTICS_CACHE_TTL
        try:
            return bool(await client.setex(self._key(key), ttl, json.dumps(value)))
        except RedisError as e:
            logger.warning("Cache write failed for %s: %s", key, e)
            return False

    async def delete_pattern(self, pattern: str) -> int:
        """Delete every key under the prefix matching pattern"""
        client = await self._get_client()
        if client is None:
            return 0
        try:
            keys = [key async for key in client.scan_iter(match=self._key(pattern))]
            if keys:
                return await client.delete(*keys)
        except RedisError as e:
            logger.warning("Cache invalidation failed for %s: %s", pattern, e)
        return 0


class AnalyticsCache(CacheService):
    """Brand analytics views keyed by brand, scope and history digest"""

    def __init__(self, client: Optional[redis.Redis] = None):
        super().__init__(prefix="getcito:analytics", client=client)

    async def get_view(self, brand_id: str, scope: str, digest: str) -> Optional[dict]:
        return await self.get(generate_cache_key(brand_id, scope, digest))

    async def set_view(self, brand_id: str, scope: str, digest: str, view: dict) -> bool:
        return await self.set(generate_cache_key(brand_id, scope, digest), view)

    async def invalidate_brand(self, brand_id: str) -> int:
        """Drop every cached view of a brand"""
        removed = await self.delete_pattern(f"{brand_id}:*")
        if removed:
            logger.info("Invalidated %d cached analytics views for brand %s", removed, brand_id)
        return removed


analytics_cache = AnalyticsCache()
