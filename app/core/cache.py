"""
Redis cache management.
Provides the connection and the presence mirror shared between workers.

Redis is optional: with no URL, or when the server cannot be reached,
every helper becomes a no-op and presence is answered in-process only.
"""
import json
import logging
from typing import Any, Optional

from redis import asyncio as aioredis
from redis.exceptions import RedisError

from app.config import settings

logger = logging.getLogger(__name__)


class RedisCache:
    """Redis cache manager with connection pooling."""

    def __init__(self):
        """Initialize Redis connection pool."""
        self.redis: Optional[aioredis.Redis] = None

    async def connect(self) -> None:
        """Establish connection to Redis."""
        if not settings.redis_url:
            logger.info("No Redis URL provided - running without Redis cache")
            self.redis = None
            return

        try:
            self.redis = aioredis.from_url(
                settings.redis_url,
                password=settings.redis_password or None,
                encoding="utf-8",
                decode_responses=True,
                max_connections=50,
            )
            # Test the connection
            await self.redis.ping()
            logger.info("Connected to Redis successfully")
        except (RedisError, OSError) as e:
            logger.warning("Could not connect to Redis, running without cache: %s", e)
            self.redis = None

    async def disconnect(self) -> None:
        """Close Redis connection."""
        if self.redis:
            await self.redis.aclose()
            self.redis = None

    async def ping(self) -> bool:
        """Health check; False when Redis is disabled or unreachable."""
        if not self.redis:
            return False
        try:
            return bool(await self.redis.ping())
        except RedisError:
            return False

    async def get(self, key: str) -> Optional[Any]:
        """
        Get value from cache.

        Args:
            key: Cache key

        Returns:
            Cached value or None if not found
        """
        if not self.redis:
            return None

        try:
            value = await self.redis.get(key)
        except RedisError as e:
            logger.warning("Redis GET %s failed: %s", key, e)
            return None

        if value:
            try:
                return json.loads(value)
            except json.JSONDecodeError:
                return value
        return None

    async def set(
        self,
        key: str,
        value: Any,
        ttl: Optional[int] = None
    ) -> bool:
        """
        Set value in cache with optional TTL.

        Args:
            key: Cache key
            value: Value to cache
            ttl: Time to live in seconds

        Returns:
            True if successful
        """
        if not self.redis:
            return False

        if isinstance(value, (dict, list)):
            value = json.dumps(value)

        try:
            if ttl:
                return bool(await self.redis.setex(key, ttl, value))
            return bool(await self.redis.set(key, value))
        except RedisError as e:
            logger.warning("Redis SET %s failed: %s", key, e)
            return False

    async def delete(self, key: str) -> bool:
        """
        Delete key from cache.

        Returns:
            True if key was deleted
        """
        if not self.redis:
            return False

        try:
            return bool(await self.redis.delete(key))
        except RedisError as e:
            logger.warning("Redis DEL %s failed: %s", key, e)
            return False


# Global cache instance
cache = RedisCache()


def _presence_key(user_id: int) -> str:
    return f"presence:{user_id}"


async def set_user_presence(user_id: int, status: str) -> bool:
    """Set user presence status (online/offline)."""
    return await cache.set(
        _presence_key(user_id),
        {"status": status},
        ttl=settings.cache_presence_ttl
    )


async def clear_user_presence(user_id: int) -> bool:
    """Remove the presence entry when the user's last session closes."""
    return await cache.delete(_presence_key(user_id))


async def get_user_presence(user_id: int) -> Optional[str]:
    """Get user presence status."""
    data = await cache.get(_presence_key(user_id))
    return data.get("status") if isinstance(data, dict) else None
