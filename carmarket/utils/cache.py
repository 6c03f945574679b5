"""Redis counters and lookups for the rate limiter and health checks."""

import logging
from typing import Optional

import redis.asyncio as aioredis

logger = logging.getLogger(__name__)


class CacheService:
    """Redis access that degrades instead of raising.

    A Redis outage must never take a request down with it: reads return None,
    writes return False and counters fall back to the amount just added.
    """

    def __init__(self, redis_url: str, client: Optional[aioredis.Redis] = None):
        """
        Args:
            redis_url: Connection URL, used when no client is given
            client: Shared client, e.g. the one backing the view cache
        """
        self.redis = client or aioredis.from_url(redis_url)
        self.logger = logging.getLogger(__name__)

    async def get(self, key: str) -> Optional[str]:
        try:
            value = await self.redis.get(key)
        except Exception as e:
            self.logger.warning(f"Redis GET {key} failed: {e}")
            return None
        return value.decode("utf-8") if isinstance(value, bytes) else value

    async def set(self, key: str, value: str, ttl: Optional[int] = None) -> bool:
        try:
            return bool(await self.redis.set(key, value, ex=ttl))
        except Exception as e:
            self.logger.warning(f"Redis SET {key} failed: {e}")
            return False

    async def increment(self, key: str, amount: int = 1) -> int:
        """Add `amount` to a counter and return the new total.

        On failure only `amount` is counted, so a broken Redis lets requests
        through rather than blocking them.
        """
        try:
            return await self.redis.incrby(key, amount)
        except Exception as e:
            self.logger.warning(f"Redis INCRBY {key} failed: {e}")
            return amount

    async def expire(self, key: str, ttl: int) -> bool:
        try:
            return bool(await self.redis.expire(key, ttl))
        except Exception as e:
            self.logger.warning(f"Redis EXPIRE {key} failed: {e}")
            return False

    async def ping(self) -> bool:
        try:
            return bool(await self.redis.ping())
        except Exception as e:
            self.logger.error(f"Redis ping failed: {e}")
            return False
