"""View cache configuration and invalidation."""

import logging

from fastapi_cache import FastAPICache
from fastapi_cache.backends.redis import RedisBackend
from redis import asyncio as aioredis

from carmarket.config import CacheSettings

logger = logging.getLogger(__name__)

# Namespaces of cached views that depend on listings
ADMIN_CARS_NAMESPACE = "admin-cars"
FEATURED_CARS_NAMESPACE = "featured-cars"
LISTING_VIEWS = (ADMIN_CARS_NAMESPACE, FEATURED_CARS_NAMESPACE)


def init_cache(settings: CacheSettings, redis: aioredis.Redis) -> None:
    """Initialize the FastAPI cache with Redis backend.

    This should be called during application startup.
    """
    FastAPICache.init(RedisBackend(redis), prefix=settings.prefix, expire=settings.view_ttl)
    logger.info("Cache initialized with Redis backend")


class ViewInvalidator:
    """Marks cached listing views as stale after a write."""

    async def invalidate(self, *namespaces: str) -> None:
        """Invalidate cached views.

        A failure leaves a view stale until its TTL runs out; it never fails the
        write that triggered it.

        Args:
            *namespaces: Namespaces to clear, all listing views when omitted
        """
        for namespace in namespaces or LISTING_VIEWS:
            try:
                await FastAPICache.clear(namespace=namespace)
                logger.debug(f"Invalidated cache namespace: {namespace}")
            except Exception as e:
                logger.error(f"Failed to invalidate cache namespace {namespace}: {e}")
