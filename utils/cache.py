"""
Redis-backed caching with direct-execution fallback
"""
import json
import logging
from typing import Any, Awaitable, Callable, Optional

import redis

from config.settings import settings

logger = logging.getLogger(__name__)

_redis_client: Optional[redis.Redis] = None
_redis_checked = False


def get_redis_client() -> Optional[redis.Redis]:
    """
    Shared Redis client, or None when REDIS_URL is unset or unreachable.
    The connection is attempted once per process.
    """
    global _redis_client, _redis_checked
    if _redis_checked:
        return _redis_client
    _redis_checked = True

    if not settings.redis_url:
        logger.info("REDIS_URL not set. Caching and rate limiting use local fallbacks.")
        return None

    try:
        client = redis.from_url(settings.redis_url, decode_responses=True)
        client.ping()
        _redis_client = client
        logger.info("Redis connected successfully")
    except redis.RedisError as e:
        logger.warning(f"Redis connection failed: {e}. Falling back to local execution.")
        _redis_client = None
    return _redis_client


async def get_cached(key: str, fallback_func: Callable[[], Awaitable[Any]], ttl_seconds: int) -> Any:
    """
    Fetch a value from Redis, or compute it with fallback_func and store it.

    Args:
        key: Cache key (e.g., "user:123")
        fallback_func: Async callable that returns the data to cache
        ttl_seconds: Time-to-live in seconds for the cached value

    Returns:
        The cached value or the result from fallback_func
    """
    client = get_redis_client()
    if client is not None:
        try:
            cached_value = client.get(key)
            if cached_value is not None:
                try:
                    return json.loads(cached_value)
                except (json.JSONDecodeError, TypeError):
                    return cached_value
        except redis.RedisError as e:
            logger.warning(f"Redis cache get failed for key '{key}': {e}. Executing fallback.")

    result = await fallback_func()

    if client is not None:
        try:
            if isinstance(result, (dict, list)):
                cache_value = json.dumps(result)
            else:
                cache_value = str(result)
            client.setex(key, ttl_seconds, cache_value)
        except (redis.RedisError, TypeError) as e:
            logger.warning(f"Redis cache set failed for key '{key}': {e}. Result not cached.")

    return result


def invalidate_cached(key: str) -> None:
    client = get_redis_client()
    if client is None:
        return
    try:
        client.delete(key)
    except redis.RedisError as e:
        logger.warning(f"Redis cache delete failed for key '{key}': {e}")
