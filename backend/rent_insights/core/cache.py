"""
Redis cache for rent insights responses.

Redis down = cache miss, never an error: callers never handle Redis
failures. Values are JSON documents under keys sharing a common prefix so a
data import can invalidate every cached response at once.
"""

import json
import logging
from typing import Any, Optional

import redis

from rent_insights.core.config import settings

logger = logging.getLogger(__name__)

KEY_PREFIX = "rent-insights:"

_redis_client: Optional[redis.Redis] = None


def get_redis() -> redis.Redis:
    """Lazily create the shared client; connections are opened on first command."""
    global _redis_client
    if _redis_client is None:
        _redis_client = redis.Redis(
            host=settings.REDIS_HOST,
            port=settings.REDIS_PORT,
            db=settings.REDIS_DB,
            decode_responses=True,
            socket_connect_timeout=2,
            socket_timeout=2,
        )
    return _redis_client


def cache_get_json(key: str) -> Optional[Any]:
    """Decoded value for `key`, or None on miss, Redis error or corrupt entry."""
    try:
        raw = get_redis().get(key)
    except redis.RedisError:
        logger.warning("Redis get failed for key=%s", key, exc_info=True)
        return None
    if raw is None:
        return None
    try:
        return json.loads(raw)
    except ValueError:
        logger.warning("Discarding corrupt cache entry key=%s", key)
        return None


def cache_set_json(key: str, value: Any, ttl: int) -> None:
    try:
        get_redis().set(key, json.dumps(value), ex=ttl)
    except redis.RedisError:
        logger.warning("Redis set failed for key=%s", key, exc_info=True)


def invalidate(prefix: str = KEY_PREFIX) -> int:
    """Delete every key starting with `prefix`; returns how many were removed."""
    try:
        client = get_redis()
        keys = list(client.scan_iter(match=f"{prefix}*", count=500))
        if keys:
            client.delete(*keys)
    except redis.RedisError:
        logger.warning("Redis invalidation failed for prefix=%s", prefix, exc_info=True)
        return 0
    if keys:
        logger.info(f"Invalidated {len(keys)} cached rent insights")
    return len(keys)
