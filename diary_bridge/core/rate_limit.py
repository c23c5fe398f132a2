"""Shared rate limiter instance.

Counters live in Redis when it answers a ping at import time, so limits
hold across worker processes. Otherwise an in-memory store is used
(development / test environments).
"""

import logging

import redis as sync_redis
from slowapi import Limiter
from slowapi.util import get_remote_address

from diary_bridge.config import settings

logger = logging.getLogger(__name__)

DEFAULT_LIMITS = ["100/minute"]


def _redis_reachable(url: str) -> bool:
    try:
        client = sync_redis.from_url(url, socket_connect_timeout=1)
        try:
            client.ping()
        finally:
            client.close()
    except sync_redis.RedisError:
        return False
    return True


def _create_limiter() -> Limiter:
    if _redis_reachable(settings.REDIS_URL):
        logger.info("Rate limiter: Redis storage (%s)", settings.REDIS_URL)
        return Limiter(
            key_func=get_remote_address,
            default_limits=DEFAULT_LIMITS,
            storage_uri=settings.REDIS_URL,
        )
    logger.warning("Rate limiter: Redis unavailable, using in-memory storage")
    return Limiter(key_func=get_remote_address, default_limits=DEFAULT_LIMITS)


limiter = _create_limiter()
