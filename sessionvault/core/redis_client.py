"""SessionVault Redis client factory."""

import logging

from redis.asyncio import Redis
from redis.exceptions import RedisError

from sessionvault.core.config import Settings

logger = logging.getLogger(__name__)


def create_redis_client(settings: Settings) -> Redis:
    """Create an async Redis client from settings.

    Socket timeouts match the per-operation timeout so a stalled
    connection cannot outlive the request waiting on it.
    """
    return Redis.from_url(
        settings.redis_url,
        decode_responses=True,
        socket_timeout=settings.redis_operation_timeout,
        socket_connect_timeout=settings.redis_operation_timeout,
        health_check_interval=30,
    )


async def check_redis_connection(client: Redis) -> bool:
    """Check if Redis is reachable."""
    try:
        return bool(await client.ping())
    except (RedisError, OSError) as e:
        logger.debug(f"Redis connection check failed: {e}")
        return False
