"""
Redis client initialization and connection management.

The client is created during application startup and stored on
``app.state``; request handlers receive it through ``get_redis``.
"""

import logging
import redis.asyncio as redis
from starlette.requests import Request
from carlet.app.core.config import Settings

logger = logging.getLogger("carlet.redis")


def create_redis_client(config: Settings):
    """Build an async Redis client from settings (connects lazily)."""
    return redis.from_url(
        config.redis_url,
        decode_responses=config.redis_decode_responses,
    )


async def get_redis(request: Request):
    """
    Get the Redis client instance for the running application.
    
    Used as a FastAPI dependency.
    """
    return request.app.state.redis


async def ping_redis(client) -> bool:
    """
    Test Redis connection.
    
    Returns:
        True if connection successful, False otherwise
    """
    try:
        return await client.ping()
    except redis.RedisError as e:
        logger.warning("Redis ping failed: %s", e)
        return False
