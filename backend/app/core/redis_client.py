"""
Redis client initialization and connection management.

Redis backs the role cache only; it is never the source of truth.
"""

import redis.asyncio as redis
from backend.app.core.config import settings


# Create async Redis client
redis_client = redis.from_url(
    settings.redis_url,
    decode_responses=settings.redis_decode_responses,
)


async def get_redis():
    """
    Get Redis client instance.
    
    Used as a FastAPI dependency so tests can override it.
    """
    return redis_client


async def ping_redis() -> bool:
    """
    Test Redis connection.
    
    Returns:
        True if connection successful, False otherwise
    """
    try:
        return bool(await redis_client.ping())
    except redis.RedisError:
        return False
