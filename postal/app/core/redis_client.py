"""
Redis client initialization and connection management.

Redis holds revoked session tokens.
"""

import redis.asyncio as redis
from postal.app.core.config import settings


redis_client = redis.from_url(
    settings.redis_url,
    decode_responses=settings.redis_decode_responses,
)


async def get_redis():
    """
    Get Redis client instance.

    Used as a FastAPI dependency so tests can swap the client.
    """
    return redis_client


async def ping_redis(client=None) -> bool:
    """
    Test Redis connection.

    Args:
        client: Client to ping; defaults to the module client

    Returns:
        True if connection successful, False otherwise
    """
    try:
        return await (client or redis_client).ping()
    except Exception:
        return False
