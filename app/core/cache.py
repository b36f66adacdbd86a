import redis.asyncio as aioredis

from app.core.config import Settings


def create_redis_client(settings: Settings) -> aioredis.Redis:
    """Build the shared Redis client. Caller owns it and must aclose() it."""
    return aioredis.from_url(settings.redis_url, decode_responses=True)
