import logging

from redis.asyncio import Redis

from .config import settings

logger = logging.getLogger(__name__)

JTI_EXPIRY = 60 * 60 * 24 * 8

token_blocklist = Redis.from_url(settings.REDIS_URL, decode_responses=True)


async def add_jti_to_blocklist(jti: str) -> None:
    await token_blocklist.set(name=jti, value="", ex=JTI_EXPIRY)


async def token_in_blocklist(jti: str) -> bool:
    return await token_blocklist.get(jti) is not None


async def ping_redis() -> bool:
    try:
        await token_blocklist.ping()
        return True
    except Exception as e:
        logger.warning(f"Redis unavailable, logout revocation checks will fail: {e}")
        return False
