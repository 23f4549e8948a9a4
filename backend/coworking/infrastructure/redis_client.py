"""
Shared asyncio Redis connection used by the lock and notification backends.
Separated from business logic for clean architecture.
"""

from typing import Optional

import redis.asyncio as redis
from redis.exceptions import RedisError
from coworking.core.config import get_settings
from coworking.core.logging import get_logger
from coworking.core.metrics import redis_connection_errors

logger = get_logger(__name__)
settings = get_settings()

_redis_client: Optional[redis.Redis] = None


async def get_redis() -> Optional[redis.Redis]:
    """Get or create the Redis connection. Returns None if Redis is disabled or down."""
    global _redis_client

    if not settings.REDIS_ENABLED:
        return None

    if _redis_client is None:
        client = redis.from_url(
            settings.REDIS_URL,
            encoding="utf-8",
            decode_responses=True,
            socket_connect_timeout=5,
            socket_timeout=5,
            retry_on_timeout=True,
            health_check_interval=30,
        )
        try:
            await client.ping()
        except RedisError as e:
            redis_connection_errors.inc()
            logger.error("redis_connection_failed", url=settings.REDIS_URL, error=str(e))
            await client.aclose()
            return None
        _redis_client = client
        logger.info("redis_connected", url=settings.REDIS_URL)

    return _redis_client


async def close_redis() -> None:
    """Close Redis connection on shutdown."""
    global _redis_client
    if _redis_client:
        await _redis_client.aclose()
        _redis_client = None


async def get_redis_stats() -> dict:
    """Connection status for the health endpoint."""
    if _redis_client is None:
        return {"status": "disabled" if not settings.REDIS_ENABLED else "not_connected"}

    try:
        info = await _redis_client.info("clients")
        return {
            "status": "connected",
            "connected_clients": info.get("connected_clients", 0),
        }
    except RedisError as e:
        return {"status": "error", "error": str(e)}
