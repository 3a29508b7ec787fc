"""
Redis connection used to publish change notifications.

One connection per process, opened during app startup:

    client = await init_redis("redis://redis:6379")
    await client.publish("model-updates", payload)
    await close_redis()
"""

from __future__ import annotations

import logging
from typing import Optional

import redis.asyncio as aioredis
from redis.exceptions import RedisError

logger = logging.getLogger(__name__)


class RedisClient:
    """
    Publish-only Redis connection.

    connect() pings the server, so a wrong URL fails at startup rather than
    on the first write.
    """

    def __init__(self, redis_url: str, client_name: str = "keysetstore"):
        self.redis_url = redis_url
        self.client_name = client_name
        self._redis: Optional[aioredis.Redis] = None

    @property
    def connected(self) -> bool:
        return self._redis is not None

    @property
    def redis(self) -> aioredis.Redis:
        if self._redis is None:
            raise RuntimeError("Redis client not connected. Call await client.connect() first.")
        return self._redis

    async def connect(self) -> None:
        if self._redis is not None:
            return
        connection = aioredis.from_url(
            self.redis_url,
            decode_responses=True,
            client_name=self.client_name,
        )
        await connection.ping()
        self._redis = connection
        logger.info(f"Connected to Redis at {self.redis_url}")

    async def disconnect(self) -> None:
        if self._redis is None:
            return
        await self._redis.aclose()
        self._redis = None
        logger.info("Redis connection closed")

    async def publish(self, channel: str, message: str) -> int:
        """Publish to a channel; returns the number of receiving subscribers."""
        return await self.redis.publish(channel, message)

    async def healthy(self) -> bool:
        """True when the server answers a ping."""
        if self._redis is None:
            return False
        try:
            return bool(await self._redis.ping())
        except RedisError as e:
            logger.warning(f"Redis ping failed: {e}")
            return False


_client: Optional[RedisClient] = None


def get_redis_client() -> RedisClient:
    """The process-wide client created by init_redis()."""
    if _client is None:
        raise RuntimeError("Redis is not initialized. Call await init_redis(url) during startup.")
    return _client


async def init_redis(redis_url: str) -> RedisClient:
    """Connect the process-wide client (idempotent for the same URL)."""
    global _client
    if _client is not None and _client.redis_url != redis_url:
        await close_redis()
    if _client is None:
        _client = RedisClient(redis_url)
    await _client.connect()
    return _client


async def close_redis() -> None:
    global _client
    if _client is not None:
        await _client.disconnect()
        _client = None
