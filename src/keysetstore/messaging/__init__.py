"""
Messaging module - Redis change notifications.

Usage:
    from keysetstore.messaging import init_redis, ChangePublisher

    client = await init_redis("redis://redis:6379")
    publisher = ChangePublisher(client, channel="model-updates")
    await publisher.publish("Article", 42, "create", {"title": "Hello"})
"""

from __future__ import annotations

from .client import (
    RedisClient,
    get_redis_client,
    init_redis,
    close_redis,
)
from .events import (
    ChangePublisher,
    Publisher,
    build_publisher,
    diff,
)

__all__ = [
    # Client
    "RedisClient",
    "get_redis_client",
    "init_redis",
    "close_redis",
    # Events
    "ChangePublisher",
    "Publisher",
    "build_publisher",
    "diff",
]
