"""
Change notifications for written records.

Every create/update publishes one message to the change channel:

    {"id": 42, "action": "update", "updated": {"title": "New"}, "model": "Article"}
"""

from __future__ import annotations

import json
import logging
from typing import Any, Optional, Protocol

from pydantic_core import to_jsonable_python

from ..config import DEFAULT_CHANGE_CHANNEL

logger = logging.getLogger(__name__)


class Publisher(Protocol):
    async def publish(self, channel: str, message: str) -> int: ...


def diff(found: dict[str, Any], updated: dict[str, Any]) -> dict[str, Any]:
    """
    Fields whose value differs between two record states.

    Returns the new values; fields missing from `updated` map to None.
    """
    changes = {}
    for key in [*found, *[k for k in updated if k not in found]]:
        if found.get(key) != updated.get(key):
            changes[key] = updated.get(key)
    return changes


class ChangePublisher:
    """
    Publishes record change events.

    Publish failures are not swallowed: the write already happened, and the
    caller decides whether a missing notification is fatal.

    Usage:
        publisher = ChangePublisher(await init_redis(url))
        await publisher.publish("Article", 42, "update", {"title": "New"})
    """

    def __init__(self, client: Publisher, channel: str = DEFAULT_CHANGE_CHANNEL):
        """
        Args:
            client: Anything with `async publish(channel, message)` (RedisClient)
            channel: Channel receiving all change events
        """
        self.client = client
        self.channel = channel

    async def publish(
        self,
        model: str,
        record_id: Any,
        action: str,
        changes: dict[str, Any],
    ) -> int:
        data = {
            "id": record_id,
            "action": action,
            "updated": changes,
            "model": model,
        }
        payload = json.dumps(to_jsonable_python(data), ensure_ascii=False)
        count = await self.client.publish(self.channel, payload)
        logger.info(f"Published {model}.{action} for {record_id} to {self.channel}: {count} subscribers")
        return count


def build_publisher(client: Optional[Publisher], channel: str = DEFAULT_CHANGE_CHANNEL) -> Optional[ChangePublisher]:
    """ChangePublisher for the client, or None when messaging is disabled."""
    if client is None:
        return None
    return ChangePublisher(client, channel)
