import json
from datetime import datetime

import pytest

from keysetstore.messaging import client as client_module
from keysetstore.messaging.client import RedisClient, get_redis_client
from keysetstore.messaging.events import ChangePublisher, build_publisher, diff


class FakeRedis:
    def __init__(self, fail=False):
        self.messages = []
        self.fail = fail

    async def publish(self, channel, message):
        if self.fail:
            raise ConnectionError("redis down")
        self.messages.append((channel, message))
        return 2


def test_diff_returns_new_values_of_changed_fields():
    found = {"id": 1, "title": "Old", "rank": 3}
    updated = {"id": 1, "title": "New", "rank": 3, "draft_notes": "x"}
    assert diff(found, updated) == {"title": "New", "draft_notes": "x"}


def test_diff_against_empty_state_lists_set_fields():
    assert diff({}, {"id": 5, "title": "Hi", "author_id": None}) == {"id": 5, "title": "Hi"}


@pytest.mark.asyncio
async def test_publish_sends_json_payload_to_channel():
    redis = FakeRedis()
    publisher = ChangePublisher(redis, channel="article-updates")

    count = await publisher.publish("Article", 42, "update", {"published_at": datetime(2024, 1, 5, 10, 0)})

    assert count == 2
    channel, message = redis.messages[0]
    assert channel == "article-updates"
    assert json.loads(message) == {
        "id": 42,
        "action": "update",
        "updated": {"published_at": "2024-01-05T10:00:00"},
        "model": "Article",
    }


@pytest.mark.asyncio
async def test_publish_failures_propagate():
    publisher = ChangePublisher(FakeRedis(fail=True))
    with pytest.raises(ConnectionError):
        await publisher.publish("Article", 1, "create", {})


def test_build_publisher_without_client_disables_events():
    assert build_publisher(None) is None
    assert build_publisher(FakeRedis()).channel == "model-updates"


def test_redis_property_requires_connection():
    with pytest.raises(RuntimeError):
        RedisClient("redis://localhost:6379").redis


def test_global_client_requires_init(monkeypatch):
    monkeypatch.setattr(client_module, "_client", None)
    with pytest.raises(RuntimeError):
        get_redis_client()


@pytest.mark.asyncio
async def test_unconnected_client_is_not_healthy():
    client = RedisClient("redis://localhost:6379")
    assert client.connected is False
    assert await client.healthy() is False
    await client.disconnect()
