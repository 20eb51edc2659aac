"""Unit tests for domain events and their publishers."""

import json
from datetime import UTC, datetime
from unittest.mock import AsyncMock

from src.cs_common.enums import EventType
from src.cs_common.events import DomainEvent, InMemoryEventPublisher, RedisEventPublisher


def _make_event(event_type: EventType = EventType.ORDER_CREATED) -> DomainEvent:
    return DomainEvent(
        event_type, "mkt_1", {"order_id": "1", "owner": "alice"}, datetime(2026, 1, 1, tzinfo=UTC)
    )


class TestDomainEvent:
    def test_to_json(self) -> None:
        body = json.loads(_make_event().to_json())
        assert body["event_type"] == "ORDER_CREATED"
        assert body["market_id"] == "mkt_1"
        assert body["payload"] == {"order_id": "1", "owner": "alice"}
        assert body["occurred_at"] == "2026-01-01T00:00:00+00:00"


class TestInMemoryEventPublisher:
    async def test_collects_and_filters(self) -> None:
        pub = InMemoryEventPublisher()
        await pub.publish([_make_event(), _make_event(EventType.ORDER_SETTLED)])
        assert len(pub.published) == 2
        assert len(pub.of_type(EventType.ORDER_SETTLED)) == 1


class TestRedisEventPublisher:
    async def test_publishes_each_event_to_channel(self) -> None:
        redis = AsyncMock()
        pub = RedisEventPublisher(redis, "cs:events")
        await pub.publish([_make_event(), _make_event()])
        assert redis.publish.await_count == 2
        channel, message = redis.publish.await_args.args
        assert channel == "cs:events"
        assert json.loads(message)["event_type"] == "ORDER_CREATED"

    async def test_nothing_to_publish(self) -> None:
        redis = AsyncMock()
        await RedisEventPublisher(redis, "cs:events").publish([])
        redis.publish.assert_not_awaited()
