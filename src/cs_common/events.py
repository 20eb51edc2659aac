"""Domain events and their publishers.

Events are appended to the state outbox inside the unit of work that caused
them, so a rolled-back call never emits anything. The service publishes the
outbox only after the change set has been committed.

Payloads carry identifiers, identities, markets, assets, statuses and
timestamps. Ciphertext handles and amounts never appear in an event.
"""

import json
import logging
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, Protocol

import redis.asyncio as aioredis

from src.cs_common.datetime_utils import utc_now
from src.cs_common.enums import EventType

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DomainEvent:
    event_type: EventType
    market_id: str
    payload: dict[str, Any]
    occurred_at: datetime = field(default_factory=utc_now)

    def to_json(self) -> str:
        body = asdict(self)
        body["event_type"] = self.event_type.value
        body["occurred_at"] = self.occurred_at.isoformat()
        return json.dumps(body, default=str)


class EventPublisher(Protocol):
    async def publish(self, events: list[DomainEvent]) -> None: ...


class InMemoryEventPublisher:
    """Collects published events; used by tests and EVENTS_BACKEND=memory."""

    def __init__(self) -> None:
        self.published: list[DomainEvent] = []

    async def publish(self, events: list[DomainEvent]) -> None:
        self.published.extend(events)

    def of_type(self, event_type: EventType) -> list[DomainEvent]:
        return [e for e in self.published if e.event_type == event_type]


class RedisEventPublisher:
    def __init__(self, redis: aioredis.Redis, channel: str) -> None:
        self._redis = redis
        self._channel = channel

    async def publish(self, events: list[DomainEvent]) -> None:
        for event in events:
            await self._redis.publish(self._channel, event.to_json())
        if events:
            logger.debug("Published %d events to %s", len(events), self._channel)
