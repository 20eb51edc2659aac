"""DB helper for wal_events: append-only audit of committed domain events.

Called from the service within the same transaction as the change set.
"""
import json

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.cs_common.events import DomainEvent

_INSERT_WAL_SQL = text("""
    INSERT INTO wal_events (market_id, event_type, payload, created_at)
    VALUES (:market_id, :event_type, :payload, :created_at)
""")


async def write_wal_event(event: DomainEvent, db: AsyncSession) -> None:
    """Insert one row into wal_events within the caller's transaction.

    The payload column only ever holds the event's public fields.
    """
    await db.execute(
        _INSERT_WAL_SQL,
        {
            "market_id": event.market_id,
            "event_type": event.event_type.value,
            "payload": json.dumps(event.payload, default=str),
            "created_at": event.occurred_at,
        },
    )
