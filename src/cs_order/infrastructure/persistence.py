# src/cs_order/infrastructure/persistence.py
"""OrderRepository — raw SQL persistence implementation."""
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.cs_common.enums import OrderStatus
from src.cs_crypto.ciphertext import Ciphertext
from src.cs_order.domain.models import Order

# ---------------------------------------------------------------------------
# SQL statements
# ---------------------------------------------------------------------------

# Identity and ciphertext columns are write-once; only lifecycle columns update.
_UPSERT_ORDER_SQL = text("""
    INSERT INTO orders (id, owner, market_id, asset_in, asset_out,
        encrypted_amount_in, encrypted_min_amount_out, encrypted_deadline,
        expires_at, status, created_at, executed_at, updated_at)
    VALUES (:id, :owner, :market_id, :asset_in, :asset_out,
        :encrypted_amount_in, :encrypted_min_amount_out, :encrypted_deadline,
        :expires_at, :status, :created_at, :executed_at, :updated_at)
    ON CONFLICT (id) DO UPDATE
    SET status = EXCLUDED.status,
        executed_at = EXCLUDED.executed_at,
        updated_at = EXCLUDED.updated_at
""")

_LIST_ORDERS_SQL = text("""
    SELECT id, owner, market_id, asset_in, asset_out,
           encrypted_amount_in, encrypted_min_amount_out, encrypted_deadline,
           expires_at, status, created_at, executed_at, updated_at
    FROM orders
    ORDER BY created_at ASC, id ASC
""")


# ---------------------------------------------------------------------------
# Row mapper
# ---------------------------------------------------------------------------


def _row_to_order(row: Any) -> Order:
    """Convert a DB result row to an Order domain object."""
    return Order(
        id=row.id,
        owner=row.owner,
        market_id=row.market_id,
        asset_in=row.asset_in,
        asset_out=row.asset_out,
        encrypted_amount_in=Ciphertext(row.encrypted_amount_in),
        encrypted_min_amount_out=Ciphertext(row.encrypted_min_amount_out),
        encrypted_deadline=(
            Ciphertext(row.encrypted_deadline) if row.encrypted_deadline else None
        ),
        expires_at=row.expires_at,
        status=OrderStatus(row.status),
        created_at=row.created_at,
        executed_at=row.executed_at,
        updated_at=row.updated_at,
    )


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class OrderRepository:
    async def upsert(self, order: Order, db: AsyncSession) -> None:
        await db.execute(
            _UPSERT_ORDER_SQL,
            {
                "id": order.id,
                "owner": order.owner,
                "market_id": order.market_id,
                "asset_in": order.asset_in,
                "asset_out": order.asset_out,
                "encrypted_amount_in": order.encrypted_amount_in.handle,
                "encrypted_min_amount_out": order.encrypted_min_amount_out.handle,
                "encrypted_deadline": (
                    order.encrypted_deadline.handle if order.encrypted_deadline else None
                ),
                "expires_at": order.expires_at,
                "status": order.status.value,
                "created_at": order.created_at,
                "executed_at": order.executed_at,
                "updated_at": order.updated_at,
            },
        )

    async def list_all(self, db: AsyncSession) -> list[Order]:
        result = await db.execute(_LIST_ORDERS_SQL)
        return [_row_to_order(row) for row in result.fetchall()]
