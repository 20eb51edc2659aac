"""002: create orders table

Revision ID: 002
Revises: 001
Create Date: 2026-10-18
"""
from typing import Sequence, Union
from alembic import op

revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE orders (
            id                          VARCHAR(64)     PRIMARY KEY,
            owner                       VARCHAR(128)    NOT NULL,
            market_id                   VARCHAR(64)     NOT NULL,
            asset_in                    VARCHAR(64)     NOT NULL,
            asset_out                   VARCHAR(64)     NOT NULL,
            encrypted_amount_in         TEXT            NOT NULL,
            encrypted_min_amount_out    TEXT            NOT NULL,
            encrypted_deadline          TEXT,
            expires_at                  TIMESTAMPTZ,
            status                      VARCHAR(20)     NOT NULL DEFAULT 'PENDING',
            created_at                  TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            executed_at                 TIMESTAMPTZ,
            updated_at                  TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_orders_status CHECK (
                status IN ('PENDING', 'EXECUTED', 'CANCELLED', 'EXPIRED')
            ),
            CONSTRAINT ck_orders_assets_distinct CHECK (asset_in <> asset_out),
            CONSTRAINT ck_orders_executed_at CHECK (
                (status = 'EXECUTED') = (executed_at IS NOT NULL)
            )
        );
    """)
    op.execute("CREATE INDEX idx_orders_owner ON orders (owner, created_at);")
    op.execute(
        "CREATE INDEX idx_orders_pending_expiry ON orders (expires_at) "
        "WHERE status = 'PENDING' AND expires_at IS NOT NULL;"
    )
    op.execute("""
        CREATE TRIGGER trg_orders_updated_at
            BEFORE UPDATE ON orders
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS orders CASCADE;")
