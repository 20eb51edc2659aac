"""006: create wal_events table

Revision ID: 006
Revises: 005
Create Date: 2026-10-18
"""
from typing import Sequence, Union
from alembic import op

revision: str = "006"
down_revision: Union[str, None] = "005"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE wal_events (
            id              BIGSERIAL       PRIMARY KEY,
            market_id       VARCHAR(64)     NOT NULL,
            event_type      VARCHAR(30)     NOT NULL,
            payload         JSONB           NOT NULL,
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_wal_event_type CHECK (
                event_type IN (
                    'ORDER_CREATED',
                    'ORDER_CANCELLED',
                    'ORDER_EXPIRED',
                    'ORDER_SETTLED',
                    'INTENT_CREATED',
                    'EXECUTION_RECORDED',
                    'OUTPUT_CLAIMED',
                    'SETTLEMENT_RESULT',
                    'HOOK_BOUND',
                    'BALANCE_DEPOSITED',
                    'BALANCE_WITHDRAWN'
                )
            )
        );
    """)
    op.execute("CREATE INDEX idx_wal_market_time ON wal_events (market_id, created_at);")
    op.execute("COMMENT ON TABLE wal_events IS 'Committed domain events, append-only audit log';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS wal_events CASCADE;")
