"""003: create intents and executions tables

Revision ID: 003
Revises: 002
Create Date: 2026-10-18
"""
from typing import Sequence, Union
from alembic import op

revision: str = "003"
down_revision: Union[str, None] = "002"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE intents (
            id                          VARCHAR(66)     PRIMARY KEY,
            owner                       VARCHAR(128)    NOT NULL,
            market_id                   VARCHAR(64)     NOT NULL,
            zero_for_one                BOOLEAN         NOT NULL,
            asset_in                    VARCHAR(64)     NOT NULL,
            asset_out                   VARCHAR(64)     NOT NULL,
            deadline                    TIMESTAMPTZ     NOT NULL,
            encrypted_amount_in         TEXT            NOT NULL,
            encrypted_min_amount_out    TEXT            NOT NULL,
            status                      VARCHAR(20)     NOT NULL DEFAULT 'PENDING',
            created_at                  TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at                  TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_intents_status CHECK (
                status IN ('PENDING', 'EXECUTED', 'CLAIMED')
            )
        );
    """)
    op.execute("CREATE INDEX idx_intents_owner ON intents (owner);")
    op.execute("""
        CREATE TRIGGER trg_intents_updated_at
            BEFORE UPDATE ON intents
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)
    op.execute("""
        CREATE TABLE executions (
            intent_id           VARCHAR(66)     PRIMARY KEY REFERENCES intents (id),
            encrypted_output    TEXT            NOT NULL,
            checkpoint          BIGINT          NOT NULL UNIQUE,
            executed_at         TIMESTAMPTZ     NOT NULL DEFAULT NOW()
        );
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS executions CASCADE;")
    op.execute("DROP TABLE IF EXISTS intents CASCADE;")
