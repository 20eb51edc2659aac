"""005: create hook_bindings table

Revision ID: 005
Revises: 004
Create Date: 2026-10-18
"""
from typing import Sequence, Union
from alembic import op

revision: str = "005"
down_revision: Union[str, None] = "004"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE hook_bindings (
            id                      SMALLINT        PRIMARY KEY,
            coordinator_identity    VARCHAR(128)    NOT NULL,
            bound_at                TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_hook_bindings_single_row CHECK (id = 1)
        );
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS hook_bindings CASCADE;")
