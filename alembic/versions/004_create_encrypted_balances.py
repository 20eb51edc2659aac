"""004: create encrypted_balances table

Revision ID: 004
Revises: 003
Create Date: 2026-10-18
"""
from typing import Sequence, Union
from alembic import op

revision: str = "004"
down_revision: Union[str, None] = "003"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE encrypted_balances (
            identity        VARCHAR(128)    NOT NULL,
            asset           VARCHAR(64)     NOT NULL,
            book            VARCHAR(16)     NOT NULL,
            handle          TEXT            NOT NULL,
            updated_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            PRIMARY KEY (identity, asset, book),
            CONSTRAINT ck_encrypted_balances_book CHECK (book IN ('AVAILABLE', 'ESCROW'))
        );
    """)
    op.execute(
        "COMMENT ON TABLE encrypted_balances IS "
        "'One ciphertext handle per identity/asset/book; plaintext amounts are never stored';"
    )


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS encrypted_balances CASCADE;")
