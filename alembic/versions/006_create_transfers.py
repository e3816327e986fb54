"""006: create transfers table

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
        CREATE TABLE transfers (
            id               BIGSERIAL    PRIMARY KEY,
            transaction_ref  VARCHAR(64)  NOT NULL REFERENCES transactions(transaction_ref),
            credit_ref       VARCHAR(64)  NOT NULL REFERENCES transactions(transaction_ref),
            from_account_id  VARCHAR(64)  NOT NULL REFERENCES accounts(id),
            to_account_id    VARCHAR(64)  NOT NULL REFERENCES accounts(id),
            amount           BIGINT       NOT NULL,
            fee              BIGINT       NOT NULL DEFAULT 0,
            status           VARCHAR(20)  NOT NULL,
            created_at       TIMESTAMPTZ  NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_transfers_ref         UNIQUE (transaction_ref),
            CONSTRAINT ck_transfers_amount_gt_0 CHECK (amount > 0),
            CONSTRAINT ck_transfers_fee_gte_0   CHECK (fee >= 0),
            CONSTRAINT ck_transfers_distinct    CHECK (from_account_id <> to_account_id),
            CONSTRAINT ck_transfers_status      CHECK (status IN ('PENDING', 'COMPLETED', 'FAILED'))
        );
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS transfers CASCADE;")
