"""005: create transactions table

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
        CREATE TABLE transactions (
            id               BIGSERIAL    PRIMARY KEY,
            transaction_ref  VARCHAR(64)  NOT NULL,
            user_id          VARCHAR(64)  NOT NULL,
            account_id       VARCHAR(64)  NOT NULL REFERENCES accounts(id),
            kind             VARCHAR(30)  NOT NULL,
            amount           BIGINT       NOT NULL,
            fee              BIGINT       NOT NULL DEFAULT 0,
            balance_after    BIGINT       NOT NULL,
            asset_symbol     VARCHAR(64),
            quantity         BIGINT,
            unit_price       BIGINT,
            realized_gain    BIGINT,
            tax              BIGINT,
            description      VARCHAR(500),
            created_at       TIMESTAMPTZ  NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_transactions_ref UNIQUE (transaction_ref),
            CONSTRAINT ck_transactions_kind CHECK (kind IN (
                'DEPOSIT', 'WITHDRAW',
                'INTERNAL_TRANSFER_OUT', 'INTERNAL_TRANSFER_IN',
                'EXTERNAL_TRANSFER_OUT', 'EXTERNAL_TRANSFER_IN',
                'BUY_ASSET', 'SELL_ASSET', 'BUY_FIXED_INCOME'
            )),
            CONSTRAINT ck_transactions_amount_ne_0 CHECK (amount <> 0),
            CONSTRAINT ck_transactions_fee_gte_0   CHECK (fee >= 0)
        );
    """)
    op.execute(
        "CREATE INDEX idx_transactions_account ON transactions (account_id, created_at);"
    )
    op.execute(
        "CREATE INDEX idx_transactions_user ON transactions (user_id, id DESC);"
    )
    op.execute(
        "CREATE INDEX idx_transactions_kind ON transactions (kind, created_at);"
    )
    # NOTE: No updated_at; transactions is append-only


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS transactions CASCADE;")
