"""007: create positions table

Revision ID: 007
Revises: 006
Create Date: 2026-10-18
"""
from typing import Sequence, Union
from alembic import op

revision: str = "007"
down_revision: Union[str, None] = "006"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE positions (
            id               VARCHAR(64)    PRIMARY KEY DEFAULT gen_random_uuid()::text,
            user_id          VARCHAR(64)    NOT NULL,
            account_id       VARCHAR(64)    NOT NULL REFERENCES accounts(id),
            asset_symbol     VARCHAR(64)    NOT NULL,
            asset_kind       VARCHAR(20)    NOT NULL,
            quantity         BIGINT         NOT NULL,
            average_price    NUMERIC(20,6)  NOT NULL,
            purchase_price   BIGINT         NOT NULL,
            transaction_ref  VARCHAR(64),
            rate_bps         INT,
            rate_type        VARCHAR(20),
            maturity_date    TIMESTAMPTZ,
            created_at       TIMESTAMPTZ    NOT NULL DEFAULT NOW(),
            updated_at       TIMESTAMPTZ    NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_positions_user_symbol  UNIQUE (user_id, asset_symbol),
            CONSTRAINT ck_positions_quantity_gte_0 CHECK (quantity >= 0),
            CONSTRAINT ck_positions_avg_gte_0    CHECK (average_price >= 0),
            CONSTRAINT ck_positions_kind         CHECK (asset_kind IN ('STOCK', 'FIXED_INCOME'))
        );
    """)
    op.execute("CREATE INDEX idx_positions_account ON positions (account_id);")
    op.execute("""
        CREATE TRIGGER trg_positions_updated_at
            BEFORE UPDATE ON positions
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS positions CASCADE;")
