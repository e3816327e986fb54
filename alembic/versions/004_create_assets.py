"""004: create asset catalog tables

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
        CREATE TABLE assets (
            id          VARCHAR(64)  PRIMARY KEY,
            name        VARCHAR(200) NOT NULL,
            kind        VARCHAR(20)  NOT NULL,
            category    VARCHAR(50)  NOT NULL,
            created_at  TIMESTAMPTZ  NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_assets_kind CHECK (kind IN ('STOCK', 'FIXED_INCOME'))
        );
    """)
    op.execute("""
        CREATE TABLE stocks (
            symbol           VARCHAR(20)   PRIMARY KEY,
            asset_id         VARCHAR(64)   NOT NULL REFERENCES assets(id),
            current_price    BIGINT        NOT NULL,
            daily_variation  NUMERIC(6,2)  NOT NULL DEFAULT 0,
            updated_at       TIMESTAMPTZ   NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_stocks_asset_id       UNIQUE (asset_id),
            CONSTRAINT ck_stocks_price_gt_0     CHECK (current_price > 0)
        );
    """)
    op.execute("""
        CREATE TABLE fixed_income (
            id                  VARCHAR(64)  PRIMARY KEY,
            asset_id            VARCHAR(64)  NOT NULL REFERENCES assets(id),
            name                VARCHAR(200) NOT NULL,
            rate_bps            INT          NOT NULL,
            rate_type           VARCHAR(20)  NOT NULL,
            maturity_date       TIMESTAMPTZ  NOT NULL,
            minimum_investment  BIGINT       NOT NULL DEFAULT 0,
            CONSTRAINT ck_fixed_income_rate_type CHECK (rate_type IN ('PRE_FIXED', 'POST_FIXED')),
            CONSTRAINT ck_fixed_income_rate_gte_0 CHECK (rate_bps >= 0),
            CONSTRAINT ck_fixed_income_min_gte_0 CHECK (minimum_investment >= 0)
        );
    """)
    op.execute("""
        CREATE TRIGGER trg_stocks_updated_at
            BEFORE UPDATE ON stocks
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS fixed_income CASCADE;")
    op.execute("DROP TABLE IF EXISTS stocks CASCADE;")
    op.execute("DROP TABLE IF EXISTS assets CASCADE;")
