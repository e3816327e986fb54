"""002: create users table

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
        CREATE TABLE users (
            id          VARCHAR(64)  PRIMARY KEY DEFAULT gen_random_uuid()::text,
            name        VARCHAR(200) NOT NULL,
            email       VARCHAR(255) NOT NULL,
            cpf         CHAR(11)     NOT NULL,
            created_at  TIMESTAMPTZ  NOT NULL DEFAULT NOW(),
            updated_at  TIMESTAMPTZ  NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_users_email UNIQUE (email),
            CONSTRAINT uq_users_cpf   UNIQUE (cpf),
            CONSTRAINT ck_users_cpf_digits CHECK (cpf ~ '^[0-9]{11}$')
        );
    """)
    op.execute("CREATE UNIQUE INDEX idx_users_email_lower ON users (LOWER(email));")
    op.execute("""
        CREATE TRIGGER trg_users_updated_at
            BEFORE UPDATE ON users
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS users CASCADE;")
