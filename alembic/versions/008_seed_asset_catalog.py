"""008: seed asset catalog

Revision ID: 008
Revises: 007
Create Date: 2026-10-18
"""
from typing import Sequence, Union
from alembic import op

revision: str = "008"
down_revision: Union[str, None] = "007"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        INSERT INTO assets (id, name, kind, category) VALUES
            ('AST-PETR4', 'Petrobras PN',       'STOCK',        'Energy'),
            ('AST-VALE3', 'Vale ON',            'STOCK',        'Mining'),
            ('AST-ITUB4', 'Itau Unibanco PN',   'STOCK',        'Financial'),
            ('AST-MGLU3', 'Magazine Luiza ON',  'STOCK',        'Retail'),
            ('AST-CDB',   'CDB',                'FIXED_INCOME', 'Bank Deposit'),
            ('AST-TD',    'Tesouro Direto',     'FIXED_INCOME', 'Government Bond'),
            ('AST-LCI',   'LCI',                'FIXED_INCOME', 'Real Estate Credit');
    """)
    # Prices in cents
    op.execute("""
        INSERT INTO stocks (symbol, asset_id, current_price, daily_variation) VALUES
            ('PETR4', 'AST-PETR4', 3850, 0),
            ('VALE3', 'AST-VALE3', 6920, 0),
            ('ITUB4', 'AST-ITUB4', 3275, 0),
            ('MGLU3', 'AST-MGLU3', 1045, 0);
    """)
    op.execute("""
        INSERT INTO fixed_income
            (id, asset_id, name, rate_bps, rate_type, maturity_date, minimum_investment)
        VALUES
            ('FI-CDB-2027', 'AST-CDB', 'CDB Banco Laranja 2027', 1250, 'PRE_FIXED',
             '2027-12-31 00:00:00+00', 10000),
            ('FI-TESOURO-SELIC-2029', 'AST-TD', 'Tesouro Selic 2029', 1075, 'POST_FIXED',
             '2029-03-01 00:00:00+00', 3000),
            ('FI-LCI-2028', 'AST-LCI', 'LCI Imobiliaria 2028', 980, 'PRE_FIXED',
             '2028-06-30 00:00:00+00', 50000);
    """)


def downgrade() -> None:
    op.execute("DELETE FROM fixed_income WHERE id IN ('FI-CDB-2027', 'FI-TESOURO-SELIC-2029', 'FI-LCI-2028');")
    op.execute("DELETE FROM stocks WHERE symbol IN ('PETR4', 'VALE3', 'ITUB4', 'MGLU3');")
    op.execute("DELETE FROM assets WHERE id LIKE 'AST-%';")
