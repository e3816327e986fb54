"""Pydantic schemas and cursor utilities for reports."""

import base64
import json

from pydantic import BaseModel

from src.ob_common.cents import cents_to_display
from src.ob_ledger.domain.models import Transaction
from src.ob_portfolio.application.schemas import PositionValuationOut
from src.ob_reporting.domain.models import (
    InvestmentPerformance,
    KindMonthStat,
    KindVolume,
    MonthlyTax,
    Statement,
    TaxReport,
)

# ---------------------------------------------------------------------------
# Cursor-based pagination utilities
# ---------------------------------------------------------------------------


def cursor_encode(last_id: int) -> str:
    """Encode a BIGINT primary key into an opaque Base64 cursor string."""
    payload = json.dumps({"id": last_id})
    return base64.b64encode(payload.encode()).decode()


def cursor_decode(cursor: str | None) -> int | None:
    """Decode a cursor string back to the last seen id. Returns None on error."""
    if cursor is None:
        return None
    try:
        payload = json.loads(base64.b64decode(cursor.encode()).decode())
        return int(payload["id"])
    except Exception:
        return None


# ---------------------------------------------------------------------------
# Transactions
# ---------------------------------------------------------------------------


class TransactionItem(BaseModel):
    id: int
    transaction_ref: str
    account_id: str
    kind: str
    amount_cents: int
    amount_display: str
    fee_cents: int
    balance_after_cents: int
    asset_symbol: str | None
    quantity: int | None
    unit_price_cents: int | None
    realized_gain_cents: int | None
    tax_cents: int | None
    description: str | None
    created_at: str

    @classmethod
    def from_domain(cls, t: Transaction) -> "TransactionItem":
        return cls(
            id=t.id,
            transaction_ref=t.transaction_ref,
            account_id=t.account_id,
            kind=t.kind,
            amount_cents=t.amount,
            amount_display=cents_to_display(t.amount),
            fee_cents=t.fee,
            balance_after_cents=t.balance_after,
            asset_symbol=t.asset_symbol,
            quantity=t.quantity,
            unit_price_cents=t.unit_price,
            realized_gain_cents=t.realized_gain,
            tax_cents=t.tax,
            description=t.description,
            created_at=t.created_at.isoformat() if t.created_at else "",
        )


class TransactionPage(BaseModel):
    items: list[TransactionItem]
    next_cursor: str | None
    has_more: bool


# ---------------------------------------------------------------------------
# Statistics
# ---------------------------------------------------------------------------


class KindMonthStatOut(BaseModel):
    kind: str
    month: str
    count: int
    total_amount_cents: int

    @classmethod
    def from_domain(cls, s: KindMonthStat) -> "KindMonthStatOut":
        return cls(kind=s.kind, month=s.month, count=s.count, total_amount_cents=s.total_amount)


class UserStatistics(BaseModel):
    user_id: str
    year: int | None
    total_transactions: int
    by_kind_and_month: list[KindMonthStatOut]


class KindVolumeOut(BaseModel):
    kind: str
    count: int
    volume_cents: int

    @classmethod
    def from_domain(cls, v: KindVolume) -> "KindVolumeOut":
        return cls(kind=v.kind, count=v.count, volume_cents=v.volume)


# ---------------------------------------------------------------------------
# Statement / tax / performance
# ---------------------------------------------------------------------------


class StatementOut(BaseModel):
    account_id: str
    start: str
    end: str
    opening_balance_cents: int
    total_credits_cents: int
    total_debits_cents: int
    total_fees_cents: int
    closing_balance_cents: int
    closing_balance_display: str
    entries: list[TransactionItem]

    @classmethod
    def from_domain(cls, s: Statement) -> "StatementOut":
        return cls(
            account_id=s.account_id,
            start=s.start.isoformat(),
            end=s.end.isoformat(),
            opening_balance_cents=s.opening_balance,
            total_credits_cents=s.total_credits,
            total_debits_cents=s.total_debits,
            total_fees_cents=s.total_fees,
            closing_balance_cents=s.closing_balance,
            closing_balance_display=cents_to_display(s.closing_balance),
            entries=[TransactionItem.from_domain(t) for t in s.entries],
        )


class MonthlyTaxOut(BaseModel):
    month: str
    operations: int
    profit_cents: int
    loss_cents: int
    tax_cents: int

    @classmethod
    def from_domain(cls, m: MonthlyTax) -> "MonthlyTaxOut":
        return cls(
            month=m.month,
            operations=m.operations,
            profit_cents=m.profit,
            loss_cents=m.loss,
            tax_cents=m.tax,
        )


class TaxReportOut(BaseModel):
    account_id: str
    year: int
    monthly_breakdown: list[MonthlyTaxOut]
    total_operations: int
    total_profit_cents: int
    total_loss_cents: int
    net_result_cents: int
    total_tax_paid_cents: int
    total_tax_paid_display: str

    @classmethod
    def from_domain(cls, r: TaxReport) -> "TaxReportOut":
        return cls(
            account_id=r.account_id,
            year=r.year,
            monthly_breakdown=[MonthlyTaxOut.from_domain(m) for m in r.months],
            total_operations=r.total_operations,
            total_profit_cents=r.total_profit,
            total_loss_cents=r.total_loss,
            net_result_cents=r.net_result,
            total_tax_paid_cents=r.total_tax_paid,
            total_tax_paid_display=cents_to_display(r.total_tax_paid),
        )


class InvestmentPerformanceOut(BaseModel):
    account_id: str
    total_invested_cents: int
    total_sold_cents: int
    cost_basis_cents: int
    current_value_cents: int
    current_value_display: str
    unrealized_pnl_cents: int
    realized_gain_cents: int
    tax_paid_cents: int

    @classmethod
    def from_domain(cls, p: InvestmentPerformance) -> "InvestmentPerformanceOut":
        return cls(
            account_id=p.account_id,
            total_invested_cents=p.total_invested,
            total_sold_cents=p.total_sold,
            cost_basis_cents=p.cost_basis,
            current_value_cents=p.current_value,
            current_value_display=cents_to_display(p.current_value),
            unrealized_pnl_cents=p.unrealized_pnl,
            realized_gain_cents=p.realized_gain,
            tax_paid_cents=p.tax_paid,
        )


class PortfolioPnL(BaseModel):
    user_id: str
    positions: list[PositionValuationOut]
    total_cost_cents: int
    total_value_cents: int
    total_pnl_cents: int
    total_pnl_display: str
    total_pnl_percent: str
