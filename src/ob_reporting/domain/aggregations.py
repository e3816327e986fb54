"""Pure aggregations over committed transaction rows.

Nothing here reads the store; every report is a function of the log (plus
the position snapshot for valuation), so it can be reproduced at any time.
"""

from collections import defaultdict
from collections.abc import Iterable
from datetime import datetime

from src.ob_common.enums import TransactionKind
from src.ob_ledger.domain.models import Transaction
from src.ob_portfolio.domain.models import PositionValuation
from src.ob_portfolio.domain.valuation import total_cost, total_value
from src.ob_reporting.domain.models import (
    InvestmentPerformance,
    KindMonthStat,
    MonthlyTax,
    Statement,
    TaxReport,
)

_PURCHASE_KINDS = frozenset(
    {TransactionKind.BUY_ASSET.value, TransactionKind.BUY_FIXED_INCOME.value}
)


def month_key(ts: datetime) -> str:
    return f"{ts.year:04d}-{ts.month:02d}"


def statistics_by_kind_and_month(txns: Iterable[Transaction]) -> list[KindMonthStat]:
    buckets: dict[tuple[str, str], list[int]] = defaultdict(lambda: [0, 0])
    for t in txns:
        bucket = buckets[(t.kind, month_key(t.created_at))]  # type: ignore[arg-type]
        bucket[0] += 1
        bucket[1] += abs(t.amount)
    # month first, then kind
    ordered = sorted(buckets.items(), key=lambda kv: (kv[0][1], kv[0][0]))
    return [
        KindMonthStat(kind=kind, month=month, count=count, total_amount=total)
        for (kind, month), (count, total) in ordered
    ]


def build_statement(
    account_id: str,
    start: datetime,
    end: datetime,
    opening_balance: int,
    entries: list[Transaction],
) -> Statement:
    credits = sum(t.amount for t in entries if t.amount > 0)
    debits = -sum(t.amount for t in entries if t.amount < 0)
    fees = sum(t.fee for t in entries)
    return Statement(
        account_id=account_id,
        start=start,
        end=end,
        opening_balance=opening_balance,
        total_credits=credits,
        total_debits=debits,
        total_fees=fees,
        closing_balance=opening_balance + credits - debits,
        entries=entries,
    )


def build_tax_report(account_id: str, year: int, sells: Iterable[Transaction]) -> TaxReport:
    """Monthly realized gains and withheld tax for SELL_ASSET rows of `year`."""
    months: dict[str, MonthlyTax] = {}
    for t in sells:
        if t.kind != TransactionKind.SELL_ASSET.value:
            continue
        key = month_key(t.created_at)  # type: ignore[arg-type]
        entry = months.setdefault(key, MonthlyTax(month=key, operations=0, profit=0, loss=0, tax=0))
        gain = t.realized_gain or 0
        entry.operations += 1
        if gain > 0:
            entry.profit += gain
        else:
            entry.loss += -gain
        entry.tax += t.tax or 0

    ordered = [months[k] for k in sorted(months)]
    return TaxReport(
        account_id=account_id,
        year=year,
        months=ordered,
        total_operations=sum(m.operations for m in ordered),
        total_profit=sum(m.profit for m in ordered),
        total_loss=sum(m.loss for m in ordered),
        total_tax_paid=sum(m.tax for m in ordered),
    )


def build_investment_performance(
    account_id: str,
    txns: Iterable[Transaction],
    valuations: list[PositionValuation],
) -> InvestmentPerformance:
    invested = sold = realized = tax_paid = 0
    for t in txns:
        if t.kind in _PURCHASE_KINDS:
            invested += -t.amount
        elif t.kind == TransactionKind.SELL_ASSET.value:
            sold += t.amount
            realized += t.realized_gain or 0
            tax_paid += t.tax or 0
    cost = total_cost(valuations)
    value = total_value(valuations)
    return InvestmentPerformance(
        account_id=account_id,
        total_invested=invested,
        total_sold=sold,
        cost_basis=cost,
        current_value=value,
        unrealized_pnl=value - cost,
        realized_gain=realized,
        tax_paid=tax_paid,
    )
