"""Read-side report shapes — pure dataclasses."""

from dataclasses import dataclass, field
from datetime import datetime

from src.ob_ledger.domain.models import Transaction


@dataclass
class KindMonthStat:
    kind: str
    month: str          # "YYYY-MM"
    count: int
    total_amount: int   # cents, absolute value of the balance effect


@dataclass
class KindVolume:
    kind: str
    count: int
    volume: int         # cents


@dataclass
class Statement:
    account_id: str
    start: datetime
    end: datetime
    opening_balance: int
    total_credits: int
    total_debits: int
    total_fees: int
    closing_balance: int
    entries: list[Transaction] = field(default_factory=list)


@dataclass
class MonthlyTax:
    month: str
    operations: int
    profit: int
    loss: int
    tax: int


@dataclass
class TaxReport:
    account_id: str
    year: int
    months: list[MonthlyTax]
    total_operations: int
    total_profit: int
    total_loss: int
    total_tax_paid: int

    @property
    def net_result(self) -> int:
        return self.total_profit - self.total_loss


@dataclass
class InvestmentPerformance:
    account_id: str
    total_invested: int         # gross cash spent on purchases
    total_sold: int             # net cash received from sales
    cost_basis: int             # of positions still held
    current_value: int
    unrealized_pnl: int
    realized_gain: int
    tax_paid: int
