"""Unit tests for pure report aggregations over transaction rows."""
from datetime import datetime, timezone
from decimal import Decimal

from src.ob_ledger.domain.models import Transaction
from src.ob_portfolio.domain.models import PositionValuation
from src.ob_reporting.domain.aggregations import (
    build_investment_performance,
    build_statement,
    build_tax_report,
    month_key,
    statistics_by_kind_and_month,
)

_seq = iter(range(1, 10_000))


def _txn(kind: str, amount: int, when: datetime, **kwargs) -> Transaction:
    n = next(_seq)
    return Transaction(
        id=n,
        transaction_ref=f"TXN_{n}",
        user_id="user-1",
        account_id=kwargs.pop("account_id", "acc-cur"),
        kind=kind,
        amount=amount,
        fee=kwargs.pop("fee", 0),
        balance_after=0,
        created_at=when,
        **kwargs,
    )


def _at(month: int, day: int = 10) -> datetime:
    return datetime(2026, month, day, 12, 0, tzinfo=timezone.utc)


def test_month_key() -> None:
    assert month_key(_at(3)) == "2026-03"


class TestStatistics:
    def test_groups_by_month_then_kind(self) -> None:
        stats = statistics_by_kind_and_month(
            [
                _txn("WITHDRAW", -300, _at(2)),
                _txn("DEPOSIT", 1000, _at(1)),
                _txn("DEPOSIT", 500, _at(1, 20)),
                _txn("DEPOSIT", 200, _at(2)),
            ]
        )
        assert [(s.month, s.kind, s.count, s.total_amount) for s in stats] == [
            ("2026-01", "DEPOSIT", 2, 1500),
            ("2026-02", "DEPOSIT", 1, 200),
            ("2026-02", "WITHDRAW", 1, 300),
        ]

    def test_empty(self) -> None:
        assert statistics_by_kind_and_month([]) == []


class TestStatement:
    def test_closing_balance_reconstructed(self) -> None:
        entries = [
            _txn("DEPOSIT", 10000, _at(1)),
            _txn("EXTERNAL_TRANSFER_OUT", -10050, _at(1, 11), fee=50),
            _txn("INTERNAL_TRANSFER_IN", 2500, _at(1, 12)),
        ]
        s = build_statement("acc-cur", _at(1, 1), _at(2, 1), 500, entries)
        assert s.total_credits == 12500
        assert s.total_debits == 10050
        assert s.total_fees == 50
        assert s.closing_balance == 2950
        assert len(s.entries) == 3

    def test_empty_period_keeps_opening_balance(self) -> None:
        s = build_statement("acc-cur", _at(1, 1), _at(2, 1), 700, [])
        assert s.closing_balance == 700
        assert s.total_fees == 0


class TestTaxReport:
    def test_monthly_profit_loss_and_tax(self) -> None:
        sells = [
            _txn("SELL_ASSET", 44025, _at(3), realized_gain=6500, tax=975),
            _txn("SELL_ASSET", 30000, _at(3, 20), realized_gain=-8500, tax=0),
            _txn("SELL_ASSET", 12000, _at(5), realized_gain=2000, tax=300),
            _txn("BUY_ASSET", -5000, _at(5)),
        ]
        report = build_tax_report("acc-inv", 2026, sells)

        assert [m.month for m in report.months] == ["2026-03", "2026-05"]
        march = report.months[0]
        assert march.operations == 2
        assert march.profit == 6500
        assert march.loss == 8500
        assert march.tax == 975
        assert report.total_operations == 3
        assert report.total_profit == 8500
        assert report.total_loss == 8500
        assert report.net_result == 0
        assert report.total_tax_paid == 1275

    def test_no_sells(self) -> None:
        report = build_tax_report("acc-inv", 2026, [])
        assert report.months == []
        assert report.total_tax_paid == 0


class TestInvestmentPerformance:
    def test_combines_log_and_valuations(self) -> None:
        txns = [
            _txn("INTERNAL_TRANSFER_IN", 100000, _at(1), account_id="acc-inv"),
            _txn("BUY_ASSET", -38500, _at(1, 11), account_id="acc-inv"),
            _txn("BUY_FIXED_INCOME", -20000, _at(1, 12), account_id="acc-inv"),
            _txn(
                "SELL_ASSET", 44025, _at(2), account_id="acc-inv",
                realized_gain=6500, tax=975,
            ),
        ]
        valuations = [
            PositionValuation(
                asset_symbol="FI-CDB-2027",
                asset_kind="FIXED_INCOME",
                category="Bank Deposit",
                quantity=1,
                average_price=Decimal(20000),
                current_price=Decimal(20000),
                cost_basis=20000,
                market_value=20000,
                pnl=0,
                pnl_percent=Decimal("0.00"),
            )
        ]
        perf = build_investment_performance("acc-inv", txns, valuations)

        assert perf.total_invested == 58500
        assert perf.total_sold == 44025
        assert perf.realized_gain == 6500
        assert perf.tax_paid == 975
        assert perf.current_value == 20000
        assert perf.unrealized_pnl == 0
