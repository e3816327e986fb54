"""ReportingService — read-only views derived from the transaction log and
the current position snapshot. Never opens a unit of work.
"""

from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.ob_common.cents import cents_to_display
from src.ob_common.datetime_utils import Clock, utc_now, year_bounds
from src.ob_common.enums import AccountKind, TransactionKind
from src.ob_common.errors import (
    AccountNotFoundError,
    InvalidAccountKindError,
    InvalidAmountError,
)
from src.ob_ledger.domain.repository import LedgerRepositoryProtocol
from src.ob_ledger.infrastructure.persistence import LedgerRepository
from src.ob_portfolio.application.schemas import PositionValuationOut
from src.ob_portfolio.domain.repository import PortfolioRepositoryProtocol
from src.ob_portfolio.domain.valuation import (
    pnl_percent_of,
    total_cost,
    total_value,
    value_holding,
)
from src.ob_portfolio.infrastructure.persistence import PortfolioRepository
from src.ob_reporting.application.schemas import (
    InvestmentPerformanceOut,
    KindMonthStatOut,
    KindVolumeOut,
    PortfolioPnL,
    StatementOut,
    TaxReportOut,
    TransactionItem,
    TransactionPage,
    UserStatistics,
    cursor_decode,
    cursor_encode,
)
from src.ob_reporting.domain.aggregations import (
    build_investment_performance,
    build_statement,
    build_tax_report,
    statistics_by_kind_and_month,
)
from src.ob_reporting.domain.invariants import verify_ledger_invariants
from src.ob_reporting.infrastructure.persistence import ReportingRepository

MAX_PAGE_SIZE = 100


class ReportingService:
    def __init__(
        self,
        repo: ReportingRepository | None = None,
        ledger_repo: LedgerRepositoryProtocol | None = None,
        portfolio_repo: PortfolioRepositoryProtocol | None = None,
        clock: Clock = utc_now,
    ) -> None:
        self._repo = repo or ReportingRepository()
        self._ledger: LedgerRepositoryProtocol = ledger_repo or LedgerRepository()
        self._portfolio: PortfolioRepositoryProtocol = portfolio_repo or PortfolioRepository()
        self._clock = clock

    async def list_transactions(
        self,
        db: AsyncSession,
        *,
        user_id: str | None = None,
        account_id: str | None = None,
        kind: str | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
        cursor: str | None = None,
        limit: int = 20,
    ) -> TransactionPage:
        if not 1 <= limit <= MAX_PAGE_SIZE:
            raise InvalidAmountError(f"limit must be between 1 and {MAX_PAGE_SIZE}")
        if kind is not None:
            kind = TransactionKind(kind).value
        cursor_id = cursor_decode(cursor)

        # Fetch limit+1 to detect has_more without COUNT(*)
        rows = await self._repo.list_transactions_page(
            db,
            user_id=user_id,
            account_id=account_id,
            kind=kind,
            start=start,
            end=end,
            cursor_id=cursor_id,
            limit=limit + 1,
        )
        has_more = len(rows) > limit
        page = rows[:limit]
        next_cursor = cursor_encode(page[-1].id) if has_more and page else None
        return TransactionPage(
            items=[TransactionItem.from_domain(t) for t in page],
            next_cursor=next_cursor,
            has_more=has_more,
        )

    async def get_transaction(
        self, db: AsyncSession, transaction_ref: str
    ) -> TransactionItem | None:
        txn = await self._repo.get_transaction(db, transaction_ref)
        return TransactionItem.from_domain(txn) if txn is not None else None

    async def get_user_statistics(
        self, db: AsyncSession, user_id: str, year: int | None = None
    ) -> UserStatistics:
        start, end = year_bounds(year) if year is not None else (None, None)
        txns = await self._repo.fetch_transactions(db, user_id=user_id, start=start, end=end)
        return UserStatistics(
            user_id=user_id,
            year=year,
            total_transactions=len(txns),
            by_kind_and_month=[
                KindMonthStatOut.from_domain(s) for s in statistics_by_kind_and_month(txns)
            ],
        )

    async def get_volume_by_kind(
        self, db: AsyncSession, start: datetime | None = None, end: datetime | None = None
    ) -> list[KindVolumeOut]:
        volumes = await self._repo.volume_by_kind(db, start, end)
        return [KindVolumeOut.from_domain(v) for v in volumes]

    async def generate_statement(
        self, db: AsyncSession, account_id: str, start: datetime, end: datetime
    ) -> StatementOut:
        """Entries in [start, end) with balances reconstructed from the log."""
        if await self._ledger.get_account(db, account_id) is None:
            raise AccountNotFoundError(account_id)
        opening = await self._repo.balance_before(db, account_id, start)
        entries = await self._repo.fetch_transactions(
            db, account_id=account_id, start=start, end=end
        )
        return StatementOut.from_domain(
            build_statement(account_id, start, end, opening, entries)
        )

    async def generate_tax_report(
        self, db: AsyncSession, account_id: str, year: int
    ) -> TaxReportOut:
        account = await self._ledger.get_account(db, account_id)
        if account is None:
            raise AccountNotFoundError(account_id)
        if account.kind != AccountKind.INVESTMENT.value:
            raise InvalidAccountKindError(account_id, account.kind, AccountKind.INVESTMENT.value)
        start, end = year_bounds(year)
        sells = await self._repo.fetch_transactions(
            db,
            account_id=account_id,
            kind=TransactionKind.SELL_ASSET.value,
            start=start,
            end=end,
        )
        return TaxReportOut.from_domain(build_tax_report(account_id, year, sells))

    async def get_investment_performance(
        self, db: AsyncSession, account_id: str
    ) -> InvestmentPerformanceOut:
        account = await self._ledger.get_account(db, account_id)
        if account is None:
            raise AccountNotFoundError(account_id)
        if account.kind != AccountKind.INVESTMENT.value:
            raise InvalidAccountKindError(account_id, account.kind, AccountKind.INVESTMENT.value)
        txns = await self._repo.fetch_transactions(db, account_id=account_id)
        holdings = await self._portfolio.list_holdings_by_account(db, account_id)
        now = self._clock()
        valuations = [
            value_holding(h, now, tax_rate_bps=settings.FIXED_INCOME_TAX_BPS) for h in holdings
        ]
        return InvestmentPerformanceOut.from_domain(
            build_investment_performance(account_id, txns, valuations)
        )

    async def get_portfolio_pnl(
        self, db: AsyncSession, user_id: str, project_yield: bool = False
    ) -> PortfolioPnL:
        holdings = await self._portfolio.list_holdings(db, user_id)
        now = self._clock()
        valuations = [
            value_holding(h, now, project_yield, settings.FIXED_INCOME_TAX_BPS)
            for h in holdings
        ]
        cost = total_cost(valuations)
        value = total_value(valuations)
        return PortfolioPnL(
            user_id=user_id,
            positions=[PositionValuationOut.from_domain(v) for v in valuations],
            total_cost_cents=cost,
            total_value_cents=value,
            total_pnl_cents=value - cost,
            total_pnl_display=cents_to_display(value - cost),
            total_pnl_percent=str(pnl_percent_of(value - cost, cost)),
        )

    async def verify_ledger_invariants(self, db: AsyncSession) -> list[str]:
        return await verify_ledger_invariants(db)
