"""PortfolioService — read-side position queries and valuation.

Position writes happen only through PortfolioRepository inside a
LedgerService unit of work; nothing here commits.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.ob_common.cents import cents_to_display
from src.ob_common.datetime_utils import Clock, utc_now
from src.ob_common.errors import PositionNotFoundError
from src.ob_portfolio.application.schemas import (
    CategorySummaryOut,
    PortfolioValueOut,
    PositionOut,
    PositionValuationOut,
)
from src.ob_portfolio.domain.models import PositionValuation
from src.ob_portfolio.domain.repository import PortfolioRepositoryProtocol
from src.ob_portfolio.domain.valuation import (
    summary_by_category,
    total_value,
    value_holding,
)
from src.ob_portfolio.infrastructure.persistence import PortfolioRepository


class PortfolioService:
    def __init__(
        self,
        repo: PortfolioRepositoryProtocol | None = None,
        clock: Clock = utc_now,
    ) -> None:
        self._repo: PortfolioRepositoryProtocol = repo or PortfolioRepository()
        self._clock = clock

    async def _valuations(
        self, db: AsyncSession, user_id: str, project_yield: bool
    ) -> list[PositionValuation]:
        holdings = await self._repo.list_holdings(db, user_id)
        now = self._clock()
        return [
            value_holding(h, now, project_yield, settings.FIXED_INCOME_TAX_BPS)
            for h in holdings
        ]

    async def get_position(
        self, db: AsyncSession, user_id: str, symbol: str
    ) -> PositionOut | None:
        position = await self._repo.get_position(db, user_id, symbol)
        return PositionOut.from_domain(position) if position is not None else None

    async def has_enough_quantity(
        self, db: AsyncSession, user_id: str, symbol: str, quantity: int
    ) -> bool:
        """Advisory only; sell_asset re-checks atomically."""
        position = await self._repo.get_position(db, user_id, symbol)
        return position is not None and position.quantity >= quantity

    async def list_positions(
        self, db: AsyncSession, user_id: str, project_yield: bool = False
    ) -> list[PositionValuationOut]:
        valuations = await self._valuations(db, user_id, project_yield)
        return [PositionValuationOut.from_domain(v) for v in valuations]

    async def get_total_value(
        self, db: AsyncSession, user_id: str, project_yield: bool = False
    ) -> PortfolioValueOut:
        valuations = await self._valuations(db, user_id, project_yield)
        total = total_value(valuations)
        return PortfolioValueOut(
            user_id=user_id,
            position_count=len(valuations),
            total_value_cents=total,
            total_value_display=cents_to_display(total),
        )

    async def get_summary_by_category(
        self, db: AsyncSession, user_id: str, project_yield: bool = False
    ) -> list[CategorySummaryOut]:
        valuations = await self._valuations(db, user_id, project_yield)
        return [CategorySummaryOut.from_domain(s) for s in summary_by_category(valuations)]

    async def get_position_pnl(
        self, db: AsyncSession, user_id: str, symbol: str, project_yield: bool = False
    ) -> PositionValuationOut:
        holding = await self._repo.get_holding(db, user_id, symbol)
        if holding is None:
            raise PositionNotFoundError(symbol)
        valuation = value_holding(
            holding, self._clock(), project_yield, settings.FIXED_INCOME_TAX_BPS
        )
        return PositionValuationOut.from_domain(valuation)
