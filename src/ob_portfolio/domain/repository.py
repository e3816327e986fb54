"""Repository Protocol — dependency inversion for testability.

Writes never commit: they join the caller's unit of work.
"""

from datetime import datetime
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.ob_portfolio.domain.models import Holding, Position, ReducedPosition


class PortfolioRepositoryProtocol(Protocol):
    async def get_position(
        self, db: AsyncSession, user_id: str, symbol: str
    ) -> Position | None: ...

    async def add_or_update_position(
        self,
        db: AsyncSession,
        *,
        user_id: str,
        account_id: str,
        symbol: str,
        asset_kind: str,
        quantity: int,
        unit_price: int,
        transaction_ref: str,
        rate_bps: int | None = None,
        rate_type: str | None = None,
        maturity_date: datetime | None = None,
    ) -> Position: ...

    async def reduce_position(
        self,
        db: AsyncSession,
        user_id: str,
        symbol: str,
        quantity: int,
        asset_kind: str = ...,
    ) -> ReducedPosition: ...

    async def list_holdings(self, db: AsyncSession, user_id: str) -> list[Holding]: ...

    async def list_holdings_by_account(
        self, db: AsyncSession, account_id: str
    ) -> list[Holding]: ...

    async def get_holding(
        self, db: AsyncSession, user_id: str, symbol: str
    ) -> Holding | None: ...
