"""Repository Protocol — dependency inversion for testability.

Unit tests inject a mock that conforms to this Protocol.
Infrastructure layer provides the real implementation.
"""

from decimal import Decimal
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.ob_market.domain.models import (
    AssetFilters,
    AssetListing,
    CatalogStatistics,
    CategoryCount,
    FixedIncomeProduct,
    Stock,
)


class MarketRepositoryProtocol(Protocol):
    async def get_stock_by_asset_id(
        self, db: AsyncSession, asset_id: str
    ) -> Stock | None: ...

    async def get_stock_by_symbol(
        self, db: AsyncSession, symbol: str
    ) -> Stock | None: ...

    async def list_stocks(
        self, db: AsyncSession, for_update: bool = False
    ) -> list[Stock]: ...

    async def get_stock_for_update(
        self, db: AsyncSession, symbol_or_asset_id: str
    ) -> Stock | None: ...

    async def update_stock_price(
        self, db: AsyncSession, symbol: str, new_price: int, variation: Decimal
    ) -> None: ...

    async def get_fixed_income(
        self, db: AsyncSession, fixed_income_id: str
    ) -> FixedIncomeProduct | None: ...

    async def list_available_assets(
        self, db: AsyncSession, kind: str | None
    ) -> list[AssetListing]: ...

    async def search_assets(
        self, db: AsyncSession, filters: AssetFilters
    ) -> list[AssetListing]: ...

    async def catalog_statistics(self, db: AsyncSession) -> CatalogStatistics: ...

    async def category_distribution(self, db: AsyncSession) -> list[CategoryCount]: ...

    async def list_categories(self, db: AsyncSession) -> list[str]: ...
