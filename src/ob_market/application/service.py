"""MarketService — asset catalog reads and the daily price simulation.

Reads need no unit of work. Stock prices are the only thing written here.
simulate_market_variation locks every stock row, applies one variation per
stock and commits once, so a reader never observes a half-updated catalog;
update_stock_price sets one stock's price under the same row lock. Balances
and positions are never touched here.
"""

import logging
import random
from collections.abc import Callable
from decimal import Decimal
from enum import Enum

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.ob_common.cents import validate_amount
from src.ob_common.datetime_utils import Clock, utc_now
from src.ob_common.enums import AssetKind, RateType
from src.ob_common.errors import AssetNotFoundError, InvalidAmountError, InvalidSearchError
from src.ob_common.unit_of_work import unit_of_work
from src.ob_market.application.schemas import (
    AssetListItem,
    CatalogStatisticsOut,
    CategoryCountOut,
    FixedIncomeProjection,
    MarketSimulationResult,
    MinimumInvestmentCheck,
    PriceUpdateOut,
    StockQuote,
)
from src.ob_market.domain.fixed_income import calculate_fixed_income_return
from src.ob_market.domain.models import AssetFilters, FixedIncomeProduct, PriceUpdate
from src.ob_market.domain.price_simulator import (
    apply_variation,
    generate_market_variation,
    percent_change,
)
from src.ob_market.domain.repository import MarketRepositoryProtocol
from src.ob_market.infrastructure.persistence import MarketRepository

logger = logging.getLogger(__name__)

VariationFn = Callable[[random.Random | None], float]


def _text_filter(value: str | None, field: str) -> str | None:
    if value is None:
        return None
    value = value.strip()
    if not value:
        raise InvalidSearchError(f"{field} must not be empty")
    return value


def _enum_filter(enum_cls: type[Enum], value: str | None, field: str) -> str | None:
    if value is None:
        return None
    try:
        return enum_cls(value).value
    except ValueError as exc:
        raise InvalidSearchError(f"unknown {field} {value!r}") from exc


def _investment_bound(value: int | None, field: str) -> int | None:
    if value is None:
        return None
    try:
        return validate_amount(value, field)
    except ValueError as exc:
        raise InvalidAmountError(str(exc)) from exc


class MarketService:
    def __init__(
        self,
        repo: MarketRepositoryProtocol | None = None,
        rng: random.Random | None = None,
        variation_fn: VariationFn = generate_market_variation,
        clock: Clock = utc_now,
    ) -> None:
        self._repo: MarketRepositoryProtocol = repo or MarketRepository()
        self._rng = rng
        self._variation_fn = variation_fn
        self._clock = clock

    async def get_available_assets(
        self, db: AsyncSession, kind: str | None = None
    ) -> list[AssetListItem]:
        if kind is not None:
            kind = AssetKind(kind).value
        listings = await self._repo.list_available_assets(db, kind)
        return [AssetListItem.from_domain(a) for a in listings]

    async def get_stock(self, db: AsyncSession, symbol: str) -> StockQuote:
        stock = await self._repo.get_stock_by_symbol(db, symbol)
        if stock is None:
            raise AssetNotFoundError(symbol)
        return StockQuote.from_domain(stock)

    async def get_fixed_income(
        self, db: AsyncSession, fixed_income_id: str
    ) -> FixedIncomeProduct:
        product = await self._repo.get_fixed_income(db, fixed_income_id)
        if product is None:
            raise AssetNotFoundError(fixed_income_id)
        return product

    async def validate_minimum_investment(
        self, db: AsyncSession, fixed_income_id: str, amount: int
    ) -> MinimumInvestmentCheck:
        product = await self.get_fixed_income(db, fixed_income_id)
        shortfall = max(product.minimum_investment - amount, 0)
        return MinimumInvestmentCheck(
            valid=shortfall == 0,
            amount_cents=amount,
            minimum_cents=product.minimum_investment,
            shortfall_cents=shortfall,
        )

    async def project_fixed_income_return(
        self, db: AsyncSession, fixed_income_id: str, amount: int
    ) -> FixedIncomeProjection:
        product = await self.get_fixed_income(db, fixed_income_id)
        result = calculate_fixed_income_return(
            amount,
            product.rate_bps,
            product.maturity_date,
            self._clock(),
            tax_rate_bps=settings.FIXED_INCOME_TAX_BPS,
        )
        return FixedIncomeProjection.from_result(result)

    # ------------------------------------------------------------------
    # Catalog search
    # ------------------------------------------------------------------

    async def search_assets(self, db: AsyncSession, term: str) -> list[AssetListItem]:
        """Case-insensitive substring match on asset name or symbol."""
        if term is None or not term.strip():
            raise InvalidSearchError("search term must not be empty")
        return await self.search_assets_advanced(db, term=term)

    async def search_assets_advanced(
        self,
        db: AsyncSession,
        *,
        term: str | None = None,
        kind: str | None = None,
        category: str | None = None,
        rate_type: str | None = None,
        min_investment: int | None = None,
        max_investment: int | None = None,
    ) -> list[AssetListItem]:
        """All given filters must match. Rate type and investment bounds only
        ever match fixed-income products."""
        filters = AssetFilters(
            term=_text_filter(term, "search term"),
            kind=_enum_filter(AssetKind, kind, "asset kind"),
            category=_text_filter(category, "category"),
            rate_type=_enum_filter(RateType, rate_type, "rate type"),
            min_investment=_investment_bound(min_investment, "min_investment"),
            max_investment=_investment_bound(max_investment, "max_investment"),
        )
        if (
            filters.min_investment is not None
            and filters.max_investment is not None
            and filters.min_investment > filters.max_investment
        ):
            raise InvalidSearchError("min_investment is greater than max_investment")
        listings = await self._repo.search_assets(db, filters)
        return [AssetListItem.from_domain(a) for a in listings]

    async def get_assets_by_category(
        self, db: AsyncSession, category: str
    ) -> list[AssetListItem]:
        return await self.search_assets_advanced(db, category=category or "")

    async def get_fixed_incomes_by_category(
        self, db: AsyncSession, category: str
    ) -> list[AssetListItem]:
        return await self.search_assets_advanced(
            db, kind=AssetKind.FIXED_INCOME.value, category=category or ""
        )

    async def get_fixed_incomes_by_rate_type(
        self, db: AsyncSession, rate_type: str
    ) -> list[AssetListItem]:
        return await self.search_assets_advanced(
            db, kind=AssetKind.FIXED_INCOME.value, rate_type=rate_type or ""
        )

    async def get_fixed_incomes_by_investment_range(
        self, db: AsyncSession, min_amount: int, max_amount: int | None = None
    ) -> list[AssetListItem]:
        """Products whose minimum investment lies in [min_amount, max_amount]."""
        if min_amount is None:
            raise InvalidAmountError("min_investment is required")
        return await self.search_assets_advanced(
            db,
            kind=AssetKind.FIXED_INCOME.value,
            min_investment=min_amount,
            max_investment=max_amount,
        )

    async def get_categories(self, db: AsyncSession) -> list[str]:
        return await self._repo.list_categories(db)

    async def get_catalog_statistics(self, db: AsyncSession) -> CatalogStatisticsOut:
        return CatalogStatisticsOut.from_domain(await self._repo.catalog_statistics(db))

    async def get_category_distribution(self, db: AsyncSession) -> list[CategoryCountOut]:
        rows = await self._repo.category_distribution(db)
        return [CategoryCountOut.from_domain(r) for r in rows]

    # ------------------------------------------------------------------
    # Prices
    # ------------------------------------------------------------------

    async def update_stock_price(
        self, db: AsyncSession, symbol_or_asset_id: str, new_price: int
    ) -> PriceUpdateOut:
        """Set one stock's price by hand; daily_variation records the move."""
        try:
            new_price = validate_amount(new_price, "new_price")
        except ValueError as exc:
            raise InvalidAmountError(str(exc)) from exc

        async with unit_of_work(db):
            stock = await self._repo.get_stock_for_update(db, symbol_or_asset_id)
            if stock is None:
                raise AssetNotFoundError(symbol_or_asset_id)
            variation = percent_change(stock.current_price, new_price)
            await self._repo.update_stock_price(db, stock.symbol, new_price, variation)

        logger.info(
            "Price of %s set to %d cents (was %d, %s%%)",
            stock.symbol, new_price, stock.current_price, variation,
        )
        return PriceUpdateOut.from_domain(
            PriceUpdate(
                symbol=stock.symbol,
                old_price=stock.current_price,
                new_price=new_price,
                variation=variation,
            )
        )

    async def simulate_market_variation(self, db: AsyncSession) -> MarketSimulationResult:
        updates: list[PriceUpdate] = []
        async with unit_of_work(db):
            stocks = await self._repo.list_stocks(db, for_update=True)
            for stock in stocks:
                variation = self._variation_fn(self._rng)
                new_price = apply_variation(stock.current_price, variation)
                variation_dec = Decimal(str(variation))
                await self._repo.update_stock_price(db, stock.symbol, new_price, variation_dec)
                updates.append(
                    PriceUpdate(
                        symbol=stock.symbol,
                        old_price=stock.current_price,
                        new_price=new_price,
                        variation=variation_dec,
                    )
                )
        logger.info("Market variation applied to %d stocks", len(updates))
        return MarketSimulationResult(
            success=True, updates=[PriceUpdateOut.from_domain(u) for u in updates]
        )
