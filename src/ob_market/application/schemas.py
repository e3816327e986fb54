"""Pydantic schemas for ob_market results.

Prices are int cents with a display string alongside; variations are
percent strings with 2 decimals ("-2.37").
"""

from pydantic import BaseModel

from src.ob_common.cents import cents_to_display
from src.ob_market.domain.fixed_income import FixedIncomeReturn
from src.ob_market.domain.models import (
    AssetListing,
    CatalogStatistics,
    CategoryCount,
    PriceUpdate,
    Stock,
)


class AssetListItem(BaseModel):
    asset_id: str
    name: str
    kind: str
    category: str
    symbol: str
    current_price_cents: int | None
    current_price_display: str | None
    daily_variation: str | None
    rate_bps: int | None
    rate_type: str | None
    maturity_date: str | None
    minimum_investment_cents: int | None

    @classmethod
    def from_domain(cls, a: AssetListing) -> "AssetListItem":
        return cls(
            asset_id=a.asset_id,
            name=a.name,
            kind=a.kind,
            category=a.category,
            symbol=a.symbol,
            current_price_cents=a.current_price,
            current_price_display=(
                cents_to_display(a.current_price) if a.current_price is not None else None
            ),
            daily_variation=f"{a.daily_variation:.2f}" if a.daily_variation is not None else None,
            rate_bps=a.rate_bps,
            rate_type=a.rate_type,
            maturity_date=a.maturity_date.isoformat() if a.maturity_date else None,
            minimum_investment_cents=a.minimum_investment,
        )


class StockQuote(BaseModel):
    symbol: str
    name: str
    category: str
    current_price_cents: int
    current_price_display: str
    daily_variation: str

    @classmethod
    def from_domain(cls, s: Stock) -> "StockQuote":
        return cls(
            symbol=s.symbol,
            name=s.name,
            category=s.category,
            current_price_cents=s.current_price,
            current_price_display=cents_to_display(s.current_price),
            daily_variation=f"{s.daily_variation:.2f}",
        )


class PriceUpdateOut(BaseModel):
    symbol: str
    old_price_cents: int
    new_price_cents: int
    variation: str

    @classmethod
    def from_domain(cls, u: PriceUpdate) -> "PriceUpdateOut":
        return cls(
            symbol=u.symbol,
            old_price_cents=u.old_price,
            new_price_cents=u.new_price,
            variation=f"{u.variation:.2f}",
        )


class MarketSimulationResult(BaseModel):
    success: bool
    updates: list[PriceUpdateOut]


class MinimumInvestmentCheck(BaseModel):
    valid: bool
    amount_cents: int
    minimum_cents: int
    shortfall_cents: int


class FixedIncomeProjection(BaseModel):
    principal_cents: int
    gross_return_cents: int
    tax_cents: int
    net_return_cents: int
    total_gross_cents: int
    total_net_cents: int
    total_net_display: str
    tax_rate: str

    @classmethod
    def from_result(cls, r: FixedIncomeReturn) -> "FixedIncomeProjection":
        return cls(
            principal_cents=r.principal,
            gross_return_cents=r.gross_return,
            tax_cents=r.tax,
            net_return_cents=r.net_return,
            total_gross_cents=r.total_gross,
            total_net_cents=r.total_net,
            total_net_display=cents_to_display(r.total_net),
            tax_rate=str(r.tax_rate),
        )


class CatalogStatisticsOut(BaseModel):
    total_assets: int
    total_stocks: int
    total_fixed_income: int

    @classmethod
    def from_domain(cls, s: CatalogStatistics) -> "CatalogStatisticsOut":
        return cls(
            total_assets=s.total_assets,
            total_stocks=s.total_stocks,
            total_fixed_income=s.total_fixed_income,
        )


class CategoryCountOut(BaseModel):
    category: str
    kind: str
    asset_count: int

    @classmethod
    def from_domain(cls, c: CategoryCount) -> "CategoryCountOut":
        return cls(category=c.category, kind=c.kind, asset_count=c.asset_count)
