"""Domain models for ob_market — pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal


@dataclass
class Stock:
    asset_id: str
    symbol: str
    name: str
    category: str
    current_price: int          # cents
    daily_variation: Decimal    # percent, e.g. Decimal("-2.37")
    updated_at: datetime | None = None


@dataclass
class FixedIncomeProduct:
    id: str
    asset_id: str
    name: str
    category: str
    rate_bps: int
    rate_type: str              # RateType value
    maturity_date: datetime
    minimum_investment: int     # cents


@dataclass
class AssetListing:
    """Stock and fixed-income rows merged into one display shape."""

    asset_id: str
    name: str
    kind: str                   # AssetKind value
    category: str
    symbol: str                 # stock symbol or fixed-income id
    current_price: int | None = None
    daily_variation: Decimal | None = None
    rate_bps: int | None = None
    rate_type: str | None = None
    maturity_date: datetime | None = None
    minimum_investment: int | None = None


@dataclass
class PriceUpdate:
    symbol: str
    old_price: int
    new_price: int
    variation: Decimal


@dataclass(frozen=True)
class AssetFilters:
    """Optional catalog filters; None means "any". Investment bounds are cents."""

    term: str | None = None
    kind: str | None = None
    category: str | None = None
    rate_type: str | None = None
    min_investment: int | None = None
    max_investment: int | None = None


@dataclass
class CatalogStatistics:
    total_assets: int
    total_stocks: int
    total_fixed_income: int


@dataclass
class CategoryCount:
    category: str
    kind: str
    asset_count: int
