"""Domain models for ob_portfolio — pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal


@dataclass
class Position:
    id: str
    user_id: str
    account_id: str
    asset_symbol: str           # stock symbol or fixed-income id
    asset_kind: str             # AssetKind value
    quantity: int
    average_price: Decimal      # cents, weighted average (fractional)
    purchase_price: int         # cents, unit price of the latest buy
    transaction_ref: str | None = None
    rate_bps: int | None = None
    rate_type: str | None = None
    maturity_date: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass
class Holding:
    """A position joined with what is needed to value it."""

    position: Position
    category: str
    current_price: int | None   # cents; None for fixed income


@dataclass
class ReducedPosition:
    asset_symbol: str
    quantity_sold: int
    remaining_quantity: int
    average_price: Decimal
    released_cost: int          # cents, cost basis of the sold quantity
    deleted: bool


@dataclass
class PositionValuation:
    asset_symbol: str
    asset_kind: str
    category: str
    quantity: int
    average_price: Decimal
    current_price: Decimal      # mark price actually used
    cost_basis: int
    market_value: int
    pnl: int
    pnl_percent: Decimal


@dataclass
class CategorySummary:
    category: str
    position_count: int
    cost_basis: int
    market_value: int
    pnl: int
    allocation_percent: Decimal
