"""Pydantic schemas for portfolio reads."""

from pydantic import BaseModel

from src.ob_common.cents import cents_to_display
from src.ob_portfolio.domain.models import CategorySummary, Position, PositionValuation


class PositionOut(BaseModel):
    asset_symbol: str
    asset_kind: str
    quantity: int
    average_price: str
    purchase_price_cents: int
    rate_bps: int | None
    rate_type: str | None
    maturity_date: str | None

    @classmethod
    def from_domain(cls, p: Position) -> "PositionOut":
        return cls(
            asset_symbol=p.asset_symbol,
            asset_kind=p.asset_kind,
            quantity=p.quantity,
            average_price=str(p.average_price),
            purchase_price_cents=p.purchase_price,
            rate_bps=p.rate_bps,
            rate_type=p.rate_type,
            maturity_date=p.maturity_date.isoformat() if p.maturity_date else None,
        )


class PositionValuationOut(BaseModel):
    asset_symbol: str
    asset_kind: str
    category: str
    quantity: int
    average_price: str
    current_price: str
    cost_basis_cents: int
    market_value_cents: int
    market_value_display: str
    pnl_cents: int
    pnl_display: str
    pnl_percent: str

    @classmethod
    def from_domain(cls, v: PositionValuation) -> "PositionValuationOut":
        return cls(
            asset_symbol=v.asset_symbol,
            asset_kind=v.asset_kind,
            category=v.category,
            quantity=v.quantity,
            average_price=str(v.average_price),
            current_price=str(v.current_price),
            cost_basis_cents=v.cost_basis,
            market_value_cents=v.market_value,
            market_value_display=cents_to_display(v.market_value),
            pnl_cents=v.pnl,
            pnl_display=cents_to_display(v.pnl),
            pnl_percent=str(v.pnl_percent),
        )


class CategorySummaryOut(BaseModel):
    category: str
    position_count: int
    cost_basis_cents: int
    market_value_cents: int
    pnl_cents: int
    allocation_percent: str

    @classmethod
    def from_domain(cls, s: CategorySummary) -> "CategorySummaryOut":
        return cls(
            category=s.category,
            position_count=s.position_count,
            cost_basis_cents=s.cost_basis,
            market_value_cents=s.market_value,
            pnl_cents=s.pnl,
            allocation_percent=str(s.allocation_percent),
        )


class PortfolioValueOut(BaseModel):
    user_id: str
    position_count: int
    total_value_cents: int
    total_value_display: str
