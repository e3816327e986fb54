"""Pure read-side portfolio aggregations.

    pnl         = quantity * (current_price - average_price)
    pnl_percent = (current_price - average_price) / average_price * 100

Fixed-income rows are marked at their average price (cost basis) unless a
yield projection is requested, in which case the calculator's total_net
replaces the cost basis as market value.
"""

from collections.abc import Iterable
from datetime import datetime
from decimal import Decimal

from src.ob_common.cents import round_cents
from src.ob_common.enums import AssetKind
from src.ob_market.domain.fixed_income import (
    FIXED_INCOME_TAX_BPS,
    calculate_fixed_income_return,
)
from src.ob_portfolio.domain.models import (
    CategorySummary,
    Holding,
    PositionValuation,
)

_PCT = Decimal("0.01")


def _percent(part: Decimal, whole: Decimal) -> Decimal:
    if whole == 0:
        return Decimal("0.00")
    return (part / whole * 100).quantize(_PCT)


def mark_price(
    holding: Holding,
    now: datetime,
    project_yield: bool = False,
    tax_rate_bps: int = FIXED_INCOME_TAX_BPS,
) -> Decimal:
    pos = holding.position
    if pos.asset_kind == AssetKind.STOCK.value:
        if holding.current_price is None:
            return pos.average_price
        return Decimal(holding.current_price)
    if project_yield and pos.rate_bps is not None and pos.maturity_date is not None:
        principal = round_cents(pos.quantity * pos.average_price)
        projected = calculate_fixed_income_return(
            principal, pos.rate_bps, pos.maturity_date, now, tax_rate_bps
        )
        return Decimal(projected.total_net) / pos.quantity
    return pos.average_price


def value_holding(
    holding: Holding,
    now: datetime,
    project_yield: bool = False,
    tax_rate_bps: int = FIXED_INCOME_TAX_BPS,
) -> PositionValuation:
    pos = holding.position
    price = mark_price(holding, now, project_yield, tax_rate_bps)
    cost_basis = round_cents(pos.quantity * pos.average_price)
    market_value = round_cents(pos.quantity * price)
    return PositionValuation(
        asset_symbol=pos.asset_symbol,
        asset_kind=pos.asset_kind,
        category=holding.category,
        quantity=pos.quantity,
        average_price=pos.average_price,
        current_price=price,
        cost_basis=cost_basis,
        market_value=market_value,
        pnl=market_value - cost_basis,
        pnl_percent=_percent(price - pos.average_price, pos.average_price),
    )


def total_value(valuations: Iterable[PositionValuation]) -> int:
    return sum(v.market_value for v in valuations)


def total_cost(valuations: Iterable[PositionValuation]) -> int:
    return sum(v.cost_basis for v in valuations)


def summary_by_category(valuations: list[PositionValuation]) -> list[CategorySummary]:
    """Group valuations by category; allocation is share of total market value."""
    grand_total = Decimal(total_value(valuations))
    groups: dict[str, list[PositionValuation]] = {}
    for v in valuations:
        groups.setdefault(v.category, []).append(v)

    summaries = []
    for category in sorted(groups):
        members = groups[category]
        value = total_value(members)
        cost = total_cost(members)
        summaries.append(
            CategorySummary(
                category=category,
                position_count=len(members),
                cost_basis=cost,
                market_value=value,
                pnl=value - cost,
                allocation_percent=_percent(Decimal(value), grand_total),
            )
        )
    return summaries


def pnl_percent_of(pnl: int, cost_basis: int) -> Decimal:
    return _percent(Decimal(pnl), Decimal(cost_basis))


def released_cost(quantity: int, average_price: Decimal) -> int:
    """Cost basis leaving the position when `quantity` units are sold."""
    return round_cents(quantity * average_price)
