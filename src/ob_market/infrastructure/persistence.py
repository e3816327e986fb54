"""MarketRepository — concrete implementation of MarketRepositoryProtocol.

All queries use raw text() SQL (no ORM).
asyncpg NULL parameter pattern: CAST(:param AS TYPE) IS NULL required for None values.
"""

from decimal import Decimal

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.ob_market.domain.models import (
    AssetFilters,
    AssetListing,
    CatalogStatistics,
    CategoryCount,
    FixedIncomeProduct,
    Stock,
)

# ---------------------------------------------------------------------------
# SQL
# ---------------------------------------------------------------------------

_STOCK_COLUMNS = """
    s.asset_id, s.symbol, a.name, a.category,
    s.current_price, s.daily_variation, s.updated_at
"""

_GET_STOCK_BY_ASSET_SQL = text(f"""
    SELECT {_STOCK_COLUMNS}
    FROM stocks s
    JOIN assets a ON a.id = s.asset_id
    WHERE s.asset_id = :asset_id
""")

_GET_STOCK_BY_SYMBOL_SQL = text(f"""
    SELECT {_STOCK_COLUMNS}
    FROM stocks s
    JOIN assets a ON a.id = s.asset_id
    WHERE s.symbol = :symbol
""")

_LIST_STOCKS_SQL = text(f"""
    SELECT {_STOCK_COLUMNS}
    FROM stocks s
    JOIN assets a ON a.id = s.asset_id
    ORDER BY s.symbol
""")

# Lock order is by symbol so concurrent simulation runs cannot deadlock
_LIST_STOCKS_FOR_UPDATE_SQL = text(f"""
    SELECT {_STOCK_COLUMNS}
    FROM stocks s
    JOIN assets a ON a.id = s.asset_id
    ORDER BY s.symbol
    FOR UPDATE OF s
""")

# A single stock row, by symbol or asset id, locked for a manual price update
_GET_STOCK_FOR_UPDATE_SQL = text(f"""
    SELECT {_STOCK_COLUMNS}
    FROM stocks s
    JOIN assets a ON a.id = s.asset_id
    WHERE s.symbol = :key OR s.asset_id = :key
    ORDER BY s.symbol
    LIMIT 1
    FOR UPDATE OF s
""")

_UPDATE_STOCK_PRICE_SQL = text("""
    UPDATE stocks
    SET current_price = :new_price,
        daily_variation = :variation,
        updated_at = NOW()
    WHERE symbol = :symbol
""")

_GET_FIXED_INCOME_SQL = text("""
    SELECT f.id, f.asset_id, f.name, a.category,
           f.rate_bps, f.rate_type, f.maturity_date, f.minimum_investment
    FROM fixed_income f
    JOIN assets a ON a.id = f.asset_id
    WHERE f.id = :fixed_income_id
""")

_CATALOG_UNION = """
    SELECT a.id AS asset_id, a.name, a.kind, a.category,
           s.symbol AS symbol,
           s.current_price, s.daily_variation,
           CAST(NULL AS INTEGER) AS rate_bps,
           CAST(NULL AS TEXT) AS rate_type,
           CAST(NULL AS TIMESTAMPTZ) AS maturity_date,
           CAST(NULL AS BIGINT) AS minimum_investment
    FROM assets a
    JOIN stocks s ON s.asset_id = a.id
    UNION ALL
    SELECT a.id AS asset_id, f.name, a.kind, a.category,
           f.id AS symbol,
           CAST(NULL AS BIGINT) AS current_price,
           CAST(NULL AS NUMERIC) AS daily_variation,
           f.rate_bps, f.rate_type, f.maturity_date, f.minimum_investment
    FROM assets a
    JOIN fixed_income f ON f.asset_id = a.id
"""

# Fixed-income-only filters (rate type, investment range) drop stocks
# because their columns are NULL.
_SEARCH_ASSETS_SQL = text(f"""
    SELECT c.asset_id, c.name, c.kind, c.category, c.symbol,
           c.current_price, c.daily_variation,
           c.rate_bps, c.rate_type, c.maturity_date, c.minimum_investment
    FROM ({_CATALOG_UNION}) c
    WHERE (CAST(:kind AS TEXT) IS NULL OR c.kind = CAST(:kind AS TEXT))
      AND (CAST(:category AS TEXT) IS NULL
           OR LOWER(c.category) = LOWER(CAST(:category AS TEXT)))
      AND (CAST(:rate_type AS TEXT) IS NULL OR c.rate_type = CAST(:rate_type AS TEXT))
      AND (CAST(:pattern AS TEXT) IS NULL
           OR c.name ILIKE CAST(:pattern AS TEXT)
           OR c.symbol ILIKE CAST(:pattern AS TEXT))
      AND (CAST(:min_investment AS BIGINT) IS NULL
           OR c.minimum_investment >= CAST(:min_investment AS BIGINT))
      AND (CAST(:max_investment AS BIGINT) IS NULL
           OR c.minimum_investment <= CAST(:max_investment AS BIGINT))
    ORDER BY c.kind DESC, c.name
""")

_CATALOG_STATISTICS_SQL = text("""
    SELECT COUNT(*) AS total_assets,
           COUNT(*) FILTER (WHERE kind = 'STOCK') AS total_stocks,
           COUNT(*) FILTER (WHERE kind = 'FIXED_INCOME') AS total_fixed_income
    FROM assets
""")

_CATEGORY_DISTRIBUTION_SQL = text("""
    SELECT category, kind, COUNT(*) AS asset_count
    FROM assets
    GROUP BY category, kind
    ORDER BY category, kind
""")

_LIST_CATEGORIES_SQL = text("""
    SELECT DISTINCT category FROM assets ORDER BY category
""")

# ---------------------------------------------------------------------------
# Row mappers
# ---------------------------------------------------------------------------


def _row_to_stock(row: object) -> Stock:
    return Stock(
        asset_id=row.asset_id,  # type: ignore[attr-defined]
        symbol=row.symbol,  # type: ignore[attr-defined]
        name=row.name,  # type: ignore[attr-defined]
        category=row.category,  # type: ignore[attr-defined]
        current_price=row.current_price,  # type: ignore[attr-defined]
        daily_variation=Decimal(row.daily_variation),  # type: ignore[attr-defined]
        updated_at=row.updated_at,  # type: ignore[attr-defined]
    )


def _row_to_fixed_income(row: object) -> FixedIncomeProduct:
    return FixedIncomeProduct(
        id=row.id,  # type: ignore[attr-defined]
        asset_id=row.asset_id,  # type: ignore[attr-defined]
        name=row.name,  # type: ignore[attr-defined]
        category=row.category,  # type: ignore[attr-defined]
        rate_bps=row.rate_bps,  # type: ignore[attr-defined]
        rate_type=row.rate_type,  # type: ignore[attr-defined]
        maturity_date=row.maturity_date,  # type: ignore[attr-defined]
        minimum_investment=row.minimum_investment,  # type: ignore[attr-defined]
    )


def _row_to_listing(row: object) -> AssetListing:
    variation = row.daily_variation  # type: ignore[attr-defined]
    return AssetListing(
        asset_id=row.asset_id,  # type: ignore[attr-defined]
        name=row.name,  # type: ignore[attr-defined]
        kind=row.kind,  # type: ignore[attr-defined]
        category=row.category,  # type: ignore[attr-defined]
        symbol=row.symbol,  # type: ignore[attr-defined]
        current_price=row.current_price,  # type: ignore[attr-defined]
        daily_variation=Decimal(variation) if variation is not None else None,
        rate_bps=row.rate_bps,  # type: ignore[attr-defined]
        rate_type=row.rate_type,  # type: ignore[attr-defined]
        maturity_date=row.maturity_date,  # type: ignore[attr-defined]
        minimum_investment=row.minimum_investment,  # type: ignore[attr-defined]
    )


def _like_pattern(term: str | None) -> str | None:
    """Substring ILIKE pattern with the LIKE wildcards in `term` escaped."""
    if term is None:
        return None
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class MarketRepository:
    """Catalog reads plus the stock price write."""

    async def get_stock_by_asset_id(
        self, db: AsyncSession, asset_id: str
    ) -> Stock | None:
        result = await db.execute(_GET_STOCK_BY_ASSET_SQL, {"asset_id": asset_id})
        row = result.fetchone()
        return _row_to_stock(row) if row is not None else None

    async def get_stock_by_symbol(
        self, db: AsyncSession, symbol: str
    ) -> Stock | None:
        result = await db.execute(_GET_STOCK_BY_SYMBOL_SQL, {"symbol": symbol})
        row = result.fetchone()
        return _row_to_stock(row) if row is not None else None

    async def list_stocks(
        self, db: AsyncSession, for_update: bool = False
    ) -> list[Stock]:
        sql = _LIST_STOCKS_FOR_UPDATE_SQL if for_update else _LIST_STOCKS_SQL
        result = await db.execute(sql)
        return [_row_to_stock(r) for r in result.fetchall()]

    async def get_stock_for_update(
        self, db: AsyncSession, symbol_or_asset_id: str
    ) -> Stock | None:
        result = await db.execute(_GET_STOCK_FOR_UPDATE_SQL, {"key": symbol_or_asset_id})
        row = result.fetchone()
        return _row_to_stock(row) if row is not None else None

    async def update_stock_price(
        self, db: AsyncSession, symbol: str, new_price: int, variation: Decimal
    ) -> None:
        await db.execute(
            _UPDATE_STOCK_PRICE_SQL,
            {"symbol": symbol, "new_price": new_price, "variation": variation},
        )

    async def get_fixed_income(
        self, db: AsyncSession, fixed_income_id: str
    ) -> FixedIncomeProduct | None:
        result = await db.execute(
            _GET_FIXED_INCOME_SQL, {"fixed_income_id": fixed_income_id}
        )
        row = result.fetchone()
        return _row_to_fixed_income(row) if row is not None else None

    async def list_available_assets(
        self, db: AsyncSession, kind: str | None
    ) -> list[AssetListing]:
        return await self.search_assets(db, AssetFilters(kind=kind))

    async def search_assets(
        self, db: AsyncSession, filters: AssetFilters
    ) -> list[AssetListing]:
        result = await db.execute(
            _SEARCH_ASSETS_SQL,
            {
                "kind": filters.kind,
                "category": filters.category,
                "rate_type": filters.rate_type,
                "pattern": _like_pattern(filters.term),
                "min_investment": filters.min_investment,
                "max_investment": filters.max_investment,
            },
        )
        return [_row_to_listing(r) for r in result.fetchall()]

    async def catalog_statistics(self, db: AsyncSession) -> CatalogStatistics:
        row = (await db.execute(_CATALOG_STATISTICS_SQL)).fetchone()
        return CatalogStatistics(
            total_assets=row.total_assets,  # type: ignore[union-attr]
            total_stocks=row.total_stocks,  # type: ignore[union-attr]
            total_fixed_income=row.total_fixed_income,  # type: ignore[union-attr]
        )

    async def category_distribution(self, db: AsyncSession) -> list[CategoryCount]:
        result = await db.execute(_CATEGORY_DISTRIBUTION_SQL)
        return [
            CategoryCount(category=r.category, kind=r.kind, asset_count=r.asset_count)
            for r in result.fetchall()
        ]

    async def list_categories(self, db: AsyncSession) -> list[str]:
        result = await db.execute(_LIST_CATEGORIES_SQL)
        return [r.category for r in result.fetchall()]
