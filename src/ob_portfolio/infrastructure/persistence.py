"""PortfolioRepository — positions table, raw text() SQL.

Concurrent buys/sells of the same (user_id, asset_symbol) serialize on the
row lock taken by the single-statement upsert / conditional update; the
weighted average is computed by PostgreSQL from the locked row, never from a
value read earlier by Python.
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.ob_common.enums import AssetKind
from src.ob_common.errors import (
    InsufficientQuantityError,
    PositionKindMismatchError,
    PositionNotFoundError,
)
from src.ob_portfolio.domain.models import Holding, Position, ReducedPosition
from src.ob_portfolio.domain.valuation import released_cost

# ---------------------------------------------------------------------------
# SQL
# ---------------------------------------------------------------------------

_POSITION_COLUMNS = """
    id, user_id, account_id, asset_symbol, asset_kind,
    quantity, average_price, purchase_price, transaction_ref,
    rate_bps, rate_type, maturity_date, created_at, updated_at
"""

_GET_POSITION_SQL = text(f"""
    SELECT {_POSITION_COLUMNS}
    FROM positions
    WHERE user_id = :user_id AND asset_symbol = :symbol
""")

# new_avg = (old_qty * old_avg + q * p) / (old_qty + q); SET sees the old row
_UPSERT_POSITION_SQL = text(f"""
    INSERT INTO positions (
        user_id, account_id, asset_symbol, asset_kind,
        quantity, average_price, purchase_price, transaction_ref,
        rate_bps, rate_type, maturity_date
    )
    VALUES (
        :user_id, :account_id, :symbol, :asset_kind,
        :quantity, :average_price, :purchase_price, :transaction_ref,
        :rate_bps, :rate_type, :maturity_date
    )
    ON CONFLICT (user_id, asset_symbol) DO UPDATE SET
        average_price = ROUND(
            (positions.quantity * positions.average_price
             + EXCLUDED.quantity * EXCLUDED.average_price)
            / (positions.quantity + EXCLUDED.quantity),
            6
        ),
        quantity = positions.quantity + EXCLUDED.quantity,
        purchase_price = EXCLUDED.purchase_price,
        transaction_ref = EXCLUDED.transaction_ref,
        rate_bps = COALESCE(EXCLUDED.rate_bps, positions.rate_bps),
        rate_type = COALESCE(EXCLUDED.rate_type, positions.rate_type),
        maturity_date = COALESCE(EXCLUDED.maturity_date, positions.maturity_date),
        updated_at = NOW()
    RETURNING {_POSITION_COLUMNS}
""")

_REDUCE_POSITION_SQL = text("""
    UPDATE positions
    SET quantity = quantity - :quantity,
        updated_at = NOW()
    WHERE user_id = :user_id
      AND asset_symbol = :symbol
      AND asset_kind = :asset_kind
      AND quantity >= :quantity
    RETURNING quantity, average_price
""")

_GET_QUANTITY_SQL = text("""
    SELECT quantity, asset_kind FROM positions
    WHERE user_id = :user_id AND asset_symbol = :symbol
""")

_DELETE_EXHAUSTED_SQL = text("""
    DELETE FROM positions
    WHERE user_id = :user_id AND asset_symbol = :symbol AND quantity = 0
""")

_HOLDINGS_SELECT = """
    SELECT p.id, p.user_id, p.account_id, p.asset_symbol, p.asset_kind,
           p.quantity, p.average_price, p.purchase_price, p.transaction_ref,
           p.rate_bps, p.rate_type, p.maturity_date, p.created_at, p.updated_at,
           COALESCE(sa.category, fa.category, 'Uncategorized') AS category,
           s.current_price
    FROM positions p
    LEFT JOIN stocks s
        ON s.symbol = p.asset_symbol AND p.asset_kind = 'STOCK'
    LEFT JOIN assets sa ON sa.id = s.asset_id
    LEFT JOIN fixed_income f
        ON f.id = p.asset_symbol AND p.asset_kind = 'FIXED_INCOME'
    LEFT JOIN assets fa ON fa.id = f.asset_id
"""

_LIST_HOLDINGS_SQL = text(f"""
    {_HOLDINGS_SELECT}
    WHERE p.user_id = :user_id
    ORDER BY p.asset_symbol
""")

_LIST_HOLDINGS_BY_ACCOUNT_SQL = text(f"""
    {_HOLDINGS_SELECT}
    WHERE p.account_id = :account_id
    ORDER BY p.asset_symbol
""")

_GET_HOLDING_SQL = text(f"""
    {_HOLDINGS_SELECT}
    WHERE p.user_id = :user_id AND p.asset_symbol = :symbol
""")

# ---------------------------------------------------------------------------
# Row mappers
# ---------------------------------------------------------------------------


def _row_to_position(row: object) -> Position:
    return Position(
        id=str(row.id),  # type: ignore[attr-defined]
        user_id=row.user_id,  # type: ignore[attr-defined]
        account_id=str(row.account_id),  # type: ignore[attr-defined]
        asset_symbol=row.asset_symbol,  # type: ignore[attr-defined]
        asset_kind=row.asset_kind,  # type: ignore[attr-defined]
        quantity=row.quantity,  # type: ignore[attr-defined]
        average_price=Decimal(row.average_price),  # type: ignore[attr-defined]
        purchase_price=row.purchase_price,  # type: ignore[attr-defined]
        transaction_ref=row.transaction_ref,  # type: ignore[attr-defined]
        rate_bps=row.rate_bps,  # type: ignore[attr-defined]
        rate_type=row.rate_type,  # type: ignore[attr-defined]
        maturity_date=row.maturity_date,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
        updated_at=row.updated_at,  # type: ignore[attr-defined]
    )


def _row_to_holding(row: object) -> Holding:
    return Holding(
        position=_row_to_position(row),
        category=row.category,  # type: ignore[attr-defined]
        current_price=row.current_price,  # type: ignore[attr-defined]
    )


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class PortfolioRepository:
    async def get_position(
        self, db: AsyncSession, user_id: str, symbol: str
    ) -> Position | None:
        result = await db.execute(
            _GET_POSITION_SQL, {"user_id": user_id, "symbol": symbol}
        )
        row = result.fetchone()
        return _row_to_position(row) if row is not None else None

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
    ) -> Position:
        result = await db.execute(
            _UPSERT_POSITION_SQL,
            {
                "user_id": user_id,
                "account_id": account_id,
                "symbol": symbol,
                "asset_kind": asset_kind,
                "quantity": quantity,
                "average_price": Decimal(unit_price),
                "purchase_price": unit_price,
                "transaction_ref": transaction_ref,
                "rate_bps": rate_bps,
                "rate_type": rate_type,
                "maturity_date": maturity_date,
            },
        )
        return _row_to_position(result.fetchone())

    async def reduce_position(
        self,
        db: AsyncSession,
        user_id: str,
        symbol: str,
        quantity: int,
        asset_kind: str = AssetKind.STOCK.value,
    ) -> ReducedPosition:
        """Decrement quantity atomically; average price of the remainder is unchanged.

        Only a position of `asset_kind` is reduced. Raises
        PositionNotFoundError, PositionKindMismatchError or
        InsufficientQuantityError when the conditional update matches no row.
        A position reduced to zero is deleted in the same unit.
        """
        params = {
            "user_id": user_id,
            "symbol": symbol,
            "quantity": quantity,
            "asset_kind": asset_kind,
        }
        row = (await db.execute(_REDUCE_POSITION_SQL, params)).fetchone()
        if row is None:
            held = (
                await db.execute(_GET_QUANTITY_SQL, {"user_id": user_id, "symbol": symbol})
            ).fetchone()
            if held is None:
                raise PositionNotFoundError(symbol)
            if held.asset_kind != asset_kind:
                raise PositionKindMismatchError(symbol, held.asset_kind, asset_kind)
            raise InsufficientQuantityError(symbol, quantity, held.quantity)

        average_price = Decimal(row.average_price)
        deleted = row.quantity == 0
        if deleted:
            await db.execute(_DELETE_EXHAUSTED_SQL, {"user_id": user_id, "symbol": symbol})
        return ReducedPosition(
            asset_symbol=symbol,
            quantity_sold=quantity,
            remaining_quantity=row.quantity,
            average_price=average_price,
            released_cost=released_cost(quantity, average_price),
            deleted=deleted,
        )

    async def list_holdings(self, db: AsyncSession, user_id: str) -> list[Holding]:
        result = await db.execute(_LIST_HOLDINGS_SQL, {"user_id": user_id})
        return [_row_to_holding(r) for r in result.fetchall()]

    async def list_holdings_by_account(
        self, db: AsyncSession, account_id: str
    ) -> list[Holding]:
        result = await db.execute(_LIST_HOLDINGS_BY_ACCOUNT_SQL, {"account_id": account_id})
        return [_row_to_holding(r) for r in result.fetchall()]

    async def get_holding(
        self, db: AsyncSession, user_id: str, symbol: str
    ) -> Holding | None:
        result = await db.execute(_GET_HOLDING_SQL, {"user_id": user_id, "symbol": symbol})
        row = result.fetchone()
        return _row_to_holding(row) if row is not None else None
