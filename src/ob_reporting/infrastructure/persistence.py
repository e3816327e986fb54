"""ReportingRepository — read-only queries over the transaction log.

asyncpg NULL parameter pattern: CAST(:param AS TYPE) IS NULL required for None values.
"""

from datetime import datetime

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.ob_ledger.domain.models import Transaction
from src.ob_ledger.infrastructure.persistence import row_to_transaction
from src.ob_reporting.domain.models import KindVolume

_TRANSACTION_COLUMNS = """
    id, transaction_ref, user_id, account_id, kind, amount, fee, balance_after,
    asset_symbol, quantity, unit_price, realized_gain, tax, description, created_at
"""

_FILTERS = """
    (CAST(:user_id AS TEXT) IS NULL OR user_id = CAST(:user_id AS TEXT))
    AND (CAST(:account_id AS TEXT) IS NULL OR account_id = CAST(:account_id AS TEXT))
    AND (CAST(:kind AS TEXT) IS NULL OR kind = CAST(:kind AS TEXT))
    AND (CAST(:start_at AS TIMESTAMPTZ) IS NULL OR created_at >= CAST(:start_at AS TIMESTAMPTZ))
    AND (CAST(:end_at AS TIMESTAMPTZ) IS NULL OR created_at < CAST(:end_at AS TIMESTAMPTZ))
"""

_LIST_PAGE_SQL = text(f"""
    SELECT {_TRANSACTION_COLUMNS}
    FROM transactions
    WHERE {_FILTERS}
      AND (CAST(:cursor_id AS BIGINT) IS NULL OR id < CAST(:cursor_id AS BIGINT))
    ORDER BY id DESC
    LIMIT :limit
""")

_LIST_ALL_SQL = text(f"""
    SELECT {_TRANSACTION_COLUMNS}
    FROM transactions
    WHERE {_FILTERS}
    ORDER BY id ASC
""")

_GET_BY_REF_SQL = text(f"""
    SELECT {_TRANSACTION_COLUMNS}
    FROM transactions
    WHERE transaction_ref = :transaction_ref
""")

_BALANCE_BEFORE_SQL = text("""
    SELECT COALESCE(SUM(amount), 0)
    FROM transactions
    WHERE account_id = :account_id AND created_at < :start_at
""")

_VOLUME_BY_KIND_SQL = text("""
    SELECT kind, COUNT(*) AS txn_count, COALESCE(SUM(ABS(amount)), 0) AS volume
    FROM transactions
    WHERE (CAST(:start_at AS TIMESTAMPTZ) IS NULL OR created_at >= CAST(:start_at AS TIMESTAMPTZ))
      AND (CAST(:end_at AS TIMESTAMPTZ) IS NULL OR created_at < CAST(:end_at AS TIMESTAMPTZ))
    GROUP BY kind
    ORDER BY kind
""")


def _filter_params(
    user_id: str | None,
    account_id: str | None,
    kind: str | None,
    start: datetime | None,
    end: datetime | None,
) -> dict[str, object]:
    return {
        "user_id": user_id,
        "account_id": account_id,
        "kind": kind,
        "start_at": start,
        "end_at": end,
    }


class ReportingRepository:
    async def list_transactions_page(
        self,
        db: AsyncSession,
        *,
        user_id: str | None = None,
        account_id: str | None = None,
        kind: str | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
        cursor_id: int | None = None,
        limit: int = 20,
    ) -> list[Transaction]:
        """Newest first; rows with id < cursor_id."""
        params = _filter_params(user_id, account_id, kind, start, end)
        params.update({"cursor_id": cursor_id, "limit": limit})
        result = await db.execute(_LIST_PAGE_SQL, params)
        return [row_to_transaction(r) for r in result.fetchall()]

    async def fetch_transactions(
        self,
        db: AsyncSession,
        *,
        user_id: str | None = None,
        account_id: str | None = None,
        kind: str | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> list[Transaction]:
        """Oldest first, unpaginated; for aggregations."""
        params = _filter_params(user_id, account_id, kind, start, end)
        result = await db.execute(_LIST_ALL_SQL, params)
        return [row_to_transaction(r) for r in result.fetchall()]

    async def get_transaction(
        self, db: AsyncSession, transaction_ref: str
    ) -> Transaction | None:
        row = (
            await db.execute(_GET_BY_REF_SQL, {"transaction_ref": transaction_ref})
        ).fetchone()
        return row_to_transaction(row) if row is not None else None

    async def balance_before(
        self, db: AsyncSession, account_id: str, start: datetime
    ) -> int:
        result = await db.execute(
            _BALANCE_BEFORE_SQL, {"account_id": account_id, "start_at": start}
        )
        return int(result.scalar_one())

    async def volume_by_kind(
        self, db: AsyncSession, start: datetime | None, end: datetime | None
    ) -> list[KindVolume]:
        result = await db.execute(_VOLUME_BY_KIND_SQL, {"start_at": start, "end_at": end})
        return [
            KindVolume(kind=r.kind, count=r.txn_count, volume=int(r.volume))
            for r in result.fetchall()
        ]
