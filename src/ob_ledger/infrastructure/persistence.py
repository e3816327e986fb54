"""LedgerRepository — concrete implementation of LedgerRepositoryProtocol.

All balance-mutating operations use atomic PostgreSQL UPDATE ... RETURNING.
A debit returning 0 rows means the balance did not cover the amount.

Transaction ownership: the CALLER opens the unit of work and commits; nothing
here commits or rolls back.
"""

from sqlalchemy import bindparam, text
from sqlalchemy.ext.asyncio import AsyncSession

from src.ob_common.enums import TransferStatus
from src.ob_common.errors import AccountNotFoundError
from src.ob_ledger.domain.models import Account, Transaction, Transfer

# ---------------------------------------------------------------------------
# SQL: accounts
# ---------------------------------------------------------------------------

_ACCOUNT_COLUMNS = "id, user_id, kind, balance, version, created_at, updated_at"

_GET_ACCOUNT_SQL = text(f"""
    SELECT {_ACCOUNT_COLUMNS}
    FROM accounts
    WHERE id = :account_id
""")

_GET_ACCOUNTS_FOR_USER_SQL = text(f"""
    SELECT {_ACCOUNT_COLUMNS}
    FROM accounts
    WHERE user_id = :user_id
    ORDER BY kind
""")

_CREATE_ACCOUNTS_SQL = text(f"""
    INSERT INTO accounts (user_id, kind, balance)
    VALUES (:user_id, 'CURRENT', 0), (:user_id, 'INVESTMENT', 0)
    RETURNING {_ACCOUNT_COLUMNS}
""")

# Always lock in id order so two opposite transfers cannot deadlock
_LOCK_ACCOUNTS_SQL = text(f"""
    SELECT {_ACCOUNT_COLUMNS}
    FROM accounts
    WHERE id IN :account_ids
    ORDER BY id
    FOR UPDATE
""").bindparams(bindparam("account_ids", expanding=True))

_CREDIT_SQL = text(f"""
    UPDATE accounts
    SET balance = balance + :amount,
        version = version + 1,
        updated_at = NOW()
    WHERE id = :account_id
    RETURNING {_ACCOUNT_COLUMNS}
""")

_DEBIT_SQL = text(f"""
    UPDATE accounts
    SET balance = balance - :amount,
        version = version + 1,
        updated_at = NOW()
    WHERE id = :account_id AND balance >= :amount
    RETURNING {_ACCOUNT_COLUMNS}
""")

# ---------------------------------------------------------------------------
# SQL: append-only log
# ---------------------------------------------------------------------------

_TRANSACTION_COLUMNS = """
    id, transaction_ref, user_id, account_id, kind, amount, fee, balance_after,
    asset_symbol, quantity, unit_price, realized_gain, tax, description, created_at
"""

_INSERT_TRANSACTION_SQL = text(f"""
    INSERT INTO transactions
        (transaction_ref, user_id, account_id, kind, amount, fee, balance_after,
         asset_symbol, quantity, unit_price, realized_gain, tax, description)
    VALUES
        (:transaction_ref, :user_id, :account_id, :kind, :amount, :fee, :balance_after,
         :asset_symbol, :quantity, :unit_price, :realized_gain, :tax, :description)
    RETURNING {_TRANSACTION_COLUMNS}
""")

_INSERT_TRANSFER_SQL = text("""
    INSERT INTO transfers
        (transaction_ref, credit_ref, from_account_id, to_account_id, amount, fee, status)
    VALUES
        (:transaction_ref, :credit_ref, :from_account_id, :to_account_id, :amount, :fee, :status)
    RETURNING id, transaction_ref, credit_ref, from_account_id, to_account_id,
              amount, fee, status, created_at
""")

# ---------------------------------------------------------------------------
# Row mappers
# ---------------------------------------------------------------------------


def _row_to_account(row: object) -> Account:
    return Account(
        id=str(row.id),  # type: ignore[attr-defined]
        user_id=row.user_id,  # type: ignore[attr-defined]
        kind=row.kind,  # type: ignore[attr-defined]
        balance=row.balance,  # type: ignore[attr-defined]
        version=row.version,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
        updated_at=row.updated_at,  # type: ignore[attr-defined]
    )


def row_to_transaction(row: object) -> Transaction:
    return Transaction(
        id=row.id,  # type: ignore[attr-defined]
        transaction_ref=row.transaction_ref,  # type: ignore[attr-defined]
        user_id=row.user_id,  # type: ignore[attr-defined]
        account_id=str(row.account_id),  # type: ignore[attr-defined]
        kind=row.kind,  # type: ignore[attr-defined]
        amount=row.amount,  # type: ignore[attr-defined]
        fee=row.fee,  # type: ignore[attr-defined]
        balance_after=row.balance_after,  # type: ignore[attr-defined]
        asset_symbol=row.asset_symbol,  # type: ignore[attr-defined]
        quantity=row.quantity,  # type: ignore[attr-defined]
        unit_price=row.unit_price,  # type: ignore[attr-defined]
        realized_gain=row.realized_gain,  # type: ignore[attr-defined]
        tax=row.tax,  # type: ignore[attr-defined]
        description=row.description,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
    )


def _row_to_transfer(row: object) -> Transfer:
    return Transfer(
        id=row.id,  # type: ignore[attr-defined]
        transaction_ref=row.transaction_ref,  # type: ignore[attr-defined]
        credit_ref=row.credit_ref,  # type: ignore[attr-defined]
        from_account_id=str(row.from_account_id),  # type: ignore[attr-defined]
        to_account_id=str(row.to_account_id),  # type: ignore[attr-defined]
        amount=row.amount,  # type: ignore[attr-defined]
        fee=row.fee,  # type: ignore[attr-defined]
        status=row.status,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
    )


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class LedgerRepository:
    """Concrete repository — all operations atomic at the SQL level."""

    async def get_account(self, db: AsyncSession, account_id: str) -> Account | None:
        row = (await db.execute(_GET_ACCOUNT_SQL, {"account_id": account_id})).fetchone()
        return _row_to_account(row) if row is not None else None

    async def get_accounts_for_user(
        self, db: AsyncSession, user_id: str
    ) -> list[Account]:
        result = await db.execute(_GET_ACCOUNTS_FOR_USER_SQL, {"user_id": user_id})
        return [_row_to_account(r) for r in result.fetchall()]

    async def create_accounts(self, db: AsyncSession, user_id: str) -> list[Account]:
        """Insert CURRENT + INVESTMENT in one statement."""
        result = await db.execute(_CREATE_ACCOUNTS_SQL, {"user_id": user_id})
        return [_row_to_account(r) for r in result.fetchall()]

    async def lock_accounts(
        self, db: AsyncSession, account_ids: list[str]
    ) -> list[Account]:
        result = await db.execute(_LOCK_ACCOUNTS_SQL, {"account_ids": sorted(set(account_ids))})
        return [_row_to_account(r) for r in result.fetchall()]

    async def credit(self, db: AsyncSession, account_id: str, amount: int) -> Account:
        row = (
            await db.execute(_CREDIT_SQL, {"account_id": account_id, "amount": amount})
        ).fetchone()
        if row is None:
            raise AccountNotFoundError(account_id)
        return _row_to_account(row)

    async def debit(
        self, db: AsyncSession, account_id: str, amount: int
    ) -> Account | None:
        """Conditional debit: None when the balance does not cover `amount`."""
        row = (
            await db.execute(_DEBIT_SQL, {"account_id": account_id, "amount": amount})
        ).fetchone()
        return _row_to_account(row) if row is not None else None

    async def insert_transaction(
        self,
        db: AsyncSession,
        *,
        transaction_ref: str,
        user_id: str,
        account_id: str,
        kind: str,
        amount: int,
        balance_after: int,
        fee: int = 0,
        asset_symbol: str | None = None,
        quantity: int | None = None,
        unit_price: int | None = None,
        realized_gain: int | None = None,
        tax: int | None = None,
        description: str | None = None,
    ) -> Transaction:
        result = await db.execute(
            _INSERT_TRANSACTION_SQL,
            {
                "transaction_ref": transaction_ref,
                "user_id": user_id,
                "account_id": account_id,
                "kind": kind,
                "amount": amount,
                "fee": fee,
                "balance_after": balance_after,
                "asset_symbol": asset_symbol,
                "quantity": quantity,
                "unit_price": unit_price,
                "realized_gain": realized_gain,
                "tax": tax,
                "description": description,
            },
        )
        return row_to_transaction(result.fetchone())

    async def insert_transfer(
        self,
        db: AsyncSession,
        *,
        transaction_ref: str,
        credit_ref: str,
        from_account_id: str,
        to_account_id: str,
        amount: int,
        fee: int,
    ) -> Transfer:
        result = await db.execute(
            _INSERT_TRANSFER_SQL,
            {
                "transaction_ref": transaction_ref,
                "credit_ref": credit_ref,
                "from_account_id": from_account_id,
                "to_account_id": to_account_id,
                "amount": amount,
                "fee": fee,
                "status": TransferStatus.COMPLETED.value,
            },
        )
        return _row_to_transfer(result.fetchone())
