"""Repository Protocol — dependency inversion for testability.

Unit tests inject a mock that conforms to this Protocol.
Infrastructure layer provides the real implementation.
"""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.ob_ledger.domain.models import Account, Transaction, Transfer


class LedgerRepositoryProtocol(Protocol):
    async def get_account(self, db: AsyncSession, account_id: str) -> Account | None: ...

    async def get_accounts_for_user(
        self, db: AsyncSession, user_id: str
    ) -> list[Account]: ...

    async def create_accounts(self, db: AsyncSession, user_id: str) -> list[Account]: ...

    async def lock_accounts(
        self, db: AsyncSession, account_ids: list[str]
    ) -> list[Account]: ...

    async def credit(self, db: AsyncSession, account_id: str, amount: int) -> Account: ...

    async def debit(
        self, db: AsyncSession, account_id: str, amount: int
    ) -> Account | None: ...

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
    ) -> Transaction: ...

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
    ) -> Transfer: ...
