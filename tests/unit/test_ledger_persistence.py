"""Unit tests for LedgerRepository using a mocked AsyncSession."""
from datetime import UTC, datetime
from typing import Any
from unittest.mock import MagicMock

import pytest

from src.ob_common.errors import AccountNotFoundError
from src.ob_ledger.infrastructure.persistence import LedgerRepository


def _make_account_row(**kwargs: Any) -> MagicMock:
    row = MagicMock()
    row.id = kwargs.get("id", "acc-1")
    row.user_id = kwargs.get("user_id", "user-1")
    row.kind = kwargs.get("kind", "CURRENT")
    row.balance = kwargs.get("balance", 1000)
    row.version = kwargs.get("version", 1)
    row.created_at = datetime.now(UTC)
    row.updated_at = datetime.now(UTC)
    return row


def _result(one: Any = None, all_: list | None = None) -> MagicMock:
    result = MagicMock()
    result.fetchone.return_value = one
    result.fetchall.return_value = all_ or []
    return result


class TestBalanceUpdates:
    async def test_debit_returns_updated_account(self, db) -> None:
        db.execute.return_value = _result(one=_make_account_row(balance=400))
        account = await LedgerRepository().debit(db, "acc-1", 600)
        assert account is not None
        assert account.balance == 400
        assert db.execute.call_args.args[1] == {"account_id": "acc-1", "amount": 600}

    async def test_debit_returns_none_when_not_covered(self, db) -> None:
        db.execute.return_value = _result(one=None)
        assert await LedgerRepository().debit(db, "acc-1", 5000) is None

    async def test_debit_is_conditional_on_balance(self, db) -> None:
        db.execute.return_value = _result(one=None)
        await LedgerRepository().debit(db, "acc-1", 5000)
        sql = str(db.execute.call_args.args[0])
        assert "balance >= :amount" in sql

    async def test_credit_missing_account(self, db) -> None:
        db.execute.return_value = _result(one=None)
        with pytest.raises(AccountNotFoundError):
            await LedgerRepository().credit(db, "nope", 100)


class TestAccounts:
    async def test_lock_accounts_sorted_and_deduplicated(self, db) -> None:
        db.execute.return_value = _result(
            all_=[_make_account_row(id="acc-a"), _make_account_row(id="acc-b")]
        )
        accounts = await LedgerRepository().lock_accounts(db, ["acc-b", "acc-a", "acc-b"])
        assert db.execute.call_args.args[1] == {"account_ids": ["acc-a", "acc-b"]}
        assert [a.id for a in accounts] == ["acc-a", "acc-b"]

    async def test_create_accounts(self, db) -> None:
        db.execute.return_value = _result(
            all_=[
                _make_account_row(id="acc-c", kind="CURRENT", balance=0),
                _make_account_row(id="acc-i", kind="INVESTMENT", balance=0),
            ]
        )
        accounts = await LedgerRepository().create_accounts(db, "user-1")
        assert {a.kind for a in accounts} == {"CURRENT", "INVESTMENT"}
        assert db.execute.await_count == 1

    async def test_get_account_missing(self, db) -> None:
        db.execute.return_value = _result(one=None)
        assert await LedgerRepository().get_account(db, "nope") is None


async def test_insert_transfer_marks_completed(db) -> None:
    row = MagicMock()
    row.id = 3
    row.transaction_ref = "TXN_A"
    row.credit_ref = "TXN_B"
    row.from_account_id = "acc-1"
    row.to_account_id = "acc-2"
    row.amount = 1000
    row.fee = 5
    row.status = "COMPLETED"
    row.created_at = datetime.now(UTC)
    db.execute.return_value = _result(one=row)

    transfer = await LedgerRepository().insert_transfer(
        db,
        transaction_ref="TXN_A",
        credit_ref="TXN_B",
        from_account_id="acc-1",
        to_account_id="acc-2",
        amount=1000,
        fee=5,
    )

    assert db.execute.call_args.args[1]["status"] == "COMPLETED"
    assert transfer.credit_ref == "TXN_B"
