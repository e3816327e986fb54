"""Unit tests for ReportingRepository using a mocked AsyncSession."""
from datetime import UTC, datetime
from unittest.mock import MagicMock

from src.ob_reporting.infrastructure.persistence import ReportingRepository


def _volume_row(kind: str, txn_count: int, volume: int) -> MagicMock:
    row = MagicMock()
    row.kind = kind
    row.txn_count = txn_count
    row.volume = volume
    return row


async def test_volume_by_kind(db) -> None:
    result = MagicMock()
    result.fetchall.return_value = [
        _volume_row("DEPOSIT", 3, 4500),
        _volume_row("WITHDRAW", 1, 200),
    ]
    db.execute.return_value = result

    volumes = await ReportingRepository().volume_by_kind(db, None, None)

    assert [(v.kind, v.count, v.volume) for v in volumes] == [
        ("DEPOSIT", 3, 4500),
        ("WITHDRAW", 1, 200),
    ]
    assert db.execute.call_args.args[1] == {"start_at": None, "end_at": None}


async def test_balance_before_uses_start(db) -> None:
    result = MagicMock()
    result.scalar_one.return_value = 1200
    db.execute.return_value = result
    start = datetime(2026, 10, 1, tzinfo=UTC)

    assert await ReportingRepository().balance_before(db, "acc-1", start) == 1200
    assert db.execute.call_args.args[1] == {"account_id": "acc-1", "start_at": start}


async def test_page_passes_cursor_and_limit(db) -> None:
    result = MagicMock()
    result.fetchall.return_value = []
    db.execute.return_value = result

    await ReportingRepository().list_transactions_page(
        db, account_id="acc-1", cursor_id=50, limit=21
    )

    params = db.execute.call_args.args[1]
    assert params["cursor_id"] == 50
    assert params["limit"] == 21
    assert params["account_id"] == "acc-1"
    assert params["user_id"] is None
