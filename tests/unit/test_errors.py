"""Unit tests for the AppError hierarchy."""
import pytest

from src.ob_common.errors import (
    AccountNotFoundError,
    AccountsAlreadyExistError,
    AppError,
    AssetNotFoundError,
    BelowMinimumError,
    DestinationNotFoundError,
    FixedIncomeMaturedError,
    InsufficientFundsError,
    InsufficientPositionError,
    InsufficientQuantityError,
    InvalidAccountKindError,
    InvalidAmountError,
    InvalidSearchError,
    InvalidTransferError,
    PositionKindMismatchError,
    PositionNotFoundError,
    StoreUnavailableError,
    UserNotFoundError,
)


@pytest.mark.parametrize(
    "error, code, status",
    [
        (InsufficientFundsError(100, 50), 2001, 422),
        (AccountNotFoundError("acc-1"), 2002, 404),
        (InvalidAccountKindError("acc-1", "INVESTMENT", "CURRENT"), 2003, 422),
        (InvalidAmountError("must be positive"), 2004, 422),
        (AccountsAlreadyExistError("user-1"), 2005, 409),
        (UserNotFoundError("user-1"), 2006, 404),
        (AssetNotFoundError("XPTO3"), 3001, 404),
        (BelowMinimumError(500, 1000), 3002, 422),
        (FixedIncomeMaturedError("FI-1"), 3003, 422),
        (InvalidSearchError("empty term"), 3004, 422),
        (DestinationNotFoundError("nobody@example.com"), 4001, 404),
        (InvalidTransferError("same account"), 4002, 422),
        (InsufficientPositionError("generic"), 5001, 422),
        (InsufficientQuantityError("PETR4", 20, 10), 5002, 422),
        (PositionNotFoundError("PETR4"), 5003, 404),
        (PositionKindMismatchError("CDB-1", "FIXED_INCOME", "STOCK"), 5004, 422),
        (StoreUnavailableError(), 9001, 503),
    ],
)
def test_codes_and_statuses(error: AppError, code: int, status: int) -> None:
    assert isinstance(error, AppError)
    assert error.code == code
    assert error.http_status == status
    assert str(error) == error.message


def test_position_errors_share_a_base() -> None:
    assert issubclass(InsufficientQuantityError, InsufficientPositionError)
    assert issubclass(PositionNotFoundError, InsufficientPositionError)


def test_insufficient_funds_message_carries_amounts() -> None:
    err = InsufficientFundsError(required=600, available=100)
    assert "600" in err.message
    assert "100" in err.message
