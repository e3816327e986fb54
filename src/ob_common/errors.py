"""Unified error codes and custom exceptions.

Error code ranges:
  2xxx: Account / balance
  3xxx: Asset catalog
  4xxx: Transfer
  5xxx: Position
  9xxx: System
"""


class AppError(Exception):
    """Base application error."""

    def __init__(
        self,
        code: int,
        message: str,
        http_status: int = 500,
    ) -> None:
        self.code = code
        self.message = message
        self.http_status = http_status
        super().__init__(message)


# --- 2xxx: Account ---

class InsufficientFundsError(AppError):
    def __init__(self, required: int, available: int) -> None:
        super().__init__(
            2001,
            f"Insufficient funds: required {required} cents, available {available} cents",
            422,
        )


class AccountNotFoundError(AppError):
    def __init__(self, account_id: str) -> None:
        super().__init__(2002, f"Account not found: {account_id}", 404)


class InvalidAccountKindError(AppError):
    def __init__(self, account_id: str, kind: str, expected: str) -> None:
        super().__init__(
            2003,
            f"Operation requires a {expected} account, {account_id} is {kind}",
            422,
        )


class InvalidAmountError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(2004, f"Invalid amount: {detail}", 422)


class AccountsAlreadyExistError(AppError):
    def __init__(self, user_id: str) -> None:
        super().__init__(2005, f"User {user_id} already has accounts", 409)


class UserNotFoundError(AppError):
    def __init__(self, user_id: str) -> None:
        super().__init__(2006, f"User not found: {user_id}", 404)


# --- 3xxx: Asset ---

class AssetNotFoundError(AppError):
    def __init__(self, asset_id: str) -> None:
        super().__init__(3001, f"Asset not found: {asset_id}", 404)


class BelowMinimumError(AppError):
    def __init__(self, amount: int, minimum: int) -> None:
        super().__init__(
            3002,
            f"Amount {amount} cents is below the minimum investment of {minimum} cents",
            422,
        )


class FixedIncomeMaturedError(AppError):
    def __init__(self, fixed_income_id: str) -> None:
        super().__init__(3003, f"Fixed income product has matured: {fixed_income_id}", 422)


class InvalidSearchError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(3004, f"Invalid catalog query: {detail}", 422)


# --- 4xxx: Transfer ---

class DestinationNotFoundError(AppError):
    def __init__(self, destination: str) -> None:
        super().__init__(4001, f"Transfer destination not found: {destination}", 404)


class InvalidTransferError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(4002, f"Invalid transfer: {detail}", 422)


# --- 5xxx: Position ---

class InsufficientPositionError(AppError):
    def __init__(self, detail: str, code: int = 5001, http_status: int = 422) -> None:
        super().__init__(code, f"Insufficient position: {detail}", http_status)


class InsufficientQuantityError(InsufficientPositionError):
    def __init__(self, symbol: str, requested: int, held: int) -> None:
        super().__init__(f"{symbol} requested {requested}, held {held}", code=5002)


class PositionNotFoundError(InsufficientPositionError):
    def __init__(self, symbol: str) -> None:
        super().__init__(f"no position in {symbol}", code=5003, http_status=404)


class PositionKindMismatchError(AppError):
    def __init__(self, symbol: str, kind: str, expected: str) -> None:
        super().__init__(
            5004, f"Position {symbol} is {kind}, operation requires {expected}", 422
        )


# --- 9xxx: System ---

class StoreUnavailableError(AppError):
    def __init__(self, detail: str = "Backing store unavailable") -> None:
        super().__init__(9001, detail, 503)
