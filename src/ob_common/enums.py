"""Global enums — must match DB CHECK constraints exactly."""

from enum import Enum


class AccountKind(str, Enum):
    CURRENT = "CURRENT"
    INVESTMENT = "INVESTMENT"


class AssetKind(str, Enum):
    STOCK = "STOCK"
    FIXED_INCOME = "FIXED_INCOME"


class RateType(str, Enum):
    PRE_FIXED = "PRE_FIXED"
    POST_FIXED = "POST_FIXED"


class TransactionKind(str, Enum):
    # Cash in/out (CURRENT account only)
    DEPOSIT = "DEPOSIT"
    WITHDRAW = "WITHDRAW"
    # Transfers (debit + credit paired)
    INTERNAL_TRANSFER_OUT = "INTERNAL_TRANSFER_OUT"
    INTERNAL_TRANSFER_IN = "INTERNAL_TRANSFER_IN"
    EXTERNAL_TRANSFER_OUT = "EXTERNAL_TRANSFER_OUT"
    EXTERNAL_TRANSFER_IN = "EXTERNAL_TRANSFER_IN"
    # Brokerage (INVESTMENT account only)
    BUY_ASSET = "BUY_ASSET"
    SELL_ASSET = "SELL_ASSET"
    BUY_FIXED_INCOME = "BUY_FIXED_INCOME"


class TransferStatus(str, Enum):
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
