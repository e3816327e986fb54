"""Domain models for ob_ledger — pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass
from datetime import datetime


@dataclass
class Account:
    id: str
    user_id: str
    kind: str                # AccountKind value
    balance: int             # cents, never negative
    version: int
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass
class Transaction:
    id: int                          # BIGSERIAL
    transaction_ref: str
    user_id: str
    account_id: str
    kind: str                        # TransactionKind value
    amount: int                      # cents, signed net balance effect
    fee: int                         # cents, included in a debit's amount
    balance_after: int               # cents, balance snapshot after op
    asset_symbol: str | None = None
    quantity: int | None = None
    unit_price: int | None = None
    realized_gain: int | None = None
    tax: int | None = None
    description: str | None = None
    created_at: datetime | None = None


@dataclass
class Transfer:
    id: int
    transaction_ref: str     # debit row
    credit_ref: str          # credit row
    from_account_id: str
    to_account_id: str
    amount: int              # cents credited to the destination
    fee: int                 # cents charged on top to the source
    status: str              # TransferStatus value
    created_at: datetime | None = None
