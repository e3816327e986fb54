"""Pydantic result schemas for ob_ledger operations.

Every mutation result carries success=True plus the new balance of the
account the caller acted on; failures are raised as AppError instead.
"""

from pydantic import BaseModel

from src.ob_common.cents import cents_to_display
from src.ob_ledger.domain.models import Account, Transaction, Transfer


class AccountOut(BaseModel):
    id: str
    user_id: str
    kind: str
    balance_cents: int
    balance_display: str

    @classmethod
    def from_domain(cls, a: Account) -> "AccountOut":
        return cls(
            id=a.id,
            user_id=a.user_id,
            kind=a.kind,
            balance_cents=a.balance,
            balance_display=cents_to_display(a.balance),
        )


class OpenAccountsResult(BaseModel):
    success: bool = True
    user_id: str
    current_account: AccountOut
    investment_account: AccountOut


class BalanceChangeResult(BaseModel):
    """deposit / withdraw."""

    success: bool = True
    account_id: str
    transaction_ref: str
    kind: str
    amount_cents: int
    new_balance_cents: int
    new_balance_display: str

    @classmethod
    def from_result(cls, account: Account, txn: Transaction) -> "BalanceChangeResult":
        return cls(
            account_id=account.id,
            transaction_ref=txn.transaction_ref,
            kind=txn.kind,
            amount_cents=abs(txn.amount),
            new_balance_cents=account.balance,
            new_balance_display=cents_to_display(account.balance),
        )


class TransferResult(BaseModel):
    success: bool = True
    transfer_id: int
    transaction_ref: str
    credit_ref: str
    from_account_id: str
    to_account_id: str
    amount_cents: int
    fee_cents: int
    total_debited_cents: int
    new_balance_cents: int
    new_balance_display: str
    status: str

    @classmethod
    def from_result(cls, source: Account, transfer: Transfer) -> "TransferResult":
        return cls(
            transfer_id=transfer.id,
            transaction_ref=transfer.transaction_ref,
            credit_ref=transfer.credit_ref,
            from_account_id=transfer.from_account_id,
            to_account_id=transfer.to_account_id,
            amount_cents=transfer.amount,
            fee_cents=transfer.fee,
            total_debited_cents=transfer.amount + transfer.fee,
            new_balance_cents=source.balance,
            new_balance_display=cents_to_display(source.balance),
            status=transfer.status,
        )


class TransferValidation(BaseModel):
    """Read-only pre-check of a transfer; nothing is locked or written."""

    valid: bool
    message: str
    account_id: str
    amount_cents: int
    fee_cents: int
    total_required_cents: int
    available_cents: int
    available_display: str


class BuyAssetResult(BaseModel):
    success: bool = True
    account_id: str
    transaction_ref: str
    asset_symbol: str
    quantity: int
    unit_price_cents: int
    total_cost_cents: int
    position_quantity: int
    average_price: str
    new_balance_cents: int
    new_balance_display: str


class SellAssetResult(BaseModel):
    success: bool = True
    account_id: str
    transaction_ref: str
    asset_symbol: str
    quantity: int
    unit_price_cents: int
    gross_proceeds_cents: int
    cost_basis_cents: int
    realized_gain_cents: int
    tax_cents: int
    net_proceeds_cents: int
    remaining_quantity: int
    position_closed: bool
    new_balance_cents: int
    new_balance_display: str


class FixedIncomePurchaseResult(BaseModel):
    success: bool = True
    account_id: str
    transaction_ref: str
    fixed_income_id: str
    amount_cents: int
    rate_bps: int
    rate_type: str
    maturity_date: str
    expected_total_net_cents: int
    expected_total_net_display: str
    new_balance_cents: int
    new_balance_display: str
