"""LedgerService — the user-facing financial operations.

Each operation validates its inputs and reads the immutable facts it needs
(account kind, asset catalog row) first, then performs every write inside a
single `unit_of_work`: conditional balance UPDATE ... RETURNING, append-only
transaction row(s), and position changes through PortfolioRepository. A
business error raised mid-unit rolls the whole unit back.
"""

import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.ob_common.cents import apply_bps_ceil, cents_to_display, validate_amount
from src.ob_common.datetime_utils import Clock, ensure_aware, utc_now
from src.ob_common.enums import AccountKind, AssetKind, TransactionKind
from src.ob_common.errors import (
    AccountNotFoundError,
    AccountsAlreadyExistError,
    AssetNotFoundError,
    BelowMinimumError,
    DestinationNotFoundError,
    FixedIncomeMaturedError,
    InsufficientFundsError,
    InvalidAccountKindError,
    InvalidAmountError,
    InvalidTransferError,
    UserNotFoundError,
)
from src.ob_common.refs import new_transaction_ref
from src.ob_common.unit_of_work import unit_of_work
from src.ob_ledger.application.schemas import (
    AccountOut,
    BalanceChangeResult,
    BuyAssetResult,
    FixedIncomePurchaseResult,
    OpenAccountsResult,
    SellAssetResult,
    TransferResult,
    TransferValidation,
)
from src.ob_ledger.domain.fee import NO_FEE, TransferFeeSchedule
from src.ob_ledger.domain.models import Account
from src.ob_ledger.domain.repository import LedgerRepositoryProtocol
from src.ob_ledger.infrastructure.persistence import LedgerRepository
from src.ob_market.domain.fixed_income import calculate_fixed_income_return
from src.ob_market.domain.repository import MarketRepositoryProtocol
from src.ob_market.infrastructure.persistence import MarketRepository
from src.ob_portfolio.domain.repository import PortfolioRepositoryProtocol
from src.ob_portfolio.infrastructure.persistence import PortfolioRepository
from src.ob_users.domain.directory import UserDirectoryProtocol
from src.ob_users.infrastructure.persistence import UserDirectory

logger = logging.getLogger(__name__)


def _amount(value: object, field: str = "amount") -> int:
    try:
        return validate_amount(value, field)
    except ValueError as exc:
        raise InvalidAmountError(str(exc)) from exc


class LedgerService:
    def __init__(
        self,
        repo: LedgerRepositoryProtocol | None = None,
        portfolio_repo: PortfolioRepositoryProtocol | None = None,
        market_repo: MarketRepositoryProtocol | None = None,
        directory: UserDirectoryProtocol | None = None,
        fee_schedule: TransferFeeSchedule | None = None,
        clock: Clock = utc_now,
    ) -> None:
        self._repo: LedgerRepositoryProtocol = repo or LedgerRepository()
        self._portfolio: PortfolioRepositoryProtocol = portfolio_repo or PortfolioRepository()
        self._market: MarketRepositoryProtocol = market_repo or MarketRepository()
        self._directory: UserDirectoryProtocol = directory or UserDirectory()
        self._fees = fee_schedule or TransferFeeSchedule(
            fixed_cents=settings.EXTERNAL_TRANSFER_FEE_CENTS,
            rate_bps=settings.EXTERNAL_TRANSFER_FEE_BPS,
        )
        self._clock = clock

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _require_account(
        self, db: AsyncSession, account_id: str, kind: AccountKind | None = None
    ) -> Account:
        account = await self._repo.get_account(db, account_id)
        if account is None:
            raise AccountNotFoundError(account_id)
        if kind is not None and account.kind != kind.value:
            logger.warning(
                "Rejected operation on %s account %s (expected %s)",
                account.kind, account_id, kind.value,
            )
            raise InvalidAccountKindError(account_id, account.kind, kind.value)
        return account

    async def _debit_or_raise(
        self, db: AsyncSession, account_id: str, amount: int
    ) -> Account:
        account = await self._repo.debit(db, account_id, amount)
        if account is None:
            current = await self._repo.get_account(db, account_id)
            available = current.balance if current is not None else 0
            logger.warning(
                "Insufficient funds on %s: required=%d available=%d",
                account_id, amount, available,
            )
            raise InsufficientFundsError(amount, available)
        return account

    # ------------------------------------------------------------------
    # Accounts
    # ------------------------------------------------------------------

    async def open_accounts(self, db: AsyncSession, user_id: str) -> OpenAccountsResult:
        """Create the CURRENT and INVESTMENT accounts of a new user together."""
        if not await self._directory.user_exists(db, user_id):
            raise UserNotFoundError(user_id)
        if await self._repo.get_accounts_for_user(db, user_id):
            raise AccountsAlreadyExistError(user_id)
        try:
            async with unit_of_work(db):
                accounts = await self._repo.create_accounts(db, user_id)
        except IntegrityError as exc:
            # Lost a race against another open_accounts for the same user
            raise AccountsAlreadyExistError(user_id) from exc

        by_kind = {a.kind: a for a in accounts}
        logger.info("Opened accounts for user %s", user_id)
        return OpenAccountsResult(
            user_id=user_id,
            current_account=AccountOut.from_domain(by_kind[AccountKind.CURRENT.value]),
            investment_account=AccountOut.from_domain(by_kind[AccountKind.INVESTMENT.value]),
        )

    async def get_balance(self, db: AsyncSession, account_id: str) -> AccountOut:
        return AccountOut.from_domain(await self._require_account(db, account_id))

    # ------------------------------------------------------------------
    # Cash in / out
    # ------------------------------------------------------------------

    async def deposit(
        self, db: AsyncSession, account_id: str, amount: int
    ) -> BalanceChangeResult:
        amount = _amount(amount)
        account = await self._require_account(db, account_id, AccountKind.CURRENT)
        async with unit_of_work(db):
            updated = await self._repo.credit(db, account_id, amount)
            txn = await self._repo.insert_transaction(
                db,
                transaction_ref=new_transaction_ref(),
                user_id=account.user_id,
                account_id=account_id,
                kind=TransactionKind.DEPOSIT.value,
                amount=amount,
                balance_after=updated.balance,
                description="Deposit",
            )
        logger.info("Deposit %d cents into %s, balance=%d", amount, account_id, updated.balance)
        return BalanceChangeResult.from_result(updated, txn)

    async def withdraw(
        self, db: AsyncSession, account_id: str, amount: int
    ) -> BalanceChangeResult:
        amount = _amount(amount)
        account = await self._require_account(db, account_id, AccountKind.CURRENT)
        async with unit_of_work(db):
            updated = await self._debit_or_raise(db, account_id, amount)
            txn = await self._repo.insert_transaction(
                db,
                transaction_ref=new_transaction_ref(),
                user_id=account.user_id,
                account_id=account_id,
                kind=TransactionKind.WITHDRAW.value,
                amount=-amount,
                balance_after=updated.balance,
                description="Withdrawal",
            )
        logger.info("Withdraw %d cents from %s, balance=%d", amount, account_id, updated.balance)
        return BalanceChangeResult.from_result(updated, txn)

    # ------------------------------------------------------------------
    # Transfers
    # ------------------------------------------------------------------

    async def _resolve_destination(
        self, db: AsyncSession, source: Account, to: str, external: bool
    ) -> tuple[str, str]:
        """Return (destination account id, destination user id) or raise."""
        if external:
            if source.kind != AccountKind.CURRENT.value:
                raise InvalidAccountKindError(source.id, source.kind, AccountKind.CURRENT.value)
            contact = await self._directory.resolve_contact(db, to)
            if contact is None:
                raise DestinationNotFoundError(to)
            if contact.account_id == source.id:
                raise InvalidTransferError("source and destination are the same account")
            return contact.account_id, contact.user_id

        if to == source.id:
            raise InvalidTransferError("source and destination are the same account")
        destination = await self._repo.get_account(db, to)
        if destination is None:
            raise DestinationNotFoundError(to)
        if destination.user_id != source.user_id:
            raise InvalidTransferError(
                "internal transfers must stay between accounts of the same user"
            )
        return destination.id, destination.user_id

    async def transfer(
        self,
        db: AsyncSession,
        from_account_id: str,
        to: str,
        amount: int,
        external: bool = False,
    ) -> TransferResult:
        """Move `amount` from one account to another as one unit.

        Internal: `to` is another account id of the same user, no fee.
        External: `to` is a contact (user id, email or CPF) resolved to the
        recipient's CURRENT account; the fee is charged to the source on top
        of `amount`.
        """
        amount = _amount(amount)
        source = await self._require_account(db, from_account_id)
        to_account_id, to_user_id = await self._resolve_destination(db, source, to, external)
        fee = (self._fees if external else NO_FEE).calc(amount)
        out_kind, in_kind = (
            (TransactionKind.EXTERNAL_TRANSFER_OUT, TransactionKind.EXTERNAL_TRANSFER_IN)
            if external
            else (TransactionKind.INTERNAL_TRANSFER_OUT, TransactionKind.INTERNAL_TRANSFER_IN)
        )

        async with unit_of_work(db):
            locked = await self._repo.lock_accounts(db, [from_account_id, to_account_id])
            if len(locked) != 2:
                raise DestinationNotFoundError(to)
            debited = await self._debit_or_raise(db, from_account_id, amount + fee)
            credited = await self._repo.credit(db, to_account_id, amount)

            debit_ref = new_transaction_ref()
            credit_ref = new_transaction_ref()
            await self._repo.insert_transaction(
                db,
                transaction_ref=debit_ref,
                user_id=source.user_id,
                account_id=from_account_id,
                kind=out_kind.value,
                amount=-(amount + fee),
                fee=fee,
                balance_after=debited.balance,
                description=f"Transfer to {to_account_id}",
            )
            await self._repo.insert_transaction(
                db,
                transaction_ref=credit_ref,
                user_id=to_user_id,
                account_id=to_account_id,
                kind=in_kind.value,
                amount=amount,
                balance_after=credited.balance,
                description=f"Transfer from {from_account_id}",
            )
            transfer = await self._repo.insert_transfer(
                db,
                transaction_ref=debit_ref,
                credit_ref=credit_ref,
                from_account_id=from_account_id,
                to_account_id=to_account_id,
                amount=amount,
                fee=fee,
            )

        logger.info(
            "Transfer %s: %d cents %s -> %s (fee=%d, external=%s)",
            debit_ref, amount, from_account_id, to_account_id, fee, external,
        )
        return TransferResult.from_result(debited, transfer)

    async def validate_transfer(
        self,
        db: AsyncSession,
        from_account_id: str,
        amount: int,
        external: bool = False,
    ) -> TransferValidation:
        """Check whether `from_account_id` could cover `amount` (plus fee) right now.

        Advisory only: the balance is read without a lock, and `transfer`
        re-checks under its own unit.
        """
        source = await self._require_account(db, from_account_id)

        def _result(
            valid: bool, message: str, amount_cents: int = 0, fee: int = 0
        ) -> TransferValidation:
            return TransferValidation(
                valid=valid,
                message=message,
                account_id=from_account_id,
                amount_cents=amount_cents,
                fee_cents=fee,
                total_required_cents=amount_cents + fee,
                available_cents=source.balance,
                available_display=cents_to_display(source.balance),
            )

        try:
            amount = validate_amount(amount)
        except ValueError as exc:
            return _result(False, str(exc))
        fee = (self._fees if external else NO_FEE).calc(amount)
        if amount + fee > source.balance:
            return _result(False, "Insufficient balance", amount, fee)
        return _result(True, "Transfer allowed", amount, fee)

    # ------------------------------------------------------------------
    # Brokerage
    # ------------------------------------------------------------------

    async def buy_stock_asset(
        self,
        db: AsyncSession,
        account_id: str,
        asset_id: str,
        quantity: int,
        price: int | None = None,
    ) -> BuyAssetResult:
        quantity = _amount(quantity, "quantity")
        if price is not None:
            price = _amount(price, "price")
        account = await self._require_account(db, account_id, AccountKind.INVESTMENT)
        stock = await self._market.get_stock_by_asset_id(db, asset_id)
        if stock is None:
            stock = await self._market.get_stock_by_symbol(db, asset_id)
        if stock is None:
            raise AssetNotFoundError(asset_id)
        unit_price = price if price is not None else stock.current_price
        cost = quantity * unit_price
        ref = new_transaction_ref()

        async with unit_of_work(db):
            updated = await self._debit_or_raise(db, account_id, cost)
            await self._repo.insert_transaction(
                db,
                transaction_ref=ref,
                user_id=account.user_id,
                account_id=account_id,
                kind=TransactionKind.BUY_ASSET.value,
                amount=-cost,
                balance_after=updated.balance,
                asset_symbol=stock.symbol,
                quantity=quantity,
                unit_price=unit_price,
                description=f"Buy {quantity} {stock.symbol}",
            )
            position = await self._portfolio.add_or_update_position(
                db,
                user_id=account.user_id,
                account_id=account_id,
                symbol=stock.symbol,
                asset_kind=AssetKind.STOCK.value,
                quantity=quantity,
                unit_price=unit_price,
                transaction_ref=ref,
            )

        logger.info(
            "Buy %s: %d x %s @ %d cents, avg=%s",
            ref, quantity, stock.symbol, unit_price, position.average_price,
        )
        return BuyAssetResult(
            account_id=account_id,
            transaction_ref=ref,
            asset_symbol=stock.symbol,
            quantity=quantity,
            unit_price_cents=unit_price,
            total_cost_cents=cost,
            position_quantity=position.quantity,
            average_price=str(position.average_price),
            new_balance_cents=updated.balance,
            new_balance_display=cents_to_display(updated.balance),
        )

    async def sell_asset(
        self,
        db: AsyncSession,
        account_id: str,
        asset_symbol: str,
        quantity: int,
        current_price: int | None = None,
    ) -> SellAssetResult:
        """Sell at `current_price` (defaults to the stock's latest price).

        Realized gain is measured against the weighted average cost; only a
        positive gain is taxed, and the tax is withheld from the proceeds.
        """
        quantity = _amount(quantity, "quantity")
        if current_price is not None:
            current_price = _amount(current_price, "current_price")
        account = await self._require_account(db, account_id, AccountKind.INVESTMENT)
        if current_price is None:
            stock = await self._market.get_stock_by_symbol(db, asset_symbol)
            if stock is None:
                raise AssetNotFoundError(asset_symbol)
            current_price = stock.current_price
        ref = new_transaction_ref()

        async with unit_of_work(db):
            # Account row before position row, same order as the buy paths
            await self._repo.lock_accounts(db, [account_id])
            reduced = await self._portfolio.reduce_position(
                db, account.user_id, asset_symbol, quantity, AssetKind.STOCK.value
            )
            gross = quantity * current_price
            gain = gross - reduced.released_cost
            tax = apply_bps_ceil(gain, settings.STOCK_CAPITAL_GAINS_TAX_BPS)
            net = gross - tax
            updated = await self._repo.credit(db, account_id, net)
            await self._repo.insert_transaction(
                db,
                transaction_ref=ref,
                user_id=account.user_id,
                account_id=account_id,
                kind=TransactionKind.SELL_ASSET.value,
                amount=net,
                balance_after=updated.balance,
                asset_symbol=asset_symbol,
                quantity=quantity,
                unit_price=current_price,
                realized_gain=gain,
                tax=tax,
                description=f"Sell {quantity} {asset_symbol}",
            )

        logger.info(
            "Sell %s: %d x %s @ %d cents, gain=%d tax=%d",
            ref, quantity, asset_symbol, current_price, gain, tax,
        )
        return SellAssetResult(
            account_id=account_id,
            transaction_ref=ref,
            asset_symbol=asset_symbol,
            quantity=quantity,
            unit_price_cents=current_price,
            gross_proceeds_cents=gross,
            cost_basis_cents=reduced.released_cost,
            realized_gain_cents=gain,
            tax_cents=tax,
            net_proceeds_cents=net,
            remaining_quantity=reduced.remaining_quantity,
            position_closed=reduced.deleted,
            new_balance_cents=updated.balance,
            new_balance_display=cents_to_display(updated.balance),
        )

    async def buy_fixed_income(
        self,
        db: AsyncSession,
        account_id: str,
        fixed_income_id: str,
        amount: int,
    ) -> FixedIncomePurchaseResult:
        """Invest `amount` in a fixed-income product (quantity 1 at unit price = amount)."""
        amount = _amount(amount)
        account = await self._require_account(db, account_id, AccountKind.INVESTMENT)
        product = await self._market.get_fixed_income(db, fixed_income_id)
        if product is None:
            raise AssetNotFoundError(fixed_income_id)
        if amount < product.minimum_investment:
            logger.warning(
                "Below minimum for %s: amount=%d minimum=%d",
                fixed_income_id, amount, product.minimum_investment,
            )
            raise BelowMinimumError(amount, product.minimum_investment)
        now = self._clock()
        if ensure_aware(product.maturity_date) <= now:
            raise FixedIncomeMaturedError(fixed_income_id)
        ref = new_transaction_ref()

        async with unit_of_work(db):
            updated = await self._debit_or_raise(db, account_id, amount)
            await self._repo.insert_transaction(
                db,
                transaction_ref=ref,
                user_id=account.user_id,
                account_id=account_id,
                kind=TransactionKind.BUY_FIXED_INCOME.value,
                amount=-amount,
                balance_after=updated.balance,
                asset_symbol=product.id,
                quantity=1,
                unit_price=amount,
                description=f"Invest in {product.name}",
            )
            await self._portfolio.add_or_update_position(
                db,
                user_id=account.user_id,
                account_id=account_id,
                symbol=product.id,
                asset_kind=AssetKind.FIXED_INCOME.value,
                quantity=1,
                unit_price=amount,
                transaction_ref=ref,
                rate_bps=product.rate_bps,
                rate_type=product.rate_type,
                maturity_date=product.maturity_date,
            )

        projection = calculate_fixed_income_return(
            amount,
            product.rate_bps,
            product.maturity_date,
            now,
            tax_rate_bps=settings.FIXED_INCOME_TAX_BPS,
        )
        logger.info("Fixed income %s: %d cents into %s", ref, amount, product.id)
        return FixedIncomePurchaseResult(
            account_id=account_id,
            transaction_ref=ref,
            fixed_income_id=product.id,
            amount_cents=amount,
            rate_bps=product.rate_bps,
            rate_type=product.rate_type,
            maturity_date=product.maturity_date.isoformat(),
            expected_total_net_cents=projection.total_net,
            expected_total_net_display=cents_to_display(projection.total_net),
            new_balance_cents=updated.balance,
            new_balance_display=cents_to_display(updated.balance),
        )
