"""End-to-end ledger flows against a real PostgreSQL."""

import asyncio

import pytest

from src.ob_common.database import async_session_factory
from src.ob_common.errors import (
    AccountsAlreadyExistError,
    InsufficientFundsError,
    InsufficientQuantityError,
    UserNotFoundError,
)
from src.ob_ledger.application.service import LedgerService
from src.ob_market.application.service import MarketService
from src.ob_portfolio.application.service import PortfolioService
from src.ob_reporting.application.service import ReportingService

pytestmark = pytest.mark.asyncio(loop_scope="session")


class TestAccounts:
    async def test_open_twice_rejected(
        self, session, ledger: LedgerService, new_customer
    ) -> None:
        customer = await new_customer()
        with pytest.raises(AccountsAlreadyExistError):
            await ledger.open_accounts(session, customer.user_id)

    async def test_new_accounts_start_empty(
        self, session, ledger: LedgerService, new_customer
    ) -> None:
        customer = await new_customer()
        balance = await ledger.get_balance(session, customer.investment_account_id)
        assert balance.balance_cents == 0
        assert balance.kind == "INVESTMENT"

    async def test_unknown_user_rejected(self, session, ledger: LedgerService) -> None:
        with pytest.raises(UserNotFoundError):
            await ledger.open_accounts(session, "no-such-user")


class TestConcurrentWithdrawals:
    async def test_only_one_of_two_overdrawing_withdrawals_succeeds(
        self, session, ledger: LedgerService, new_customer
    ) -> None:
        customer = await new_customer()
        await ledger.deposit(session, customer.current_account_id, 150)

        async def _withdraw() -> object:
            async with async_session_factory() as s:
                try:
                    return await ledger.withdraw(s, customer.current_account_id, 100)
                except InsufficientFundsError as exc:
                    return exc

        results = await asyncio.gather(_withdraw(), _withdraw())

        failures = [r for r in results if isinstance(r, InsufficientFundsError)]
        assert len(failures) == 1
        balance = await ledger.get_balance(session, customer.current_account_id)
        assert balance.balance_cents == 50


class TestTransfers:
    async def test_internal_transfer_links_both_legs(
        self, session, ledger: LedgerService, new_customer
    ) -> None:
        customer = await new_customer()
        await ledger.deposit(session, customer.current_account_id, 10000)

        result = await ledger.transfer(
            session, customer.current_account_id, customer.investment_account_id, 4000
        )

        assert result.fee_cents == 0
        assert result.new_balance_cents == 6000
        reporting = ReportingService()
        debit = await reporting.get_transaction(session, result.transaction_ref)
        credit = await reporting.get_transaction(session, result.credit_ref)
        assert debit is not None and credit is not None
        assert debit.amount_cents == -4000
        assert credit.amount_cents == 4000
        assert credit.account_id == customer.investment_account_id

    async def test_external_transfer_by_email_charges_fee(
        self, session, ledger: LedgerService, new_customer
    ) -> None:
        sender = await new_customer()
        recipient = await new_customer()
        await ledger.deposit(session, sender.current_account_id, 20000)

        result = await ledger.transfer(
            session, sender.current_account_id, recipient.email.upper(), 10000, external=True
        )

        assert result.to_account_id == recipient.current_account_id
        assert result.total_debited_cents == 10000 + result.fee_cents
        received = await ledger.get_balance(session, recipient.current_account_id)
        assert received.balance_cents == 10000


class TestBrokerage:
    async def test_weighted_average_and_position_deletion(
        self, session, ledger: LedgerService, new_customer
    ) -> None:
        customer = await new_customer()
        inv = customer.investment_account_id
        await ledger.deposit(session, customer.current_account_id, 100000)
        await ledger.transfer(session, customer.current_account_id, inv, 100000)

        await ledger.buy_stock_asset(session, inv, "PETR4", 10, price=1000)
        bought = await ledger.buy_stock_asset(session, inv, "PETR4", 10, price=2000)
        assert bought.position_quantity == 20
        assert float(bought.average_price) == 1500

        with pytest.raises(InsufficientQuantityError):
            await ledger.sell_asset(session, inv, "PETR4", 21, current_price=2000)

        sold = await ledger.sell_asset(session, inv, "PETR4", 20, current_price=2000)
        assert sold.realized_gain_cents == 10000
        assert sold.tax_cents == 1500
        assert sold.position_closed is True

        portfolio = PortfolioService()
        assert await portfolio.get_position(session, customer.user_id, "PETR4") is None
        balance = await ledger.get_balance(session, inv)
        assert balance.balance_cents == 100000 - 30000 + 40000 - 1500


class TestConcurrentBrokerage:
    async def _funded_investor(self, session, ledger: LedgerService, new_customer, cents: int):
        customer = await new_customer()
        await ledger.deposit(session, customer.current_account_id, cents)
        await ledger.transfer(
            session, customer.current_account_id, customer.investment_account_id, cents
        )
        return customer

    async def test_concurrent_buys_of_one_symbol_keep_weighted_average(
        self, session, ledger: LedgerService, new_customer
    ) -> None:
        customer = await self._funded_investor(session, ledger, new_customer, 100000)
        inv = customer.investment_account_id

        async def _buy(price: int) -> object:
            async with async_session_factory() as s:
                return await ledger.buy_stock_asset(s, inv, "VALE3", 10, price=price)

        await asyncio.gather(_buy(1000), _buy(2000))

        position = await PortfolioService().get_position(session, customer.user_id, "VALE3")
        assert position is not None
        assert position.quantity == 20
        assert float(position.average_price) == 1500
        balance = await ledger.get_balance(session, inv)
        assert balance.balance_cents == 100000 - 30000

    async def test_concurrent_buy_and_sell_do_not_deadlock(
        self, session, ledger: LedgerService, new_customer
    ) -> None:
        customer = await self._funded_investor(session, ledger, new_customer, 100000)
        inv = customer.investment_account_id
        await ledger.buy_stock_asset(session, inv, "ITUB4", 10, price=1000)

        async def _buy() -> object:
            async with async_session_factory() as s:
                return await ledger.buy_stock_asset(s, inv, "ITUB4", 5, price=1000)

        async def _sell() -> object:
            async with async_session_factory() as s:
                return await ledger.sell_asset(s, inv, "ITUB4", 5, current_price=1000)

        for _ in range(5):
            await asyncio.wait_for(asyncio.gather(_buy(), _sell()), timeout=10)

        position = await PortfolioService().get_position(session, customer.user_id, "ITUB4")
        assert position is not None
        assert position.quantity == 10
        balance = await ledger.get_balance(session, inv)
        assert balance.balance_cents == 100000 - 10000


class TestCatalog:
    async def test_search_by_name_is_case_insensitive(self, session) -> None:
        items = await MarketService().search_assets(session, "petro")
        assert "PETR4" in [i.symbol for i in items]

    async def test_fixed_income_investment_range(self, session) -> None:
        items = await MarketService().get_fixed_incomes_by_investment_range(session, 1000, 20000)
        symbols = {i.symbol for i in items}
        assert {"FI-CDB-2027", "FI-TESOURO-SELIC-2029"} <= symbols
        assert "FI-LCI-2028" not in symbols
        assert all(i.kind == "FIXED_INCOME" for i in items)

    async def test_statistics_match_distribution(self, session) -> None:
        market = MarketService()
        stats = await market.get_catalog_statistics(session)
        rows = await market.get_category_distribution(session)
        assert stats.total_assets == stats.total_stocks + stats.total_fixed_income
        assert sum(r.asset_count for r in rows) == stats.total_assets

    async def test_manual_price_update_to_same_price(self, session) -> None:
        market = MarketService()
        quote = await market.get_stock(session, "MGLU3")
        update = await market.update_stock_price(session, "MGLU3", quote.current_price_cents)
        assert update.variation == "0.00"
        assert (await market.get_stock(session, "MGLU3")).daily_variation == "0.00"


async def test_ledger_invariants_hold(session) -> None:
    assert await ReportingService().verify_ledger_invariants(session) == []
