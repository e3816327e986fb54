"""Integration-test fixtures.

All integration tests share a single event-loop so that the module-level
SQLAlchemy async engine pool (created at import time) remains valid across
the entire test session.

Pre-condition: a PostgreSQL reachable at DATABASE_URL with `alembic upgrade
head` applied. When it is not reachable every integration test is skipped.
"""

import random
import uuid
from collections.abc import AsyncGenerator, Awaitable, Callable
from dataclasses import dataclass

import pytest
import pytest_asyncio
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from src.ob_common.database import async_session_factory, engine
from src.ob_ledger.application.service import LedgerService
from src.ob_users.infrastructure.persistence import UserDirectory


@dataclass
class Customer:
    user_id: str
    email: str
    cpf: str
    current_account_id: str
    investment_account_id: str


@pytest_asyncio.fixture(loop_scope="session", scope="session")
async def store() -> AsyncGenerator[None, None]:
    """Skip the suite unless a migrated database answers."""
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1 FROM accounts LIMIT 1"))
    except (OSError, SQLAlchemyError) as exc:
        pytest.skip(f"database not available: {exc}")
    yield
    await engine.dispose()


@pytest_asyncio.fixture(loop_scope="session")
async def session(store: None) -> AsyncGenerator[AsyncSession, None]:
    async with async_session_factory() as s:
        yield s


@pytest.fixture
def ledger() -> LedgerService:
    return LedgerService()


CustomerFactory = Callable[[], Awaitable[Customer]]


@pytest.fixture
def new_customer(session: AsyncSession, ledger: LedgerService) -> CustomerFactory:
    """Register a user with a unique email/CPF and open both accounts."""

    async def _create() -> Customer:
        uid = uuid.uuid4().hex[:8]
        email = f"cust_{uid}@example.com"
        cpf = "".join(random.choice("0123456789") for _ in range(11))
        user_id = await UserDirectory().create_user(session, f"Customer {uid}", email, cpf)
        opened = await ledger.open_accounts(session, user_id)
        return Customer(
            user_id=user_id,
            email=email,
            cpf=cpf,
            current_account_id=opened.current_account.id,
            investment_account_id=opened.investment_account.id,
        )

    return _create
