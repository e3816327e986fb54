"""Atomic unit of work over an AsyncSession.

Every balance/position mutation runs inside exactly one unit:

    async with unit_of_work(db):
        ...  # conditional UPDATEs, ledger INSERTs

On normal exit the session is committed; on ANY exception (business error
raised mid-operation, constraint violation, lost connection, failed commit)
it is rolled back and the exception propagates. Connection-level failures
surface as StoreUnavailableError. Nothing is retried here.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from sqlalchemy.exc import InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from src.ob_common.errors import StoreUnavailableError

logger = logging.getLogger(__name__)


@asynccontextmanager
async def unit_of_work(db: AsyncSession) -> AsyncGenerator[AsyncSession, None]:
    try:
        yield db
        await db.commit()
    except (OperationalError, InterfaceError) as exc:
        await db.rollback()
        logger.warning("Unit of work aborted, store unavailable: %s", exc)
        raise StoreUnavailableError(f"Backing store unavailable: {exc.orig!r}") from exc
    except Exception:
        await db.rollback()
        raise
