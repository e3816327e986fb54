"""User directory contract used by external transfers."""

from dataclasses import dataclass
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession


@dataclass(frozen=True)
class ResolvedContact:
    user_id: str
    account_id: str     # the user's CURRENT account


class UserDirectoryProtocol(Protocol):
    async def resolve_contact(
        self, db: AsyncSession, contact: str
    ) -> ResolvedContact | None: ...

    async def user_exists(self, db: AsyncSession, user_id: str) -> bool: ...
