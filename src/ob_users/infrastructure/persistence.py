"""SQL-backed user directory.

A contact is a user id, an email (case-insensitive) or a CPF; CPF matching
ignores punctuation, so "123.456.789-09" and "12345678909" are the same.
"""

import re

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.ob_users.domain.directory import ResolvedContact

_RESOLVE_CONTACT_SQL = text("""
    SELECT u.id AS user_id, a.id AS account_id
    FROM users u
    JOIN accounts a ON a.user_id = u.id AND a.kind = 'CURRENT'
    WHERE u.id = :contact
       OR LOWER(u.email) = LOWER(:email)
       OR (CAST(:cpf AS TEXT) IS NOT NULL AND u.cpf = CAST(:cpf AS TEXT))
    ORDER BY u.id
    LIMIT 1
""")

_USER_EXISTS_SQL = text("SELECT 1 FROM users WHERE id = :user_id")

_INSERT_USER_SQL = text("""
    INSERT INTO users (name, email, cpf)
    VALUES (:name, :email, :cpf)
    RETURNING id
""")

_NON_DIGITS = re.compile(r"\D")


def normalize_cpf(value: str) -> str | None:
    """Strip punctuation; return None unless exactly 11 digits remain."""
    digits = _NON_DIGITS.sub("", value)
    return digits if len(digits) == 11 else None


class UserDirectory:
    async def resolve_contact(
        self, db: AsyncSession, contact: str
    ) -> ResolvedContact | None:
        contact = contact.strip()
        if not contact:
            return None
        row = (
            await db.execute(
                _RESOLVE_CONTACT_SQL,
                {"contact": contact, "email": contact, "cpf": normalize_cpf(contact)},
            )
        ).fetchone()
        if row is None:
            return None
        return ResolvedContact(user_id=str(row.user_id), account_id=str(row.account_id))

    async def user_exists(self, db: AsyncSession, user_id: str) -> bool:
        row = (await db.execute(_USER_EXISTS_SQL, {"user_id": user_id})).fetchone()
        return row is not None

    async def create_user(
        self, db: AsyncSession, name: str, email: str, cpf: str
    ) -> str:
        """Insert a user row (no commit) and return its id."""
        normalized = normalize_cpf(cpf)
        if normalized is None:
            raise ValueError(f"Invalid CPF: {cpf!r}")
        row = (
            await db.execute(
                _INSERT_USER_SQL,
                {"name": name, "email": email.strip().lower(), "cpf": normalized},
            )
        ).fetchone()
        return str(row.id)  # type: ignore[union-attr]
