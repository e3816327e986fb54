"""Ledger-wide consistency checks over committed rows.

- every account balance equals the sum of its transaction amounts
- no account balance is negative
- every transfer conserves money: credit == -debit - fee, credit == amount
"""

import logging

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)

_BALANCE_RECONSTRUCTION_SQL = text("""
    SELECT a.id, a.balance, COALESCE(SUM(t.amount), 0) AS ledger_sum
    FROM accounts a
    LEFT JOIN transactions t ON t.account_id = a.id
    GROUP BY a.id, a.balance
    HAVING a.balance <> COALESCE(SUM(t.amount), 0)
""")
_NEGATIVE_BALANCE_SQL = text(
    "SELECT id, balance FROM accounts WHERE balance < 0"
)
_TRANSFER_LEGS_SQL = text("""
    SELECT tr.id, tr.amount, tr.fee,
           d.amount AS debit_amount, c.amount AS credit_amount
    FROM transfers tr
    LEFT JOIN transactions d ON d.transaction_ref = tr.transaction_ref
    LEFT JOIN transactions c ON c.transaction_ref = tr.credit_ref
""")


async def verify_ledger_invariants(db: AsyncSession) -> list[str]:
    """Return a list of violation strings (empty when the ledger is consistent)."""
    violations: list[str] = []

    for row in (await db.execute(_BALANCE_RECONSTRUCTION_SQL)).fetchall():
        violations.append(
            f"Balance mismatch on account {row.id}: "
            f"balance={row.balance} != sum(transactions)={row.ledger_sum}"
        )
    for row in (await db.execute(_NEGATIVE_BALANCE_SQL)).fetchall():
        violations.append(f"Negative balance on account {row.id}: {row.balance}")
    for row in (await db.execute(_TRANSFER_LEGS_SQL)).fetchall():
        if row.debit_amount is None or row.credit_amount is None:
            violations.append(f"Transfer {row.id} is missing a ledger leg")
            continue
        if row.credit_amount != -row.debit_amount - row.fee or row.credit_amount != row.amount:
            violations.append(
                f"Transfer {row.id} does not conserve money: debit={row.debit_amount} "
                f"credit={row.credit_amount} fee={row.fee} amount={row.amount}"
            )

    for msg in violations:
        logger.error(msg)
    return violations
