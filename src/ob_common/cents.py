"""Integer arithmetic utilities for cents-based balances.

All amounts, balances, fees, taxes and unit prices are int (cents).
Rates are int basis points (1 bp = 0.01%). Decimal is only used for
fractional intermediates (weighted average prices, year fractions) and is
always rounded back to whole cents before touching a balance.
"""

from decimal import ROUND_HALF_UP, Decimal

BPS_DENOMINATOR = 10000


def validate_amount(amount: object, field: str = "amount") -> int:
    """Return amount if it is a strictly positive int, else raise ValueError."""
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise ValueError(f"{field} must be an integer number of cents, got {amount!r}")
    if amount <= 0:
        raise ValueError(f"{field} must be greater than zero, got {amount}")
    return amount


def cents_to_display(cents: int) -> str:
    """Convert cents to display string: 6500 -> 'R$65.00', -1200 -> '-R$12.00'."""
    if cents < 0:
        abs_cents = -cents
        return f"-R${abs_cents // 100:,}.{abs_cents % 100:02d}"
    return f"R${cents // 100:,}.{cents % 100:02d}"


def round_cents(value: Decimal) -> int:
    """Round a fractional cents value half-up to a whole cent."""
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def apply_bps_ceil(value: int, bps: int) -> int:
    """Ceiling of value * bps / 10000 (platform never under-charges).

    Using integer ceiling: (a + b - 1) // b
    """
    if value <= 0 or bps == 0:
        return 0
    return (value * bps + BPS_DENOMINATOR - 1) // BPS_DENOMINATOR


def bps_to_fraction(bps: int) -> Decimal:
    """2200 -> Decimal('0.22')."""
    return Decimal(bps) / BPS_DENOMINATOR
