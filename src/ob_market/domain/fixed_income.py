"""Fixed-income return calculator — pure function of (principal, rate, maturity, now).

Amounts are cents, rates are basis points. Accrual is simple (non-compounded)
interest over the remaining fraction of a 365-day year; withholding tax is a
flat rate on the gross yield.
"""

from dataclasses import dataclass
from datetime import date, datetime, time, timezone
from decimal import Decimal

from src.ob_common.cents import BPS_DENOMINATOR, bps_to_fraction, round_cents
from src.ob_common.datetime_utils import ensure_aware

FIXED_INCOME_TAX_BPS = 2200  # 22%
DAYS_PER_YEAR = 365
_SECONDS_PER_YEAR = Decimal(DAYS_PER_YEAR * 24 * 60 * 60)


@dataclass(frozen=True)
class FixedIncomeReturn:
    principal: int
    gross_return: int
    tax: int
    net_return: int
    total_gross: int
    total_net: int
    tax_rate_bps: int
    years_to_maturity: Decimal

    @property
    def tax_rate(self) -> Decimal:
        return bps_to_fraction(self.tax_rate_bps)


def _as_datetime(value: date | datetime) -> datetime:
    if isinstance(value, datetime):
        return ensure_aware(value)
    return datetime.combine(value, time.min, tzinfo=timezone.utc)


def calculate_fixed_income_return(
    principal: int,
    annual_rate_bps: int,
    maturity_date: date | datetime,
    now: datetime,
    tax_rate_bps: int = FIXED_INCOME_TAX_BPS,
) -> FixedIncomeReturn:
    """Project the payout of `principal` held until `maturity_date`.

    Already matured (maturity <= now): no further accrual, zero tax, and both
    totals equal the principal.
    """
    maturity = _as_datetime(maturity_date)
    now = ensure_aware(now)
    if maturity <= now:
        return FixedIncomeReturn(
            principal=principal,
            gross_return=0,
            tax=0,
            net_return=0,
            total_gross=principal,
            total_net=principal,
            tax_rate_bps=0,
            years_to_maturity=Decimal(0),
        )

    years = Decimal(str((maturity - now).total_seconds())) / _SECONDS_PER_YEAR
    gross = round_cents(Decimal(principal) * annual_rate_bps * years / BPS_DENOMINATOR)
    tax = round_cents(Decimal(gross) * tax_rate_bps / BPS_DENOMINATOR)
    net = gross - tax
    return FixedIncomeReturn(
        principal=principal,
        gross_return=gross,
        tax=tax,
        net_return=net,
        total_gross=principal + gross,
        total_net=principal + net,
        tax_rate_bps=tax_rate_bps,
        years_to_maturity=years,
    )
