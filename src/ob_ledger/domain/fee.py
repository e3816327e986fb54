"""Transfer fee schedule: fixed cents plus ceiling basis points."""

from dataclasses import dataclass

from src.ob_common.cents import apply_bps_ceil


@dataclass(frozen=True)
class TransferFeeSchedule:
    fixed_cents: int = 0
    rate_bps: int = 0

    def calc(self, amount: int) -> int:
        """Fee charged to the source on top of `amount`; never under-charges."""
        return self.fixed_cents + apply_bps_ceil(amount, self.rate_bps)


NO_FEE = TransferFeeSchedule()
