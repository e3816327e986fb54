"""Stochastic daily price variation for stocks.

|variation| (percent) is drawn from a fixed piecewise distribution:

    [0.1, 2)  p=0.4
    [2, 3)    p=0.3
    [3, 4)    p=0.2
    [4, 5]    p=0.1

uniform within the chosen band, with an independent 50/50 sign. The
magnitude is rounded to 2 decimals and kept inside its band, so a draw of
1.997 reports 1.99, not 2.00.
"""

import random
from decimal import ROUND_HALF_UP, Decimal

from src.ob_common.cents import round_cents

# (probability, low, high)
VARIATION_BANDS: tuple[tuple[float, float, float], ...] = (
    (0.4, 0.1, 2.0),
    (0.3, 2.0, 3.0),
    (0.2, 3.0, 4.0),
    (0.1, 4.0, 5.0),
)

# stocks.daily_variation is NUMERIC(6,2)
MAX_VARIATION = Decimal("9999.99")

_rng = random.Random()


def generate_market_variation(rng: random.Random | None = None) -> float:
    """Return a signed percentage variation rounded to 2 decimals, e.g. -2.37."""
    rng = rng or _rng
    roll = rng.random()
    cumulative = 0.0
    low, high = VARIATION_BANDS[-1][1:]
    top = high
    for probability, band_low, band_high in VARIATION_BANDS[:-1]:
        cumulative += probability
        if roll < cumulative:
            low, high = band_low, band_high
            # open upper edge
            top = round(band_high - 0.01, 2)
            break
    magnitude = min(max(round(rng.uniform(low, high), 2), low), top)
    return magnitude if rng.random() < 0.5 else -magnitude


def apply_variation(price_cents: int, variation: float) -> int:
    """newPrice = oldPrice * (1 + variation/100), half-up to cents, floor of 1 cent."""
    factor = 1 + Decimal(str(variation)) / 100
    return max(round_cents(Decimal(price_cents) * factor), 1)


def percent_change(old_price: int, new_price: int) -> Decimal:
    """Percent move from old to new price, half-up to 2 decimals, clamped to MAX_VARIATION."""
    change = (Decimal(new_price - old_price) * 100 / Decimal(old_price)).quantize(
        Decimal("0.01"), rounding=ROUND_HALF_UP
    )
    return max(min(change, MAX_VARIATION), -MAX_VARIATION)
