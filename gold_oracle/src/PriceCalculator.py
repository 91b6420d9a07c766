"""PriceCalculator: Spot quote to on-chain fixed-point prices.

The contract stores prices as integers scaled by 10^8. From a single spot
price per troy ounce we derive five fields:

    per_gram      = floor(spot / 31.1035 * 10^8)
    per_ounce     = floor(spot * 10^8)
    per_karat_24  = per_gram
    per_karat_22  = floor(per_karat_24 * 22 / 24)
    per_karat_18  = floor(per_karat_24 * 18 / 24)

Values are always truncated, never rounded, so the published price never
exceeds the quote.

.. code-block:: python

    >>> prices = calculate_prices("2037.50")
    >>> prices.per_ounce
    203750000000
    >>> prices.per_gram
    6550709727
    >>> format_usd(prices.per_gram)
    '65.50 USD'
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_DOWN, ROUND_FLOOR, Decimal, DecimalException, InvalidOperation

from .errors import InvalidQuoteError

# Number of decimals stored on-chain.
NUM_DECIMALS = 8
SCALE = 10**NUM_DECIMALS

GRAMS_PER_OUNCE = Decimal("31.1035")

# Largest value an updatePrices() argument can hold.
MAX_UINT256 = 2**256 - 1

# Karat purity in parts per 24.
KARAT_24 = 24
KARAT_22 = 22
KARAT_18 = 18


@dataclass(frozen=True)
class PriceSet:
    """Derived gold prices in fixed-point format (scale 10^8).

    :ivar per_gram: Pure gold price per gram.
    :ivar per_ounce: Price per troy ounce.
    :ivar per_karat_24: 24K price per gram (same as per_gram).
    :ivar per_karat_22: 22K price per gram.
    :ivar per_karat_18: 18K price per gram.
    """

    per_gram: int
    per_ounce: int
    per_karat_24: int
    per_karat_22: int
    per_karat_18: int

    def as_args(self) -> tuple[int, int, int, int, int]:
        """Return the prices in contract argument order."""
        return (
            self.per_gram,
            self.per_ounce,
            self.per_karat_24,
            self.per_karat_22,
            self.per_karat_18,
        )

    def to_dict(self) -> dict[str, int]:
        """Return the prices keyed by their API names."""
        return {
            "pricePerGram": self.per_gram,
            "pricePerOunce": self.per_ounce,
            "pricePerKarat24": self.per_karat_24,
            "pricePerKarat22": self.per_karat_22,
            "pricePerKarat18": self.per_karat_18,
        }

    def human_readable(self) -> dict[str, str]:
        """Return the prices formatted as USD strings (e.g., "65.50 USD")."""
        return {key: format_usd(value) for key, value in self.to_dict().items()}


def calculate_prices(spot_price_per_ounce: Decimal | int | float | str) -> PriceSet:
    """Convert a spot price per ounce into a PriceSet.

    :param spot_price_per_ounce: Positive spot price per troy ounce.
    :returns: Derived fixed-point prices.
    :raises InvalidQuoteError: If the price is not a positive finite number,
        or is too large to store as uint256.
    """
    if isinstance(spot_price_per_ounce, bool):
        raise InvalidQuoteError(f"Invalid spot price: {spot_price_per_ounce!r}")
    try:
        spot = Decimal(str(spot_price_per_ounce))
    except InvalidOperation as e:
        raise InvalidQuoteError(f"Invalid spot price: {spot_price_per_ounce!r}") from e

    if not spot.is_finite():
        raise InvalidQuoteError(f"Spot price is not finite: {spot_price_per_ounce!r}")
    if spot <= 0:
        raise InvalidQuoteError(f"Spot price must be positive, got {spot}")

    try:
        per_ounce = _scale(spot)
        per_gram = _scale(spot / GRAMS_PER_OUNCE)
    except DecimalException as e:
        raise InvalidQuoteError(f"Spot price out of range: {spot_price_per_ounce!r}") from e

    # per_ounce is the largest field
    if per_ounce > MAX_UINT256:
        raise InvalidQuoteError(f"Spot price out of range: {spot_price_per_ounce!r}")

    per_karat_24 = per_gram

    return PriceSet(
        per_gram=per_gram,
        per_ounce=per_ounce,
        per_karat_24=per_karat_24,
        per_karat_22=per_karat_24 * KARAT_22 // KARAT_24,
        per_karat_18=per_karat_24 * KARAT_18 // KARAT_24,
    )


def _scale(value: Decimal) -> int:
    """Scale a decimal amount by 10^8 and truncate to an integer."""
    return int((value * SCALE).to_integral_value(rounding=ROUND_FLOOR))


def format_usd(raw: int) -> str:
    """Format a fixed-point amount as a two-decimal USD string.

    :param raw: Amount scaled by 10^8.
    :returns: String like "65.50 USD".
    """
    amount = (Decimal(int(raw)) / SCALE).quantize(Decimal("0.01"), rounding=ROUND_DOWN)
    return f"{amount} USD"
