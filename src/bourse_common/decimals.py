"""Decimal arithmetic utilities for prices.

All prices are decimal.Decimal. No float anywhere in pricing or ledger math.
Storage precision is 4 decimal places (NUMERIC(14,4)); display is cents.
"""

from decimal import ROUND_HALF_UP, Decimal

STORAGE_QUANTUM = Decimal("0.0001")
CENT = Decimal("0.01")
PERCENT_QUANTUM = Decimal("0.01")


def quantize_price(value: Decimal, rounding: str = ROUND_HALF_UP) -> Decimal:
    """Round a price to storage precision (4 dp, half-up unless told otherwise)."""
    return value.quantize(STORAGE_QUANTUM, rounding=rounding)


def clamp(value: Decimal, low: Decimal, high: Decimal) -> Decimal:
    return max(low, min(high, value))


def price_to_display(price: Decimal) -> str:
    """12.3456 -> '12.35 €', 1234.5 -> '1,234.50 €'."""
    rounded = price.quantize(CENT, rounding=ROUND_HALF_UP)
    return f"{rounded:,.2f} €"


def percent_to_display(percent: Decimal) -> str:
    """15 -> '+15.00%', -4.5 -> '-4.50%'."""
    rounded = percent.quantize(PERCENT_QUANTUM, rounding=ROUND_HALF_UP)
    sign = "+" if rounded > 0 else ""
    return f"{sign}{rounded}%"
