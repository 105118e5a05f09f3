"""Money helpers.

All monetary amounts are Decimal and are rounded half-up to 2 places at
every stage boundary (nightly rate, subtotal, fees, discount, tax, total).
"""

from decimal import ROUND_HALF_UP, Decimal

ZERO = Decimal("0.00")
_CENT = Decimal("0.01")


def to_decimal(value: Decimal | int | float | str | None) -> Decimal:
    """Coerce a DB/config value to Decimal (floats go through str)."""
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


def round_money(value: Decimal) -> Decimal:
    """Round to 2 decimal places, half-up."""
    return value.quantize(_CENT, rounding=ROUND_HALF_UP)


def percent_of(amount: Decimal, rate: Decimal) -> Decimal:
    """Return rate% of amount, rounded."""
    return round_money(amount * rate / Decimal(100))
