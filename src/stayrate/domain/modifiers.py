"""Price modifiers shared by rate plans, seasonal rates and dynamic rules."""

from decimal import Decimal

PERCENTAGE = "percentage"
FIXED = "fixed"
ABSOLUTE = "absolute"

MODIFIER_TYPES = (PERCENTAGE, FIXED, ABSOLUTE)


def apply_modifier(price: Decimal, value: Decimal, modifier_type: str) -> Decimal:
    """Apply a single modifier to a price.

    - percentage: +10 adds 10%, -15 subtracts 15%
    - fixed: adds (or subtracts) an amount
    - absolute: replaces the price with the value

    Unknown types leave the price untouched. No rounding happens here;
    callers round at their stage boundary.
    """
    if modifier_type == PERCENTAGE:
        return price * (1 + value / Decimal(100))
    if modifier_type == FIXED:
        return price + value
    if modifier_type == ABSOLUTE:
        return value
    return price
