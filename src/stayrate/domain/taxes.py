"""Tax calculation for a charge category."""

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable

from stayrate.domain.models import Tax, TaxLine
from stayrate.domain.modifiers import PERCENTAGE
from stayrate.domain.money import ZERO, percent_of, round_money

APPLIES_ALL = "all"
ROOM_CHARGE = "room_charge"


@dataclass(frozen=True)
class TaxBreakdown:
    lines: tuple[TaxLine, ...]
    total: Decimal


def tax_amount(tax: Tax, base_amount: Decimal) -> Decimal:
    """Single tax: percentage of the base, or a fixed amount."""
    if tax.type == PERCENTAGE:
        return percent_of(base_amount, tax.rate)
    return round_money(tax.rate)


def calculate_taxes(
    amount: Decimal,
    category: str,
    taxes: Iterable[Tax],
    *,
    default_rate: Decimal = Decimal("0"),
) -> TaxBreakdown:
    """Sum every active tax matching the category.

    default_rate (a percentage) is applied only when no active tax rows exist
    at all; rows that exist but do not match the category yield no tax.
    Each line is rounded before summing.
    """
    active = [tax for tax in taxes if tax.is_active]
    lines = [
        TaxLine(
            tax_id=tax.id,
            name=tax.name,
            rate=tax.rate,
            type=tax.type,
            amount=tax_amount(tax, amount),
        )
        for tax in active
        if tax.applies_to in (APPLIES_ALL, category)
    ]

    if not active and default_rate > 0:
        lines.append(
            TaxLine(
                tax_id=None,
                name="default",
                rate=default_rate,
                type=PERCENTAGE,
                amount=percent_of(amount, default_rate),
            )
        )

    total = sum((line.amount for line in lines), ZERO)
    return TaxBreakdown(lines=tuple(lines), total=round_money(total))
