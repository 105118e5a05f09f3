"""Dynamic pricing - occupancy, day-of-week and event modifiers.

All matching modifiers are combined additively into two sums:
- percentage points (applied first)
- fixed amount (applied second)

Occupancy: only the highest threshold met applies.
Day of week: every matching rule applies (0=Sunday .. 6=Saturday).
Events: every active override covering the night applies.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Iterable

from stayrate.domain.models import DowRule, EventOverride, OccupancyRule
from stayrate.domain.modifiers import PERCENTAGE
from stayrate.domain.money import round_money


@dataclass(frozen=True)
class DynamicModifier:
    percentage: Decimal = Decimal("0")
    fixed: Decimal = Decimal("0")

    def is_neutral(self) -> bool:
        return self.percentage == 0 and self.fixed == 0


def day_of_week(night: date) -> int:
    """0=Sunday .. 6=Saturday."""
    return night.isoweekday() % 7


def select_occupancy_rule(
    occupancy_percent: Decimal,
    rules: Iterable[OccupancyRule],
) -> OccupancyRule | None:
    """Rule with the highest threshold that occupancy meets, or None."""
    matching = [r for r in rules if occupancy_percent >= r.threshold_percent]
    if not matching:
        return None
    return max(matching, key=lambda r: (r.threshold_percent, r.priority))


def calculate_dynamic_modifier(
    night: date,
    *,
    occupancy_percent: Decimal,
    occupancy_rules: Iterable[OccupancyRule] = (),
    dow_rules: Iterable[DowRule] = (),
    event_overrides: Iterable[EventOverride] = (),
) -> DynamicModifier:
    """Combine every applicable dynamic rule for a night."""
    entries: list[tuple[str, Decimal]] = []

    occupancy_rule = select_occupancy_rule(occupancy_percent, occupancy_rules)
    if occupancy_rule is not None:
        entries.append((occupancy_rule.modifier_type, occupancy_rule.modifier_value))

    weekday = day_of_week(night)
    for rule in dow_rules:
        if rule.day_of_week == weekday:
            entries.append((rule.modifier_type, rule.modifier_value))

    for event in event_overrides:
        if event.applies_to_date(night):
            entries.append((event.modifier_type, event.modifier_value))

    percentage = sum((v for t, v in entries if t == PERCENTAGE), Decimal("0"))
    fixed = sum((v for t, v in entries if t != PERCENTAGE), Decimal("0"))

    return DynamicModifier(percentage=round_money(percentage), fixed=round_money(fixed))


def apply_dynamic_modifier(price: Decimal, modifier: DynamicModifier) -> Decimal:
    """Apply percentage then fixed; never below zero."""
    if modifier.percentage != 0:
        price = price * (1 + modifier.percentage / Decimal(100))
    if modifier.fixed != 0:
        price = price + modifier.fixed
    return max(Decimal("0.00"), round_money(price))
