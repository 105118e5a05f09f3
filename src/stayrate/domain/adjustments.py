"""Nightly price adjustments.

The pricing calculator runs an ordered list of adjustments over each
night's starting price (room type base, adjusted by the rate plan, or the
inventory price override). Default order:

    seasonal -> dynamic

Promo discount and tax are stay-level steps run afterwards by the
calculator, in that order. Extra adjustments can be appended by callers;
each one receives the running price and returns a new one.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Protocol

from psycopg2.extensions import cursor as PgCursor

from stayrate.domain.dynamic_pricing import apply_dynamic_modifier, calculate_dynamic_modifier
from stayrate.domain.models import (
    DowRule,
    EventOverride,
    InventoryDay,
    OccupancyRule,
    RatePlan,
    RoomType,
    SeasonalRate,
)
from stayrate.domain.modifiers import apply_modifier
from stayrate.domain.money import to_decimal
from stayrate.domain.seasonal import select_seasonal_rate
from stayrate.infra.repositories.dynamic_pricing_repository import (
    get_active_dow_rules,
    get_active_event_overrides,
    get_active_occupancy_rules,
)


@dataclass(frozen=True)
class NightContext:
    """Everything an adjustment may look at for one night.

    stay_start / stay_end bound the whole stay ([start, end)), so
    adjustments can load data once per stay.
    """

    room_type: RoomType
    rate_plan: RatePlan | None
    night: date
    stay_start: date
    stay_end: date
    inventory: InventoryDay | None = None
    seasonal_rates: tuple[SeasonalRate, ...] = ()
    override_applied: bool = False

    @property
    def rate_plan_id(self) -> int | None:
        return self.rate_plan.id if self.rate_plan else None


class PriceAdjustment(Protocol):
    name: str

    def adjust(self, price: Decimal, ctx: NightContext) -> Decimal: ...


class SeasonalRateAdjustment:
    """Apply the winning seasonal rate, unless a price override was used."""

    name = "seasonal"

    def adjust(self, price: Decimal, ctx: NightContext) -> Decimal:
        if ctx.override_applied:
            return price
        rate = select_seasonal_rate(ctx.seasonal_rates, ctx.night, ctx.rate_plan_id)
        if rate is None:
            return price
        return apply_modifier(price, to_decimal(rate.modifier_value), rate.modifier_type)


class DynamicPricingAdjustment:
    """Apply occupancy, day-of-week and event modifiers.

    Rules and events are loaded once per stay and reused for its nights.
    Only the current stay is kept, so a calculator reused across many
    quotes does not grow and picks up rule changes on the next stay.
    """

    name = "dynamic"

    def __init__(self, cur: PgCursor):
        self._cur = cur
        self._stay_key: tuple[int, date, date] | None = None
        self._rules: tuple[list[OccupancyRule], list[DowRule]] = ([], [])
        self._events: list[EventOverride] = []

    def _load(self, ctx: NightContext) -> None:
        key = (ctx.room_type.id, ctx.stay_start, ctx.stay_end)
        if key == self._stay_key:
            return
        room_type_id = ctx.room_type.id
        self._rules = (
            get_active_occupancy_rules(self._cur, room_type_id),
            get_active_dow_rules(self._cur, room_type_id),
        )
        self._events = get_active_event_overrides(
            self._cur,
            room_type_id=room_type_id,
            start=ctx.stay_start,
            end=ctx.stay_end,
        )
        self._stay_key = key

    def adjust(self, price: Decimal, ctx: NightContext) -> Decimal:
        self._load(ctx)
        occupancy_rules, dow_rules = self._rules
        occupancy = ctx.inventory.occupancy_percent if ctx.inventory else Decimal("0")
        modifier = calculate_dynamic_modifier(
            ctx.night,
            occupancy_percent=occupancy,
            occupancy_rules=occupancy_rules,
            dow_rules=dow_rules,
            event_overrides=self._events,
        )
        if modifier.is_neutral():
            return price
        return apply_dynamic_modifier(price, modifier)
