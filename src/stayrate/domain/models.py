"""Typed records for the pricing and availability core.

Repositories build these from SQL rows; domain logic never handles raw
tuples.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

from stayrate.domain.money import round_money

ACTIVE = "active"

# Short day names used by rate restrictions, mapped to ISO weekday numbers.
DAY_NAMES = {"mon": 1, "tue": 2, "wed": 3, "thu": 4, "fri": 5, "sat": 6, "sun": 7}


@dataclass(frozen=True)
class RoomType:
    id: int
    name: str
    base_price: Decimal
    base_occupancy: int = 2
    max_occupancy: int = 2
    extra_adult_price: Decimal = Decimal("0")
    extra_child_price: Decimal = Decimal("0")
    status: str = ACTIVE

    def is_active(self) -> bool:
        return self.status == ACTIVE


@dataclass(frozen=True)
class InventoryDay:
    """Per-date capacity record for a room type."""

    room_type_id: int
    date: date
    total_rooms: int
    available_rooms: int
    booked_rooms: int
    price_override: Decimal | None = None
    stop_sell: bool = False
    min_stay: int = 1

    def has_availability(self, quantity: int = 1) -> bool:
        return self.available_rooms >= quantity and not self.stop_sell

    @property
    def occupancy_percent(self) -> Decimal:
        if self.total_rooms <= 0:
            return Decimal("0")
        return Decimal(self.booked_rooms) * 100 / Decimal(self.total_rooms)


@dataclass(frozen=True)
class RatePlan:
    id: int
    code: str
    name: str
    room_type_id: int | None
    modifier_type: str
    modifier_value: Decimal
    meal_plan: str = "room_only"
    min_stay: int = 1
    max_stay: int = 0
    is_default: bool = False
    priority: int = 0
    status: str = ACTIVE
    valid_from: date | None = None
    valid_until: date | None = None

    def is_active(self) -> bool:
        return self.status == ACTIVE

    def applies_to_room_type(self, room_type_id: int) -> bool:
        """A plan without a room type applies to every room type."""
        return self.room_type_id is None or self.room_type_id == room_type_id

    def is_valid_for_date(self, day: date) -> bool:
        if not self.is_active():
            return False
        if self.valid_from and day < self.valid_from:
            return False
        if self.valid_until and day > self.valid_until:
            return False
        return True

    def is_valid_for_stay_length(self, nights: int) -> bool:
        if nights < self.min_stay:
            return False
        if self.max_stay > 0 and nights > self.max_stay:
            return False
        return True


@dataclass(frozen=True)
class SeasonalRate:
    id: int
    name: str
    room_type_id: int | None
    rate_plan_id: int | None
    start_date: date
    end_date: date
    modifier_type: str
    modifier_value: Decimal
    priority: int = 0
    days_of_week: tuple[int, ...] = ()
    status: str = ACTIVE

    def is_active(self) -> bool:
        return self.status == ACTIVE

    def applies_to_date(self, day: date) -> bool:
        """Active, within [start_date, end_date] and on an allowed ISO weekday."""
        if not self.is_active():
            return False
        if day < self.start_date or day > self.end_date:
            return False
        if self.days_of_week and day.isoweekday() not in self.days_of_week:
            return False
        return True

    def applies_to_rate_plan(self, rate_plan_id: int | None) -> bool:
        return self.rate_plan_id is None or self.rate_plan_id == rate_plan_id


@dataclass(frozen=True)
class OccupancyRule:
    id: int
    threshold_percent: Decimal
    modifier_type: str
    modifier_value: Decimal
    room_type_id: int | None = None
    priority: int = 0
    status: str = ACTIVE


@dataclass(frozen=True)
class DowRule:
    """Day-of-week rule; day_of_week is 0=Sunday .. 6=Saturday."""

    id: int
    day_of_week: int
    modifier_type: str
    modifier_value: Decimal
    room_type_id: int | None = None
    status: str = ACTIVE


@dataclass(frozen=True)
class EventOverride:
    id: int
    name: str
    start_date: date
    end_date: date
    modifier_type: str
    modifier_value: Decimal
    room_type_id: int | None = None
    priority: int = 0
    status: str = ACTIVE

    def applies_to_date(self, day: date) -> bool:
        return self.status == ACTIVE and self.start_date <= day <= self.end_date


@dataclass(frozen=True)
class PromoCode:
    id: int
    code: str
    discount_type: str
    discount_value: Decimal
    max_discount: Decimal = Decimal("0")
    min_amount: Decimal = Decimal("0")
    min_nights: int = 0
    max_uses: int = 0
    used_count: int = 0
    valid_from: date | None = None
    valid_to: date | None = None
    applicable_room_types: tuple[int, ...] = ()
    is_active: bool = True

    def is_expired(self, today: date) -> bool:
        if self.valid_from and today < self.valid_from:
            return True
        if self.valid_to and today > self.valid_to:
            return True
        return False

    def has_uses_remaining(self) -> bool:
        if self.max_uses <= 0:
            return True
        return self.used_count < self.max_uses

    def applies_to_room_type(self, room_type_id: int) -> bool:
        return not self.applicable_room_types or room_type_id in self.applicable_room_types


@dataclass(frozen=True)
class Tax:
    id: int
    name: str
    rate: Decimal
    type: str
    applies_to: str = "all"
    is_active: bool = True
    sort_order: int = 0


@dataclass(frozen=True)
class RateRestriction:
    id: int
    room_type_id: int
    restriction_type: str
    date_from: date
    date_to: date
    rate_plan_id: int | None = None
    value: int | None = None
    channel: str | None = None
    days_of_week: str | None = None
    is_active: bool = True

    def applies_to_date(self, day: date) -> bool:
        if day < self.date_from or day > self.date_to:
            return False
        if not self.days_of_week:
            return True
        allowed = {d.strip().lower() for d in self.days_of_week.split(",")}
        return any(DAY_NAMES.get(name) == day.isoweekday() for name in allowed)

    def applies_to_rate_plan(self, rate_plan_id: int | None) -> bool:
        return self.rate_plan_id is None or self.rate_plan_id == rate_plan_id

    def applies_to_channel(self, channel: str | None) -> bool:
        return not self.channel or self.channel == channel


@dataclass(frozen=True)
class NightlyRate:
    date: date
    rate: Decimal


@dataclass(frozen=True)
class TaxLine:
    tax_id: int | None
    name: str
    rate: Decimal
    type: str
    amount: Decimal


@dataclass(frozen=True)
class StayQuote:
    """Fully priced stay."""

    room_type_id: int
    rate_plan_id: int | None
    check_in: date
    check_out: date
    nightly_rates: tuple[NightlyRate, ...]
    subtotal: Decimal
    fees: Decimal
    discount: Decimal
    tax: Decimal
    grand_total: Decimal
    currency: str
    exchange_rate: Decimal = Decimal("1")
    promo_code: str | None = None
    tax_lines: tuple[TaxLine, ...] = field(default_factory=tuple)

    @property
    def ok(self) -> bool:
        return True

    @property
    def nights(self) -> int:
        return len(self.nightly_rates)

    @property
    def average_nightly_rate(self) -> Decimal:
        if not self.nightly_rates:
            return Decimal("0.00")
        return round_money(self.subtotal / self.nights)


@dataclass(frozen=True)
class PricingFailure:
    """Structured pricing error returned to callers instead of raising."""

    reason_code: str
    meta: dict = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return False
