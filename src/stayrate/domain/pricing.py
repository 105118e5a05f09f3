"""Pricing calculator - nightly rates and stay totals.

Nightly pipeline:
1. Base price: inventory price_override for the night if set, otherwise the
   room type base price adjusted by the rate plan modifier.
2. Adjustments in order (default: seasonal -> dynamic). The seasonal step
   is skipped when a price override was used.
3. Round half-up to 2 places, never negative.

Stay pipeline (on top of the nightly rates):
subtotal -> fees (extra persons, service) -> promo discount -> tax -> total,
rounding at each step.

Validation problems never escape the public methods: they come back as a
PricingFailure with a reason_code.
"""

from __future__ import annotations

from datetime import date, timedelta
from decimal import Decimal
from typing import Callable, Sequence

from psycopg2.extensions import cursor as PgCursor

from stayrate.domain.adjustments import (
    DynamicPricingAdjustment,
    NightContext,
    PriceAdjustment,
    SeasonalRateAdjustment,
)
from stayrate.domain.models import (
    InventoryDay,
    NightlyRate,
    PricingFailure,
    RatePlan,
    RoomType,
    SeasonalRate,
    StayQuote,
)
from stayrate.domain.modifiers import apply_modifier
from stayrate.domain.money import ZERO, percent_of, round_money, to_decimal
from stayrate.domain.promotions import PromoCodeInvalid, calculate_discount, validate_promo_code
from stayrate.domain.taxes import ROOM_CHARGE, calculate_taxes
from stayrate.infra.pricing_settings import PricingConfig
from stayrate.infra.repositories.inventory_repository import (
    get_inventory_day,
    get_inventory_range,
)
from stayrate.infra.repositories.promo_codes_repository import find_promo_code
from stayrate.infra.repositories.rate_plans_repository import (
    get_default_rate_plan,
    get_rate_plan,
)
from stayrate.infra.repositories.room_types_repository import get_room_type
from stayrate.infra.repositories.seasonal_rates_repository import (
    get_seasonal_rates_for_range,
)
from stayrate.infra.repositories.taxes_repository import get_active_taxes
from stayrate.infra.time import iter_nights, utc_today
from stayrate.observability.logging import get_logger

logger = get_logger(__name__)


class PricingError(Exception):
    def __init__(self, reason_code: str, meta: dict | None = None):
        self.reason_code = reason_code
        self.meta = meta or {}
        super().__init__(f"Pricing failed: {reason_code}")


def calculate_extra_person_charge(
    room_type: RoomType,
    config: PricingConfig,
    *,
    adults: int,
    children: int,
    nights: int,
) -> Decimal:
    """Extra adults above base occupancy plus every child, per night.

    Room-type prices win over the configured charges when set (> 0).
    """
    extra_adults = max(0, adults - room_type.base_occupancy)

    adult_charge = to_decimal(room_type.extra_adult_price)
    if adult_charge <= 0:
        adult_charge = config.extra_adult_charge

    child_charge = to_decimal(room_type.extra_child_price)
    if child_charge <= 0:
        child_charge = config.extra_child_charge

    return round_money((extra_adults * adult_charge + children * child_charge) * nights)


class PricingCalculator:
    """Price nights and stays for room types.

    Args:
        cur: Database cursor used for every lookup.
        config: Explicit pricing configuration (tax, fees, currency).
        adjustments: Ordered nightly adjustments. Defaults to
            [SeasonalRateAdjustment(), DynamicPricingAdjustment(cur)].
        today: Callable returning today's date (promo validity).
    """

    def __init__(
        self,
        cur: PgCursor,
        config: PricingConfig,
        adjustments: Sequence[PriceAdjustment] | None = None,
        today: Callable[[], date] = utc_today,
    ):
        self._cur = cur
        self.config = config
        if adjustments is None:
            adjustments = [SeasonalRateAdjustment(), DynamicPricingAdjustment(cur)]
        self.adjustments = list(adjustments)
        self._today = today

    # --- Public API ---

    def calculate_nightly_rate(
        self,
        room_type_id: int,
        rate_plan_id: int | None,
        night: date,
    ) -> Decimal | PricingFailure:
        """Price a single night."""
        try:
            room_type = self._load_room_type(room_type_id)
            rate_plan = self._resolve_rate_plan(room_type, rate_plan_id, night, nights=None)
            inventory = get_inventory_day(self._cur, room_type_id=room_type_id, night_date=night)
            seasonal = get_seasonal_rates_for_range(
                self._cur,
                room_type_id=room_type_id,
                rate_plan_id=rate_plan.id if rate_plan else None,
                start=night,
                end=night,
            )
            return self._price_night(
                room_type,
                rate_plan,
                night,
                inventory=inventory,
                seasonal_rates=seasonal,
                stay_start=night,
                stay_end=night + timedelta(days=1),
            )
        except PricingError as e:
            return PricingFailure(reason_code=e.reason_code, meta=e.meta)

    def calculate_stay_total(
        self,
        room_type_id: int,
        rate_plan_id: int | None,
        check_in: date,
        check_out: date,
        *,
        adults: int = 1,
        children: int = 0,
        promo_code: str | None = None,
    ) -> StayQuote | PricingFailure:
        """Price a whole stay: nightly rates, fees, discount, tax and total."""
        try:
            quote = self._quote_stay(
                room_type_id,
                rate_plan_id,
                check_in,
                check_out,
                adults=adults,
                children=children,
                promo_code=promo_code,
            )
        except PricingError as e:
            logger.info(
                "Stay pricing failed",
                extra={
                    "extra_fields": {
                        "room_type_id": room_type_id,
                        "reason_code": e.reason_code,
                        **e.meta,
                    }
                },
            )
            return PricingFailure(reason_code=e.reason_code, meta=e.meta)

        logger.info(
            "Stay priced",
            extra={
                "extra_fields": {
                    "room_type_id": room_type_id,
                    "rate_plan_id": quote.rate_plan_id,
                    "nights": quote.nights,
                    "grand_total": str(quote.grand_total),
                }
            },
        )
        return quote

    # --- Internals ---

    def _load_room_type(self, room_type_id: int) -> RoomType:
        room_type = get_room_type(self._cur, room_type_id)
        if room_type is None:
            raise PricingError("room_type_not_found", {"room_type_id": room_type_id})
        if not room_type.is_active():
            raise PricingError("room_type_inactive", {"room_type_id": room_type_id})
        return room_type

    def _resolve_rate_plan(
        self,
        room_type: RoomType,
        rate_plan_id: int | None,
        check_in: date,
        *,
        nights: int | None,
    ) -> RatePlan | None:
        """Explicit plan (validated) or the room type's default plan, or None."""
        if rate_plan_id is not None:
            rate_plan = get_rate_plan(self._cur, rate_plan_id)
            if rate_plan is None:
                raise PricingError("rate_plan_not_found", {"rate_plan_id": rate_plan_id})
            if not rate_plan.is_active():
                raise PricingError("rate_plan_inactive", {"rate_plan_id": rate_plan_id})
            if not rate_plan.applies_to_room_type(room_type.id):
                raise PricingError(
                    "rate_plan_room_type_mismatch",
                    {"rate_plan_id": rate_plan_id, "room_type_id": room_type.id},
                )
            if not rate_plan.is_valid_for_date(check_in):
                raise PricingError("rate_plan_not_valid_for_dates", {"rate_plan_id": rate_plan_id})
        else:
            rate_plan = get_default_rate_plan(self._cur, room_type.id, check_in)

        if rate_plan is not None and nights is not None:
            if not rate_plan.is_valid_for_stay_length(nights):
                raise PricingError(
                    "rate_plan_stay_length",
                    {
                        "rate_plan_id": rate_plan.id,
                        "min_stay": rate_plan.min_stay,
                        "max_stay": rate_plan.max_stay,
                    },
                )
        return rate_plan

    def _price_night(
        self,
        room_type: RoomType,
        rate_plan: RatePlan | None,
        night: date,
        *,
        inventory: InventoryDay | None,
        seasonal_rates: Sequence[SeasonalRate],
        stay_start: date,
        stay_end: date,
    ) -> Decimal:
        override_applied = inventory is not None and inventory.price_override is not None
        if override_applied:
            price = to_decimal(inventory.price_override)
        else:
            price = to_decimal(room_type.base_price)
            if rate_plan is not None:
                price = apply_modifier(
                    price, to_decimal(rate_plan.modifier_value), rate_plan.modifier_type
                )

        ctx = NightContext(
            room_type=room_type,
            rate_plan=rate_plan,
            night=night,
            stay_start=stay_start,
            stay_end=stay_end,
            inventory=inventory,
            seasonal_rates=tuple(seasonal_rates),
            override_applied=override_applied,
        )
        for adjustment in self.adjustments:
            price = adjustment.adjust(price, ctx)

        return max(ZERO, round_money(price))

    def _quote_stay(
        self,
        room_type_id: int,
        rate_plan_id: int | None,
        check_in: date,
        check_out: date,
        *,
        adults: int,
        children: int,
        promo_code: str | None,
    ) -> StayQuote:
        # --- Fail-fast validations ---
        if check_in >= check_out:
            raise PricingError(
                "invalid_dates", {"check_in": str(check_in), "check_out": str(check_out)}
            )
        if adults < 1:
            raise PricingError("invalid_adult_count", {"adults": adults})
        if children < 0:
            raise PricingError("invalid_child_count", {"children": children})

        nights = (check_out - check_in).days
        room_type = self._load_room_type(room_type_id)
        if adults + children > room_type.max_occupancy:
            raise PricingError(
                "occupancy_exceeded",
                {"guests": adults + children, "max_occupancy": room_type.max_occupancy},
            )
        rate_plan = self._resolve_rate_plan(room_type, rate_plan_id, check_in, nights=nights)

        # --- Preload stay data ---
        inventory = get_inventory_range(
            self._cur, room_type_id=room_type_id, start=check_in, end=check_out
        )
        seasonal = get_seasonal_rates_for_range(
            self._cur,
            room_type_id=room_type_id,
            rate_plan_id=rate_plan.id if rate_plan else None,
            start=check_in,
            end=check_out - timedelta(days=1),
        )

        # --- Nightly rates ---
        nightly_rates = tuple(
            NightlyRate(
                date=night,
                rate=self._price_night(
                    room_type,
                    rate_plan,
                    night,
                    inventory=inventory.get(night),
                    seasonal_rates=seasonal,
                    stay_start=check_in,
                    stay_end=check_out,
                ),
            )
            for night in iter_nights(check_in, check_out)
        )
        subtotal = round_money(sum((n.rate for n in nightly_rates), ZERO))

        # --- Fees ---
        extra_person = calculate_extra_person_charge(
            room_type, self.config, adults=adults, children=children, nights=nights
        )
        service_fee = percent_of(subtotal, self.config.service_fee_rate)
        fees = round_money(extra_person + service_fee)

        # --- Promo discount ---
        discount = ZERO
        applied_code = None
        if promo_code:
            promo = find_promo_code(self._cur, promo_code)
            if promo is None:
                raise PricingError("promo_not_found", {"code": promo_code})
            try:
                validate_promo_code(
                    promo,
                    subtotal=subtotal,
                    nights=nights,
                    room_type_id=room_type_id,
                    today=self._today(),
                )
            except PromoCodeInvalid as e:
                raise PricingError(e.reason_code, e.meta) from e
            discount = calculate_discount(promo, subtotal)
            applied_code = promo.code

        # --- Tax ---
        taxable = max(ZERO, subtotal + fees - discount)
        taxes = calculate_taxes(
            taxable,
            ROOM_CHARGE,
            get_active_taxes(self._cur),
            default_rate=self.config.tax_rate,
        )

        grand_total = round_money(subtotal + fees - discount + taxes.total)

        return StayQuote(
            room_type_id=room_type_id,
            rate_plan_id=rate_plan.id if rate_plan else None,
            check_in=check_in,
            check_out=check_out,
            nightly_rates=nightly_rates,
            subtotal=subtotal,
            fees=fees,
            discount=discount,
            tax=taxes.total,
            grand_total=grand_total,
            currency=self.config.currency,
            exchange_rate=self.config.exchange_rate,
            promo_code=applied_code,
            tax_lines=taxes.lines,
        )
