"""Unit tests for the pricing calculator.

Repository functions are patched so these run without Postgres.
"""

from contextlib import contextmanager
from datetime import date, timedelta
from decimal import Decimal
from unittest.mock import MagicMock, patch

import pytest

from stayrate.domain.adjustments import DynamicPricingAdjustment, SeasonalRateAdjustment
from stayrate.domain.models import (
    InventoryDay,
    OccupancyRule,
    PricingFailure,
    PromoCode,
    RatePlan,
    RoomType,
    SeasonalRate,
    StayQuote,
    Tax,
)
from stayrate.domain.pricing import PricingCalculator, calculate_extra_person_charge
from stayrate.infra.pricing_settings import PricingConfig

CHECK_IN = date(2025, 7, 14)
ROOM_TYPE = RoomType(id=1, name="Standard", base_price=Decimal("100.00"), max_occupancy=4)


def _seasonal(id=1, value="10", priority=0, **kwargs) -> SeasonalRate:
    defaults = dict(
        name="Summer",
        room_type_id=1,
        rate_plan_id=None,
        start_date=date(2025, 7, 1),
        end_date=date(2025, 8, 31),
        modifier_type="percentage",
    )
    defaults.update(kwargs)
    return SeasonalRate(id=id, modifier_value=Decimal(value), priority=priority, **defaults)


def _plan(id=3, value="-10", **kwargs) -> RatePlan:
    defaults = dict(
        code="NR",
        name="Non refundable",
        room_type_id=1,
        modifier_type="percentage",
    )
    defaults.update(kwargs)
    return RatePlan(id=id, modifier_value=Decimal(value), **defaults)


def _inventory(night, total=10, booked=0, price_override=None) -> InventoryDay:
    return InventoryDay(
        room_type_id=1,
        date=night,
        total_rooms=total,
        available_rooms=total - booked,
        booked_rooms=booked,
        price_override=price_override,
    )


@contextmanager
def _repos(
    room_type=ROOM_TYPE,
    rate_plan=None,
    default_plan=None,
    inventory=None,
    seasonal=(),
    promo=None,
    taxes=(),
):
    inventory = inventory or {}
    mocks = {
        "get_room_type": MagicMock(return_value=room_type),
        "get_rate_plan": MagicMock(return_value=rate_plan),
        "get_default_rate_plan": MagicMock(return_value=default_plan),
        "get_inventory_day": MagicMock(
            side_effect=lambda cur, *, room_type_id, night_date: inventory.get(night_date)
        ),
        "get_inventory_range": MagicMock(return_value=inventory),
        "get_seasonal_rates_for_range": MagicMock(return_value=list(seasonal)),
        "find_promo_code": MagicMock(return_value=promo),
        "get_active_taxes": MagicMock(return_value=list(taxes)),
    }
    with patch.multiple("stayrate.domain.pricing", **mocks):
        yield mocks


def _calculator(config=None, adjustments=None, today=date(2025, 7, 1)):
    return PricingCalculator(
        MagicMock(),
        config or PricingConfig(),
        adjustments=adjustments if adjustments is not None else [SeasonalRateAdjustment()],
        today=lambda: today,
    )


class TestCalculateNightlyRate:
    def test_base_price_only(self):
        with _repos():
            assert _calculator().calculate_nightly_rate(1, None, CHECK_IN) == Decimal("100.00")

    def test_rate_plan_then_seasonal(self):
        with _repos(rate_plan=_plan(value="-10"), seasonal=[_seasonal(value="10")]):
            rate = _calculator().calculate_nightly_rate(1, 3, CHECK_IN)
        # 100 * 0.9 * 1.1
        assert rate == Decimal("99.00")

    def test_higher_priority_seasonal_applied(self):
        seasonal = [_seasonal(id=1, value="5", priority=5), _seasonal(id=2, value="20", priority=10)]
        with _repos(seasonal=seasonal):
            assert _calculator().calculate_nightly_rate(1, None, CHECK_IN) == Decimal("120.00")

    def test_price_override_skips_plan_and_seasonal(self):
        inventory = {CHECK_IN: _inventory(CHECK_IN, price_override=Decimal("80.00"))}
        with _repos(rate_plan=_plan(), inventory=inventory, seasonal=[_seasonal(value="50")]):
            assert _calculator().calculate_nightly_rate(1, 3, CHECK_IN) == Decimal("80.00")

    def test_default_plan_used_without_explicit_plan(self):
        with _repos(default_plan=_plan(value="20", modifier_type="fixed")):
            assert _calculator().calculate_nightly_rate(1, None, CHECK_IN) == Decimal("120.00")

    def test_default_plan_looked_up_for_check_in(self):
        with _repos() as mocks:
            _calculator().calculate_stay_total(1, None, CHECK_IN, CHECK_IN + timedelta(days=2))

        lookup = mocks["get_default_rate_plan"].call_args
        assert lookup.args[1:] == (1, CHECK_IN)

    def test_never_negative(self):
        with _repos(rate_plan=_plan(value="-500", modifier_type="fixed")):
            assert _calculator().calculate_nightly_rate(1, 3, CHECK_IN) == Decimal("0.00")

    def test_unknown_room_type_returns_failure(self):
        with _repos(room_type=None):
            result = _calculator().calculate_nightly_rate(99, None, CHECK_IN)
        assert isinstance(result, PricingFailure)
        assert result.reason_code == "room_type_not_found"


class TestDynamicAdjustment:
    def test_occupancy_rule_applies_after_override(self):
        inventory = {CHECK_IN: _inventory(CHECK_IN, booked=9, price_override=Decimal("150.00"))}
        rule = OccupancyRule(
            id=1,
            threshold_percent=Decimal("80"),
            modifier_type="percentage",
            modifier_value=Decimal("20"),
        )
        cur = MagicMock()
        with _repos(inventory=inventory), \
             patch("stayrate.domain.adjustments.get_active_occupancy_rules", return_value=[rule]), \
             patch("stayrate.domain.adjustments.get_active_dow_rules", return_value=[]), \
             patch("stayrate.domain.adjustments.get_active_event_overrides", return_value=[]):
            calculator = PricingCalculator(cur, PricingConfig())
            assert calculator.calculate_nightly_rate(1, None, CHECK_IN) == Decimal("180.00")

    def test_rules_loaded_once_per_stay(self):
        nights = [CHECK_IN + timedelta(days=i) for i in range(3)]
        inventory = {n: _inventory(n) for n in nights}
        cur = MagicMock()
        with _repos(inventory=inventory), \
             patch("stayrate.domain.adjustments.get_active_occupancy_rules", return_value=[]) as occ, \
             patch("stayrate.domain.adjustments.get_active_dow_rules", return_value=[]), \
             patch("stayrate.domain.adjustments.get_active_event_overrides", return_value=[]) as events:
            calculator = PricingCalculator(
                cur, PricingConfig(), adjustments=[DynamicPricingAdjustment(cur)]
            )
            quote = calculator.calculate_stay_total(1, None, CHECK_IN, CHECK_IN + timedelta(days=3))

        assert quote.ok
        assert occ.call_count == 1
        assert events.call_count == 1

    def test_next_stay_reloads_rules(self):
        next_night = CHECK_IN + timedelta(days=1)
        inventory = {n: _inventory(n, booked=9) for n in (CHECK_IN, next_night)}
        rule = OccupancyRule(
            id=1,
            threshold_percent=Decimal("80"),
            modifier_type="percentage",
            modifier_value=Decimal("20"),
        )
        cur = MagicMock()
        with _repos(inventory=inventory), \
             patch(
                 "stayrate.domain.adjustments.get_active_occupancy_rules",
                 side_effect=[[], [rule]],
             ) as occ, \
             patch("stayrate.domain.adjustments.get_active_dow_rules", return_value=[]), \
             patch("stayrate.domain.adjustments.get_active_event_overrides", return_value=[]):
            calculator = PricingCalculator(
                cur, PricingConfig(), adjustments=[DynamicPricingAdjustment(cur)]
            )
            first = calculator.calculate_nightly_rate(1, None, CHECK_IN)
            second = calculator.calculate_nightly_rate(1, None, next_night)

        assert first == Decimal("100.00")
        assert second == Decimal("120.00")
        assert occ.call_count == 2


class TestCalculateStayTotal:
    def test_seasonal_with_default_tax(self):
        config = PricingConfig(tax_rate=Decimal("5"))
        with _repos(seasonal=[_seasonal(value="10")]):
            quote = _calculator(config).calculate_stay_total(
                1, None, CHECK_IN, CHECK_IN + timedelta(days=1)
            )

        assert isinstance(quote, StayQuote)
        assert quote.subtotal == Decimal("110.00")
        assert quote.tax == Decimal("5.50")
        assert quote.grand_total == Decimal("115.50")

    def test_nightly_breakdown_and_average(self):
        nights = [CHECK_IN + timedelta(days=i) for i in range(3)]
        inventory = {nights[1]: _inventory(nights[1], price_override=Decimal("130.00"))}
        with _repos(inventory=inventory):
            quote = _calculator().calculate_stay_total(1, None, CHECK_IN, nights[-1] + timedelta(days=1))

        assert [n.rate for n in quote.nightly_rates] == [
            Decimal("100.00"),
            Decimal("130.00"),
            Decimal("100.00"),
        ]
        assert quote.nights == 3
        assert quote.subtotal == Decimal("330.00")
        assert quote.average_nightly_rate == Decimal("110.00")

    def test_fees_extra_persons_and_service(self):
        room_type = RoomType(
            id=1,
            name="Family",
            base_price=Decimal("100.00"),
            base_occupancy=2,
            max_occupancy=4,
            extra_adult_price=Decimal("25.00"),
        )
        config = PricingConfig(extra_child_charge=Decimal("10"), service_fee_rate=Decimal("10"))
        with _repos(room_type=room_type):
            quote = _calculator(config).calculate_stay_total(
                1, None, CHECK_IN, CHECK_IN + timedelta(days=2), adults=3, children=1
            )

        # extra persons (25 + 10) * 2 = 70, service 10% of 200 = 20
        assert quote.fees == Decimal("90.00")
        assert quote.grand_total == Decimal("290.00")

    def test_promo_then_tax(self):
        promo = PromoCode(
            id=1,
            code="HALF",
            discount_type="percentage",
            discount_value=Decimal("50"),
            max_discount=Decimal("30.00"),
        )
        taxes = [Tax(id=1, name="VAT", rate=Decimal("10"), type="percentage")]
        with _repos(promo=promo, taxes=taxes):
            quote = _calculator().calculate_stay_total(
                1, None, CHECK_IN, CHECK_IN + timedelta(days=2), promo_code="half"
            )

        assert quote.discount == Decimal("30.00")
        assert quote.tax == Decimal("17.00")
        assert quote.grand_total == Decimal("187.00")
        assert quote.promo_code == "HALF"

    def test_quote_carries_currency(self):
        config = PricingConfig(currency="EUR", exchange_rate=Decimal("0.92"))
        with _repos():
            quote = _calculator(config).calculate_stay_total(1, None, CHECK_IN, CHECK_IN + timedelta(days=1))
        assert quote.currency == "EUR"
        assert quote.exchange_rate == Decimal("0.92")


class TestCalculateStayTotalFailures:
    def _fail(self, check_out=CHECK_IN + timedelta(days=2), rate_plan_id=None, **kwargs):
        repo_kwargs = {
            k: kwargs.pop(k)
            for k in ("room_type", "rate_plan", "promo")
            if k in kwargs
        }
        with _repos(**repo_kwargs):
            result = _calculator().calculate_stay_total(1, rate_plan_id, CHECK_IN, check_out, **kwargs)
        assert isinstance(result, PricingFailure)
        assert result.ok is False
        return result.reason_code

    def test_check_out_before_check_in(self):
        assert self._fail(check_out=CHECK_IN) == "invalid_dates"

    def test_room_type_inactive(self):
        room_type = RoomType(id=1, name="Old", base_price=Decimal("50"), status="inactive")
        assert self._fail(room_type=room_type) == "room_type_inactive"

    def test_no_adults(self):
        assert self._fail(adults=0) == "invalid_adult_count"

    def test_occupancy_exceeded(self):
        assert self._fail(adults=3, children=2) == "occupancy_exceeded"

    def test_rate_plan_not_found(self):
        assert self._fail(rate_plan_id=3, rate_plan=None) == "rate_plan_not_found"

    def test_rate_plan_inactive(self):
        assert self._fail(rate_plan_id=3, rate_plan=_plan(status="inactive")) == "rate_plan_inactive"

    def test_rate_plan_for_other_room_type(self):
        plan = _plan(room_type_id=2)
        assert self._fail(rate_plan_id=3, rate_plan=plan) == "rate_plan_room_type_mismatch"

    def test_rate_plan_outside_validity(self):
        plan = _plan(valid_until=date(2025, 6, 30))
        assert self._fail(rate_plan_id=3, rate_plan=plan) == "rate_plan_not_valid_for_dates"

    def test_rate_plan_min_stay(self):
        assert self._fail(rate_plan_id=3, rate_plan=_plan(min_stay=3)) == "rate_plan_stay_length"

    def test_unknown_promo(self):
        assert self._fail(promo_code="NOPE", promo=None) == "promo_not_found"

    def test_expired_promo(self):
        promo = PromoCode(
            id=1,
            code="OLD",
            discount_type="fixed",
            discount_value=Decimal("10"),
            valid_to=date(2025, 1, 31),
        )
        assert self._fail(promo_code="OLD", promo=promo) == "promo_expired"


class TestExtraPersonCharge:
    def test_room_type_price_wins_over_config(self):
        room_type = RoomType(
            id=1, name="x", base_price=Decimal("100"), extra_adult_price=Decimal("40")
        )
        config = PricingConfig(extra_adult_charge=Decimal("15"))
        charge = calculate_extra_person_charge(room_type, config, adults=3, children=0, nights=2)
        assert charge == Decimal("80.00")

    def test_config_fallback(self):
        room_type = RoomType(id=1, name="x", base_price=Decimal("100"))
        config = PricingConfig(extra_adult_charge=Decimal("15"))
        charge = calculate_extra_person_charge(room_type, config, adults=3, children=0, nights=2)
        assert charge == Decimal("30.00")

    @pytest.mark.parametrize("adults", [1, 2])
    def test_within_base_occupancy_is_free(self, adults):
        room_type = RoomType(id=1, name="x", base_price=Decimal("100"), extra_adult_price=Decimal("40"))
        charge = calculate_extra_person_charge(
            room_type, PricingConfig(), adults=adults, children=0, nights=3
        )
        assert charge == Decimal("0.00")
