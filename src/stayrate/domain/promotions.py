"""Promo code validation and discount calculation."""

from datetime import date
from decimal import Decimal

from psycopg2.extensions import cursor as PgCursor

from stayrate.domain.models import PromoCode
from stayrate.domain.modifiers import FIXED, PERCENTAGE
from stayrate.domain.money import ZERO, percent_of, round_money
from stayrate.infra.repositories.promo_codes_repository import increment_promo_usage
from stayrate.observability.logging import get_logger

logger = get_logger(__name__)


class PromoCodeInvalid(Exception):
    """Raised when a promo code cannot be applied to a stay."""

    def __init__(self, reason_code: str, meta: dict | None = None):
        self.reason_code = reason_code
        self.meta = meta or {}
        super().__init__(f"Promo code invalid: {reason_code}")


def validate_promo_code(
    promo: PromoCode,
    *,
    subtotal: Decimal,
    nights: int,
    room_type_id: int,
    today: date,
) -> None:
    """Check a promo code against a stay.

    Raises:
        PromoCodeInvalid: with reason_code promo_inactive, promo_expired,
            promo_exhausted, promo_min_nights, promo_min_amount or
            promo_room_type.
    """
    if not promo.is_active:
        raise PromoCodeInvalid("promo_inactive", {"code": promo.code})
    if promo.is_expired(today):
        raise PromoCodeInvalid("promo_expired", {"code": promo.code})
    if not promo.has_uses_remaining():
        raise PromoCodeInvalid("promo_exhausted", {"code": promo.code})
    if promo.min_nights > 0 and nights < promo.min_nights:
        raise PromoCodeInvalid(
            "promo_min_nights", {"code": promo.code, "min_nights": promo.min_nights}
        )
    if promo.min_amount > 0 and subtotal < promo.min_amount:
        raise PromoCodeInvalid(
            "promo_min_amount", {"code": promo.code, "min_amount": str(promo.min_amount)}
        )
    if not promo.applies_to_room_type(room_type_id):
        raise PromoCodeInvalid("promo_room_type", {"code": promo.code})


def calculate_discount(promo: PromoCode, subtotal: Decimal) -> Decimal:
    """Discount for a subtotal.

    Percentage or fixed, rounded; never more than the subtotal and
    clamped to max_discount when one is set.
    """
    if promo.discount_type == PERCENTAGE:
        discount = percent_of(subtotal, promo.discount_value)
    elif promo.discount_type == FIXED:
        discount = round_money(promo.discount_value)
    else:
        discount = ZERO

    discount = min(discount, subtotal)

    if promo.max_discount > 0 and discount > promo.max_discount:
        discount = round_money(promo.max_discount)

    return max(ZERO, discount)


def record_promo_usage(cur: PgCursor, promo: PromoCode) -> bool:
    """Count one use of a promo code once its booking is confirmed.

    Returns:
        False if the code ran out of uses in the meantime.
    """
    recorded = increment_promo_usage(cur, promo.id)
    if not recorded:
        logger.warning(
            "Promo usage not recorded - limit reached",
            extra={"extra_fields": {"promo_id": promo.id, "code": promo.code}},
        )
    return recorded
