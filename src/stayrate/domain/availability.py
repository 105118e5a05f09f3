"""Availability domain logic - checks and transactional inventory changes.

Implements safe inventory deduction with zero overbooking guarantee.
Every night of a stay is updated in a single transaction with guards;
a failed guard on any night rolls back the whole stay.
"""

from datetime import date
from decimal import Decimal

from psycopg2.extensions import cursor as PgCursor

from stayrate.domain.money import ZERO, round_money, to_decimal
from stayrate.domain.restrictions import find_violations
from stayrate.infra.db import txn
from stayrate.infra.repositories.inventory_repository import (
    deduct_night,
    get_inventory_range,
    restore_night,
)
from stayrate.infra.repositories.rate_restrictions_repository import (
    get_restrictions_for_range,
)
from stayrate.infra.repositories.room_types_repository import (
    get_room_type,
    list_active_room_types,
)
from stayrate.infra.time import iter_nights
from stayrate.observability.logging import get_logger

logger = get_logger(__name__)


class InventoryRaceError(Exception):
    """Raised when a night could not be deducted (sold out or stop-sell)."""

    def __init__(self, room_type_id: int, night: date):
        self.room_type_id = room_type_id
        self.night = night
        super().__init__(f"Inventory unavailable for room type {room_type_id} on {night}")


class InventoryConsistencyError(Exception):
    """Raised when restoring more rooms than are booked for a night."""

    def __init__(self, room_type_id: int, night: date):
        self.room_type_id = room_type_id
        self.night = night
        super().__init__(f"Cannot restore room type {room_type_id} on {night}: not booked")


def _validate_range(check_in: date, check_out: date, quantity: int) -> None:
    if check_in >= check_out:
        raise ValueError("check_in must be before check_out")
    if quantity < 1:
        raise ValueError("quantity must be at least 1")


def check_availability(
    cur: PgCursor,
    *,
    room_type_id: int,
    check_in: date,
    check_out: date,
    quantity: int = 1,
    rate_plan_id: int | None = None,
    channel: str | None = None,
) -> bool:
    """Check whether a stay can be sold. Read-only.

    Every night in [check_in, check_out) needs an inventory row with
    enough rooms, no stop-sell and a min_stay the stay satisfies. Active
    rate restrictions (min/max stay, CTA, CTD, stop-sell) must not block
    the stay either.

    Returns:
        True if sellable, False otherwise (including invalid ranges).
    """
    if check_in >= check_out or quantity < 1:
        return False

    nights = (check_out - check_in).days
    inventory = get_inventory_range(
        cur, room_type_id=room_type_id, start=check_in, end=check_out
    )

    for night in iter_nights(check_in, check_out):
        day = inventory.get(night)
        if day is None or not day.has_availability(quantity):
            return False
        if day.min_stay > nights:
            return False

    restrictions = get_restrictions_for_range(
        cur, room_type_id=room_type_id, start=check_in, end=check_out
    )
    violations = find_violations(
        restrictions,
        check_in=check_in,
        check_out=check_out,
        rate_plan_id=rate_plan_id,
        channel=channel,
    )
    return not violations


def deduct_inventory(
    *,
    room_type_id: int,
    check_in: date,
    check_out: date,
    quantity: int = 1,
    cur: PgCursor | None = None,
) -> int:
    """Book rooms for every night of a stay.

    For each night (check_in to check_out-1, date asc) moves quantity rooms
    from available to booked with a guarded UPDATE. If any night fails the
    guard, InventoryRaceError is raised and the transaction rolls back, so
    no night of the stay stays deducted.

    When cur is given the caller owns the transaction and must let the
    exception propagate to its own rollback.

    Returns:
        Number of nights deducted.

    Raises:
        ValueError: If check_in >= check_out or quantity < 1.
        InventoryRaceError: If any night is unavailable.
    """
    _validate_range(check_in, check_out, quantity)

    def _do(c: PgCursor) -> int:
        count = 0
        for night in iter_nights(check_in, check_out):
            if not deduct_night(
                c, room_type_id=room_type_id, night_date=night, quantity=quantity
            ):
                logger.warning(
                    "Inventory deduction failed - rolling back stay",
                    extra={
                        "extra_fields": {
                            "room_type_id": room_type_id,
                            "night": night.isoformat(),
                            "quantity": quantity,
                        }
                    },
                )
                raise InventoryRaceError(room_type_id, night)
            count += 1
        return count

    if cur is not None:
        nights = _do(cur)
    else:
        with txn() as c:
            nights = _do(c)

    logger.info(
        "Inventory deducted",
        extra={
            "extra_fields": {
                "room_type_id": room_type_id,
                "check_in": check_in.isoformat(),
                "check_out": check_out.isoformat(),
                "quantity": quantity,
                "nights": nights,
            }
        },
    )
    return nights


def restore_inventory(
    *,
    room_type_id: int,
    check_in: date,
    check_out: date,
    quantity: int = 1,
    cur: PgCursor | None = None,
) -> int:
    """Release rooms for every night of a stay (cancellation path).

    Inverse of deduct_inventory, guarded by booked_rooms >= quantity.

    Returns:
        Number of nights restored.

    Raises:
        ValueError: If check_in >= check_out or quantity < 1.
        InventoryConsistencyError: If any night has fewer booked rooms
            than quantity. The whole restore rolls back.
    """
    _validate_range(check_in, check_out, quantity)

    def _do(c: PgCursor) -> int:
        count = 0
        for night in iter_nights(check_in, check_out):
            if not restore_night(
                c, room_type_id=room_type_id, night_date=night, quantity=quantity
            ):
                logger.warning(
                    "Inventory restore failed - rolling back stay",
                    extra={
                        "extra_fields": {
                            "room_type_id": room_type_id,
                            "night": night.isoformat(),
                            "quantity": quantity,
                        }
                    },
                )
                raise InventoryConsistencyError(room_type_id, night)
            count += 1
        return count

    if cur is not None:
        nights = _do(cur)
    else:
        with txn() as c:
            nights = _do(c)

    logger.info(
        "Inventory restored",
        extra={
            "extra_fields": {
                "room_type_id": room_type_id,
                "check_in": check_in.isoformat(),
                "check_out": check_out.isoformat(),
                "quantity": quantity,
                "nights": nights,
            }
        },
    )
    return nights


def search_availability(
    cur: PgCursor,
    *,
    check_in: date,
    check_out: date,
    guests: int = 1,
    room_type_id: int | None = None,
) -> list[dict]:
    """List room types sellable for a stay, cheapest first.

    Only active room types whose max_occupancy fits the guests and that
    have a room on every night (with a min_stay the stay satisfies) are
    returned. Nightly rates use the
    inventory price override when set, otherwise the base price, plus the
    extra-adult price for guests above base occupancy.

    Returns:
        List of dicts:
        {
            "room_type_id": int,
            "name": str,
            "available_rooms": int,  # bottleneck across the stay
            "nightly_rates": [{"date": date, "rate": Decimal}, ...],
            "total_price": Decimal,
            "average_rate": Decimal,
        }
    """
    if check_in >= check_out or guests < 1:
        return []

    nights = (check_out - check_in).days

    if room_type_id is not None:
        room_type = get_room_type(cur, room_type_id)
        candidates = [room_type] if room_type and room_type.is_active() else []
    else:
        candidates = list_active_room_types(cur)

    results: list[dict] = []
    for room_type in candidates:
        if guests > room_type.max_occupancy:
            continue

        inventory = get_inventory_range(
            cur, room_type_id=room_type.id, start=check_in, end=check_out
        )
        days = [inventory.get(night) for night in iter_nights(check_in, check_out)]
        if any(
            day is None or not day.has_availability() or day.min_stay > nights
            for day in days
        ):
            continue

        extra_adults = max(0, guests - room_type.base_occupancy)
        extra = to_decimal(room_type.extra_adult_price) * extra_adults

        nightly_rates = []
        for day in days:
            base = day.price_override if day.price_override is not None else room_type.base_price
            nightly_rates.append({"date": day.date, "rate": round_money(to_decimal(base) + extra)})

        total = round_money(sum((n["rate"] for n in nightly_rates), ZERO))
        results.append(
            {
                "room_type_id": room_type.id,
                "name": room_type.name,
                "available_rooms": min(day.available_rooms for day in days),
                "nightly_rates": nightly_rates,
                "total_price": total,
                "average_rate": round_money(total / Decimal(nights)),
            }
        )

    results.sort(key=lambda r: (r["total_price"], r["room_type_id"]))
    return results
