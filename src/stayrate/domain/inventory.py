"""Inventory administration - creating and bulk-editing inventory rows."""

from datetime import date, timedelta
from decimal import Decimal

from psycopg2.extensions import cursor as PgCursor

from stayrate.domain.money import round_money, to_decimal
from stayrate.infra.repositories.inventory_repository import (
    insert_inventory_day,
    update_inventory_range,
)
from stayrate.observability.logging import get_logger

logger = get_logger(__name__)

# Distinguishes "leave unchanged" from "set to NULL" for price_override.
_UNSET = object()


def initialize_inventory(
    cur: PgCursor,
    *,
    room_type_id: int,
    total_rooms: int,
    start: date,
    end: date,
) -> int:
    """Create inventory rows for [start, end] (inclusive) with all rooms free.

    Existing rows are left untouched.

    Returns:
        Number of rows created.

    Raises:
        ValueError: If start > end or total_rooms < 0.
    """
    if start > end:
        raise ValueError("start must not be after end")
    if total_rooms < 0:
        raise ValueError("total_rooms must not be negative")

    created = 0
    current = start
    while current <= end:
        if insert_inventory_day(
            cur, room_type_id=room_type_id, night_date=current, total_rooms=total_rooms
        ):
            created += 1
        current += timedelta(days=1)

    logger.info(
        "Inventory initialized",
        extra={
            "extra_fields": {
                "room_type_id": room_type_id,
                "start": start.isoformat(),
                "end": end.isoformat(),
                "created": created,
            }
        },
    )
    return created


def bulk_update_inventory(
    cur: PgCursor,
    *,
    room_type_id: int,
    start: date,
    end: date,
    total_rooms: int | None = None,
    price_override: Decimal | None | object = _UNSET,
    stop_sell: bool | None = None,
    min_stay: int | None = None,
) -> int:
    """Update inventory rows for [start, end] (inclusive).

    Only the given fields change. price_override=None clears the override;
    leaving it out keeps the current one. Changing total_rooms recalculates
    available_rooms from booked_rooms and skips rows that have more rooms
    booked than the new total.

    Returns:
        Number of rows updated.
    """
    if start > end:
        raise ValueError("start must not be after end")

    fields: dict[str, object] = {}
    if total_rooms is not None:
        if total_rooms < 0:
            raise ValueError("total_rooms must not be negative")
        fields["total_rooms"] = total_rooms
    if price_override is not _UNSET:
        fields["price_override"] = (
            None if price_override is None else round_money(to_decimal(price_override))
        )
    if stop_sell is not None:
        fields["stop_sell"] = bool(stop_sell)
    if min_stay is not None:
        if min_stay < 1:
            raise ValueError("min_stay must be at least 1")
        fields["min_stay"] = min_stay

    if not fields:
        return 0

    updated = update_inventory_range(
        cur, room_type_id=room_type_id, start=start, end=end, fields=fields
    )
    logger.info(
        "Inventory updated",
        extra={
            "extra_fields": {
                "room_type_id": room_type_id,
                "start": start.isoformat(),
                "end": end.isoformat(),
                "fields": sorted(fields),
                "updated": updated,
            }
        },
    )
    return updated
