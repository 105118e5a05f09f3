"""Inventory repository - persistence for room_inventory rows.

Uses raw SQL with psycopg2 (no ORM).
Every mutation keeps available_rooms + booked_rooms == total_rooms and is
guarded in the UPDATE predicate so concurrent bookings cannot oversell.
"""

from datetime import date

from psycopg2.extensions import cursor as PgCursor

from stayrate.domain.models import InventoryDay
from stayrate.infra.db import fetchall, fetchone

_COLUMNS = """
    room_type_id, date, total_rooms, available_rooms, booked_rooms,
    price_override, stop_sell, min_stay
"""


def _row_to_inventory_day(row: tuple) -> InventoryDay:
    return InventoryDay(
        room_type_id=row[0],
        date=row[1],
        total_rooms=row[2],
        available_rooms=row[3],
        booked_rooms=row[4],
        price_override=row[5],
        stop_sell=bool(row[6]),
        min_stay=row[7],
    )


def get_inventory_day(
    cur: PgCursor,
    *,
    room_type_id: int,
    night_date: date,
) -> InventoryDay | None:
    """Fetch the inventory row for a single night, or None."""
    row = fetchone(
        cur,
        f"""
        SELECT {_COLUMNS}
        FROM room_inventory
        WHERE room_type_id = %s AND date = %s
        """,
        (room_type_id, night_date),
    )
    if row is None:
        return None
    return _row_to_inventory_day(row)


def get_inventory_range(
    cur: PgCursor,
    *,
    room_type_id: int,
    start: date,
    end: date,
) -> dict[date, InventoryDay]:
    """Fetch inventory rows for nights in [start, end), keyed by date.

    Args:
        cur: Database cursor.
        room_type_id: Room type identifier.
        start: First night (inclusive).
        end: Last night (exclusive), i.e. the check-out date.

    Returns:
        Dict mapping date -> InventoryDay. Missing nights are absent.
    """
    rows = fetchall(
        cur,
        f"""
        SELECT {_COLUMNS}
        FROM room_inventory
        WHERE room_type_id = %s
          AND date >= %s
          AND date < %s
        ORDER BY date
        """,
        (room_type_id, start, end),
    )
    return {row[1]: _row_to_inventory_day(row) for row in rows}


def deduct_night(
    cur: PgCursor,
    *,
    room_type_id: int,
    night_date: date,
    quantity: int = 1,
) -> bool:
    """Move rooms from available to booked for one night.

    Uses UPDATE with WHERE guard to prevent overbooking:
    available_rooms >= quantity AND NOT stop_sell

    Args:
        cur: Database cursor (within transaction).
        room_type_id: Room type identifier.
        night_date: The night date.
        quantity: Rooms to deduct.

    Returns:
        True if deducted, False if the guard rejected the update.
    """
    cur.execute(
        """
        UPDATE room_inventory
        SET available_rooms = available_rooms - %s,
            booked_rooms = booked_rooms + %s,
            updated_at = now()
        WHERE room_type_id = %s
          AND date = %s
          AND available_rooms >= %s
          AND NOT stop_sell
        RETURNING available_rooms
        """,
        (quantity, quantity, room_type_id, night_date, quantity),
    )
    return cur.fetchone() is not None


def restore_night(
    cur: PgCursor,
    *,
    room_type_id: int,
    night_date: date,
    quantity: int = 1,
) -> bool:
    """Move rooms from booked back to available for one night.

    Guarded by booked_rooms >= quantity.

    Returns:
        True if restored, False if the guard rejected the update.
    """
    cur.execute(
        """
        UPDATE room_inventory
        SET available_rooms = available_rooms + %s,
            booked_rooms = booked_rooms - %s,
            updated_at = now()
        WHERE room_type_id = %s
          AND date = %s
          AND booked_rooms >= %s
        RETURNING booked_rooms
        """,
        (quantity, quantity, room_type_id, night_date, quantity),
    )
    return cur.fetchone() is not None


def insert_inventory_day(
    cur: PgCursor,
    *,
    room_type_id: int,
    night_date: date,
    total_rooms: int,
) -> bool:
    """Insert a fresh inventory row with every room available.

    Uses ON CONFLICT DO NOTHING so existing rows are left untouched.

    Returns:
        True if a row was created, False if one already existed.
    """
    cur.execute(
        """
        INSERT INTO room_inventory (
            room_type_id, date, total_rooms, available_rooms, booked_rooms,
            price_override, stop_sell, min_stay
        )
        VALUES (%s, %s, %s, %s, 0, NULL, false, 1)
        ON CONFLICT (room_type_id, date) DO NOTHING
        """,
        (room_type_id, night_date, total_rooms, total_rooms),
    )
    return cur.rowcount == 1


def update_inventory_range(
    cur: PgCursor,
    *,
    room_type_id: int,
    start: date,
    end: date,
    fields: dict[str, object],
) -> int:
    """Bulk update inventory rows for dates in [start, end] (inclusive).

    Supported fields: total_rooms, price_override, stop_sell, min_stay.
    Changing total_rooms recalculates available_rooms from booked_rooms;
    rows whose booked_rooms exceed the new total are skipped.

    Returns:
        Number of rows updated.
    """
    allowed = ("price_override", "stop_sell", "min_stay")
    set_clauses: list[str] = []
    values: list[object] = []

    for name in allowed:
        if name in fields:
            set_clauses.append(f"{name} = %s")
            values.append(fields[name])

    guard = ""
    guard_values: list[object] = []
    if "total_rooms" in fields:
        total_rooms = fields["total_rooms"]
        set_clauses.append("total_rooms = %s")
        set_clauses.append("available_rooms = %s - booked_rooms")
        values.extend([total_rooms, total_rooms])
        guard = " AND booked_rooms <= %s"
        guard_values.append(total_rooms)

    if not set_clauses:
        return 0

    set_clauses.append("updated_at = now()")
    cur.execute(
        f"""
        UPDATE room_inventory
        SET {", ".join(set_clauses)}
        WHERE room_type_id = %s
          AND date >= %s
          AND date <= %s{guard}
        """,
        (*values, room_type_id, start, end, *guard_values),
    )
    return cur.rowcount

