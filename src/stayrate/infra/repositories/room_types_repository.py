"""Room types repository - read access to room_types."""

from psycopg2.extensions import cursor as PgCursor

from stayrate.domain.models import RoomType
from stayrate.infra.db import fetchall, fetchone

_COLUMNS = """
    id, name, base_price, base_occupancy, max_occupancy,
    extra_adult_price, extra_child_price, status
"""


def _row_to_room_type(row: tuple) -> RoomType:
    return RoomType(
        id=row[0],
        name=row[1],
        base_price=row[2],
        base_occupancy=row[3],
        max_occupancy=row[4],
        extra_adult_price=row[5],
        extra_child_price=row[6],
        status=row[7],
    )


def get_room_type(cur: PgCursor, room_type_id: int) -> RoomType | None:
    """Retrieve a room type by ID, or None."""
    row = fetchone(cur, f"SELECT {_COLUMNS} FROM room_types WHERE id = %s", (room_type_id,))
    if row is None:
        return None
    return _row_to_room_type(row)


def list_active_room_types(cur: PgCursor) -> list[RoomType]:
    """All active room types, ordered by id."""
    rows = fetchall(
        cur, f"SELECT {_COLUMNS} FROM room_types WHERE status = 'active' ORDER BY id"
    )
    return [_row_to_room_type(row) for row in rows]
