"""Rate plans repository - read access to rate_plans."""

from datetime import date

from psycopg2.extensions import cursor as PgCursor

from stayrate.domain.models import RatePlan
from stayrate.infra.db import fetchone

_COLUMNS = """
    id, code, name, room_type_id, modifier_type, modifier_value, meal_plan,
    min_stay, max_stay, is_default, priority, status, valid_from, valid_until
"""


def _row_to_rate_plan(row: tuple) -> RatePlan:
    return RatePlan(
        id=row[0],
        code=row[1],
        name=row[2],
        room_type_id=row[3],
        modifier_type=row[4],
        modifier_value=row[5],
        meal_plan=row[6],
        min_stay=row[7],
        max_stay=row[8],
        is_default=bool(row[9]),
        priority=row[10],
        status=row[11],
        valid_from=row[12],
        valid_until=row[13],
    )


def get_rate_plan(cur: PgCursor, rate_plan_id: int) -> RatePlan | None:
    """Retrieve a rate plan by ID, or None."""
    row = fetchone(cur, f"SELECT {_COLUMNS} FROM rate_plans WHERE id = %s", (rate_plan_id,))
    if row is None:
        return None
    return _row_to_rate_plan(row)


def get_default_rate_plan(
    cur: PgCursor, room_type_id: int, on_date: date
) -> RatePlan | None:
    """Default active plan for a room type, valid on on_date.

    Plans whose valid_from / valid_until window excludes on_date are skipped.

    Plans bound to the room type win over plans for all room types;
    then is_default, then lowest priority number, then lowest id.
    """
    row = fetchone(
        cur,
        f"""
        SELECT {_COLUMNS}
        FROM rate_plans
        WHERE status = 'active'
          AND (room_type_id = %s OR room_type_id IS NULL)
          AND (valid_from IS NULL OR valid_from <= %s)
          AND (valid_until IS NULL OR valid_until >= %s)
        ORDER BY (room_type_id IS NULL) ASC, is_default DESC, priority ASC, id ASC
        LIMIT 1
        """,
        (room_type_id, on_date, on_date),
    )
    if row is None:
        return None
    return _row_to_rate_plan(row)
