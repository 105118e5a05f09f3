"""Rate restrictions repository - read access to rate_restrictions."""

from datetime import date

from psycopg2.extensions import cursor as PgCursor

from stayrate.domain.models import RateRestriction


def get_restrictions_for_range(
    cur: PgCursor,
    *,
    room_type_id: int,
    start: date,
    end: date,
) -> list[RateRestriction]:
    """Active restrictions for a room type overlapping [start, end] (inclusive).

    end is inclusive so closed-to-departure rules on the check-out day match.
    """
    cur.execute(
        """
        SELECT id, room_type_id, restriction_type, date_from, date_to,
               rate_plan_id, value, channel, days_of_week, is_active
        FROM rate_restrictions
        WHERE is_active
          AND room_type_id = %s
          AND date_from <= %s
          AND date_to >= %s
        ORDER BY id
        """,
        (room_type_id, end, start),
    )
    return [
        RateRestriction(
            id=r[0],
            room_type_id=r[1],
            restriction_type=r[2],
            date_from=r[3],
            date_to=r[4],
            rate_plan_id=r[5],
            value=r[6],
            channel=r[7],
            days_of_week=r[8],
            is_active=bool(r[9]),
        )
        for r in cur.fetchall()
    ]
