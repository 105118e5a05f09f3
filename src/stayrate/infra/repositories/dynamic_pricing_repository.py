"""Dynamic pricing repository - occupancy rules, day-of-week rules, event overrides."""

from datetime import date

from psycopg2.extensions import cursor as PgCursor

from stayrate.domain.models import DowRule, EventOverride, OccupancyRule


def get_active_occupancy_rules(cur: PgCursor, room_type_id: int) -> list[OccupancyRule]:
    """Active occupancy rules for a room type (or all), threshold ascending."""
    cur.execute(
        """
        SELECT id, threshold_percent, modifier_type, modifier_value,
               room_type_id, priority, status
        FROM occupancy_rules
        WHERE status = 'active'
          AND (room_type_id = %s OR room_type_id IS NULL)
        ORDER BY threshold_percent ASC, priority DESC
        """,
        (room_type_id,),
    )
    return [
        OccupancyRule(
            id=r[0],
            threshold_percent=r[1],
            modifier_type=r[2],
            modifier_value=r[3],
            room_type_id=r[4],
            priority=r[5],
            status=r[6],
        )
        for r in cur.fetchall()
    ]


def get_active_dow_rules(cur: PgCursor, room_type_id: int) -> list[DowRule]:
    """Active day-of-week rules for a room type (or all)."""
    cur.execute(
        """
        SELECT id, day_of_week, modifier_type, modifier_value, room_type_id, status
        FROM dow_rules
        WHERE status = 'active'
          AND (room_type_id = %s OR room_type_id IS NULL)
        ORDER BY day_of_week, id
        """,
        (room_type_id,),
    )
    return [
        DowRule(
            id=r[0],
            day_of_week=r[1],
            modifier_type=r[2],
            modifier_value=r[3],
            room_type_id=r[4],
            status=r[5],
        )
        for r in cur.fetchall()
    ]


def get_active_event_overrides(
    cur: PgCursor,
    *,
    room_type_id: int,
    start: date,
    end: date,
) -> list[EventOverride]:
    """Active event overrides overlapping [start, end], highest priority first."""
    cur.execute(
        """
        SELECT id, name, start_date, end_date, modifier_type, modifier_value,
               room_type_id, priority, status
        FROM event_overrides
        WHERE status = 'active'
          AND start_date <= %s
          AND end_date >= %s
          AND (room_type_id = %s OR room_type_id IS NULL)
        ORDER BY priority DESC, id ASC
        """,
        (end, start, room_type_id),
    )
    return [
        EventOverride(
            id=r[0],
            name=r[1],
            start_date=r[2],
            end_date=r[3],
            modifier_type=r[4],
            modifier_value=r[5],
            room_type_id=r[6],
            priority=r[7],
            status=r[8],
        )
        for r in cur.fetchall()
    ]
