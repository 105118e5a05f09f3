"""Seasonal rates repository - read access to seasonal_rates."""

from datetime import date

from psycopg2.extensions import cursor as PgCursor

from stayrate.domain.models import SeasonalRate


def _row_to_seasonal_rate(row: tuple) -> SeasonalRate:
    return SeasonalRate(
        id=row[0],
        name=row[1],
        room_type_id=row[2],
        rate_plan_id=row[3],
        start_date=row[4],
        end_date=row[5],
        modifier_type=row[6],
        modifier_value=row[7],
        priority=row[8],
        days_of_week=tuple(int(d) for d in (row[9] or ())),
        status=row[10],
    )


def get_seasonal_rates_for_range(
    cur: PgCursor,
    *,
    room_type_id: int,
    rate_plan_id: int | None,
    start: date,
    end: date,
) -> list[SeasonalRate]:
    """Active seasonal rates overlapping [start, end], highest priority first.

    Preloaded once per stay so nightly pricing does not query per night.
    Rows without a room type or rate plan apply to all of them.
    """
    conditions = [
        "status = 'active'",
        "start_date <= %s",
        "end_date >= %s",
        "(room_type_id = %s OR room_type_id IS NULL)",
    ]
    params: list[object] = [end, start, room_type_id]

    if rate_plan_id is not None:
        conditions.append("(rate_plan_id = %s OR rate_plan_id IS NULL)")
        params.append(rate_plan_id)
    else:
        conditions.append("rate_plan_id IS NULL")

    cur.execute(
        f"""
        SELECT id, name, room_type_id, rate_plan_id, start_date, end_date,
               modifier_type, modifier_value, priority, days_of_week, status
        FROM seasonal_rates
        WHERE {" AND ".join(conditions)}
        ORDER BY priority DESC, id ASC
        """,
        params,
    )
    return [_row_to_seasonal_rate(row) for row in cur.fetchall()]
