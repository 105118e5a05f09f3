"""Taxes repository - read access to active taxes."""

from psycopg2.extensions import cursor as PgCursor

from stayrate.domain.models import Tax


def get_active_taxes(cur: PgCursor) -> list[Tax]:
    """Active taxes in application order."""
    cur.execute(
        """
        SELECT id, name, rate, type, applies_to, is_active, sort_order
        FROM taxes
        WHERE is_active
        ORDER BY sort_order ASC, id ASC
        """
    )
    return [
        Tax(
            id=r[0],
            name=r[1],
            rate=r[2],
            type=r[3],
            applies_to=r[4],
            is_active=bool(r[5]),
            sort_order=r[6],
        )
        for r in cur.fetchall()
    ]
