"""Promo codes repository - lookup and usage counting."""

from psycopg2.extensions import cursor as PgCursor

from stayrate.domain.models import PromoCode


def find_promo_code(cur: PgCursor, code: str) -> PromoCode | None:
    """Find a promo code by its code (case-insensitive), or None."""
    cur.execute(
        """
        SELECT id, code, discount_type, discount_value, max_discount,
               min_amount, min_nights, max_uses, used_count,
               valid_from, valid_to, applicable_room_types, is_active
        FROM promo_codes
        WHERE upper(code) = upper(%s)
        """,
        (code.strip(),),
    )
    row = cur.fetchone()
    if row is None:
        return None

    return PromoCode(
        id=row[0],
        code=row[1],
        discount_type=row[2],
        discount_value=row[3],
        max_discount=row[4] or 0,
        min_amount=row[5] or 0,
        min_nights=row[6] or 0,
        max_uses=row[7] or 0,
        used_count=row[8] or 0,
        valid_from=row[9],
        valid_to=row[10],
        applicable_room_types=tuple(int(x) for x in (row[11] or ())),
        is_active=bool(row[12]),
    )


def increment_promo_usage(cur: PgCursor, promo_id: int) -> bool:
    """Increment used_count, guarded by max_uses (0 = unlimited).

    Returns:
        True if incremented, False if the code is exhausted or missing.
    """
    cur.execute(
        """
        UPDATE promo_codes
        SET used_count = used_count + 1, updated_at = now()
        WHERE id = %s
          AND (max_uses = 0 OR used_count < max_uses)
        RETURNING used_count
        """,
        (promo_id,),
    )
    return cur.fetchone() is not None
