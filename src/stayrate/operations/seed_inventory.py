"""Seed inventory rows ahead of time for every active room type.

Usage:
    DATABASE_URL=... SEED_TOTAL_ROOMS=12 python -m stayrate.operations.seed_inventory

Idempotent: nights that already have a row are left untouched.
"""

import os
from datetime import timedelta

from psycopg2.extensions import cursor as PgCursor

from stayrate.domain.inventory import initialize_inventory
from stayrate.infra.db import txn
from stayrate.infra.repositories.room_types_repository import list_active_room_types
from stayrate.infra.time import utc_today


def env(name: str, default: str | None = None) -> str:
    v = os.getenv(name, default)
    if v is None or v.strip() == "":
        raise RuntimeError(f"Missing env var: {name}")
    return v


def seed_inventory(
    days_ahead: int = 365,
    *,
    total_rooms: int,
    cur: PgCursor | None = None,
) -> dict[int, int]:
    """Create inventory for days_ahead nights starting today.

    The last night seeded is today + days_ahead - 1, so the default covers
    exactly 365 nights.

    Returns:
        Dict room_type_id -> rows created.
    """
    if days_ahead < 1:
        raise ValueError("days_ahead must be at least 1")

    start = utc_today()
    end = start + timedelta(days=days_ahead - 1)

    def _do(c: PgCursor) -> dict[int, int]:
        return {
            room_type.id: initialize_inventory(
                c,
                room_type_id=room_type.id,
                total_rooms=total_rooms,
                start=start,
                end=end,
            )
            for room_type in list_active_room_types(c)
        }

    if cur is not None:
        return _do(cur)
    with txn() as c:
        return _do(c)


def main() -> int:
    env("DATABASE_URL")
    days_ahead = int(env("SEED_DAYS_AHEAD", "365"))
    total_rooms = int(env("SEED_TOTAL_ROOMS", "10"))

    created = seed_inventory(days_ahead, total_rooms=total_rooms)

    print(
        "seed ok:",
        {
            "days_ahead": days_ahead,
            "total_rooms": total_rooms,
            "created": created,
        },
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
