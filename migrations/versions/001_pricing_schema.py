"""Pricing and availability schema (SQL-only).

Revision ID: 001_pricing_schema
Revises:
Create Date: 2026-10-19
"""

from __future__ import annotations

from pathlib import Path

from alembic import op


# revision identifiers, used by Alembic.
revision = "001_pricing_schema"
down_revision = None
branch_labels = None
depends_on = None

_TABLES = (
    "settings",
    "rate_restrictions",
    "taxes",
    "promo_codes",
    "event_overrides",
    "dow_rules",
    "occupancy_rules",
    "seasonal_rates",
    "rate_plans",
    "room_inventory",
    "room_types",
)


def _read_sql() -> str:
    sql_path = Path(__file__).resolve().parents[1] / "sql" / "001_pricing_schema.sql"
    return sql_path.read_text(encoding="utf-8")


def upgrade() -> None:
    conn = op.get_bind()
    conn.exec_driver_sql(_read_sql())


def downgrade() -> None:
    conn = op.get_bind()
    for table in _TABLES:
        conn.exec_driver_sql(f"DROP TABLE IF EXISTS {table} CASCADE;")
