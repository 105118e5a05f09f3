"""Unit tests for rate plan SQL (mocked cursor)."""

from datetime import date
from decimal import Decimal
from unittest.mock import MagicMock

import pytest

from stayrate.infra.repositories.rate_plans_repository import get_default_rate_plan

CHECK_IN = date(2025, 7, 14)


@pytest.fixture
def cur():
    """Mocked psycopg2 cursor."""
    return MagicMock()


def _sql(cur) -> str:
    return " ".join(cur.execute.call_args[0][0].split())


class TestGetDefaultRatePlan:
    def test_filters_by_validity_window(self, cur):
        cur.fetchone.return_value = None

        get_default_rate_plan(cur, 1, CHECK_IN)

        sql = _sql(cur)
        assert "AND (valid_from IS NULL OR valid_from <= %s)" in sql
        assert "AND (valid_until IS NULL OR valid_until >= %s)" in sql
        assert cur.execute.call_args[0][1] == (1, CHECK_IN, CHECK_IN)

    def test_room_type_plans_ordered_first(self, cur):
        cur.fetchone.return_value = None

        get_default_rate_plan(cur, 1, CHECK_IN)

        assert (
            "ORDER BY (room_type_id IS NULL) ASC, is_default DESC, priority ASC, id ASC"
            in _sql(cur)
        )

    def test_maps_row(self, cur):
        cur.fetchone.return_value = (
            3, "BAR", "Best available", 1, "percentage", Decimal("-10"), "room_only",
            1, 0, True, 0, "active", date(2025, 7, 1), date(2025, 7, 31),
        )

        plan = get_default_rate_plan(cur, 1, CHECK_IN)

        assert plan.id == 3
        assert plan.is_default is True
        assert plan.is_valid_for_date(CHECK_IN)

    def test_none_when_no_plan_valid(self, cur):
        cur.fetchone.return_value = None
        assert get_default_rate_plan(cur, 1, CHECK_IN) is None
