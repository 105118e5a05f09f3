"""Seasonal rate selection.

Several seasonal rates may cover the same night. Only one is applied: the
active, matching rate with the highest priority. Equal priorities resolve
to the lowest id so the outcome never depends on SQL row order.
"""

from datetime import date
from typing import Iterable

from stayrate.domain.models import SeasonalRate


def select_seasonal_rate(
    rates: Iterable[SeasonalRate],
    night: date,
    rate_plan_id: int | None = None,
) -> SeasonalRate | None:
    """Pick the seasonal rate that wins for a night, or None."""
    candidates = [
        r for r in rates if r.applies_to_date(night) and r.applies_to_rate_plan(rate_plan_id)
    ]
    if not candidates:
        return None
    return min(candidates, key=lambda r: (-r.priority, r.id))
