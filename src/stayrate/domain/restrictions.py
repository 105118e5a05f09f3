"""Rate restriction evaluation for a stay.

Restriction types:
- min_stay / max_stay: nights bound, evaluated on the arrival night
- cta: closed to arrival on the check-in date
- ctd: closed to departure on the check-out date
- stop_sell: no sale on any night of the stay
"""

from datetime import date, timedelta
from typing import Iterable

from stayrate.domain.models import RateRestriction

MIN_STAY = "min_stay"
MAX_STAY = "max_stay"
CTA = "cta"
CTD = "ctd"
STOP_SELL = "stop_sell"


def find_violations(
    restrictions: Iterable[RateRestriction],
    *,
    check_in: date,
    check_out: date,
    rate_plan_id: int | None = None,
    channel: str | None = None,
) -> list[dict]:
    """Return the restrictions blocking a stay (empty list = allowed).

    Each violation is {"restriction_id", "type", "date"}.
    """
    nights = (check_out - check_in).days
    last_night = check_out - timedelta(days=1)
    violations: list[dict] = []

    for r in restrictions:
        if not r.is_active:
            continue
        if not (r.applies_to_rate_plan(rate_plan_id) and r.applies_to_channel(channel)):
            continue

        hit: date | None = None
        if r.restriction_type == MIN_STAY:
            if r.applies_to_date(check_in) and r.value and nights < r.value:
                hit = check_in
        elif r.restriction_type == MAX_STAY:
            if r.applies_to_date(check_in) and r.value and nights > r.value:
                hit = check_in
        elif r.restriction_type == CTA:
            if r.applies_to_date(check_in):
                hit = check_in
        elif r.restriction_type == CTD:
            if r.applies_to_date(check_out):
                hit = check_out
        elif r.restriction_type == STOP_SELL:
            current = check_in
            while current <= last_night:
                if r.applies_to_date(current):
                    hit = current
                    break
                current += timedelta(days=1)

        if hit is not None:
            violations.append(
                {"restriction_id": r.id, "type": r.restriction_type, "date": hit}
            )

    return violations
