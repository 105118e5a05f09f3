"""Time utilities for consistent date handling."""

from datetime import date, datetime, timedelta, timezone
from typing import Iterator


def utc_now() -> datetime:
    """Return current UTC timestamp (timezone-aware)."""
    return datetime.now(timezone.utc)


def utc_today() -> date:
    """Return the current UTC calendar date."""
    return utc_now().date()


def iter_nights(check_in: date, check_out: date) -> Iterator[date]:
    """Yield each night of a stay: check_in up to (not including) check_out."""
    current = check_in
    while current < check_out:
        yield current
        current += timedelta(days=1)
