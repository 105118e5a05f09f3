"""Pricing configuration.

Provides load_pricing_config() which builds an explicit PricingConfig that is
passed into the pricing calculator, merging the key-value `settings` table
with environment variable fallbacks.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any

from psycopg2.extensions import cursor as PgCursor

from .db import fetchall, txn

# settings key -> (PricingConfig field, environment variable)
_SETTING_KEYS: dict[str, tuple[str, str]] = {
    "currency.default": ("currency", "STAYRATE_CURRENCY"),
    "currency.exchange_rate": ("exchange_rate", "STAYRATE_EXCHANGE_RATE"),
    "pricing.tax_rate": ("tax_rate", "STAYRATE_TAX_RATE"),
    "pricing.service_fee_rate": ("service_fee_rate", "STAYRATE_SERVICE_FEE_RATE"),
    "pricing.extra_adult_charge": ("extra_adult_charge", "STAYRATE_EXTRA_ADULT_CHARGE"),
    "pricing.extra_child_charge": ("extra_child_charge", "STAYRATE_EXTRA_CHILD_CHARGE"),
}


@dataclass(frozen=True)
class PricingConfig:
    """Settings consumed by the pricing calculator.

    Attributes:
        currency: ISO currency code reported on quotes.
        exchange_rate: Display exchange rate reported on quotes.
        tax_rate: Default tax percentage, used when no tax rows apply.
        service_fee_rate: Service fee percentage of the room subtotal.
        extra_adult_charge: Per-night charge per adult above base occupancy,
                            when the room type does not set its own.
        extra_child_charge: Per-night charge per child, when the room type
                            does not set its own.
    """

    currency: str = "USD"
    exchange_rate: Decimal = Decimal("1")
    tax_rate: Decimal = Decimal("0")
    service_fee_rate: Decimal = Decimal("0")
    extra_adult_charge: Decimal = Decimal("0")
    extra_child_charge: Decimal = Decimal("0")


def load_pricing_config(cur: PgCursor | None = None) -> PricingConfig:
    """Load pricing configuration.

    Priority:
    1. Database config (settings table)
    2. Environment variable fallbacks
    3. PricingConfig defaults

    Args:
        cur: Optional cursor; a short transaction is opened when omitted.

    Returns:
        PricingConfig with merged settings.
    """
    if cur is not None:
        db_values = _load_from_db(cur)
    else:
        with txn() as c:
            db_values = _load_from_db(c)
    return _merge_with_env(db_values)


def _load_from_db(cur: PgCursor) -> dict[str, str]:
    """Load pricing-related rows from the settings table."""
    rows = fetchall(
        cur,
        "SELECT key, value FROM settings WHERE key = ANY(%s)",
        (list(_SETTING_KEYS),),
    )
    return {str(key): str(value) for key, value in rows if value is not None}


def _merge_with_env(db_values: dict[str, str]) -> PricingConfig:
    """Merge database values with environment fallbacks."""
    values: dict[str, Any] = {}
    for key, (field_name, env_name) in _SETTING_KEYS.items():
        raw = db_values.get(key) or os.environ.get(env_name)
        if raw is None or raw.strip() == "":
            continue
        if field_name == "currency":
            values[field_name] = raw.strip().upper()
            continue
        try:
            values[field_name] = Decimal(raw.strip())
        except InvalidOperation as e:
            raise ValueError(f"Invalid numeric setting {key}={raw!r}") from e

    return PricingConfig(**values)
