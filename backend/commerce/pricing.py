from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Optional

from django.conf import settings

PRICE_UNIT_MINOR = "minor"   # cents
PRICE_UNIT_MAJOR = "major"
PRICE_UNITS = (PRICE_UNIT_MINOR, PRICE_UNIT_MAJOR)

CENT = Decimal("0.01")
ZERO = Decimal("0.00")
# money columns are Decimal(18, 2)
MAX_AMOUNT = Decimal("1e16")


def _legacy_unit(amount: Decimal) -> str:
    # Older storefront snippets send no unit; large values are assumed to be cents.
    threshold = Decimal(str(getattr(settings, "CART_PRICE_MINOR_UNIT_THRESHOLD", 1000)))
    return PRICE_UNIT_MINOR if amount > threshold else PRICE_UNIT_MAJOR


def normalize_price(value: Any, unit: Optional[str] = None) -> Decimal:
    """
    Convert an incoming price to a major-unit Decimal with two places.
    An explicit unit always wins; without one the legacy threshold decides.
    Raises ValueError for non-numeric, negative or out-of-range input.
    """
    if value is None or value == "":
        return ZERO
    if isinstance(value, bool):
        raise ValueError(f"invalid price {value!r}")
    try:
        amount = Decimal(str(value).strip())
    except InvalidOperation:
        raise ValueError(f"invalid price {value!r}")
    if not amount.is_finite() or amount < 0:
        raise ValueError(f"invalid price {value!r}")

    if unit not in PRICE_UNITS:
        unit = _legacy_unit(amount)
    try:
        if unit == PRICE_UNIT_MINOR:
            amount = amount / 100
        amount = amount.quantize(CENT, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        raise ValueError(f"price out of range {value!r}")
    if amount >= MAX_AMOUNT:
        raise ValueError(f"price out of range {value!r}")
    return amount
