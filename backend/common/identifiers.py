"""
Commerce-provider identifiers.

Provider ids (variants, products, customers) arrive as JSON numbers, numeric
strings or GraphQL global ids such as ``gid://shopify/ProductVariant/4242``.
They are stored in BigInteger columns, so a valid id is a positive integer
that fits in a signed 64-bit column.
"""
from __future__ import annotations

from typing import Any, Optional

PROVIDER_ID_MAX = 2 ** 63 - 1
GID_PREFIX = "gid://"


class InvalidIdentifier(ValueError):
    """Raised when a provider identifier cannot be parsed."""

    def __init__(self, value: Any, reason: str):
        self.value = value
        self.reason = reason
        super().__init__(f"invalid provider id {value!r}: {reason}")


def parse_provider_id(value: Any) -> int:
    """
    Parse a provider identifier into a bounded positive int.

    Accepts ints, integral floats, digit strings and ``gid://`` strings.
    Raises InvalidIdentifier for anything else (bools, empty strings,
    non-numeric text, zero/negative values, values above PROVIDER_ID_MAX).
    """
    if value is None or isinstance(value, bool):
        raise InvalidIdentifier(value, "missing")

    if isinstance(value, int):
        parsed = value
    elif isinstance(value, float):
        if not value.is_integer():
            raise InvalidIdentifier(value, "not an integer")
        parsed = int(value)
    elif isinstance(value, str):
        text = value.strip()
        if text.startswith(GID_PREFIX):
            text = text.rsplit("/", 1)[-1].split("?", 1)[0]
        if not text.isdigit() or not text.isascii():
            raise InvalidIdentifier(value, "not numeric")
        parsed = int(text)
    else:
        raise InvalidIdentifier(value, f"unsupported type {type(value).__name__}")

    if parsed <= 0:
        raise InvalidIdentifier(value, "must be positive")
    if parsed > PROVIDER_ID_MAX:
        raise InvalidIdentifier(value, "out of range")
    return parsed


def try_parse_provider_id(value: Any) -> Optional[int]:
    """Like parse_provider_id, but returns None instead of raising."""
    if value in (None, ""):
        return None
    try:
        return parse_provider_id(value)
    except InvalidIdentifier:
        return None
