"""
Typed cart envelopes.

The public endpoints validate raw JSON once and turn it into a CartSnapshot;
workers only ever see this structure. ``to_dict``/``from_dict`` keep it
JSON-safe for the queue (decimals travel as strings, provider ids as given).
"""
from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Optional, Tuple

SOURCE_TRACK = "track"
SOURCE_SYNC = "sync"


def normalize_cart_token(token: Optional[str]) -> str:
    """Drop surrounding whitespace and any '?key=...' suffix a client attached."""
    return (token or "").strip().split("?", 1)[0].strip()


@dataclass(frozen=True)
class CartLine:
    variant_id: Any
    product_id: Any = None
    title: str = ""
    variant_title: Optional[str] = None
    sku: str = ""
    quantity: int = 1
    price: Optional[str] = None
    image_url: Optional[str] = None


@dataclass(frozen=True)
class CartSnapshot:
    envelope_id: str
    source: str
    cart_token: str
    shop_domain: Optional[str] = None
    customer_email: Optional[str] = None
    customer_phone: Optional[str] = None
    customer_id: Any = None
    session_token: Optional[str] = None
    price_unit: Optional[str] = None
    currency: Optional[str] = None
    subtotal: Optional[str] = None
    total: Optional[str] = None
    checkout_url: Optional[str] = None
    lines: Tuple[CartLine, ...] = field(default_factory=tuple)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["lines"] = [asdict(line) for line in self.lines]
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CartSnapshot":
        payload = dict(data)
        payload["lines"] = tuple(CartLine(**line) for line in payload.get("lines") or ())
        return cls(**payload)
