"""
Typed event envelope handed from /events/collect to the worker.
Only JSON-safe values: timestamps travel as ISO strings.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class EventEnvelope:
    envelope_id: str
    event_type: str
    received_at: str
    shop_domain: Optional[str] = None
    session_id: Optional[str] = None
    user_ref: Optional[str] = None
    company_ref: Optional[str] = None
    page_url: Optional[str] = None
    referrer: Optional[str] = None
    user_agent: Optional[str] = None
    ip_hash: Optional[str] = None
    session_token: Optional[str] = None
    customer_id: Any = None
    customer_email: Optional[str] = None
    payload: Dict[str, Any] = field(default_factory=dict)
    client_ts: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EventEnvelope":
        return cls(**data)
