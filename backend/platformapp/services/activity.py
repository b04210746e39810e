from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from django.db import transaction
from django.utils import timezone

from platformapp.models import ActivityLog, Tenant

logger = logging.getLogger(__name__)

REDACT_KEYS = {"password", "token", "access", "refresh", "card", "cvv", "pin"}

CART_EVENT_TYPES = (
    "cart_created",
    "cart_items_added",
    "cart_item_added",
    "cart_item_removed",
    "cart_item_updated",
    "cart_company_updated",
    "cart_restored",
    "cart_deleted",
)


def _sanitize(payload: Dict[str, Any]) -> Dict[str, Any]:
    out = {}
    for k, v in (payload or {}).items():
        if k.lower() in REDACT_KEYS:
            out[k] = "***"
        else:
            out[k] = v
    return out


def log_activity(*, tenant: Tenant, event_type: str, payload: Optional[Dict[str, Any]] = None,
                 company=None, company_user=None, cart_id=None) -> Optional[ActivityLog]:
    """
    Append one immutable activity row. Never raises: an audit failure is
    logged and swallowed so the caller's work (and transaction) survives.
    """
    body = _sanitize(payload or {})
    if cart_id is not None:
        body.setdefault("cartId", str(cart_id))
    body.setdefault("timestamp", timezone.now().isoformat())
    try:
        # savepoint: a failed insert must not poison the caller's transaction
        with transaction.atomic():
            return ActivityLog.objects.create(
                tenant=tenant,
                company=company,
                company_user=company_user,
                cart_id=cart_id,
                event_type=event_type[:80],
                payload=body,
            )
    except Exception:
        logger.exception("Failed to write activity log %s for tenant %s", event_type, getattr(tenant, "pk", None))
        return None
