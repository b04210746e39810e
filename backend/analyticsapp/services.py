"""
Event persistence, run by the worker for every queued EventEnvelope.
"""
from __future__ import annotations

import logging
from datetime import timezone as dt_timezone
from typing import Tuple

from django.db import transaction
from django.utils import timezone
from django.utils.dateparse import parse_datetime

from common.identifiers import try_parse_provider_id
from crm.services import get_anonymous_company
from identity.resolver import resolve_identity
from platformapp.services.activity import log_activity
from platformapp.services.tenants import resolve_tenant

from .envelopes import EventEnvelope
from .models import Event

logger = logging.getLogger(__name__)


def _when(value):
    parsed = parse_datetime(value) if value else None
    if parsed is not None and timezone.is_naive(parsed):
        parsed = timezone.make_aware(parsed, dt_timezone.utc)
    return parsed


def record_event(envelope: EventEnvelope) -> Tuple[Event, bool]:
    """
    Store one event. Redelivery of the same envelope returns the existing
    row with created=False and writes no second activity entry.
    """
    tenant = resolve_tenant(envelope.shop_domain)
    identity = resolve_identity(
        tenant,
        token=envelope.session_token,
        customer_id=envelope.customer_id,
        email=envelope.customer_email,
    )
    payload = envelope.payload or {}
    product_id = try_parse_provider_id(payload.get("productId"))
    variant_id = try_parse_provider_id(payload.get("variantId"))
    company = identity.company or get_anonymous_company(tenant)

    with transaction.atomic():
        event, created = Event.objects.get_or_create(
            envelope_id=envelope.envelope_id,
            defaults={
                "tenant": tenant,
                "company": company,
                "company_user": identity.company_user,
                "event_type": envelope.event_type,
                "session_id": envelope.session_id,
                "user_ref": envelope.user_ref,
                "company_ref": envelope.company_ref,
                "page_url": envelope.page_url,
                "referrer": envelope.referrer,
                "user_agent": envelope.user_agent,
                "ip_hash": envelope.ip_hash,
                "provider_customer_id": try_parse_provider_id(envelope.customer_id),
                "provider_product_id": product_id,
                "provider_variant_id": variant_id,
                "payload": payload,
                "client_ts": _when(envelope.client_ts),
                "ts": _when(envelope.received_at) or timezone.now(),
            },
        )
        if created:
            log_activity(
                tenant=tenant,
                company=company,
                company_user=identity.company_user,
                event_type=envelope.event_type,
                payload={
                    "eventId": event.pk,
                    "sessionId": envelope.session_id,
                    "pageUrl": envelope.page_url,
                    "productId": str(product_id) if product_id else None,
                    "variantId": str(variant_id) if variant_id else None,
                    "identity": identity.source,
                },
            )

    if created:
        logger.info("Event %s stored: %s for tenant %s", event.pk, event.event_type, tenant.pk)
    else:
        logger.info("Event envelope %s already stored as %s", envelope.envelope_id, event.pk)
    return event, created
