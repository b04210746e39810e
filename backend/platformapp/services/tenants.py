from __future__ import annotations

import logging
from typing import Optional
from urllib.parse import urlsplit

from django.db.models import Q

from common.exceptions import TenantNotResolved
from platformapp.models import Tenant

logger = logging.getLogger(__name__)


def normalize_shop_domain(value: Optional[str]) -> str:
    """
    'HTTPS://Acme.myshopify.com/cart?x=1' -> 'acme.myshopify.com'.
    Returns '' for empty input.
    """
    text = (value or "").strip().lower()
    if not text:
        return ""
    if "://" not in text:
        text = f"//{text}"
    host = urlsplit(text).hostname or ""
    return host.rstrip(".")


def find_tenant(shop_domain: Optional[str]) -> Optional[Tenant]:
    domain = normalize_shop_domain(shop_domain)
    if not domain:
        return None
    return (
        Tenant.objects
        .filter(Q(shop_domain=domain) | Q(custom_domain=domain), status="active")
        .first()
    )


def resolve_tenant(shop_domain: Optional[str]) -> Tenant:
    """Map a store hint to its active tenant or raise TenantNotResolved."""
    tenant = find_tenant(shop_domain)
    if tenant is None:
        logger.warning("No active tenant for shop domain %r", shop_domain)
        raise TenantNotResolved(shop_domain)
    return tenant
