from __future__ import annotations

import logging

from django.db import IntegrityError, transaction

from platformapp.models import Tenant
from .models import ANONYMOUS_COMPANY_NAME, Company

logger = logging.getLogger(__name__)


def get_anonymous_company(tenant: Tenant) -> Company:
    """
    The tenant's "Anonymous Customers" company, created on first use.
    The partial unique constraint keeps it to one row per tenant even when
    two workers race to create it.
    """
    company = Company.objects.filter(tenant=tenant, is_anonymous=True).first()
    if company:
        return company
    try:
        with transaction.atomic():
            company = Company.objects.create(
                tenant=tenant, name=ANONYMOUS_COMPANY_NAME, status="active", is_anonymous=True,
            )
        logger.info("Created anonymous company for tenant %s", tenant.pk)
        return company
    except IntegrityError:
        return Company.objects.get(tenant=tenant, is_anonymous=True)
