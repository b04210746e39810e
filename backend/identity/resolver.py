"""
Identity resolution for anonymous storefront traffic.

Signals are tried strongest first and the first hit wins:

    1. signed session token  -> CompanyUser by the token's subject claim
    2. provider customer id  -> CompanyUser linked to that customer
    3. email address         -> CompanyUser by email

A signal that fails to resolve (bad signature, expired token, unparsable id,
unknown email) only moves resolution on to the next one. Every lookup is
scoped to the tenant.
"""
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from typing import Any, Dict, Optional

from django.conf import settings
from rest_framework_simplejwt.backends import TokenBackend
from rest_framework_simplejwt.exceptions import TokenBackendError

from common.identifiers import InvalidIdentifier, parse_provider_id
from crm.models import Company, CompanyUser
from platformapp.models import Tenant

logger = logging.getLogger(__name__)

SOURCE_TOKEN = "token"
SOURCE_CUSTOMER_ID = "customer_id"
SOURCE_EMAIL = "email"
SOURCE_ANONYMOUS = "anonymous"


@dataclass(frozen=True)
class ResolvedIdentity:
    company: Optional[Company] = None
    company_user: Optional[CompanyUser] = None
    source: str = SOURCE_ANONYMOUS

    @property
    def is_anonymous(self) -> bool:
        return self.company_user is None


ANONYMOUS = ResolvedIdentity()


def _token_backend() -> TokenBackend:
    conf = getattr(settings, "STOREFRONT_TOKEN", {})
    return TokenBackend(
        conf.get("ALGORITHM", "HS256"),
        signing_key=conf.get("SIGNING_KEY") or settings.SECRET_KEY,
        audience=conf.get("AUDIENCE"),
        issuer=conf.get("ISSUER"),
        leeway=conf.get("LEEWAY", 0),
    )


def decode_session_token(token: str) -> Dict[str, Any]:
    """Verify signature and expiry; raises TokenBackendError."""
    return _token_backend().decode(token, verify=True)


def _active_users(tenant: Tenant):
    return CompanyUser.objects.select_related("company").filter(tenant=tenant, is_active=True)


def _from_token(tenant: Tenant, token: str) -> Optional[CompanyUser]:
    claim = getattr(settings, "STOREFRONT_TOKEN", {}).get("SUBJECT_CLAIM", "sub")
    try:
        payload = decode_session_token(token)
    except TokenBackendError as e:
        logger.warning("Ignoring invalid session token: %s", e)
        return None
    subject = payload.get(claim)
    try:
        user_id = uuid.UUID(str(subject))
    except (TypeError, ValueError):
        logger.warning("Session token subject %r is not a user id", subject)
        return None
    return _active_users(tenant).filter(pk=user_id).first()


def _from_customer_id(tenant: Tenant, customer_id: Any) -> Optional[CompanyUser]:
    try:
        parsed = parse_provider_id(customer_id)
    except InvalidIdentifier as e:
        logger.warning("Ignoring customer id: %s", e)
        return None
    return _active_users(tenant).filter(provider_customer_id=parsed).first()


def _from_email(tenant: Tenant, email: str) -> Optional[CompanyUser]:
    return _active_users(tenant).filter(email__iexact=email.strip()).first()


def resolve_identity(tenant: Tenant, *, token: Optional[str] = None,
                     customer_id: Any = None, email: Optional[str] = None) -> ResolvedIdentity:
    attempts = (
        (SOURCE_TOKEN, token, _from_token),
        (SOURCE_CUSTOMER_ID, customer_id, _from_customer_id),
        (SOURCE_EMAIL, email, _from_email),
    )
    for source, signal, lookup in attempts:
        if signal in (None, ""):
            continue
        user = lookup(tenant, signal)
        if user is not None:
            return ResolvedIdentity(company=user.company, company_user=user, source=source)
    return ANONYMOUS
