import time
import uuid

import pytest

# Django is configured by pytest-django before fixtures run; model imports stay inside them.


@pytest.fixture(autouse=True)
def _clear_cache():
    from django.core.cache import cache

    # throttle counters live in the cache
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def tenant(db):
    from platformapp.models import Tenant

    return Tenant.objects.create(
        slug="acme", name="Acme Supply", shop_domain="acme.myshopify.com", custom_domain="shop.acme.com",
    )


@pytest.fixture
def other_tenant(db):
    from platformapp.models import Tenant

    return Tenant.objects.create(slug="globex", name="Globex", shop_domain="globex.myshopify.com")


@pytest.fixture
def company(tenant):
    from crm.models import Company

    return Company.objects.create(tenant=tenant, name="Acme Buyers Ltd")


@pytest.fixture
def company_user(tenant, company):
    from crm.models import CompanyUser

    return CompanyUser.objects.create(
        tenant=tenant, company=company, email="Buyer@Acme.com", first_name="Ada", last_name="Buyer",
        provider_customer_id=7001,
    )


@pytest.fixture
def api_client():
    from rest_framework.test import APIClient

    return APIClient()


@pytest.fixture
def operator(db):
    from identity.models import User

    return User.objects.create_user(email="ops@example.com", password="pw-123456", username="ops")


@pytest.fixture
def staff_operator(db):
    from identity.models import User

    return User.objects.create_user(email="staff@example.com", password="pw-123456", username="staff", is_staff=True)


def _client_for(user, tenant=None):
    from rest_framework.test import APIClient
    from rest_framework_simplejwt.tokens import AccessToken

    client = APIClient()
    headers = {"HTTP_AUTHORIZATION": f"Bearer {AccessToken.for_user(user)}"}
    if tenant is not None:
        headers["HTTP_X_TENANT_ID"] = str(tenant.pk)
    client.credentials(**headers)
    return client


@pytest.fixture
def auth_client(operator, tenant):
    """Operator authenticated with a SimpleJWT bearer token, scoped to `tenant`."""
    return _client_for(operator, tenant)


@pytest.fixture
def staff_client(staff_operator):
    return _client_for(staff_operator)


@pytest.fixture
def session_token():
    """Build a storefront session token as the storefront login would issue it."""
    from django.conf import settings
    from rest_framework_simplejwt.backends import TokenBackend

    conf = settings.STOREFRONT_TOKEN

    def make(subject, *, expires_in=3600, signing_key=None):
        backend = TokenBackend(conf["ALGORITHM"], signing_key=signing_key or conf["SIGNING_KEY"])
        return backend.encode({"sub": str(subject), "exp": int(time.time()) + expires_in})

    return make


@pytest.fixture
def make_snapshot():
    from commerce.envelopes import CartLine, CartSnapshot

    def make(lines=(), *, cart_token="cart-abc", shop_domain="acme.myshopify.com", **extra):
        return CartSnapshot(
            envelope_id=uuid.uuid4().hex,
            source=extra.pop("source", "track"),
            cart_token=cart_token,
            shop_domain=shop_domain,
            lines=tuple(CartLine(**line) for line in lines),
            **extra,
        )

    return make
