import uuid

import pytest

from crm.models import CompanyUser
from identity.resolver import (
    SOURCE_ANONYMOUS,
    SOURCE_CUSTOMER_ID,
    SOURCE_EMAIL,
    SOURCE_TOKEN,
    resolve_identity,
)

pytestmark = pytest.mark.django_db


@pytest.fixture
def second_user(tenant, company):
    return CompanyUser.objects.create(tenant=tenant, company=company, email="second@acme.com", provider_customer_id=8002)


def test_no_signals_is_anonymous(tenant):
    identity = resolve_identity(tenant)
    assert identity.is_anonymous
    assert identity.company is None
    assert identity.source == SOURCE_ANONYMOUS


def test_token_wins_over_customer_id_and_email(tenant, company_user, second_user, session_token):
    identity = resolve_identity(
        tenant, token=session_token(company_user.pk), customer_id=8002, email="second@acme.com",
    )
    assert identity.company_user == company_user
    assert identity.company == company_user.company
    assert identity.source == SOURCE_TOKEN


def test_customer_id_wins_over_email(tenant, company_user, second_user):
    identity = resolve_identity(tenant, customer_id="7001", email="second@acme.com")
    assert identity.company_user == company_user
    assert identity.source == SOURCE_CUSTOMER_ID


@pytest.mark.parametrize("customer_id", [7001, "7001", "gid://shopify/Customer/7001", 7001.0])
def test_customer_id_formats(tenant, company_user, customer_id):
    assert resolve_identity(tenant, customer_id=customer_id).company_user == company_user


def test_email_is_case_insensitive(tenant, company_user):
    identity = resolve_identity(tenant, email="  buyer@ACME.com ")
    assert identity.company_user == company_user
    assert identity.source == SOURCE_EMAIL


def test_expired_token_falls_through(tenant, company_user, second_user, session_token):
    identity = resolve_identity(tenant, token=session_token(company_user.pk, expires_in=-60), email="second@acme.com")
    assert identity.company_user == second_user
    assert identity.source == SOURCE_EMAIL


def test_token_with_wrong_signature_falls_through(tenant, company_user, session_token):
    forged = session_token(company_user.pk, signing_key="someone-elses-key-0123456789abcdef")
    assert resolve_identity(tenant, token=forged).is_anonymous


@pytest.mark.parametrize("token", ["garbage", "a.b.c"])
def test_malformed_token_falls_through(tenant, company_user, token):
    identity = resolve_identity(tenant, token=token, customer_id=7001)
    assert identity.company_user == company_user
    assert identity.source == SOURCE_CUSTOMER_ID


def test_token_subject_must_be_a_user_id(tenant, session_token):
    assert resolve_identity(tenant, token=session_token("not-a-uuid")).is_anonymous
    assert resolve_identity(tenant, token=session_token(uuid.uuid4())).is_anonymous


def test_token_for_another_tenants_user(tenant, other_tenant, company_user, session_token):
    assert resolve_identity(other_tenant, token=session_token(company_user.pk)).is_anonymous


def test_inactive_user_is_ignored(tenant, company_user, session_token):
    company_user.is_active = False
    company_user.save()
    assert resolve_identity(tenant, token=session_token(company_user.pk)).is_anonymous
    assert resolve_identity(tenant, customer_id=7001).is_anonymous
    assert resolve_identity(tenant, email="buyer@acme.com").is_anonymous


@pytest.mark.parametrize("customer_id", ["abc", 0, -5, True, "99999999999999999999"])
def test_unusable_customer_id_falls_through(tenant, company_user, customer_id):
    identity = resolve_identity(tenant, customer_id=customer_id, email="buyer@acme.com")
    assert identity.source == SOURCE_EMAIL


def test_email_match_is_tenant_scoped(other_tenant, company_user):
    assert resolve_identity(other_tenant, email="buyer@acme.com").is_anonymous
