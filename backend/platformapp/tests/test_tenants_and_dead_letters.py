from unittest import mock

import pytest
from django.db import DatabaseError

from commerce.models import Cart
from platformapp.models import DeadLetterJob
from platformapp.services.dead_letters import record_dead_letter
from platformapp.services.tenants import find_tenant, normalize_shop_domain


@pytest.mark.parametrize("raw, expected", [
    ("acme.myshopify.com", "acme.myshopify.com"),
    ("  ACME.myshopify.com ", "acme.myshopify.com"),
    ("https://Acme.myshopify.com/cart?x=1", "acme.myshopify.com"),
    ("acme.myshopify.com/products/widget", "acme.myshopify.com"),
    ("acme.myshopify.com.", "acme.myshopify.com"),
    ("", ""),
    (None, ""),
])
def test_normalize_shop_domain(raw, expected):
    assert normalize_shop_domain(raw) == expected


@pytest.mark.django_db
def test_find_tenant_by_either_domain(tenant, other_tenant):
    assert find_tenant("acme.myshopify.com") == tenant
    assert find_tenant("http://shop.acme.com") == tenant
    assert find_tenant("GLOBEX.myshopify.com") == other_tenant
    assert find_tenant("unknown.example") is None
    assert find_tenant("") is None


@pytest.mark.django_db
def test_suspended_tenant_is_not_found(tenant):
    tenant.status = "suspended"
    tenant.save()
    assert find_tenant("acme.myshopify.com") is None


# ---------- dead letters ----------

def _snapshot_dict(cart_token="dl-cart"):
    return {
        "envelope_id": "e1", "source": "track", "cart_token": cart_token, "shop_domain": "acme.myshopify.com",
        "lines": [{"variant_id": 9, "title": "W", "quantity": 1, "price": "1.00"}],
    }


@pytest.mark.django_db
def test_record_dead_letter_keeps_job_and_hint():
    job = record_dead_letter(
        task_name="commerce.reconcile_cart_snapshot", task_id="t-1",
        args=[_snapshot_dict()], kwargs={}, exc=RuntimeError("boom"), attempts=3,
    )
    assert job.status == DeadLetterJob.Status.PENDING
    assert job.tenant_hint == "acme.myshopify.com"
    assert job.attempts == 3
    assert job.exception == "RuntimeError: boom"


@pytest.mark.django_db
def test_dead_letter_write_failure_is_logged():
    with mock.patch.object(DeadLetterJob.objects, "create", side_effect=DatabaseError("down")), \
            mock.patch("platformapp.services.dead_letters.logger") as logger:
        job = record_dead_letter(
            task_name="analyticsapp.process_event", task_id="t-2", args=[{"shop_domain": "x"}],
            kwargs={}, exc=RuntimeError("boom"),
        )
    assert job is None
    logger.exception.assert_called_once()


@pytest.mark.django_db
def test_staff_can_list_and_requeue(staff_client, tenant):
    job = record_dead_letter(
        task_name="commerce.reconcile_cart_snapshot", task_id="t-3",
        args=[_snapshot_dict()], kwargs={}, exc=RuntimeError("boom"),
    )

    resp = staff_client.get("/api/v1/dead-letters/", {"status": "pending"})
    assert resp.status_code == 200
    assert [row["id"] for row in resp.json()["results"]] == [job.pk]

    resp = staff_client.post(f"/api/v1/dead-letters/{job.pk}/requeue/")
    assert resp.status_code == 202
    assert resp.json()["success"] is True

    job.refresh_from_db()
    assert job.status == DeadLetterJob.Status.REQUEUED
    # eager in tests: the requeued snapshot ran
    assert Cart.objects.filter(tenant=tenant, cart_token="dl-cart").exists()

    resp = staff_client.post(f"/api/v1/dead-letters/{job.pk}/requeue/")
    assert resp.status_code == 400


@pytest.mark.django_db
def test_dead_letters_are_staff_only(auth_client):
    assert auth_client.get("/api/v1/dead-letters/").status_code == 403
