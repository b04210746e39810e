import uuid
from unittest import mock

import pytest
from django.db import DatabaseError

from platformapp.models import ActivityLog, ImmutableRecordError
from platformapp.services.activity import log_activity

pytestmark = pytest.mark.django_db


def test_log_activity_redacts_and_stamps(tenant):
    cart_id = uuid.uuid4()
    row = log_activity(
        tenant=tenant, event_type="cart_created", cart_id=cart_id,
        payload={"token": "secret", "Password": "x", "itemCount": 2},
    )
    assert row.payload["token"] == "***"
    assert row.payload["Password"] == "***"
    assert row.payload["itemCount"] == 2
    assert row.payload["cartId"] == str(cart_id)
    assert "timestamp" in row.payload


def test_log_activity_swallows_store_errors(tenant):
    with mock.patch.object(ActivityLog.objects, "create", side_effect=DatabaseError("disk full")), \
            mock.patch("platformapp.services.activity.logger") as logger:
        assert log_activity(tenant=tenant, event_type="cart_created") is None
    logger.exception.assert_called_once()


def test_activity_rows_are_append_only(tenant):
    row = log_activity(tenant=tenant, event_type="cart_created")

    row.event_type = "tampered"
    with pytest.raises(ImmutableRecordError):
        row.save()
    with pytest.raises(ImmutableRecordError):
        row.delete()
    with pytest.raises(ImmutableRecordError):
        ActivityLog.objects.filter(pk=row.pk).update(event_type="tampered")

    assert ActivityLog.objects.get(pk=row.pk).event_type == "cart_created"


def test_activity_api_filters_by_cart(auth_client, tenant, other_tenant):
    cart_id = uuid.uuid4()
    log_activity(tenant=tenant, event_type="cart_created", cart_id=cart_id)
    log_activity(tenant=tenant, event_type="cart_created", cart_id=uuid.uuid4())
    log_activity(tenant=other_tenant, event_type="cart_created", cart_id=cart_id)

    assert auth_client.get("/api/v1/activity/").json()["count"] == 2

    resp = auth_client.get("/api/v1/activity/", {"cart": str(cart_id)})
    assert resp.status_code == 200
    assert [row["cart_id"] for row in resp.json()["results"]] == [str(cart_id)]


def test_activity_api_event_type_filter(auth_client, tenant):
    log_activity(tenant=tenant, event_type="cart_created")
    log_activity(tenant=tenant, event_type="cart_deleted")
    log_activity(tenant=tenant, event_type="page_view")

    resp = auth_client.get("/api/v1/activity/", {"event_type__in": "cart_created,cart_deleted"})
    assert sorted(r["event_type"] for r in resp.json()["results"]) == ["cart_created", "cart_deleted"]


def test_activity_api_is_read_only(auth_client, tenant):
    row = log_activity(tenant=tenant, event_type="cart_created")
    assert auth_client.delete(f"/api/v1/activity/{row.pk}/").status_code == 405
