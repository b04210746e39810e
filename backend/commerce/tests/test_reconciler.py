from decimal import Decimal
from unittest import mock

import pytest
from django.db import DatabaseError, OperationalError

from commerce.models import Cart, CartItem
from commerce.reconciler import CartTotalOutOfRange, MissingCartToken, diff_items, reconcile_cart
from common.exceptions import TenantNotResolved, TransientIngestError
from crm.models import ANONYMOUS_COMPANY_NAME, Company
from platformapp.models import ActivityLog

pytestmark = pytest.mark.django_db

WIDGET = {"variant_id": 101, "product_id": 11, "title": "Widget", "sku": "W-1", "quantity": 2, "price": "10.00"}
GADGET = {"variant_id": "102", "product_id": "12", "title": "Gadget", "sku": "G-1", "quantity": 1, "price": "5.50"}
GIZMO = {"variant_id": "gid://shopify/ProductVariant/103", "title": "Gizmo", "sku": "Z-1", "quantity": 4, "price": "1.25"}


def _types(cart):
    return list(ActivityLog.objects.filter(cart_id=cart.pk).order_by("id").values_list("event_type", flat=True))


def _items(cart):
    return {i.provider_variant_id: i.quantity for i in CartItem.objects.filter(cart=cart)}


# ---------- pure diff ----------

def test_diff_items_categories():
    old = {1: {"quantity": 1, "sku": "a", "title": "A"}, 2: {"quantity": 2, "sku": "b", "title": "B"}}
    new = {2: {"quantity": 5, "sku": "b", "title": "B"}, 3: {"quantity": 1, "sku": "c", "title": "C"}}
    diff = diff_items(old, new)
    assert [d["variantId"] for d in diff.added] == ["3"]
    assert [d["variantId"] for d in diff.removed] == ["1"]
    assert diff.updated == [{"variantId": "2", "sku": "b", "title": "B", "oldQuantity": 2, "newQuantity": 5}]


def test_diff_of_identical_sets_is_empty():
    same = {1: {"quantity": 1, "sku": "a", "title": "A"}}
    assert diff_items(same, dict(same)).is_empty


# ---------- create ----------

def test_new_anonymous_cart(tenant, make_snapshot):
    result = reconcile_cart(make_snapshot([WIDGET, GADGET], customer_email="nobody@example.com"))

    cart = result.cart
    assert result.created is True
    assert cart.tenant == tenant
    assert cart.company.name == ANONYMOUS_COMPANY_NAME
    assert cart.company.is_anonymous
    assert cart.created_by is None
    assert cart.metadata["isAnonymous"] is True
    assert cart.metadata["customerEmail"] == "nobody@example.com"
    assert "lastSyncAt" in cart.metadata
    assert _items(cart) == {101: 2, 102: 1}
    assert cart.subtotal == Decimal("25.50")
    assert _types(cart) == ["cart_created", "cart_items_added"]

    added = ActivityLog.objects.get(cart_id=cart.pk, event_type="cart_items_added")
    assert added.payload["itemCount"] == 2
    assert added.payload["cartId"] == str(cart.pk)


def test_anonymous_company_is_shared_per_tenant(tenant, make_snapshot):
    first = reconcile_cart(make_snapshot([WIDGET], cart_token="one")).cart
    second = reconcile_cart(make_snapshot([WIDGET], cart_token="two")).cart
    assert first.company_id == second.company_id
    assert Company.objects.filter(tenant=tenant, is_anonymous=True).count() == 1


def test_identified_cart_is_attributed(tenant, company_user, make_snapshot):
    cart = reconcile_cart(make_snapshot([WIDGET], customer_id="7001")).cart
    assert cart.company == company_user.company
    assert cart.created_by == company_user
    assert cart.metadata["isAnonymous"] is False


# ---------- update / idempotence ----------

def test_replaying_same_snapshot_is_idempotent(tenant, make_snapshot):
    first = reconcile_cart(make_snapshot([WIDGET, GADGET]))
    logs_before = ActivityLog.objects.count()

    second = reconcile_cart(make_snapshot([WIDGET, GADGET]))

    assert second.created is False
    assert second.cart.pk == first.cart.pk
    assert second.diff.is_empty
    assert _items(second.cart) == {101: 2, 102: 1}
    assert ActivityLog.objects.count() == logs_before
    assert Cart.objects.count() == 1


def test_diff_logs_one_row_per_category(tenant, make_snapshot):
    cart = reconcile_cart(make_snapshot([WIDGET, GADGET])).cart

    result = reconcile_cart(make_snapshot([{**WIDGET, "quantity": 5}, GIZMO]))

    assert _items(cart) == {101: 5, 103: 4}
    assert _types(cart)[2:] == ["cart_item_added", "cart_item_removed", "cart_item_updated"]
    updated = ActivityLog.objects.get(cart_id=cart.pk, event_type="cart_item_updated")
    assert updated.payload["items"] == [
        {"variantId": "101", "sku": "W-1", "title": "Widget", "oldQuantity": 2, "newQuantity": 5},
    ]
    assert [d["variantId"] for d in result.diff.removed] == ["102"]


def test_empty_snapshot_removes_everything(tenant, make_snapshot):
    cart = reconcile_cart(make_snapshot([WIDGET, GADGET])).cart

    result = reconcile_cart(make_snapshot([]))

    assert _items(cart) == {}
    assert len(result.diff.removed) == 2
    assert _types(cart)[-1] == "cart_item_removed"


def test_repeated_variant_lines_are_summed_for_diff(tenant, make_snapshot):
    cart = reconcile_cart(make_snapshot([WIDGET, {**WIDGET, "quantity": 1}])).cart
    result = reconcile_cart(make_snapshot([{**WIDGET, "quantity": 3}]))
    assert result.diff.is_empty
    assert CartItem.objects.filter(cart=cart).count() == 1


def test_cart_token_is_normalized(tenant, make_snapshot):
    first = reconcile_cart(make_snapshot([WIDGET], cart_token=" tok-1?key=abc ")).cart
    second = reconcile_cart(make_snapshot([WIDGET], cart_token="tok-1")).cart
    assert first.pk == second.pk
    assert first.cart_token == "tok-1"


def test_cart_moves_to_identified_company(tenant, company_user, make_snapshot):
    cart = reconcile_cart(make_snapshot([WIDGET])).cart
    assert cart.company.is_anonymous

    cart = reconcile_cart(make_snapshot([WIDGET], customer_email="buyer@acme.com")).cart

    assert cart.company == company_user.company
    assert cart.created_by == company_user
    assert cart.metadata["isAnonymous"] is False
    moved = ActivityLog.objects.get(cart_id=cart.pk, event_type="cart_company_updated")
    assert moved.payload["newCompanyId"] == str(company_user.company_id)


def test_anonymous_update_keeps_attribution(tenant, company_user, make_snapshot):
    cart = reconcile_cart(make_snapshot([WIDGET], customer_id=7001)).cart
    cart = reconcile_cart(make_snapshot([WIDGET])).cart
    assert cart.company == company_user.company
    assert cart.created_by == company_user


# ---------- partial failure ----------

def test_bad_lines_are_skipped_individually(tenant, make_snapshot):
    lines = [
        WIDGET,
        {**GADGET, "variant_id": "not-a-number"},
        {**GIZMO, "price": "abc"},
        {**GIZMO, "variant_id": 104, "quantity": 0},
    ]
    result = reconcile_cart(make_snapshot(lines))
    assert _items(result.cart) == {101: 2}
    assert result.skipped_lines == 3


def test_price_units(tenant, make_snapshot):
    cart = reconcile_cart(make_snapshot([{**WIDGET, "price": "2500"}], price_unit="minor", total="5000")).cart
    item = CartItem.objects.get(cart=cart)
    assert item.unit_price == Decimal("25.00")
    assert cart.total == Decimal("50.00")

    cart = reconcile_cart(make_snapshot([{**WIDGET, "price": "2500"}], cart_token="major", price_unit="major")).cart
    assert CartItem.objects.get(cart=cart).unit_price == Decimal("2500.00")

    cart = reconcile_cart(make_snapshot([{**WIDGET, "price": "2500"}], cart_token="legacy")).cart
    assert CartItem.objects.get(cart=cart).unit_price == Decimal("25.00")


def test_unstorable_price_skips_only_its_line(tenant, make_snapshot):
    result = reconcile_cart(make_snapshot([WIDGET, {**WIDGET, "variant_id": 555, "price": "1e30"}], price_unit="minor"))
    assert _items(result.cart) == {101: 2}
    assert result.skipped_lines == 1


def test_unstorable_quantity_skips_only_its_line(tenant, make_snapshot):
    result = reconcile_cart(make_snapshot([WIDGET, {**GADGET, "quantity": 2 ** 31}]))
    assert _items(result.cart) == {101: 2}
    assert result.skipped_lines == 1


def test_subtotal_beyond_money_columns_is_rejected(tenant, make_snapshot):
    big = {**WIDGET, "quantity": 1, "price": "6000000000000000.00"}
    with pytest.raises(CartTotalOutOfRange):
        reconcile_cart(make_snapshot([big, {**big, "variant_id": 202}], price_unit="major"))
    assert Cart.objects.count() == 0


def test_created_item_count_matches_loaded_items(tenant, make_snapshot):
    cart = reconcile_cart(make_snapshot([WIDGET, GADGET, {**GIZMO, "price": "abc"}])).cart
    payloads = dict(ActivityLog.objects.filter(cart_id=cart.pk).values_list("event_type", "payload"))
    assert payloads["cart_created"]["itemCount"] == 2
    assert payloads["cart_items_added"]["itemCount"] == 2


def test_audit_failure_does_not_abort_reconciliation(tenant, make_snapshot):
    with mock.patch.object(ActivityLog.objects, "create", side_effect=DatabaseError("audit down")):
        result = reconcile_cart(make_snapshot([WIDGET, GADGET]))

    assert _items(result.cart) == {101: 2, 102: 1}
    assert ActivityLog.objects.count() == 0


# ---------- tenancy ----------

def test_unknown_shop_is_terminal(tenant, make_snapshot):
    with pytest.raises(TenantNotResolved):
        reconcile_cart(make_snapshot([WIDGET], shop_domain="unknown.myshopify.com"))
    assert Cart.objects.count() == 0


def test_suspended_tenant_is_not_resolved(tenant, make_snapshot):
    tenant.status = "suspended"
    tenant.save()
    with pytest.raises(TenantNotResolved):
        reconcile_cart(make_snapshot([WIDGET]))


def test_custom_domain_resolves_tenant(tenant, make_snapshot):
    cart = reconcile_cart(make_snapshot([WIDGET], shop_domain="https://Shop.Acme.com/cart")).cart
    assert cart.tenant == tenant


def test_missing_token_is_rejected(tenant, make_snapshot):
    with pytest.raises(MissingCartToken):
        reconcile_cart(make_snapshot([WIDGET], cart_token=" ?key=1"))


def test_same_token_in_two_tenants_gives_two_carts(tenant, other_tenant, make_snapshot):
    mine = reconcile_cart(make_snapshot([WIDGET], cart_token="shared")).cart
    theirs = reconcile_cart(make_snapshot([GADGET], cart_token="shared", shop_domain="globex.myshopify.com")).cart

    assert mine.pk != theirs.pk
    assert theirs.tenant == other_tenant
    assert _items(mine) == {101: 2}
    assert _items(theirs) == {102: 1}
    assert mine.company.tenant == tenant
    assert theirs.company.tenant == other_tenant


def test_identity_never_crosses_tenants(tenant, other_tenant, company_user, make_snapshot):
    cart = reconcile_cart(make_snapshot([WIDGET], shop_domain="globex.myshopify.com", customer_id=7001)).cart
    assert cart.company.is_anonymous
    assert cart.company.tenant == other_tenant
    assert cart.created_by is None


# ---------- same-key serialization ----------

def test_cart_row_is_locked_on_create_and_update(tenant, make_snapshot):
    real = Cart.objects.select_for_update
    with mock.patch.object(Cart.objects, "select_for_update", wraps=real) as lock:
        reconcile_cart(make_snapshot([WIDGET]))
        assert lock.call_count == 1
        reconcile_cart(make_snapshot([GADGET]))
        assert lock.call_count == 2


def test_lost_create_race_locks_the_winner(tenant, make_snapshot):
    winner = reconcile_cart(make_snapshot([WIDGET])).cart
    real = Cart.objects.select_for_update
    calls = {"n": 0}

    # first lookup misses as if the other worker had not committed yet
    def racing_lock(*args, **kwargs):
        calls["n"] += 1
        return Cart.objects.none() if calls["n"] == 1 else real(*args, **kwargs)

    with mock.patch.object(Cart.objects, "select_for_update", side_effect=racing_lock):
        result = reconcile_cart(make_snapshot([GADGET]))

    assert calls["n"] == 2
    assert result.created is False
    assert result.cart.pk == winner.pk
    assert Cart.objects.count() == 1
    assert _items(winner) == {102: 1}
    assert _types(winner)[-2:] == ["cart_item_added", "cart_item_removed"]


def test_lock_timeout_is_retryable(tenant, make_snapshot):
    with mock.patch.object(Cart.objects, "select_for_update", side_effect=OperationalError("lock timeout")):
        with pytest.raises(TransientIngestError):
            reconcile_cart(make_snapshot([WIDGET]))
    assert Cart.objects.count() == 0
