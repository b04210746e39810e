"""
Cart reconciliation.

Each snapshot fully replaces the stored item set of the cart identified by
(tenant, cart_token) and records what changed against the previous set.
The find-or-create, the item swap and the diff run in one transaction that
holds a row lock on the cart, so two deliveries for the same cart apply one
after the other and readers never see a half-written item set.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional

from django.conf import settings
from django.db import OperationalError, connection, transaction
from django.utils import timezone

from common.exceptions import IngestError, TransientIngestError
from common.identifiers import InvalidIdentifier, parse_provider_id
from crm.services import get_anonymous_company
from identity.resolver import ResolvedIdentity, resolve_identity
from platformapp.services.activity import log_activity
from platformapp.services.tenants import resolve_tenant

from .envelopes import CartLine, CartSnapshot, normalize_cart_token
from .models import Cart, CartItem
from .pricing import MAX_AMOUNT, normalize_price

logger = logging.getLogger(__name__)

# CartItem.quantity is a PositiveIntegerField
MAX_QUANTITY = 2 ** 31 - 1


class MissingCartToken(IngestError):
    """A snapshot without a token has no key to reconcile against."""


class CartTotalOutOfRange(IngestError):
    """The summed line totals do not fit the money columns."""


@dataclass
class CartDiff:
    added: List[Dict[str, Any]] = field(default_factory=list)
    removed: List[Dict[str, Any]] = field(default_factory=list)
    updated: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (self.added or self.removed or self.updated)


@dataclass
class ReconcileResult:
    cart: Cart
    created: bool
    diff: CartDiff
    skipped_lines: int = 0


# ---------- item-set helpers (pure) ----------

def summarize_items(items: Iterable[CartItem]) -> Dict[int, Dict[str, Any]]:
    """variant id -> {quantity, sku, title}; repeated variants are summed."""
    out: Dict[int, Dict[str, Any]] = {}
    for item in items:
        entry = out.get(item.provider_variant_id)
        if entry is None:
            out[item.provider_variant_id] = {"quantity": item.quantity, "sku": item.sku, "title": item.title}
        else:
            entry["quantity"] += item.quantity
    return out


def diff_items(old: Dict[int, Dict[str, Any]], new: Dict[int, Dict[str, Any]]) -> CartDiff:
    diff = CartDiff()
    for vid, entry in new.items():
        ref = {"variantId": str(vid), "sku": entry["sku"], "title": entry["title"]}
        if vid not in old:
            diff.added.append({**ref, "quantity": entry["quantity"]})
        elif old[vid]["quantity"] != entry["quantity"]:
            diff.updated.append({**ref, "oldQuantity": old[vid]["quantity"], "newQuantity": entry["quantity"]})
    for vid, entry in old.items():
        if vid not in new:
            diff.removed.append({"variantId": str(vid), "sku": entry["sku"], "title": entry["title"]})
    return diff


def build_items(cart: Cart, lines: Iterable[CartLine], price_unit: Optional[str]) -> List[CartItem]:
    """
    Turn snapshot lines into unsaved CartItems. A line with an unusable
    variant/product id or price is skipped on its own; the rest still load.
    """
    items: List[CartItem] = []
    for position, line in enumerate(lines):
        quantity = int(line.quantity) if line.quantity is not None else 1
        if quantity < 1:
            continue
        if quantity > MAX_QUANTITY:
            logger.warning("Skipping cart line %s of cart %s: quantity %s out of range", position, cart.cart_token, quantity)
            continue
        try:
            variant_id = parse_provider_id(line.variant_id)
            product_id = parse_provider_id(line.product_id) if line.product_id not in (None, "") else None
            price = normalize_price(line.price, price_unit)
            if price * quantity >= MAX_AMOUNT:
                raise ValueError(f"line total out of range for price {line.price!r}")
        except (InvalidIdentifier, ValueError) as e:
            logger.warning("Skipping cart line %s of cart %s: %s", position, cart.cart_token, e)
            continue
        items.append(CartItem(
            tenant_id=cart.tenant_id,
            cart=cart,
            provider_variant_id=variant_id,
            provider_product_id=product_id,
            sku=(line.sku or "")[:120],
            title=(line.title or "")[:255],
            variant_title=(line.variant_title or None),
            image_url=line.image_url or None,
            quantity=quantity,
            unit_price=price,
            list_price=price,
            position=position,
        ))
    return items


def _item_refs(items: Iterable[CartItem]) -> List[Dict[str, Any]]:
    return [
        {"variantId": str(i.provider_variant_id), "sku": i.sku, "title": i.title, "quantity": i.quantity}
        for i in items
    ]


def _apply_lock_timeout():
    timeout = int(getattr(settings, "INGEST_LOCK_TIMEOUT_MS", 0) or 0)
    if timeout and connection.vendor == "postgresql":
        with connection.cursor() as cur:
            cur.execute("SET LOCAL lock_timeout = %s", [f"{timeout}ms"])


def _money(value: Optional[str], price_unit: Optional[str]) -> Optional[Decimal]:
    if value in (None, ""):
        return None
    try:
        return normalize_price(value, price_unit)
    except ValueError:
        logger.warning("Ignoring invalid cart total %r", value)
        return None


# ---------- the reconcile step ----------

def _lock_or_create_cart(tenant, token: str, identity: ResolvedIdentity, snapshot: CartSnapshot):
    cart = Cart.objects.select_for_update().filter(tenant=tenant, cart_token=token).first()
    if cart is not None:
        return cart, False

    company = identity.company or get_anonymous_company(tenant)
    cart, created = Cart.objects.get_or_create(
        tenant=tenant,
        cart_token=token,
        defaults={
            "company": company,
            "created_by": identity.company_user,
            "status": Cart.Status.DRAFT,
            "metadata": {
                "isAnonymous": identity.is_anonymous,
                "customerEmail": snapshot.customer_email,
                "customerPhone": snapshot.customer_phone,
                "providerCustomerId": str(snapshot.customer_id) if snapshot.customer_id else None,
                "source": snapshot.source,
            },
        },
    )
    if not created:
        # lost the create race to another worker: wait for its transaction
        cart = Cart.objects.select_for_update().get(pk=cart.pk)
    return cart, created


def reconcile_cart(snapshot: CartSnapshot) -> ReconcileResult:
    tenant = resolve_tenant(snapshot.shop_domain)
    token = normalize_cart_token(snapshot.cart_token)
    if not token:
        raise MissingCartToken("cart snapshot has no cart token")

    identity = resolve_identity(
        tenant,
        token=snapshot.session_token,
        customer_id=snapshot.customer_id,
        email=snapshot.customer_email,
    )

    with transaction.atomic():
        _apply_lock_timeout()
        try:
            cart, created = _lock_or_create_cart(tenant, token, identity, snapshot)
        except OperationalError as e:
            raise TransientIngestError(f"cart {token} is locked by another worker") from e

        before = {} if created else summarize_items(cart.items.all())
        new_items = build_items(cart, snapshot.lines, snapshot.price_unit)
        skipped = len(snapshot.lines) - len(new_items)

        if created:
            log_activity(
                tenant=tenant, company=cart.company, company_user=identity.company_user, cart_id=cart.pk,
                event_type="cart_created",
                payload={
                    "isAnonymous": identity.is_anonymous,
                    "customerEmail": snapshot.customer_email,
                    "itemCount": len(new_items),
                },
            )
        else:
            old_company_id = cart.company_id
            if not identity.is_anonymous and identity.company.pk != cart.company_id:
                cart.company = identity.company
                log_activity(
                    tenant=tenant, company=identity.company, company_user=identity.company_user, cart_id=cart.pk,
                    event_type="cart_company_updated",
                    payload={"oldCompanyId": str(old_company_id), "newCompanyId": str(identity.company.pk)},
                )
            if identity.company_user and cart.created_by_id is None:
                cart.created_by = identity.company_user

            meta = dict(cart.metadata or {})
            meta.update({
                "isAnonymous": cart.company.is_anonymous,
                "customerEmail": snapshot.customer_email or meta.get("customerEmail"),
                "customerPhone": snapshot.customer_phone or meta.get("customerPhone"),
                "providerCustomerId": str(snapshot.customer_id) if snapshot.customer_id else meta.get("providerCustomerId"),
            })
            cart.metadata = meta

        now = timezone.now()
        cart.metadata["lastSyncAt"] = now.isoformat()
        cart.last_synced_at = now
        cart.currency = (snapshot.currency or cart.currency or None)
        cart.checkout_url = snapshot.checkout_url or cart.checkout_url
        computed = sum((i.unit_price * i.quantity for i in new_items), Decimal("0.00"))
        if computed >= MAX_AMOUNT:
            raise CartTotalOutOfRange(f"cart {token} subtotal {computed} is out of range")
        cart.subtotal = _money(snapshot.subtotal, snapshot.price_unit) or computed
        cart.total = _money(snapshot.total, snapshot.price_unit) or cart.subtotal
        cart.save()

        cart.items.all().delete()
        CartItem.objects.bulk_create(new_items)

        if created:
            diff = CartDiff(added=_item_refs(new_items))
            log_activity(
                tenant=tenant, company=cart.company, company_user=identity.company_user, cart_id=cart.pk,
                event_type="cart_items_added",
                payload={"itemCount": len(new_items), "items": diff.added},
            )
        else:
            diff = diff_items(before, summarize_items(new_items))
            for event_type, rows in (
                ("cart_item_added", diff.added),
                ("cart_item_removed", diff.removed),
                ("cart_item_updated", diff.updated),
            ):
                if rows:
                    log_activity(
                        tenant=tenant, company=cart.company, company_user=identity.company_user, cart_id=cart.pk,
                        event_type=event_type, payload={"items": rows},
                    )

    logger.info(
        "Reconciled cart %s (tenant=%s created=%s items=%s skipped=%s identity=%s)",
        cart.pk, tenant.pk, created, len(new_items), skipped, identity.source,
    )
    return ReconcileResult(cart=cart, created=created, diff=diff, skipped_lines=skipped)
