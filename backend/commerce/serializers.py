from rest_framework import serializers

from common.serializers import AliasedFieldsMixin, ProviderIdField
from crm.serializers import CompanyRefSerializer, CompanyUserRefSerializer

from .envelopes import SOURCE_SYNC, SOURCE_TRACK, CartLine, CartSnapshot, normalize_cart_token
from .models import Cart, CartItem
from .pricing import PRICE_UNIT_MINOR, PRICE_UNITS


def _text(value):
    return None if value in (None, "") else str(value)


# ---------- Inbound: /abandoned-carts/track ----------
class TrackCartItemSerializer(AliasedFieldsMixin, serializers.Serializer):
    field_aliases = {"variantId": "shopifyVariantId", "shopifyProductId": "productId"}

    shopifyVariantId = ProviderIdField()
    productId = ProviderIdField(required=False, allow_null=True)
    title = serializers.CharField(max_length=255, allow_blank=True)
    variantTitle = serializers.CharField(max_length=255, required=False, allow_blank=True, allow_null=True)
    sku = serializers.CharField(max_length=120, required=False, allow_blank=True, allow_null=True)
    quantity = serializers.IntegerField(min_value=1)
    price = serializers.DecimalField(max_digits=24, decimal_places=4, min_value=0)
    imageUrl = serializers.CharField(max_length=1000, required=False, allow_blank=True, allow_null=True)


class TrackCartSerializer(AliasedFieldsMixin, serializers.Serializer):
    """Strict cart snapshot pushed by the storefront script."""
    field_aliases = {
        "shop": "shopDomain",
        "shopifyCustomerId": "customerId",
        "eagleToken": "sessionToken",
        "token": "sessionToken",
    }

    cartToken = serializers.CharField(max_length=255, allow_blank=True)
    shopDomain = serializers.CharField(max_length=255)
    customerEmail = serializers.EmailField(max_length=255, required=False, allow_blank=True, allow_null=True)
    customerPhone = serializers.CharField(max_length=50, required=False, allow_blank=True, allow_null=True)
    customerId = serializers.CharField(max_length=255, required=False, allow_blank=True, allow_null=True)
    sessionToken = serializers.CharField(max_length=4096, required=False, allow_blank=True, allow_null=True)
    items = TrackCartItemSerializer(many=True)
    subtotal = serializers.DecimalField(max_digits=24, decimal_places=4, min_value=0, required=False, allow_null=True)
    total = serializers.DecimalField(max_digits=24, decimal_places=4, min_value=0, required=False, allow_null=True)
    currency = serializers.CharField(max_length=3, required=False, allow_blank=True, allow_null=True)
    checkoutUrl = serializers.CharField(max_length=1000, required=False, allow_blank=True, allow_null=True)
    priceUnit = serializers.ChoiceField(choices=PRICE_UNITS, required=False, allow_null=True)

    def validate_cartToken(self, value):
        token = normalize_cart_token(value)
        if not token:
            raise serializers.ValidationError("Cart token is required.")
        return token

    def to_snapshot(self, envelope_id: str) -> CartSnapshot:
        data = self.validated_data
        lines = tuple(
            CartLine(
                variant_id=item["shopifyVariantId"],
                product_id=item.get("productId"),
                title=item.get("title") or "",
                variant_title=item.get("variantTitle") or None,
                sku=item.get("sku") or "",
                quantity=item["quantity"],
                price=str(item["price"]),
                image_url=item.get("imageUrl") or None,
            )
            for item in data["items"]
        )
        return CartSnapshot(
            envelope_id=envelope_id,
            source=SOURCE_TRACK,
            cart_token=data["cartToken"],
            shop_domain=data["shopDomain"],
            customer_email=data.get("customerEmail") or None,
            customer_phone=data.get("customerPhone") or None,
            customer_id=data.get("customerId") or None,
            session_token=data.get("sessionToken") or None,
            price_unit=data.get("priceUnit") or None,
            currency=(data.get("currency") or None),
            subtotal=_text(data.get("subtotal")),
            total=_text(data.get("total")),
            checkout_url=data.get("checkoutUrl") or None,
            lines=lines,
        )


# ---------- Inbound: /abandoned-carts/sync ----------
class SyncCartItemSerializer(AliasedFieldsMixin, serializers.Serializer):
    """
    One line of the provider's own cart JSON. Ids and prices are passed
    through untouched; the reconciler drops lines it cannot parse.
    """
    field_aliases = {"variantId": "variant_id", "productId": "product_id", "variantTitle": "variant_title", "imageUrl": "image"}

    id = serializers.JSONField(required=False, allow_null=True)
    variant_id = serializers.JSONField(required=False, allow_null=True)
    product_id = serializers.JSONField(required=False, allow_null=True)
    title = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    product_title = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    variant_title = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    sku = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    quantity = serializers.IntegerField(min_value=0, required=False, default=1)
    price = serializers.JSONField(required=False, allow_null=True)
    final_price = serializers.JSONField(required=False, allow_null=True)
    image = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class SyncCartSerializer(AliasedFieldsMixin, serializers.Serializer):
    """Looser full-cart payload; prices default to minor units."""
    field_aliases = {
        "token": "cartToken",
        "shop": "shopDomain",
        "email": "customerEmail",
        "customer_id": "customerId",
        "shopifyCustomerId": "customerId",
        "eagleToken": "sessionToken",
        "total_price": "total",
        "items_subtotal_price": "subtotal",
    }

    cartToken = serializers.CharField(max_length=255, allow_blank=True)
    shopDomain = serializers.CharField(max_length=255)
    customerEmail = serializers.CharField(max_length=255, required=False, allow_blank=True, allow_null=True)
    customerPhone = serializers.CharField(max_length=50, required=False, allow_blank=True, allow_null=True)
    customerId = serializers.CharField(max_length=255, required=False, allow_blank=True, allow_null=True)
    sessionToken = serializers.CharField(max_length=4096, required=False, allow_blank=True, allow_null=True)
    items = SyncCartItemSerializer(many=True, required=False, default=list)
    subtotal = serializers.JSONField(required=False, allow_null=True)
    total = serializers.JSONField(required=False, allow_null=True)
    currency = serializers.CharField(max_length=3, required=False, allow_blank=True, allow_null=True)
    checkoutUrl = serializers.CharField(max_length=1000, required=False, allow_blank=True, allow_null=True)
    priceUnit = serializers.ChoiceField(choices=PRICE_UNITS, required=False, default=PRICE_UNIT_MINOR)

    def validate_cartToken(self, value):
        token = normalize_cart_token(value)
        if not token:
            raise serializers.ValidationError("Cart token is required.")
        return token

    def to_snapshot(self, envelope_id: str) -> CartSnapshot:
        data = self.validated_data
        lines = []
        for item in data.get("items") or []:
            variant = item.get("variant_id")
            if variant in (None, ""):
                variant = item.get("id")
            price = item.get("final_price")
            if price in (None, ""):
                price = item.get("price")
            lines.append(CartLine(
                variant_id=variant,
                product_id=item.get("product_id"),
                title=item.get("product_title") or item.get("title") or "",
                variant_title=item.get("variant_title") or None,
                sku=item.get("sku") or "",
                quantity=item.get("quantity", 1),
                price=_text(price),
                image_url=item.get("image") or None,
            ))
        return CartSnapshot(
            envelope_id=envelope_id,
            source=SOURCE_SYNC,
            cart_token=data["cartToken"],
            shop_domain=data["shopDomain"],
            customer_email=data.get("customerEmail") or None,
            customer_phone=data.get("customerPhone") or None,
            customer_id=data.get("customerId") or None,
            session_token=data.get("sessionToken") or None,
            price_unit=data.get("priceUnit") or PRICE_UNIT_MINOR,
            currency=data.get("currency") or None,
            subtotal=_text(data.get("subtotal")),
            total=_text(data.get("total")),
            checkout_url=data.get("checkoutUrl") or None,
            lines=tuple(lines),
        )


# ---------- Outbound ----------
class CartItemSerializer(serializers.ModelSerializer):
    provider_variant_id = serializers.CharField(read_only=True)
    provider_product_id = serializers.CharField(read_only=True, allow_null=True)

    class Meta:
        model = CartItem
        fields = (
            "id", "provider_variant_id", "provider_product_id", "sku", "title", "variant_title",
            "image_url", "quantity", "unit_price", "list_price", "position",
        )
        read_only_fields = fields


class CartSerializer(serializers.ModelSerializer):
    company = CompanyRefSerializer(read_only=True)
    created_by = CompanyUserRefSerializer(read_only=True)
    items = CartItemSerializer(many=True, read_only=True)
    item_count = serializers.SerializerMethodField()

    class Meta:
        model = Cart
        fields = (
            "id", "cart_token", "status", "company", "created_by", "currency", "subtotal", "total",
            "checkout_url", "metadata", "last_synced_at", "item_count", "items", "created_at", "updated_at",
        )
        read_only_fields = fields

    def get_item_count(self, obj):
        return sum(i.quantity for i in obj.items.all())

