from django.db import models
from common.models import BaseModel


class Cart(BaseModel):
    """
    Storefront cart mirrored from the commerce provider.
    (tenant, cart_token) is the natural key used to deduplicate snapshots.
    """

    class Status(models.TextChoices):
        DRAFT = "draft", "Draft"
        RESTORED = "restored", "Restored"
        CONVERTED = "converted", "Converted"

    tenant = models.ForeignKey("platformapp.Tenant", on_delete=models.CASCADE, related_name="carts")
    company = models.ForeignKey("crm.Company", on_delete=models.PROTECT, related_name="carts")
    created_by = models.ForeignKey("crm.CompanyUser", on_delete=models.SET_NULL, null=True, blank=True, related_name="carts")

    cart_token = models.CharField(max_length=255)
    status = models.CharField(max_length=16, choices=Status.choices, default=Status.DRAFT)

    currency = models.CharField(max_length=3, blank=True, null=True)
    subtotal = models.DecimalField(max_digits=18, decimal_places=2, null=True, blank=True)
    total = models.DecimalField(max_digits=18, decimal_places=2, null=True, blank=True)
    checkout_url = models.URLField(max_length=1000, blank=True, null=True)

    # isAnonymous, customerEmail, customerPhone, providerCustomerId, source, lastSyncAt
    metadata = models.JSONField(default=dict, blank=True)
    last_synced_at = models.DateTimeField(blank=True, null=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["tenant", "cart_token"], name="uniq_cart_token_per_tenant"),
        ]
        indexes = [
            models.Index(fields=["tenant", "status", "-updated_at"], name="cart_tenant_status_upd_idx"),
            models.Index(fields=["tenant", "company"], name="cart_tenant_company_idx"),
        ]

    def __str__(self):
        return self.cart_token


class CartItem(BaseModel):
    """
    One line of a cart. Lines are replaced wholesale on every reconciliation,
    so they carry no identity across cycles; provider_variant_id is the key.
    """
    tenant = models.ForeignKey("platformapp.Tenant", on_delete=models.CASCADE, related_name="cart_items")
    cart = models.ForeignKey("commerce.Cart", on_delete=models.CASCADE, related_name="items")

    provider_variant_id = models.BigIntegerField()
    provider_product_id = models.BigIntegerField(blank=True, null=True)
    sku = models.CharField(max_length=120, blank=True, default="")
    title = models.CharField(max_length=255, blank=True, default="")
    variant_title = models.CharField(max_length=255, blank=True, null=True)
    image_url = models.URLField(max_length=1000, blank=True, null=True)

    quantity = models.PositiveIntegerField(default=1)
    unit_price = models.DecimalField(max_digits=18, decimal_places=2, default=0)
    list_price = models.DecimalField(max_digits=18, decimal_places=2, default=0)
    position = models.PositiveIntegerField(default=0)

    class Meta:
        ordering = ("position", "created_at")
        indexes = [
            models.Index(fields=["cart", "provider_variant_id"], name="cartitem_cart_variant_idx"),
            models.Index(fields=["tenant", "provider_variant_id"], name="cartitem_tenant_variant_idx"),
        ]
