from __future__ import annotations
from django.db import models
from django.utils import timezone

EVENT_TYPES = (
    "page_view",
    "product_view",
    "add_to_cart",
    "remove_from_cart",
    "cart_update",
    "checkout_start",
    "checkout_complete",
    "login",
    "logout",
    "search",
    "wishlist_add",
    "wishlist_remove",
    "quote_request",
    "custom",
)


class Event(models.Model):
    """
    Write-heavy table; keep it flat and small. Anything big goes into payload.
    """
    id = models.BigAutoField(primary_key=True)
    tenant = models.ForeignKey(
        "platformapp.Tenant",
        on_delete=models.CASCADE,
        related_name="analytics_events",
        related_query_name="analytics_event",
    )

    # Attribution decided server-side by the identity resolver
    company = models.ForeignKey("crm.Company", on_delete=models.SET_NULL, null=True, blank=True, related_name="events")
    company_user = models.ForeignKey("crm.CompanyUser", on_delete=models.SET_NULL, null=True, blank=True, related_name="events")

    # one row per accepted request, whatever the number of deliveries
    envelope_id = models.UUIDField(unique=True)
    event_type = models.CharField(max_length=40)

    session_id = models.CharField(max_length=255, blank=True, null=True)
    user_ref = models.CharField(max_length=255, blank=True, null=True)      # client hint, never trusted
    company_ref = models.CharField(max_length=255, blank=True, null=True)   # client hint, never trusted
    page_url = models.CharField(max_length=1000, blank=True, null=True)
    referrer = models.CharField(max_length=500, blank=True, null=True)
    user_agent = models.CharField(max_length=500, blank=True, null=True)

    # don't store raw IPs
    ip_hash = models.CharField(max_length=64, blank=True, null=True)

    provider_customer_id = models.BigIntegerField(blank=True, null=True)
    provider_product_id = models.BigIntegerField(blank=True, null=True)
    provider_variant_id = models.BigIntegerField(blank=True, null=True)

    payload = models.JSONField(default=dict, blank=True)

    # unreliable client clocks: keep client_ts, order by server ts
    client_ts = models.DateTimeField(blank=True, null=True)
    ts = models.DateTimeField(default=timezone.now, db_index=True)

    class Meta:
        ordering = ("-ts", "-id")
        indexes = [
            models.Index(fields=["tenant", "event_type", "ts"], name="event_tenant_type_ts_idx"),
            models.Index(fields=["tenant", "session_id", "ts"], name="event_tenant_session_ts_idx"),
            models.Index(fields=["tenant", "company", "ts"], name="event_tenant_company_ts_idx"),
        ]

    def __str__(self):
        return f"{self.event_type}#{self.pk}"
