from django.db import models
from django.db.models import Q
from common.models import BaseModel


class Tenant(BaseModel):
    slug = models.SlugField(max_length=100, unique=True)
    name = models.CharField(max_length=200)
    status = models.CharField(max_length=20, default="active")  # active | suspended
    plan = models.CharField(max_length=20, default="free")

    # storefront identifiers, stored lower-case without scheme/path
    shop_domain = models.CharField(max_length=255, unique=True)          # acme.myshopify.com
    custom_domain = models.CharField(max_length=255, blank=True, null=True)  # shop.acme.com

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=["custom_domain"],
                condition=Q(custom_domain__isnull=False),
                name="uniq_tenant_custom_domain",
            ),
        ]

    def __str__(self):
        return self.shop_domain


class ImmutableRecordError(Exception):
    """Raised on any attempt to modify an append-only record."""


class ActivityLogQuerySet(models.QuerySet):
    def update(self, **kwargs):
        raise ImmutableRecordError("activity logs are append-only")


class ActivityLog(models.Model):
    """
    Append-only audit trail of reconciliation and event outcomes.
    Rows are inserted once and never changed; bulk retention cleanup is the
    only sanctioned delete and goes through the queryset.
    """
    id = models.BigAutoField(primary_key=True)
    tenant = models.ForeignKey("platformapp.Tenant", on_delete=models.CASCADE, related_name="activity_logs")
    company = models.ForeignKey("crm.Company", on_delete=models.SET_NULL, null=True, blank=True, related_name="activity_logs")
    company_user = models.ForeignKey("crm.CompanyUser", on_delete=models.SET_NULL, null=True, blank=True, related_name="activity_logs")
    cart_id = models.UUIDField(blank=True, null=True, db_index=True)  # plain id: survives cart deletion
    event_type = models.CharField(max_length=80)  # e.g. "cart_item_added", "product_view"
    payload = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    objects = ActivityLogQuerySet.as_manager()

    class Meta:
        ordering = ("-created_at", "-id")
        indexes = [
            models.Index(fields=["tenant", "event_type", "created_at"], name="actlog_tenant_type_idx"),
            models.Index(fields=["tenant", "company", "created_at"], name="actlog_tenant_company_idx"),
        ]

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ImmutableRecordError("activity logs are append-only")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ImmutableRecordError("activity logs are append-only")

    def __str__(self):
        return f"{self.event_type}@{self.created_at:%Y-%m-%d %H:%M:%S}" if self.created_at else self.event_type


class DeadLetterJob(models.Model):
    """A queue job that exhausted its retry budget, kept for manual inspection."""

    class Status(models.TextChoices):
        PENDING = "pending", "Pending"
        REQUEUED = "requeued", "Requeued"
        DISCARDED = "discarded", "Discarded"

    id = models.BigAutoField(primary_key=True)
    task_name = models.CharField(max_length=200)
    task_id = models.CharField(max_length=64, blank=True, null=True, db_index=True)
    args = models.JSONField(default=list, blank=True)
    kwargs = models.JSONField(default=dict, blank=True)
    exception = models.TextField(blank=True)
    traceback = models.TextField(blank=True)
    attempts = models.PositiveIntegerField(default=1)
    tenant_hint = models.CharField(max_length=255, blank=True, null=True)  # shop domain from the envelope
    status = models.CharField(max_length=16, choices=Status.choices, default=Status.PENDING)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ("-created_at",)
        indexes = [models.Index(fields=["status", "created_at"], name="deadletter_status_idx")]

    def __str__(self):
        return f"{self.task_name}[{self.task_id}] {self.status}"
