from django.db import models
from django.db.models import Q
from django.db.models.functions import Lower
from common.models import BaseModel

ANONYMOUS_COMPANY_NAME = "Anonymous Customers"


class Company(BaseModel):
    """
    B2B account under a tenant. Each tenant also gets one sentinel company
    (is_anonymous=True) that owns carts nobody could be attributed to.
    """
    tenant = models.ForeignKey("platformapp.Tenant", on_delete=models.CASCADE, related_name="companies")
    name = models.CharField(max_length=200)
    status = models.CharField(max_length=24, default="active")  # active|inactive|blocked
    is_anonymous = models.BooleanField(default=False)
    provider_company_id = models.BigIntegerField(blank=True, null=True)
    meta_json = models.JSONField(default=dict, blank=True)

    class Meta:
        indexes = [
            models.Index(fields=["tenant", "name"], name="crm_company_tenant_name_idx"),
            models.Index(fields=["tenant", "status"], name="crm_company_tenant_status_idx"),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["tenant"],
                condition=Q(is_anonymous=True),
                name="uniq_anonymous_company_per_tenant",
            ),
        ]

    def __str__(self):
        return self.name


class CompanyUser(BaseModel):
    """
    Member of a company. May be linked to a commerce-provider customer id.
    """
    tenant = models.ForeignKey("platformapp.Tenant", on_delete=models.CASCADE, related_name="company_users")
    company = models.ForeignKey("crm.Company", on_delete=models.CASCADE, related_name="users")

    email = models.EmailField()
    first_name = models.CharField(max_length=100, blank=True, null=True)
    last_name = models.CharField(max_length=100, blank=True, null=True)
    role = models.CharField(max_length=24, default="member")  # admin|buyer|member
    is_active = models.BooleanField(default=True)

    provider_customer_id = models.BigIntegerField(blank=True, null=True)

    class Meta:
        indexes = [
            models.Index(fields=["tenant", "email"], name="crm_cuser_tenant_email_idx"),
            models.Index(fields=["tenant", "provider_customer_id"], name="crm_cuser_tenant_cust_idx"),
        ]
        constraints = [
            # same email may exist under another tenant
            models.UniqueConstraint(Lower("email"), "tenant", name="uniq_company_user_email_per_tenant"),
            models.UniqueConstraint(
                fields=["tenant", "provider_customer_id"],
                condition=Q(provider_customer_id__isnull=False),
                name="uniq_company_user_customer_per_tenant",
            ),
        ]

    @property
    def full_name(self):
        return " ".join(p for p in (self.first_name, self.last_name) if p) or self.email

    def __str__(self):
        return self.email
