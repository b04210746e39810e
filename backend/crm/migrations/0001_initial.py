import uuid

import django.db.models.deletion
import django.db.models.functions.text
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("platformapp", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Company",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("name", models.CharField(max_length=200)),
                ("status", models.CharField(default="active", max_length=24)),
                ("is_anonymous", models.BooleanField(default=False)),
                ("provider_company_id", models.BigIntegerField(blank=True, null=True)),
                ("meta_json", models.JSONField(blank=True, default=dict)),
                ("tenant", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="companies", to="platformapp.tenant")),
            ],
            options={
                "indexes": [
                    models.Index(fields=["tenant", "name"], name="crm_company_tenant_name_idx"),
                    models.Index(fields=["tenant", "status"], name="crm_company_tenant_status_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(condition=models.Q(("is_anonymous", True)), fields=("tenant",), name="uniq_anonymous_company_per_tenant"),
                ],
            },
        ),
        migrations.CreateModel(
            name="CompanyUser",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("email", models.EmailField(max_length=254)),
                ("first_name", models.CharField(blank=True, max_length=100, null=True)),
                ("last_name", models.CharField(blank=True, max_length=100, null=True)),
                ("role", models.CharField(default="member", max_length=24)),
                ("is_active", models.BooleanField(default=True)),
                ("provider_customer_id", models.BigIntegerField(blank=True, null=True)),
                ("company", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="users", to="crm.company")),
                ("tenant", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="company_users", to="platformapp.tenant")),
            ],
            options={
                "indexes": [
                    models.Index(fields=["tenant", "email"], name="crm_cuser_tenant_email_idx"),
                    models.Index(fields=["tenant", "provider_customer_id"], name="crm_cuser_tenant_cust_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(django.db.models.functions.text.Lower("email"), models.F("tenant"), name="uniq_company_user_email_per_tenant"),
                    models.UniqueConstraint(condition=models.Q(("provider_customer_id__isnull", False)), fields=("tenant", "provider_customer_id"), name="uniq_company_user_customer_per_tenant"),
                ],
            },
        ),
    ]
