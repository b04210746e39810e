import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("platformapp", "0001_initial"),
        ("crm", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Event",
            fields=[
                ("id", models.BigAutoField(primary_key=True, serialize=False)),
                ("envelope_id", models.UUIDField(unique=True)),
                ("event_type", models.CharField(max_length=40)),
                ("session_id", models.CharField(blank=True, max_length=255, null=True)),
                ("user_ref", models.CharField(blank=True, max_length=255, null=True)),
                ("company_ref", models.CharField(blank=True, max_length=255, null=True)),
                ("page_url", models.CharField(blank=True, max_length=1000, null=True)),
                ("referrer", models.CharField(blank=True, max_length=500, null=True)),
                ("user_agent", models.CharField(blank=True, max_length=500, null=True)),
                ("ip_hash", models.CharField(blank=True, max_length=64, null=True)),
                ("provider_customer_id", models.BigIntegerField(blank=True, null=True)),
                ("provider_product_id", models.BigIntegerField(blank=True, null=True)),
                ("provider_variant_id", models.BigIntegerField(blank=True, null=True)),
                ("payload", models.JSONField(blank=True, default=dict)),
                ("client_ts", models.DateTimeField(blank=True, null=True)),
                ("ts", models.DateTimeField(db_index=True, default=django.utils.timezone.now)),
                ("company", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="events", to="crm.company")),
                ("company_user", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="events", to="crm.companyuser")),
                ("tenant", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="analytics_events", related_query_name="analytics_event", to="platformapp.tenant")),
            ],
            options={
                "ordering": ("-ts", "-id"),
                "indexes": [
                    models.Index(fields=["tenant", "event_type", "ts"], name="event_tenant_type_ts_idx"),
                    models.Index(fields=["tenant", "session_id", "ts"], name="event_tenant_session_ts_idx"),
                    models.Index(fields=["tenant", "company", "ts"], name="event_tenant_company_ts_idx"),
                ],
            },
        ),
    ]
