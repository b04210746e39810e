import uuid

import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("platformapp", "0001_initial"),
        ("crm", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Cart",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("cart_token", models.CharField(max_length=255)),
                ("status", models.CharField(choices=[("draft", "Draft"), ("restored", "Restored"), ("converted", "Converted")], default="draft", max_length=16)),
                ("currency", models.CharField(blank=True, max_length=3, null=True)),
                ("subtotal", models.DecimalField(blank=True, decimal_places=2, max_digits=18, null=True)),
                ("total", models.DecimalField(blank=True, decimal_places=2, max_digits=18, null=True)),
                ("checkout_url", models.URLField(blank=True, max_length=1000, null=True)),
                ("metadata", models.JSONField(blank=True, default=dict)),
                ("last_synced_at", models.DateTimeField(blank=True, null=True)),
                ("company", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="carts", to="crm.company")),
                ("created_by", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="carts", to="crm.companyuser")),
                ("tenant", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="carts", to="platformapp.tenant")),
            ],
            options={
                "indexes": [
                    models.Index(fields=["tenant", "status", "-updated_at"], name="cart_tenant_status_upd_idx"),
                    models.Index(fields=["tenant", "company"], name="cart_tenant_company_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(fields=("tenant", "cart_token"), name="uniq_cart_token_per_tenant"),
                ],
            },
        ),
        migrations.CreateModel(
            name="CartItem",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("provider_variant_id", models.BigIntegerField()),
                ("provider_product_id", models.BigIntegerField(blank=True, null=True)),
                ("sku", models.CharField(blank=True, default="", max_length=120)),
                ("title", models.CharField(blank=True, default="", max_length=255)),
                ("variant_title", models.CharField(blank=True, max_length=255, null=True)),
                ("image_url", models.URLField(blank=True, max_length=1000, null=True)),
                ("quantity", models.PositiveIntegerField(default=1)),
                ("unit_price", models.DecimalField(decimal_places=2, default=0, max_digits=18)),
                ("list_price", models.DecimalField(decimal_places=2, default=0, max_digits=18)),
                ("position", models.PositiveIntegerField(default=0)),
                ("cart", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="items", to="commerce.cart")),
                ("tenant", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="cart_items", to="platformapp.tenant")),
            ],
            options={
                "ordering": ("position", "created_at"),
                "indexes": [
                    models.Index(fields=["cart", "provider_variant_id"], name="cartitem_cart_variant_idx"),
                    models.Index(fields=["tenant", "provider_variant_id"], name="cartitem_tenant_variant_idx"),
                ],
            },
        ),
    ]
