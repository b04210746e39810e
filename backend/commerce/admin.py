from django.contrib import admin

from .models import Cart, CartItem


class CartItemInline(admin.TabularInline):
    model = CartItem
    extra = 0
    fields = ("provider_variant_id", "title", "sku", "quantity", "unit_price", "position")
    readonly_fields = fields
    can_delete = False


@admin.register(Cart)
class CartAdmin(admin.ModelAdmin):
    list_display = ("cart_token", "tenant", "company", "status", "total", "currency", "updated_at")
    list_filter = ("status", "currency")
    search_fields = ("cart_token", "company__name", "created_by__email")
    inlines = [CartItemInline]
