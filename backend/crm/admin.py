from django.contrib import admin

from .models import Company, CompanyUser


@admin.register(Company)
class CompanyAdmin(admin.ModelAdmin):
    list_display = ("name", "tenant", "status", "is_anonymous")
    list_filter = ("status", "is_anonymous")
    search_fields = ("name", "tenant__shop_domain")


@admin.register(CompanyUser)
class CompanyUserAdmin(admin.ModelAdmin):
    list_display = ("email", "company", "tenant", "provider_customer_id", "is_active")
    list_filter = ("is_active", "role")
    search_fields = ("email", "first_name", "last_name")
