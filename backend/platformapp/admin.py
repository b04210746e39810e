from django.contrib import admin

from .models import ActivityLog, DeadLetterJob, Tenant


@admin.register(Tenant)
class TenantAdmin(admin.ModelAdmin):
    list_display = ("slug", "name", "shop_domain", "custom_domain", "status", "plan")
    list_filter = ("status", "plan")
    search_fields = ("slug", "name", "shop_domain", "custom_domain")


@admin.register(ActivityLog)
class ActivityLogAdmin(admin.ModelAdmin):
    list_display = ("created_at", "tenant", "event_type", "company", "cart_id")
    list_filter = ("event_type",)
    search_fields = ("cart_id",)

    # append-only
    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(DeadLetterJob)
class DeadLetterJobAdmin(admin.ModelAdmin):
    list_display = ("created_at", "task_name", "task_id", "status", "attempts", "tenant_hint")
    list_filter = ("status", "task_name")
    search_fields = ("task_id", "tenant_hint", "exception")
