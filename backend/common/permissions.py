from rest_framework.permissions import BasePermission


class PrivateTenantOnly(BasePermission):
    """
    All requests must be authenticated AND provide X-Tenant-ID header.
    (Tenant lookup itself happens in the ViewSet mixin.)
    """
    def has_permission(self, request, view):
        return bool(
            request.user and request.user.is_authenticated
            and (request.headers.get("X-Tenant-ID") or request.query_params.get("tenant"))
        )


class IsStaffOperator(BasePermission):
    """Staff-only operations (dead-letter requeue)."""
    def has_permission(self, request, view):
        user = request.user
        return bool(user and user.is_authenticated and (user.is_staff or user.is_superuser))
