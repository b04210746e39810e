# backend/common/mixins.py
from __future__ import annotations

from typing import Any, Dict, Iterable, Optional

from django.core.exceptions import FieldDoesNotExist, ValidationError as DjangoValidationError
from django.db.models import Model, Q
from django.utils.functional import cached_property
from rest_framework import mixins, viewsets
from rest_framework.exceptions import PermissionDenied
from rest_framework.pagination import PageNumberPagination

TENANT_HEADER = "HTTP_X_TENANT_ID"  # maps to X-Tenant-ID


# -----------------------------
# Pagination
# -----------------------------
class DefaultPagination(PageNumberPagination):
    page_size = 25
    page_size_query_param = "page_size"
    max_page_size = 200


# -----------------------------
# Base tenant-scoped viewset
# -----------------------------
class TenantScopedViewSet(viewsets.GenericViewSet):
    """
    Multi-tenant base for the operator API.

    - Reads tenant from `X-Tenant-ID` header or `?tenant=` query param.
    - Every request must carry a tenant; the queryset is always filtered by
      `<tenant_field>_id`. There is no public fallback on this surface.
    - Adds simple "q" search (icontains across `search_fields`) and "order"
      (comma-separated, restricted to `ordering_fields`).
    - Applies exact filters from query params that match model fields,
      except those listed in `ignored_params` (off with `simple_filters = False`).
    """
    pagination_class = DefaultPagination

    tenant_header = TENANT_HEADER
    tenant_query_param = "tenant"
    tenant_field = "tenant"

    search_fields: Iterable[str] = tuple()
    ordering_fields: Iterable[str] = tuple()
    default_ordering: Iterable[str] = ("-created_at",)
    ignored_params: Iterable[str] = tuple()
    simple_filters = True

    # ---- Tenant helpers ----
    def get_tenant_id(self) -> Optional[str]:
        req = self.request
        tid = req.META.get(self.tenant_header) or req.query_params.get(self.tenant_query_param)
        return str(tid) if tid else None

    @cached_property
    def current_tenant(self):
        from platformapp.models import Tenant

        tid = self.get_tenant_id()
        if not tid:
            raise PermissionDenied("Missing tenant context (send X-Tenant-ID).")
        try:
            return Tenant.objects.get(pk=tid)
        except (Tenant.DoesNotExist, DjangoValidationError, ValueError):
            raise PermissionDenied("Unknown tenant.")

    # ---- Queryset plumbing ----
    def _model_class(self) -> type[Model]:
        return self.queryset.model

    def _has_field(self, field_name: str) -> bool:
        try:
            self._model_class()._meta.get_field(field_name)
            return True
        except FieldDoesNotExist:
            return False

    def _apply_search(self, qs):
        q = self.request.query_params.get("q")
        if not q or not self.search_fields:
            return qs
        cond = Q()
        for f in self.search_fields:
            cond |= Q(**{f"{f}__icontains": q})
        return qs.filter(cond)

    def _apply_ordering(self, qs):
        order_param = self.request.query_params.get("order")
        fields_allowed = set(self.ordering_fields or ())
        if order_param:
            items = [s.strip() for s in order_param.split(",") if s.strip()]
            cleaned = [it for it in items if (it[1:] if it.startswith("-") else it) in fields_allowed]
            if cleaned:
                return qs.order_by(*cleaned)
        return qs.order_by(*self.default_ordering) if self.default_ordering else qs

    def _apply_simple_filters(self, qs):
        """
        For any query param that matches a real model field (and is not a
        control param), apply an exact filter. `<field>__in=a,b,c` is split.
        """
        ignore = {self.tenant_query_param, "q", "order", "page", "page_size", self.tenant_field}
        ignore.update(self.ignored_params)
        filters: Dict[str, Any] = {}
        for key, value in self.request.query_params.items():
            if key in ignore:
                continue
            base = key.split("__", 1)[0]
            if not self._has_field(base):
                continue
            if key.endswith("__in"):
                filters[key] = [v for v in value.split(",") if v != ""]
            else:
                filters[key] = value
        try:
            return qs.filter(**filters) if filters else qs
        except (DjangoValidationError, ValueError):
            return qs.none()

    def get_queryset(self):
        qs = self.queryset.all()
        qs = qs.filter(**{f"{self.tenant_field}_id": self.current_tenant.pk})
        if self.simple_filters:
            qs = self._apply_simple_filters(qs)
        qs = self._apply_search(qs)
        qs = self._apply_ordering(qs)
        return qs


class TenantScopedReadOnlyViewSet(mixins.ListModelMixin, mixins.RetrieveModelMixin, TenantScopedViewSet):
    """List/retrieve over tenant-scoped rows; writes are explicit actions."""
