import logging

from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import ValidationError
from rest_framework.filters import OrderingFilter
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from common.mixins import DefaultPagination, TenantScopedReadOnlyViewSet
from common.permissions import IsStaffOperator, PrivateTenantOnly
from .models import ActivityLog, DeadLetterJob
from .serializers import ActivityLogSerializer, DeadLetterJobSerializer
from .services.dead_letters import requeue_dead_letter

logger = logging.getLogger(__name__)


class ActivityLogViewSet(TenantScopedReadOnlyViewSet):
    """
    Read-only audit trail of the tenant. Filters: `event_type`, `company`,
    `cart` (cart id) and `event_type__in=a,b`.
    """
    queryset = ActivityLog.objects.select_related("company", "company_user")
    serializer_class = ActivityLogSerializer
    permission_classes = [IsAuthenticated, PrivateTenantOnly]
    ordering_fields = ("created_at", "event_type")
    default_ordering = ("-created_at", "-id")
    ignored_params = ("cart",)

    def get_queryset(self):
        qs = super().get_queryset()
        cart = self.request.query_params.get("cart")
        if cart:
            qs = qs.filter(cart_id=cart)
        return qs


class DeadLetterViewSet(mixins.ListModelMixin, mixins.RetrieveModelMixin, viewsets.GenericViewSet):
    """Jobs that exhausted their retries. Staff only; not tenant-scoped."""
    queryset = DeadLetterJob.objects.all()
    serializer_class = DeadLetterJobSerializer
    permission_classes = [IsStaffOperator]
    pagination_class = DefaultPagination
    filter_backends = [DjangoFilterBackend, OrderingFilter]
    filterset_fields = ["status", "task_name", "tenant_hint"]
    ordering_fields = ["created_at", "attempts"]

    @action(detail=True, methods=["post"])
    def requeue(self, request, *args, **kwargs):
        job = self.get_object()
        if job.status != DeadLetterJob.Status.PENDING:
            raise ValidationError({"status": f"Only pending jobs can be requeued (is {job.status})."})
        task_id = requeue_dead_letter(job)
        logger.info("Dead letter %s requeued by %s", job.pk, request.user.pk)
        return Response({"success": True, "taskId": task_id}, status=status.HTTP_202_ACCEPTED)
