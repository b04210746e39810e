import logging
import uuid
from datetime import timedelta

from django.conf import settings
from django.db import transaction
from django.utils import timezone
from kombu.exceptions import OperationalError as BrokerError
from rest_framework import mixins, status
from rest_framework.decorators import action
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from common.exceptions import TenantNotResolved, error_body
from common.mixins import TenantScopedReadOnlyViewSet
from common.permissions import PrivateTenantOnly
from common.throttling import BurstRateThrottle, SustainedRateThrottle
from platformapp.models import ActivityLog
from platformapp.serializers import ActivityLogSerializer
from platformapp.services.activity import CART_EVENT_TYPES, log_activity

from .models import Cart
from .reconciler import reconcile_cart
from .serializers import CartSerializer, SyncCartSerializer, TrackCartSerializer
from .tasks import reconcile_cart_snapshot

logger = logging.getLogger(__name__)

TRUTHY = {"1", "true", "yes", "on"}


# ---------- Public ingestion ----------
class _CartSnapshotView(APIView):
    """
    Validate a cart payload, wrap it in a CartSnapshot and queue it.
    Public: the storefront script carries no credentials, so authentication
    is off and two per-IP throttles bound the traffic instead.
    """
    permission_classes = [AllowAny]
    authentication_classes = []
    throttle_classes = [BurstRateThrottle, SustainedRateThrottle]
    serializer_class = None

    def post(self, request, *args, **kwargs):
        serializer = self.serializer_class(data=request.data)
        serializer.is_valid(raise_exception=True)
        snapshot = serializer.to_snapshot(envelope_id=uuid.uuid4().hex)

        if getattr(settings, "INGEST_INLINE_RECONCILE", False):
            try:
                result = reconcile_cart(snapshot)
            except TenantNotResolved:
                return Response(error_body(status.HTTP_404_NOT_FOUND, "Unknown shop"), status=status.HTTP_404_NOT_FOUND)
            return Response(CartSerializer(result.cart).data, status=status.HTTP_200_OK)

        try:
            reconcile_cart_snapshot.delay(snapshot.to_dict())
        except BrokerError:
            logger.exception("Could not enqueue cart snapshot %s", snapshot.envelope_id)
            return Response(
                error_body(status.HTTP_503_SERVICE_UNAVAILABLE, "Ingestion queue unavailable"),
                status=status.HTTP_503_SERVICE_UNAVAILABLE,
            )

        return Response(
            {
                "success": True,
                "queued": True,
                "cartToken": snapshot.cart_token,
                "itemCount": len(snapshot.lines),
            },
            status=status.HTTP_202_ACCEPTED,
        )


class TrackCartView(_CartSnapshotView):
    throttle_scope = "cart_track"
    serializer_class = TrackCartSerializer


class SyncCartView(_CartSnapshotView):
    throttle_scope = "cart_sync"
    serializer_class = SyncCartSerializer


class CartActivityView(APIView):
    """Activity feed of one cart for the storefront widget (newest first)."""
    permission_classes = [AllowAny]
    authentication_classes = []
    throttle_classes = [BurstRateThrottle]
    throttle_scope = "cart_activity"
    limit = 100

    def get(self, request, cart_id, *args, **kwargs):
        rows = ActivityLog.objects.filter(cart_id=cart_id, event_type__in=CART_EVENT_TYPES)[: self.limit]
        return Response(ActivityLogSerializer(rows, many=True).data)


# ---------- Operator API ----------
class CartViewSet(mixins.DestroyModelMixin, TenantScopedReadOnlyViewSet):
    """
    Abandoned carts of the tenant. By default only carts idle for longer than
    CART_ABANDONED_AFTER_MINUTES and not converted are listed;
    `?include_recent=true` drops the idle-time filter.
    """
    queryset = (
        Cart.objects
        .select_related("company", "created_by")
        .prefetch_related("items")
    )
    serializer_class = CartSerializer
    permission_classes = [IsAuthenticated, PrivateTenantOnly]
    search_fields = ("cart_token", "company__name", "created_by__email")
    ordering_fields = ("updated_at", "created_at", "total")
    default_ordering = ("-updated_at",)
    ignored_params = ("include_recent",)

    def get_queryset(self):
        qs = super().get_queryset()
        if self.action != "list":
            return qs
        if "status" not in self.request.query_params:
            qs = qs.exclude(status=Cart.Status.CONVERTED)
        include_recent = (self.request.query_params.get("include_recent") or "").lower() in TRUTHY
        if not include_recent:
            idle = timedelta(minutes=getattr(settings, "CART_ABANDONED_AFTER_MINUTES", 60))
            qs = qs.filter(updated_at__lt=timezone.now() - idle)
        return qs

    @action(detail=True, methods=["post"])
    def restore(self, request, *args, **kwargs):
        cart = self.get_object()
        with transaction.atomic():
            cart.status = Cart.Status.RESTORED
            cart.save(update_fields=["status", "updated_at"])
            log_activity(
                tenant=cart.tenant, company=cart.company, company_user=cart.created_by, cart_id=cart.pk,
                event_type="cart_restored",
                payload={"restoredBy": str(request.user.pk)},
            )
        logger.info("Cart %s marked as restored by %s", cart.pk, request.user.pk)
        return Response({"success": True, "message": "Cart restored"})

    def perform_destroy(self, instance):
        cart_id = instance.pk
        with transaction.atomic():
            log_activity(
                tenant=instance.tenant, company=instance.company, cart_id=cart_id,
                event_type="cart_deleted",
                payload={"cartToken": instance.cart_token, "deletedBy": str(self.request.user.pk)},
            )
            instance.delete()
        logger.info("Cart %s deleted", cart_id)
