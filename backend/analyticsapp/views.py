from __future__ import annotations
import logging
import uuid
from datetime import timedelta

from django.db.models import Count, Max
from django.db.models.functions import TruncDate
from django.utils import timezone
from kombu.exceptions import OperationalError as BrokerError
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.exceptions import ValidationError
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from common.exceptions import error_body
from common.mixins import TenantScopedReadOnlyViewSet
from common.permissions import PrivateTenantOnly
from common.throttling import BurstRateThrottle, SustainedRateThrottle
from .filters import EventSmartFilter
from .models import Event
from .serializers import CollectEventSerializer, EventSerializer
from .tasks import process_event

logger = logging.getLogger(__name__)


def client_ip(request):
    forwarded = request.META.get("HTTP_X_FORWARDED_FOR")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.META.get("REMOTE_ADDR")


def _int_param(request, name, default, maximum):
    raw = request.query_params.get(name)
    if raw in (None, ""):
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValidationError({name: "Expected an integer."})
    if value < 1:
        raise ValidationError({name: "Must be at least 1."})
    return min(value, maximum)


# ---------- Public ingestion ----------
class CollectEventView(APIView):
    """
    Storefront behaviour events. Validated here, persisted by the worker;
    the response never waits on the database.
    """
    permission_classes = [AllowAny]
    authentication_classes = []
    throttle_classes = [BurstRateThrottle, SustainedRateThrottle]
    throttle_scope = "events_collect"

    def post(self, request, *args, **kwargs):
        serializer = CollectEventSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        envelope = serializer.to_envelope(
            uuid.uuid4().hex,
            ip=client_ip(request),
            user_agent=(request.META.get("HTTP_USER_AGENT") or "")[:500] or None,
            referrer=(request.META.get("HTTP_REFERER") or "")[:500] or None,
        )
        try:
            process_event.delay(envelope.to_dict())
        except BrokerError:
            logger.exception("Could not enqueue event %s", envelope.envelope_id)
            return Response(
                error_body(status.HTTP_503_SERVICE_UNAVAILABLE, "Ingestion queue unavailable"),
                status=status.HTTP_503_SERVICE_UNAVAILABLE,
            )
        return Response({"success": True}, status=status.HTTP_202_ACCEPTED)


# ---------- Events ----------
class EventViewSet(TenantScopedReadOnlyViewSet):
    """
    Tenant-scoped read access to stored events for the dashboard.
    Filtering is handled by EventSmartFilter.
    """
    queryset = Event.objects.select_related("company")
    serializer_class = EventSerializer
    permission_classes = [IsAuthenticated, PrivateTenantOnly]
    filter_backends = [EventSmartFilter]
    simple_filters = False
    default_ordering = ("-ts", "-id")

    @action(detail=False, methods=["get"])
    def quick_stats(self, request, *args, **kwargs):
        """
        Small, fast aggregates (for dashboards):
          - total events
          - top event types (limit N)
          - events per day (last `days`, default 30)
        """
        limit = _int_param(request, "limit", 10, 100)
        days = _int_param(request, "days", 30, 365)

        base = self.filter_queryset(Event.objects.filter(tenant=self.current_tenant))
        total = base.count()

        top = (
            base.values("event_type")
            .annotate(c=Count("id"))
            .order_by("-c")[:limit]
        )

        since = timezone.now() - timedelta(days=days)
        per_day = (
            base.filter(ts__gte=since)
            .annotate(d=TruncDate("ts"))
            .values("d")
            .annotate(c=Count("id"))
            .order_by("d")
        )

        return Response({
            "total": total,
            "top": list(top),
            "per_day": [{"d": row["d"].isoformat(), "c": row["c"]} for row in per_day],
        })

    @action(detail=False, methods=["get"])
    def company_summary(self, request, *args, **kwargs):
        """Per-company activity: event count, distinct sessions, last seen. Unattributed traffic is one row."""
        limit = _int_param(request, "limit", 20, 200)
        base = self.filter_queryset(Event.objects.filter(tenant=self.current_tenant))
        rows = (
            base.values("company_id", "company__name")
            .annotate(
                events=Count("id"),
                sessions=Count("session_id", distinct=True),
                last_seen=Max("ts"),
            )
            .order_by("-events")[:limit]
        )
        return Response([
            {
                "companyId": str(r["company_id"]) if r["company_id"] else None,
                "companyName": r["company__name"],
                "events": r["events"],
                "sessions": r["sessions"],
                "lastSeen": r["last_seen"].isoformat() if r["last_seen"] else None,
            }
            for r in rows
        ])
