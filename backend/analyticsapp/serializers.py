from __future__ import annotations
from rest_framework import serializers
from django.utils import timezone
from django.utils.crypto import salted_hmac

from common.serializers import AliasedFieldsMixin
from crm.serializers import CompanyRefSerializer
from platformapp.services.tenants import normalize_shop_domain
from .envelopes import EventEnvelope
from .models import EVENT_TYPES, Event


def _stable_hash(scope: str, value: str) -> str:
    """PII hashing helper (stable per shop)."""
    if not value:
        return ""
    return salted_hmac(str(scope), value).hexdigest()


class CollectEventSerializer(AliasedFieldsMixin, serializers.Serializer):
    """Body of POST /events/collect. Unknown keys are ignored."""
    field_aliases = {
        "shop": "shopDomain",
        "token": "sessionToken",
        "eagleToken": "sessionToken",
        "shopifyCustomerId": "customerId",
    }

    eventType = serializers.ChoiceField(choices=EVENT_TYPES)
    shopDomain = serializers.CharField(max_length=255, required=False, allow_blank=True, allow_null=True)
    sessionId = serializers.CharField(max_length=255, required=False, allow_blank=True, allow_null=True)
    userId = serializers.CharField(max_length=255, required=False, allow_blank=True, allow_null=True)
    companyId = serializers.CharField(max_length=255, required=False, allow_blank=True, allow_null=True)
    pageUrl = serializers.CharField(max_length=1000, required=False, allow_blank=True, allow_null=True)
    referrer = serializers.CharField(max_length=500, required=False, allow_blank=True, allow_null=True)
    userAgent = serializers.CharField(max_length=500, required=False, allow_blank=True, allow_null=True)
    payload = serializers.DictField(required=False, default=dict)
    timestamp = serializers.DateTimeField(required=False, allow_null=True)

    sessionToken = serializers.CharField(max_length=4096, required=False, allow_blank=True, allow_null=True)
    customerId = serializers.CharField(max_length=255, required=False, allow_blank=True, allow_null=True)
    customerEmail = serializers.EmailField(max_length=255, required=False, allow_blank=True, allow_null=True)

    def to_envelope(self, envelope_id: str, *, ip: str = None, user_agent: str = None,
                    referrer: str = None) -> EventEnvelope:
        """Request headers fill in what the body left out."""
        data = self.validated_data
        shop = data.get("shopDomain") or None
        client_ts = data.get("timestamp")
        return EventEnvelope(
            envelope_id=envelope_id,
            event_type=data["eventType"],
            received_at=timezone.now().isoformat(),
            shop_domain=shop,
            session_id=data.get("sessionId") or None,
            user_ref=data.get("userId") or None,
            company_ref=data.get("companyId") or None,
            page_url=data.get("pageUrl") or None,
            referrer=(data.get("referrer") or referrer or None),
            user_agent=(data.get("userAgent") or user_agent or None),
            ip_hash=_stable_hash(normalize_shop_domain(shop) or "-", ip) if ip else None,
            session_token=data.get("sessionToken") or None,
            customer_id=data.get("customerId") or None,
            customer_email=data.get("customerEmail") or None,
            payload=dict(data.get("payload") or {}),
            client_ts=client_ts.isoformat() if client_ts else None,
        )


class EventSerializer(serializers.ModelSerializer):
    company = CompanyRefSerializer(read_only=True)
    provider_product_id = serializers.CharField(read_only=True, allow_null=True)
    provider_variant_id = serializers.CharField(read_only=True, allow_null=True)
    provider_customer_id = serializers.CharField(read_only=True, allow_null=True)

    class Meta:
        model = Event
        exclude = ("tenant",)
        read_only_fields = [f.name for f in Event._meta.fields if f.name != "tenant"]
