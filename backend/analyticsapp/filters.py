import uuid

from django.db.models import Q
from django.utils.dateparse import parse_date, parse_datetime
from rest_framework.exceptions import ValidationError
from rest_framework.filters import BaseFilterBackend


def _csv(value):
    return [x.strip() for x in value.split(",") if x.strip()]


def _bound(name, value):
    parsed = parse_datetime(value) or parse_date(value)
    if parsed is None:
        raise ValidationError({name: f"Expected an ISO date or datetime, got {value!r}."})
    return parsed


class EventSmartFilter(BaseFilterBackend):
    """
    Supports query params:
      - event_type (comma-separated)
      - since, until (ISO date or datetime)
      - session_id, user_ref, company_ref (comma-separated)
      - company, company_user (id)
      - product, variant (provider ids)
      - contains (JSON-path-ish on payload: key.eq=value; key.icontains=foo; key.exists=true)
    """
    def filter_queryset(self, request, queryset, view):
        q = Q()
        p = request.query_params

        if (types := p.get("event_type")):
            q &= Q(event_type__in=_csv(types))

        if (since := p.get("since")):
            q &= Q(ts__gte=_bound("since", since))
        if (until := p.get("until")):
            q &= Q(ts__lte=_bound("until", until))

        for field in ("session_id", "user_ref", "company_ref"):
            if v := p.get(field):
                q &= Q(**{f"{field}__in": _csv(v)})

        for param, field in (("company", "company_id"), ("company_user", "company_user_id")):
            if v := p.get(param):
                try:
                    q &= Q(**{field: uuid.UUID(v)})
                except ValueError:
                    raise ValidationError({param: "Expected a UUID."})

        for param, field in (("product", "provider_product_id"), ("variant", "provider_variant_id")):
            if v := p.get(param):
                if not v.isdigit():
                    raise ValidationError({param: "Expected a numeric provider id."})
                q &= Q(**{field: int(v)})

        qs = queryset.filter(q)

        # examples: payload.source.eq=email   payload.query.icontains=shirt   payload.productId.exists=true
        for rule in p.getlist("contains"):
            if "=" not in rule:
                continue
            left, value = rule.split("=", 1)
            key, op = left.rsplit(".", 1) if "." in left else (left, "eq")
            key = key.replace("payload.", "", 1)
            if op == "eq":
                qs = qs.filter(**{f"payload__{key}": value})
            elif op == "icontains":
                qs = qs.filter(**{f"payload__{key}__icontains": value})
            elif op == "exists":
                want = value.lower() in ("1", "true", "yes")
                qs = qs.filter(payload__has_key=key) if want else qs.exclude(payload__has_key=key)

        return qs
