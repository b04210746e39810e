"""
Two-window throttles for the public ingestion routes.

A view declares ``throttle_scope = "cart_track"`` and lists both classes in
``throttle_classes``; rates are looked up as ``<scope>_burst`` and
``<scope>_sustained`` in REST_FRAMEWORK["DEFAULT_THROTTLE_RATES"]. Rates
accept a window multiplier, e.g. ``"30/10s"`` or ``"5/1s"``.
"""
import re

from django.core.exceptions import ImproperlyConfigured
from rest_framework.settings import api_settings
from rest_framework.throttling import SimpleRateThrottle

_PERIOD_RE = re.compile(r"^(\d*)([smhd])")
_UNIT_SECONDS = {"s": 1, "m": 60, "h": 3600, "d": 86400}


class WindowedIPRateThrottle(SimpleRateThrottle):
    window = None

    def __init__(self):
        # Rates depend on the view's scope; resolved in allow_request.
        pass

    def get_rate(self):
        rates = api_settings.DEFAULT_THROTTLE_RATES or {}
        try:
            return rates[self.scope]
        except KeyError:
            raise ImproperlyConfigured(f"No throttle rate set for scope '{self.scope}'")

    def parse_rate(self, rate):
        if rate is None:
            return (None, None)
        num, period = rate.split("/")
        match = _PERIOD_RE.match(period.strip())
        if not match:
            raise ImproperlyConfigured(f"Invalid throttle period '{period}'")
        multiplier = int(match.group(1) or 1)
        return int(num), multiplier * _UNIT_SECONDS[match.group(2)]

    def allow_request(self, request, view):
        base = getattr(view, "throttle_scope", None)
        if not base:
            return True
        self.scope = f"{base}_{self.window}"
        self.rate = self.get_rate()
        self.num_requests, self.duration = self.parse_rate(self.rate)
        return super().allow_request(request, view)

    def get_cache_key(self, request, view):
        return self.cache_format % {"scope": self.scope, "ident": self.get_ident(request)}


class BurstRateThrottle(WindowedIPRateThrottle):
    """Tight short-window cap per client IP."""
    window = "burst"


class SustainedRateThrottle(WindowedIPRateThrottle):
    """Looser cap over a longer window per client IP."""
    window = "sustained"
