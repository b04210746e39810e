# File: backend/storefront_backend/urls.py
from django.contrib import admin
from django.http import JsonResponse
from django.urls import include, path
from drf_spectacular.views import SpectacularAPIView, SpectacularSwaggerView
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView, TokenVerifyView

from core.views import healthz


def root(_r):
    return JsonResponse({
        "service": "storefront-backend",
        "docs": "/api/docs/",
        "health": "/healthz/",
    })


urlpatterns = [
    path("admin/", admin.site.urls),
    path("healthz/", healthz, name="healthz"),

    # Public storefront ingestion (no auth, throttled)
    path("", include("analyticsapp.urls_public")),
    path("", include("commerce.urls_public")),

    # API docs
    path("api/schema/", SpectacularAPIView.as_view(), name="schema"),
    path("api/docs/", SpectacularSwaggerView.as_view(url_name="schema"), name="swagger-ui"),

    # Operator API (JWT + X-Tenant-ID)
    path("api/v1/core/", include("core.urls")),
    path("api/v1/", include("commerce.urls")),
    path("api/v1/", include("analyticsapp.urls")),
    path("api/v1/", include("platformapp.urls")),

    # SimpleJWT
    path("api/token/", TokenObtainPairView.as_view(), name="token_obtain_pair"),
    path("api/token/refresh/", TokenRefreshView.as_view(), name="token_refresh"),
    path("api/token/verify/", TokenVerifyView.as_view(), name="token_verify"),

    path("", root),
]
