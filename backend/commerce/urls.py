from django.urls import include, path
from rest_framework.routers import SimpleRouter

from .views import CartViewSet

router = SimpleRouter()  # mounted under /api/v1/ with the other apps
router.register(r"carts", CartViewSet, basename="cart")

urlpatterns = [path("", include(router.urls))]
