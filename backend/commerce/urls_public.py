# commerce/urls_public.py
from django.urls import path

from .views import CartActivityView, SyncCartView, TrackCartView

urlpatterns = [
    path("abandoned-carts/track", TrackCartView.as_view(), name="cart-track"),
    path("abandoned-carts/sync", SyncCartView.as_view(), name="cart-sync"),
    path("abandoned-carts/activity/<uuid:cart_id>", CartActivityView.as_view(), name="cart-activity"),
]
