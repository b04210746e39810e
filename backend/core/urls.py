from django.urls import path

from .views import DeepHealthView

urlpatterns = [
    path('deep-health/', DeepHealthView.as_view(), name="deep-health"),
]
