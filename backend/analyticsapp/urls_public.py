from django.urls import path
from .views import CollectEventView

urlpatterns = [path("events/collect", CollectEventView.as_view(), name="event-collect")]
