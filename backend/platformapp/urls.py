from django.urls import include, path
from rest_framework.routers import SimpleRouter

from .views import ActivityLogViewSet, DeadLetterViewSet

router = SimpleRouter()
router.register(r"activity", ActivityLogViewSet, basename="activity")
router.register(r"dead-letters", DeadLetterViewSet, basename="dead-letter")

urlpatterns = [path("", include(router.urls))]
