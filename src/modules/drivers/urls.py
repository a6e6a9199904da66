"""Driver URL configuration."""

from __future__ import annotations

from rest_framework.routers import SimpleRouter

from modules.drivers.views import DriverViewSet

router = SimpleRouter()
router.register("drivers", DriverViewSet, basename="driver")

urlpatterns = router.urls
