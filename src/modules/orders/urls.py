"""Order URL configuration."""

from __future__ import annotations

from rest_framework.routers import SimpleRouter

from modules.orders.views import OrderViewSet, PublicOrderViewSet

router = SimpleRouter()
router.register("orders", OrderViewSet, basename="order")
router.register("public/orders", PublicOrderViewSet, basename="public-order")

urlpatterns = router.urls
