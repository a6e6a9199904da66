"""Option catalog URL configuration.

Product-scoped collections are wired by hand; the per-resource viewsets
go through a router.
"""

from __future__ import annotations

from django.urls import path
from rest_framework.routers import SimpleRouter

from modules.catalog.views import (
    OptionGroupViewSet,
    OptionViewSet,
    ProductOptionGroupViewSet,
    ProductVariantViewSet,
    VariantViewSet,
)

router = SimpleRouter()
router.register("option-groups", OptionGroupViewSet, basename="option-group")
router.register("options", OptionViewSet, basename="option")
router.register("variants", VariantViewSet, basename="variant")

product_option_groups = ProductOptionGroupViewSet.as_view({"get": "list", "post": "create"})
product_variants = ProductVariantViewSet.as_view({"get": "list", "post": "create"})

urlpatterns = [
    path(
        "products/<uuid:product_id>/option-groups/",
        product_option_groups,
        name="product-option-groups",
    ),
    path(
        "products/<uuid:product_id>/variants/",
        product_variants,
        name="product-variants",
    ),
    path(
        "products/<uuid:product_id>/variants/generate/",
        ProductVariantViewSet.as_view({"post": "generate"}),
        name="product-variants-generate",
    ),
    path(
        "products/<uuid:product_id>/variants/hierarchical-stock/",
        ProductVariantViewSet.as_view({"get": "hierarchical_stock"}),
        name="product-variants-hierarchical-stock",
    ),
    path(
        "products/<uuid:product_id>/variants/stock-summary/",
        ProductVariantViewSet.as_view({"get": "stock_summary"}),
        name="product-variants-stock-summary",
    ),
    path(
        "products/<uuid:product_id>/variants/resolve-variant/",
        ProductVariantViewSet.as_view({"post": "resolve_variant"}),
        name="product-variants-resolve",
    ),
] + router.urls
