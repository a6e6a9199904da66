"""Product read representation."""

from __future__ import annotations

from rest_framework import serializers

from modules.products.models import Product


class ProductSerializer(serializers.ModelSerializer):
    """``quantity`` is the stock bucket of products without option groups.

    For products with options the per-variant stock lives under
    ``/products/<id>/variants/`` and this number is ignored by orders.
    """

    is_sellable = serializers.BooleanField(read_only=True)

    class Meta:
        model = Product
        read_only_fields = fields = (
            "id",
            "sku",
            "name",
            "description",
            "price",
            "quantity",
            "weight",
            "has_options",
            "status",
            "is_sellable",
            "created_at",
            "updated_at",
        )
