"""Django ORM implementation of the Product repository.

Satisfies ``IProductRepository`` using Django's QuerySet API.
Look-ups return ``None`` for unknown ids; the stock bucket of a plain
product (``quantity``) moves only through ``core.repositories.counters``.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import structlog
from django.core.exceptions import ValidationError
from django.db.models import QuerySet

from modules.core.repositories import counters
from modules.products.models import Product
from modules.products.repositories.interfaces import IProductRepository

logger = structlog.get_logger(__name__)


class ProductDjangoRepository(IProductRepository):
    """Concrete Product repository backed by Django ORM."""

    def get_by_id(self, id: str) -> Optional[Product]:
        """Retrieve a product by primary key.

        Returns ``None`` for non-existent or invalid IDs.
        """
        try:
            return Product.objects.filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def list(self, filters: Optional[Dict[str, Any]] = None) -> QuerySet[Product]:
        """List live products with optional Django ORM look-ups.

        Examples of valid filters::

            {"status": "active"}
            {"name__icontains": "shirt"}
        """
        queryset = Product.objects.alive()
        if filters:
            queryset = queryset.filter(**filters)
        return queryset

    def save(self, entity: Product) -> Product:
        entity.save()
        logger.info("product.saved", product_id=str(entity.id))
        return entity

    def delete(self, id: str) -> bool:
        product = self.get_by_id(id)
        if not product:
            return False
        product.delete()
        return True

    def get_by_sku(self, sku: str) -> Optional[Product]:
        return Product.objects.filter(sku=sku.strip().upper()).first()

    def get_many(self, ids: List[str]) -> Dict[str, Product]:
        try:
            products = Product.objects.filter(id__in=ids)
            return {str(p.id): p for p in products}
        except (ValueError, ValidationError):
            return {}

    def decrement_quantity(self, id: str, quantity: int) -> bool:
        return counters.decrement(Product, id, "quantity", quantity)

    def increment_quantity(self, id: str, quantity: int) -> bool:
        return counters.increment(Product, id, "quantity", quantity)

    def set_has_options(self, id: str, value: bool) -> None:
        Product.objects.filter(id=id).update(has_options=value)
