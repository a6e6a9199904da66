"""Product service layer (Use Cases).

Orchestrates business logic for the Product aggregate, delegating
persistence to the injected ``IProductRepository``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, Iterable, Optional

import structlog
from django.db import transaction

from modules.products.exceptions import ProductAlreadyExists, ProductNotFound
from modules.products.models import Product

if TYPE_CHECKING:
    from modules.products.dtos import CreateProductDTO, UpdateProductDTO
    from modules.products.repositories.interfaces import IProductRepository

logger = structlog.get_logger(__name__)

_UPDATABLE_FIELDS = ("name", "price", "description", "quantity", "weight", "status")


class ProductService:
    """Application service for Product use-cases."""

    def __init__(self, repository: IProductRepository) -> None:
        self._repo = repository

    @transaction.atomic
    def create_product(self, dto: CreateProductDTO) -> Product:
        """Create a new product.

        Raises:
            ProductAlreadyExists: if the SKU is already taken.
        """
        if dto.sku and self._repo.get_by_sku(dto.sku):
            logger.warning("product.duplicate_sku", sku=dto.sku)
            raise ProductAlreadyExists(f"SKU '{dto.sku}' already registered.")

        product = Product(
            sku=dto.sku,
            name=dto.name,
            price=dto.price,
            description=dto.description,
            quantity=dto.quantity,
            weight=dto.weight,
        )
        return self._repo.save(product)

    @transaction.atomic
    def update_product(self, id: str, dto: UpdateProductDTO) -> Product:
        """Update an existing product with the supplied fields.

        Raises:
            ProductNotFound: if the product does not exist.
        """
        product = self.get_product(id)
        for field in _UPDATABLE_FIELDS:
            value = getattr(dto, field)
            if value is not None:
                setattr(product, field, value)
        product = self._repo.save(product)
        logger.info("product.updated", product_id=str(id))
        return product

    def list_products(self, filters: Optional[Dict[str, Any]] = None) -> Iterable[Product]:
        return self._repo.list(filters)

    def get_product(self, id: str) -> Product:
        """Retrieve a live product by ID.

        Raises:
            ProductNotFound: if the product does not exist or was deleted.
        """
        product = self._repo.get_by_id(id)
        if not product or product.is_deleted:
            raise ProductNotFound(f"Product {id} not found.")
        return product

    @transaction.atomic
    def delete_product(self, id: str) -> None:
        """Soft-delete a product; order history keeps pointing at it."""
        self.get_product(id)
        self._repo.delete(id)
        logger.info("product.soft_deleted", product_id=str(id))
