"""Product repository interface.

Extends ``IRepository[Product]`` with the SKU look-up and the atomic
counter operations used by the stock transition engine.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Optional

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.products.models import Product


class IProductRepository(IRepository["Product"]):
    """Repository contract for the Product aggregate."""

    @abstractmethod
    def list(self, filters: Optional[Dict[str, Any]] = None) -> Iterable["Product"]:
        """List products with optional filters."""

    @abstractmethod
    def delete(self, id: str) -> bool:
        """Soft-delete a product by ID."""

    @abstractmethod
    def get_by_sku(self, sku: str) -> Optional["Product"]:
        """Retrieve a product by SKU."""

    @abstractmethod
    def get_many(self, ids: List[str]) -> Dict[str, "Product"]:
        """Return the products with the given IDs keyed by ``str(id)``."""

    @abstractmethod
    def decrement_quantity(self, id: str, quantity: int) -> bool:
        """Atomically subtract ``quantity`` if enough flat stock remains.

        Returns ``False`` when the guard ``quantity >= requested`` fails
        or the product does not exist.
        """

    @abstractmethod
    def increment_quantity(self, id: str, quantity: int) -> bool:
        """Atomically add ``quantity`` back to the flat stock counter."""

    @abstractmethod
    def set_has_options(self, id: str, value: bool) -> None:
        """Flag whether the product owns option groups."""
