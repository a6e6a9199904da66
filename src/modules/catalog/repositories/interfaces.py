"""Option catalog repository interfaces.

``IOptionGroupRepository`` owns option groups and their options;
``IVariantRepository`` owns variants, their option links and the
variant stock counter.  Services depend on these contracts only.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Dict, Iterable, List, Optional, Tuple

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.catalog.models import Option, OptionGroup, Variant
    from modules.catalog.resolver import VariantCandidate


class IOptionGroupRepository(IRepository["OptionGroup"]):
    """Repository contract for option groups and options."""

    @abstractmethod
    def list_for_product(self, product_id: str) -> List["OptionGroup"]:
        """Groups of a product ordered by (level, sort_order), options prefetched."""

    @abstractmethod
    def count_for_product(self, product_id: str) -> int:
        """Number of option groups the product still owns."""

    @abstractmethod
    def get_option(self, id: str) -> Optional["Option"]:
        """Retrieve an option (with its group and product) by ID."""

    @abstractmethod
    def save_option(self, option: "Option") -> "Option":
        """Persist (create or update) an option."""

    @abstractmethod
    def option_ids_for_groups(self, group_ids: Iterable[str]) -> List[str]:
        """IDs of every option belonging to the given groups."""

    @abstractmethod
    def delete_option(self, id: str) -> bool:
        """Remove an option row."""

    @abstractmethod
    def delete_groups(self, group_ids_deepest_first: List[str]) -> Tuple[int, int]:
        """Remove groups one at a time in the given order.

        Returns ``(groups_deleted, options_deleted)``.
        """

    @abstractmethod
    def update_levels(self, levels: Dict[str, int]) -> None:
        """Write a new ``level`` for each group ID in ``levels``."""

    @abstractmethod
    def update_paths(self, paths: Dict[str, str]) -> int:
        """Write ``path`` breadcrumbs, returning how many rows changed."""


class IVariantRepository(IRepository["Variant"]):
    """Repository contract for variants and the variant stock counter."""

    @abstractmethod
    def list_for_product(self, product_id: str) -> List["Variant"]:
        """Variants of a product with their options prefetched."""

    @abstractmethod
    def candidates_for_product(self, product_id: str) -> List["VariantCandidate"]:
        """(id, hash, option-id set) of every variant, active or not.

        ``is_active`` only hides a variant from the storefront; a line must
        keep resolving to the same stock bucket while the flag changes.
        """

    @abstractmethod
    def get_by_hash(self, product_id: str, option_hash: str) -> Optional["Variant"]:
        """Retrieve the variant representing an option combination."""

    @abstractmethod
    def create_with_options(self, variant: "Variant", option_ids: List[str]) -> "Variant":
        """Insert a variant together with its variant/option join rows."""

    @abstractmethod
    def get_many(self, ids: Iterable[str]) -> Dict[str, "Variant"]:
        """Return the variants with the given IDs keyed by ``str(id)``."""

    @abstractmethod
    def ids_with_options(self, option_ids: Iterable[str]) -> List[str]:
        """IDs of variants built from any of the given options."""

    @abstractmethod
    def any_referenced_by_orders(self, variant_ids: Iterable[str]) -> bool:
        """True when an order item points at any of the given variants."""

    @abstractmethod
    def delete_many(self, ids: Iterable[str]) -> int:
        """Remove variants (and their join rows), returning the count."""

    @abstractmethod
    def set_stock(self, id: str, stock: int) -> bool:
        """Overwrite the stock counter of one variant."""

    @abstractmethod
    def decrement_stock(self, id: str, quantity: int) -> bool:
        """Atomically subtract ``quantity`` if enough stock remains."""

    @abstractmethod
    def increment_stock(self, id: str, quantity: int) -> bool:
        """Atomically add ``quantity`` back to the stock counter."""
