"""Option catalog service layer (Use Cases).

- ``OptionCatalogService``: option group / option tree maintenance.
- ``VariantService``: variant CRUD, bulk generation and resolution.
- ``HierarchicalStockService``: read-only stock tree and summary.

Repositories are injected through the constructor; every write use-case
is a single ``transaction.atomic`` unit of work.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Optional

import structlog
from django.conf import settings
from django.db import DatabaseError, IntegrityError, transaction

from modules.catalog.constants import (
    MAX_GROUP_LEVEL,
    MIN_GROUP_LEVEL,
    PRICE_DRIFT_TOLERANCE,
    PRICED_TYPES,
)
from modules.catalog.exceptions import (
    DuplicateVariant,
    InvalidOptionPrice,
    InvalidParentGroup,
    InvalidVariantOptions,
    OptionGroupNotFound,
    OptionNotFound,
    ReferencedInOrders,
    VariantNotFound,
)
from modules.catalog.models import Option, OptionGroup, Variant
from modules.catalog.resolver import VariantResolver
from modules.catalog.stock import (
    StockedVariant,
    build_stock_tree,
    stock_summary,
    total_stock,
)
from modules.catalog.tree import (
    Combination,
    OptionTree,
    combination_name,
    combination_path,
    combination_price,
    combination_sort_order,
    option_hash,
)
from modules.core.exceptions import ValidationFailed
from modules.products.exceptions import ProductNotFound

if TYPE_CHECKING:
    from modules.catalog.dtos import (
        CreateOptionDTO,
        CreateOptionGroupDTO,
        CreateVariantDTO,
        UpdateOptionDTO,
        UpdateOptionGroupDTO,
        UpdateVariantDTO,
    )
    from modules.catalog.repositories.interfaces import (
        IOptionGroupRepository,
        IVariantRepository,
    )
    from modules.products.models import Product
    from modules.products.repositories.interfaces import IProductRepository

logger = structlog.get_logger(__name__)


def _live_product(repo: IProductRepository, product_id: str) -> Product:
    product = repo.get_by_id(str(product_id))
    if not product or product.is_deleted:
        raise ProductNotFound(f"Product {product_id} not found.")
    return product


def _refresh_group_paths(group_repo: IOptionGroupRepository, product_id: str) -> int:
    tree = OptionTree.from_models(group_repo.list_for_product(str(product_id)))
    return group_repo.update_paths({g.id: tree.path_names(g.id) for g in tree.groups()})


def _brief(variant: Variant) -> Dict[str, Any]:
    return {
        "id": str(variant.id),
        "name": variant.name,
        "option_path": variant.option_path,
        "stock": variant.stock,
        "price_adjustment": str(variant.price_adjustment),
    }


# ---------------------------------------------------------------------------
# Option groups and options
# ---------------------------------------------------------------------------


class OptionCatalogService:
    """Application service for the option group / option tree."""

    def __init__(
        self,
        group_repository: IOptionGroupRepository,
        variant_repository: IVariantRepository,
        product_repository: IProductRepository,
    ) -> None:
        self._group_repo = group_repository
        self._variant_repo = variant_repository
        self._product_repo = product_repository

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def list_groups(self, product_id: str) -> List[OptionGroup]:
        _live_product(self._product_repo, product_id)
        return self._group_repo.list_for_product(str(product_id))

    def get_group(self, group_id: str) -> OptionGroup:
        group = self._group_repo.get_by_id(str(group_id))
        if not group:
            raise OptionGroupNotFound(f"Option group {group_id} not found.")
        return group

    def get_option(self, option_id: str) -> Option:
        option = self._group_repo.get_option(str(option_id))
        if not option:
            raise OptionNotFound(f"Option {option_id} not found.")
        return option

    # ------------------------------------------------------------------
    # Groups
    # ------------------------------------------------------------------

    def _checked_parent(
        self, tree: OptionTree, product_id: str, group_id: Optional[str], parent_id: str
    ) -> OptionGroup:
        """Load ``parent_id`` and make sure it may parent ``group_id``.

        Raises:
            InvalidParentGroup: parent missing, on another product, not
                ``is_parent``, or an ancestor walk finds ``group_id``.
        """
        parent = self._group_repo.get_by_id(str(parent_id))
        if not parent or str(parent.product_id) != str(product_id):
            raise InvalidParentGroup(f"Parent group {parent_id} not found for this product.")
        if not parent.is_parent:
            raise InvalidParentGroup(f"Group '{parent.name}' is not marked as a parent group.")
        if tree.would_create_cycle(group_id, str(parent.id)):
            raise InvalidParentGroup("A group cannot be nested under itself or its descendants.")
        return parent

    @transaction.atomic
    def create_group(self, product_id: str, dto: CreateOptionGroupDTO) -> OptionGroup:
        """Create an option group, deriving its level from the parent.

        Raises:
            ProductNotFound: the product does not exist.
            InvalidParentGroup: the parent is unusable (see ``_checked_parent``).
        """
        product = _live_product(self._product_repo, product_id)
        group = OptionGroup(
            product=product,
            name=dto.name,
            description=dto.description,
            selection_type=dto.selection_type,
            is_required=dto.is_required,
            sort_order=dto.sort_order,
            is_parent=dto.is_parent,
            is_active=dto.is_active,
            level=MIN_GROUP_LEVEL,
            path=dto.name,
        )

        if dto.parent_id:
            tree = OptionTree.from_models(self._group_repo.list_for_product(str(product.id)))
            parent = self._checked_parent(tree, str(product.id), str(group.id), str(dto.parent_id))
            group.parent = parent
            group.level = parent.level + 1
            group.path = f"{tree.path_names(str(parent.id))}/{group.name}"

        if dto.level is not None and dto.level != group.level:
            logger.info(
                "catalog.group_level_corrected",
                requested=dto.level,
                level=group.level,
            )
        if group.level > MAX_GROUP_LEVEL:
            raise InvalidParentGroup(f"Option groups nest at most {MAX_GROUP_LEVEL} levels deep.")

        group = self._group_repo.save(group)
        if not product.has_options:
            self._product_repo.set_has_options(str(product.id), True)

        logger.info(
            "catalog.group_created",
            product_id=str(product.id),
            group_id=str(group.id),
            level=group.level,
        )
        return group

    @transaction.atomic
    def update_group(self, group_id: str, dto: UpdateOptionGroupDTO) -> OptionGroup:
        """Update a group; re-parenting recomputes levels for its whole subtree.

        Raises:
            OptionGroupNotFound: the group does not exist.
            InvalidParentGroup: the new parent is unusable or the subtree
                would exceed the maximum depth.
        """
        group = self.get_group(group_id)
        product_id = str(group.product_id)

        for field in ("name", "description", "selection_type", "is_required", "sort_order", "is_parent", "is_active"):
            value = getattr(dto, field)
            if value is not None:
                setattr(group, field, value)

        levels: Dict[str, int] = {}
        if dto.changes_parent:
            tree = OptionTree.from_models(self._group_repo.list_for_product(product_id))
            if dto.parent_id is None:
                group.parent = None
                new_level = MIN_GROUP_LEVEL
            else:
                parent = self._checked_parent(tree, product_id, str(group.id), str(dto.parent_id))
                group.parent = parent
                new_level = parent.level + 1
            levels = tree.subtree_levels(str(group.id), new_level)
            if max(levels.values()) > MAX_GROUP_LEVEL:
                raise InvalidParentGroup(f"Option groups nest at most {MAX_GROUP_LEVEL} levels deep.")
            group.level = new_level

        group = self._group_repo.save(group)
        levels.pop(str(group.id), None)
        if levels:
            self._group_repo.update_levels(levels)
        _refresh_group_paths(self._group_repo, product_id)

        logger.info("catalog.group_updated", group_id=str(group.id), moved=bool(dto.changes_parent))
        return self.get_group(str(group.id))

    @transaction.atomic
    def delete_group(self, group_id: str) -> Dict[str, int]:
        """Delete a group, its descendant groups, their options and variants.

        The order-reference guard runs inside the same transaction as the
        deletes; groups are removed deepest level first.

        Raises:
            OptionGroupNotFound: the group does not exist.
            ReferencedInOrders: an affected variant is used by an order item.
        """
        group = self.get_group(group_id)
        product_id = str(group.product_id)
        log = logger.bind(group_id=str(group.id), product_id=product_id)

        tree = OptionTree.from_models(self._group_repo.list_for_product(product_id))
        affected = [tree.get(str(group.id))] + tree.descendants(str(group.id))
        ordered_ids = [g.id for g in sorted(affected, key=lambda g: g.level, reverse=True)]

        option_ids = self._group_repo.option_ids_for_groups(ordered_ids)
        variant_ids = self._variant_repo.ids_with_options(option_ids)
        if self._variant_repo.any_referenced_by_orders(variant_ids):
            log.warning("catalog.group_delete_blocked", variants=len(variant_ids))
            raise ReferencedInOrders(
                "Cannot delete option group: its variants are referenced in orders."
            )

        variants_deleted = self._variant_repo.delete_many(variant_ids)
        groups_deleted, options_deleted = self._group_repo.delete_groups(ordered_ids)

        if self._group_repo.count_for_product(product_id) == 0:
            self._product_repo.set_has_options(product_id, False)

        result = {
            "groups_deleted": groups_deleted,
            "options_deleted": options_deleted,
            "variants_deleted": variants_deleted,
        }
        log.info("catalog.group_deleted", **result)
        return result

    # ------------------------------------------------------------------
    # Options
    # ------------------------------------------------------------------

    @transaction.atomic
    def create_option(self, group_id: str, dto: CreateOptionDTO) -> Option:
        """Add an option to a group.

        Raises:
            OptionGroupNotFound: the group does not exist.
        """
        group = self.get_group(group_id)
        option = Option(
            group=group,
            name=dto.name,
            description=dto.description,
            price_type=dto.price_type,
            price_value=dto.price_value,
            is_default=dto.is_default,
            is_available=dto.is_available,
            stock=dto.stock,
            sort_order=dto.sort_order,
        )
        option = self._group_repo.save_option(option)
        logger.info("catalog.option_created", group_id=str(group.id), option_id=str(option.id))
        return option

    @transaction.atomic
    def update_option(self, option_id: str, dto: UpdateOptionDTO) -> Option:
        """Update an option, re-checking the price type / value pair.

        Raises:
            OptionNotFound: the option does not exist.
            InvalidOptionPrice: a priced type ends up without a value.
        """
        option = self.get_option(option_id)
        for field in ("name", "description", "price_type", "price_value", "is_default", "is_available", "stock", "sort_order"):
            value = getattr(dto, field)
            if value is not None:
                setattr(option, field, value)

        if option.price_type in PRICED_TYPES and (option.price_value is None or option.price_value < 0):
            raise InvalidOptionPrice(
                f"price_value is required and non-negative for price type {option.price_type}."
            )

        option = self._group_repo.save_option(option)
        logger.info("catalog.option_updated", option_id=str(option.id))
        return option

    @transaction.atomic
    def delete_option(self, option_id: str) -> Dict[str, int]:
        """Delete an option and the variants built from it.

        Raises:
            OptionNotFound: the option does not exist.
            ReferencedInOrders: one of those variants is used by an order item.
        """
        option = self.get_option(option_id)
        variant_ids = self._variant_repo.ids_with_options([str(option.id)])
        if self._variant_repo.any_referenced_by_orders(variant_ids):
            logger.warning("catalog.option_delete_blocked", option_id=str(option.id))
            raise ReferencedInOrders("Cannot delete option: its variants are referenced in orders.")

        variants_deleted = self._variant_repo.delete_many(variant_ids)
        self._group_repo.delete_option(str(option.id))
        logger.info(
            "catalog.option_deleted",
            option_id=str(option.id),
            variants_deleted=variants_deleted,
        )
        return {"variants_deleted": variants_deleted}


# ---------------------------------------------------------------------------
# Variants
# ---------------------------------------------------------------------------


class VariantService:
    """Application service for variants."""

    def __init__(
        self,
        variant_repository: IVariantRepository,
        group_repository: IOptionGroupRepository,
        product_repository: IProductRepository,
    ) -> None:
        self._variant_repo = variant_repository
        self._group_repo = group_repository
        self._product_repo = product_repository
        self._resolver = VariantResolver(variant_repository)

    def list_variants(self, product_id: str) -> List[Variant]:
        _live_product(self._product_repo, product_id)
        return self._variant_repo.list_for_product(str(product_id))

    def get_variant(self, variant_id: str) -> Variant:
        variant = self._variant_repo.get_by_id(str(variant_id))
        if not variant:
            raise VariantNotFound(f"Variant {variant_id} not found.")
        return variant

    def resolve(self, product_id: str, option_ids: Iterable[str]) -> Optional[str]:
        """Return the variant id a selection maps to, ``None`` for the flat bucket."""
        _live_product(self._product_repo, product_id)
        return self._resolver.resolve(str(product_id), [str(i) for i in option_ids])

    # ------------------------------------------------------------------
    # CRUD
    # ------------------------------------------------------------------

    @transaction.atomic
    def create_variant(self, product_id: str, dto: CreateVariantDTO) -> Variant:
        """Create a variant for an explicit option combination.

        Raises:
            ProductNotFound: the product does not exist.
            InvalidVariantOptions: an option is unknown or belongs elsewhere.
            DuplicateVariant: the combination already has a variant.
        """
        product = _live_product(self._product_repo, product_id)
        tree = OptionTree.from_models(self._group_repo.list_for_product(str(product.id)))
        by_option = {o.id: (g, o) for g in tree.groups() for o in g.options}

        wanted = [str(i) for i in dto.option_ids]
        missing = [i for i in wanted if i not in by_option]
        if missing:
            raise InvalidVariantOptions(f"Options not found for this product: {', '.join(missing)}.")

        combination: Combination = tuple(
            sorted((by_option[i] for i in wanted), key=lambda pair: (pair[0].level, pair[0].sort_order))
        )
        digest = option_hash(wanted)
        if self._variant_repo.get_by_hash(str(product.id), digest):
            raise DuplicateVariant("A variant with this option combination already exists.")

        variant = Variant(
            product=product,
            name=dto.name or combination_name(combination),
            sku=dto.sku or None,
            stock=dto.stock,
            price_adjustment=(
                dto.price_adjustment
                if dto.price_adjustment is not None
                else combination_price(combination)
            ),
            option_hash=digest,
            option_path=combination_path(combination),
            sort_order=combination_sort_order(combination),
            is_active=dto.is_active,
        )
        try:
            with transaction.atomic():
                variant = self._variant_repo.create_with_options(variant, wanted)
        except IntegrityError as exc:
            raise DuplicateVariant("A variant with this option combination already exists.") from exc
        return variant

    @transaction.atomic
    def update_variant(self, variant_id: str, dto: UpdateVariantDTO) -> Variant:
        variant = self.get_variant(variant_id)
        for field in ("name", "sku", "stock", "price_adjustment", "is_active"):
            value = getattr(dto, field)
            if value is not None:
                setattr(variant, field, value)
        variant = self._variant_repo.save(variant)
        logger.info("catalog.variant_updated", variant_id=str(variant.id))
        return variant

    @transaction.atomic
    def update_stock(self, variant_id: str, stock: int) -> Variant:
        """Overwrite the stock counter of one variant.

        Raises:
            ValidationFailed: ``stock`` is negative.
            VariantNotFound: the variant does not exist.
        """
        if stock is None or int(stock) < 0:
            raise ValidationFailed("Stock must be a non-negative integer.")
        if not self._variant_repo.set_stock(str(variant_id), int(stock)):
            raise VariantNotFound(f"Variant {variant_id} not found.")
        logger.info("catalog.variant_stock_set", variant_id=str(variant_id), stock=int(stock))
        return self.get_variant(variant_id)

    @transaction.atomic
    def delete_variant(self, variant_id: str) -> None:
        """Raises ``ReferencedInOrders`` when an order item points at the variant."""
        variant = self.get_variant(variant_id)
        if self._variant_repo.any_referenced_by_orders([str(variant.id)]):
            raise ReferencedInOrders("Cannot delete variant: it is referenced in orders.")
        self._variant_repo.delete_many([str(variant.id)])
        logger.info("catalog.variant_deleted", variant_id=str(variant.id))

    # ------------------------------------------------------------------
    # Generation
    # ------------------------------------------------------------------

    def _upsert(self, product: Product, combination: Combination) -> tuple[str, Variant]:
        option_ids = [option.id for _, option in combination]
        digest = option_hash(option_ids)
        name = combination_name(combination)
        path = combination_path(combination)
        price = combination_price(combination)
        sort_order = combination_sort_order(combination)

        existing = self._variant_repo.get_by_hash(str(product.id), digest)
        if existing is None:
            variant = Variant(
                product=product,
                name=name,
                stock=0,
                price_adjustment=price,
                option_hash=digest,
                option_path=path,
                sort_order=sort_order,
            )
            return "created", self._variant_repo.create_with_options(variant, option_ids)

        drifted = (
            existing.name != name
            or existing.option_path != path
            or abs(existing.price_adjustment - price) > PRICE_DRIFT_TOLERANCE
        )
        if not drifted:
            return "skipped", existing

        existing.name = name
        existing.option_path = path
        existing.price_adjustment = price
        existing.sort_order = sort_order
        return "updated", self._variant_repo.save(existing)

    @transaction.atomic
    def generate_variants(self, product_id: str) -> Dict[str, List[Dict[str, Any]]]:
        """Create missing variants for every leaf combination of the option tree.

        Existing variants (matched by option hash) are updated only when
        their name, path or price adjustment drifted; nothing is deleted.
        Each combination runs in its own savepoint so a failing one lands
        in ``errors`` without undoing the rest.

        Raises:
            ProductNotFound: the product does not exist.
        """
        product = _live_product(self._product_repo, product_id)
        log = logger.bind(product_id=str(product.id))

        tree = OptionTree.from_models(self._group_repo.list_for_product(str(product.id)))
        combinations = tree.leaf_combinations()
        results: Dict[str, List[Dict[str, Any]]] = {
            "created": [],
            "updated": [],
            "skipped": [],
            "errors": [],
        }

        for combination in combinations:
            try:
                with transaction.atomic():
                    action, variant = self._upsert(product, combination)
            except DatabaseError as exc:
                log.warning(
                    "catalog.variant_generation_failed",
                    combination=combination_name(combination),
                    error=str(exc),
                )
                results["errors"].append(
                    {"combination": combination_name(combination), "error": str(exc)}
                )
                continue
            results[action].append(_brief(variant))

        _refresh_group_paths(self._group_repo, str(product.id))
        log.info(
            "catalog.variants_generated",
            combinations=len(combinations),
            **{key: len(value) for key, value in results.items()},
        )
        return results


# ---------------------------------------------------------------------------
# Hierarchical stock
# ---------------------------------------------------------------------------


class HierarchicalStockService:
    """Read-only stock views over the option tree."""

    def __init__(
        self,
        group_repository: IOptionGroupRepository,
        variant_repository: IVariantRepository,
        product_repository: IProductRepository,
        low_stock_threshold: Optional[int] = None,
    ) -> None:
        self._group_repo = group_repository
        self._variant_repo = variant_repository
        self._product_repo = product_repository
        if low_stock_threshold is None:
            low_stock_threshold = getattr(settings, "LOW_STOCK_THRESHOLD", 10)
        self._low_stock_threshold = low_stock_threshold

    def _stocked_variants(self, product_id: str) -> List[StockedVariant]:
        return [
            StockedVariant(
                id=str(v.id),
                name=v.name,
                stock=v.stock,
                option_ids=frozenset(str(o.id) for o in v.options.all()),
            )
            for v in self._variant_repo.list_for_product(product_id)
        ]

    def get_hierarchical_stock(self, product_id: str) -> Dict[str, Any]:
        """Stock tree of a product plus its level-1 total.

        Raises:
            ProductNotFound: the product does not exist.
        """
        product = _live_product(self._product_repo, product_id)
        tree = OptionTree.from_models(self._group_repo.list_for_product(str(product.id)))
        variants = self._stocked_variants(str(product.id))
        roots = build_stock_tree(tree, variants)
        return {
            "product": {
                "id": str(product.id),
                "name": product.name,
                "total_stock": total_stock(roots),
            },
            "tree": [node.to_dict() for node in roots],
            "variants": [
                {"id": v.id, "name": v.name, "stock": v.stock} for v in variants
            ],
        }

    def get_stock_summary(self, product_id: str) -> Dict[str, Any]:
        """Counts of low / out-of-stock variants.

        Raises:
            ProductNotFound: the product does not exist.
        """
        product = _live_product(self._product_repo, product_id)
        return stock_summary(self._stocked_variants(str(product.id)), self._low_stock_threshold)
