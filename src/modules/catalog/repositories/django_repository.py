"""Django ORM implementations of the option catalog repositories.

Follow the Null Object pattern: look-ups return ``None`` for missing or
malformed IDs and leave the decision to the service layer.  Stock
counters only change through conditional ``UPDATE`` statements so two
concurrent deductions can never push a variant below zero.
"""

from __future__ import annotations

from collections import defaultdict
from typing import Dict, Iterable, List, Optional, Tuple

import structlog
from django.core.exceptions import ValidationError
from django.db.models import Prefetch

from modules.catalog.models import Option, OptionGroup, Variant, VariantOption
from modules.catalog.repositories.interfaces import (
    IOptionGroupRepository,
    IVariantRepository,
)
from modules.catalog.resolver import VariantCandidate
from modules.core.repositories import counters

logger = structlog.get_logger(__name__)


class OptionGroupDjangoRepository(IOptionGroupRepository):
    """Concrete option group / option repository backed by Django ORM."""

    def get_by_id(self, id: str) -> Optional[OptionGroup]:
        try:
            return (
                OptionGroup.objects.select_related("product", "parent")
                .prefetch_related("options")
                .filter(id=id)
                .first()
            )
        except (ValueError, ValidationError):
            return None

    def save(self, entity: OptionGroup) -> OptionGroup:
        entity.save()
        logger.info("catalog.group_saved", group_id=str(entity.id))
        return entity

    def list_for_product(self, product_id: str) -> List[OptionGroup]:
        try:
            queryset = (
                OptionGroup.objects.filter(product_id=product_id)
                .prefetch_related(
                    Prefetch("options", queryset=Option.objects.order_by("sort_order", "created_at"))
                )
                .order_by("level", "sort_order", "created_at")
            )
            return list(queryset)
        except (ValueError, ValidationError):
            return []

    def count_for_product(self, product_id: str) -> int:
        return OptionGroup.objects.filter(product_id=product_id).count()

    def get_option(self, id: str) -> Optional[Option]:
        try:
            return Option.objects.select_related("group", "group__product").filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def save_option(self, option: Option) -> Option:
        option.save()
        logger.info("catalog.option_saved", option_id=str(option.id))
        return option

    def option_ids_for_groups(self, group_ids: Iterable[str]) -> List[str]:
        ids = Option.objects.filter(group_id__in=list(group_ids)).values_list("id", flat=True)
        return [str(i) for i in ids]

    def delete_option(self, id: str) -> bool:
        deleted, _ = Option.objects.filter(id=id).delete()
        return deleted > 0

    def delete_groups(self, group_ids_deepest_first: List[str]) -> Tuple[int, int]:
        groups_deleted = 0
        options_deleted = 0
        for group_id in group_ids_deepest_first:
            options_deleted += Option.objects.filter(group_id=group_id).delete()[0]
            groups_deleted += OptionGroup.objects.filter(id=group_id).delete()[0]
        return groups_deleted, options_deleted

    def update_levels(self, levels: Dict[str, int]) -> None:
        for group_id, level in levels.items():
            OptionGroup.objects.filter(id=group_id).update(level=level)

    def update_paths(self, paths: Dict[str, str]) -> int:
        changed = 0
        for group_id, path in paths.items():
            changed += OptionGroup.objects.filter(id=group_id).exclude(path=path).update(path=path)
        return changed


class VariantDjangoRepository(IVariantRepository):
    """Concrete variant repository backed by Django ORM."""

    def get_by_id(self, id: str) -> Optional[Variant]:
        try:
            return (
                Variant.objects.select_related("product")
                .prefetch_related("options")
                .filter(id=id)
                .first()
            )
        except (ValueError, ValidationError):
            return None

    def save(self, entity: Variant) -> Variant:
        entity.save()
        logger.info("catalog.variant_saved", variant_id=str(entity.id))
        return entity

    def list_for_product(self, product_id: str) -> List[Variant]:
        try:
            return list(
                Variant.objects.filter(product_id=product_id)
                .prefetch_related("options")
                .order_by("sort_order", "name")
            )
        except (ValueError, ValidationError):
            return []

    def candidates_for_product(self, product_id: str) -> List[VariantCandidate]:
        try:
            rows = list(
                Variant.objects.filter(product_id=product_id).values_list("id", "option_hash")
            )
        except (ValueError, ValidationError):
            return []

        option_sets: Dict[str, set] = defaultdict(set)
        links = VariantOption.objects.filter(variant_id__in=[r[0] for r in rows])
        for variant_id, option_id in links.values_list("variant_id", "option_id"):
            option_sets[str(variant_id)].add(str(option_id))

        return [
            VariantCandidate(
                id=str(variant_id),
                option_hash=option_hash,
                option_ids=frozenset(option_sets[str(variant_id)]),
            )
            for variant_id, option_hash in rows
        ]

    def get_by_hash(self, product_id: str, option_hash: str) -> Optional[Variant]:
        return Variant.objects.filter(product_id=product_id, option_hash=option_hash).first()

    def create_with_options(self, variant: Variant, option_ids: List[str]) -> Variant:
        variant.save(force_insert=True)
        VariantOption.objects.bulk_create(
            [VariantOption(variant=variant, option_id=option_id) for option_id in option_ids]
        )
        logger.info(
            "catalog.variant_created",
            variant_id=str(variant.id),
            option_count=len(option_ids),
        )
        return variant

    def get_many(self, ids: Iterable[str]) -> Dict[str, Variant]:
        try:
            return {str(v.id): v for v in Variant.objects.filter(id__in=list(ids))}
        except (ValueError, ValidationError):
            return {}

    def ids_with_options(self, option_ids: Iterable[str]) -> List[str]:
        ids = (
            VariantOption.objects.filter(option_id__in=list(option_ids))
            .values_list("variant_id", flat=True)
            .distinct()
        )
        return [str(i) for i in ids]

    def any_referenced_by_orders(self, variant_ids: Iterable[str]) -> bool:
        ids = list(variant_ids)
        if not ids:
            return False
        return Variant.objects.filter(id__in=ids, order_items__isnull=False).exists()

    def delete_many(self, ids: Iterable[str]) -> int:
        ids = list(ids)
        if not ids:
            return 0
        VariantOption.objects.filter(variant_id__in=ids).delete()
        deleted, _ = Variant.objects.filter(id__in=ids).delete()
        return deleted

    def set_stock(self, id: str, stock: int) -> bool:
        try:
            return Variant.objects.filter(id=id).update(stock=stock) == 1
        except (ValueError, ValidationError):
            return False

    def decrement_stock(self, id: str, quantity: int) -> bool:
        return counters.decrement(Variant, id, "stock", quantity)

    def increment_stock(self, id: str, quantity: int) -> bool:
        return counters.increment(Variant, id, "stock", quantity)
