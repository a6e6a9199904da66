"""Variant resolution: map a set of selected option ids to one variant.

Matching policy:

1. An **exact** match (variant option set equals the selection) wins.
2. Otherwise the **largest subset** match (variant option set contained in
   the selection) is taken; equal sizes are broken by the lowest
   ``option_hash`` so the outcome never depends on query order.
3. Nothing matches: ``None``.  Callers treat that as "use the product's
   flat quantity", not as an error.

Inactive variants take part in matching like any other.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, FrozenSet, Iterable, List, Optional

import structlog

if TYPE_CHECKING:
    from modules.catalog.repositories.interfaces import IVariantRepository

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class VariantCandidate:
    id: str
    option_hash: str
    option_ids: FrozenSet[str]


def match_variant(
    candidates: Iterable[VariantCandidate],
    selected_option_ids: Iterable[str],
) -> Optional[VariantCandidate]:
    """Pick the variant a selection maps to (see module docstring)."""
    selected = frozenset(str(i) for i in selected_option_ids if i)
    if not selected:
        return None

    subsets: List[VariantCandidate] = []
    for candidate in candidates:
        if not candidate.option_ids:
            continue
        if candidate.option_ids == selected:
            return candidate
        if candidate.option_ids <= selected:
            subsets.append(candidate)

    if not subsets:
        return None
    return min(subsets, key=lambda c: (-len(c.option_ids), c.option_hash))


def flatten_selection(option_details) -> List[str]:
    """Collect selected option ids from an order line's ``option_details``.

    Accepts the stored ``{"variant_id", "selections"}`` document, a bare
    list of selection groups, and the legacy camelCase keys
    (``selectedOptions``).
    """
    if not option_details:
        return []
    if isinstance(option_details, dict):
        groups = option_details.get("selections") or []
    else:
        groups = option_details
    ids: List[str] = []
    for group in groups:
        if not isinstance(group, dict):
            continue
        selected = group.get("selected_options") or group.get("selectedOptions") or []
        for option in selected:
            option_id = option.get("id") if isinstance(option, dict) else None
            if option_id:
                ids.append(str(option_id))
    return ids


def stored_variant_id(option_details) -> Optional[str]:
    """Variant id recorded in ``option_details`` at order creation, if any."""
    if not isinstance(option_details, dict):
        return None
    variant_id = option_details.get("variant_id") or option_details.get("variantId")
    return str(variant_id) if variant_id else None


class VariantResolver:
    """Repository-backed resolver used by order intake and stock transitions."""

    def __init__(self, repository: IVariantRepository) -> None:
        self._repo = repository

    def resolve(self, product_id: str, selected_option_ids: Iterable[str]) -> Optional[str]:
        """Return the id of the variant a selection maps to, or ``None``."""
        selected = [str(i) for i in selected_option_ids if i]
        if not selected:
            return None
        candidates = self._repo.candidates_for_product(product_id)
        match = match_variant(candidates, selected)
        logger.debug(
            "catalog.variant_resolved",
            product_id=str(product_id),
            selected=len(selected),
            variant_id=match.id if match else None,
        )
        return match.id if match else None
