"""In-memory option tree for one product.

Groups are held in a flat ``id -> node`` map with the parent stored as an
id, so walking to the root, collecting descendants and expanding leaf
combinations never touch the ORM.  ``OptionTree.from_models`` builds the
arena from ``OptionGroup`` rows (with their options prefetched).
"""

from __future__ import annotations

import hashlib
from collections import defaultdict
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Set, Tuple

from modules.catalog.constants import PriceType


@dataclass(frozen=True)
class OptionNode:
    id: str
    group_id: str
    name: str
    price_type: str = PriceType.FREE
    price_value: Optional[Decimal] = None
    sort_order: int = 0
    is_available: bool = True
    stock: int = 0

    @property
    def price(self) -> Decimal:
        if self.price_type == PriceType.FREE or self.price_value is None:
            return Decimal("0.00")
        return Decimal(self.price_value)


@dataclass(frozen=True)
class GroupNode:
    id: str
    name: str
    parent_id: Optional[str] = None
    level: int = 1
    sort_order: int = 0
    is_active: bool = True
    is_parent: bool = False
    options: Tuple[OptionNode, ...] = field(default_factory=tuple)

    def available_options(self) -> Tuple[OptionNode, ...]:
        return tuple(o for o in self.options if o.is_available)


# A leaf combination: one (group, option) pair per tree level, root first.
Combination = Tuple[Tuple[GroupNode, OptionNode], ...]


# ---------------------------------------------------------------------------
# Combination helpers
# ---------------------------------------------------------------------------


def option_hash(option_ids: Iterable[str]) -> str:
    """Stable identity of an unordered option set: md5 of the sorted ids."""
    joined = "-".join(sorted(str(i) for i in option_ids))
    return hashlib.md5(joined.encode("utf-8")).hexdigest()


def combination_name(combination: Combination) -> str:
    return " ".join(option.name for _, option in combination)


def combination_path(combination: Combination) -> str:
    return "/".join(f"{group.name}:{option.name}" for group, option in combination)


def combination_price(combination: Combination) -> Decimal:
    return sum((option.price for _, option in combination), Decimal("0.00"))


def combination_sort_order(combination: Combination) -> int:
    """Fold option sort orders base-100, most significant level first."""
    size = len(combination)
    return sum(
        option.sort_order * 100 ** (size - index - 1)
        for index, (_, option) in enumerate(combination)
    )


# ---------------------------------------------------------------------------
# Tree
# ---------------------------------------------------------------------------


class OptionTree:
    """Arena of option groups keyed by id."""

    def __init__(self, groups: Iterable[GroupNode]) -> None:
        self._groups: Dict[str, GroupNode] = {}
        self._children: Dict[Optional[str], List[str]] = defaultdict(list)
        for group in sorted(groups, key=lambda g: (g.level, g.sort_order)):
            self._groups[group.id] = group
            self._children[group.parent_id].append(group.id)

    @classmethod
    def from_models(cls, groups: Iterable) -> OptionTree:
        """Build the arena from ``OptionGroup`` rows with options prefetched."""
        nodes = []
        for group in groups:
            options = tuple(
                OptionNode(
                    id=str(option.id),
                    group_id=str(group.id),
                    name=option.name,
                    price_type=option.price_type,
                    price_value=option.price_value,
                    sort_order=option.sort_order,
                    is_available=option.is_available,
                    stock=option.stock,
                )
                for option in sorted(group.options.all(), key=lambda o: o.sort_order)
            )
            nodes.append(
                GroupNode(
                    id=str(group.id),
                    name=group.name,
                    parent_id=str(group.parent_id) if group.parent_id else None,
                    level=group.level,
                    sort_order=group.sort_order,
                    is_active=group.is_active,
                    is_parent=group.is_parent,
                    options=options,
                )
            )
        return cls(nodes)

    def __len__(self) -> int:
        return len(self._groups)

    def __contains__(self, group_id: object) -> bool:
        return group_id in self._groups

    def get(self, group_id: str) -> Optional[GroupNode]:
        return self._groups.get(group_id)

    def groups(self) -> List[GroupNode]:
        return list(self._groups.values())

    def roots(self) -> List[GroupNode]:
        """Groups without a parent (or whose parent is not part of the arena)."""
        return [
            g
            for g in self._groups.values()
            if g.parent_id is None or g.parent_id not in self._groups
        ]

    def children_of(self, group_id: str) -> List[GroupNode]:
        return [self._groups[cid] for cid in self._children.get(group_id, [])]

    # ------------------------------------------------------------------
    # Ancestry
    # ------------------------------------------------------------------

    def ancestors(self, group_id: str) -> List[GroupNode]:
        """Walk parent pointers from ``group_id`` up to the root (nearest first)."""
        chain: List[GroupNode] = []
        seen: Set[str] = {group_id}
        current = self._groups.get(group_id)
        while current is not None and current.parent_id is not None:
            if current.parent_id in seen:
                break
            seen.add(current.parent_id)
            parent = self._groups.get(current.parent_id)
            if parent is None:
                break
            chain.append(parent)
            current = parent
        return chain

    def would_create_cycle(self, group_id: Optional[str], new_parent_id: str) -> bool:
        """True when making ``new_parent_id`` the parent of ``group_id`` closes a loop."""
        if group_id is None:
            return False
        if group_id == new_parent_id:
            return True
        return any(a.id == group_id for a in self.ancestors(new_parent_id))

    def descendants(self, group_id: str) -> List[GroupNode]:
        """Every group below ``group_id``, found by repeated parent/child passes."""
        found: Set[str] = {group_id}
        changed = True
        while changed:
            changed = False
            for group in self._groups.values():
                if group.parent_id in found and group.id not in found:
                    found.add(group.id)
                    changed = True
        found.discard(group_id)
        return [self._groups[gid] for gid in found]

    def subtree_levels(self, group_id: str, new_level: int) -> Dict[str, int]:
        """Levels of ``group_id`` and its descendants if the group moved to ``new_level``."""
        levels = {group_id: new_level}
        stack = [group_id]
        while stack:
            current = stack.pop()
            for child in self.children_of(current):
                if child.id not in levels:
                    levels[child.id] = levels[current] + 1
                    stack.append(child.id)
        return levels

    def path_names(self, group_id: str) -> str:
        """Slash-joined breadcrumb of group names from the root to ``group_id``."""
        group = self._groups[group_id]
        names = [a.name for a in reversed(self.ancestors(group_id))]
        names.append(group.name)
        return "/".join(names)

    # ------------------------------------------------------------------
    # Leaf expansion
    # ------------------------------------------------------------------

    def _expandable_children(self, group_id: str) -> List[GroupNode]:
        return [
            child
            for child in self.children_of(group_id)
            if child.is_active and child.available_options()
        ]

    def leaf_combinations(self) -> List[Combination]:
        """Expand active groups / available options into leaf paths.

        Each option of a root group starts a path; an option whose group has
        active child groups continues into each child group in turn (sibling
        child groups are alternatives, not crossed).  An option whose group
        has no expandable child is a leaf.
        """
        results: List[Combination] = []

        def expand(group: GroupNode, prefix: Combination) -> None:
            children = self._expandable_children(group.id)
            for option in group.available_options():
                path = prefix + ((group, option),)
                if not children:
                    results.append(path)
                    continue
                for child in children:
                    expand(child, path)

        for root in self.roots():
            if root.is_active and root.available_options():
                expand(root, ())
        return results
