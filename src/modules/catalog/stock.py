"""Hierarchical stock aggregation over an option tree.

Every group node reports the sum of its option nodes; every option node
reports either the sum of the child group nodes hanging under it or, at
a leaf, the stock of the variant whose option set equals the path from
the root.  Products that never generated variants fall back to each
option's own ``stock`` field.  The product total is the sum of the
level-1 roots only, since they already include everything below them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Iterable, List, Optional, Tuple

from modules.catalog.tree import GroupNode, OptionNode, OptionTree

GROUP = "group"
OPTION = "option"


@dataclass(frozen=True)
class StockedVariant:
    id: str
    name: str
    stock: int
    option_ids: FrozenSet[str]


@dataclass
class StockNode:
    id: str
    name: str
    type: str
    level: int
    stock: int = 0
    children: List[StockNode] = field(default_factory=list)
    group_id: Optional[str] = None
    variant_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "type": self.type,
            "level": self.level,
            "stock": self.stock,
            "group_id": self.group_id,
            "variant_id": self.variant_id,
            "children": [child.to_dict() for child in self.children],
        }


# ---------------------------------------------------------------------------
# Tree building
# ---------------------------------------------------------------------------


def _leaf_stock(
    variants: Iterable[StockedVariant], path: Tuple[str, ...]
) -> Tuple[int, Optional[str]]:
    """Stock of the variants whose option set equals ``path`` exactly.

    Several matches are summed and reported without a single variant id.
    """
    wanted = frozenset(path)
    matches = [v for v in variants if v.option_ids == wanted]
    if len(matches) == 1:
        return matches[0].stock, matches[0].id
    return sum(v.stock for v in matches), None


def _from_variants(
    tree: OptionTree, variants: List[StockedVariant]
) -> List[StockNode]:
    def group_node(group: GroupNode, prefix: Tuple[str, ...]) -> StockNode:
        node = StockNode(id=group.id, name=group.name, type=GROUP, level=group.level)
        for option in group.options:
            node.children.append(option_node(group, option, prefix + (option.id,)))
        node.stock = sum(child.stock for child in node.children)
        return node

    def option_node(group: GroupNode, option: OptionNode, path: Tuple[str, ...]) -> StockNode:
        node = StockNode(
            id=option.id,
            name=option.name,
            type=OPTION,
            level=group.level + 1,
            group_id=group.id,
        )
        child_groups = [g for g in tree.children_of(group.id) if g.options]
        if child_groups:
            node.children = [group_node(child, path) for child in child_groups]
            node.stock = sum(child.stock for child in node.children)
        else:
            node.stock, node.variant_id = _leaf_stock(variants, path)
        return node

    return [group_node(root, ()) for root in tree.roots()]


def _from_option_stock(tree: OptionTree) -> List[StockNode]:
    def group_node(group: GroupNode) -> StockNode:
        node = StockNode(id=group.id, name=group.name, type=GROUP, level=group.level)
        node.children = [group_node(child) for child in tree.children_of(group.id)]
        node.children.extend(
            StockNode(
                id=option.id,
                name=option.name,
                type=OPTION,
                level=group.level + 1,
                stock=option.stock,
                group_id=group.id,
            )
            for option in group.options
        )
        node.stock = sum(child.stock for child in node.children)
        return node

    return [group_node(root) for root in tree.roots()]


def build_stock_tree(
    tree: OptionTree, variants: Iterable[StockedVariant]
) -> List[StockNode]:
    """Build the display tree; see the module docstring for the rules."""
    variants = list(variants)
    if not len(tree):
        return []
    if not variants:
        return _from_option_stock(tree)
    return _from_variants(tree, variants)


def total_stock(roots: List[StockNode]) -> int:
    """Sum level-1 roots; fall back to every root when none is at level 1."""
    if not roots:
        return 0
    level_one = [node for node in roots if node.level == 1]
    if level_one:
        return sum(node.stock for node in level_one)
    return sum(node.stock for node in roots)


# ---------------------------------------------------------------------------
# Summary
# ---------------------------------------------------------------------------


def stock_summary(variants: Iterable[StockedVariant], low_stock_threshold: int) -> Dict[str, Any]:
    """Counts and lists of low / out-of-stock variants for one product."""
    variants = list(variants)
    low = [v for v in variants if v.stock <= low_stock_threshold]
    out = [v for v in variants if v.stock == 0]

    def brief(items: List[StockedVariant]) -> List[Dict[str, Any]]:
        return [{"id": v.id, "name": v.name, "stock": v.stock} for v in items]

    return {
        "total_variants": len(variants),
        "total_stock": sum(v.stock for v in variants),
        "low_stock_threshold": low_stock_threshold,
        "low_stock_count": len(low),
        "out_of_stock_count": len(out),
        "low_stock_variants": brief(low),
        "out_of_stock_variants": brief(out),
    }
