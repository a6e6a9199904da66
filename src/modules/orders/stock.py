"""Stock transition engine.

Couples order state changes to stock bookkeeping.  Side effects depend
on the *edge*, never on the destination alone:

- entering DELIVERING from any other state deducts every line;
- entering RETURNED from any other state restores every line;
- every other edge (including repeated writes of the same state) leaves
  stock untouched.

Each line affects exactly one bucket: its variant when one resolves
(stored foreign key, then the ``variant_id`` recorded in
``option_details``, then a fresh resolver run over the raw selection),
otherwise the product's flat ``quantity``.  Counters only move through
conditional atomic updates, so a deduction that would go negative fails
instead of racing.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import asdict, dataclass
from typing import TYPE_CHECKING, Any, Dict, List, Optional

import structlog
from django.db import transaction

from modules.catalog.resolver import VariantResolver, flatten_selection, stored_variant_id
from modules.core.exceptions import InsufficientStock
from modules.orders.constants import OrderState, StockEffect
from modules.orders.events import StockDeducted, StockRestored
from modules.orders.exceptions import OrderNotFound

if TYPE_CHECKING:
    from modules.catalog.repositories.interfaces import IVariantRepository
    from modules.orders.models import Order
    from modules.orders.repositories.interfaces import IOrderRepository
    from modules.products.repositories.interfaces import IProductRepository

logger = structlog.get_logger(__name__)


def stock_effect_for(from_state: Optional[str], to_state: str) -> Optional[str]:
    """Stock side effect of moving an order from ``from_state`` to ``to_state``."""
    if to_state == OrderState.DELIVERING and from_state != OrderState.DELIVERING:
        return StockEffect.DEDUCT
    if to_state == OrderState.RETURNED and from_state != OrderState.RETURNED:
        return StockEffect.RESTORE
    return None


@dataclass(frozen=True)
class StockLine:
    """One order item bound to the bucket it affects."""

    item_id: str
    product_id: str
    name: str
    quantity: int
    variant_id: Optional[str] = None

    @property
    def bucket(self) -> str:
        return f"variant:{self.variant_id}" if self.variant_id else f"product:{self.product_id}"


@dataclass(frozen=True)
class LineAvailability:
    item_id: str
    product_id: str
    variant_id: Optional[str]
    name: str
    requested_quantity: int
    available_stock: int
    is_valid: bool

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class StockTransitionEngine:
    """Applies stock deductions / restorations for order state edges."""

    def __init__(
        self,
        order_repository: IOrderRepository,
        product_repository: IProductRepository,
        variant_repository: IVariantRepository,
    ) -> None:
        self._order_repo = order_repository
        self._product_repo = product_repository
        self._variant_repo = variant_repository
        self._resolver = VariantResolver(variant_repository)

    # ------------------------------------------------------------------
    # Line resolution
    # ------------------------------------------------------------------

    def lines_for(self, order: Order) -> List[StockLine]:
        """Bind every item of ``order`` to its stock bucket."""
        items = list(order.items.all())
        products = self._product_repo.get_many([str(i.product_id) for i in items])

        linked = {
            str(item.id): str(item.variant_id) if item.variant_id else stored_variant_id(item.option_details)
            for item in items
        }
        variants = self._variant_repo.get_many([v for v in linked.values() if v])

        lines: List[StockLine] = []
        for item in items:
            product = products.get(str(item.product_id))
            variant_id = linked[str(item.id)]
            if variant_id not in variants:
                variant_id = self._resolver.resolve(
                    str(item.product_id), flatten_selection(item.option_details)
                )
            variant = variants.get(variant_id) if variant_id else None
            if variant_id and variant is None:
                variant = self._variant_repo.get_by_id(variant_id)

            name = product.name if product else str(item.product_id)
            if variant is not None:
                name = f"{name} ({variant.name})"
            lines.append(
                StockLine(
                    item_id=str(item.id),
                    product_id=str(item.product_id),
                    name=name,
                    quantity=item.quantity,
                    variant_id=variant_id,
                )
            )
        return lines

    # ------------------------------------------------------------------
    # Validation (dry run)
    # ------------------------------------------------------------------

    def _available(self, lines: List[StockLine]) -> Dict[str, int]:
        variants = self._variant_repo.get_many([line.variant_id for line in lines if line.variant_id])
        products = self._product_repo.get_many([line.product_id for line in lines if not line.variant_id])
        available: Dict[str, int] = {}
        for line in lines:
            if line.variant_id:
                variant = variants.get(line.variant_id)
                available[line.bucket] = variant.stock if variant else 0
            else:
                product = products.get(line.product_id)
                available[line.bucket] = product.quantity if product else 0
        return available

    def validate_order(self, order: Order) -> Dict[str, Any]:
        """Check every line against its bucket without touching stock.

        Lines sharing a bucket are checked cumulatively, in item order.
        """
        lines = self.lines_for(order)
        available = self._available(lines)
        consumed: Dict[str, int] = defaultdict(int)

        results: List[LineAvailability] = []
        for line in lines:
            remaining = available[line.bucket] - consumed[line.bucket]
            consumed[line.bucket] += line.quantity
            results.append(
                LineAvailability(
                    item_id=line.item_id,
                    product_id=line.product_id,
                    variant_id=line.variant_id,
                    name=line.name,
                    requested_quantity=line.quantity,
                    available_stock=max(remaining, 0),
                    is_valid=remaining >= line.quantity,
                )
            )

        return {
            "is_valid": all(r.is_valid for r in results),
            "results": [r.to_dict() for r in results],
        }

    def validate_stock_for_order(self, order_id: str) -> Dict[str, Any]:
        """Dry-run availability report for an order.

        Raises:
            OrderNotFound: the order does not exist.
        """
        order = self._order_repo.get_by_id(str(order_id))
        if not order:
            raise OrderNotFound(f"Order {order_id} not found.")
        return self.validate_order(order)

    @staticmethod
    def insufficient_stock_error(report: Dict[str, Any]) -> InsufficientStock:
        """One combined error listing every short line of a validation report."""
        short = [r for r in report["results"] if not r["is_valid"]]
        message = "Insufficient stock: " + "; ".join(
            f"{r['name']}: requested {r['requested_quantity']}, available {r['available_stock']}"
            for r in short
        )
        return InsufficientStock(message, results=short)

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def _deduct(self, line: StockLine) -> None:
        if line.variant_id:
            ok = self._variant_repo.decrement_stock(line.variant_id, line.quantity)
        else:
            ok = self._product_repo.decrement_quantity(line.product_id, line.quantity)
        if not ok:
            available = self._available([line]).get(line.bucket, 0)
            raise InsufficientStock(
                f"Insufficient stock: {line.name}: requested {line.quantity}, available {available}",
                results=[
                    {
                        "item_id": line.item_id,
                        "product_id": line.product_id,
                        "variant_id": line.variant_id,
                        "name": line.name,
                        "requested_quantity": line.quantity,
                        "available_stock": available,
                        "is_valid": False,
                    }
                ],
            )

    def _restore(self, line: StockLine) -> None:
        if line.variant_id:
            ok = self._variant_repo.increment_stock(line.variant_id, line.quantity)
        else:
            ok = self._product_repo.increment_quantity(line.product_id, line.quantity)
        if not ok:
            logger.warning("order.stock_bucket_missing", bucket=line.bucket, item_id=line.item_id)

    def apply_effect(self, order: Order, effect: Optional[str]) -> List[StockLine]:
        """Deduct or restore every line of ``order``; no-op for ``None``.

        Must run inside the caller's transaction: a failing line aborts
        the whole unit of work.
        """
        if effect is None:
            return []

        lines = sorted(self.lines_for(order), key=lambda line: line.bucket)
        log = logger.bind(order_id=order.id, effect=effect)
        for line in lines:
            if effect == StockEffect.DEDUCT:
                self._deduct(line)
            else:
                self._restore(line)
            log.info(
                "order.stock_line_applied",
                bucket=line.bucket,
                quantity=line.quantity,
            )

        units = sum(line.quantity for line in lines)
        event_cls = StockDeducted if effect == StockEffect.DEDUCT else StockRestored
        order.add_domain_event(event_cls(aggregate_id=order.id, line_count=len(lines), units=units))
        log.info(
            "order.stock_deducted" if effect == StockEffect.DEDUCT else "order.stock_restored",
            line_count=len(lines),
            units=units,
        )
        return lines

    def apply_transition(self, order: Order, from_state: Optional[str], to_state: str) -> List[StockLine]:
        return self.apply_effect(order, stock_effect_for(from_state, to_state))

    @transaction.atomic
    def apply_stock_transition(
        self, order_id: str, from_state: Optional[str], to_state: str
    ) -> None:
        """Apply the stock side effect of ``from_state -> to_state`` for an order.

        Locks the order row for the duration of the transaction.

        Raises:
            OrderNotFound: the order does not exist.
            InsufficientStock: a deduction would drive a bucket negative.
        """
        effect = stock_effect_for(from_state, to_state)
        if effect is None:
            return
        order = self._order_repo.get_for_update(str(order_id))
        if not order:
            raise OrderNotFound(f"Order {order_id} not found.")
        self.apply_effect(order, effect)
        self._order_repo.save(order)
