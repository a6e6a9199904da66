"""Django ORM implementation of the Order repository.

Satisfies ``IOrderRepository`` using Django's QuerySet API.
Concurrency control on state updates uses ``select_for_update()``.
Domain events collected on the aggregate are handed to the in-memory
bus on ``save`` and published once the transaction commits.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

import structlog
from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import QuerySet

from modules.orders.models import Order, OrderItem, OrderStateHistory
from modules.orders.repositories.interfaces import IOrderRepository
from shared.infrastructure.bus import event_bus

logger = structlog.get_logger(__name__)


class OrderDjangoRepository(IOrderRepository):
    """Concrete Order repository backed by Django ORM."""

    # ------------------------------------------------------------------
    # Create (aggregate root + children)
    # ------------------------------------------------------------------

    @transaction.atomic
    def create(self, order_id: str, data: Dict[str, Any]) -> Order:
        """Create an order with its items atomically.

        ``data`` keys mirror the ``Order`` fields plus ``items``: a list of
        dicts with ``product_id``, ``variant_id``, ``quantity``, ``price``
        and ``option_details``.
        """
        items = data.pop("items", [])
        order = Order(id=order_id, **data)
        order.save(force_insert=True)

        OrderItem.objects.bulk_create(
            [
                OrderItem(
                    order=order,
                    product_id=item["product_id"],
                    variant_id=item.get("variant_id"),
                    quantity=item["quantity"],
                    price=item["price"],
                    option_details=item.get("option_details"),
                )
                for item in items
            ]
        )

        log = logger.bind(order_id=order.id, item_count=len(items))
        log.info("order.persisted")
        return order

    def exists(self, id: str) -> bool:
        return Order.objects.filter(id=id).exists()

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def get_by_id(self, id: str) -> Optional[Order]:
        """Retrieve an order with eager-loaded relations.

        Returns ``None`` for non-existent IDs.
        """
        try:
            return (
                Order.objects.select_related("driver")
                .prefetch_related("items__product", "items__variant", "state_history")
                .filter(id=id)
                .first()
            )
        except (ValueError, ValidationError):
            return None

    def get_for_update(self, id: str) -> Optional[Order]:
        return Order.objects.select_for_update().filter(id=id).first()

    def list(self, filters: Optional[Dict[str, Any]] = None) -> QuerySet[Order]:
        """List orders with optional filters and eager-loaded relations.

        Supported filter keys: ``state``, ``order_source``, ``driver_id``.
        """
        queryset = Order.objects.select_related("driver").prefetch_related("items")
        if filters:
            queryset = queryset.filter(**filters)
        return queryset

    # ------------------------------------------------------------------
    # Save / Delete (IRepository contract)
    # ------------------------------------------------------------------

    def save(self, entity: Order) -> Order:
        """Persist an order and hand its pending domain events to the bus."""
        entity.save()

        events = entity.pull_domain_events()
        event_bus.publish_on_commit(events)

        logger.info("order.saved", order_id=entity.id, event_count=len(events))
        return entity

    @transaction.atomic
    def delete(self, order: Order) -> None:
        order_id = order.id
        OrderItem.objects.filter(order_id=order_id).delete()
        OrderStateHistory.objects.filter(order_id=order_id).delete()
        Order.objects.filter(id=order_id).delete()
        logger.info("order.deleted", order_id=order_id)

    # ------------------------------------------------------------------
    # Order-specific queries
    # ------------------------------------------------------------------

    def add_history(
        self,
        order_id: str,
        new_state: str,
        old_state: Optional[str] = None,
        notes: str = "",
        user: Any = None,
    ) -> OrderStateHistory:
        """Record a state change in the order's audit trail."""
        history = OrderStateHistory(
            order_id=order_id,
            old_state=old_state,
            new_state=new_state,
            notes=notes,
            user=user if getattr(user, "is_authenticated", False) else None,
        )
        history.save()

        logger.info(
            "order.history_added",
            order_id=order_id,
            old_state=old_state,
            new_state=new_state,
        )
        return history
