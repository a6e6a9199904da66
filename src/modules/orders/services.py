"""Order service layer (Use Cases).

Orchestrates order intake, state updates, driver (re)assignment and
deletion.  All write operations are atomic: the service defines the
unit-of-work boundary, and the stock transition engine runs inside it so
the order row, the history record and the stock counters commit or roll
back together.

Business rules enforced:
- Products must exist, be alive and active; prices are computed
  server-side (``product.price + variant.price_adjustment``).
- Orders start in PLACED and creation never touches stock.
- Entering DELIVERING is pre-validated (one combined error for every
  short line) before the deduction runs.
- Entering COMPLETED stamps ``completed_at``.
- Deleting a DELIVERING order restores its stock first.
"""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Optional

import structlog
from django.conf import settings
from django.db import IntegrityError, transaction
from django.utils import timezone

from modules.catalog.resolver import VariantResolver
from modules.orders.constants import (
    ORDER_ID_MAX_RETRIES,
    OrderSource,
    OrderState,
    StockEffect,
)
from modules.orders.events import OrderCreated, OrderStateChanged
from modules.orders.exceptions import InvalidOrderState, OrderIdExhausted, OrderNotFound
from modules.orders.models import Order
from modules.orders.stock import StockTransitionEngine, stock_effect_for
from modules.products.exceptions import InactiveProduct, ProductNotFound

if TYPE_CHECKING:
    from modules.catalog.repositories.interfaces import IVariantRepository
    from modules.drivers.services import DriverService
    from modules.orders.dtos import AssignDriverDTO, CreateOrderDTO
    from modules.orders.repositories.interfaces import IOrderRepository
    from modules.products.repositories.interfaces import IProductRepository

logger = structlog.get_logger(__name__)


class OrderService:
    """Application service for Order use-cases.

    Receives repositories via constructor injection (DIP).
    """

    def __init__(
        self,
        order_repository: IOrderRepository,
        product_repository: IProductRepository,
        variant_repository: IVariantRepository,
        driver_service: Optional[DriverService] = None,
        stock_engine: Optional[StockTransitionEngine] = None,
        max_id_retries: Optional[int] = None,
    ) -> None:
        self._order_repo = order_repository
        self._product_repo = product_repository
        self._variant_repo = variant_repository
        self._driver_service = driver_service
        self._resolver = VariantResolver(variant_repository)
        self._stock = stock_engine or StockTransitionEngine(
            order_repository=order_repository,
            product_repository=product_repository,
            variant_repository=variant_repository,
        )
        if max_id_retries is None:
            max_id_retries = getattr(settings, "ORDER_ID_MAX_RETRIES", ORDER_ID_MAX_RETRIES)
        self._max_id_retries = max_id_retries

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    def _price_lines(self, dto: CreateOrderDTO) -> List[Dict[str, Any]]:
        """Resolve variants and snapshot prices for every requested line."""
        products = self._product_repo.get_many([str(i.product_id) for i in dto.items])

        lines = []
        for item in dto.items:
            product = products.get(str(item.product_id))
            if not product or product.is_deleted:
                raise ProductNotFound(f"Product {item.product_id} not found.")
            if not product.is_sellable:
                raise InactiveProduct(f"Product {product.name} is inactive.")

            variant_id = None
            if product.has_options:
                variant_id = self._resolver.resolve(str(product.id), item.selected_option_ids)
            lines.append({"product": product, "item": item, "variant_id": variant_id})

        variants = self._variant_repo.get_many([l["variant_id"] for l in lines if l["variant_id"]])

        priced = []
        for line in lines:
            product, item, variant_id = line["product"], line["item"], line["variant_id"]
            variant = variants.get(variant_id) if variant_id else None
            adjustment = variant.price_adjustment if variant else Decimal("0.00")
            priced.append(
                {
                    "product_id": product.id,
                    "variant_id": variant.id if variant else None,
                    "quantity": item.quantity,
                    "price": product.price + adjustment,
                    "option_details": {
                        "variant_id": str(variant.id) if variant else None,
                        "selections": [group.as_document() for group in item.option_details],
                    },
                }
            )
        return priced

    def _insert_with_fresh_id(self, data: Dict[str, Any], log) -> Order:
        """Insert under a newly generated id, retrying on id collisions only."""
        for attempt in range(1, self._max_id_retries + 1):
            order_id = Order.generate_order_id()
            try:
                with transaction.atomic():
                    return self._order_repo.create(order_id, dict(data))
            except IntegrityError:
                if not self._order_repo.exists(order_id):
                    raise
                log.warning("order.id_collision", order_id=order_id, attempt=attempt)
        raise OrderIdExhausted(
            f"Could not allocate a unique order id after {self._max_id_retries} attempts."
        )

    @transaction.atomic
    def create_order(
        self,
        dto: CreateOrderDTO,
        source: str = OrderSource.ADMIN,
        created_by: Any = None,
    ) -> Order:
        """Create an order in PLACED with server-side pricing.

        Raises:
            ProductNotFound: a product does not exist.
            InactiveProduct: a product is inactive.
            OrderIdExhausted: every generated id collided.
        """
        log = logger.bind(order_source=str(source), item_count=len(dto.items))
        log.info("order.creation_started")

        items = self._price_lines(dto)
        subtotal = sum((i["price"] * i["quantity"] for i in items), Decimal("0.00"))

        order = self._insert_with_fresh_id(
            {
                "customer_name": dto.customer_name,
                "customer_phone": dto.customer_phone,
                "customer_location": dto.customer_location,
                "province": dto.province,
                "remark": dto.remark,
                "state": OrderState.PLACED,
                "order_source": source,
                "subtotal_price": subtotal,
                "company_delivery_price": dto.company_delivery_price,
                "delivery_price": dto.delivery_price,
                "total_price": subtotal + dto.delivery_price,
                "is_paid": dto.is_paid,
                "created_by": created_by if getattr(created_by, "is_authenticated", False) else None,
                "items": items,
            },
            log,
        )

        self._order_repo.add_history(
            order_id=order.id,
            new_state=OrderState.PLACED,
            notes="Order created",
            user=created_by,
        )
        order.add_domain_event(
            OrderCreated(aggregate_id=order.id, order_source=str(source), item_count=len(items))
        )
        self._order_repo.save(order)

        log.info("order.created", order_id=order.id, total_price=str(order.total_price))
        return self._order_repo.get_by_id(order.id) or order

    # ------------------------------------------------------------------
    # State changes
    # ------------------------------------------------------------------

    def _locked(self, order_id: str) -> Order:
        order = self._order_repo.get_for_update(str(order_id))
        if not order:
            raise OrderNotFound(f"Order {order_id} not found.")
        return order

    def _transition(self, order: Order, new_state: str, notes: str = "", user: Any = None) -> Order:
        """Write ``new_state`` on a locked order and apply its stock edge.

        Raises:
            InsufficientStock: entering DELIVERING with a short line.
        """
        old_state = order.state
        effect = stock_effect_for(old_state, new_state)
        log = logger.bind(order_id=order.id, old_state=old_state, new_state=new_state)

        if effect == StockEffect.DEDUCT:
            report = self._stock.validate_order(order)
            if not report["is_valid"]:
                log.warning("order.stock_validation_failed")
                raise self._stock.insufficient_stock_error(report)

        if new_state == OrderState.COMPLETED and old_state != OrderState.COMPLETED:
            order.completed_at = timezone.now()
        order.state = new_state

        if old_state != new_state:
            self._order_repo.add_history(
                order_id=order.id,
                old_state=old_state,
                new_state=new_state,
                notes=notes,
                user=user,
            )
            order.add_domain_event(
                OrderStateChanged(aggregate_id=order.id, old_state=old_state, new_state=new_state)
            )

        self._stock.apply_effect(order, effect)
        self._order_repo.save(order)
        log.info("order.state_updated", stock_effect=effect)
        return order

    @transaction.atomic
    def update_state(self, order_id: str, new_state: str, notes: str = "", user: Any = None) -> Order:
        """Move an order to ``new_state``; any state may be written directly.

        Raises:
            OrderNotFound: the order does not exist.
            InvalidOrderState: ``new_state`` is not a known state.
            InsufficientStock: entering DELIVERING with a short line.
        """
        if new_state not in OrderState.values:
            raise InvalidOrderState(f"Unknown order state: {new_state}.")
        order = self._locked(order_id)
        self._transition(order, new_state, notes=notes, user=user)
        return self._order_repo.get_by_id(order.id) or order

    @transaction.atomic
    def assign_driver(self, order_id: str, dto: AssignDriverDTO, user: Any = None) -> Order:
        """Assign (DELIVERING) or un-assign (PLACED) the order's driver.

        Raises:
            OrderNotFound: the order does not exist.
            DriverNotFound / InactiveDriver: the driver cannot take orders.
            InsufficientStock: the move into DELIVERING is short on stock.
        """
        order = self._locked(order_id)

        if dto.driver_id is not None:
            driver = self._driver_service.get_assignable_driver(str(dto.driver_id))
            order.driver = driver
            order.assigned_at = dto.assigned_at or timezone.now()
            target = OrderState.DELIVERING
            notes = f"Assigned to driver {driver.name}"
        else:
            order.driver = None
            order.assigned_at = None
            target = OrderState.PLACED
            notes = "Driver unassigned"

        logger.info(
            "order.driver_assignment",
            order_id=order.id,
            driver_id=str(dto.driver_id) if dto.driver_id else None,
        )
        self._transition(order, target, notes=notes, user=user)
        return self._order_repo.get_by_id(order.id) or order

    @transaction.atomic
    def delete_order(self, order_id: str) -> None:
        """Delete an order, restoring its stock first when it is DELIVERING.

        Raises:
            OrderNotFound: the order does not exist.
        """
        order = self._locked(order_id)
        if order.state == OrderState.DELIVERING:
            self._stock.apply_effect(order, StockEffect.RESTORE)
            self._order_repo.save(order)
        self._order_repo.delete(order)
        logger.info("order.removed", order_id=order.id, state=order.state)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_order(self, order_id: str) -> Order:
        """Retrieve a single order by ID.

        Raises:
            OrderNotFound: if the order does not exist.
        """
        order = self._order_repo.get_by_id(str(order_id))
        if not order:
            raise OrderNotFound(f"Order {order_id} not found.")
        return order

    def list_orders(self, filters: Optional[Dict[str, Any]] = None) -> Iterable[Order]:
        """Return orders, optionally filtered by state, source or driver."""
        return self._order_repo.list(filters)

    def validate_stock(self, order_id: str) -> Dict[str, Any]:
        """Dry-run stock check for every line of an order."""
        return self._stock.validate_stock_for_order(str(order_id))
