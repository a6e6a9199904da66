"""Order repository interface.

Extends ``IRepository[Order]`` with methods required by the Order
aggregate: atomic creation with items, row locking for transitions,
and state history tracking.

The Service Layer depends exclusively on this contract (DIP).
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Any, Dict, Iterable, Optional

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.orders.models import Order, OrderStateHistory


class IOrderRepository(IRepository["Order"]):
    """Repository contract for the Order aggregate root.

    The Order aggregate includes OrderItem children and
    OrderStateHistory records.  Mutations must be atomic.
    """

    @abstractmethod
    def create(self, order_id: str, data: Dict[str, Any]) -> Order:
        """Insert an order under ``order_id`` together with its items.

        Must never overwrite an existing order: a taken id surfaces as
        ``IntegrityError``.
        """

    @abstractmethod
    def exists(self, id: str) -> bool:
        """True when an order with this id is stored."""

    @abstractmethod
    def get_by_id(self, id: str) -> Optional[Order]:
        """Retrieve an order with prefetched items and state history."""

    @abstractmethod
    def get_for_update(self, id: str) -> Optional[Order]:
        """Retrieve and lock an order row (``SELECT ... FOR UPDATE``)."""

    @abstractmethod
    def list(self, filters: Optional[Dict[str, Any]] = None) -> Iterable[Order]:
        """List orders with optional filters."""

    @abstractmethod
    def add_history(
        self,
        order_id: str,
        new_state: str,
        old_state: Optional[str] = None,
        notes: str = "",
        user: Any = None,
    ) -> OrderStateHistory:
        """Record a state change in the order's audit trail."""

    @abstractmethod
    def delete(self, order: Order) -> None:
        """Remove an order with its items and history."""
