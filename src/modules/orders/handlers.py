"""Event handlers for Orders domain events.

Every order event is logged as ``order.event.<event_name>`` with the
event's own fields as context.
"""

from __future__ import annotations

import structlog

from modules.orders.events import (
    OrderCreated,
    OrderStateChanged,
    StockDeducted,
    StockRestored,
)
from shared.domain.bus import IEventHandler
from shared.domain.events import DomainEvent

logger = structlog.get_logger(__name__)

ORDER_EVENTS = (OrderCreated, OrderStateChanged, StockDeducted, StockRestored)


class OrderEventLogHandler(IEventHandler[DomainEvent]):
    def handle(self, event: DomainEvent) -> None:
        logger.info(
            f"order.event.{event.event_name}",
            order_id=event.aggregate_id,
            event_id=str(event.event_id),
            **event.payload(),
        )


order_event_log_handler = OrderEventLogHandler()
