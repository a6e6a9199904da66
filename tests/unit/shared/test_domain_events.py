"""Unit tests for domain events and the in-memory bus."""

from __future__ import annotations

import logging
from unittest.mock import MagicMock

import pytest

from modules.orders.constants import OrderState
from modules.orders.events import OrderStateChanged, StockDeducted
from modules.orders.models import Order
from shared.infrastructure.bus import InMemoryEventBus

pytestmark = pytest.mark.unit


def test_order_queues_and_pulls_domain_events():
    order = Order(id="SP0101251200ABCDE", customer_name="A", customer_phone="1")
    assert order.domain_events == []

    event = StockDeducted(aggregate_id=order.id, line_count=2, units=5)
    order.add_domain_event(event)

    assert order.domain_events == [event]
    assert order.pull_domain_events() == [event]
    assert order.domain_events == []


def test_event_name_and_payload():
    event = OrderStateChanged(
        aggregate_id="SP1", old_state=OrderState.PLACED, new_state=OrderState.DELIVERING
    )
    assert event.event_name == "order_state_changed"
    assert event.payload() == {"old_state": "PLACED", "new_state": "DELIVERING"}


class TestInMemoryEventBus:
    def test_publish_routes_by_exact_class(self):
        bus = InMemoryEventBus()
        handler = MagicMock()
        bus.subscribe(StockDeducted, handler)

        bus.publish(StockDeducted(aggregate_id="SP1"))
        bus.publish(OrderStateChanged(aggregate_id="SP1"))

        assert handler.handle.call_count == 1

    def test_subscribe_is_idempotent_and_reversible(self):
        bus = InMemoryEventBus()
        handler = MagicMock()
        bus.subscribe(StockDeducted, handler)
        bus.subscribe(StockDeducted, handler)
        assert bus.handlers_for(StockDeducted) == [handler]

        bus.unsubscribe(StockDeducted, handler)
        assert bus.handlers_for(StockDeducted) == []

    def test_publish_on_commit_waits_for_commit(self, django_capture_on_commit_callbacks):
        bus = InMemoryEventBus()
        handler = MagicMock()
        bus.subscribe(StockDeducted, handler)
        events = [StockDeducted(aggregate_id="SP1"), StockDeducted(aggregate_id="SP2")]

        with django_capture_on_commit_callbacks(execute=False) as callbacks:
            bus.publish_on_commit(events)
        handler.handle.assert_not_called()

        for callback in callbacks:
            callback()
        assert [c.args[0] for c in handler.handle.call_args_list] == events

    def test_publish_on_commit_logs_each_queued_event(
        self, django_capture_on_commit_callbacks, caplog
    ):
        bus = InMemoryEventBus()
        with caplog.at_level(logging.DEBUG, logger="shared.infrastructure.bus"):
            with django_capture_on_commit_callbacks(execute=False) as callbacks:
                bus.publish_on_commit([StockDeducted(aggregate_id="SP9", units=3)])

        assert len(callbacks) == 1
        messages = [r.getMessage() for r in caplog.records if r.name == "shared.infrastructure.bus"]
        assert len(messages) == 1
        assert "event_bus.queued" in messages[0]
        assert "stock_deducted" in messages[0]
        assert "SP9" in messages[0]
