"""In-process event bus bound to Django's transaction hooks."""

from __future__ import annotations

from typing import Dict, Iterable, List, Type

import structlog
from django.db import transaction

from shared.domain.bus import IEventBus, IEventHandler
from shared.domain.events import DomainEvent

logger = structlog.get_logger(__name__)


class InMemoryEventBus(IEventBus):
    """Routes events to handlers subscribed for their exact class."""

    def __init__(self) -> None:
        self._handlers: Dict[Type[DomainEvent], List[IEventHandler]] = {}

    def subscribe(self, event_class: Type[DomainEvent], handler: IEventHandler) -> None:
        handlers = self._handlers.setdefault(event_class, [])
        if handler not in handlers:
            handlers.append(handler)

    def unsubscribe(self, event_class: Type[DomainEvent], handler: IEventHandler) -> None:
        handlers = self._handlers.get(event_class, [])
        if handler in handlers:
            handlers.remove(handler)

    def handlers_for(self, event_class: Type[DomainEvent]) -> List[IEventHandler]:
        return list(self._handlers.get(event_class, []))

    def publish(self, event: DomainEvent) -> None:
        for handler in self.handlers_for(type(event)):
            handler.handle(event)

    def publish_on_commit(self, events: Iterable[DomainEvent]) -> None:
        """Queue ``events`` until the surrounding transaction commits.

        Outside a transaction Django runs the callback immediately; on
        rollback the events are dropped.  Each event gets its own robust
        callback, so a failing handler is logged by Django and does not
        stop the remaining events.
        """
        for event in events:
            transaction.on_commit(lambda event=event: self.publish(event), robust=True)
            logger.debug(
                "event_bus.queued", event_name=event.event_name, aggregate_id=event.aggregate_id
            )


event_bus = InMemoryEventBus()
